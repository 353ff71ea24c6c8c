"""Per-slide render pipeline."""

import logging
from typing import Callable, List, Optional

from .config import ShowConfig
from .display import View
from .executor import FragmentExecutor, FragmentResult
from .math_renderer import MathRenderer
from .media import MediaDisplay
from .models import Section, Slide

logger = logging.getLogger(__name__)


class SlideRenderer:
    """
    Scopes the view to a slide and applies its decorations.

    Every step after position resolution is isolated: a failing step is
    logged and reported, and the steps before and after it still apply.
    Decorations are always *set*, so rendering a slide twice leaves the
    same state as rendering it once.
    """

    def __init__(self, view: View, config: ShowConfig, executor: FragmentExecutor,
                 math_renderer: Optional[MathRenderer] = None,
                 media: Optional[MediaDisplay] = None,
                 notify: Optional[Callable[[str], None]] = None):
        self.view = view
        self.document = view.document
        self.config = config
        self.executor = executor
        self.math_renderer = math_renderer
        self.media = media
        self.notify = notify
        self.last_results: List[FragmentResult] = []

    def render(self, slide: Slide, total: int) -> Section:
        """
        Render *slide* out of *total*.

        Raises:
            StaleSlideError: If the slide's position no longer resolves.
                Nothing has been changed when this is raised.
        """
        section = self.document.resolve(slide.position)
        logger.debug("Rendering slide %d/%d %r", slide.ordinal, total, slide.title)

        self._step("unfold", self.view.show_all)
        self._step("narrow", lambda: self._narrow(section))
        self._step("typeset", lambda: self._typeset(section))
        self._step("decorate", lambda: self._decorate(section))
        self._step("fragments", lambda: self._run_fragments(section, slide))

        # Cosmetic only
        try:
            self.view.title = f"{slide.title} [{slide.ordinal}/{total}]"
        except Exception:
            logger.debug("Could not set view title", exc_info=True)
        return section

    def _step(self, name: str, action: Callable[[], None]) -> None:
        try:
            action()
        except Exception as exc:
            logger.exception("Render step %r failed", name)
            if self.notify is not None:
                self.notify(f"Render step {name!r} failed: {exc}")

    def _narrow(self, section: Section) -> None:
        self.view.narrow_to(section)
        self.view.soft_wrap = True

    def _typeset(self, section: Section) -> None:
        self.view.typeset = []
        if self.math_renderer is None:
            return
        self.view.typeset = self.math_renderer.typeset(self.document, section, self.config.typeset_scale)

    def _decorate(self, section: Section) -> None:
        self.view.set_text_scale(self.config.text_scale)
        self.view.hide_drawers(self.document.drawers(section))
        self.view.inline_media = []
        if self.media is not None:
            self.view.inline_media = self.media.display(self.document, section)

    def _run_fragments(self, section: Section, slide: Slide) -> None:
        self.last_results = []
        self.last_results = self.executor.execute(self.document, section, view=self.view, label=slide.title)

"""Navigation between slides."""

import logging
from typing import Callable, Optional, Union

from .errors import NotRunningError, UnknownSlideError
from .index import SlideIndex
from .models import NavigationState, Section, Slide

logger = logging.getLogger(__name__)

END_OF_SHOW = "End of show"
START_OF_SHOW = "Start of show"


class Navigator:
    """
    Tracks the current slide and moves between slides.

    Every successful move ends by rendering the target slide.

    Args:
        renderer: :class:`SlideRenderer` used for every move
        rebuild_index: Callable returning a freshly built index, used by
            :meth:`open_at`
        notify: Receives boundary notices
    """

    def __init__(self, renderer, rebuild_index: Callable[[], SlideIndex],
                 notify: Optional[Callable[[str], None]] = None):
        self.renderer = renderer
        self.rebuild_index = rebuild_index
        self.notify = notify
        self.index: Optional[SlideIndex] = None
        self.state: Optional[NavigationState] = None

    def attach(self, index: SlideIndex, document) -> None:
        self.index = index
        self.state = NavigationState(current_ordinal=1, active_document=document)

    def detach(self) -> None:
        self.index = None
        self.state = None

    def _require_index(self) -> SlideIndex:
        if self.index is None or self.state is None:
            raise NotRunningError("No show is running")
        return self.index

    @property
    def current(self) -> int:
        self._require_index()
        return self.state.current_ordinal

    def current_slide(self) -> Slide:
        return self._require_index().get(self.state.current_ordinal)

    def goto(self, ordinal: int) -> Slide:
        """Render slide *ordinal*; out-of-range targets leave the position unchanged."""
        index = self._require_index()
        slide = index.get(ordinal)
        self.renderer.render(slide, len(index))
        self.state.current_ordinal = ordinal
        return slide

    def next(self) -> Slide:
        index = self._require_index()
        current = self.state.current_ordinal
        if current + 1 <= len(index):
            return self.goto(current + 1)
        slide = self.goto(current)
        self._notice(END_OF_SHOW)
        return slide

    def previous(self) -> Slide:
        self._require_index()
        current = self.state.current_ordinal
        if current - 1 >= 1:
            return self.goto(current - 1)
        slide = self.goto(current)
        self._notice(START_OF_SHOW)
        return slide

    def first(self) -> Slide:
        self._require_index()
        return self.goto(1)

    def last(self) -> Slide:
        return self.goto(len(self._require_index()))

    def refresh(self) -> Slide:
        """Render the current slide again."""
        return self.goto(self.current)

    def open_at(self, target: Union[Section, int]) -> Slide:
        """
        Jump to the slide for *target*.

        Args:
            target: A section, or a 0-based line number.  For a line, the
                innermost slide-tagged section containing it is used, falling
                back to the innermost section.

        Raises:
            UnknownSlideError: If the section's title is not a slide title
        """
        self._require_index()
        index = self.rebuild_index()
        self.index = index

        section = target if isinstance(target, Section) else self._section_at(target)
        if section is None:
            raise UnknownSlideError(f"<line {target + 1}>")
        ordinal = index.ordinal_for_title(section.title)
        if ordinal is None:
            raise UnknownSlideError(section.title)
        return self.goto(ordinal)

    def _section_at(self, line: int) -> Optional[Section]:
        document = self.state.active_document
        tag = self.renderer.config.slide_tag
        enclosing = document.sections_at(line)
        for section in reversed(enclosing):
            if tag in document.section_tags(section):
                return section
        return enclosing[-1] if enclosing else None

    def _notice(self, message: str) -> None:
        if self.notify is not None:
            self.notify(message)
        else:
            logger.info(message)

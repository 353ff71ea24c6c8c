"""
Show lifecycle.

A :class:`ShowSession` owns all state of one running show: the display
snapshot, the slide index, the navigation position and the files generated
while rendering.  ``start`` mutates the global display for presenting and
``stop`` puts back exactly what it found.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .artifacts import GeneratedArtifacts
from .config import HideTags, ShowConfig
from .display import (
    META_BACKGROUND,
    META_HEIGHT,
    SPELLCHECK,
    TAGS_COLUMN,
    TYPESET_SCALE,
    DisplaySettings,
    DisplaySnapshot,
    HiddenRange,
    View,
    get_display_settings,
)
from .errors import AlreadyRunningError, NotRunningError
from .executor import FragmentExecutor
from .index import SlideIndex
from .math_renderer import MathRenderer
from .media import MediaDisplay
from .models import Section, Slide
from .navigator import Navigator
from .paths import prepare_workspace, remove_if_empty
from .renderer import SlideRenderer

logger = logging.getLogger(__name__)

TAG_REASON = "show-tags"
FRAGMENT_REASON = "show-fragments"


class ShowState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class ShowSession:
    """
    One slideshow over one document.

    Args:
        config: Settings used by the next ``start`` unless one is passed there
        display: Global display settings (defaults to the process-wide ones)
        environment: Extra names made available to presentation fragments
        on_message: Called with every notice (boundaries, failed fragments)
        keep_tmp: Leave the ``.show_tmp`` directory on disk after exit
        debug: Verbose logging from the typesetting and media steps
    """

    def __init__(
        self,
        config: Optional[ShowConfig] = None,
        *,
        display: Optional[DisplaySettings] = None,
        environment: Optional[Dict[str, Any]] = None,
        on_message: Optional[Callable[[str], None]] = None,
        keep_tmp: bool = False,
        debug: bool = False,
    ):
        self.config = config or ShowConfig()
        self.display = display if display is not None else get_display_settings()
        self.environment = dict(environment or {})
        self.on_message = on_message
        self.keep_tmp = keep_tmp
        self.debug = debug

        self.state = ShowState.STOPPED
        self.document = None
        self.view: Optional[View] = None
        self.index: Optional[SlideIndex] = None
        self.snapshot: Optional[DisplaySnapshot] = None
        self.artifacts = GeneratedArtifacts()
        self.messages: List[str] = []
        self.executor: Optional[FragmentExecutor] = None
        self.renderer: Optional[SlideRenderer] = None
        self.navigator: Optional[Navigator] = None
        self._workspace: Optional[Dict[str, Any]] = None

    @property
    def running(self) -> bool:
        return self.state is ShowState.RUNNING

    def notify(self, message: str) -> None:
        """Report a notice to the user."""
        self.messages.append(message)
        logger.info(message)
        if self.on_message is not None:
            self.on_message(message)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, document, config: Optional[ShowConfig] = None) -> Slide:
        """
        Start presenting *document* on its first slide.

        Starting again on the same document resets the show.

        Raises:
            AlreadyRunningError: If a show is running on another document
            EmptyShowError: If the document has no slides.  The display is
                restored and the session stays stopped.
        """
        if self.running:
            if document is not self.document:
                raise AlreadyRunningError(f"A show is already running on {self.document!r}")
            logger.info("Restarting show on %r", document)
            self.stop()

        if config is not None:
            self.config = config
        self.document = document
        self.view = View(document)
        self.snapshot = DisplaySnapshot()
        self.messages = []

        try:
            self._apply_presentation_display()
            self.index = SlideIndex.build(document, self.config.slide_tag)
            self._workspace = prepare_workspace(document.base_dir, keep_tmp=self.keep_tmp)
            self._build_pipeline()
            self._hide_tags()
            self._hide_fragments()
            self.navigator.attach(self.index, document)
            slide = self.navigator.goto(1)
        except Exception:
            logger.debug("Show start failed, restoring display", exc_info=True)
            self._teardown()
            raise

        self.state = ShowState.RUNNING
        logger.info("Show started: %d slides in %r", len(self.index), document)
        return slide

    def stop(self) -> None:
        """Stop the show and restore everything ``start`` changed.  No-op when stopped."""
        if not self.running:
            logger.debug("stop() called with no running show")
            return
        self._teardown()
        logger.info("Show stopped")

    def _apply_presentation_display(self) -> None:
        presentation = {
            META_BACKGROUND: self.config.meta_background,
            META_HEIGHT: self.config.meta_height,
            TYPESET_SCALE: self.config.typeset_scale,
            TAGS_COLUMN: self.config.tags_column,
            SPELLCHECK: self.config.spellcheck,
        }
        for name, value in presentation.items():
            self.snapshot.capture(self.display, name)
            self.display.set(name, value)

    def _build_pipeline(self) -> None:
        namespace = {
            "__name__": "__slideshow__",
            "session": self,
            "document": self.document,
            "view": self.view,
            "display": self.display,
        }
        namespace.update(self.environment)
        self.executor = FragmentExecutor(self.config.fragment_marker, namespace, notify=self.notify)

        tmp_dir = self._workspace["tmp_dir"]
        self.renderer = SlideRenderer(
            self.view,
            self.config,
            self.executor,
            math_renderer=MathRenderer(tmp_dir, self.artifacts, debug=self.debug),
            media=MediaDisplay(tmp_dir, self.artifacts, max_width=self.config.media_max_width, debug=self.debug),
            notify=self.notify,
        )
        self.navigator = Navigator(self.renderer, self.rebuild_index, notify=self.notify)

    def _hide_tags(self) -> None:
        visibility = self.view.visibility
        visibility.add_visibility_spec(TAG_REASON)
        tag = self.config.slide_tag
        for section in self.document.enumerate_sections():
            if not section.tags or section.tag_group_span is None:
                continue
            if self.config.hide_tags is HideTags.ALL_TAGS:
                span = section.tag_group_span
            elif tag not in section.tags:
                continue
            elif set(section.tags) == {tag}:
                # Hiding ":slide" alone would leave a dangling ":"
                span = section.tag_group_span
            else:
                span = section.tag_spans.get(tag)
                if span is None:
                    continue
            marker = self.document.marker_at(section.line)
            visibility.hide(TAG_REASON, HiddenRange(marker, start_col=span[0], end_col=span[1]))

    def _hide_fragments(self, active: bool = True) -> None:
        visibility = self.view.visibility
        if active:
            visibility.add_visibility_spec(FRAGMENT_REASON)
        for fragment in self.document.find_fragments(None, self.config.fragment_marker):
            marker = self.document.marker_at(fragment.start)
            visibility.hide(FRAGMENT_REASON, HiddenRange(marker, length=fragment.end - fragment.start))

    def _reveal(self, reason: str) -> None:
        """Drop every range hidden for *reason* and release their anchors."""
        visibility = self.view.visibility
        self.document.release(visibility.markers(reason))
        visibility.remove_visibility_spec(reason)

    def _teardown(self) -> None:
        """Best-effort restoration.  Each step runs even if an earlier one failed."""
        if self.view is not None:
            self._quietly("reveal tags", lambda: self._reveal(TAG_REASON))
            self._quietly("reveal fragments", lambda: self._reveal(FRAGMENT_REASON))
        if self.index is not None and self.document is not None:
            self._quietly("release slide positions", lambda: self.document.release(self.index.positions()))
        if self.snapshot is not None:
            self._quietly("restore display", lambda: self.snapshot.restore(self.display))
            self.snapshot = None
        self._quietly("drain artifacts", self.artifacts.drain)
        if self._workspace is not None:
            self._quietly("remove scratch dir", lambda: remove_if_empty(self._workspace["tmp_dir"]))
            self._workspace = None
        if self.navigator is not None:
            self.navigator.detach()
        if self.executor is not None:
            self.executor.reset()
        if self.view is not None:
            self._quietly("reset view", self.view.reset)
        self.index = None
        self.document = None
        self.state = ShowState.STOPPED

    @staticmethod
    def _quietly(name: str, action: Callable[[], Any]) -> None:
        try:
            action()
        except Exception:
            logger.warning("Cleanup step %r failed", name, exc_info=True)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _require_running(self) -> Navigator:
        if not self.running:
            raise NotRunningError("No show is running")
        return self.navigator

    def rebuild_index(self) -> SlideIndex:
        """Re-scan the document, e.g. after slides were reordered or retitled."""
        if self.document is None:
            raise NotRunningError("No show is running")
        index = SlideIndex.build(self.document, self.config.slide_tag)
        if self.index is not None:
            self.document.release(self.index.positions())
        self.index = index
        if self.navigator is not None and self.navigator.state is not None:
            self.navigator.index = index
            state = self.navigator.state
            state.current_ordinal = min(state.current_ordinal, len(index))

        # Hidden ranges are anchored on markers a structural edit invalidates
        fragments_shown = not self.view.visibility.is_active(FRAGMENT_REASON)
        self._reveal(TAG_REASON)
        self._reveal(FRAGMENT_REASON)
        self._hide_tags()
        self._hide_fragments(active=not fragments_shown)
        logger.debug("Rebuilt index: %d slides", len(index))
        return index

    def next_slide(self) -> Slide:
        return self._require_running().next()

    def previous_slide(self) -> Slide:
        return self._require_running().previous()

    def goto_slide(self, ordinal: int) -> Slide:
        return self._require_running().goto(ordinal)

    def first_slide(self) -> Slide:
        return self._require_running().first()

    def last_slide(self) -> Slide:
        return self._require_running().last()

    def refresh_slide(self) -> Slide:
        return self._require_running().refresh()

    def open_at_point(self, target: Union[Section, int]) -> Slide:
        return self._require_running().open_at(target)

    def current_slide(self) -> Slide:
        return self._require_running().current_slide()

    def list_slides(self) -> List[Tuple[int, str]]:
        self._require_running()
        return self.index.entries()

    def toggle_fragment_source(self) -> bool:
        """Show or hide presentation fragments' source.  Returns True when hidden."""
        self._require_running()
        return self.view.visibility.toggle(FRAGMENT_REASON)

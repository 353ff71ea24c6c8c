"""
Global display settings and the presentation view.

:class:`DisplaySettings` holds process-wide cosmetic settings (the meta line
style, math preview scale, tag column and spell checking).  A show snapshots
them on start and restores them on stop.

:class:`View` is what the audience sees of a document: its narrowing, folds,
hidden ranges, zoom and the effects requested by the renderer.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from .models import Marker, Section

logger = logging.getLogger(__name__)

META_BACKGROUND = "meta_line.background"
META_HEIGHT = "meta_line.height"
TYPESET_SCALE = "typeset.scale"
TAGS_COLUMN = "tags.column"
SPELLCHECK = "spellcheck.enabled"

DEFAULTS: Dict[str, Any] = {
    META_BACKGROUND: "grey75",
    META_HEIGHT: 1.0,
    TYPESET_SCALE: 1.0,
    TAGS_COLUMN: -77,
    SPELLCHECK: True,
}


class DisplaySettings:
    """Registry of global display settings."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(DEFAULTS)
        if values:
            self._values.update(values)

    def get(self, name: str) -> Any:
        """Raises ``KeyError`` for unknown settings."""
        return self._values[name]

    def set(self, name: str, value: Any) -> None:
        if name not in self._values:
            raise KeyError(name)
        logger.debug("Display setting %s: %r -> %r", name, self._values[name], value)
        self._values[name] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)


@dataclass
class DisplaySnapshot:
    """Pre-show values of the settings a show mutates.

    Fields are captured one at a time so a show that failed half way through
    start restores exactly what it had captured.
    """
    values: Dict[str, Any] = field(default_factory=dict)

    def capture(self, display: DisplaySettings, name: str) -> None:
        self.values[name] = display.get(name)

    def restore(self, display: DisplaySettings) -> List[str]:
        """
        Put every captured value back.  A field that fails is logged and
        skipped, the others are still restored.

        Returns:
            Names of the fields that could not be restored
        """
        failed: List[str] = []
        for name, value in self.values.items():
            try:
                display.set(name, value)
            except Exception as e:
                logger.warning(f"Could not restore display setting {name}: {e}")
                failed.append(name)
        return failed


# Global display settings instance
_display_settings = None


def get_display_settings() -> DisplaySettings:
    """Get the process-wide display settings."""
    global _display_settings

    if _display_settings is None:
        _display_settings = DisplaySettings()

    return _display_settings


@dataclass(frozen=True)
class HiddenRange:
    """
    Text hidden from the view.

    Anchored on a document marker so it follows non-structural edits.  With
    columns set, only ``[start_col, end_col)`` of the marker's line is hidden;
    otherwise ``length`` whole lines are.
    """
    marker: Marker
    length: int = 1
    start_col: Optional[int] = None
    end_col: Optional[int] = None


class Visibility:
    """Hidden ranges grouped by the reason they were hidden.

    A reason is switched on with :meth:`add_visibility_spec` and removed,
    together with every range registered under it, by
    :meth:`remove_visibility_spec`.
    """

    def __init__(self):
        self._ranges: Dict[str, List[HiddenRange]] = {}
        self._active: Set[str] = set()

    def add_visibility_spec(self, reason: str) -> None:
        self._active.add(reason)
        self._ranges.setdefault(reason, [])

    def remove_visibility_spec(self, reason: str) -> None:
        self._active.discard(reason)
        self._ranges.pop(reason, None)

    def hide(self, reason: str, hidden: HiddenRange) -> None:
        self._ranges.setdefault(reason, []).append(hidden)

    def toggle(self, reason: str) -> bool:
        """Flip a reason without dropping its ranges.  Returns the new state."""
        if reason in self._active:
            self._active.discard(reason)
            return False
        self._active.add(reason)
        return True

    def markers(self, reason: str) -> List[Marker]:
        """Anchors of every range hidden for *reason*, active or not."""
        return [r.marker for r in self._ranges.get(reason, [])]

    def is_active(self, reason: str) -> bool:
        return reason in self._active

    @property
    def reasons(self) -> Set[str]:
        return set(self._ranges) | self._active

    def hidden_ranges(self) -> List[HiddenRange]:
        """Ranges of active reasons whose anchor is still valid."""
        return [
            r for reason in sorted(self._active)
            for r in self._ranges.get(reason, [])
            if r.marker.valid
        ]


@dataclass(frozen=True)
class TypesetFormula:
    latex: str
    display_mode: bool
    scale: float
    path: Path


@dataclass(frozen=True)
class InlineImage:
    line: int
    path: Path
    size: Tuple[int, int]


class View:
    """
    The presentation view of one document.

    Args:
        document: The document being shown
    """

    def __init__(self, document):
        self.document = document
        self.visibility = Visibility()
        self.narrowing: Optional[Tuple[int, int]] = None
        self.folds: Set[Tuple[int, int]] = set()
        self.drawers: Set[Tuple[int, int]] = set()
        self.text_scale = 0
        self.soft_wrap = False
        self.typeset: List[TypesetFormula] = []
        self.inline_media: List[InlineImage] = []
        self.title: Optional[str] = None

    # Structure -------------------------------------------------------------

    def narrow_to(self, section: Section) -> None:
        self.narrowing = (section.line, section.end)

    def widen(self) -> None:
        self.narrowing = None

    def show_all(self) -> None:
        """Unfold everything so a subtree can be isolated cleanly."""
        self.folds.clear()

    def fold(self, start: int, end: int) -> None:
        """Collapse lines ``[start, end)`` to their first line."""
        self.folds.add((start, end))

    def hide_drawers(self, ranges: List[Tuple[int, int]]) -> None:
        self.drawers = set(ranges)

    def set_text_scale(self, steps: int) -> None:
        """Set, never accumulate, the zoom level."""
        self.text_scale = steps

    def reset(self) -> None:
        """Return to the full document at normal zoom."""
        self.widen()
        self.show_all()
        self.drawers = set()
        self.text_scale = 0
        self.soft_wrap = False
        self.typeset = []
        self.inline_media = []
        self.title = None

    # Output ----------------------------------------------------------------

    def decoration_state(self) -> Dict[str, Any]:
        """Everything that affects what is on screen, in comparable form."""
        return {
            "narrowing": self.narrowing,
            "folds": sorted(self.folds),
            "drawers": sorted(self.drawers),
            "hidden": sorted(
                (r.marker.line, r.length, r.start_col, r.end_col)
                for r in self.visibility.hidden_ranges()
            ),
            "text_scale": self.text_scale,
            "soft_wrap": self.soft_wrap,
            "typeset": [(f.latex, f.display_mode, f.scale, str(f.path)) for f in self.typeset],
            "inline_media": [(m.line, str(m.path), m.size) for m in self.inline_media],
            "title": self.title,
        }

    def visible_lines(self) -> List[str]:
        """Render the view as the list of lines the audience sees."""
        lines = self.document.lines
        start, end = self.narrowing or (0, len(lines))

        hidden_lines: Set[int] = set()
        column_cuts: Dict[int, List[Tuple[int, int]]] = {}
        for r in self.visibility.hidden_ranges():
            if r.start_col is None:
                hidden_lines.update(range(r.marker.line, r.marker.line + r.length))
            else:
                column_cuts.setdefault(r.marker.line, []).append((r.start_col, r.end_col))
        for d_start, d_end in self.drawers:
            hidden_lines.update(range(d_start, d_end))

        folded: Set[int] = set()
        for f_start, f_end in self.folds:
            folded.update(range(f_start + 1, f_end))

        media_by_line: Dict[int, List[InlineImage]] = {}
        for image in self.inline_media:
            media_by_line.setdefault(image.line, []).append(image)

        out: List[str] = []
        for idx in range(start, min(end, len(lines))):
            if idx in hidden_lines or idx in folded:
                continue
            text = lines[idx]
            for cut_start, cut_end in sorted(column_cuts.get(idx, []), reverse=True):
                text = text[:cut_start] + text[cut_end:]
            if any(f_start == idx for f_start, f_end in self.folds):
                text = text.rstrip() + " ..."
            out.append(text)
            for image in media_by_line.get(idx, []):
                out.append(f"[image: {image.path.name} {image.size[0]}x{image.size[1]}]")
        return out

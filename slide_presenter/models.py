"""
Data models for the slide presenter.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class Section:
    """
    One heading of the document and the subtree below it.

    Line numbers are 0-based; ``end`` is exclusive and points at the next
    heading of the same or higher level (or the end of the document).
    """
    level: int
    title: str
    line: int
    end: int
    tags: Tuple[str, ...] = ()
    tag_spans: Dict[str, Tuple[int, int]] = field(default_factory=dict, compare=False, hash=False)
    tag_group_span: Optional[Tuple[int, int]] = None  # columns of " :a:b:" on the heading line

    def contains(self, line: int) -> bool:
        """Check if *line* falls inside this section's subtree."""
        return self.line <= line < self.end

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass(frozen=True)
class Fragment:
    """A fenced code block embedded in a section."""
    language: str
    flags: FrozenSet[str]
    source: str
    start: int  # line of the opening fence
    end: int    # line after the closing fence

    @property
    def once(self) -> bool:
        """Fragments flagged ``:once`` must not run twice during a show."""
        return ":once" in self.flags

    def is_kind(self, kind: str) -> bool:
        return kind in self.flags or self.language == kind


@dataclass(eq=False)
class Marker:
    """
    Stable position handle issued by a document.

    The document shifts ``line`` across non-structural edits and clears
    ``valid`` on structural ones.
    """
    id: int
    line: int
    valid: bool = True


@dataclass(frozen=True)
class Slide:
    """A slide-tagged section as captured when the index was built."""
    ordinal: int
    title: str
    position: Marker = field(compare=False)


@dataclass
class NavigationState:
    """Current position of a running show."""
    current_ordinal: int
    active_document: object

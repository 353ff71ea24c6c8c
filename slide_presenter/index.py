"""Slide discovery."""

import logging
from typing import Dict, List, Optional, Tuple

from .errors import EmptyShowError, OutOfRangeError
from .models import Marker, Slide

logger = logging.getLogger(__name__)


class SlideIndex:
    """
    Ordered slides of one document plus a title lookup.

    An index is never patched: after an edit that reorders or retitles
    slides, build a new one.

    Note:
        Duplicate titles are not supported.  The title lookup keeps the last
        slide seen with a given title.
    """

    def __init__(self, slides: List[Slide]):
        self.slides: List[Slide] = list(slides)
        self.by_title: Dict[str, int] = {}
        for slide in self.slides:
            self.by_title[slide.title] = slide.ordinal

    @classmethod
    def build(cls, document, slide_tag: str = "slide") -> "SlideIndex":
        """
        Scan every section of *document* in order and index the tagged ones.

        Raises:
            EmptyShowError: If no section carries *slide_tag*
        """
        slides: List[Slide] = []
        for section in document.enumerate_sections():
            if slide_tag not in document.section_tags(section):
                continue
            slides.append(Slide(
                ordinal=len(slides) + 1,
                title=document.section_title(section),
                position=document.marker_at(section.line),
            ))

        if not slides:
            raise EmptyShowError(slide_tag)

        logger.debug("Indexed %d slides tagged %r", len(slides), slide_tag)
        return cls(slides)

    def __len__(self) -> int:
        return len(self.slides)

    def get(self, ordinal: int) -> Slide:
        """Raises :class:`OutOfRangeError` unless ``1 <= ordinal <= N``."""
        if not 1 <= ordinal <= len(self.slides):
            raise OutOfRangeError(ordinal, len(self.slides))
        return self.slides[ordinal - 1]

    def ordinal_for_title(self, title: str) -> Optional[int]:
        return self.by_title.get(title)

    def positions(self) -> List[Marker]:
        return [s.position for s in self.slides]

    def entries(self) -> List[Tuple[int, str]]:
        return [(s.ordinal, s.title) for s in self.slides]

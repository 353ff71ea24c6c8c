"""
Markdown outline document backing a slideshow.

The document is a list of text lines parsed with markdown-it-py.  Headings
form the section outline; a trailing ``:tag1:tag2:`` group on a heading line
carries the section's tags.  Fenced code blocks are fragments, HTML comments
and ``???`` speaker-note lines are drawers.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml
from markdown_it import MarkdownIt
from markdown_it.token import Token

from .errors import StaleSlideError
from .markdown_plugins import TAG_GROUP_RE, slide_tags_plugin, speaker_notes_plugin
from .models import Fragment, Marker, Section

logger = logging.getLogger(__name__)

Scope = Union[Section, Tuple[int, int], None]


@dataclass(frozen=True)
class ImageRef:
    """An inline image reference found in the document."""
    src: str
    alt: str
    line: int


def build_markdown_processor() -> MarkdownIt:
    """Create the markdown-it-py processor used for outlines."""
    from mdit_py_plugins.dollarmath import dollarmath_plugin
    from mdit_py_plugins.front_matter import front_matter_plugin

    md = MarkdownIt('commonmark', {
        'html': True,          # HTML comments become drawers
        'typographer': False,  # Keep titles byte-identical to the source
    })
    md.enable(['table', 'strikethrough'])

    return (
        md
        .use(front_matter_plugin)              # YAML front-matter (`---`) for show config
        .use(dollarmath_plugin,
             allow_space=False,                # Don't allow spaces after/before $
             allow_digits=False,               # Don't allow digits before/after $
             double_inline=False               # Don't allow $$ in inline context
             )                                 # inline & block math
        .use(slide_tags_plugin)                # :slide:draft: heading tags
        .use(speaker_notes_plugin)             # ??? note lines
    )


def _scope_range(scope: Scope, total: int) -> Tuple[int, int]:
    if scope is None:
        return 0, total
    if isinstance(scope, Section):
        return scope.line, scope.end
    return scope


class MarkdownDocument:
    """
    Queryable and editable outline document.

    Sections, fragments, drawers and images are re-derived from the text after
    every edit.  Positions handed out by :meth:`marker_at` follow
    non-structural edits and are invalidated by structural ones.
    """

    def __init__(self, text: str = "", *, path: Optional[Path] = None, base_dir: Optional[Path] = None):
        """
        Args:
            text: Markdown source
            path: File the text was read from, if any
            base_dir: Directory for resolving relative image paths.
                Defaults to the file's directory, then the working directory.
        """
        self.path = Path(path) if path else None
        if base_dir is not None:
            self.base_dir = Path(base_dir)
        elif self.path is not None:
            self.base_dir = self.path.parent
        else:
            self.base_dir = Path.cwd()

        self.markdown_processor = build_markdown_processor()
        self.lines: List[str] = []
        self.front_matter: Dict[str, Any] = {}
        self.structure_version = 0
        self._markers: List[Marker] = []
        self._next_marker_id = 1
        self._sections: List[Section] = []
        self._fragments: List[Fragment] = []
        self._drawers: List[Tuple[int, int]] = []
        self._images: List[ImageRef] = []
        self.set_text(text)

    @classmethod
    def from_file(cls, path: Union[str, Path], base_dir: Optional[Path] = None) -> "MarkdownDocument":
        path = Path(path)
        return cls(path.read_text(encoding="utf-8"), path=path, base_dir=base_dir)

    def __repr__(self):
        name = self.path.name if self.path else "<memory>"
        return f"MarkdownDocument({name}, {len(self._sections)} sections)"

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _parse(self) -> None:
        tokens = self.markdown_processor.parse(self.text)
        headings: List[Tuple[int, int, str, List[str]]] = []
        fragments: List[Fragment] = []
        drawers: List[Tuple[int, int]] = []
        images: List[ImageRef] = []
        front_matter: Dict[str, Any] = {}

        for i, token in enumerate(tokens):
            if token.type == 'heading_open' and token.level == 0 and token.map:
                title = tokens[i + 1].content if i + 1 < len(tokens) else ""
                headings.append((int(token.tag[1:]), token.map[0], title, token.meta.get('tags', [])))
            elif token.type == 'fence' and token.map:
                fragments.append(self._fragment_from_token(token))
            elif token.type == 'drawer' and token.map:
                drawers.append((token.map[0], token.map[1]))
            elif token.type == 'html_block' and token.map and token.content.lstrip().startswith('<!--'):
                drawers.append((token.map[0], token.map[1]))
            elif token.type == 'inline' and token.map and token.children:
                for child in token.children:
                    if child.type == 'image':
                        images.append(ImageRef(str(child.attrGet('src') or ''), child.content, token.map[0]))
            elif token.type == 'front_matter':
                front_matter = self._load_front_matter(token.content)

        sections: List[Section] = []
        for idx, (level, line, title, tags) in enumerate(headings):
            end = len(self.lines)
            for other_level, other_line, _, _ in headings[idx + 1:]:
                if other_level <= level:
                    end = other_line
                    break
            spans, group_span = self._tag_spans(self.lines[line])
            sections.append(Section(
                level=level,
                title=title,
                line=line,
                end=end,
                tags=tuple(tags),
                tag_spans=spans,
                tag_group_span=group_span,
            ))

        self._sections = sections
        self._fragments = fragments
        self._drawers = drawers
        self._images = images
        self.front_matter = front_matter
        logger.debug("Parsed %d sections, %d fragments, %d images", len(sections), len(fragments), len(images))

    @staticmethod
    def _fragment_from_token(token: Token) -> Fragment:
        words = token.info.split()
        language = words[0] if words and not words[0].startswith(':') else ""
        flags = frozenset(w for w in words if w.startswith(':'))
        return Fragment(
            language=language,
            flags=flags,
            source=token.content,
            start=token.map[0],
            end=token.map[1],
        )

    @staticmethod
    def _tag_spans(line_text: str) -> Tuple[Dict[str, Tuple[int, int]], Optional[Tuple[int, int]]]:
        """Column spans of each ``:tag`` and of the whole tag group."""
        match = TAG_GROUP_RE.search(line_text)
        if not match:
            return {}, None
        spans: Dict[str, Tuple[int, int]] = {}
        col = match.start('group')
        for tag in match.group('group').strip(':').split(':'):
            # ":tag" including its leading colon
            spans[tag] = (col, col + len(tag) + 1)
            col += len(tag) + 1
        return spans, (match.start('lead'), len(line_text.rstrip()))

    @staticmethod
    def _load_front_matter(content: str) -> Dict[str, Any]:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            logger.warning("Ignoring unparsable front matter: %s", exc)
            return {}
        return data if isinstance(data, dict) else {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def enumerate_sections(self) -> List[Section]:
        """All sections in document order, at every level."""
        return list(self._sections)

    def section_tags(self, section: Section) -> set:
        return set(section.tags)

    def section_title(self, section: Section) -> str:
        return section.title

    def section_subtree_text(self, section: Section) -> str:
        return "\n".join(self.lines[section.line:section.end])

    def scope_text(self, scope: Scope) -> str:
        start, end = _scope_range(scope, len(self.lines))
        return "\n".join(self.lines[start:end])

    def find_fragments(self, scope: Scope, kind: str) -> List[Fragment]:
        """Fragments of *kind* whose fence lies inside *scope*, in document order."""
        start, end = _scope_range(scope, len(self.lines))
        return [
            frag for frag in self._fragments
            if start <= frag.start and frag.end <= end and frag.is_kind(kind)
        ]

    def drawers(self, scope: Scope) -> List[Tuple[int, int]]:
        start, end = _scope_range(scope, len(self.lines))
        return [(s, e) for s, e in self._drawers if start <= s and e <= end]

    def images(self, scope: Scope) -> List[ImageRef]:
        start, end = _scope_range(scope, len(self.lines))
        return [img for img in self._images if start <= img.line < end]

    def sections_at(self, line: int) -> List[Section]:
        """Sections whose subtree contains *line*, outermost first."""
        return [s for s in self._sections if s.contains(line)]

    # ------------------------------------------------------------------
    # Stable positions
    # ------------------------------------------------------------------

    def marker_at(self, line: int) -> Marker:
        """Issue a marker that tracks *line* until the next structural edit."""
        marker = Marker(id=self._next_marker_id, line=line)
        self._next_marker_id += 1
        self._markers.append(marker)
        return marker

    def release(self, markers: Iterable[Marker]) -> None:
        """Stop tracking *markers*.  Released markers no longer resolve."""
        gone = set(markers)
        for marker in gone:
            marker.valid = False
        self._markers = [m for m in self._markers if m not in gone]

    @property
    def live_markers(self) -> int:
        return len(self._markers)

    def resolve(self, marker: Marker) -> Section:
        """
        Return the section whose heading sits at *marker*.

        Raises:
            StaleSlideError: If the marker was invalidated or no heading
                remains at its line
        """
        if not marker.valid:
            raise StaleSlideError(f"Position {marker.id} was invalidated by a structural edit")
        for section in self._sections:
            if section.line == marker.line:
                return section
        raise StaleSlideError(f"No section at line {marker.line + 1}")

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def set_text(self, text: str) -> None:
        """Replace the whole document.  Always a structural edit."""
        self.lines = text.split("\n") if text else []
        self._invalidate_markers()
        self._parse()

    def replace_lines(self, start: int, end: int, new_lines: List[str]) -> bool:
        """
        Replace ``lines[start:end]`` with *new_lines*.

        Returns:
            True if the edit was structural (markers invalidated)
        """
        before = [(s.level, s.title, s.tags) for s in self._sections]
        touched = any(start <= s.line < end for s in self._sections)

        self.lines[start:end] = list(new_lines)
        self._parse()

        after = [(s.level, s.title, s.tags) for s in self._sections]
        touched = touched or any(start <= s.line < start + len(new_lines) for s in self._sections)
        if touched or before != after:
            self._invalidate_markers()
            return True

        delta = len(new_lines) - (end - start)
        if delta:
            for marker in self._markers:
                if marker.line >= end:
                    marker.line += delta
        return False

    def _invalidate_markers(self) -> None:
        for marker in self._markers:
            marker.valid = False
        self._markers = []
        self.structure_version += 1

import re

from markdown_it import MarkdownIt
from markdown_it.rules_core import StateCore

# Trailing org-style tag group on a heading line: "## Title   :slide:draft:"
TAG_GROUP_RE = re.compile(r'(?P<lead>[ \t]+)(?P<group>:(?:[\w@#%.-]+:)+)[ \t]*#*[ \t]*$')


def slide_tags_plugin(md: MarkdownIt):
    """Markdown-it-py plugin that moves a trailing ``:tag1:tag2:`` group off
    every heading into ``heading_open.meta["tags"]``.  The heading's inline
    content is left without the tag group so titles render cleanly.
    """

    def _heading_tags(state: StateCore):
        tokens = state.tokens
        for i, token in enumerate(tokens):
            if token.type != 'heading_open' or i + 1 >= len(tokens):
                continue
            inline = tokens[i + 1]
            match = TAG_GROUP_RE.search(' ' + inline.content)
            if not match:
                token.meta['tags'] = []
                continue
            group = match.group('group')
            token.meta['tags'] = [t for t in group.strip(':').split(':') if t]
            inline.content = (' ' + inline.content)[:match.start()].strip()

    # Must run before inline parsing so children are built from the stripped text
    md.core.ruler.before('inline', 'slide_tags', _heading_tags)

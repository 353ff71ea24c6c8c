from markdown_it import MarkdownIt
from markdown_it.rules_block import StateBlock

NOTE_MARKER = '???'


def speaker_notes_plugin(md: MarkdownIt):
    """Markdown-it-py plugin that reads speaker notes into ``drawer`` tokens.

    A note starts on a line beginning with ``???`` and runs until the next
    blank line, so a note can be wrapped over several lines::

        ??? remember to smile
            and to breathe

    The token's ``map`` covers every line of the note and ``meta["note"]``
    holds its text.  Drawers are hidden while a slide is shown.
    """

    def _note_block(state: StateBlock, start_line: int, end_line: int, silent: bool):
        if state.sCount[start_line] - state.blkIndent >= 4:
            return False

        line_start = state.bMarks[start_line] + state.tShift[start_line]
        if not state.src.startswith(NOTE_MARKER, line_start):
            return False
        if silent:
            return True

        parts = [state.src[line_start + len(NOTE_MARKER):state.eMarks[start_line]].strip()]
        next_line = start_line + 1
        while next_line < end_line and not state.isEmpty(next_line):
            begin = state.bMarks[next_line] + state.tShift[next_line]
            parts.append(state.src[begin:state.eMarks[next_line]].strip())
            next_line += 1

        token = state.push('drawer', '', 0)
        token.map = [start_line, next_line]
        token.meta['drawer'] = True
        token.meta['note'] = ' '.join(p for p in parts if p)

        state.line = next_line
        return True

    # Before paragraph so "???" lines never become text
    md.block.ruler.before('paragraph', 'speaker_notes', _note_block, {'alt': ['paragraph']})

    # Drawers never reach the audience
    md.add_render_rule('drawer', lambda self, tokens, idx, options, env: '')

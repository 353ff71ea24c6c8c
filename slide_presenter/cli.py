#!/usr/bin/env python3
"""
Console driver: present a Markdown outline in the terminal.
"""

import argparse
import logging
import shlex
import sys
from pathlib import Path
from typing import Callable, Optional, TextIO

from .config import HideTags, ShowConfig, load_config
from .document import MarkdownDocument
from .errors import ShowError
from .session import ShowSession

logger = logging.getLogger(__name__)

HELP_TEXT = """\
Commands:
  n, <enter>   next slide          p        previous slide
  g N          go to slide N       o LINE   open slide at line LINE
  f / l        first / last slide  r        refresh current slide
  ls           list slides         t        toggle fragment source
  q            quit"""


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="slide-presenter", description="Present a Markdown outline as a slideshow.")
    p.add_argument("markdown", type=Path, help="Markdown file to present")
    p.add_argument("--config", "-c", type=Path, help="YAML file with show settings")
    p.add_argument("--slide-tag", help="Tag marking slide sections (default: slide)")
    p.add_argument("--hide-tags", choices=[h.value for h in HideTags], help="Which heading tags to hide during the show")
    p.add_argument("--text-scale", type=int, help="Zoom steps applied to every slide (default: 4)")
    p.add_argument("--typeset-scale", type=float, help="Scale of typeset math during the show (default: 4.0)")
    p.add_argument("--list", action="store_true", help="List the slides and exit")
    p.add_argument("--keep-tmp", action="store_true", help="Keep .show_tmp directory after run")
    p.add_argument("--debug", action="store_true", help="Enable verbose logging")
    return p


def build_config(args: argparse.Namespace, document: MarkdownDocument) -> ShowConfig:
    """Defaults < document front matter < --config file < command-line flags."""
    config = ShowConfig().merged(document.front_matter.get("show"))
    if args.config:
        config = load_config(args.config, base=config)
    return config.merged({
        "slide_tag": args.slide_tag,
        "hide_tags": args.hide_tags,
        "text_scale": args.text_scale,
        "typeset_scale": args.typeset_scale,
    })


def print_slide(session: ShowSession, out: TextIO = sys.stdout) -> None:
    view = session.view
    print("=" * 72, file=out)
    print(view.title or "", file=out)
    print("-" * 72, file=out)
    for line in view.visible_lines():
        print(line, file=out)
    for formula in view.typeset:
        print(f"[math x{formula.scale:g}] {formula.latex}", file=out)


def run_loop(session: ShowSession, read: Optional[Callable[[str], str]] = None,
             out: Optional[TextIO] = None) -> None:
    """Read commands until ``q`` or end of input.  Show errors are reported, not raised.

    Args:
        session: A running show
        read: Prompt reader, ``input`` when omitted
        out: Stream slides are printed to, ``sys.stdout`` when omitted
    """
    read = read or input
    out = out or sys.stdout
    print_slide(session, out)
    while True:
        try:
            raw = read("> ")
        except (EOFError, KeyboardInterrupt):
            return
        cmd = raw.strip()
        try:
            words = shlex.split(raw) if raw.strip() else ["n"]
            cmd, rest = words[0], words[1:]
            if cmd in ("q", "quit"):
                return
            elif cmd in ("n", "next"):
                session.next_slide()
            elif cmd in ("p", "prev", "previous"):
                session.previous_slide()
            elif cmd in ("g", "goto"):
                session.goto_slide(int(rest[0]))
            elif cmd in ("o", "open"):
                session.open_at_point(int(rest[0]) - 1)
            elif cmd in ("f", "first"):
                session.first_slide()
            elif cmd in ("l", "last"):
                session.last_slide()
            elif cmd in ("r", "refresh"):
                session.refresh_slide()
            elif cmd == "t":
                session.toggle_fragment_source()
            elif cmd == "ls":
                for ordinal, title in session.list_slides():
                    print(f"{ordinal:3d}  {title}", file=out)
                continue
            else:
                print(HELP_TEXT, file=out)
                continue
        except ShowError as e:
            print(f"Error: {e}", file=out)
            continue
        except (IndexError, ValueError) as e:
            print(f"Invalid arguments for {cmd!r}: {e}", file=out)
            continue
        print_slide(session, out)


def main(argv: Optional[list] = None) -> None:
    """Command-line entry point for the slide presenter."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format="%(levelname)s  %(message)s")

    md_path: Path = args.markdown
    if not md_path.exists():
        logger.error(f"Markdown file '{md_path}' not found")
        sys.exit(1)

    document = MarkdownDocument.from_file(md_path)
    try:
        config = build_config(args, document)
    except ShowError as e:
        logger.error(str(e))
        sys.exit(1)

    session = ShowSession(config, keep_tmp=args.keep_tmp, debug=args.debug,
                          on_message=lambda msg: print(f"-- {msg}"))
    try:
        session.start(document)
    except ShowError as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        if args.list:
            for ordinal, title in session.list_slides():
                print(f"{ordinal:3d}  {title}")
        else:
            run_loop(session)
    finally:
        session.stop()


if __name__ == "__main__":
    main()

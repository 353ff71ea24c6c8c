"""
Command surface for key bindings, menus and the console driver.

Every command acts on the process-wide default session unless a session is
passed explicitly.
"""
from typing import List, Optional, Tuple, Union

from .config import ShowConfig
from .models import Section, Slide
from .session import ShowSession

# Global session instance
_session = None


def get_session() -> ShowSession:
    """Get the process-wide show session, creating it on first use."""
    global _session

    if _session is None:
        _session = ShowSession()

    return _session


def start_show(document, config: Optional[ShowConfig] = None, session: Optional[ShowSession] = None) -> Slide:
    return (session or get_session()).start(document, config)


def stop_show(session: Optional[ShowSession] = None) -> None:
    (session or get_session()).stop()


def next_slide(session: Optional[ShowSession] = None) -> Slide:
    return (session or get_session()).next_slide()


def previous_slide(session: Optional[ShowSession] = None) -> Slide:
    return (session or get_session()).previous_slide()


def goto_slide(n: int, session: Optional[ShowSession] = None) -> Slide:
    """Raises :class:`OutOfRangeError` if *n* is not a slide ordinal."""
    return (session or get_session()).goto_slide(n)


def open_at_point(target: Union[Section, int], session: Optional[ShowSession] = None) -> Slide:
    return (session or get_session()).open_at_point(target)


def refresh_slide(session: Optional[ShowSession] = None) -> Slide:
    return (session or get_session()).refresh_slide()


def current_slide(session: Optional[ShowSession] = None) -> Slide:
    return (session or get_session()).current_slide()


def list_slides(session: Optional[ShowSession] = None) -> List[Tuple[int, str]]:
    """Ordered ``(ordinal, title)`` pairs of the running show."""
    return (session or get_session()).list_slides()

"""
Slide Presenter Package

Present a Markdown outline as an interactive slideshow: sections tagged
``:slide:`` become slides, presentation fragments run as each slide is shown,
and stopping the show restores the display exactly as it was.
"""

from .config import HideTags, ShowConfig, load_config
from .document import MarkdownDocument
from .errors import (
    AlreadyRunningError,
    ConfigError,
    EmptyShowError,
    NotRunningError,
    OutOfRangeError,
    ShowError,
    StaleSlideError,
    UnknownSlideError,
)
from .index import SlideIndex
from .models import Fragment, Section, Slide
from .session import ShowSession, ShowState

__all__ = [
    'AlreadyRunningError', 'ConfigError', 'EmptyShowError', 'Fragment', 'HideTags',
    'MarkdownDocument', 'NotRunningError', 'OutOfRangeError', 'Section', 'ShowConfig',
    'ShowError', 'ShowSession', 'ShowState', 'Slide', 'SlideIndex', 'StaleSlideError',
    'UnknownSlideError', 'load_config',
]

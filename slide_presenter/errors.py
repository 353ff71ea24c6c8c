"""
Exceptions raised by the slide presenter.
"""


class ShowError(Exception):
    """Base class for every error raised by the presenter."""


class EmptyShowError(ShowError):
    """The document has no section carrying the slide tag."""

    def __init__(self, slide_tag: str):
        super().__init__(f"No sections tagged ':{slide_tag}:' found in document")
        self.slide_tag = slide_tag


class OutOfRangeError(ShowError, IndexError):
    """A navigation target lies outside ``[1, N]``."""

    def __init__(self, ordinal: int, total: int):
        super().__init__(f"Slide {ordinal} out of range (show has {total} slides)")
        self.ordinal = ordinal
        self.total = total


class UnknownSlideError(ShowError, KeyError):
    """A section could not be matched to any slide in the index."""

    def __init__(self, title: str):
        super().__init__(title)
        self.title = title

    def __str__(self):
        return f"No slide titled {self.title!r}"


class StaleSlideError(ShowError):
    """A slide position was invalidated by a structural edit.

    Rebuild the index and retry.
    """


class AlreadyRunningError(ShowError):
    """A show is already running on a different document."""


class NotRunningError(ShowError):
    """A navigation command was issued while no show is running."""


class ConfigError(ShowError, ValueError):
    """Invalid presentation configuration."""

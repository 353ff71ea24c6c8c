import sys
import textwrap
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `import slide_presenter` works
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from slide_presenter.display import DisplaySettings  # noqa: E402
from slide_presenter.document import MarkdownDocument  # noqa: E402


# ---------------------------------------------------------------------------
# Sample outlines used across multiple test modules
# ---------------------------------------------------------------------------

DECK = textwrap.dedent("""\
    ---
    show:
      text_scale: 3
    ---

    # Intro :slide:

    Welcome to the talk.

    ??? remember to smile

    ## Details

    Energy is $E = mc^2$ here.

    # Body :slide:draft:

    ```python :present
    x = 1
    ```

    ```python :present
    log.append(x)
    ```

    ```python
    not_run = True
    ```

    # Appendix

    Not a slide.

    ## Closing :slide:

    Thanks.
    """)

# Heading lines of DECK (0-based)
INTRO_LINE = 5
DETAILS_LINE = 11
BODY_LINE = 15
APPENDIX_LINE = 29
CLOSING_LINE = 33

DUPLICATE_TITLES = textwrap.dedent("""\
    # Intro :slide:

    one

    # Body :slide:

    two

    # Body :slide:

    three
    """)

NO_SLIDES = textwrap.dedent("""\
    # Notes :draft:

    Nothing to present.
    """)


@pytest.fixture
def deck(tmp_path):
    """The sample deck, resolving assets against a temp directory."""
    return MarkdownDocument(DECK, base_dir=tmp_path)


@pytest.fixture
def display():
    """Fresh display settings, isolated from the process-wide instance."""
    return DisplaySettings()


@pytest.fixture
def log():
    return []

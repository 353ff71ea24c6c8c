"""Scratch directory and asset path helpers.

Typeset formulas and resized images live in ``.show_tmp`` beside the shown
document, or in a ``mkdtemp`` directory when the document's folder is not
writable.  Scratch directories are tracked in one table and swept by a single
``atexit`` hook, however many shows are started.
"""
from __future__ import annotations

import atexit
import errno
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

__all__ = ["prepare_workspace", "resolve_asset", "remove_if_empty"]

TMP_DIR_NAME = ".show_tmp"

# scratch dir -> remove at exit?
_scratch_dirs: Dict[Path, bool] = {}
_hook_registered = False


def _sweep_scratch_dirs() -> None:
    for path, remove in _scratch_dirs.items():
        if remove and path.exists():
            shutil.rmtree(path, ignore_errors=True)


def prepare_workspace(base_dir: str | Path, *, keep_tmp: bool = False) -> Dict[str, Path]:
    """Create the scratch directory for a document living in *base_dir*.

    Args:
        base_dir: Folder of the document being shown
        keep_tmp: Leave ``.show_tmp`` on disk at exit.  Ignored for a
            ``mkdtemp`` fallback, which is always removed.

    Returns:
        ``{"base_dir": ..., "tmp_dir": ..., "fallback": bool}``
    """
    global _hook_registered

    base_path = Path(base_dir).expanduser().resolve()
    tmp_path = base_path / TMP_DIR_NAME
    fallback = False

    try:
        tmp_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        if exc.errno not in (errno.EACCES, errno.EROFS, errno.EPERM):
            raise
        fallback = True
        tmp_path = Path(tempfile.mkdtemp(prefix="slideshow_tmp_"))
        logger.info("Could not write next to %s, using %s", base_path, tmp_path)

    _scratch_dirs[tmp_path] = fallback or not keep_tmp
    if not _hook_registered:
        atexit.register(_sweep_scratch_dirs)
        _hook_registered = True

    return {"base_dir": base_path, "tmp_dir": tmp_path, "fallback": fallback}


def remove_if_empty(directory: Optional[Path]) -> None:
    """Remove *directory* if it exists and holds nothing."""
    if directory is None:
        return
    try:
        directory.rmdir()
    except OSError:
        # Missing or still holding files the show did not create.
        pass


def resolve_asset(src: str, *, base_dir: Path) -> Tuple[bool, Optional[Path]]:
    """Return ``(is_local, absolute_path)`` for an image *src*.

    Remote and ``data:`` sources are not local and have no path.  ``file://``
    URLs and relative paths (against *base_dir*) resolve to absolute paths.
    """
    if src.startswith(("http://", "https://", "data:")):
        return False, None

    if src.startswith("file://"):
        return True, Path(src[7:]).expanduser().resolve()
    return True, (base_dir / src).expanduser().resolve()

"""
Files generated while a show runs.
"""
import logging
from pathlib import Path
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)


class GeneratedArtifacts:
    """
    Paths created as a side effect of rendering.

    An artifact may back an open buffer: any object with ``save()`` and
    ``close()`` that keeps the file open for display or editing.  Draining
    persists and closes such buffers before the file is deleted.
    """

    def __init__(self):
        self._paths: Dict[Path, None] = {}
        self._buffers: Dict[Path, object] = {}

    def add(self, path: Path, buffer: Optional[object] = None) -> None:
        path = Path(path)
        self._paths[path] = None
        if buffer is not None:
            previous = self._buffers.get(path)
            if previous is not None and previous is not buffer:
                previous.close()
            self._buffers[path] = buffer

    def buffer_for(self, path: Path) -> Optional[object]:
        return self._buffers.get(Path(path))

    def __contains__(self, path) -> bool:
        return Path(path) in self._paths

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._paths))

    def __len__(self) -> int:
        return len(self._paths)

    @property
    def open_buffers(self) -> int:
        return len(self._buffers)

    def drain(self) -> int:
        """
        Persist and close open buffers, then delete every artifact.

        Files that have already disappeared are skipped.  Failures are logged,
        never raised: after draining the set is always empty.

        Returns:
            Number of files actually deleted
        """
        deleted = 0
        for path in list(self._paths):
            buffer = self._buffers.pop(path, None)
            if buffer is not None:
                try:
                    if path.exists():
                        buffer.save()
                except Exception as e:
                    logger.warning(f"Could not persist buffer for {path}: {e}")
                try:
                    buffer.close()
                except Exception as e:
                    logger.warning(f"Could not close buffer for {path}: {e}")
            try:
                path.unlink()
                deleted += 1
            except FileNotFoundError:
                logger.debug("Artifact already gone: %s", path)
            except OSError as e:
                logger.warning(f"Could not delete artifact {path}: {e}")
        self._paths.clear()
        self._buffers.clear()
        logger.debug("Drained artifacts, %d file(s) deleted", deleted)
        return deleted

"""Inline media display: resized copies of slide images."""

import hashlib
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image

from .artifacts import GeneratedArtifacts
from .display import InlineImage
from .paths import resolve_asset

logger = logging.getLogger(__name__)


class ImageBuffer:
    """An open, editable image backing a generated artifact."""

    def __init__(self, image: Image.Image, path: Path):
        self.image = image
        self.path = path
        self.closed = False

    def save(self) -> None:
        self.image.save(self.path)

    def close(self) -> None:
        if not self.closed:
            self.image.close()
            self.closed = True


class MediaDisplay:
    """Displays the images referenced in a slide, scaled to the view."""

    def __init__(self, tmp_dir: Path, artifacts: Optional[GeneratedArtifacts] = None,
                 max_width: int = 1280, debug: bool = False):
        self.tmp_dir = Path(tmp_dir)
        self.tmp_dir.mkdir(parents=True, exist_ok=True)
        self.artifacts = artifacts if artifacts is not None else GeneratedArtifacts()
        self.max_width = max_width
        self.debug = debug
        # source path -> (width, height), avoids repeated PIL Image.open calls
        self._dimensions: Dict[Path, Tuple[int, int]] = {}

    def target_size(self, size: Tuple[int, int]) -> Tuple[int, int]:
        """Scale *size* down to ``max_width`` keeping the aspect ratio."""
        width, height = size
        if width <= self.max_width:
            return width, height
        ratio = self.max_width / width
        return self.max_width, max(1, round(height * ratio))

    def display(self, document, scope) -> List[InlineImage]:
        """
        Prepare inline copies of every local image in *scope*.

        Remote images are skipped.  Missing or unreadable files are logged
        and skipped so one broken reference does not hide the others.
        """
        shown: List[InlineImage] = []
        for ref in document.images(scope):
            is_local, source = resolve_asset(ref.src, base_dir=document.base_dir)
            if not is_local:
                logger.debug("Skipping remote image %s", ref.src)
                continue
            if not source.exists():
                logger.warning(f"⚠️ Image not found: {source}")
                continue
            try:
                path, size = self._prepare(source)
            except (OSError, ValueError) as e:
                logger.warning(f"⚠️ Could not display image {source}: {e}")
                continue
            shown.append(InlineImage(line=ref.line, path=path, size=size))
        return shown

    def _prepare(self, source: Path) -> Tuple[Path, Tuple[int, int]]:
        if source not in self._dimensions:
            with Image.open(source) as img:
                self._dimensions[source] = img.size
        target = self.target_size(self._dimensions[source])

        stat = source.stat()
        key = hashlib.md5(f"{source}|{stat.st_mtime_ns}|{target}".encode('utf-8')).hexdigest()[:12]
        out_path = self.tmp_dir / f"{source.stem}.{key}.png"

        # Already prepared during this show
        if out_path in self.artifacts and out_path.exists():
            return out_path, target

        with Image.open(source) as img:
            resized = img.resize(target) if target != img.size else img.copy()
        if resized.mode not in ("1", "L", "LA", "P", "RGB", "RGBA"):
            resized = resized.convert("RGBA")
        resized.save(out_path)
        if self.debug:
            logger.debug("📷 Resized %s to %sx%s -> %s", source, target[0], target[1], out_path)

        self.artifacts.add(out_path, ImageBuffer(resized, out_path))
        return out_path, target

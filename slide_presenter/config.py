"""
Presentation configuration.

A :class:`ShowConfig` is fixed for the lifetime of one show.  Values come from
the defaults below, optionally overridden by a ``show:`` mapping in the
document's YAML front matter, a YAML config file and command-line flags.
"""
import logging
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)


class HideTags(str, Enum):
    """Which heading tags are hidden while a show is running."""

    SLIDE_TAG_ONLY = "slide-tag-only"
    ALL_TAGS = "all-tags"


@dataclass(frozen=True)
class ShowConfig:
    """
    Settings applied when a show starts.

    Attributes:
        slide_tag: Tag that marks a section as a slide
        hide_tags: Tag hiding policy for the whole show
        text_scale: Zoom steps applied to the view on every slide
        typeset_scale: Scale factor for math typesetting during the show
        fragment_marker: Info-string flag of presentation-only code fragments
        media_max_width: Maximum width in px of inline images
        meta_background: Background of the meta line during the show
        meta_height: Height of the meta line during the show
        tags_column: Tag column used while the show runs
        spellcheck: Whether spell checking stays enabled during the show
    """

    slide_tag: str = "slide"
    hide_tags: HideTags = HideTags.SLIDE_TAG_ONLY
    text_scale: int = 4
    typeset_scale: float = 4.0
    fragment_marker: str = ":present"
    media_max_width: int = 1280
    meta_background: str = "black"
    meta_height: float = 1.0
    tags_column: int = 0
    spellcheck: bool = False

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ShowConfig":
        """Build a config from a plain mapping, validating keys and types."""
        return cls().merged(data)

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "ShowConfig":
        """
        Return a copy with *overrides* applied.

        Keys may use dashes or underscores.  ``None`` values are ignored so
        unset command-line flags can be passed straight through.

        Raises:
            ConfigError: On unknown keys or values of the wrong type
        """
        if not overrides:
            return self
        if not isinstance(overrides, Mapping):
            raise ConfigError(f"Show configuration must be a mapping, got {type(overrides).__name__}")

        known = {f.name: f for f in fields(self)}
        changes: Dict[str, Any] = {}
        for raw_key, value in overrides.items():
            key = str(raw_key).replace("-", "_")
            if key not in known:
                raise ConfigError(f"Unknown show setting: {raw_key!r}")
            if value is None:
                continue
            changes[key] = _coerce(key, value)

        config = replace(self, **changes)
        if config.text_scale < 0:
            raise ConfigError("text_scale must be >= 0")
        if config.typeset_scale <= 0:
            raise ConfigError("typeset_scale must be > 0")
        if not config.slide_tag or ":" in config.slide_tag:
            raise ConfigError(f"Invalid slide tag: {config.slide_tag!r}")
        return config


def _coerce(key: str, value: Any) -> Any:
    try:
        if key == "hide_tags":
            return HideTags(value)
        if key in ("text_scale", "media_max_width", "tags_column"):
            if isinstance(value, bool):
                raise TypeError(value)
            return int(value)
        if key in ("typeset_scale", "meta_height"):
            if isinstance(value, bool):
                raise TypeError(value)
            return float(value)
        if key == "spellcheck":
            if not isinstance(value, bool):
                raise TypeError(value)
            return value
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from exc
    return str(value)


def load_config(path: Path, base: Optional[ShowConfig] = None) -> ShowConfig:
    """
    Load a YAML configuration file.

    The file may either hold the settings at top level or nest them under a
    ``show:`` key, the same shape accepted in document front matter.

    Args:
        path: YAML file to read
        base: Config to apply the file on top of (defaults if omitted)

    Returns:
        Merged configuration
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {path}: {exc}") from exc

    if data is None:
        data = {}
    if isinstance(data, dict) and isinstance(data.get("show"), dict):
        data = data["show"]
    logger.debug("Loaded show configuration from %s: %s", path, data)
    return (base or ShowConfig()).merged(data)

"""markdown-it-py plugins used to read presentation outlines."""

from .slide_tags import TAG_GROUP_RE, slide_tags_plugin
from .speaker_notes import speaker_notes_plugin

__all__ = ['TAG_GROUP_RE', 'slide_tags_plugin', 'speaker_notes_plugin']

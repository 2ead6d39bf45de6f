"""Post processors."""

from .base import EventDraft, PostProcessor
from .facebook_post import (
    FacebookPostProcessor,
    parse_structured_message,
    split_headline,
    truncate,
    extract_photo_urls,
    extract_attachment_text,
    get_primary_attachment,
    has_life_event_attachment,
    is_life_event_post,
    normalize_source_url,
    walk_attachments,
)

__all__ = [
    'EventDraft',
    'PostProcessor',
    'FacebookPostProcessor',
    'parse_structured_message',
    'split_headline',
    'truncate',
    'extract_photo_urls',
    'extract_attachment_text',
    'get_primary_attachment',
    'has_life_event_attachment',
    'is_life_event_post',
    'normalize_source_url',
    'walk_attachments',
]

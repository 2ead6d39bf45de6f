"""Models package initialization."""

from .base import Base
from .event import (
    Event,
    ORIGIN_FACEBOOK,
    ORIGIN_WEBFLOW,
    EXTERNAL_SOURCE_FACEBOOK_POST,
    SYNC_CLEAN,
    SYNC_PENDING,
    DEFAULT_EVENT_TYPE,
)
from .event_photo import EventPhoto
from .feed_post import Attachment, FeedPost, FeedPage, AuthorProfile, ParsedMessage

__all__ = [
    'Base',
    'Event',
    'EventPhoto',
    'ORIGIN_FACEBOOK',
    'ORIGIN_WEBFLOW',
    'EXTERNAL_SOURCE_FACEBOOK_POST',
    'SYNC_CLEAN',
    'SYNC_PENDING',
    'DEFAULT_EVENT_TYPE',
    'Attachment',
    'FeedPost',
    'FeedPage',
    'AuthorProfile',
    'ParsedMessage',
]

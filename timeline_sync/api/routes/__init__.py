"""Routes package initialization."""

from . import (
    events,
    facebook_sync,
    webflow_sync,
    maintenance,
    photos,
    health
)

__all__ = [
    'events',
    'facebook_sync',
    'webflow_sync',
    'maintenance',
    'photos',
    'health'
]

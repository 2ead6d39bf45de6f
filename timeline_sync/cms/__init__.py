"""Push of stored events to the CMS."""

from .webflow import WebflowPusher, CMSPushFailed, map_event_to_fields, slugify, push_pending_events

__all__ = ['WebflowPusher', 'CMSPushFailed', 'map_event_to_fields', 'slugify', 'push_pending_events']

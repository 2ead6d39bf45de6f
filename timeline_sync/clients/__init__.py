"""Clients for upstream APIs."""

from .facebook import FacebookFeedClient, FeedUnavailable, FEED_FIELDS

__all__ = ['FacebookFeedClient', 'FeedUnavailable', 'FEED_FIELDS']

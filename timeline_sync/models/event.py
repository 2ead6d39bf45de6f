"""Event model definition."""

from typing import Dict, Any
from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from sqlalchemy.orm import relationship

from .base import Base
from ..utils.timezone import now_utc, isoformat_utc

# Event.origin values
ORIGIN_FACEBOOK = 'facebook'
ORIGIN_WEBFLOW = 'webflow'

# Event.external_source for rows created from page feed posts
EXTERNAL_SOURCE_FACEBOOK_POST = 'facebook_post'

# Event.sync values
SYNC_CLEAN = 0
SYNC_PENDING = 1

DEFAULT_EVENT_TYPE = 'memory'


class Event(Base):
    """
    One entry on the timeline.

    Fields:
        id: Unique identifier (auto-generated)
        external_id: Identifier of the upstream object (e.g. the Facebook post id)
        external_source: Kind of upstream object (e.g. 'facebook_post')
        event_date: Display date, free-form string as received upstream
        event_type: Free-form category, defaults to 'memory'
        event_name_line_1: Headline (required, at most 120 characters)
        event_name_line_2: Subheadline (optional, at most 180 characters)
        event_description: Free text body
        posted_by_name: Attribution name
        posted_by_photo: Attribution avatar URL
        origin: Which system the event came from ('facebook' or 'webflow')
        sync: 1 when the event still has to be pushed to the other system
        active: Visibility flag
        approved: Moderation flag
        cms_item_id: Webflow item id once the event has been pushed
        date_added, created_at, updated_at: Bookkeeping timestamps
    """
    __tablename__ = 'events'
    __table_args__ = (
        Index('idx_events_origin_sync', 'origin', 'sync'),
        Index('idx_events_external', 'external_source', 'external_id'),
        Index('idx_events_origin_external', 'origin', 'external_id'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    external_id = Column(String, nullable=True)
    external_source = Column(String, nullable=True)

    event_date = Column(String, nullable=True)
    event_type = Column(String, nullable=True, default=DEFAULT_EVENT_TYPE)
    event_name_line_1 = Column(String(120), nullable=False)
    event_name_line_2 = Column(String(180), nullable=True)
    event_description = Column(Text, nullable=True)

    posted_by_name = Column(String, nullable=True)
    posted_by_photo = Column(String, nullable=True)

    origin = Column(String, nullable=False)
    sync = Column(Integer, nullable=False, default=SYNC_CLEAN)
    active = Column(Integer, nullable=False, default=1)
    approved = Column(Integer, nullable=False, default=0)

    cms_item_id = Column(String, nullable=True)

    date_added = Column(DateTime(timezone=True), default=now_utc)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    photos = relationship(
        'EventPhoto',
        back_populates='event',
        order_by='[EventPhoto.position, EventPhoto.id]',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'external_id': self.external_id,
            'external_source': self.external_source,
            'event_date': self.event_date,
            'event_type': self.event_type,
            'event_name_line_1': self.event_name_line_1,
            'event_name_line_2': self.event_name_line_2,
            'event_description': self.event_description,
            'posted_by_name': self.posted_by_name,
            'posted_by_photo': self.posted_by_photo,
            'origin': self.origin,
            'sync': self.sync,
            'active': self.active,
            'approved': self.approved,
            'cms_item_id': self.cms_item_id,
            'date_added': isoformat_utc(self.date_added),
            'created_at': isoformat_utc(self.created_at),
            'updated_at': isoformat_utc(self.updated_at),
        }

    def __str__(self) -> str:
        """String representation."""
        return f"Event(id={self.id}, origin={self.origin}, external_id={self.external_id}, title={self.event_name_line_1})"

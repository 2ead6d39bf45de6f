"""Model for photos attached to an event."""

from typing import Dict, Any
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import Base
from ..utils.timezone import now_utc, isoformat_utc


class EventPhoto(Base):
    """
    One stored image belonging to exactly one event.

    The bytes live in the blob store under `storage_key`; deleting a row
    must also delete that blob.

    Fields:
        id: Unique identifier (auto-generated)
        event_id: Owning event
        storage_key: Blob store key
        public_url: Address the photo is served from
        original_source_url: Upstream URL, used to recognise the same photo on later syncs
        position: 0-based order within the event
    """
    __tablename__ = 'event_photos'
    __table_args__ = (
        Index('idx_event_photos_event', 'event_id', 'position'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(Integer, ForeignKey('events.id', ondelete='CASCADE'), nullable=False)
    storage_key = Column(String, nullable=False, unique=True)
    public_url = Column(String, nullable=True)
    original_source_url = Column(String, nullable=True)
    position = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    event = relationship('Event', back_populates='photos')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'event_id': self.event_id,
            'storage_key': self.storage_key,
            'public_url': self.public_url,
            'original_source_url': self.original_source_url,
            'position': self.position,
            'created_at': isoformat_utc(self.created_at),
            'updated_at': isoformat_utc(self.updated_at),
        }

    def __str__(self) -> str:
        """String representation."""
        return f"EventPhoto(id={self.id}, event_id={self.event_id}, position={self.position})"

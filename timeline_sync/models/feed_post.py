"""Typed views of Facebook Graph API feed payloads.

These are ephemeral: they are built from the JSON of one feed page and
thrown away once the post has been reconciled.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

LIFE_EVENT = 'life_event'


@dataclass
class Attachment:
    """
    One node of a post's attachment tree.

    Fields:
        description: Attachment description text
        title: Attachment title
        type: Graph API attachment type (e.g. 'photo', 'album', 'life_event')
        media_type: Graph API media type
        image_src: media.image.src, if the node carries an image
        subattachments: Child nodes (albums, life events with photos)
    """
    description: Optional[str] = None
    title: Optional[str] = None
    type: Optional[str] = None
    media_type: Optional[str] = None
    image_src: Optional[str] = None
    subattachments: List['Attachment'] = field(default_factory=list)

    @property
    def is_life_event(self) -> bool:
        return self.type == LIFE_EVENT or self.media_type == LIFE_EVENT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Attachment':
        """Build an attachment tree from Graph API JSON."""
        media = data.get('media') or {}
        image = media.get('image') or {}
        children = (data.get('subattachments') or {}).get('data') or []
        return cls(
            description=data.get('description'),
            title=data.get('title'),
            type=data.get('type'),
            media_type=data.get('media_type'),
            image_src=image.get('src'),
            subattachments=[cls.from_dict(child) for child in children if isinstance(child, dict)],
        )


@dataclass
class FeedPost:
    """
    A post from the page feed.

    Only the fields the sync reads are kept; `raw` holds the original JSON.
    """
    id: Optional[str]
    message: Optional[str] = None
    story: Optional[str] = None
    created_time: Optional[str] = None
    backdated_time: Optional[str] = None
    permalink_url: Optional[str] = None
    from_name: Optional[str] = None
    status_type: Optional[str] = None
    place_name: Optional[str] = None
    full_picture: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_qualifying(self) -> bool:
        """Real posts carry message or story text; likes, comments etc. don't."""
        return bool(self.message or self.story)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FeedPost':
        """Build a post from one item of a feed page's `data` list."""
        author = data.get('from') or {}
        place = data.get('place') or {}
        attachments = (data.get('attachments') or {}).get('data') or []
        return cls(
            id=data.get('id'),
            message=data.get('message'),
            story=data.get('story'),
            created_time=data.get('created_time'),
            backdated_time=data.get('backdated_time'),
            permalink_url=data.get('permalink_url'),
            from_name=author.get('name'),
            status_type=data.get('status_type'),
            place_name=place.get('name'),
            full_picture=data.get('full_picture'),
            attachments=[Attachment.from_dict(a) for a in attachments if isinstance(a, dict)],
            raw=data,
        )


@dataclass
class AuthorProfile:
    """Page profile used as fallback attribution; fetched once per batch."""
    name: Optional[str] = None
    photo: Optional[str] = None
    location: Optional[str] = None


@dataclass
class ParsedMessage:
    """Structured fields recovered from a post's text and attachments."""
    title: Optional[str] = None
    description: Optional[str] = None
    event_date: Optional[str] = None
    event_type: Optional[str] = None


@dataclass
class FeedPage:
    """One page of the feed and the cursor for the next one."""
    posts: List[FeedPost] = field(default_factory=list)
    next_cursor: Optional[str] = None

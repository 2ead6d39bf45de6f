"""Base interface for post processors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ..models.feed_post import AuthorProfile, FeedPost


@dataclass
class EventDraft:
    """
    Event field values derived from one upstream post, ready to be written.

    Fields:
        external_id: Upstream post id
        event_date: Display date
        event_type: Category
        line_1: Headline
        line_2: Subheadline
        description: Body text (None when empty)
        posted_by_name: Attribution name
        posted_by_photo: Attribution avatar
        photo_urls: Upstream photo URLs in attachment order
    """
    external_id: str
    event_date: str
    event_type: str
    line_1: str
    line_2: Optional[str] = None
    description: Optional[str] = None
    posted_by_name: Optional[str] = None
    posted_by_photo: Optional[str] = None
    photo_urls: List[str] = field(default_factory=list)


class PostProcessor(ABC):
    """
    Base interface for post processors.

    Each processor is responsible for:
    1. Converting source-specific posts into event field values
    2. Choosing fallbacks when a post leaves fields empty

    Required Methods:
        process_post(post, author_profile, is_life_event) -> Optional[EventDraft]
    """

    @abstractmethod
    def process_post(
        self,
        post: FeedPost,
        author_profile: Optional[AuthorProfile] = None,
        is_life_event: bool = False
    ) -> Optional[EventDraft]:
        """
        Derive event fields from a post.

        Args:
            post: The upstream post
            author_profile: Fallback attribution for posts without an author name
            is_life_event: Whether the post is a milestone

        Returns:
            Optional[EventDraft]: None if the post cannot be identified
        """
        pass

    @abstractmethod
    def name(self) -> str:
        """
        Return the name/identifier of this processor.

        Returns:
            str: The processor's identifier (e.g., 'facebook')
        """
        pass

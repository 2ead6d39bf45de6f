"""Processor for Facebook page feed posts.

Recovers a headline, date, type and description from free-form post text.
Page admins often write milestone posts in a labelled form:

    Name: Graduation
    Date: 2020-05-01
    Type: Education
    Post: Proud moment...

Labels are optional; anything unlabelled falls back to the raw text and
then to the post's attachments.
"""

import logging
import re
from typing import Iterator, List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

from .base import EventDraft, PostProcessor
from ..config.sync import SYNC_SETTINGS
from ..models.event import DEFAULT_EVENT_TYPE
from ..models.feed_post import Attachment, AuthorProfile, FeedPost, ParsedMessage, LIFE_EVENT
from ..utils.timezone import now_utc

logger = logging.getLogger(__name__)

HEADLINE_MAX_LENGTH = 120
SUBHEADLINE_MAX_LENGTH = 180
DEFAULT_HEADLINE = "Memory"
ELLIPSIS = "…"

_FLAGS = re.IGNORECASE | re.MULTILINE
NAME_PATTERN = re.compile(r'^[ \t]*(?:life[ \t]*event[ \t]*)?name[ \t]*[:\-][ \t]*(.+)$', _FLAGS)
DATE_PATTERN = re.compile(r'^[ \t]*date[ \t]*[:\-][ \t]*(.+)$', _FLAGS)
TYPE_PATTERN = re.compile(r'^[ \t]*type[ \t]*[:\-][ \t]*(.+)$', _FLAGS)
# Post: swallows the rest of the message, newlines included
POST_PATTERN = re.compile(r'^[ \t]*post[ \t]*[:\-](.+)', _FLAGS | re.DOTALL)
LINE_BREAK_PATTERN = re.compile(r'\r?\n')


def _capture(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def walk_attachments(
    attachments: List[Attachment],
    max_depth: int = SYNC_SETTINGS.max_attachment_depth
) -> Iterator[Attachment]:
    """
    Depth-first, document-order walk over an attachment tree.

    Nodes nested deeper than `max_depth` levels are not visited.
    """
    stack: List[Tuple[Attachment, int]] = [(node, 0) for node in reversed(attachments)]
    while stack:
        node, depth = stack.pop()
        yield node
        if node.subattachments and depth + 1 < max_depth:
            stack.extend((child, depth + 1) for child in reversed(node.subattachments))


def extract_photo_urls(attachments: List[Attachment]) -> List[str]:
    """Every media.image.src in the tree, in visitation order (duplicates kept)."""
    return [node.image_src for node in walk_attachments(attachments) if node.image_src]


def extract_attachment_text(attachments: List[Attachment]) -> Optional[str]:
    """First non-empty description (or title) found walking the tree."""
    for node in walk_attachments(attachments):
        text = node.description or node.title
        if text:
            return text
    return None


def get_primary_attachment(attachments: List[Attachment]) -> Optional[Attachment]:
    """The life-event attachment if there is one, else the first attachment."""
    if not attachments:
        return None
    for attachment in attachments:
        if attachment.is_life_event:
            return attachment
    return attachments[0]


def has_life_event_attachment(post: FeedPost) -> bool:
    """Whether the attachments (or one level of subattachments) mark the post as a milestone."""
    if any(a.is_life_event for a in post.attachments):
        return True
    if post.status_type == "created_event":
        return True
    for attachment in post.attachments:
        if any(sub.is_life_event for sub in attachment.subattachments):
            return True
    return False


def is_life_event_post(post: FeedPost) -> bool:
    return has_life_event_attachment(post) or post.status_type == LIFE_EVENT


def normalize_source_url(url: str) -> str:
    """Strip query string and fragment and lowercase the host; CDN URLs carry rotating signatures."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path, '', ''))


def truncate(value: str, max_length: int) -> str:
    """Cut to `max_length` characters, the last one being an ellipsis."""
    if len(value) <= max_length:
        return value
    return f"{value[:max_length - 1]}{ELLIPSIS}"


def split_headline(text: Optional[str]) -> Tuple[str, Optional[str]]:
    """
    Split text into a headline and a subheadline.

    The first line becomes the headline ("Memory" if there is no text);
    the remaining lines are joined with spaces into the subheadline.

    Returns:
        Tuple of (line_1, line_2); line_2 is None when there is nothing left
    """
    stripped = (text or "").strip()
    if not stripped:
        return DEFAULT_HEADLINE, None

    first, *rest = LINE_BREAK_PATTERN.split(stripped)
    line_1 = first.strip() or DEFAULT_HEADLINE
    line_2 = " ".join(rest).strip()
    return (
        truncate(line_1, HEADLINE_MAX_LENGTH),
        truncate(line_2, SUBHEADLINE_MAX_LENGTH) if line_2 else None,
    )


def parse_structured_message(
    message: Optional[str],
    fallback_date: Optional[str],
    attachments: List[Attachment],
    primary_attachment: Optional[Attachment] = None,
    place_name: Optional[str] = None
) -> ParsedMessage:
    """
    Pull labelled fields out of a post's text.

    Args:
        message: Raw post message
        fallback_date: Used when there is no Date: label (backdated or created time)
        attachments: The post's attachment tree
        primary_attachment: Source of a fallback title and type
        place_name: Appended as a Location line unless the description already mentions it

    Returns:
        ParsedMessage with any field left None when nothing usable was found
    """
    text = message or ""

    title = _capture(NAME_PATTERN, text)
    if not title and primary_attachment and primary_attachment.title:
        title = primary_attachment.title.strip() or None

    event_date = _capture(DATE_PATTERN, text) or (fallback_date or "").strip() or None
    event_type = _capture(TYPE_PATTERN, text) or (primary_attachment.type if primary_attachment else None)

    description = _capture(POST_PATTERN, text)
    if not description and text.strip():
        description = text.strip()
    if not description:
        description = extract_attachment_text(attachments)

    if place_name and description and place_name not in description:
        description = f"{description}\n\nLocation: {place_name}"

    return ParsedMessage(
        title=title,
        description=description,
        event_date=event_date,
        event_type=event_type,
    )


class FacebookPostProcessor(PostProcessor):
    """Turns page feed posts into event field values."""

    def name(self) -> str:
        """Return the name of the processor"""
        return "facebook"

    def process_post(
        self,
        post: FeedPost,
        author_profile: Optional[AuthorProfile] = None,
        is_life_event: bool = False
    ) -> Optional[EventDraft]:
        if not post.id:
            return None

        raw_message = (post.message or "").strip()
        structured = parse_structured_message(
            raw_message,
            post.backdated_time or post.created_time or "",
            post.attachments,
            get_primary_attachment(post.attachments),
            post.place_name,
        )

        full_text = (
            structured.description
            or raw_message
            or extract_attachment_text(post.attachments)
            or (post.story or "").strip()
            or ""
        )
        line_1, line_2 = split_headline(full_text)
        if structured.title:
            line_1 = truncate(structured.title, HEADLINE_MAX_LENGTH)

        photo_urls = extract_photo_urls(post.attachments)
        if not photo_urls and post.full_picture:
            photo_urls = [post.full_picture]

        return EventDraft(
            external_id=post.id,
            event_date=structured.event_date or post.created_time or now_utc().isoformat(),
            event_type=(
                structured.event_type
                or post.status_type
                or (LIFE_EVENT if is_life_event else DEFAULT_EVENT_TYPE)
            ),
            line_1=line_1,
            line_2=line_2,
            description=full_text or None,
            posted_by_name=post.from_name or (author_profile.name if author_profile else None),
            posted_by_photo=author_profile.photo if author_profile else None,
            photo_urls=photo_urls,
        )

"""Client for the Facebook Graph API page feed."""

import logging
from typing import Any, Dict, Optional

import requests

from ..config.external_services import FacebookConfig, get_facebook_config
from ..config.sync import SyncSettings, SYNC_SETTINGS
from ..models.feed_post import AuthorProfile, FeedPage, FeedPost

logger = logging.getLogger(__name__)

# Fields requested for every feed post
FEED_FIELDS = ",".join([
    "message",
    "story",
    "full_picture",
    "created_time",
    "backdated_time",
    "from{id,name}",
    "to{name,id,username}",
    "status_type",
    "event",
    "place{name}",
    "properties",
    "story_tags",
    "permalink_url",
    "attachments{description,title,type,description_tags,media_type,media{image{src},source},"
    "subattachments{description,title,type,media{image{src},source}}}",
])

PROFILE_FIELDS = "picture{url},hometown,location{name},name,name_with_location_descriptor,username"


class FeedUnavailable(Exception):
    """Raised when the Graph API answers with a non-success status or cannot be reached."""

    def __init__(self, status_code: Optional[int], body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Facebook API error {status_code}: {body}")


class FacebookFeedClient:
    """
    Paginated access to a page's feed.

    Configuration is loaded from timeline_sync.config.external_services.facebook
    unless passed in explicitly.
    """

    def __init__(
        self,
        config: Optional[FacebookConfig] = None,
        session: Optional[requests.Session] = None,
        settings: SyncSettings = SYNC_SETTINGS
    ):
        self.config = config or get_facebook_config()
        self.session = session or requests.Session()
        self.settings = settings

    def _clamp_limit(self, limit: Optional[int]) -> int:
        if not limit or limit <= 0:
            return self.settings.default_limit
        return min(limit, self.settings.max_limit)

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.config.base_url}/{path}"
        params = {**params, 'access_token': self.config.page_access_token}

        try:
            response = self.session.get(url, params=params, timeout=self.config.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error calling {path}: {e}")
            raise FeedUnavailable(None, str(e)) from e

        if not response.ok:
            logger.error(f"Facebook API returned {response.status_code} for {path}: {response.text[:500]}")
            raise FeedUnavailable(response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Facebook API returned a non-JSON body for {path}: {response.text[:500]}")
            raise FeedUnavailable(response.status_code, response.text) from e

    def fetch_page(self, cursor: Optional[str] = None, limit: Optional[int] = None) -> FeedPage:
        """
        Fetch one page of the feed.

        Args:
            cursor: `after` cursor returned with the previous page, None for the newest posts
            limit: Posts per page; clamped to the upstream maximum

        Returns:
            FeedPage: Posts on the page and the cursor of the next page (None when exhausted)

        Raises:
            FeedUnavailable: If the Graph API call fails
        """
        params = {
            'fields': FEED_FIELDS,
            'limit': str(self._clamp_limit(limit)),
        }
        if cursor:
            params['after'] = cursor

        payload = self._get(f"{self.config.page_id}/feed", params)

        posts = [FeedPost.from_dict(item) for item in payload.get('data') or [] if isinstance(item, dict)]
        next_cursor = ((payload.get('paging') or {}).get('cursors') or {}).get('after')

        logger.debug(f"Fetched {len(posts)} posts, next cursor: {'yes' if next_cursor else 'no'}")
        return FeedPage(posts=posts, next_cursor=next_cursor or None)

    def fetch_author_profile(self) -> AuthorProfile:
        """
        Fetch the page's own profile (name, picture, location).

        Raises:
            FeedUnavailable: If the Graph API call fails
        """
        payload = self._get(self.config.page_id, {'fields': PROFILE_FIELDS})

        hometown = payload.get('hometown')
        if isinstance(hometown, str):
            location = hometown
        else:
            location = (hometown or {}).get('name') or (payload.get('location') or {}).get('name')

        return AuthorProfile(
            name=payload.get('name'),
            photo=((payload.get('picture') or {}).get('data') or {}).get('url'),
            location=location,
        )

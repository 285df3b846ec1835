"""
Long-lived authenticated API clients injected into the resolver.

The resolver only depends on the ``SocialClient`` and ``DriveClient``
protocols; the REST implementations below are what ``build_api_clients``
creates from configured credentials.
"""

import logging
from typing import Any, Dict, Optional, Protocol, Tuple

from .config import Config
from .utils.http_client import RateLimitedHTTPClient

logger = logging.getLogger(__name__)


class SocialClient(Protocol):
    async def get_status(self, status_id: int) -> Dict[str, Any]:
        """Fetch a status (post) object by its numeric id."""
        ...


class DriveClient(Protocol):
    async def list_files(
        self,
        query: str,
        fields: str,
        page_size: int,
        page_token: Optional[str] = None
    ) -> Dict[str, Any]:
        """Return one page of files: ``{"files": [...], "nextPageToken": ...}``."""
        ...


class TwitterAPIClient:
    """Twitter v1.1 REST client authenticated with an app bearer token."""

    base_url = "https://api.twitter.com/1.1"

    def __init__(self, bearer_token: str, http_client: RateLimitedHTTPClient):
        self.bearer_token = bearer_token
        self.http_client = http_client

    async def get_status(self, status_id: int) -> Dict[str, Any]:
        return await self.http_client.fetch_json(
            f"{self.base_url}/statuses/show.json",
            headers={"Authorization": f"Bearer {self.bearer_token}"},
            params={"id": status_id, "tweet_mode": "extended", "include_entities": "true"}
        )


class DriveAPIClient:
    """Google Drive v3 files.list client using an API key."""

    base_url = "https://www.googleapis.com/drive/v3/files"

    def __init__(self, api_key: str, http_client: RateLimitedHTTPClient):
        self.api_key = api_key
        self.http_client = http_client

    async def list_files(
        self,
        query: str,
        fields: str,
        page_size: int,
        page_token: Optional[str] = None
    ) -> Dict[str, Any]:
        params = {
            "q": query,
            "fields": fields,
            "pageSize": page_size,
            "key": self.api_key,
        }
        if page_token:
            params["pageToken"] = page_token
        return await self.http_client.fetch_json(self.base_url, params=params)


def build_api_clients(
    config: Config,
    http_client: RateLimitedHTTPClient
) -> Tuple[Optional[SocialClient], Optional[DriveClient]]:
    """Create the clients whose credentials are configured; ``None`` for the rest."""
    twitter_client = None
    drive_client = None

    if config.is_platform_configured('twitter'):
        twitter_client = TwitterAPIClient(config.twitter_bearer_token, http_client)
    else:
        logger.info("TWITTER_BEARER_TOKEN not set, twitter status links are disabled")

    if config.is_platform_configured('google_drive'):
        drive_client = DriveAPIClient(config.google_drive_api_key, http_client)
    else:
        logger.info("GOOGLE_DRIVE_API_KEY not set, google drive folder links are disabled")

    return twitter_client, drive_client

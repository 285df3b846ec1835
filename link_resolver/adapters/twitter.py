import logging
import posixpath
import re
from typing import Any, Dict, List, Optional

from .base import BaseAdapter
from ..api_clients import SocialClient
from ..exceptions import InvalidURLError, LinkResolverError, PlatformNotConfiguredError
from ..models import LinkMap, LinkRequest, Platform

logger = logging.getLogger(__name__)


def rewrite_twitter_media(url: str) -> LinkMap:
    """
    Point a pbs.twimg.com media URL at its original-size rendition.

    ``https://pbs.twimg.com/media/X.jpg:large`` becomes
    ``https://pbs.twimg.com/media/X.jpg:orig`` with filename ``X.jpg``.
    Already rewritten URLs come back unchanged.
    """
    parts = url.split(':')
    if len(parts) < 2:
        raise InvalidURLError(url, "Unable to parse Twitter URL")
    path = parts[1]
    return {f"https:{path}:orig": posixpath.basename(path)}


def select_best_variant(variants: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Pick the highest-bitrate video variant.

    A later variant at or above the current best bitrate replaces it, so among
    equal bitrates the last one wins. Variants without a bitrate count as 0.
    """
    best = None
    best_bitrate = 0
    for variant in variants:
        bitrate = variant.get('bitrate') or 0
        if bitrate >= best_bitrate:
            best = variant
            best_bitrate = bitrate
    return best


class TwitterMediaAdapter(BaseAdapter):
    @property
    def platform(self) -> Platform:
        return Platform.TWITTER_MEDIA

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://pbs(-[0-9]+)?\.twimg\.com/media/[^./]+\.(jpg|png)((:[a-z]+)?)$',
        ]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        return rewrite_twitter_media(request.url)


class TwitterStatusAdapter(BaseAdapter):
    """Resolves every photo, video and linked URL attached to a status."""

    def __init__(self, config, http_client, twitter_client: Optional[SocialClient] = None):
        super().__init__(config, http_client)
        self.twitter_client = twitter_client

    @property
    def platform(self) -> Platform:
        return Platform.TWITTER_STATUS

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://(www\.|mobile\.)?(twitter|x)\.com/([A-Za-z0-9_.-]+/status/|statuses/|i/web/status/)(?P<status_id>[0-9]+)/?(\?.*)?$',
        ]

    @property
    def is_configured(self) -> bool:
        return self.twitter_client is not None

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        if self.twitter_client is None:
            raise PlatformNotConfiguredError("twitter", "TWITTER_BEARER_TOKEN")

        status_id = int(match.group('status_id'))
        status = await self.twitter_client.get_status(status_id)

        links: LinkMap = {}
        for media in (status.get('extended_entities') or {}).get('media') or []:
            variants = (media.get('video_info') or {}).get('variants') or []
            if variants:
                best = select_best_variant(variants)
                if best and best.get('url'):
                    links[best['url']] = ""
            elif media.get('media_url_https'):
                links.update(rewrite_twitter_media(media['media_url_https']))

        embedded = [
            entity['expanded_url']
            for entity in (status.get('entities') or {}).get('urls') or []
            if entity.get('expanded_url')
        ]
        if embedded and request.depth >= self.config.resolver.max_recursion_depth:
            logger.info(f"Not following {len(embedded)} embedded links in status {status_id}: depth limit reached")
            return links

        for embedded_url in embedded:
            try:
                resolution = await resolver.resolve_request(request.child(embedded_url))
            except LinkResolverError as e:
                logger.warning(f"Skipping embedded link {embedded_url} in status {status_id}: {e}")
                continue
            links.update(resolution.links)

        return links

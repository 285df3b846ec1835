import html
import logging
import re
from typing import List, Optional

from .base import BaseAdapter
from ..exceptions import ExtractionMissError
from ..models import LinkMap, LinkRequest, Platform

logger = logging.getLogger(__name__)

# Checked in order: high definition first, then standard definition.
VIDEO_SOURCE_PATTERNS = [
    re.compile(rb'hd_src:"([^"]+)"'),
    re.compile(rb'sd_src:"([^"]+)"'),
]


def find_video_source(body: bytes) -> Optional[str]:
    """Return the unescaped source URL of the best quality found in a page body."""
    for pattern in VIDEO_SOURCE_PATTERNS:
        found = pattern.search(body)
        if found:
            return html.unescape(found.group(1).decode('utf-8', errors='replace'))
    return None


class FacebookVideoAdapter(BaseAdapter):
    @property
    def platform(self) -> Platform:
        return Platform.FACEBOOK_VIDEO

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://(www\.)?facebook\.com/[A-Za-z0-9.]+/videos/[0-9]+/?$',
        ]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        body = await self.http_client.fetch_raw(request.url, headers=self.http_client.browser_headers)
        source = find_video_source(body)
        if not source:
            raise ExtractionMissError(request.url, self.platform_name, "Unable to find source url for Facebook video")
        return {source: ""}

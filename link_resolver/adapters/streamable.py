import re
from typing import List

from .base import BaseAdapter
from ..exceptions import ExtractionMissError
from ..models import LinkMap, LinkRequest, Platform

# Streamable reports status 2 once a video has finished processing.
STATUS_READY = 2


class StreamableAdapter(BaseAdapter):
    base_url = "https://api.streamable.com/videos"

    @property
    def platform(self) -> Platform:
        return Platform.STREAMABLE

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://(www\.)?streamable\.com/(?P<shortcode>[0-9a-z]+)$',
        ]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        shortcode = match.group('shortcode')
        video = await self.http_client.fetch_json(f"{self.base_url}/{shortcode}")

        link = (((video.get('files') or {}).get('mp4') or {}).get('url')) or ""
        if video.get('status') != STATUS_READY or not link:
            raise ExtractionMissError(request.url, self.platform_name, "Streamable object has no download candidate")

        if not link.startswith("http"):
            link = "https:" + link
        return {link: ""}

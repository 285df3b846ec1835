import re
from typing import List

from .base import BaseAdapter
from ..exceptions import ExtractionMissError, InvalidURLError
from ..models import LinkMap, LinkRequest, Platform


class GfycatAdapter(BaseAdapter):
    base_url = "https://api.gfycat.com/v1/gfycats"

    @property
    def platform(self) -> Platform:
        return Platform.GFYCAT

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://gfycat\.com/(gifs/detail/)?[A-Za-z]+$',
        ]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        parts = request.url.split('/')
        if len(parts) < 3:
            raise InvalidURLError(request.url, "Unable to parse Gfycat URL")

        gfycat_id = parts[-1]
        gfycat = await self.http_client.fetch_json(f"{self.base_url}/{gfycat_id}")
        mp4_url = (gfycat.get('gfyItem') or {}).get('mp4Url')
        if not mp4_url:
            raise ExtractionMissError(request.url, self.platform_name, "Failed to read response from Gfycat")
        return {mp4_url: ""}

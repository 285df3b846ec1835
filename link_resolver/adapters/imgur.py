import logging
import re
from typing import List

from .base import BaseAdapter
from ..exceptions import UpstreamError
from ..models import LinkMap, LinkRequest, Platform

logger = logging.getLogger(__name__)

SUBREDDIT_SEGMENT = re.compile(r'r/[^/]+/')
ALBUM_ANCHOR = re.compile(r'#[A-Za-z0-9]+$')


def rewrite_imgur_single(url: str) -> LinkMap:
    """
    Turn an imgur page or image link into its ``/download/`` form.

    ``https://imgur.com/r/pics/abc`` and ``https://imgur.com/abc.gifv`` both
    become ``https://imgur.com/download/abc``.
    """
    url = SUBREDDIT_SEGMENT.sub("", url)
    if "imgur.com/download/" not in url:
        url = url.replace("imgur.com/", "imgur.com/download/")
    url = url.replace(".gifv", "")
    return {url: ""}


class ImgurSingleAdapter(BaseAdapter):
    @property
    def platform(self) -> Platform:
        return Platform.IMGUR

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://(i\.)?imgur\.com/(download/)?[A-Za-z0-9]+(\.gifv)?$',
        ]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        return rewrite_imgur_single(request.url)


class ImgurAlbumAdapter(BaseAdapter):
    """Lists album images through the imgur API, or falls back to the single-image rewrite."""

    base_url = "https://api.imgur.com/3/album"

    @property
    def platform(self) -> Platform:
        return Platform.IMGUR_ALBUM

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://imgur\.com/(a/|gallery/|r/[^/]+/)[A-Za-z0-9]+(#[A-Za-z0-9]+)?$',
        ]

    @property
    def is_configured(self) -> bool:
        return self.config.is_platform_configured('imgur')

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        url = ALBUM_ANCHOR.sub("", request.url)
        album_id = url[url.rindex('/') + 1:]

        if not self.is_configured:
            logger.warning(f"IMGUR_CLIENT_ID not set, treating {url} as a single image")
            return rewrite_imgur_single(url)

        try:
            album = await self.http_client.fetch_json(
                f"{self.base_url}/{album_id}/images",
                headers={"Authorization": f"Client-ID {self.config.imgur_client_id}"}
            )
        except UpstreamError as e:
            logger.warning(f"Imgur album lookup failed for {url}, treating it as a single image: {e}")
            return rewrite_imgur_single(url)

        links = {
            image['link']: ""
            for image in album.get('data') or []
            if isinstance(image, dict) and image.get('link')
        }
        if not links:
            return rewrite_imgur_single(url)

        logger.info(f"Found imgur album with {len(links)} images (url: {url})")
        return links

"""
Tistory blog images.

Tistory serves images from three URL generations:

* ``http://t1.daumcdn.net/cfile/tistory/<ID>``: current CDN links, the
  original file is served when ``?original`` is appended.
* ``http://<host>.uf.tistory.com/image/<ID>``: legacy links, the original
  lives under ``/original/`` instead of ``/image/``.
* ``http://<n>.daumcdn.net/thumb/<size>/?scode=mtistory&fname=<legacy link>``:
  CDN thumbnails proxying a legacy link given in the ``fname`` parameter.

Blog post pages are scanned for images in any of the legacy shapes.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import parse_qs, urlparse

from .base import BaseAdapter
from ..exceptions import ExtractionMissError
from ..models import LinkMap, LinkRequest, Platform

logger = logging.getLogger(__name__)

TISTORY_PATTERN = r'^https?://t[0-9]+\.daumcdn\.net/cfile/tistory/([A-Z0-9]+?)(\?original)?$'
TISTORY_LEGACY_PATTERN = r'^https?://[a-z0-9]+\.uf\.tistory\.com/(image|original)/[A-Z0-9]+$'
TISTORY_CDN_PATTERN = (
    r'^https?://[0-9a-z]+\.daumcdn\.net/[a-z]+/[a-zA-Z0-9.]+/?\?scode=mtistory&fname='
    r'https?%3A%2F%2F[a-z0-9]+\.uf\.tistory\.com%2F(image|original)%2F[A-Z0-9]+$'
)
TISTORY_SITE_PATTERN = r'^https?://[0-9a-zA-Z.-]+/(m/)?(photo/)?[0-9]+$'

IMAGE_SELECTORS = ".article img, #content img, div[role=main] img, .section_blogview img"

_legacy_re = re.compile(TISTORY_LEGACY_PATTERN, re.IGNORECASE)
_cdn_re = re.compile(TISTORY_CDN_PATTERN, re.IGNORECASE)


def rewrite_tistory(url: str) -> str:
    if not url.endswith("?original"):
        url += "?original"
    return url


def rewrite_tistory_legacy(url: str) -> str:
    return url.replace("/image/", "/original/")


def unwrap_tistory_cdn(url: str) -> Optional[str]:
    """Return the original-size form of the legacy link carried in ``fname``, if any."""
    values = parse_qs(urlparse(url).query).get('fname') or []
    if values and _legacy_re.match(values[0]):
        return rewrite_tistory_legacy(values[0])
    return None


def classify_tistory_image(src: str) -> Optional[str]:
    """Map an image ``src`` found on a blog page to its original-size URL, or None to skip it."""
    if _cdn_re.match(src):
        return unwrap_tistory_cdn(src)
    if _legacy_re.match(src):
        return rewrite_tistory_legacy(src)
    return None


class TistoryCDNAdapter(BaseAdapter):
    @property
    def platform(self) -> Platform:
        return Platform.TISTORY_CDN

    @property
    def url_patterns(self) -> List[str]:
        return [TISTORY_CDN_PATTERN]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        link = unwrap_tistory_cdn(request.url)
        if link is None:
            raise ExtractionMissError(request.url, self.platform_name, "fname parameter is not a legacy tistory link")
        return {link: ""}


class TistoryLegacyAdapter(BaseAdapter):
    @property
    def platform(self) -> Platform:
        return Platform.TISTORY_LEGACY

    @property
    def url_patterns(self) -> List[str]:
        return [TISTORY_LEGACY_PATTERN]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        return {rewrite_tistory_legacy(request.url): ""}


class TistoryAdapter(BaseAdapter):
    @property
    def platform(self) -> Platform:
        return Platform.TISTORY

    @property
    def url_patterns(self) -> List[str]:
        return [TISTORY_PATTERN]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        return {rewrite_tistory(request.url): ""}


class TistorySiteAdapter(BaseAdapter):
    """
    Collects original-size images from a blog post page.

    A HEAD request checks the page is HTML before it is downloaded. Images
    that are neither legacy nor CDN-proxied legacy links are skipped.
    """

    @property
    def platform(self) -> Platform:
        return Platform.TISTORY_SITE

    @property
    def url_patterns(self) -> List[str]:
        return [TISTORY_SITE_PATTERN]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        url = request.url
        head = await self.http_client.head(url, headers=self.http_client.browser_headers)
        content_type = head.headers.get('content-type', '')
        if 'text/html' not in content_type:
            logger.debug(f"Skipping {url}: content type {content_type!r} is not HTML")
            return {}

        soup = await self.http_client.fetch_html(url, headers=self.http_client.browser_headers)

        links: LinkMap = {}
        for img in soup.select(IMAGE_SELECTORS):
            src = img.get('src')
            if not src:
                continue
            link = classify_tistory_image(src)
            if link is None:
                continue
            links[link] = img.get('filename', "")

        if links:
            logger.info(f"Found tistory album with {len(links)} images (url: {url})")
        return links

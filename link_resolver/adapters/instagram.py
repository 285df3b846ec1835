import json
import logging
import posixpath
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .base import BaseAdapter
from ..exceptions import UpstreamError
from ..models import LinkMap, LinkRequest, Platform

logger = logging.getLogger(__name__)

SHARED_DATA_PREFIX = "window._sharedData = "
UNKNOWN = "N/A"


def find_shared_data_script(soup: BeautifulSoup) -> Optional[str]:
    """Return the text of the script element that assigns ``window._sharedData``."""
    for script in soup.find_all('script'):
        text = (script.string or "").strip()
        if text.startswith(SHARED_DATA_PREFIX):
            return text
    return None


def parse_shared_data(text: str) -> Optional[Dict[str, Any]]:
    """Strip the assignment and trailing semicolon, then decode the JSON blob."""
    payload = text.strip()
    if payload.startswith(SHARED_DATA_PREFIX):
        payload = payload[len(SHARED_DATA_PREFIX):]
    payload = payload.rstrip().rstrip(';')
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning(f"Error parsing instagram json: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning("Instagram shared data is not a JSON object")
        return None
    return data


def _shortcode_media(shared_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    try:
        pages = shared_data['entry_data']['PostPage']
    except (KeyError, TypeError) as e:
        logger.warning(f"Unable to find entries children: {e}")
        return []
    if not isinstance(pages, list):
        logger.warning("Unable to find entries children: PostPage is not a list")
        return []

    media = []
    for page in pages:
        try:
            media.append(page['graphql']['shortcode_media'])
        except (KeyError, TypeError):
            continue
    return media


def extract_post_info(shared_data: Dict[str, Any]) -> Tuple[str, str]:
    """Return (username, shortcode) of the first post page, ``N/A`` when absent."""
    for media in _shortcode_media(shared_data):
        shortcode = media.get('shortcode')
        username = (media.get('owner') or {}).get('username')
        if isinstance(shortcode, str) and isinstance(username, str):
            return username, shortcode
    return UNKNOWN, UNKNOWN


def extract_album_urls(shared_data: Dict[str, Any]) -> List[str]:
    """Collect ``display_url`` of every sidecar child, in album order."""
    urls = []
    for media in _shortcode_media(shared_data):
        edges = (media.get('edge_sidecar_to_children') or {}).get('edges')
        if not isinstance(edges, list):
            continue
        for edge in edges:
            link = ((edge or {}).get('node') or {}).get('display_url')
            if isinstance(link, str):
                urls.append(link)
    return urls


def extract_video_url(soup: BeautifulSoup) -> Optional[str]:
    """Return the content of the first ``og:video`` meta tag."""
    for meta in soup.find_all('meta'):
        if meta.get('property') in ('og:video', 'og:video:secure_url') and meta.get('content'):
            return meta['content']
    return None


def build_image_url(url: str) -> str:
    """``.../p/CODE/?q=1`` -> ``.../p/CODE/media/?size=l&q=1``"""
    after_last_slash = url.rindex('/')
    tail = url[after_last_slash:].replace('?', '&').replace('/', '/media/?size=l')
    return url[:after_last_slash] + tail


def _extension(url: str) -> str:
    return posixpath.splitext(urlparse(url).path)[1]


class InstagramAdapter(BaseAdapter):
    """
    Scrapes an Instagram post page.

    Strategies run in order and the first that yields links wins: the
    ``og:video`` meta tag, the sidecar album in the embedded shared data,
    then the ``/media/?size=l`` image URL built from the post URL.
    """

    @property
    def platform(self) -> Platform:
        return Platform.INSTAGRAM

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://(www\.)?instagram\.com/p/[^/]+/(\?[^/]+)?$',
        ]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        url = request.url
        soup = None
        shared_data = None
        try:
            soup = await self.http_client.fetch_html(url)
        except UpstreamError as e:
            logger.warning(f"Unable to fetch instagram page {url}, using image URL: {e}")

        if soup is not None:
            script = find_shared_data_script(soup)
            if script is not None:
                shared_data = parse_shared_data(script)

        username, shortcode = extract_post_info(shared_data) if shared_data else (UNKNOWN, UNKNOWN)
        filename = f"instagram {username} - {shortcode}"

        if soup is not None:
            video_url = extract_video_url(soup)
            if video_url:
                return {video_url: filename + _extension(video_url)}

        if shared_data:
            album_urls = extract_album_urls(shared_data)
            if album_urls:
                logger.info(f"Found instagram album with {len(album_urls)} images (url: {url})")
                return {
                    album_url: f"{filename} {i}{_extension(album_url)}"
                    for i, album_url in enumerate(album_urls, start=1)
                }

        return {build_image_url(url): filename + ".jpg"}

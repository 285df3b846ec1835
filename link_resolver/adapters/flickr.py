import asyncio
import dataclasses
import logging
import re
from typing import Any, Dict, List, Optional

from .base import BaseAdapter
from ..exceptions import (
    AmbiguousRedirectError,
    APIError,
    ExtractionMissError,
    LinkResolverError,
    PlatformNotConfiguredError,
)
from ..models import LinkMap, LinkRequest, Platform

logger = logging.getLogger(__name__)


def _dimension(size: Dict[str, Any], key: str) -> int:
    # the API sends dimensions as strings on some endpoints and ints on others
    try:
        return int(size.get(key) or 0)
    except (TypeError, ValueError):
        return 0


def select_best_size(sizes: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Pick the largest rendition of a photo.

    The first size seeds the best candidate; a later size replaces it only
    when it is strictly wider or strictly taller.
    """
    best = None
    for size in sizes:
        if best is None:
            best = size
        elif _dimension(size, 'width') > _dimension(best, 'width') or \
                _dimension(size, 'height') > _dimension(best, 'height'):
            best = size
    return best


class FlickrAdapter(BaseAdapter):
    """Shared Flickr REST plumbing for the photo and album adapters."""

    base_url = "https://api.flickr.com/services/rest/"

    @property
    def is_configured(self) -> bool:
        return self.config.is_platform_configured('flickr')

    def _require_api_key(self):
        if not self.is_configured:
            raise PlatformNotConfiguredError("flickr", "FLICKR_API_KEY")

    async def _call(self, method: str, **params) -> Dict[str, Any]:
        query = {
            'method': method,
            'api_key': self.config.flickr_api_key,
            'format': 'json',
            'nojsoncallback': 1,
        }
        query.update(params)
        data = await self.http_client.fetch_json(self.base_url, params=query)
        if data.get('stat') != 'ok':
            raise APIError(
                f"{self.base_url}?method={method}",
                "flickr",
                {"message": data.get('message', 'Unknown API error'), "code": data.get('code')}
            )
        return data

    async def photo_source(self, photo_id: str) -> str:
        """Return the URL of the largest available size of a photo."""
        data = await self._call('flickr.photos.getSizes', photo_id=photo_id)
        best = select_best_size((data.get('sizes') or {}).get('size') or [])
        if not best or not best.get('source'):
            raise ExtractionMissError(f"photo/{photo_id}", "flickr", "Photo has no downloadable size")
        return best['source']


class FlickrPhotoAdapter(FlickrAdapter):
    @property
    def platform(self) -> Platform:
        return Platform.FLICKR_PHOTO

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://(www\.)?flickr\.com/photos/[A-Za-z0-9_@.-]+/(?P<photo_id>[0-9]+)/?(in/[^/]+/?)?$',
        ]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        self._require_api_key()
        return {await self.photo_source(match.group('photo_id')): ""}


class FlickrAlbumAdapter(FlickrAdapter):
    """Pages through a photoset and resolves every photo to its largest size."""

    @property
    def platform(self) -> Platform:
        return Platform.FLICKR_ALBUM

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://(www\.)?flickr\.com/photos/[A-Za-z0-9_@.-]+/(albums/(with/)?|sets/)(?P<album_id>[0-9]+)/?$',
        ]

    async def list_photo_ids(self, album_id: str) -> List[str]:
        photo_ids = []
        page = 1
        while True:
            data = await self._call(
                'flickr.photosets.getPhotos',
                photoset_id=album_id,
                per_page=self.config.resolver.flickr_per_page,
                page=page
            )
            photoset = data.get('photoset') or {}
            photo_ids.extend(
                str(photo['id']) for photo in photoset.get('photo') or [] if photo.get('id')
            )
            pages = int(photoset.get('pages') or 1)
            if page >= pages:
                return photo_ids
            page += 1

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        self._require_api_key()
        album_id = match.group('album_id')
        photo_ids = await self.list_photo_ids(album_id)

        links: LinkMap = {}
        batch_size = self.config.resolver.batch_size
        for i in range(0, len(photo_ids), batch_size):
            batch = photo_ids[i:i + batch_size]
            results = await asyncio.gather(
                *[self.photo_source(photo_id) for photo_id in batch],
                return_exceptions=True
            )
            for photo_id, result in zip(batch, results):
                if isinstance(result, LinkResolverError):
                    logger.warning(f"Failed to get sizes for flickr photo {photo_id}: {result}")
                    continue
                if isinstance(result, BaseException):
                    raise result
                links[result] = ""

        logger.info(f"Found flickr album with {len(links)} images (url: {request.url})")
        return links


class FlickrAlbumShortAdapter(FlickrAdapter):
    """Expands flic.kr / flickr.com/gp short links before handing off to the album adapter."""

    def __init__(self, config, http_client):
        super().__init__(config, http_client)
        self.album_adapter = FlickrAlbumAdapter(config, http_client)

    @property
    def platform(self) -> Platform:
        return Platform.FLICKR_ALBUM_SHORT

    @property
    def url_patterns(self) -> List[str]:
        return [
            r'^https?://((www\.)?flickr\.com/gp/[0-9]+@[A-Z0-9]+/[A-Za-z0-9]+|flic\.kr/s/[A-Za-z0-9]+)/?$',
        ]

    async def resolve(self, request: LinkRequest, match: re.Match, resolver) -> LinkMap:
        self._require_api_key()
        final_url = await self.http_client.final_url(request.url)
        album_match = self.album_adapter.match(final_url)
        if album_match is None:
            raise AmbiguousRedirectError(request.url, final_url, self.platform_name)

        logger.debug(f"Expanded {request.url} to {final_url}")
        return await self.album_adapter.resolve(
            dataclasses.replace(request, url=final_url), album_match, resolver
        )

import re
from dataclasses import dataclass
from typing import List, Optional

from .base import BaseAdapter
from .facebook import FacebookVideoAdapter
from .flickr import FlickrAlbumAdapter, FlickrAlbumShortAdapter, FlickrPhotoAdapter
from .gfycat import GfycatAdapter
from .google_drive import GoogleDriveFileAdapter, GoogleDriveFolderAdapter
from .imgur import ImgurAlbumAdapter, ImgurSingleAdapter
from .instagram import InstagramAdapter
from .streamable import StreamableAdapter
from .tistory import TistoryAdapter, TistoryCDNAdapter, TistoryLegacyAdapter, TistorySiteAdapter
from .twitter import TwitterMediaAdapter, TwitterStatusAdapter


@dataclass(frozen=True)
class SignatureMatch:
    adapter: BaseAdapter
    match: re.Match
    url: str

    @property
    def groups(self) -> dict:
        return self.match.groupdict()


class AdapterRegistry:
    """
    Ordered table of platform adapters.

    URLs are checked against adapters in registration order and the first
    match wins, so narrower signatures must be registered before broader
    ones (the catch-all tistory blog signature comes last).
    """

    def __init__(self, config, http_client, twitter_client=None, drive_client=None):
        self.adapters: List[BaseAdapter] = []
        self._register_adapters(config, http_client, twitter_client, drive_client)

    def _register_adapters(self, config, http_client, twitter_client, drive_client):
        """Register all available adapters in priority order"""
        self.adapters.extend([
            TwitterMediaAdapter(config, http_client),
            TwitterStatusAdapter(config, http_client, twitter_client=twitter_client),
            TistoryCDNAdapter(config, http_client),
            TistoryLegacyAdapter(config, http_client),
            TistoryAdapter(config, http_client),
            GfycatAdapter(config, http_client),
            InstagramAdapter(config, http_client),
            ImgurSingleAdapter(config, http_client),
            ImgurAlbumAdapter(config, http_client),
            GoogleDriveFileAdapter(config, http_client),
            FlickrPhotoAdapter(config, http_client),
            FlickrAlbumAdapter(config, http_client),
            FlickrAlbumShortAdapter(config, http_client),
            GoogleDriveFolderAdapter(config, http_client, drive_client=drive_client),
            StreamableAdapter(config, http_client),
            FacebookVideoAdapter(config, http_client),
            TistorySiteAdapter(config, http_client),
        ])

    def match(self, url: str) -> Optional[SignatureMatch]:
        """Find the first adapter whose signature matches the URL"""
        for adapter in self.adapters:
            found = adapter.match(url)
            if found:
                return SignatureMatch(adapter, found, url)
        return None

    def get_adapter(self, url: str) -> Optional[BaseAdapter]:
        """Find the appropriate adapter for a URL"""
        signature_match = self.match(url)
        return signature_match.adapter if signature_match else None

    def get_supported_platforms(self) -> List[str]:
        """Get list of supported platform names"""
        return [adapter.platform_name for adapter in self.adapters]


__all__ = [
    "AdapterRegistry",
    "BaseAdapter",
    "SignatureMatch",
]

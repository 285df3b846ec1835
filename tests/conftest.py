"""
Pytest configuration and shared fixtures for link resolver tests.
"""

import os
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import patch

import httpx
import pytest

from link_resolver.config import Config
from link_resolver.resolver import LinkResolver
from link_resolver.utils.http_client import RateLimitedHTTPClient


class FakeTwitterClient:
    """In-memory stand-in for the social API client."""

    def __init__(self, statuses: Optional[Dict[int, Dict[str, Any]]] = None):
        self.statuses = statuses or {}
        self.calls: List[int] = []

    async def get_status(self, status_id: int) -> Dict[str, Any]:
        self.calls.append(status_id)
        return self.statuses[status_id]


class FakeDriveClient:
    """Serves pre-built pages of a folder listing, chained by page tokens."""

    def __init__(self, pages: List[Dict[str, Any]]):
        self.pages = pages
        self.calls: List[Dict[str, Any]] = []

    async def list_files(self, query, fields, page_size, page_token=None):
        self.calls.append({"query": query, "fields": fields, "page_size": page_size, "page_token": page_token})
        index = 0 if page_token is None else int(page_token.split("-")[1])
        return self.pages[index]


def unexpected_request(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"Unexpected request: {request.method} {request.url}")


@pytest.fixture
def clean_env():
    """Run a test without any resolver credentials in the environment"""
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture
def config(clean_env):
    """Configuration with flickr and imgur credentials set"""
    config = Config()
    config.flickr_api_key = 'test_flickr_key_123'
    config.imgur_client_id = 'test_imgur_id_123'
    config.resolver.batch_size = 2
    return config


@pytest.fixture
def make_http_client() -> Callable[..., RateLimitedHTTPClient]:
    """Build an HTTP client whose requests are answered by ``handler``"""
    def factory(handler: Callable[[httpx.Request], httpx.Response] = unexpected_request) -> RateLimitedHTTPClient:
        return RateLimitedHTTPClient(
            default_rate_limit=1000.0,
            transport=httpx.MockTransport(handler)
        )
    return factory


@pytest.fixture
def make_resolver(config, make_http_client) -> Callable[..., LinkResolver]:
    """Build a resolver with a mocked transport and optional fake API clients"""
    def factory(handler=unexpected_request, twitter_client=None, drive_client=None, resolver_config=None):
        return LinkResolver(
            resolver_config or config,
            make_http_client(handler),
            twitter_client=twitter_client,
            drive_client=drive_client
        )
    return factory


@pytest.fixture
def make_twitter_client() -> Callable[..., FakeTwitterClient]:
    return FakeTwitterClient


@pytest.fixture
def make_drive_client() -> Callable[..., FakeDriveClient]:
    return FakeDriveClient


@pytest.fixture
def sample_urls():
    """Provide sample URLs for every platform signature"""
    return {
        'twitter_media': 'https://pbs.twimg.com/media/DXa1b2C3d4E.jpg:large',
        'twitter_status': 'https://twitter.com/someone/status/981234567890123456',
        'tistory_cdn': (
            'http://cfile1.daumcdn.net/thumb/R1280x0/?scode=mtistory&fname='
            'http%3A%2F%2Fcfile2.uf.tistory.com%2Fimage%2F2623D23D5834A2BB0B7F60'
        ),
        'tistory_legacy': 'http://cfile2.uf.tistory.com/image/2623D23D5834A2BB0B7F60',
        'tistory': 'http://t1.daumcdn.net/cfile/tistory/2623D23D5834A2BB0B',
        'gfycat': 'https://gfycat.com/HappyFluffyPanda',
        'instagram': 'https://www.instagram.com/p/BgHt7s5lKqP/',
        'imgur': 'https://imgur.com/AbC123x',
        'imgur_album': 'https://imgur.com/a/XyZ789',
        'google_drive': 'https://drive.google.com/file/d/1AbCdEfGhIjK/view',
        'flickr_photo': 'https://www.flickr.com/photos/12345678@N05/40071331883/',
        'flickr_album': 'https://www.flickr.com/photos/12345678@N05/albums/72157691234567890',
        'flickr_album_short': 'https://flic.kr/s/aHsmcXyZ12',
        'google_drive_folder': 'https://drive.google.com/drive/folders/0B1FolderIdXyZ',
        'streamable': 'https://streamable.com/abc12',
        'facebook_video': 'https://www.facebook.com/somepage/videos/1234567890/',
        'tistory_site': 'http://someblog.tistory.com/123',
    }

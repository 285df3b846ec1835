"""
Resolution façade: the single entry point from a raw URL to download links.
"""

import dataclasses
import logging
from typing import Any, List, Optional

from .adapters import AdapterRegistry, SignatureMatch
from .api_clients import DriveClient, SocialClient
from .config import Config
from .exceptions import UnsupportedURLError
from .models import LinkMap, LinkRequest, Resolution
from .utils.http_client import RateLimitedHTTPClient

logger = logging.getLogger(__name__)


class LinkResolver:
    """
    Resolves media post URLs into ``{download_url: filename}`` mappings.

    Every collaborator is injected at construction: the configuration, the
    shared HTTP client and the optional social / drive API clients. Adapters
    that need a missing client fail with ``PlatformNotConfiguredError``
    before making any request.

    Example:
        async with LinkResolver(config) as resolver:
            links = await resolver.resolve("https://imgur.com/a/abc123")
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        http_client: Optional[RateLimitedHTTPClient] = None,
        twitter_client: Optional[SocialClient] = None,
        drive_client: Optional[DriveClient] = None,
    ):
        self.config = config or Config()
        self._owns_http_client = http_client is None
        self.http_client = http_client or RateLimitedHTTPClient.from_config(self.config)
        self.registry = AdapterRegistry(
            self.config,
            self.http_client,
            twitter_client=twitter_client,
            drive_client=drive_client
        )

    @property
    def max_recursion_depth(self) -> int:
        return self.config.resolver.max_recursion_depth

    def match(self, url: str) -> Optional[SignatureMatch]:
        return self.registry.match(url.strip())

    async def resolve(self, url: str, context: Any = None) -> LinkMap:
        """
        Resolve a URL into download links.

        Args:
            url: Any string claiming to be a media post URL
            context: Opaque value handed unchanged to recursive resolutions

        Returns:
            Mapping of download URL to suggested filename ("" = derive from URL)

        Raises:
            UnsupportedURLError: No platform signature matches the URL
            ConfigurationError: The matched platform lacks credentials
            UpstreamError: A third-party service failed
            ExtractionMissError: The page held no recognizable media
            AmbiguousRedirectError: A short link led somewhere unexpected
        """
        resolution = await self.resolve_request(LinkRequest(url=url, context=context))
        return resolution.links

    async def resolve_request(self, request: LinkRequest) -> Resolution:
        url = request.url.strip()
        signature_match = self.registry.match(url)
        if signature_match is None:
            raise UnsupportedURLError(url)

        adapter = signature_match.adapter
        if url != request.url:
            request = dataclasses.replace(request, url=url)

        logger.info(f"Resolving {url} with {adapter.platform_name} adapter (depth {request.depth})")
        links = await adapter.resolve(request, signature_match.match, self)
        logger.info(f"Resolved {len(links)} links from {adapter.platform_name} (url: {url})")

        return Resolution(platform=adapter.platform, links=links)

    def get_supported_platforms(self) -> List[str]:
        return self.registry.get_supported_platforms()

    def is_platform_configured(self, platform: str) -> bool:
        """Whether every adapter of a platform has the credentials it needs."""
        adapters = [a for a in self.registry.adapters if a.platform_name == platform]
        return bool(adapters) and all(a.is_configured for a in adapters)

    async def close(self):
        if self._owns_http_client:
            await self.http_client.close()

    async def __aenter__(self) -> 'LinkResolver':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

"""
HTTP client utilities with connection pooling and rate limiting.
"""

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx
from asyncio_throttle import Throttler
from bs4 import BeautifulSoup

from ..config import Config, DEFAULT_USER_AGENT
from ..exceptions import MalformedResponseError, wrap_http_error

logger = logging.getLogger(__name__)


def platform_for_url(url: str) -> str:
    """Name the service behind a URL by its registered domain, e.g. api.imgur.com -> imgur."""
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return "unknown"
    labels = [label for label in hostname.split('.') if label]
    if len(labels) >= 2:
        return labels[-2]
    return labels[0] if labels else "unknown"


class RateLimitedHTTPClient:
    """
    HTTP client with rate limiting and connection pooling.

    Features:
    - Connection pooling for efficient resource usage
    - Rate limiting per domain to respect API limits
    - Redirects followed, final URL available on every response
    - JSON, HTML and raw-bytes fetch helpers that raise LinkResolverError types

    The client never retries; retry policy belongs to whoever calls the resolver.
    """

    def __init__(
        self,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        keepalive_expiry: float = 30.0,
        timeout: float = 30.0,
        rate_limits: Optional[Dict[str, float]] = None,
        default_rate_limit: float = 5.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the rate-limited HTTP client.

        Args:
            max_connections: Maximum number of connections in the pool
            max_keepalive_connections: Maximum number of keep-alive connections
            keepalive_expiry: Time to keep connections alive (seconds)
            timeout: Default timeout for requests (seconds)
            rate_limits: Dict mapping domain to requests per second limit
            default_rate_limit: Requests per second for domains not listed
            user_agent: User-Agent sent with scraped pages
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.max_connections = max_connections
        self.max_keepalive_connections = max_keepalive_connections
        self.keepalive_expiry = keepalive_expiry
        self.timeout = timeout
        self.rate_limits = dict(rate_limits or {})
        self.default_rate_limit = default_rate_limit
        self.user_agent = user_agent
        self.throttlers: Dict[str, Throttler] = {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> 'RateLimitedHTTPClient':
        """Build a client from the HTTP and rate limit sections of a Config."""
        return cls(
            max_connections=config.http.max_connections,
            max_keepalive_connections=config.http.max_keepalive_connections,
            keepalive_expiry=config.http.keepalive_expiry,
            timeout=config.http.timeout,
            rate_limits=config.rate_limits.to_dict(),
            default_rate_limit=config.rate_limits.default,
            user_agent=config.http.user_agent,
            **kwargs
        )

    @property
    def browser_headers(self) -> Dict[str, str]:
        """Headers for scraped pages: uncompressed, with the configured browser user agent."""
        return {
            'Accept-Encoding': 'identity',
            'User-Agent': self.user_agent,
        }

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None:
            limits = httpx.Limits(
                max_connections=self.max_connections,
                max_keepalive_connections=self.max_keepalive_connections,
                keepalive_expiry=self.keepalive_expiry
            )

            self._client = httpx.AsyncClient(
                limits=limits,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport
            )

        return self._client

    def _get_domain(self, url: str) -> str:
        """Extract domain from URL for rate limiting."""
        try:
            netloc = urlparse(url).netloc.lower()
        except ValueError:
            return 'default'
        return netloc or 'default'

    def _get_throttler(self, domain: str) -> Throttler:
        """Get or create a throttler for the domain."""
        if domain not in self.throttlers:
            rate_limit = self.rate_limits.get(domain, self.default_rate_limit)
            self.throttlers[domain] = Throttler(rate_limit=rate_limit)

        return self.throttlers[domain]

    async def request(
        self,
        method: str,
        url: str,
        raise_for_status: bool = True,
        **kwargs
    ) -> httpx.Response:
        """
        Make an HTTP request with rate limiting.

        Args:
            method: HTTP method (GET, HEAD, ...)
            url: Request URL
            raise_for_status: Treat non-2xx responses as errors
            **kwargs: Additional arguments for httpx request

        Returns:
            httpx.Response object; ``response.url`` is the post-redirect URL

        Raises:
            UpstreamError: For network failures, timeouts and error statuses
        """
        client = self._get_client()
        throttler = self._get_throttler(self._get_domain(url))

        try:
            async with throttler:
                response = await client.request(method, url, **kwargs)
            if raise_for_status:
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.debug(f"{method} {url} failed: {e}")
            raise wrap_http_error(e, url, f"{method} request", platform=platform_for_url(url)) from e

        return response

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """Make a GET request."""
        return await self.request('GET', url, **kwargs)

    async def head(self, url: str, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        """Make a HEAD request; the status code is informational only."""
        return await self.request('HEAD', url, raise_for_status=False, headers=headers)

    async def fetch_json(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """GET a URL and decode its JSON body."""
        response = await self.get(url, headers=headers, params=params)
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponseError(str(response.url), f"invalid JSON body: {e}") from e

    async def fetch_html(self, url: str, headers: Optional[Dict[str, str]] = None) -> BeautifulSoup:
        """GET a URL and parse its body into a DOM."""
        response = await self.get(url, headers=headers)
        return BeautifulSoup(response.text, 'html.parser')

    async def fetch_raw(self, url: str, headers: Optional[Dict[str, str]] = None) -> bytes:
        """GET a URL and return the raw body bytes."""
        response = await self.get(url, headers=headers)
        return response.content

    async def final_url(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        """Follow redirects from ``url`` and return where they end."""
        response = await self.get(url, headers=headers)
        return str(response.url)

    async def close(self):
        """Close the HTTP client and clean up resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

        self.throttlers.clear()

    async def __aenter__(self) -> 'RateLimitedHTTPClient':
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

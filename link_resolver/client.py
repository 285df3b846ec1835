# client.py
from typing import Any, Dict, List, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from .config import Config

RETRYABLE_STATUS_CODES = {429, 502, 503, 504}


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRYABLE_STATUS_CODES
    return False


class LinkResolverClient:
    """
    Client for the link resolver HTTP service.

    Upstream failures (502), rate limiting (429), unavailability and network
    errors are retried with exponential backoff; everything else is raised
    on the first attempt.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_factor: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._transport = transport

    @classmethod
    def from_config(cls, config: Config, base_url: str = "http://localhost:8000", **kwargs) -> 'LinkResolverClient':
        """Build a client using the timeout and retry policy of the HTTP config section."""
        kwargs.setdefault('timeout', config.http.timeout)
        kwargs.setdefault('max_retries', config.http.max_retries)
        kwargs.setdefault('backoff_factor', config.http.retry_backoff_factor)
        return cls(base_url, **kwargs)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(self.max_retries, 1)),
            wait=wait_exponential(multiplier=self.backoff_factor, max=10),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                        response = await client.request(method, f"{self.base_url}{path}", **kwargs)
                        response.raise_for_status()
                        return response
        except httpx.TimeoutException as e:
            raise httpx.TimeoutException(f"Request timed out after {self.timeout}s: {e}") from e
        except httpx.ConnectError as e:
            raise httpx.ConnectError(f"Failed to connect to link resolver service at {self.base_url}: {e}") from e
        except httpx.HTTPStatusError as e:
            try:
                error_detail = e.response.json().get("message", "")
            except ValueError:
                error_detail = e.response.text
            raise httpx.HTTPStatusError(
                f"HTTP {e.response.status_code} error: {error_detail}",
                request=e.request,
                response=e.response
            ) from e

    async def resolve(self, url: str, context: Optional[Any] = None) -> Dict:
        """
        Resolve a media post URL through the service.

        Args:
            url: The URL to resolve
            context: Optional opaque context passed through to the resolver

        Returns:
            Dict with ``platform``, ``links`` (list of url/filename) and ``count``

        Raises:
            httpx.ConnectError: If unable to connect to the service
            httpx.TimeoutException: If the request times out
            httpx.HTTPStatusError: If the server returns an error status
        """
        response = await self._request("POST", "/resolve", json={"url": url, "context": context})
        return response.json()

    async def resolve_links(self, url: str, context: Optional[Any] = None) -> Dict[str, str]:
        """Resolve a URL and return just the download URL -> filename mapping."""
        result = await self.resolve(url, context)
        return {link["url"]: link.get("filename") or "" for link in result["links"]}

    async def get_supported_platforms(self) -> List[str]:
        """
        Get list of supported platforms.

        Raises:
            httpx.ConnectError: If unable to connect to the service
            httpx.TimeoutException: If the request times out
            httpx.HTTPStatusError: If the server returns an error status
        """
        response = await self._request("GET", "/platforms")
        return response.json()["platforms"]

# Usage in your other apps:
# client = LinkResolverClient()
# links = await client.resolve_links("https://imgur.com/a/abc123")

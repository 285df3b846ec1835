"""
Custom exceptions for the link resolver package.

Every failure the engine reports is one of these types so callers can decide
between passing a URL through, reporting it, or retrying later.
"""

from typing import Optional, Dict, Any


class LinkResolverError(Exception):
    """Base exception for all link resolver errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(LinkResolverError):
    """Raised when there's a configuration issue."""
    pass


class PlatformNotConfiguredError(ConfigurationError):
    """Raised when a platform is not properly configured."""

    def __init__(self, platform: str, missing_config: str):
        message = f"Platform '{platform}' is not configured: missing {missing_config}"
        details = {"platform": platform, "missing_config": missing_config}
        super().__init__(message, details)


class ValidationError(ConfigurationError):
    """Raised when a configuration value fails validation."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for field '{field}': {reason}"
        details = {"field": field, "value": value, "reason": reason}
        super().__init__(message, details)


class InvalidURLError(LinkResolverError):
    """Raised when a URL fails structural checks."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        message = f"Invalid URL: {reason}"
        details = {"url": url, "reason": reason}
        super().__init__(message, details)


class UnsupportedURLError(LinkResolverError):
    """Raised when no platform signature matches a URL."""

    def __init__(self, url: str, supported_platforms: Optional[list] = None):
        message = "Unsupported URL"
        details = {"url": url}
        if supported_platforms:
            message += f". Supported platforms: {', '.join(supported_platforms)}"
            details["supported_platforms"] = supported_platforms
        super().__init__(message, details)


class ExtractionMissError(LinkResolverError):
    """Raised when fetched content lacks the structure an adapter expects."""

    def __init__(self, url: str, platform: str, reason: str):
        message = f"No media found on {platform}"
        details = {"url": url, "platform": platform, "reason": reason}
        super().__init__(message, details)


class AmbiguousRedirectError(LinkResolverError):
    """Raised when a short link redirects somewhere unexpected."""

    def __init__(self, url: str, final_url: str, platform: str):
        message = "Invalid URL after redirect"
        details = {"url": url, "final_url": final_url, "platform": platform}
        super().__init__(message, details)


class UpstreamError(LinkResolverError):
    """Raised when a third-party service fails or misbehaves."""

    retryable = False


class NetworkError(UpstreamError):
    """Raised when there's a network connectivity issue."""

    retryable = True

    def __init__(self, url: str, reason: str):
        message = f"Network error accessing {url}: {reason}"
        details = {"url": url, "reason": reason}
        super().__init__(message, details)


class RequestTimeoutError(NetworkError):
    """Raised when a request times out."""

    def __init__(self, url: str, timeout_seconds: Optional[float] = None):
        if timeout_seconds is None:
            reason = "Request timed out"
        else:
            reason = f"Request timed out after {timeout_seconds} seconds"
        super().__init__(url, reason)
        self.timeout_seconds = timeout_seconds


class APIError(UpstreamError):
    """Raised when an external API returns an error."""

    def __init__(self, url: str, platform: str, api_response: Dict[str, Any], status_code: Optional[int] = None):
        message = f"{platform} API error: {api_response.get('message', 'Unknown error')}"
        details = {
            "url": url,
            "platform": platform,
            "api_response": api_response,
            "status_code": status_code,
        }
        super().__init__(message, details)
        self.api_response = api_response
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is not None and self.status_code >= 500


class RateLimitExceededError(APIError):
    """Raised when API rate limit is exceeded."""

    def __init__(self, url: str, platform: str, retry_after: Optional[int] = None):
        api_response = {"message": "Rate limit exceeded"}
        if retry_after:
            api_response["retry_after"] = retry_after
        super().__init__(url, platform, api_response, 429)
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        return True


class MalformedResponseError(UpstreamError):
    """Raised when a response body cannot be decoded."""

    def __init__(self, url: str, reason: str):
        message = f"Malformed response from {url}: {reason}"
        details = {"url": url, "reason": reason}
        super().__init__(message, details)


def wrap_http_error(error: Exception, url: str, context: str = "", platform: str = "unknown") -> LinkResolverError:
    """
    Convert HTTP errors to more specific LinkResolverError types.

    Args:
        error: The original HTTP error
        url: The URL that caused the error
        context: Additional context about the operation
        platform: Platform name reported in API errors

    Returns:
        An appropriate LinkResolverError subclass
    """
    import httpx

    if isinstance(error, LinkResolverError):
        return error

    if isinstance(error, httpx.TimeoutException):
        return RequestTimeoutError(url)

    elif isinstance(error, httpx.TransportError):
        return NetworkError(url, f"Connection failed: {str(error)}")

    elif isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        if status_code == 429:
            retry_after = error.response.headers.get("Retry-After")
            retry_after_int = int(retry_after) if retry_after and retry_after.isdigit() else None
            return RateLimitExceededError(url, platform, retry_after_int)

        elif 400 <= status_code < 500:
            reason = f"Client error {status_code}"
            return APIError(url, platform, {"message": reason}, status_code)

        elif 500 <= status_code < 600:
            reason = f"Server error {status_code}"
            return APIError(url, platform, {"message": reason}, status_code)

    # Default fallback
    return UpstreamError(f"HTTP error in {context}: {str(error)}", {"url": url, "original_error": str(error)})


def create_user_friendly_error(error: Exception, url: Optional[str] = None) -> str:
    """
    Create a user-friendly error message from any exception.

    Args:
        error: The exception to convert
        url: Optional URL context

    Returns:
        A user-friendly error message
    """
    if isinstance(error, PlatformNotConfiguredError):
        platform = error.details.get("platform", "unknown")
        missing = error.details.get("missing_config", "configuration")
        return f"❌ {platform.title()} is not configured. Please set {missing} in your environment variables."

    elif isinstance(error, UnsupportedURLError):
        supported = error.details.get("supported_platforms", [])
        if supported:
            return f"❌ Unsupported URL. Supported platforms: {', '.join(supported)}"
        return "❌ Unsupported URL. Please check the URL format."

    elif isinstance(error, InvalidURLError):
        return f"❌ Invalid URL: {error.details.get('reason', 'Please check the URL format')}"

    elif isinstance(error, AmbiguousRedirectError):
        return "❌ The short link redirected to an unexpected page."

    elif isinstance(error, ExtractionMissError):
        return f"🔍 No media found: {error.details.get('reason', 'the page did not contain any media')}"

    elif isinstance(error, RateLimitExceededError):
        retry_after = error.retry_after
        if retry_after:
            return f"⏳ Rate limit exceeded. Please try again in {retry_after} seconds."
        return "⏳ Rate limit exceeded. Please try again later."

    elif isinstance(error, RequestTimeoutError):
        return "⏱️ Request timed out. Please try again."

    elif isinstance(error, NetworkError):
        return f"🌐 Network error: {error.details.get('reason', 'Please check your internet connection')}"

    elif isinstance(error, APIError):
        platform = error.details.get("platform", "API")
        return f"🔌 {platform.title()} API error: {error.api_response.get('message', 'Service temporarily unavailable')}"

    elif isinstance(error, ValidationError):
        field = error.details.get("field", "input")
        reason = error.details.get("reason", "invalid value")
        return f"📝 Invalid {field}: {reason}"

    elif isinstance(error, ConfigurationError):
        return f"⚙️ Configuration error: {error.message}"

    elif isinstance(error, LinkResolverError):
        return f"❌ {error.message}"

    else:
        # Generic error handling
        return f"❌ An unexpected error occurred: {str(error)}"

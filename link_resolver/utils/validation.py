"""
Validation helpers for incoming URLs and configuration dictionaries.
"""

import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from ..exceptions import InvalidURLError, ValidationError

DEFAULT_SCHEMES = ('http', 'https')

_HOSTNAME_RE = re.compile(
    r'^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?(\.[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?)*$',
    re.IGNORECASE
)

_PLACEHOLDER_RE = re.compile(
    r'^(your_.*_(key|id|token)|replace_.*|insert_.*|add_.*_here|example_.*|dummy.*|placeholder)',
    re.IGNORECASE
)

# section -> [(field, accepted types, requirement, minimum, ceiling, unit)]
_NUMERIC_FIELDS: Dict[str, List[Tuple[str, tuple, str, float, float, str]]] = {
    'http': [
        ('max_connections', (int,), "a positive integer", 1, 1000, ""),
        ('timeout', (int, float), "a positive number", 0.001, 600, " seconds"),
    ],
    'resolver': [
        ('max_recursion_depth', (int,), "a non-negative integer", 0, 3, ""),
        ('batch_size', (int,), "a positive integer", 1, 50, ""),
        ('drive_page_size', (int,), "an integer between 1 and 1000", 1, 1000, ""),
        ('flickr_per_page', (int,), "an integer between 1 and 500", 1, 500, ""),
    ],
}

# page sizes the upstream APIs reject outright above their ceiling
_HARD_CEILINGS = {'drive_page_size', 'flickr_per_page'}

_SECTION_LABELS = {
    'http': "HTTP",
    'resolver': "Resolver",
    'rate_limits': "Rate limits",
    'api_keys': "API keys",
}


def validate_url(url: str, allow_schemes: Optional[List[str]] = None) -> bool:
    """
    Check that a string is an absolute http(s) URL with a sane hostname.

    Raises:
        InvalidURLError: With the first problem found
    """
    if not url or not isinstance(url, str):
        raise InvalidURLError(url, "URL cannot be empty or non-string")

    url = url.strip()
    if not url:
        raise InvalidURLError(url, "URL cannot be empty after trimming whitespace")

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidURLError(url, f"Failed to parse URL: {e}")

    schemes = allow_schemes or DEFAULT_SCHEMES
    if not parsed.scheme:
        raise InvalidURLError(url, "URL must include a scheme (http:// or https://)")
    if parsed.scheme not in schemes:
        raise InvalidURLError(url, f"URL scheme must be one of: {', '.join(schemes)}")

    if not parsed.hostname:
        raise InvalidURLError(url, "URL must include a domain name")
    if not _HOSTNAME_RE.match(parsed.hostname):
        raise InvalidURLError(url, "Invalid domain name format")

    return True


def validate_api_key(api_key: str, platform: str, min_length: int = 10) -> bool:
    """Reject empty, short and obviously placeholder credentials."""
    if not api_key or not isinstance(api_key, str):
        raise ValidationError("api_key", api_key, f"{platform} API key cannot be empty")

    api_key = api_key.strip()
    if not api_key:
        raise ValidationError("api_key", api_key, f"{platform} API key cannot be empty after trimming")
    if len(api_key) < min_length:
        raise ValidationError("api_key", api_key, f"{platform} API key must be at least {min_length} characters")
    if _PLACEHOLDER_RE.match(api_key):
        raise ValidationError("api_key", api_key, f"{platform} API key appears to be a placeholder value")

    return True


def validate_rate_limit(rate: float, platform: str) -> bool:
    """Rate limits are requests per second, between 0 (exclusive) and 100."""
    if isinstance(rate, bool) or not isinstance(rate, (int, float)):
        raise ValidationError("rate_limit", rate, f"{platform} rate limit must be a number")
    if rate <= 0:
        raise ValidationError("rate_limit", rate, f"{platform} rate limit must be positive")
    if rate > 100:
        raise ValidationError("rate_limit", rate, f"{platform} rate limit seems too high (>100 req/s)")

    return True


def _check_numeric_fields(label: str, section: Dict[str, Any], fields) -> List[str]:
    errors = []
    for name, types, requirement, minimum, ceiling, unit in fields:
        if name not in section:
            continue
        value = section[name]
        if isinstance(value, bool) or not isinstance(value, types):
            errors.append(f"{label} {name} must be {requirement}")
        elif value < minimum or (name in _HARD_CEILINGS and value > ceiling):
            errors.append(f"{label} {name} must be {requirement}")
        elif value > ceiling:
            errors.append(f"{label} {name} seems too high (>{ceiling}{unit})")
    return errors


def _collect_reasons(items: Dict[str, Any], check) -> List[str]:
    errors = []
    for name, value in items.items():
        try:
            check(value, name)
        except ValidationError as e:
            errors.append(e.details['reason'])
    return errors


def validate_configuration_dict(config_dict: Dict[str, Any]) -> List[str]:
    """
    Validate a configuration dictionary as accepted by ``Config.from_dict``.

    Returns:
        Every problem found, empty when the dictionary is usable
    """
    errors = []

    for key, label in _SECTION_LABELS.items():
        if key not in config_dict:
            continue
        section = config_dict[key]
        if not isinstance(section, dict):
            errors.append(f"{label} configuration must be a dictionary")
            continue

        if key in _NUMERIC_FIELDS:
            errors.extend(_check_numeric_fields(label, section, _NUMERIC_FIELDS[key]))
        elif key == 'rate_limits':
            errors.extend(_collect_reasons(section, validate_rate_limit))
        elif key == 'api_keys':
            # unset credentials are allowed, the platform just stays unconfigured
            errors.extend(_collect_reasons({k: v for k, v in section.items() if v}, validate_api_key))

    return errors


def sanitize_url(url: str) -> str:
    """
    Strip surrounding whitespace and control characters, then validate.

    Raises:
        InvalidURLError: If nothing usable remains
    """
    if not url:
        raise InvalidURLError(url, "Cannot sanitize empty URL")

    url = ''.join(char for char in url.strip() if ord(char) >= 32)
    validate_url(url)
    return url

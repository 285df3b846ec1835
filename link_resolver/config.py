"""
Configuration management for the link resolver package.
"""

import os
from typing import Dict, Optional, Any
from dataclasses import asdict, dataclass, field

from .exceptions import ValidationError


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/65.0.3325.181 Safari/537.36"
)


@dataclass
class HTTPConfig:
    """HTTP client configuration."""
    max_connections: int = 100
    max_keepalive_connections: int = 20
    keepalive_expiry: float = 30.0
    timeout: float = 30.0
    max_retries: int = 3
    retry_backoff_factor: float = 1.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class RateLimitConfig:
    """Rate limiting configuration for different platforms."""
    flickr_api: float = 1.0  # requests per second
    imgur_api: float = 2.0
    streamable_api: float = 2.0
    gfycat_api: float = 2.0
    default: float = 5.0

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for HTTP client."""
        return {
            'www.flickr.com': self.flickr_api,
            'api.flickr.com': self.flickr_api,
            'api.imgur.com': self.imgur_api,
            'api.streamable.com': self.streamable_api,
            'api.gfycat.com': self.gfycat_api,
        }


@dataclass
class ResolverConfig:
    """Configuration for the resolution engine and its adapters."""
    max_recursion_depth: int = 1  # embedded links are followed one level deep
    batch_size: int = 5  # concurrent size lookups for flickr albums
    drive_page_size: int = 1000
    flickr_per_page: int = 500


# environment variable -> (config section, field, type)
ENV_OVERRIDES = {
    'HTTP_MAX_CONNECTIONS': ('http', 'max_connections', int),
    'HTTP_TIMEOUT': ('http', 'timeout', float),
    'HTTP_MAX_RETRIES': ('http', 'max_retries', int),
    'HTTP_RETRY_BACKOFF_FACTOR': ('http', 'retry_backoff_factor', float),
    'HTTP_USER_AGENT': ('http', 'user_agent', str),
    'RATE_LIMIT_FLICKR': ('rate_limits', 'flickr_api', float),
    'RATE_LIMIT_IMGUR': ('rate_limits', 'imgur_api', float),
    'RATE_LIMIT_STREAMABLE': ('rate_limits', 'streamable_api', float),
    'RATE_LIMIT_GFYCAT': ('rate_limits', 'gfycat_api', float),
    'RATE_LIMIT_DEFAULT': ('rate_limits', 'default', float),
    'RESOLVER_MAX_RECURSION_DEPTH': ('resolver', 'max_recursion_depth', int),
    'RESOLVER_BATCH_SIZE': ('resolver', 'batch_size', int),
    'RESOLVER_DRIVE_PAGE_SIZE': ('resolver', 'drive_page_size', int),
    'RESOLVER_FLICKR_PER_PAGE': ('resolver', 'flickr_per_page', int),
}


@dataclass
class Config:
    """Main configuration class."""
    http: HTTPConfig = field(default_factory=HTTPConfig)
    rate_limits: RateLimitConfig = field(default_factory=RateLimitConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)

    # API Keys
    flickr_api_key: Optional[str] = None
    imgur_client_id: Optional[str] = None
    twitter_bearer_token: Optional[str] = None
    google_drive_api_key: Optional[str] = None

    def __post_init__(self):
        """Load configuration from environment variables."""
        self._load_from_env()

    def _load_from_env(self):
        """Load configuration from environment variables."""
        # API Keys
        self.flickr_api_key = os.getenv('FLICKR_API_KEY', self.flickr_api_key)
        self.imgur_client_id = os.getenv('IMGUR_CLIENT_ID', self.imgur_client_id)
        self.twitter_bearer_token = os.getenv('TWITTER_BEARER_TOKEN', self.twitter_bearer_token)
        self.google_drive_api_key = os.getenv('GOOGLE_DRIVE_API_KEY', self.google_drive_api_key)

        for variable, (section, name, cast) in ENV_OVERRIDES.items():
            value = os.getenv(variable)
            if value:
                setattr(getattr(self, section), name, cast(value))

    def validate(self) -> None:
        """Validate configuration values."""
        errors = []

        # Validate HTTP config
        if self.http.max_connections <= 0:
            errors.append("HTTP max_connections must be positive")

        if self.http.timeout <= 0:
            errors.append("HTTP timeout must be positive")

        if self.http.max_retries < 0:
            errors.append("HTTP max_retries cannot be negative")

        if self.http.retry_backoff_factor < 0:
            errors.append("HTTP retry_backoff_factor cannot be negative")

        # Validate rate limits
        for name in ('flickr_api', 'imgur_api', 'streamable_api', 'gfycat_api', 'default'):
            if getattr(self.rate_limits, name) <= 0:
                errors.append(f"Rate limit {name} must be positive")

        # Validate resolver config
        if self.resolver.max_recursion_depth < 0:
            errors.append("Resolver max_recursion_depth cannot be negative")

        if self.resolver.batch_size <= 0:
            errors.append("Resolver batch_size must be positive")

        if not 1 <= self.resolver.drive_page_size <= 1000:
            errors.append("Resolver drive_page_size must be between 1 and 1000")

        if not 1 <= self.resolver.flickr_per_page <= 500:
            errors.append("Resolver flickr_per_page must be between 1 and 500")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def get_api_key(self, platform: str) -> Optional[str]:
        """Get API key for a specific platform."""
        key_mapping = {
            'flickr': self.flickr_api_key,
            'imgur': self.imgur_client_id,
            'twitter': self.twitter_bearer_token,
            'google_drive': self.google_drive_api_key,
        }
        return key_mapping.get(platform.lower())

    def is_platform_configured(self, platform: str) -> bool:
        """Check if a platform is properly configured."""
        api_key = self.get_api_key(platform)
        return api_key is not None and api_key.strip() != ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create configuration from dictionary."""
        from .utils.validation import validate_configuration_dict

        errors = validate_configuration_dict(data)
        if errors:
            raise ValidationError("config", data, "; ".join(errors))

        config = cls()

        if 'http' in data:
            config.http = HTTPConfig(**data['http'])

        if 'rate_limits' in data:
            config.rate_limits = RateLimitConfig(**data['rate_limits'])

        if 'resolver' in data:
            config.resolver = ResolverConfig(**data['resolver'])

        # API keys
        if 'api_keys' in data:
            api_keys = data['api_keys']
            config.flickr_api_key = api_keys.get('flickr')
            config.imgur_client_id = api_keys.get('imgur')
            config.twitter_bearer_token = api_keys.get('twitter')
            config.google_drive_api_key = api_keys.get('google_drive')

        try:
            config.validate()
        except ValueError as e:
            raise ValidationError("config", data, str(e)) from e

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'http': asdict(self.http),
            'rate_limits': asdict(self.rate_limits),
            'resolver': asdict(self.resolver),
            'api_keys': {
                'flickr': self.flickr_api_key,
                'imgur': self.imgur_client_id,
                'twitter': self.twitter_bearer_token,
                'google_drive': self.google_drive_api_key,
            }
        }


# Global configuration instance, used by the outer surfaces only.
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
        _config.validate()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    config.validate()
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None

import pytest
import os
from unittest.mock import patch
from link_resolver.config import (
    Config,
    HTTPConfig,
    RateLimitConfig,
    ResolverConfig,
    get_config,
    set_config,
    reset_config,
)
from link_resolver.exceptions import ValidationError


@pytest.mark.unit
def test_http_config_defaults():
    """Test HTTPConfig default values"""
    config = HTTPConfig()
    assert config.max_connections == 100
    assert config.max_keepalive_connections == 20
    assert config.keepalive_expiry == 30.0
    assert config.timeout == 30.0
    assert config.max_retries == 3
    assert config.retry_backoff_factor == 1.0
    assert "Chrome/65" in config.user_agent


@pytest.mark.unit
def test_rate_limit_config_to_dict():
    """Test RateLimitConfig to_dict conversion"""
    rate_dict = RateLimitConfig().to_dict()

    assert rate_dict == {
        'www.flickr.com': 1.0,
        'api.flickr.com': 1.0,
        'api.imgur.com': 2.0,
        'api.streamable.com': 2.0,
        'api.gfycat.com': 2.0,
    }


@pytest.mark.unit
def test_resolver_config_defaults():
    """Test ResolverConfig default values"""
    config = ResolverConfig()
    assert config.max_recursion_depth == 1
    assert config.batch_size == 5
    assert config.drive_page_size == 1000
    assert config.flickr_per_page == 500


@pytest.mark.unit
def test_config_defaults(clean_env):
    """Test Config default values"""
    config = Config()
    assert isinstance(config.http, HTTPConfig)
    assert isinstance(config.rate_limits, RateLimitConfig)
    assert isinstance(config.resolver, ResolverConfig)
    assert config.flickr_api_key is None
    assert config.imgur_client_id is None
    assert config.twitter_bearer_token is None
    assert config.google_drive_api_key is None


@pytest.mark.unit
def test_config_load_from_env(clean_env):
    """Test loading configuration from environment variables"""
    env_vars = {
        'FLICKR_API_KEY': 'test_flickr_key',
        'IMGUR_CLIENT_ID': 'test_imgur_id',
        'TWITTER_BEARER_TOKEN': 'test_twitter_token',
        'GOOGLE_DRIVE_API_KEY': 'test_drive_key',
        'HTTP_MAX_CONNECTIONS': '200',
        'HTTP_TIMEOUT': '60.0',
        'HTTP_MAX_RETRIES': '5',
        'RATE_LIMIT_FLICKR': '0.3',
        'RATE_LIMIT_IMGUR': '1.5',
        'RATE_LIMIT_DEFAULT': '8',
        'RESOLVER_MAX_RECURSION_DEPTH': '2',
        'RESOLVER_BATCH_SIZE': '10',
        'RESOLVER_DRIVE_PAGE_SIZE': '100',
    }

    with patch.dict(os.environ, env_vars):
        config = Config()

        assert config.flickr_api_key == 'test_flickr_key'
        assert config.imgur_client_id == 'test_imgur_id'
        assert config.twitter_bearer_token == 'test_twitter_token'
        assert config.google_drive_api_key == 'test_drive_key'

        assert config.http.max_connections == 200
        assert config.http.timeout == 60.0
        assert config.http.max_retries == 5

        assert config.rate_limits.flickr_api == 0.3
        assert config.rate_limits.imgur_api == 1.5
        assert config.rate_limits.default == 8.0

        assert config.resolver.max_recursion_depth == 2
        assert config.resolver.batch_size == 10
        assert config.resolver.drive_page_size == 100


@pytest.mark.unit
def test_config_validation_success(clean_env):
    """Test successful configuration validation"""
    Config().validate()


@pytest.mark.unit
def test_config_validation_failures(clean_env):
    """Test configuration validation failures"""
    config = Config()

    config.http.max_connections = -1
    with pytest.raises(ValueError, match="max_connections must be positive"):
        config.validate()
    config.http.max_connections = 100

    config.http.timeout = 0
    with pytest.raises(ValueError, match="timeout must be positive"):
        config.validate()
    config.http.timeout = 30.0

    config.rate_limits.flickr_api = 0
    with pytest.raises(ValueError, match="Rate limit flickr_api must be positive"):
        config.validate()
    config.rate_limits.flickr_api = 1.0

    config.resolver.max_recursion_depth = -1
    with pytest.raises(ValueError, match="max_recursion_depth cannot be negative"):
        config.validate()
    config.resolver.max_recursion_depth = 1

    config.resolver.drive_page_size = 1001
    with pytest.raises(ValueError, match="drive_page_size must be between 1 and 1000"):
        config.validate()
    config.resolver.drive_page_size = 1000

    config.resolver.flickr_per_page = 0
    with pytest.raises(ValueError, match="flickr_per_page must be between 1 and 500"):
        config.validate()


@pytest.mark.unit
def test_get_api_key(clean_env):
    """Test getting API keys for different platforms"""
    config = Config()
    config.flickr_api_key = 'flickr_key'
    config.imgur_client_id = 'imgur_key'
    config.twitter_bearer_token = 'twitter_key'
    config.google_drive_api_key = 'drive_key'

    assert config.get_api_key('flickr') == 'flickr_key'
    assert config.get_api_key('imgur') == 'imgur_key'
    assert config.get_api_key('twitter') == 'twitter_key'
    assert config.get_api_key('google_drive') == 'drive_key'
    assert config.get_api_key('unknown') is None

    # Test case insensitive
    assert config.get_api_key('FLICKR') == 'flickr_key'


@pytest.mark.unit
def test_is_platform_configured(clean_env):
    """Test platform configuration check"""
    config = Config()

    assert not config.is_platform_configured('flickr')
    assert not config.is_platform_configured('imgur')

    config.flickr_api_key = 'test_key'
    assert config.is_platform_configured('flickr')
    assert not config.is_platform_configured('imgur')

    config.flickr_api_key = '   '
    assert not config.is_platform_configured('flickr')


@pytest.mark.unit
def test_config_from_dict(clean_env):
    """Test creating configuration from dictionary"""
    config_data = {
        'http': {
            'max_connections': 150,
            'timeout': 45.0,
        },
        'rate_limits': {
            'flickr_api': 0.8,
            'imgur_api': 1.2,
        },
        'resolver': {
            'max_recursion_depth': 0,
            'batch_size': 8,
        },
        'api_keys': {
            'flickr': 'dict_flickr_key_123',
            'imgur': 'dict_imgur_key_123',
        }
    }

    config = Config.from_dict(config_data)

    assert config.http.max_connections == 150
    assert config.http.timeout == 45.0
    assert config.rate_limits.flickr_api == 0.8
    assert config.rate_limits.imgur_api == 1.2
    assert config.resolver.max_recursion_depth == 0
    assert config.resolver.batch_size == 8
    assert config.flickr_api_key == 'dict_flickr_key_123'
    assert config.imgur_client_id == 'dict_imgur_key_123'
    assert config.twitter_bearer_token is None


@pytest.mark.unit
def test_config_from_invalid_dict(clean_env):
    """Test that from_dict reports every validation problem"""
    with pytest.raises(ValidationError) as exc_info:
        Config.from_dict({
            'http': {'max_connections': -5},
            'resolver': {'batch_size': 0},
        })

    reason = exc_info.value.details['reason']
    assert "max_connections must be a positive integer" in reason
    assert "batch_size must be a positive integer" in reason


@pytest.mark.unit
def test_config_from_dict_rejects_oversized_pages(clean_env):
    """Test that page sizes above the upstream API maxima are rejected"""
    with pytest.raises(ValidationError) as exc_info:
        Config.from_dict({'resolver': {'drive_page_size': 5000, 'flickr_per_page': 501}})

    reason = exc_info.value.details['reason']
    assert "Resolver drive_page_size must be an integer between 1 and 1000" in reason
    assert "Resolver flickr_per_page must be an integer between 1 and 500" in reason


@pytest.mark.unit
def test_config_from_dict_runs_full_validation(clean_env):
    """Test that from_dict applies the same checks as validate()"""
    with pytest.raises(ValidationError) as exc_info:
        Config.from_dict({'http': {'max_retries': -1}})

    assert "HTTP max_retries cannot be negative" in exc_info.value.details['reason']


@pytest.mark.unit
def test_config_to_dict(clean_env):
    """Test converting configuration to dictionary"""
    config = Config()
    config.flickr_api_key = 'test_key'
    config.http.max_connections = 150

    config_dict = config.to_dict()

    assert config_dict['http']['max_connections'] == 150
    assert config_dict['api_keys']['flickr'] == 'test_key'
    assert config_dict['resolver']['max_recursion_depth'] == 1
    assert 'rate_limits' in config_dict


@pytest.mark.unit
def test_global_config_functions(clean_env):
    """Test global configuration functions"""
    reset_config()

    config1 = get_config()
    assert config1 is not None

    config2 = get_config()
    assert config1 is config2

    new_config = Config()
    new_config.flickr_api_key = 'test_key'
    set_config(new_config)

    config3 = get_config()
    assert config3 is new_config
    assert config3.flickr_api_key == 'test_key'

    reset_config()
    config4 = get_config()
    assert config4 is not config3
    reset_config()


@pytest.mark.unit
def test_config_validation_on_set(clean_env):
    """Test that set_config validates the configuration"""
    invalid_config = Config()
    invalid_config.http.max_connections = -1

    with pytest.raises(ValueError):
        set_config(invalid_config)

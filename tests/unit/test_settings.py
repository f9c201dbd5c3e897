"""
Unit tests for the configuration settings module.

Tests cover:
- Default configuration
- Session duration parsing
- Invalid field validation
- Startup validation of setting combinations
"""

import os
import pytest
from unittest.mock import patch

from config.settings import (
    DEFAULT_SESSION_LIFETIME_MS,
    DEFAULT_SESSION_REFRESH_MS,
    ConfigurationError,
    Environment,
    Settings,
    clear_settings_cache,
    create_settings_for_environment,
    get_settings,
    validate_startup,
)


def load_settings(**env) -> Settings:
    with patch.dict(os.environ, env, clear=True):
        return Settings(_env_file=None)


class TestSettings:
    """Tests for the Settings class."""
    
    def test_default_values_are_applied(self):
        settings = load_settings()
        
        assert settings.environment == Environment.DEVELOPMENT
        assert settings.kv_store_type == "memory"
        assert settings.redis_url is None
        assert settings.session_refresh_ms == DEFAULT_SESSION_REFRESH_MS == 86_400_000
        assert settings.session_lifetime_ms == DEFAULT_SESSION_LIFETIME_MS == 864_000_000
        assert settings.session_cookie_name == "sessionid"
        assert settings.session_cookie_secure is False
        assert settings.session_cookie_same_site == "lax"
        assert settings.session_rolling is True
        assert settings.log_level == "INFO"
    
    def test_values_loaded_from_environment(self):
        settings = load_settings(
            KV_STORE_TYPE="Redis",
            REDIS_URL="redis://cache:6379/0",
            SESSION_REFRESH_MS="60000",
            SESSION_COOKIE_NAME="express_sid",
            SESSION_COOKIE_SAME_SITE="Strict",
            LOG_LEVEL="debug",
        )
        
        assert settings.kv_store_type == "redis"
        assert settings.redis_url == "redis://cache:6379/0"
        assert settings.session_refresh_ms == 60000
        assert settings.session_cookie_name == "express_sid"
        assert settings.session_cookie_same_site == "strict"
        assert settings.log_level == "DEBUG"
    
    @pytest.mark.parametrize("value", ["", "none", "NULL"])
    def test_empty_refresh_disables_touch_writes(self, value):
        assert load_settings(SESSION_REFRESH_MS=value).session_refresh_ms is None
    
    def test_empty_lifetime_means_browser_session(self):
        assert load_settings(SESSION_LIFETIME_MS="").session_lifetime_ms is None
    
    def test_negative_refresh_rejected(self):
        with pytest.raises(Exception) as exc_info:
            load_settings(SESSION_REFRESH_MS="-1")
        assert "session_refresh_ms" in str(exc_info.value)
    
    def test_zero_lifetime_rejected(self):
        with pytest.raises(Exception):
            load_settings(SESSION_LIFETIME_MS="0")
    
    def test_invalid_kv_store_type_rejected(self):
        with pytest.raises(Exception) as exc_info:
            load_settings(KV_STORE_TYPE="dynamodb")
        assert "kv_store_type" in str(exc_info.value)
    
    def test_invalid_cookie_name_rejected(self):
        with pytest.raises(Exception):
            load_settings(SESSION_COOKIE_NAME="bad name;")
    
    def test_invalid_same_site_rejected(self):
        with pytest.raises(Exception):
            load_settings(SESSION_COOKIE_SAME_SITE="sometimes")
    
    def test_invalid_log_level_rejected(self):
        with pytest.raises(Exception) as exc_info:
            load_settings(LOG_LEVEL="INVALID_LEVEL")
        assert "log_level" in str(exc_info.value).lower()
    
    def test_redis_without_url_allowed_in_development(self):
        assert load_settings(KV_STORE_TYPE="redis").redis_url is None
    
    def test_redis_without_url_rejected_in_staging(self):
        with pytest.raises(Exception) as exc_info:
            load_settings(KV_STORE_TYPE="redis", ENVIRONMENT="staging")
        assert "redis_url" in str(exc_info.value)


class TestCreateSettingsForEnvironment:
    """Tests for the environment-aware settings factory."""
    
    def test_invalid_values_raise_configuration_error(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with patch.dict(os.environ, {"KV_STORE_TYPE": "dynamodb"}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                create_settings_for_environment(Environment.DEVELOPMENT)
        
        assert "kv_store_type" in exc_info.value.invalid_fields
        assert "development" in str(exc_info.value)
    
    def test_environment_file_overrides_base_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("SESSION_COOKIE_NAME=base\nLOG_LEVEL=WARNING\n")
        (tmp_path / ".env.staging").write_text(
            "SESSION_COOKIE_NAME=staging\nENVIRONMENT=staging\n"
        )
        
        with patch.dict(os.environ, {}, clear=True):
            settings = create_settings_for_environment(Environment.STAGING)
        
        assert settings.session_cookie_name == "staging"
        assert settings.log_level == "WARNING"
    
    def test_get_settings_is_cached(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        clear_settings_cache()
        try:
            with patch.dict(os.environ, {}, clear=True):
                assert get_settings() is get_settings()
        finally:
            clear_settings_cache()


class TestValidateStartup:
    """Tests for startup validation."""
    
    def test_development_defaults_pass(self):
        validate_startup(load_settings())
    
    def test_same_site_none_requires_secure(self):
        settings = load_settings(SESSION_COOKIE_SAME_SITE="none")
        
        with pytest.raises(ConfigurationError) as exc_info:
            validate_startup(settings)
        
        assert "session_cookie_same_site" in exc_info.value.invalid_fields
    
    def test_production_requires_secure_cookies_and_shared_database(self):
        settings = load_settings(ENVIRONMENT="production")
        
        with pytest.raises(ConfigurationError) as exc_info:
            validate_startup(settings)
        
        assert set(exc_info.value.invalid_fields) == {"session_cookie_secure", "kv_store_type"}
    
    def test_production_with_redis_and_secure_cookies_passes(self):
        settings = load_settings(
            ENVIRONMENT="production",
            KV_STORE_TYPE="redis",
            REDIS_URL="redis://cache:6379/0",
            SESSION_COOKIE_SECURE="true",
        )
        
        validate_startup(settings)

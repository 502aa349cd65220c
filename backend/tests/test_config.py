"""
Unit tests for environment-driven settings.
"""
import pytest

from src.core.config import ConfigError, Settings, load_settings


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings({"JWT_SECRET": "s"})
        assert settings.jwt_secret == "s"
        assert settings.allowed_origins == ()
        assert settings.allow_vercel_preview is False
        assert settings.environment == "development"
        assert settings.port == 5000
        assert settings.openai_model == "gpt-4o-mini"
        assert settings.ai_timeout_seconds == 30.0

    def test_missing_secret_is_fatal(self):
        with pytest.raises(ConfigError):
            load_settings({"ALLOWED_ORIGINS": "http://localhost:5173"})

    def test_origins_are_trimmed_and_normalized(self):
        settings = load_settings({
            "JWT_SECRET": "s",
            "ALLOWED_ORIGINS": " https://a.example.com/ ,http://localhost:5173,, ",
        })
        assert settings.allowed_origins == ("https://a.example.com", "http://localhost:5173")

    @pytest.mark.parametrize("env, expected", [
        ({"ALLOW_VERCEL_PREVIEW": "true"}, True),
        ({"ALLOW_VERCEL_PREVIEW": "TRUE"}, True),
        ({"ALLOW_VERCEL_PREVIEW": "false"}, False),
        ({"ALLOW_VERCEL_PREVIEW": "true", "APP_ENV": "production"}, False),
        ({"ALLOW_VERCEL_PREVIEW": "true", "NODE_ENV": "production"}, False),
    ])
    def test_preview_flag_is_gated_by_production(self, env, expected):
        settings = load_settings({"JWT_SECRET": "s", **env})
        assert settings.preview_enabled is expected

    def test_numeric_values(self):
        settings = load_settings({"JWT_SECRET": "s", "PORT": "8080", "AI_TIMEOUT_SECONDS": "12.5", "JWT_EXPIRES_IN": "60"})
        assert settings.port == 8080
        assert settings.ai_timeout_seconds == 12.5
        assert settings.jwt_expires_in == 60

    @pytest.mark.parametrize("name, value", [("PORT", "abc"), ("AI_TIMEOUT_SECONDS", "0"), ("JWT_EXPIRES_IN", "-5")])
    def test_invalid_numbers_are_fatal(self, name, value):
        with pytest.raises(ConfigError):
            load_settings({"JWT_SECRET": "s", name: value})

    def test_settings_are_immutable(self):
        settings = Settings(jwt_secret="s")
        with pytest.raises(AttributeError):
            settings.jwt_secret = "other"

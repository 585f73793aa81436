"""Tests for configuration, models and logging helpers."""

import pytest
from pydantic import ValidationError

from shared.config import OpenAISettings, Settings
from shared.errors import ConfigurationError, UpstreamStageError
from shared.models import ChatMessage, RelayConfig


ENV_VARS = ("OPENAI_API_KEY", "ASSISTANT_ID", "OPENAI_MODEL", "OPENAI_BASE_URL", "OPENAI_TIMEOUT")


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestOpenAISettings:
    """Tests for provider settings."""

    def test_reads_environment(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-env")
        clean_env.setenv("ASSISTANT_ID", "asst_env")
        clean_env.setenv("OPENAI_MODEL", "gpt-4.1")

        config = OpenAISettings().to_relay_config()

        assert config.api_key == "sk-env"
        assert config.assistant_id == "asst_env"
        assert config.model == "gpt-4.1"
        assert config.uses_assistants

    def test_defaults(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-env")

        config = OpenAISettings().to_relay_config()

        assert config.assistant_id == ""
        assert config.model == "gpt-4o-mini"
        assert config.base_url == "https://api.openai.com/v1"
        assert not config.uses_assistants

    @pytest.mark.parametrize("api_key", [None, ""])
    def test_missing_api_key(self, clean_env, api_key):
        settings = OpenAISettings(api_key=api_key)

        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY not set") as exc_info:
            settings.to_relay_config()

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == '{"error": "OPENAI_API_KEY not set"}'

    def test_api_key_not_in_repr(self, clean_env):
        settings = OpenAISettings(api_key="sk-secret")

        assert "sk-secret" not in repr(settings)
        assert "sk-secret" not in repr(settings.to_relay_config())


class TestSettings:
    """Tests for application settings."""

    def test_missing_yaml_uses_defaults(self, clean_env, tmp_path):
        settings = Settings.from_yaml(tmp_path / "missing.yaml")

        assert settings.log_level == "INFO"
        assert settings.server.port == 8000
        assert settings.server.cors_origins == ["*"]

    def test_yaml_with_environment_fallback(self, clean_env, tmp_path):
        """Values left out of the file still come from the environment."""
        clean_env.setenv("OPENAI_API_KEY", "sk-env")
        path = tmp_path / "settings.yaml"
        path.write_text(
            "environment: production\n"
            "log_level: DEBUG\n"
            "openai:\n"
            "  model: gpt-4.1-mini\n"
            "server:\n"
            "  port: 9000\n"
        )

        settings = Settings.from_yaml(path)

        assert settings.environment == "production"
        assert settings.json_logs
        assert settings.log_level == "DEBUG"
        assert settings.openai.model == "gpt-4.1-mini"
        assert settings.openai.api_key == "sk-env"
        assert settings.server.port == 9000


class TestModels:
    """Tests for request models."""

    @pytest.mark.parametrize("raw,role", [
        ({"content": "x"}, "user"),
        ({"role": None, "content": "x"}, "user"),
        ({"role": "", "content": "x"}, "user"),
        ({"role": "system", "content": "x"}, "system"),
    ])
    def test_role_default(self, raw, role):
        assert ChatMessage.model_validate(raw).role == role

    def test_content_coercion(self):
        assert ChatMessage.model_validate({"content": None}).content == ""
        assert ChatMessage.model_validate({}).content == ""
        assert ChatMessage.model_validate({"content": 42}).content == "42"

    def test_relay_config_requires_key(self):
        with pytest.raises(ValidationError):
            RelayConfig(api_key="")

    def test_relay_config_is_frozen(self):
        config = RelayConfig(api_key="sk-test")

        with pytest.raises(ValidationError):
            config.assistant_id = "asst_1"


class TestErrors:
    """Tests for the error hierarchy."""

    def test_stage_error_keeps_raw_body(self):
        error = UpstreamStageError("create_thread", 404, "not found")

        assert error.stage == "create_thread"
        assert error.status_code == 404
        assert error.body == "not found"

    def test_stage_error_empty_body(self):
        error = UpstreamStageError("create_thread", 500, "")

        assert error.body == '{"error": "Upstream error"}'


class TestLogging:
    """Tests for logging helpers."""

    def test_redact_secrets(self):
        from shared.logging import redact_secrets

        event = redact_secrets(None, "info", {"event": "x", "api_key": "sk-1", "Authorization": "Bearer sk-1"})

        assert event["api_key"] == "[REDACTED]"
        assert event["Authorization"] == "[REDACTED]"
        assert event["event"] == "x"

    def test_request_context_binds_and_unbinds(self):
        import structlog

        from shared.logging import request_context

        with request_context(path="/chat") as request_id:
            bound = structlog.contextvars.get_contextvars()
            assert bound["request_id"] == request_id
            assert bound["path"] == "/chat"

        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_request_context_unbinds_on_error(self):
        import structlog

        from shared.logging import request_context

        with pytest.raises(RuntimeError):
            with request_context():
                raise RuntimeError("boom")

        assert "request_id" not in structlog.contextvars.get_contextvars()

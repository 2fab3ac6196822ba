"""Tests for configuration management."""

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    get_available_llm_providers,
    get_environment,
    get_environment_info,
    get_role_models,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("WHITEBOARD_PLANNER_MODEL", raising=False)
        result = get_environment(EnvVar.WHITEBOARD_PLANNER_MODEL)
        assert result == "gpt-4.1-mini"

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("WHITEBOARD_AGENT_MODEL", "gpt-4o")
        result = get_environment(EnvVar.WHITEBOARD_AGENT_MODEL, override="gpt-4.1")
        assert result == "gpt-4.1"

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("WHITEBOARD_COMPLEX_MODEL", "gpt-4.1")
        result = get_environment(EnvVar.WHITEBOARD_COMPLEX_MODEL)
        assert result == "gpt-4.1"

    @pytest.mark.unit
    def test_bool_type_conversion_true(self, monkeypatch):
        """Boolean type conversion for true values."""
        for value in ("true", "1", "yes", "TRUE", "Yes"):
            monkeypatch.setenv("WHITEBOARD_USE_INTENT_CLASSIFIER", value)
            result = get_environment(EnvVar.WHITEBOARD_USE_INTENT_CLASSIFIER)
            assert result is True

    @pytest.mark.unit
    def test_bool_type_conversion_false(self, monkeypatch):
        """Boolean type conversion for false values."""
        for value in ("false", "0", "no", "FALSE", "No"):
            monkeypatch.setenv("WHITEBOARD_USE_INTENT_CLASSIFIER", value)
            result = get_environment(EnvVar.WHITEBOARD_USE_INTENT_CLASSIFIER)
            assert result is False

    @pytest.mark.unit
    def test_unparseable_bool_returns_default(self, monkeypatch):
        """Unrecognized boolean text falls back to the default."""
        monkeypatch.setenv("WHITEBOARD_USE_INTENT_CLASSIFIER", "maybe")
        assert get_environment(EnvVar.WHITEBOARD_USE_INTENT_CLASSIFIER) is True

    @pytest.mark.unit
    def test_string_type(self, monkeypatch):
        """String type returns as-is."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
        result = get_environment(EnvVar.OPENAI_API_KEY)
        assert result == "sk-test-key"
        assert isinstance(result, str)

    @pytest.mark.unit
    def test_none_default_for_api_keys(self, monkeypatch):
        """API keys default to None when not set."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        result = get_environment(EnvVar.OPENAI_API_KEY)
        assert result is None


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.WHITEBOARD_USE_INTENT_CLASSIFIER)
        assert isinstance(info, EnvConfig)
        assert info.name == "WHITEBOARD_USE_INTENT_CLASSIFIER"
        assert info.default is True
        assert info.var_type is bool
        assert info.category == "pipeline"

    @pytest.mark.unit
    def test_description_present(self):
        """Description field is populated."""
        info = get_environment_info(EnvVar.OPENAI_API_KEY)
        assert "OpenAI" in info.description


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_returns_all_variables(self):
        """Returns all EnvVar members when no category."""
        result = list_environment_variables()
        assert len(result) == len(EnvVar)
        assert all(isinstance(v, EnvVar) for v in result)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Filters by category correctly."""
        model_vars = list_environment_variables("models")
        assert EnvVar.WHITEBOARD_AGENT_MODEL in model_vars
        assert EnvVar.WHITEBOARD_PLANNER_MODEL in model_vars
        assert EnvVar.OPENAI_API_KEY not in model_vars

    @pytest.mark.unit
    def test_llm_category(self):
        """LLM category includes API keys."""
        llm_vars = list_environment_variables("llm")
        assert EnvVar.OPENAI_API_KEY in llm_vars
        assert EnvVar.ANTHROPIC_API_KEY in llm_vars


class TestConvenienceFunctions:
    """Tests for provider and role helpers."""

    @pytest.mark.unit
    def test_available_providers_follow_keys(self, monkeypatch):
        """Only providers with a key are reported."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        assert get_available_llm_providers() == ["openai"]

    @pytest.mark.unit
    def test_role_models_defaults(self, monkeypatch):
        """Every role resolves to its default model."""
        for var in list_environment_variables("models"):
            monkeypatch.delenv(var.value.name, raising=False)
        roles = get_role_models()
        assert roles == {
            "classifier": "gpt-4o-mini",
            "agent": "gpt-4.1-nano",
            "planner": "gpt-4.1-mini",
            "supervisor": "gpt-4.1-nano",
            "complex": "gpt-4o-mini",
        }

"""Tests for ConfigManager."""

import pytest

from jobcraft.models.config import Strategy
from jobcraft.services.config_manager import ConfigManager, ConfigValidationError

YAML_CONFIG = """
providers:
  groq:
    enabled: true
    api_key: ${GROQ_API_KEY}
    base_url: https://api.groq.com/openai/v1/
    models:
      text: llama-3.1-8b-instant
    timeout: 15
  claude:
    enabled: false
    api_key: ${CLAUDE_API_KEY}
    base_url: https://api.anthropic.com
    models:
      text: claude-3-5-sonnet-20241022
aggregation:
  strategy: consensus
  consensus_threshold: 0.6
cache:
  enabled: false
default_provider: groq
"""


def manager(env, config_path=None) -> ConfigManager:
    return ConfigManager(config_path, env=env, load_env_file=False)


class TestEnvironmentConfig:
    """Tests for configuration assembled from environment variables."""

    def test_defaults(self) -> None:
        config = manager({}).load_config()

        assert config.aggregation.strategy == Strategy.WEIGHTED
        assert config.providers["groq"].enabled
        assert not config.providers["claude"].enabled
        assert not config.providers["groq"].has_credentials
        assert config.cache.enabled

    def test_provider_variables(self) -> None:
        env = {
            "AI_CLAUDE_ENABLED": "true",
            "CLAUDE_API_KEY": "sk-ant-real",
            "CLAUDE_MODEL": "claude-3-haiku-20240307",
            "CLAUDE_TIMEOUT": "45",
            "GROQ_API_URL": "https://proxy.example.com/groq",
            "AI_TOGETHER_ENABLED": "off",
        }

        config = manager(env).load_config()

        claude = config.providers["claude"]
        assert claude.enabled
        assert claude.api_key == "sk-ant-real"
        assert claude.models.text == "claude-3-haiku-20240307"
        assert claude.timeout == 45.0
        assert config.providers["groq"].base_url == "https://proxy.example.com/groq"
        assert not config.providers["together"].enabled

    def test_aggregation_variables(self) -> None:
        env = {
            "AI_AGGREGATION_STRATEGY": "fastest",
            "AI_CONSENSUS_THRESHOLD": "0.5",
            "AI_MAX_RETRIES": "2",
            "AI_CACHE_ENABLED": "no",
            "AI_CACHE_TTL": "60",
            "AI_DEFAULT_PROVIDER": "gemini",
        }

        config = manager(env).load_config()

        assert config.aggregation.strategy == Strategy.FASTEST
        assert config.aggregation.consensus_threshold == 0.5
        assert config.aggregation.max_retries == 2
        assert not config.cache.enabled
        assert config.cache.ttl_seconds == 60
        assert config.default_provider == "gemini"

    def test_unknown_strategy_becomes_single(self) -> None:
        config = manager({"AI_AGGREGATION_STRATEGY": "random"}).load_config()

        assert config.aggregation.strategy == Strategy.SINGLE

    def test_invalid_boolean(self) -> None:
        with pytest.raises(ConfigValidationError, match="AI_GROQ_ENABLED"):
            manager({"AI_GROQ_ENABLED": "maybe"}).load_config()

    def test_invalid_number(self) -> None:
        with pytest.raises(ConfigValidationError):
            manager({"AI_CONSENSUS_THRESHOLD": "high"}).load_config()

    def test_config_is_cached(self) -> None:
        config_manager = manager({})

        assert config_manager.load_config() is config_manager.load_config()


class TestYamlConfig:
    """Tests for configuration loaded from YAML."""

    def test_substitutes_environment(self, tmp_path) -> None:
        path = tmp_path / "ai.yaml"
        path.write_text(YAML_CONFIG)

        config = manager({"GROQ_API_KEY": "gsk-real"}, str(path)).load_config()

        groq = config.providers["groq"]
        assert groq.api_key == "gsk-real"
        assert groq.base_url == "https://api.groq.com/openai/v1"
        assert groq.timeout == 15.0
        assert config.aggregation.strategy == Strategy.CONSENSUS
        assert not config.cache.enabled

    def test_unset_variable_is_left_untouched(self, tmp_path) -> None:
        """An unresolved reference stays literal."""
        path = tmp_path / "ai.yaml"
        path.write_text(YAML_CONFIG)

        config = manager({}, str(path)).load_config()

        assert config.providers["claude"].api_key == "${CLAUDE_API_KEY}"

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            manager({}, str(tmp_path / "missing.yaml")).load_config()

    def test_empty_file_uses_defaults(self, tmp_path) -> None:
        path = tmp_path / "ai.yaml"
        path.write_text("")

        config = manager({}, str(path)).load_config()

        assert config.default_provider == "groq"

    def test_non_mapping_root(self, tmp_path) -> None:
        path = tmp_path / "ai.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigValidationError, match="mapping"):
            manager({}, str(path)).load_config()

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "ai.yaml"
        path.write_text("providers: [unclosed\n")

        with pytest.raises(ConfigValidationError):
            manager({}, str(path)).load_config()

    def test_invalid_values(self, tmp_path) -> None:
        path = tmp_path / "ai.yaml"
        path.write_text("aggregation:\n  consensus_threshold: 3\n")

        with pytest.raises(ConfigValidationError, match="Invalid configuration"):
            manager({}, str(path)).load_config()

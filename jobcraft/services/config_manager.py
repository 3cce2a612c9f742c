"""AI configuration loading.

ConfigManager builds an AIConfig from a YAML file (with ``${VAR}``
substitution) or from ``AI_*`` and ``<PROVIDER>_*`` environment variables,
after loading any ``.env`` file. Invalid values raise ConfigValidationError.
"""

import os
from pathlib import Path
from string import Template
from typing import Any, Dict, Mapping, Optional

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from jobcraft.models.config import AIConfig, default_providers

logger = structlog.get_logger()

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigValidationError(Exception):
    """Configuration validation failed"""

    pass


class ConfigManager:
    """Loads AI configuration from a YAML file or the environment.

    With ``config_path`` set, the YAML file is read, ``${VAR}`` references
    are substituted from the environment and the result is validated.
    Without it, the configuration is assembled from environment variables
    (``AI_GROQ_ENABLED``, ``GROQ_API_KEY``, ``AI_AGGREGATION_STRATEGY``...)
    over the built-in defaults.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        load_env_file: bool = True,
    ):
        self.config_path = Path(config_path) if config_path else None
        self._env = env
        self.load_env_file = load_env_file
        self.env_loaded = False
        self._config: Optional[AIConfig] = None

    @property
    def env(self) -> Mapping[str, str]:
        return self._env if self._env is not None else os.environ

    def load_config(self) -> AIConfig:
        """Load and validate configuration"""
        if self._config:
            return self._config

        # 1. Load .env
        if self.load_env_file and not self.env_loaded:
            load_dotenv()
            self.env_loaded = True

        # 2. File or environment
        if self.config_path is not None:
            config_data = self._read_yaml(self.config_path)
        else:
            config_data = self._from_env()

        # 3. Validate with Pydantic
        try:
            self._config = AIConfig(**config_data)
        except (ValidationError, TypeError) as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            source=str(self.config_path) if self.config_path else "environment",
            enabled=[k for k, p in self._config.providers.items() if p.enabled],
            strategy=self._config.aggregation.strategy.value,
        )
        return self._config

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            raw_content = path.read_text()
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        try:
            # safe_substitute leaves unknown ${VAR} references untouched
            substituted = Template(raw_content).safe_substitute(self.env)
            config_data = yaml.safe_load(substituted)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigValidationError(
                f"Failed to parse YAML or substitute variables: {e}"
            )

        if config_data is None:
            return {}
        if not isinstance(config_data, dict):
            raise ConfigValidationError("Configuration root must be a mapping")
        return config_data

    def _from_env(self) -> Dict[str, Any]:
        env = self.env
        providers: Dict[str, Any] = {}

        for key, defaults in default_providers().items():
            prefix = key.upper()
            provider = defaults.model_dump()
            provider["enabled"] = _env_bool(
                env, f"AI_{prefix}_ENABLED", defaults.enabled
            )
            provider["api_key"] = env.get(f"{prefix}_API_KEY") or None
            if env.get(f"{prefix}_API_URL"):
                provider["base_url"] = env[f"{prefix}_API_URL"]
            if env.get(f"{prefix}_MODEL"):
                provider["models"]["text"] = env[f"{prefix}_MODEL"]
            if env.get(f"{prefix}_MAX_TOKENS"):
                provider["max_tokens"] = env[f"{prefix}_MAX_TOKENS"]
            if env.get(f"{prefix}_TIMEOUT"):
                provider["timeout"] = env[f"{prefix}_TIMEOUT"]
            providers[key] = provider

        config: Dict[str, Any] = {
            "providers": providers,
            "aggregation": {},
            "cache": {"enabled": _env_bool(env, "AI_CACHE_ENABLED", True)},
        }
        if env.get("AI_AGGREGATION_STRATEGY"):
            config["aggregation"]["strategy"] = env["AI_AGGREGATION_STRATEGY"]
        if env.get("AI_CONSENSUS_THRESHOLD"):
            config["aggregation"]["consensus_threshold"] = env["AI_CONSENSUS_THRESHOLD"]
        if env.get("AI_MAX_RETRIES"):
            config["aggregation"]["max_retries"] = env["AI_MAX_RETRIES"]
        if env.get("AI_CACHE_TTL"):
            config["cache"]["ttl_seconds"] = env["AI_CACHE_TTL"]
        if env.get("AI_CACHE_DIR"):
            config["cache"]["cache_dir"] = env["AI_CACHE_DIR"]
        if env.get("AI_DEFAULT_PROVIDER"):
            config["default_provider"] = env["AI_DEFAULT_PROVIDER"]

        return config


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ConfigValidationError(f"{name} must be a boolean, got {value!r}")

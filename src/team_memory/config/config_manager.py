"""
Configuration management for the team memory server.

This module provides:
- YAML configuration parsing with validation
- .env loading and environment variable overrides
- An immutable AppConfig value built once at process start
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.supermemory.ai/v4"
DEFAULT_CONFIG_FILE = "config.yml"
SUPPORTED_LANGUAGES = ("en", "es")


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SupermemoryConfig(_FrozenModel):
    """Remote memory API settings."""
    api_key: Optional[str] = Field(default=None, description="Supermemory API key")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Supermemory API base URL")
    store_endpoint: Literal["conversations", "memories"] = Field(
        default="conversations",
        description="Endpoint used to store new memories"
    )

    @field_validator('api_key')
    @classmethod
    def validate_api_key(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        if not v or not v.startswith(("http://", "https://")):
            raise ValueError("Base URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class UserConfig(_FrozenModel):
    """Identity of the person running this server."""
    default_user_id: str = Field(default="user", description="Identity used as container tag")
    language: str = Field(default="en", description="Language of tool responses")

    @field_validator('default_user_id')
    @classmethod
    def validate_user_id(cls, v):
        if not v or not v.strip():
            raise ValueError("default_user_id cannot be empty")
        return v.strip()

    @field_validator('language', mode='before')
    @classmethod
    def validate_language(cls, v):
        # LANGUAGE doubles as the gettext locale list, e.g. "es_ES:es"
        code = str(v or "").split(":")[0].split(".")[0].split("_")[0].lower()
        if code not in SUPPORTED_LANGUAGES:
            logger.warning(f"Unsupported language '{v}', falling back to en")
            return "en"
        return code


class PersonalizationConfig(_FrozenModel):
    """Text personalization applied before storing content."""
    enabled: bool = Field(default=True, description="Rewrite first-person references")
    languages: List[str] = Field(
        default_factory=lambda: ["es", "en"],
        description="Rule sets applied, in order"
    )
    attribute_content: bool = Field(default=False, description="Prefix stored content with the author")

    @field_validator('languages')
    @classmethod
    def validate_languages(cls, v):
        unknown = [lang for lang in v if lang not in SUPPORTED_LANGUAGES]
        if unknown:
            raise ValueError(f"Unsupported personalization languages: {', '.join(unknown)}")
        return v


class SearchConfig(_FrozenModel):
    """Search tool limits."""
    default_limit: int = Field(default=5, ge=1, description="Results returned when no limit is given")
    max_limit: int = Field(default=20, ge=1, description="Largest accepted limit")


class LogFileConfig(_FrozenModel):
    """Log file configuration."""
    enabled: bool = Field(default=False, description="Enable file logging")
    path: str = Field(default="~/.team_memory/logs/team-memory.log", description="Log file path")
    max_size: str = Field(default="10MB", description="Maximum log file size")
    backup_count: int = Field(default=5, ge=0, description="Number of backup files")


class LoggingConfig(_FrozenModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format for file output"
    )
    file: LogFileConfig = Field(default_factory=LogFileConfig)
    structured: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator('level', mode='before')
    @classmethod
    def validate_level(cls, v):
        v = str(v).upper()
        if v not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            raise ValueError("Level must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v


class AppConfig(_FrozenModel):
    """Complete application configuration."""
    supermemory: SupermemoryConfig = Field(default_factory=SupermemoryConfig)
    user: UserConfig = Field(default_factory=UserConfig)
    personalization: PersonalizationConfig = Field(default_factory=PersonalizationConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def is_configured(self) -> bool:
        """Whether a remote API credential is available."""
        return self.supermemory.is_configured


class ConfigManager:
    """
    Builds the application configuration.

    Sources, lowest precedence first: model defaults, YAML file, .env file,
    process environment.
    """

    ENV_MAPPINGS = {
        # Remote API
        'SUPERMEMORY_API_KEY': ['supermemory', 'api_key'],
        'SUPERMEMORY_BASE_URL': ['supermemory', 'base_url'],
        'SUPERMEMORY_STORE_ENDPOINT': ['supermemory', 'store_endpoint'],

        # Identity
        'DEFAULT_USER_ID': ['user', 'default_user_id'],
        'LANGUAGE': ['user', 'language'],

        # Personalization
        'TEAM_MEMORY_PERSONALIZATION_ENABLED': ['personalization', 'enabled'],
        'TEAM_MEMORY_PERSONALIZATION_LANGUAGES': ['personalization', 'languages'],
        'TEAM_MEMORY_ATTRIBUTE_CONTENT': ['personalization', 'attribute_content'],

        # Logging
        'TEAM_MEMORY_LOG_LEVEL': ['logging', 'level'],
        'TEAM_MEMORY_LOG_FILE_PATH': ['logging', 'file', 'path'],
        'TEAM_MEMORY_LOG_FILE_ENABLED': ['logging', 'file', 'enabled'],
    }

    # Values that must stay strings even when they look like numbers or booleans
    STRING_SETTINGS = {'SUPERMEMORY_API_KEY', 'DEFAULT_USER_ID', 'TEAM_MEMORY_LOG_FILE_PATH'}
    LIST_SETTINGS = {'TEAM_MEMORY_PERSONALIZATION_LANGUAGES'}

    def __init__(
        self,
        config_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[str] = ".env",
    ):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to YAML configuration file
            environ: Environment mapping, defaults to os.environ
            env_file: Path to a dotenv file, None disables .env loading
        """
        self.config_file = config_file or DEFAULT_CONFIG_FILE
        self.environ = environ if environ is not None else os.environ
        self.env_file = env_file
        self.config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """
        Load configuration from file with environment variable overrides.

        Returns:
            AppConfig: Loaded and validated configuration

        Raises:
            ConfigurationError: If the file cannot be parsed or a value is invalid
        """
        config_dict = self._read_file()
        config_dict = self._apply_env_overrides(config_dict, self._environment())

        try:
            self.config = AppConfig(**config_dict)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        logger.debug("Configuration loaded and validated successfully")
        return self.config

    def get_config(self) -> AppConfig:
        """Return the loaded configuration, loading it on first use."""
        if self.config is None:
            self.load_config()
        return self.config

    def _read_file(self) -> Dict[str, Any]:
        if not os.path.exists(self.config_file):
            logger.debug(f"Configuration file not found: {self.config_file}, using defaults")
            return {}

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {self.config_file}: {e}") from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"{self.config_file} must contain a mapping at the top level")

        logger.info(f"Loaded configuration from {self.config_file}")
        return config_dict

    def _environment(self) -> Dict[str, str]:
        """Merge the dotenv file under the process environment."""
        merged: Dict[str, str] = {}
        if self.env_file and os.path.exists(self.env_file):
            merged.update({k: v for k, v in dotenv_values(self.env_file).items() if v is not None})
            logger.debug(f"Loaded environment file {self.env_file}")
        merged.update(self.environ)
        return merged

    def _apply_env_overrides(
        self,
        config_dict: Dict[str, Any],
        environ: Mapping[str, str],
    ) -> Dict[str, Any]:
        """
        Apply environment variable overrides to configuration.

        Args:
            config_dict: Base configuration dictionary
            environ: Environment to read overrides from

        Returns:
            Dict: Configuration with environment overrides applied
        """
        for env_var, config_path in self.ENV_MAPPINGS.items():
            env_value = environ.get(env_var)
            if env_value is None or env_value == "":
                continue

            converted_value = self._convert_env_value(env_var, env_value)

            current_dict = config_dict
            for key in config_path[:-1]:
                if not isinstance(current_dict.get(key), dict):
                    current_dict[key] = {}
                current_dict = current_dict[key]

            current_dict[config_path[-1]] = converted_value
            if env_var != 'SUPERMEMORY_API_KEY':
                logger.debug(f"Applied environment override: {env_var} = {converted_value}")

        return config_dict

    def _convert_env_value(self, env_var: str, value: str) -> Union[str, int, float, bool, List[str]]:
        """Convert an environment variable string to the type its setting expects."""
        if env_var in self.STRING_SETTINGS:
            return value
        if env_var in self.LIST_SETTINGS:
            return [item.strip() for item in value.split(',') if item.strip()]

        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            if '.' not in value:
                return int(value)
        except ValueError:
            pass

        return value

    def save_config(self, config_file: Optional[str] = None) -> None:
        """
        Write the current configuration to YAML. The API key is never written.

        Args:
            config_file: Target path, defaults to the managed config file
        """
        target = Path(config_file or self.config_file)
        data = self.get_config().model_dump()
        data['supermemory']['api_key'] = None
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        logger.info(f"Configuration saved to {target}")

    def create_example_config(self, file_path: str) -> None:
        """Write a configuration file populated with defaults."""
        data = AppConfig().model_dump()
        target = Path(file_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8') as f:
            f.write("# Team memory configuration. Set the API key through SUPERMEMORY_API_KEY.\n")
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        logger.info(f"Example configuration written to {target}")

    def validate_config(self, config_dict: Dict[str, Any]) -> bool:
        """Return True if ``config_dict`` is a valid configuration."""
        try:
            AppConfig(**config_dict)
            return True
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            return False


def load_config(
    config_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[str] = ".env",
) -> AppConfig:
    """Convenience wrapper returning a freshly loaded AppConfig."""
    return ConfigManager(config_file, environ=environ, env_file=env_file).load_config()

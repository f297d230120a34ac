"""Tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError as PydanticValidationError

from team_memory.config.config_manager import (
    DEFAULT_BASE_URL,
    AppConfig,
    ConfigManager,
    SupermemoryConfig,
    UserConfig,
    load_config,
)
from team_memory.utils.error_handling import ConfigurationError


@pytest.fixture
def workdir(tmp_path, clean_env):
    """Run in an empty directory with no configuration in the environment."""
    clean_env.chdir(tmp_path)
    return tmp_path


class TestDefaults:

    def test_defaults_without_sources(self, workdir):
        config = load_config(environ={})

        assert config.supermemory.api_key is None
        assert config.supermemory.base_url == DEFAULT_BASE_URL
        assert config.supermemory.store_endpoint == "conversations"
        assert config.user.default_user_id == "user"
        assert config.user.language == "en"
        assert config.personalization.enabled is True
        assert config.personalization.languages == ["es", "en"]
        assert config.search.default_limit == 5
        assert config.logging.level == "INFO"
        assert not config.is_configured

    def test_config_is_frozen(self):
        config = AppConfig()
        with pytest.raises(PydanticValidationError):
            config.user = UserConfig(default_user_id="Ana")
        with pytest.raises(PydanticValidationError):
            config.supermemory.api_key = "sneaky"

    def test_unknown_keys_are_rejected(self):
        with pytest.raises(PydanticValidationError):
            AppConfig(unknown_section={})


class TestEnvironmentOverrides:

    def test_environment_values(self, workdir):
        config = load_config(environ={
            "SUPERMEMORY_API_KEY": "sk-123",
            "SUPERMEMORY_BASE_URL": "https://memory.example.com/v4/",
            "SUPERMEMORY_STORE_ENDPOINT": "memories",
            "DEFAULT_USER_ID": "Chris",
            "LANGUAGE": "es",
            "TEAM_MEMORY_PERSONALIZATION_ENABLED": "false",
            "TEAM_MEMORY_PERSONALIZATION_LANGUAGES": "en, es",
            "TEAM_MEMORY_ATTRIBUTE_CONTENT": "true",
            "TEAM_MEMORY_LOG_LEVEL": "debug",
        })

        assert config.is_configured
        assert config.supermemory.api_key == "sk-123"
        assert config.supermemory.base_url == "https://memory.example.com/v4"
        assert config.supermemory.store_endpoint == "memories"
        assert config.user.default_user_id == "Chris"
        assert config.user.language == "es"
        assert config.personalization.enabled is False
        assert config.personalization.languages == ["en", "es"]
        assert config.personalization.attribute_content is True
        assert config.logging.level == "DEBUG"

    def test_string_settings_are_not_converted(self, workdir):
        config = load_config(environ={"SUPERMEMORY_API_KEY": "12345", "DEFAULT_USER_ID": "007"})
        assert config.supermemory.api_key == "12345"
        assert config.user.default_user_id == "007"

    def test_empty_values_are_ignored(self, workdir):
        config = load_config(environ={"SUPERMEMORY_API_KEY": "", "DEFAULT_USER_ID": ""})
        assert config.supermemory.api_key is None
        assert config.user.default_user_id == "user"

    def test_whitespace_api_key_is_unconfigured(self, workdir):
        config = load_config(environ={"SUPERMEMORY_API_KEY": "   "})
        assert not config.is_configured

    @pytest.mark.parametrize("value, expected", [
        ("es_ES.UTF-8", "es"),
        ("es_ES:es", "es"),
        ("en_US:en", "en"),
        ("fr", "en"),
    ])
    def test_locale_style_language(self, workdir, value, expected):
        assert load_config(environ={"LANGUAGE": value}).user.language == expected

    def test_invalid_value_raises_configuration_error(self, workdir):
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(environ={"SUPERMEMORY_BASE_URL": "ftp://example.com"})

    def test_invalid_store_endpoint(self, workdir):
        with pytest.raises(ConfigurationError):
            load_config(environ={"SUPERMEMORY_STORE_ENDPOINT": "documents"})

    def test_defaults_to_process_environment(self, workdir, clean_env):
        clean_env.setenv("DEFAULT_USER_ID", "FromEnv")
        assert ConfigManager().load_config().user.default_user_id == "FromEnv"


class TestFileSources:

    def test_yaml_file(self, workdir):
        path = workdir / "team.yml"
        path.write_text(yaml.safe_dump({
            "user": {"default_user_id": "Ana", "language": "es"},
            "search": {"default_limit": 8, "max_limit": 30},
        }))

        config = load_config(str(path), environ={})

        assert config.user.default_user_id == "Ana"
        assert config.user.language == "es"
        assert config.search.default_limit == 8
        assert config.search.max_limit == 30

    def test_environment_beats_yaml(self, workdir):
        path = workdir / "team.yml"
        path.write_text(yaml.safe_dump({"user": {"default_user_id": "Ana"}}))
        config = load_config(str(path), environ={"DEFAULT_USER_ID": "Chris"})
        assert config.user.default_user_id == "Chris"

    def test_dotenv_file(self, workdir):
        (workdir / ".env").write_text("SUPERMEMORY_API_KEY=from-dotenv\nDEFAULT_USER_ID=Dot\n")
        config = load_config(environ={})
        assert config.supermemory.api_key == "from-dotenv"
        assert config.user.default_user_id == "Dot"

    def test_process_environment_beats_dotenv(self, workdir):
        (workdir / ".env").write_text("DEFAULT_USER_ID=Dot\n")
        config = load_config(environ={"DEFAULT_USER_ID": "Env"})
        assert config.user.default_user_id == "Env"

    def test_dotenv_disabled(self, workdir):
        (workdir / ".env").write_text("DEFAULT_USER_ID=Dot\n")
        config = load_config(environ={}, env_file=None)
        assert config.user.default_user_id == "user"

    def test_invalid_yaml(self, workdir):
        path = workdir / "broken.yml"
        path.write_text("user: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Cannot parse"):
            load_config(str(path), environ={})

    def test_non_mapping_yaml(self, workdir):
        path = workdir / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(path), environ={})

    def test_invalid_value_in_yaml(self, workdir):
        path = workdir / "bad.yml"
        path.write_text(yaml.safe_dump({"personalization": {"languages": ["de"]}}))
        with pytest.raises(ConfigurationError):
            load_config(str(path), environ={})


class TestPersistence:

    def test_save_config_never_writes_api_key(self, workdir):
        manager = ConfigManager(environ={"SUPERMEMORY_API_KEY": "secret", "DEFAULT_USER_ID": "Chris"})
        manager.load_config()
        target = workdir / "out" / "saved.yml"

        manager.save_config(str(target))

        data = yaml.safe_load(target.read_text())
        assert data["supermemory"]["api_key"] is None
        assert data["user"]["default_user_id"] == "Chris"
        assert "secret" not in target.read_text()

    def test_example_config_is_loadable(self, workdir):
        target = workdir / "config.example.yml"
        ConfigManager(environ={}).create_example_config(str(target))

        assert target.read_text().startswith("#")
        config = load_config(str(target), environ={})
        assert config == AppConfig()

    def test_validate_config(self):
        manager = ConfigManager(environ={})
        assert manager.validate_config({"user": {"default_user_id": "Ana"}})
        assert not manager.validate_config({"search": {"default_limit": 0}})

    def test_get_config_loads_once(self, workdir):
        manager = ConfigManager(environ={})
        assert manager.get_config() is manager.get_config()


class TestModels:

    def test_base_url_trailing_slash(self):
        assert SupermemoryConfig(base_url="https://x.test/v4/").base_url == "https://x.test/v4"

    def test_blank_user_id_rejected(self):
        with pytest.raises(PydanticValidationError):
            UserConfig(default_user_id="   ")

    def test_user_id_is_stripped(self):
        assert UserConfig(default_user_id="  Chris ").default_user_id == "Chris"

"""
Tests for Cloister configuration.
"""

import json
import pytest

from cloister import Config
from cloister.Config import ConfigManager
from cloister.Config.schema import (
    CONFIG_SCHEMA,
    ConfigCategory,
    get_schema_by_key,
)
from cloister.StorageGate.models import DirectoryAlias, StorageConfig


@pytest.fixture
def manager_files(temp_dir):
    """Paths for an isolated .env and config.json."""
    return temp_dir / ".env", temp_dir / "config.json"


class TestConfigSchema:
    """Tests for the configuration schema."""

    def test_every_key_prefixed(self):
        assert all(field.key.startswith("CLOISTER_") for field in CONFIG_SCHEMA)

    def test_data_dir_required(self):
        assert [f.key for f in CONFIG_SCHEMA if f.required] == ["CLOISTER_DATA_DIR"]

    def test_lookup(self):
        field = get_schema_by_key("CLOISTER_COPY_CHUNK_SIZE")

        assert field.default == 8192
        assert field.category == ConfigCategory.TRANSFER
        assert get_schema_by_key("NOPE") is None


class TestConfigManager:
    """Tests for ConfigManager value resolution."""

    def test_defaults(self, manager_files, clean_env):
        manager = ConfigManager(*manager_files)

        assert manager.get("CLOISTER_DATA_DIR") == "data/storage"
        assert manager.get("CLOISTER_CONFINE_PATHS") is False
        assert manager.get("CLOISTER_PUBLIC_ALIASES") == ["EXTERNAL"]
        assert manager.get("CLOISTER_PLATFORM_API_LEVEL") is None
        assert manager.get("CLOISTER_PLATFORM_API_LEVEL", 21) == 21

    def test_json_overrides_default(self, manager_files, clean_env):
        env_file, config_json = manager_files
        config_json.write_text(json.dumps({"CLOISTER_COPY_CHUNK_SIZE": 1024}))

        manager = ConfigManager(env_file, config_json)

        assert manager.get("CLOISTER_COPY_CHUNK_SIZE") == 1024

    def test_env_overrides_json(self, manager_files, clean_env):
        env_file, config_json = manager_files
        config_json.write_text(json.dumps({"CLOISTER_COPY_CHUNK_SIZE": 1024}))
        clean_env.setenv("CLOISTER_COPY_CHUNK_SIZE", "4096")

        manager = ConfigManager(env_file, config_json)

        assert manager.get("CLOISTER_COPY_CHUNK_SIZE") == 4096

    def test_dotenv_file_loaded(self, manager_files, clean_env):
        env_file, config_json = manager_files
        env_file.write_text("CLOISTER_CONFINE_PATHS=true\nCLOISTER_PUBLIC_ALIASES=EXTERNAL, EXTERNAL_STORAGE\n")

        manager = ConfigManager(env_file, config_json)

        assert manager.get("CLOISTER_CONFINE_PATHS") is True
        assert manager.get("CLOISTER_PUBLIC_ALIASES") == ["EXTERNAL", "EXTERNAL_STORAGE"]

    def test_unreadable_json_ignored(self, manager_files, clean_env):
        env_file, config_json = manager_files
        config_json.write_text("{not json")

        manager = ConfigManager(env_file, config_json)

        assert manager.get("CLOISTER_COPY_CHUNK_SIZE") == 8192

    def test_set_persists_non_defaults(self, manager_files, clean_env):
        env_file, config_json = manager_files
        manager = ConfigManager(env_file, config_json)

        assert manager.set("CLOISTER_CACHE_DIR", "/tmp/c") is True
        assert manager.set("NOT_A_KEY", "x") is False

        saved = json.loads(config_json.read_text())
        assert saved == {"CLOISTER_CACHE_DIR": "/tmp/c"}

    def test_validate(self, manager_files, clean_env):
        env_file, config_json = manager_files
        clean_env.setenv("CLOISTER_PLATFORM_API_LEVEL", "abc")
        manager = ConfigManager(env_file, config_json)

        valid, errors = manager.validate()

        assert valid is False
        assert any("CLOISTER_PLATFORM_API_LEVEL" in e for e in errors)


class TestStorageConfigFromSettings:
    """Tests for building the alias table from settings."""

    def test_from_settings(self, temp_dir, clean_env):
        clean_env.setenv("CLOISTER_DATA_DIR", str(temp_dir / "d"))
        clean_env.setenv("CLOISTER_EXTERNAL_DIR", str(temp_dir / "ext"))
        clean_env.setenv("CLOISTER_CONFINE_PATHS", "1")
        clean_env.setenv("CLOISTER_COPY_CHUNK_SIZE", "16")
        clean_env.setenv("CLOISTER_PUBLIC_ALIASES", "EXTERNAL,EXTERNAL_STORAGE")
        Config.reload()

        config = StorageConfig.from_settings()

        assert config.data_dir == str(temp_dir / "d")
        assert config.external_dir == str(temp_dir / "ext")
        assert config.confine_paths is True
        assert config.copy_chunk_size == 16
        assert config.public_aliases == [DirectoryAlias.EXTERNAL, DirectoryAlias.EXTERNAL_STORAGE]
        assert config.application_dir is None

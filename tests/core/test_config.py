"""Tests for demofolio.core.config."""

import json
import os

import pytest
import yaml

from demofolio.core.config import Config, get_config, reset_config
from demofolio.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _reset_singleton():
    """Reset config singleton between tests."""
    reset_config()
    yield
    reset_config()


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.get("paths.data_dir").endswith(".demofolio-data")
        assert config.get("storage.backend") == "local"
        assert config.get_bool("series.liability_floor") is True
        assert config.get_bool("storage.compress") is False
        assert config.get("logging.rotation") == "10 MB"
        assert config.get("logging.retention") == "7 days"

    def test_custom_data_dir(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        assert config.get("paths.data_dir") == tmp_dir
        assert config.get("paths.storage_dir") == os.path.join(tmp_dir, "storage")
        assert config.get("paths.log_dir") == os.path.join(tmp_dir, "logs")

    def test_custom_env_prefix(self, monkeypatch, tmp_dir):
        monkeypatch.setenv("MYAPP_STORAGE__BACKEND", "memory")
        config = Config(env_prefix="MYAPP_", data_dir=tmp_dir)
        assert config.get("storage.backend") == "memory"

    def test_yaml_config_file(self, tmp_config_file, tmp_dir):
        config = Config(config_file=tmp_config_file, data_dir=tmp_dir)
        assert config.get("paths.storage_dir") == os.path.join(tmp_dir, "storage")
        assert config.get_bool("storage.compress") is True
        # untouched defaults survive the merge
        assert config.get("logging.level") == "WARNING"

    def test_json_config_file(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "config.json")
        with open(config_path, "w") as f:
            json.dump({"series": {"liability_floor": False}}, f)

        config = Config(config_file=config_path, data_dir=tmp_dir)
        assert config.get_bool("series.liability_floor") is False

    def test_env_overrides_file(self, tmp_config_file, tmp_dir, monkeypatch):
        monkeypatch.setenv("DEMOFOLIO_STORAGE__COMPRESS", "false")
        config = Config(config_file=tmp_config_file, data_dir=tmp_dir)
        assert config.get("storage.compress") == "false"
        assert config.get_bool("storage.compress") is False

    def test_missing_file_raises(self, tmp_dir):
        with pytest.raises(ConfigurationError, match="not found"):
            Config(config_file=os.path.join(tmp_dir, "nope.yaml"))

    def test_unparseable_file_raises(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "broken.yaml")
        with open(config_path, "w") as f:
            f.write("storage: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Cannot parse"):
            Config(config_file=config_path)

    def test_non_mapping_file_raises(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "list.yaml")
        with open(config_path, "w") as f:
            yaml.dump(["a", "b"], f)
        with pytest.raises(ConfigurationError, match="mapping"):
            Config(config_file=config_path)

    def test_unsupported_extension(self, tmp_dir):
        config_path = os.path.join(tmp_dir, "config.toml")
        with open(config_path, "w") as f:
            f.write("x = 1\n")
        with pytest.raises(ConfigurationError, match="Unsupported"):
            Config(config_file=config_path)

    @pytest.mark.parametrize("raw,expected", [("1", True), ("YES", True), ("on", True), ("0", False), ("off", False)])
    def test_get_bool_strings(self, tmp_dir, raw, expected):
        config = Config(data_dir=tmp_dir)
        config.set("series.liability_floor", raw)
        assert config.get_bool("series.liability_floor") is expected

    def test_get_bool_invalid(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.set("storage.compress", "sometimes")
        with pytest.raises(ConfigurationError):
            config.get_bool("storage.compress")

    def test_get_missing_key(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        assert config.get("nonexistent.key") is None
        assert config.get("nonexistent.key", "fallback") == "fallback"

    def test_set(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.set("custom.nested.value", 42)
        assert config.get("custom.nested.value") == 42

    def test_get_data_dir(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        assert config.get_data_dir() == tmp_dir

    def test_extra_defaults(self, tmp_dir):
        config = Config(data_dir=tmp_dir, defaults={"custom": {"key": "value"}})
        assert config.get("custom.key") == "value"


class TestGetConfig:
    def test_singleton(self, tmp_dir):
        c1 = get_config(data_dir=tmp_dir)
        c2 = get_config()
        assert c1 is c2

    def test_reset_clears_singleton(self, tmp_dir):
        c1 = get_config(data_dir=tmp_dir)
        reset_config()
        c2 = get_config(data_dir=tmp_dir)
        assert c1 is not c2

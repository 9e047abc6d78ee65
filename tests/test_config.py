"""
Tests for the YAML configuration loader.
"""

import pytest

from capacity.config import load_config
from capacity.errors import ConfigError
from capacity.models import Catalog, Program

SAMPLE_CONFIG = """
programs:
  - id: week1
    limit: 5
    name: "Week 1"
  - id: week2
    limit: 24
settings:
  log_level: DEBUG
  port: 8080
  counters_file: data/counters.json
  keepalive_url: https://camp.example/
  keepalive_interval: 300
  cors_origins: "https://a.example, https://b.example"
"""


@pytest.fixture
def write_config(tmp_path):
    def _write(text):
        path = tmp_path / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


class TestLoadConfig:
    def test_programs_in_order(self, write_config):
        catalog, _ = load_config(write_config(SAMPLE_CONFIG), env={})
        assert catalog.ids == ["week1", "week2"]
        assert catalog.get("week1").display_name == "Week 1"
        assert catalog.get("week2").display_name == "week2"
        assert catalog.get("week2").limit == 24

    def test_settings(self, write_config):
        _, settings = load_config(write_config(SAMPLE_CONFIG), env={})
        assert settings.log_level == "DEBUG"
        assert settings.port == 8080
        assert settings.counters_file == "data/counters.json"
        assert settings.keepalive_url == "https://camp.example/"
        assert settings.keepalive_interval == 300
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.admin_key == ""

    def test_env_overrides(self, write_config):
        env = {
            "ADMIN_KEY": "s3cret",
            "PORT": "9000",
            "COUNTERS_FILE": "/var/lib/counters.json",
            "KEEPALIVE_URL": "https://other.example/",
        }
        _, settings = load_config(write_config(SAMPLE_CONFIG), env=env)
        assert settings.admin_key == "s3cret"
        assert settings.port == 9000
        assert settings.counters_file == "/var/lib/counters.json"
        assert settings.keepalive_url == "https://other.example/"

    def test_config_path_from_env(self, write_config):
        path = write_config(SAMPLE_CONFIG)
        catalog, _ = load_config(env={"CAPACITY_CONFIG": str(path)})
        assert catalog.ids == ["week1", "week2"]

    def test_missing_file_uses_defaults(self, tmp_path):
        catalog, settings = load_config(tmp_path / "nope.yaml", env={"PORT": "4000"})
        assert catalog.ids == ["week1", "week2", "summerA"]
        assert [p.limit for p in catalog] == [5, 24, 18]
        assert settings.port == 4000
        assert settings.cors_origins == ["*"]

    def test_numeric_name_becomes_text(self, write_config):
        text = "programs:\n  - {id: week1, limit: 5, name: 2024}\n"
        catalog, _ = load_config(write_config(text), env={})
        assert catalog.get("week1").display_name == "2024"

    def test_empty_program_list_uses_defaults(self, write_config):
        catalog, _ = load_config(write_config("programs: []\n"), env={})
        assert len(catalog) == 3


class TestInvalidConfig:
    def test_duplicate_ids(self, write_config):
        text = "programs:\n  - {id: a, limit: 1}\n  - {id: a, limit: 2}\n"
        with pytest.raises(ConfigError):
            load_config(write_config(text), env={})

    @pytest.mark.parametrize("limit", ["-1", "many", "2.5", "true"])
    def test_bad_limit(self, write_config, limit):
        with pytest.raises(ConfigError):
            load_config(write_config(f"programs:\n  - {{id: a, limit: {limit}}}\n"), env={})

    def test_missing_limit(self, write_config):
        with pytest.raises(ConfigError):
            load_config(write_config("programs:\n  - {id: a}\n"), env={})

    @pytest.mark.parametrize(
        "setting", ["port: http", "port: 80.5", "keepalive_interval: soon", "keepalive_interval: 0"]
    )
    def test_bad_numeric_setting(self, write_config, setting):
        with pytest.raises(ConfigError):
            load_config(write_config(f"settings:\n  {setting}\n"), env={})

    def test_catalog_rejects_non_string_name(self):
        with pytest.raises(ConfigError):
            Catalog([Program(id="week1", limit=5, name=2024)])

    def test_bad_port_env(self, write_config):
        with pytest.raises(ConfigError):
            load_config(write_config(SAMPLE_CONFIG), env={"PORT": "http"})

    def test_not_a_mapping(self, write_config):
        with pytest.raises(ConfigError):
            load_config(write_config("- just\n- a list\n"), env={})

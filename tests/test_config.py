"""Tests for YAML configuration loading and validation."""

import pytest

from courtmix.config_loader import (
    ConfigError,
    load_and_validate_config,
    load_config,
    validate_config,
)


def write_config(tmp_path, text):
    path = tmp_path / "courtmix.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestLoadConfig:

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "nope.yaml"))

    def test_empty_file(self, tmp_path):
        with pytest.raises(ConfigError, match="empty"):
            load_config(write_config(tmp_path, ""))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(write_config(tmp_path, "courts: [1, 2\n"))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="mapping"):
            load_config(write_config(tmp_path, "- 1\n- 2\n"))


class TestValidateConfig:

    def test_defaults(self):
        assert validate_config({}) == {
            "courts": 6,
            "mode": "random",
            "max_retries": 800,
            "random_seed": None,
            "database": None,
        }

    def test_full_config(self, tmp_path):
        path = write_config(
            tmp_path,
            "courts: 3\nmode: throne\nmax_retries: 200\nrandom_seed: 7\ndatabase: club.sqlite\n",
        )
        config = load_and_validate_config(path)

        assert config["courts"] == 3
        assert config["mode"] == "throne"
        assert config["max_retries"] == 200
        assert config["random_seed"] == 7
        assert config["database"] == "club.sqlite"

    @pytest.mark.parametrize("courts", [0, 7, "four", True])
    def test_invalid_courts(self, courts):
        with pytest.raises(ConfigError, match="courts"):
            validate_config({"courts": courts})

    def test_invalid_mode(self):
        with pytest.raises(ConfigError, match="mode must be one of"):
            validate_config({"mode": "swiss"})

    def test_up_down_river_mode_name(self):
        assert validate_config({"mode": "upDownRiver"})["mode"] == "upDownRiver"

    @pytest.mark.parametrize("retries", [0, -5, "many"])
    def test_invalid_max_retries(self, retries):
        with pytest.raises(ConfigError, match="max_retries"):
            validate_config({"max_retries": retries})

    def test_invalid_seed(self):
        with pytest.raises(ConfigError, match="random_seed"):
            validate_config({"random_seed": "abc"})

    def test_invalid_database(self):
        with pytest.raises(ConfigError, match="database"):
            validate_config({"database": 5})

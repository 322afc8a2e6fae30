"""Tests for configuration loading and saving."""

import os

from taskkeeper.config import Config, ConfigModel, get_config, load_config, save_config


class TestConfigModel:

    def test_defaults(self):
        config = ConfigModel()

        assert config.data_dir == os.path.expanduser("~/.taskkeeper")
        assert config.upcoming_days == 7
        assert config.date_format == "%Y-%m-%d"

    def test_yaml_round_trip(self, tmp_path):
        config = ConfigModel(data_dir=str(tmp_path), upcoming_days=14, default_category="Work")

        restored = ConfigModel.from_yaml(config.to_yaml())

        assert restored == config

    def test_unknown_keys_are_ignored(self, tmp_path):
        restored = ConfigModel.from_yaml(f"data_dir: {tmp_path}\ntheme: dark\n")

        assert restored.data_dir == str(tmp_path)
        assert not hasattr(restored, "theme")

    def test_paths(self, test_config):
        assert test_config.get_data_path("tasks.json").name == "tasks.json"
        assert test_config.get_config_path().name == "config.yaml"
        assert test_config.get_backup_path("stamp").name == "stamp"


class TestConfigManager:

    def test_load_creates_default_file(self, tmp_path):
        path = tmp_path / "config.yaml"

        config = load_config(path)

        assert path.exists()
        assert config == ConfigModel()
        assert get_config() is config

    def test_load_reads_existing_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        save_config(ConfigModel(data_dir=str(tmp_path), upcoming_days=3), path)

        config = load_config(path)

        assert config.upcoming_days == 3
        assert config.data_dir == str(tmp_path)

    def test_broken_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        config = load_config(path)

        assert config == ConfigModel()

    def test_reload_picks_up_changes(self, tmp_path):
        path = tmp_path / "config.yaml"
        save_config(ConfigModel(upcoming_days=3), path)
        load_config(path)
        save_config(ConfigModel(upcoming_days=5), path)

        Config.reset()
        assert load_config(path).upcoming_days == 5

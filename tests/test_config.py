"""Tests for runner configuration."""

import pytest
from pydantic import ValidationError

from wda_runner.config import Config, WdaConfig, find_config, list_configs, load_config


class TestWdaConfig:
    """Tests for WdaConfig."""

    def test_defaults(self):
        """Test default values."""
        config = WdaConfig()
        assert config.prebuilt_wda is False
        assert config.wda_path is None
        assert config.platform is None
        assert config.device_ip is None
        assert config.launch_timeout == 60
        assert config.log_dir is None

    def test_is_frozen(self):
        """Test that config cannot be changed after construction."""
        config = WdaConfig()
        with pytest.raises(ValidationError):
            config.launch_timeout = 5

    def test_from_capabilities_coerces_strings(self):
        """Test that string capability values are coerced."""
        config = WdaConfig.from_capabilities(
            {"prebuilt_wda": "true", "launch_timeout": "15", "device_ip": "1.2.3.4"}
        )
        assert config.prebuilt_wda is True
        assert config.launch_timeout == 15
        assert config.device_ip == "1.2.3.4"

    def test_from_capabilities_false_string(self):
        """Test that "false" keeps the default of building a new process."""
        config = WdaConfig.from_capabilities({"prebuilt_wda": "false"})
        assert config.prebuilt_wda is False

    def test_from_capabilities_ignores_unknown_keys(self):
        """Test that unrelated capabilities are ignored."""
        config = WdaConfig.from_capabilities({"bundleId": "com.example.app"})
        assert config == WdaConfig()

    def test_blank_device_ip_is_absent(self):
        """Test that a blank device_ip falls back to None."""
        assert WdaConfig(device_ip="  ").device_ip is None

    def test_rejects_non_positive_timeout(self):
        """Test that launch_timeout must be positive."""
        with pytest.raises(ValidationError):
            WdaConfig(launch_timeout=0)

    @pytest.mark.parametrize("value", ["1", "yes", "on", "sometimes", ""])
    def test_only_true_string_is_prebuilt(self, value):
        """Test that strings other than "true" still build a new agent."""
        config = WdaConfig.from_capabilities({"prebuilt_wda": value})
        assert config.prebuilt_wda is False

    def test_true_string_any_case(self):
        """Test that "TRUE" attaches to a running agent."""
        assert WdaConfig.from_capabilities({"prebuilt_wda": " TRUE "}).prebuilt_wda is True

    def test_null_flag_builds(self):
        """Test that an explicit null flag builds a new agent."""
        assert WdaConfig.from_capabilities({"prebuilt_wda": None}).prebuilt_wda is False


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_config_basic(self, config_file):
        """Test loading a config file."""
        config = load_config(config_file)

        assert config.wda.wda_path == "/opt/WebDriverAgent"
        assert config.wda.platform == "iOS Simulator"
        assert config.wda.device_name == "iPhone 15"
        assert config.wda.device_id == "ABCD-1234"
        assert config.wda.os_version == "17.2"
        assert config.wda.device_ip == "10.0.0.7"
        assert config.wda.launch_timeout == 90
        assert config.wda.log_dir == "test_logs"

    def test_load_config_empty_file(self, temp_dir):
        """Test that an empty file yields defaults."""
        path = temp_dir / "empty.toml"
        path.write_text("")
        assert load_config(path) == Config()

    def test_load_config_file_not_found(self, temp_dir):
        """Test error on missing file."""
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "nonexistent.toml")


class TestFindConfig:
    """Tests for find_config."""

    def test_direct_path(self, config_file):
        """Test that a .toml path is returned as-is."""
        assert find_config(str(config_file)) == config_file

    def test_missing_direct_path(self, temp_dir):
        """Test error for a missing direct path."""
        with pytest.raises(FileNotFoundError, match="No config named"):
            find_config(str(temp_dir / "missing.toml"))

    def test_bundled_config(self):
        """Test resolving a bundled config by name."""
        path = find_config("simulator")
        assert path.name == "simulator.toml"
        assert load_config(path).wda.platform == "iOS Simulator"

    def test_unknown_name(self):
        """Test error for an unknown config name."""
        with pytest.raises(FileNotFoundError, match="bundled: device, simulator"):
            find_config("no-such-config")

    def test_list_configs(self):
        """Test the bundled config names."""
        assert list_configs() == ["device", "simulator"]

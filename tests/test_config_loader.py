"""Tests for configuration loader."""
import os
import tempfile
import pytest

from chrome_cookies.utils.config_loader import (
    ConfigurationError,
    DEFAULT_CONFIG,
    load_config,
    validate_browser_config
)


def write_config(content: str) -> str:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write(content)
        return f.name


class TestConfigLoader:
    """Test configuration loading functionality."""

    def test_defaults_without_file(self):
        config = load_config(None)
        assert config['browser']['default_profile'] == 'Default'
        assert config['browser']['launch_timeout'] == 30.0
        assert config['browser']['connect_attempts'] == 3
        assert config['cookies']['output_dir'] == 'data/cookies'
        assert config['browser']['user_data_dir'] is None

    def test_env_var_substitution(self, monkeypatch):
        monkeypatch.setenv('TEST_CHROME_PROFILE', 'Profile 4')
        config_path = write_config("""
browser:
  default_profile: ${TEST_CHROME_PROFILE}
""")
        try:
            config = load_config(config_path)
            assert config['browser']['default_profile'] == 'Profile 4'
        finally:
            os.unlink(config_path)

    def test_default_values(self, monkeypatch):
        monkeypatch.delenv('TEST_COOKIE_DIR', raising=False)
        config_path = write_config("""
cookies:
  output_dir: ${TEST_COOKIE_DIR:/tmp/jd-cookies}
""")
        try:
            config = load_config(config_path)
            assert config['cookies']['output_dir'] == '/tmp/jd-cookies'
        finally:
            os.unlink(config_path)

    def test_unset_variable_means_not_configured(self, monkeypatch):
        monkeypatch.delenv('TEST_CHROME_DIR', raising=False)
        config_path = write_config("""
browser:
  user_data_dir: ${TEST_CHROME_DIR}
  executable: ${TEST_CHROME_EXE:}
""")
        try:
            config = load_config(config_path)
            assert config['browser']['user_data_dir'] is None
            assert config['browser']['executable'] is None
        finally:
            os.unlink(config_path)

    def test_missing_keys_get_defaults(self):
        config_path = write_config("""
browser:
  launch_timeout: 12
""")
        try:
            config = load_config(config_path)
            assert config['browser']['launch_timeout'] == 12.0
            assert config['browser']['close_timeout'] == float(DEFAULT_CONFIG['browser']['close_timeout'])
            assert config['logging']['level'] == 'INFO'
        finally:
            os.unlink(config_path)

    def test_empty_file(self):
        config_path = write_config("")
        try:
            assert load_config(config_path)['browser']['default_profile'] == 'Default'
        finally:
            os.unlink(config_path)

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_config('/nonexistent/config.yaml')


class TestBrowserValidation:
    """Test browser section validation."""

    def _config(self, **overrides):
        browser = dict(DEFAULT_CONFIG['browser'])
        browser.update(overrides)
        return {'browser': browser}

    @pytest.mark.parametrize('key', ['launch_timeout', 'command_timeout', 'close_timeout'])
    def test_timeouts_must_be_positive(self, key):
        with pytest.raises(ConfigurationError, match=f"browser.{key} must be greater than 0"):
            validate_browser_config(self._config(**{key: 0}))

    def test_timeout_must_be_number(self):
        with pytest.raises(ConfigurationError, match="number of seconds"):
            validate_browser_config(self._config(launch_timeout='soon'))

    def test_connect_attempts(self):
        with pytest.raises(ConfigurationError, match="at least 1"):
            validate_browser_config(self._config(connect_attempts=0))

        config = self._config(connect_attempts='5')
        validate_browser_config(config)
        assert config['browser']['connect_attempts'] == 5

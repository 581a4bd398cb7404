"""Test configuration loading"""

from unittest.mock import patch

import pytest

from lastfm_scrobbler.core.config import Config, LastFmConfig, LoggingConfig, load_config
from lastfm_scrobbler.core.exceptions import ConfigError, UrlConfigurationError
from lastfm_scrobbler.lastfm.auth_mode import KeyedAuth, TokenAuth


def write_config(temp_dir, content):
    path = temp_dir / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    """Test load_config with files and environment overrides"""

    @pytest.fixture(autouse=True)
    def isolated_cwd(self, temp_dir, monkeypatch):
        """Keep a stray ./config.yaml out of the default lookup"""
        monkeypatch.chdir(temp_dir)

    def test_lastfm_section(self, temp_dir):
        path = write_config(temp_dir, """
lastfm:
  api_key: "file_key"
  api_secret: "file_secret"
  session_key: "file_sk"
logging:
  level: "debug"
""")

        config = load_config(path, environ={}, use_dotenv=False)

        assert config.lastfm == LastFmConfig("file_key", "file_secret", "file_sk")
        assert config.server is None
        assert config.logging.level == "DEBUG"
        assert config.logging.directory is None
        assert isinstance(config.auth_mode(), KeyedAuth)

    def test_environment_only(self, temp_dir):
        environ = {
            "LASTFM_API_KEY": "env_key",
            "LASTFM_API_SECRET": "env_secret",
        }

        config = load_config(None, environ=environ, use_dotenv=False)

        assert config.lastfm.api_key == "env_key"
        assert config.lastfm.session_key is None

    def test_environment_overrides_file(self, temp_dir):
        path = write_config(temp_dir, """
lastfm:
  api_key: "file_key"
  api_secret: "file_secret"
""")

        config = load_config(path, environ={"LASTFM_SESSION_KEY": "env_sk", "LASTFM_API_KEY": "env_key"}, use_dotenv=False)

        assert config.lastfm.api_key == "env_key"
        assert config.lastfm.api_secret == "file_secret"
        assert config.lastfm.session_key == "env_sk"

    def test_server_section(self, temp_dir):
        path = write_config(temp_dir, """
server:
  base_url: "https://scrob.example.com/api/"
  token: "tok"
logging:
  directory: "logs"
""")

        config = load_config(path, environ={}, use_dotenv=False)

        assert config.lastfm is None
        assert config.server.token == "tok"
        assert config.logging.directory.name == "logs"
        assert isinstance(config.auth_mode(), TokenAuth)

    def test_missing_explicit_file(self, temp_dir):
        with pytest.raises(ConfigError):
            load_config(temp_dir / "nope.yaml", environ={}, use_dotenv=False)

    def test_no_credentials(self, temp_dir):
        path = write_config(temp_dir, "logging:\n  level: INFO\n")

        with pytest.raises(ConfigError):
            load_config(path, environ={}, use_dotenv=False)

    def test_both_backends(self, temp_dir):
        environ = {
            "LASTFM_API_KEY": "k",
            "LASTFM_API_SECRET": "s",
            "SCROBBLE_SERVER_URL": "https://scrob.example.com/",
            "SCROBBLE_SERVER_TOKEN": "t",
        }

        with pytest.raises(ConfigError):
            load_config(None, environ=environ, use_dotenv=False)

    @pytest.mark.parametrize("environ", [
        {"LASTFM_API_KEY": "k"},
        {"SCROBBLE_SERVER_TOKEN": "t"},
        {"LASTFM_SESSION_KEY": "sk"},
    ])
    def test_partial_credentials(self, environ):
        with pytest.raises(ConfigError):
            load_config(None, environ=environ, use_dotenv=False)

    def test_explicit_environ_skips_dotenv(self):
        environ = {"LASTFM_API_KEY": "k", "LASTFM_API_SECRET": "s"}

        with patch("lastfm_scrobbler.core.config.load_dotenv") as mock_load_dotenv:
            load_config(None, environ=environ)

        mock_load_dotenv.assert_not_called()

    def test_os_environ_loads_dotenv(self, monkeypatch):
        monkeypatch.setenv("LASTFM_API_KEY", "k")
        monkeypatch.setenv("LASTFM_API_SECRET", "s")
        for name in ("LASTFM_SESSION_KEY", "SCROBBLE_SERVER_URL", "SCROBBLE_SERVER_TOKEN"):
            monkeypatch.delenv(name, raising=False)

        with patch("lastfm_scrobbler.core.config.load_dotenv") as mock_load_dotenv:
            config = load_config(None)

        mock_load_dotenv.assert_called_once_with()
        assert config.lastfm.api_key == "k"

    def test_bad_server_url_fails_early(self):
        environ = {"SCROBBLE_SERVER_URL": "scrob.example.com", "SCROBBLE_SERVER_TOKEN": "t"}

        with pytest.raises(UrlConfigurationError):
            load_config(None, environ=environ, use_dotenv=False)

    @pytest.mark.parametrize("content", [
        "lastfm: [unclosed",
        "- just\n- a list\n",
        "lastfm: 'not a mapping'\n",
        "lastfm:\n  api_key: 123\n  api_secret: s\n",
        "lastfm:\n  api_key: k\n  api_secret: s\nlogging:\n  level: LOUD\n",
    ])
    def test_invalid_files(self, temp_dir, content):
        path = write_config(temp_dir, content)

        with pytest.raises(ConfigError):
            load_config(path, environ={}, use_dotenv=False)


class TestConfig:
    """Test Config helpers"""

    @pytest.mark.parametrize("api_key, expected", [
        ("abcdef123456xyz", "abc***xyz"),
        ("short", "****hidden****"),
    ])
    def test_masked_api_key(self, api_key, expected):
        config = Config(LastFmConfig(api_key, "secret"), None, LoggingConfig())

        assert config.masked_api_key() == expected

    def test_masked_api_key_token_mode(self):
        config = Config(None, None, LoggingConfig())

        assert config.masked_api_key() == "Not configured"

    def test_repr_hides_secrets(self):
        text = repr(LastFmConfig("key", "very_secret", "session_123"))

        assert "very_secret" not in text
        assert "session_123" not in text

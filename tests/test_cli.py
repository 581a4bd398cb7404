"""Test the scrobble command line interface"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from lastfm_scrobbler import cli as cli_module
from lastfm_scrobbler.cli import cli
from lastfm_scrobbler.lastfm import LastFmClient

CREDENTIAL_VARS = (
    "LASTFM_API_KEY",
    "LASTFM_API_SECRET",
    "LASTFM_SESSION_KEY",
    "SCROBBLE_SERVER_URL",
    "SCROBBLE_SERVER_TOKEN",
)

KEYED_ENV = {
    "LASTFM_API_KEY": "test_key",
    "LASTFM_API_SECRET": "test_secret",
    "LASTFM_SESSION_KEY": "test_sk",
}

TOKEN_ENV = {
    "SCROBBLE_SERVER_URL": "https://scrob.example.com/api/",
    "SCROBBLE_SERVER_TOKEN": "tok",
}


@pytest.fixture
def runner(temp_dir, monkeypatch, restore_root_logger):
    """CliRunner in an empty directory with no inherited credentials"""
    for name in CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(temp_dir)
    return CliRunner()


@pytest.fixture
def use_session(monkeypatch):
    """Make every client the CLI builds talk to the given fake session"""
    original = LastFmClient.from_config.__func__

    def install(session):
        def from_config(cls, config, **kwargs):
            return original(cls, config, session=session)
        monkeypatch.setattr(LastFmClient, "from_config", classmethod(from_config))

    return install


class TestCli:
    """Test CLI commands end to end"""

    def test_missing_credentials(self, runner):
        result = runner.invoke(cli, ["track", "Artist", "Title"])

        assert result.exit_code == 1
        assert "No credentials found" in result.output

    @pytest.mark.parametrize("command", ["auth", "now-playing", "track", "import", "info"])
    def test_subcommand_help_without_credentials(self, runner, command):
        result = runner.invoke(cli, [command, "--help"])

        assert result.exit_code == 0, result.output
        assert "No credentials found" not in result.output
        assert "Usage" in result.output

    def test_track_token_mode(self, runner, fake_session, use_session):
        use_session(fake_session)
        fake_session.add("ok")

        result = runner.invoke(cli, ["track", "Artist", "Title", "--timestamp", "1700000000", "--player", "mpd"], env=TOKEN_ENV)

        assert result.exit_code == 0, result.output
        assert "Accepted: 1" in result.output
        payload = fake_session.last_call["json"]
        assert payload == [{
            "artist": "Artist",
            "track": "Title",
            "timestamp": 1700000000,
            "album": None,
            "track_number": None,
            "duration": None,
            "album_artist": None,
            "player": "mpd",
        }]

    def test_track_defaults_timestamp_to_now(self, runner, fake_session, use_session):
        use_session(fake_session)
        fake_session.add({"scrobbles": {"@attr": {"accepted": 1, "ignored": 0}}})

        result = runner.invoke(cli, ["track", "Artist", "Title"], env=KEYED_ENV)

        assert result.exit_code == 0, result.output
        assert int(fake_session.last_call["data"]["timestamp[0]"]) > 1700000000

    def test_now_playing_keyed_mode(self, runner, fake_session, use_session):
        use_session(fake_session)
        fake_session.add({"nowplaying": {}})

        result = runner.invoke(cli, ["now-playing", "Artist", "Title", "--duration", "200"], env=KEYED_ENV)

        assert result.exit_code == 0, result.output
        assert "Now playing: Artist - Title" in result.output
        assert fake_session.last_call["data"]["duration"] == "200"

    def test_library_error_exits_with_message(self, runner, fake_session, use_session):
        use_session(fake_session)
        env = dict(KEYED_ENV, LASTFM_SESSION_KEY="")

        result = runner.invoke(cli, ["now-playing", "Artist", "Title"], env=env)

        assert result.exit_code == 1
        assert "Session key required" in result.output
        assert fake_session.calls == []

    def test_auth_flow(self, runner, fake_session, use_session):
        use_session(fake_session)
        fake_session.add({"token": "abc123"})
        fake_session.add({"session": {"name": "rj", "key": "new_sk"}})
        env = dict(KEYED_ENV, LASTFM_SESSION_KEY="")

        result = runner.invoke(cli, ["auth", "--no-browser"], env=env, input="\n")

        assert result.exit_code == 0, result.output
        assert "http://www.last.fm/api/auth/?api_key=test_key&token=abc123" in result.output
        assert "Session key: new_sk" in result.output

    def test_auth_opens_browser(self, runner, fake_session, use_session):
        use_session(fake_session)
        fake_session.add({"token": "abc123"})
        fake_session.add({"session": {"name": "rj", "key": "new_sk"}})

        with patch("lastfm_scrobbler.cli.webbrowser.open") as mock_open:
            result = runner.invoke(cli, ["auth"], env=KEYED_ENV, input="\n")

        assert result.exit_code == 0, result.output
        mock_open.assert_called_once_with("http://www.last.fm/api/auth/?api_key=test_key&token=abc123")

    def test_auth_rejected_in_token_mode(self, runner):
        result = runner.invoke(cli, ["auth", "--no-browser"], env=TOKEN_ENV)

        assert result.exit_code == 1
        assert "only available in Last.fm mode" in result.output

    def test_import(self, runner, temp_dir, fake_session, use_session):
        use_session(fake_session)
        fake_session.add("ok")
        plays = temp_dir / "plays.yaml"
        plays.write_text(
            "- {artist: A, track: One, timestamp: 1700000000}\n"
            "- {artist: A, track: Two, timestamp: 1700000240, album: Record}\n",
            encoding="utf-8",
        )

        result = runner.invoke(cli, ["import", str(plays)], env=TOKEN_ENV)

        assert result.exit_code == 0, result.output
        assert "Accepted: 2" in result.output
        assert len(fake_session.calls) == 1

    def test_import_batches_and_stops_on_auth_error(self, runner, temp_dir, fake_session, use_session):
        use_session(fake_session)
        fake_session.add({"scrobbles": {"@attr": {"accepted": 49, "ignored": 1}}})
        fake_session.add({"error": 9, "message": "Invalid session key"})
        plays = temp_dir / "plays.yaml"
        plays.write_text(
            "scrobbles:\n" + "".join(
                f"  - {{artist: A, track: T{i}, timestamp: {1700000000 + i}}}\n" for i in range(120)
            ),
            encoding="utf-8",
        )

        result = runner.invoke(cli, ["import", str(plays)], env=KEYED_ENV)

        assert result.exit_code == 1
        assert "Accepted: 49" in result.output
        assert "Ignored:  1" in result.output
        assert "Failed:   70" in result.output
        assert len(fake_session.calls) == 2

    def test_import_mapping_without_plays(self, runner, temp_dir):
        plays = temp_dir / "plays.yaml"
        plays.write_text("artist: A\n", encoding="utf-8")

        result = runner.invoke(cli, ["import", str(plays)], env=TOKEN_ENV)

        assert result.exit_code == 0
        assert "No plays to import" in result.output

    def test_import_rejects_incomplete_play(self, runner, temp_dir):
        plays = temp_dir / "plays.yaml"
        plays.write_text("- {artist: A, track: One}\n", encoding="utf-8")

        result = runner.invoke(cli, ["import", str(plays)], env=TOKEN_ENV)

        assert result.exit_code == 1
        assert "no 'timestamp'" in result.output

    def test_info(self, runner, fake_session, use_session, sample_track_info):
        use_session(fake_session)
        fake_session.add(sample_track_info)

        result = runner.invoke(cli, ["info", "Cher", "Believe"], env=KEYED_ENV)

        assert result.exit_code == 0, result.output
        assert "Listeners: 857155" in result.output
        assert "Duration:  240s" in result.output
        assert "  - pop" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert cli_module.__version__ in result.output

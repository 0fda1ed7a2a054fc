"""Tests for configuration and the command-line interface."""

import json
from pathlib import Path

import pytest

from adhan_alarm.cli import cmd_next, cmd_times, create_parser
from adhan_alarm.config import AppConfig, get_config, reset_config


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


class TestAppConfig:
    """AppConfig tests."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("HOST", "PORT", "LOG_LEVEL", "EXACT_ALARMS", "AUDIO_DIR"):
            monkeypatch.delenv(f"ADHAN_ALARM_{name}", raising=False)
        config = AppConfig.from_env()
        assert config.port == 8080
        assert config.exact_alarms is True
        assert config.preferences_path.name == "preferences.json"
        assert config.audio_dir.parts[-2:] == ("assets", "audio")

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("ADHAN_ALARM_PORT", "9090")
        monkeypatch.setenv("ADHAN_ALARM_EXACT_ALARMS", "off")
        monkeypatch.setenv("ADHAN_ALARM_STATE_PATH", str(tmp_path / "state.json"))

        config = get_config()

        assert config.port == 9090
        assert config.exact_alarms is False
        assert config.state_path == tmp_path / "state.json"
        assert get_config() is config


class TestParser:
    """Argument parser tests."""

    def test_serve_options(self) -> None:
        args = create_parser().parse_args(["serve", "--port", "9000", "--no-exact-alarms"])
        assert args.command == "serve"
        assert args.port == 9000
        assert args.no_exact_alarms is True

    def test_times_options(self) -> None:
        args = create_parser().parse_args(
            ["times", "--lat", "40.7", "--lng", "-74.0", "--method", "karachi", "-d", "3"]
        )
        assert (args.lat, args.lng, args.method, args.days) == (40.7, -74.0, "karachi", 3)

    def test_unknown_method_rejected(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args(["times", "--method", "tehran"])


class TestCommands:
    """Commands that compute prayer times."""

    def test_times_without_location(self, tmp_path: Path, capsys) -> None:
        args = create_parser().parse_args(["times", "--preferences", str(tmp_path / "none.json")])
        assert cmd_times(args) == 1
        assert "Konum yok" in capsys.readouterr().out

    def test_times_from_preferences(self, tmp_path: Path, capsys) -> None:
        preferences = tmp_path / "preferences.json"
        preferences.write_text(
            json.dumps({"flutter.latitude": 40.7128, "flutter.longitude": -74.006}),
            encoding="utf-8",
        )
        args = create_parser().parse_args(["times", "--preferences", str(preferences), "-d", "2"])

        assert cmd_times(args) == 0
        out = capsys.readouterr().out
        assert "America/New_York" in out
        assert "Islamic Society of North America" in out

    def test_next(self, tmp_path: Path, capsys) -> None:
        args = create_parser().parse_args(
            ["next", "--lat", "21.4225", "--lng", "39.8262", "--preferences", str(tmp_path / "p.json")]
        )
        assert cmd_next(args) == 0
        assert "Ezan sesi: açık" in capsys.readouterr().out

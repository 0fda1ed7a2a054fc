"""Configuration management."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

_FALSE_WORDS = {"0", "false", "no", "off"}


def _get_default_config_dir() -> Path:
    """Get default configuration directory."""
    return Path.home() / ".config" / "adhan-alarm"


def _get_default_preferences_path() -> Path:
    """Get default preferences path."""
    return _get_default_config_dir() / "preferences.json"


def _get_default_state_path() -> Path:
    """Get default reschedule state path."""
    return _get_default_config_dir() / "reschedule_state.json"


def _get_default_audio_dir() -> Path:
    """Get default audio directory."""
    return Path(__file__).parent / "assets" / "audio"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_WORDS


@dataclass
class AppConfig:
    """Application configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # File paths
    preferences_path: Path = field(default_factory=_get_default_preferences_path)
    state_path: Path = field(default_factory=_get_default_state_path)
    audio_dir: Path = field(default_factory=_get_default_audio_dir)

    # Host capabilities
    exact_alarms: bool = True

    @classmethod
    def from_env(cls) -> Self:
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("ADHAN_ALARM_HOST", "0.0.0.0"),
            port=int(os.getenv("ADHAN_ALARM_PORT", "8080")),
            log_level=os.getenv("ADHAN_ALARM_LOG_LEVEL", "INFO"),
            preferences_path=Path(
                os.getenv("ADHAN_ALARM_PREFERENCES_PATH", str(_get_default_preferences_path()))
            ).expanduser(),
            state_path=Path(
                os.getenv("ADHAN_ALARM_STATE_PATH", str(_get_default_state_path()))
            ).expanduser(),
            audio_dir=Path(
                os.getenv("ADHAN_ALARM_AUDIO_DIR", str(_get_default_audio_dir()))
            ).expanduser(),
            exact_alarms=_env_flag("ADHAN_ALARM_EXACT_ALARMS", True),
        )


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get application configuration."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config
    _config = None


def setup_logging(level: str = "INFO") -> None:
    """Setup application logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

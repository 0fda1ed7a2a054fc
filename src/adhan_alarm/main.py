"""Main entry point for the Adhan Alarm service."""

import logging

import uvicorn

from adhan_alarm.api.app import create_app
from adhan_alarm.config import get_config, setup_logging


def main() -> None:
    """Run the Adhan Alarm service."""
    config = get_config()
    setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info("Adhan Alarm başlatılıyor...")
    logger.info(f"Ayar dosyası: {config.preferences_path}")
    logger.info(f"Planlama durumu: {config.state_path}")
    logger.info(f"Audio dizini: {config.audio_dir}")

    app = create_app(
        preferences_path=config.preferences_path,
        state_path=config.state_path,
        audio_dir=config.audio_dir,
        exact_alarms=config.exact_alarms,
    )

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()

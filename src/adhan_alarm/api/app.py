"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adhan_alarm import __version__
from adhan_alarm.api.dependencies import initialize_app_state, shutdown_app_state
from adhan_alarm.api.routes import router as api_router
from adhan_alarm.infrastructure.scheduler import APSchedulerAdapter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    logger.info("Adhan Alarm başlatılıyor...")

    state = await initialize_app_state(
        preferences_path=getattr(app.state, "preferences_path", None),
        state_path=getattr(app.state, "state_path", None),
        audio_dir=getattr(app.state, "audio_dir", None),
        exact_alarms=getattr(app.state, "exact_alarms", True),
    )

    if isinstance(state.alarm_facility, APSchedulerAdapter):
        state.alarm_facility.start()

    # Açılış: bekleyen alarm bellekte tutulmadığı için yeniden kurulur,
    # hesaplama sunucunun açılmasını bekletmez
    state.coordinator.trigger_in_background()

    logger.info("Adhan Alarm hazır!")

    yield

    # Shutdown
    logger.info("Adhan Alarm kapatılıyor...")
    await shutdown_app_state()
    logger.info("Adhan Alarm kapatıldı.")


def create_app(
    preferences_path: Path | None = None,
    state_path: Path | None = None,
    audio_dir: Path | None = None,
    exact_alarms: bool = True,
) -> FastAPI:
    """
    Create FastAPI application.

    Args:
        preferences_path: Ayar dosyası yolu
        state_path: Planlama durumu dosyası yolu
        audio_dir: Ezan ses dosyaları dizini
        exact_alarms: Tam zamanlı alarm izni

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Adhan Alarm",
        description="Namaz vakti alarmı ve ezan çalma motoru",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config in app state
    app.state.preferences_path = preferences_path
    app.state.state_path = state_path
    app.state.audio_dir = audio_dir
    app.state.exact_alarms = exact_alarms

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(api_router, prefix="/api")

    # Health check
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app

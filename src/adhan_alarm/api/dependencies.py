"""Application state and dependencies."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from adhan_alarm.infrastructure.audio import Mpg123Player, get_best_player
from adhan_alarm.infrastructure.device import (
    InhibitorWakeLock,
    InProcessAudioFocus,
    get_volume_control,
)
from adhan_alarm.infrastructure.event_bus import InMemoryEventBus
from adhan_alarm.infrastructure.notifications import AlertPresenter
from adhan_alarm.infrastructure.preference_store import (
    JsonPreferenceStore,
    JsonRescheduleStateRepository,
)
from adhan_alarm.infrastructure.scheduler import APSchedulerAdapter
from adhan_alarm.services.alarm_receiver import AlarmReceiver
from adhan_alarm.services.alarm_scheduler import AlarmScheduler
from adhan_alarm.services.playback_service import PlaybackService, SoundResolver
from adhan_alarm.services.ports import (
    AlarmFacilityPort,
    AudioFocusPort,
    AudioPlayerPort,
    DeviceVolumePort,
    PreferenceStorePort,
    PrayerTimeCalculatorPort,
    RescheduleStateRepositoryPort,
    WakeLockPort,
)
from adhan_alarm.services.prayer_service import PrayerService
from adhan_alarm.services.reschedule_service import RescheduleCoordinator

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    """Application state container."""

    preference_store: PreferenceStorePort
    state_repository: RescheduleStateRepositoryPort
    prayer_service: PrayerTimeCalculatorPort
    alarm_facility: AlarmFacilityPort
    alarm_scheduler: AlarmScheduler
    coordinator: RescheduleCoordinator
    playback: PlaybackService
    receiver: AlarmReceiver
    event_bus: InMemoryEventBus
    audio_player: AudioPlayerPort
    device_volume: DeviceVolumePort
    audio_focus: AudioFocusPort
    wake_lock: WakeLockPort
    alert_presenter: AlertPresenter
    started_at: datetime
    audio_dir: Path
    preferences_path: Path | None = None
    state_path: Path | None = None


# Global application state (singleton)
_app_state: AppState | None = None


def build_app_state(
    *,
    preference_store: PreferenceStorePort,
    state_repository: RescheduleStateRepositoryPort,
    prayer_service: PrayerTimeCalculatorPort,
    alarm_facility: AlarmFacilityPort,
    audio_player: AudioPlayerPort,
    device_volume: DeviceVolumePort,
    audio_focus: AudioFocusPort,
    wake_lock: WakeLockPort,
    audio_dir: Path,
    alert_presenter: AlertPresenter | None = None,
    event_bus: InMemoryEventBus | None = None,
) -> AppState:
    """Adaptörlerden servisleri kur."""
    event_bus = event_bus or InMemoryEventBus()
    alert_presenter = alert_presenter or AlertPresenter()
    alert_presenter.attach(event_bus)

    alarm_scheduler = AlarmScheduler(alarm_facility, event_bus=event_bus)
    coordinator = RescheduleCoordinator(
        preference_store=preference_store,
        state_repository=state_repository,
        calculator=prayer_service,
        alarm_scheduler=alarm_scheduler,
        event_bus=event_bus,
    )
    playback = PlaybackService(
        audio_player=audio_player,
        device_volume=device_volume,
        audio_focus=audio_focus,
        wake_lock=wake_lock,
        sound_resolver=SoundResolver(audio_dir),
        event_bus=event_bus,
    )
    receiver = AlarmReceiver(
        preference_store=preference_store,
        playback=playback,
        coordinator=coordinator,
        event_bus=event_bus,
    )

    return AppState(
        preference_store=preference_store,
        state_repository=state_repository,
        prayer_service=prayer_service,
        alarm_facility=alarm_facility,
        alarm_scheduler=alarm_scheduler,
        coordinator=coordinator,
        playback=playback,
        receiver=receiver,
        event_bus=event_bus,
        audio_player=audio_player,
        device_volume=device_volume,
        audio_focus=audio_focus,
        wake_lock=wake_lock,
        alert_presenter=alert_presenter,
        started_at=datetime.now(),
        audio_dir=audio_dir,
    )


def _select_player() -> AudioPlayerPort:
    try:
        return get_best_player()
    except RuntimeError as e:
        # Ses çalma denemeleri AudioErrorEvent ile sonuçlanır, planlama çalışmaya devam eder
        logger.warning(f"{e} Ezanlar çalınamayacak.")
        return Mpg123Player()


async def initialize_app_state(
    preferences_path: Path | None = None,
    state_path: Path | None = None,
    audio_dir: Path | None = None,
    exact_alarms: bool = True,
) -> AppState:
    """
    Initialize application state.

    Args:
        preferences_path: Ayar dosyası yolu
        state_path: Planlama durumu dosyası yolu
        audio_dir: Ezan ses dosyaları dizini
        exact_alarms: Tam zamanlı alarm izni

    Returns:
        Initialized AppState
    """
    global _app_state

    if _app_state is not None:
        return _app_state

    if audio_dir is None:
        audio_dir = Path(__file__).parent.parent / "assets" / "audio"

    preference_store = JsonPreferenceStore(preferences_path)
    state_repository = JsonRescheduleStateRepository(state_path)
    alarm_facility = APSchedulerAdapter(exact_alarms=exact_alarms)

    state = build_app_state(
        preference_store=preference_store,
        state_repository=state_repository,
        prayer_service=PrayerService(),
        alarm_facility=alarm_facility,
        audio_player=_select_player(),
        device_volume=get_volume_control(),
        audio_focus=InProcessAudioFocus(),
        wake_lock=InhibitorWakeLock(),
        audio_dir=audio_dir,
    )
    state.preferences_path = preference_store.file_path
    state.state_path = state_repository.file_path
    alarm_facility.set_fire_handler(state.receiver.on_alarm_fired)

    _app_state = state
    return _app_state


def get_app_state() -> AppState:
    """Get current application state."""
    if _app_state is None:
        raise RuntimeError("Application state not initialized")
    return _app_state


async def shutdown_app_state() -> None:
    """Shutdown application state."""
    global _app_state

    if _app_state is not None:
        await _app_state.playback.stop("shutdown")
        if isinstance(_app_state.alarm_facility, APSchedulerAdapter):
            _app_state.alarm_facility.shutdown()
        _app_state = None

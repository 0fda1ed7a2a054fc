"""Shared fixtures and in-memory fakes for the engine ports."""

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from adhan_alarm.domain.exceptions import StaleTriggerError
from adhan_alarm.domain.models import (
    CalculationMethod,
    Coordinates,
    DailyPrayerTimes,
    RescheduleState,
)
from adhan_alarm.infrastructure.device import InProcessAudioFocus
from adhan_alarm.infrastructure.event_bus import InMemoryEventBus
from adhan_alarm.services.alarm_scheduler import AlarmScheduler
from adhan_alarm.services.playback_service import PlaybackService, SoundResolver
from adhan_alarm.services.ports import (
    AlarmFacilityPort,
    AudioPlayerPort,
    CompletionCallback,
    DeviceVolumePort,
    PreferenceStorePort,
    PrayerTimeCalculatorPort,
    RescheduleStateRepositoryPort,
    WakeLockPort,
)
from adhan_alarm.services.reschedule_service import RescheduleCoordinator

NEW_YORK = ZoneInfo("America/New_York")

# Sabit test vakitleri (yerel saat)
FIXED_TIMES = {
    "fajr": (5, 0),
    "dhuhr": (12, 30),
    "asr": (15, 45),
    "maghrib": (18, 20),
    "isha": (19, 45),
}


def at(day: date, hour: int, minute: int, second: int = 0) -> datetime:
    """New York saatinde aware datetime."""
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=NEW_YORK)


class FakePreferenceStore(PreferenceStorePort):
    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self.values: dict[str, Any] = dict(values or {})
        self.load_count = 0

    async def load(self) -> dict[str, Any]:
        self.load_count += 1
        return dict(self.values)

    async def update(self, values: Mapping[str, Any]) -> None:
        self.values.update(values)


class FakeStateRepository(RescheduleStateRepositoryPort):
    def __init__(self, state: RescheduleState | None = None) -> None:
        self.state = state or RescheduleState()
        self.saves: list[RescheduleState] = []

    async def load(self) -> RescheduleState:
        return dataclasses.replace(self.state)

    async def save(self, state: RescheduleState) -> None:
        self.state = dataclasses.replace(state)
        self.saves.append(self.state)


class FakeCalculator(PrayerTimeCalculatorPort):
    """Her gün aynı saatleri veren hesaplayıcı."""

    def __init__(self, tz: tzinfo = NEW_YORK) -> None:
        self.tz = tz
        self.calls: list[tuple[Coordinates, CalculationMethod, date]] = []

    def timezone_for(self, coordinates: Coordinates) -> tzinfo:
        return self.tz

    def calculate(
        self,
        coordinates: Coordinates,
        method: CalculationMethod,
        target_date: date,
    ) -> DailyPrayerTimes:
        self.calls.append((coordinates, method, target_date))
        return DailyPrayerTimes(
            date=target_date,
            **{
                name: datetime.combine(target_date, datetime.min.time(), tzinfo=self.tz).replace(
                    hour=hour, minute=minute
                )
                for name, (hour, minute) in FIXED_TIMES.items()
            },
        )


class FakeAlarmFacility(AlarmFacilityPort):
    def __init__(self, exact: bool = True) -> None:
        self.exact = exact
        self.registrations: dict[int, tuple[datetime, dict[str, Any]]] = {}
        self.register_calls = 0
        self.cancelled: list[int] = []
        self.stale_on_register = False

    def register_exact_wakeup(
        self,
        slot_identity: int,
        trigger_at: datetime,
        payload: Mapping[str, Any],
    ) -> None:
        if self.stale_on_register:
            raise StaleTriggerError("geçmiş")
        self.register_calls += 1
        self.registrations[slot_identity] = (trigger_at, dict(payload))

    def cancel(self, slot_identity: int) -> bool:
        self.cancelled.append(slot_identity)
        return self.registrations.pop(slot_identity, None) is not None

    def has_exact_alarm_capability(self) -> bool:
        return self.exact

    def get_pending(self) -> list[tuple[int, datetime]]:
        return sorted(
            ((slot, trigger_at) for slot, (trigger_at, _) in self.registrations.items()),
            key=lambda x: x[1],
        )


class FakeAudioPlayer(AudioPlayerPort):
    def __init__(self) -> None:
        self.calls: list[str] = []
        self.started: list[tuple[str, int]] = []
        self.on_complete: CompletionCallback | None = None
        self.playing = False
        self.fail_on_start: Exception | None = None
        self.fail_on_pause: Exception | None = None
        self.fail_on_resume: Exception | None = None

    async def start(
        self,
        file_path: str,
        volume: int = 100,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        self.calls.append("start")
        if self.fail_on_start is not None:
            raise self.fail_on_start
        self.started.append((file_path, volume))
        self.on_complete = on_complete
        self.playing = True

    async def pause(self) -> None:
        self.calls.append("pause")
        if self.fail_on_pause is not None:
            raise self.fail_on_pause
        self.playing = False

    async def resume(self) -> None:
        self.calls.append("resume")
        if self.fail_on_resume is not None:
            raise self.fail_on_resume
        self.playing = True

    async def stop(self) -> None:
        self.calls.append("stop")
        self.playing = False

    def is_playing(self) -> bool:
        return self.playing

    async def finish(self, returncode: int = 0) -> None:
        """Player process'inin çıktığını taklit et."""
        self.playing = False
        callback, self.on_complete = self.on_complete, None
        if callback is not None:
            await callback(returncode)


class FakeDeviceVolume(DeviceVolumePort):
    def __init__(self, volume: int = 40, max_volume: int = 100) -> None:
        self.volume = volume
        self.max_volume = max_volume
        self.history: list[int] = []

    async def get_volume(self) -> int:
        return self.volume

    async def get_max_volume(self) -> int:
        return self.max_volume

    async def set_volume(self, volume: int) -> None:
        self.history.append(volume)
        self.volume = volume


class FakeWakeLock(WakeLockPort):
    def __init__(self) -> None:
        self.held = False
        self.acquired_with: list[float] = []
        self.release_count = 0

    async def acquire(self, timeout_seconds: float) -> None:
        self.held = True
        self.acquired_with.append(timeout_seconds)

    async def release(self) -> None:
        self.held = False
        self.release_count += 1

    def is_held(self) -> bool:
        return self.held


NYC_PREFERENCES = {
    "latitude": 40.7128,
    "longitude": -74.0060,
    "calculation_method": "NorthAmerica",
}


@pytest.fixture
def preference_store() -> FakePreferenceStore:
    return FakePreferenceStore(NYC_PREFERENCES)


@pytest.fixture
def state_repository() -> FakeStateRepository:
    return FakeStateRepository()


@pytest.fixture
def calculator() -> FakeCalculator:
    return FakeCalculator()


@pytest.fixture
def facility() -> FakeAlarmFacility:
    return FakeAlarmFacility()


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def alarm_scheduler(facility: FakeAlarmFacility, event_bus: InMemoryEventBus) -> AlarmScheduler:
    return AlarmScheduler(facility, event_bus=event_bus)


@pytest.fixture
def today() -> date:
    return date(2024, 3, 15)


@pytest.fixture
def clock(today: date) -> dict[str, datetime]:
    """Testlerin değiştirebileceği saat."""
    return {"now": at(today, 13, 0)}


@pytest.fixture
def coordinator(
    preference_store: FakePreferenceStore,
    state_repository: FakeStateRepository,
    calculator: FakeCalculator,
    alarm_scheduler: AlarmScheduler,
    event_bus: InMemoryEventBus,
    clock: dict[str, datetime],
) -> RescheduleCoordinator:
    return RescheduleCoordinator(
        preference_store=preference_store,
        state_repository=state_repository,
        calculator=calculator,
        alarm_scheduler=alarm_scheduler,
        event_bus=event_bus,
        clock=lambda: clock["now"],
    )


@pytest.fixture
def audio_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "audio"
    directory.mkdir()
    for name in ("azan1.mp3", "fajr.mp3", "rabeh_ibn_darah_al_jazairi_adan_al_jazaer.mp3"):
        (directory / name).write_bytes(b"ID3")
    return directory


@pytest.fixture
def audio_player() -> FakeAudioPlayer:
    return FakeAudioPlayer()


@pytest.fixture
def device_volume() -> FakeDeviceVolume:
    return FakeDeviceVolume()


@pytest.fixture
def audio_focus() -> InProcessAudioFocus:
    return InProcessAudioFocus()


@pytest.fixture
def wake_lock() -> FakeWakeLock:
    return FakeWakeLock()


@pytest.fixture
def playback(
    audio_player: FakeAudioPlayer,
    device_volume: FakeDeviceVolume,
    audio_focus: InProcessAudioFocus,
    wake_lock: FakeWakeLock,
    audio_dir: Path,
    event_bus: InMemoryEventBus,
) -> PlaybackService:
    return PlaybackService(
        audio_player=audio_player,
        device_volume=device_volume,
        audio_focus=audio_focus,
        wake_lock=wake_lock,
        sound_resolver=SoundResolver(audio_dir),
        event_bus=event_bus,
    )


def event_types(bus: InMemoryEventBus) -> list[str]:
    return [type(event).__name__ for event in bus.recent()]

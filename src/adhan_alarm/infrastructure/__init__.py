"""Infrastructure layer - Adapters and implementations."""

from adhan_alarm.infrastructure.audio import Mpg123Player, get_best_player
from adhan_alarm.infrastructure.device import (
    AmixerVolumeControl,
    InhibitorWakeLock,
    InProcessAudioFocus,
    SoftwareVolumeControl,
    get_volume_control,
)
from adhan_alarm.infrastructure.event_bus import InMemoryEventBus
from adhan_alarm.infrastructure.notifications import AlertPresenter
from adhan_alarm.infrastructure.preference_store import (
    JsonPreferenceStore,
    JsonRescheduleStateRepository,
)
from adhan_alarm.infrastructure.scheduler import APSchedulerAdapter

__all__ = [
    "APSchedulerAdapter",
    "AlertPresenter",
    "AmixerVolumeControl",
    "InMemoryEventBus",
    "InProcessAudioFocus",
    "InhibitorWakeLock",
    "JsonPreferenceStore",
    "JsonRescheduleStateRepository",
    "Mpg123Player",
    "SoftwareVolumeControl",
    "get_best_player",
    "get_volume_control",
]

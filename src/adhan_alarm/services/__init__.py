"""Service layer - Business logic."""

from adhan_alarm.services.alarm_receiver import AlarmReceiver
from adhan_alarm.services.alarm_scheduler import AlarmScheduler, ScheduleResult
from adhan_alarm.services.playback_service import PlaybackService, SoundResolver
from adhan_alarm.services.ports import (
    AlarmFacilityPort,
    AudioFocusPort,
    AudioPlayerPort,
    DeviceVolumePort,
    EventBusPort,
    PreferenceStorePort,
    PrayerTimeCalculatorPort,
    RescheduleStateRepositoryPort,
    WakeLockPort,
)
from adhan_alarm.services.prayer_service import PrayerService
from adhan_alarm.services.reschedule_service import RescheduleCoordinator

__all__ = [
    "AlarmFacilityPort",
    "AlarmReceiver",
    "AlarmScheduler",
    "AudioFocusPort",
    "AudioPlayerPort",
    "DeviceVolumePort",
    "EventBusPort",
    "PlaybackService",
    "PrayerService",
    "PrayerTimeCalculatorPort",
    "PreferenceStorePort",
    "RescheduleCoordinator",
    "RescheduleStateRepositoryPort",
    "ScheduleResult",
    "SoundResolver",
    "WakeLockPort",
]

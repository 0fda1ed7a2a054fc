"""Domain layer - Business entities and value objects."""

from adhan_alarm.domain.models import (
    AdhanSettings,
    CalculationMethod,
    Coordinates,
    DailyPrayerTimes,
    NextPrayer,
    PlaybackSession,
    PlaybackState,
    PrayerName,
    PrayerTime,
    RescheduleState,
    ScheduledAlarm,
)

__all__ = [
    "AdhanSettings",
    "CalculationMethod",
    "Coordinates",
    "DailyPrayerTimes",
    "NextPrayer",
    "PlaybackSession",
    "PlaybackState",
    "PrayerName",
    "PrayerTime",
    "RescheduleState",
    "ScheduledAlarm",
]

"""Pydantic schemas for API."""

from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, Field, model_validator

from adhan_alarm.domain.models import CalculationMethod, PlaybackState, PrayerName


class LocationSchema(BaseModel):
    """Konum şeması."""

    latitude: Annotated[float, Field(ge=-90, le=90, description="Enlem")]
    longitude: Annotated[float, Field(ge=-180, le=180, description="Boylam")]


class PrayerTimeSchema(BaseModel):
    """Tek namaz vakti şeması."""

    name: PrayerName
    display_name: str
    icon: str
    time: str  # HH:MM formatında
    sound_enabled: bool


class PrayerTimesSchema(BaseModel):
    """Günlük namaz vakitleri şeması."""

    date: date
    date_formatted: str
    timezone: str
    method: CalculationMethod
    prayers: list[PrayerTimeSchema]


class NextPrayerSchema(BaseModel):
    """Sıradaki vakit şeması."""

    prayer: PrayerName
    display_name: str
    at: datetime
    time: str
    is_isha: bool
    countdown: str


class ScheduledAlarmSchema(BaseModel):
    """Kurulan alarm şeması."""

    prayer: PrayerName
    display_name: str
    sound: str
    trigger_at: datetime
    is_isha: bool
    slot_identity: int


class PendingAlarmSchema(BaseModel):
    """Alarm tesisindeki bekleyen uyandırma."""

    slot_identity: int
    run_time: datetime


class RescheduleStateSchema(BaseModel):
    """Yeniden planlama durumu şeması."""

    needs_reschedule: bool
    requested_at: datetime | None = None
    last_completed_at: datetime | None = None


class PlaybackStatusSchema(BaseModel):
    """Ezan çalma durumu şeması."""

    state: PlaybackState
    is_playing: bool
    prayer_name: str | None = None
    sound_source: str | None = None
    volume: float | None = None


class PlayRequest(BaseModel):
    """Ezan çalma isteği."""

    prayer_name: str = Field(default="Ezan", min_length=1)
    sound_file: str | None = None
    volume: Annotated[float | None, Field(ge=0, le=1)] = None


class RawPreferenceSchema(BaseModel):
    """Depodaki ham değerin çözülmüş hali."""

    kind: str
    value: float | bool | str | None = None


class PreferencesSchema(BaseModel):
    """Çözülmüş ayarlar şeması."""

    location: LocationSchema | None
    calculation_method: CalculationMethod
    adhan_volume: float
    selected_adhan: str
    sound_enabled: dict[PrayerName, bool]
    raw: dict[str, RawPreferenceSchema] = Field(default_factory=dict)


class PreferencesUpdateSchema(BaseModel):
    """Ayar güncelleme şeması (partial update)."""

    location: LocationSchema | None = None
    calculation_method: CalculationMethod | None = None
    adhan_volume: Annotated[float | None, Field(ge=0, le=1)] = None
    selected_adhan: Annotated[str | None, Field(min_length=1)] = None
    sound_enabled: dict[PrayerName, bool] | None = None

    @model_validator(mode="after")
    def _not_empty(self) -> "PreferencesUpdateSchema":
        if not self.model_fields_set:
            raise ValueError("En az bir ayar gönderilmeli")
        return self


class CapabilitiesSchema(BaseModel):
    """Host yetenekleri şeması."""

    exact_alarms: bool
    audio_player: str
    device_volume: str
    wake_lock: str
    notifications: bool


class SystemStatusSchema(BaseModel):
    """Sistem durumu şeması."""

    version: str
    uptime: str
    scheduler_running: bool
    pending_alarms_count: int
    location_configured: bool
    audio_player: str
    preferences_path: str
    state_path: str


class ApiResponse(BaseModel):
    """Genel API yanıt şeması."""

    success: bool
    message: str
    data: dict | list | None = None

"""Domain events for event-driven architecture."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID, uuid4

from adhan_alarm.domain.models import PrayerName, ScheduledAlarm


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True, kw_only=True)
class AlarmScheduledEvent(DomainEvent):
    """Alarm tesisine uyandırma kaydedildi."""

    alarm: ScheduledAlarm


@dataclass(frozen=True, kw_only=True)
class AlarmSkippedEvent(DomainEvent):
    """Alarm kaydedilmedi (geçmiş, sessiz ya da izin yok)."""

    prayer: PrayerName
    trigger_at: datetime
    reason: str


@dataclass(frozen=True, kw_only=True)
class AlarmsCancelledEvent(DomainEvent):
    """Tüm alarmlar iptal edildi."""

    cancelled_count: int


@dataclass(frozen=True, kw_only=True)
class AlarmFiredEvent(DomainEvent):
    """Alarm tetiklendi."""

    prayer_name: str
    sound_file: str
    is_isha: bool = False


@dataclass(frozen=True, kw_only=True)
class RescheduleCompletedEvent(DomainEvent):
    """Yeniden planlama tamamlandı."""

    alarm: ScheduledAlarm | None


@dataclass(frozen=True, kw_only=True)
class RescheduleFailedEvent(DomainEvent):
    """Yeniden planlama yapılamadı, sonraki tetikte tekrar denenecek."""

    error_message: str
    capability_denied: bool = False


@dataclass(frozen=True, kw_only=True)
class AdhanStartedEvent(DomainEvent):
    """Ezan çalmaya başladığında."""

    prayer_name: str
    volume: float


@dataclass(frozen=True, kw_only=True)
class AdhanPausedEvent(DomainEvent):
    """Ezan duraklatıldığında."""

    prayer_name: str


@dataclass(frozen=True, kw_only=True)
class AdhanResumedEvent(DomainEvent):
    """Ezan devam ettiğinde."""

    prayer_name: str


@dataclass(frozen=True, kw_only=True)
class AdhanStoppedEvent(DomainEvent):
    """Ezan oturumu kapandığında."""

    prayer_name: str
    reason: str


@dataclass(frozen=True, kw_only=True)
class AudioErrorEvent(DomainEvent):
    """Ses çalma hatası."""

    error_message: str
    prayer_name: str | None = None


@dataclass(frozen=True, kw_only=True)
class OngoingAlertEvent(DomainEvent):
    """Kalıcı, yüksek öncelikli ezan bildirimini göster."""

    prayer_name: str


@dataclass(frozen=True, kw_only=True)
class AlertDismissedEvent(DomainEvent):
    """Ezan bildirimini kaldır."""

    prayer_name: str


@dataclass(frozen=True, kw_only=True)
class SilentReminderEvent(DomainEvent):
    """Sesi kapalı vakit için sessiz hatırlatma."""

    prayer_name: str


@dataclass(frozen=True, kw_only=True)
class LaunchPlayerEvent(DomainEvent):
    """Arayüze oynatıcıyı açma sinyali (tavsiye niteliğinde)."""

    prayer_name: str

"""Single-slot exact alarm scheduling."""

import logging
from datetime import datetime
from enum import Enum

from adhan_alarm.domain.events import AlarmScheduledEvent, AlarmsCancelledEvent, AlarmSkippedEvent
from adhan_alarm.domain.exceptions import CapabilityDeniedError, StaleTriggerError
from adhan_alarm.domain.models import ScheduledAlarm
from adhan_alarm.services.ports import AlarmFacilityPort, EventBusPort

logger = logging.getLogger(__name__)

# Tek, sabit alarm kimliği: her planlama öncekinin yerine geçer
SLOT_IDENTITY = 5000

# Önceki sürümlerin kullandığı kimlikler de iptal kapsamında
LEGACY_RESCHEDULE_SLOT = 6000
LEGACY_PER_PRAYER_SLOTS = range(99, 111)

KNOWN_SLOT_IDENTITIES: tuple[int, ...] = (
    SLOT_IDENTITY,
    LEGACY_RESCHEDULE_SLOT,
    *LEGACY_PER_PRAYER_SLOTS,
)


class ScheduleResult(str, Enum):
    """Planlama sonucu."""

    SCHEDULED = "scheduled"
    SKIPPED_STALE = "skipped_stale"
    SKIPPED_DISABLED = "skipped_disabled"


class AlarmScheduler:
    """Seçilen vakti alarm tesisine tek uyandırma olarak kaydeder."""

    def __init__(
        self,
        facility: AlarmFacilityPort,
        event_bus: EventBusPort | None = None,
    ) -> None:
        self._facility = facility
        self._event_bus = event_bus

    @property
    def facility(self) -> AlarmFacilityPort:
        """Alarm tesisi."""
        return self._facility

    def can_schedule_exact(self) -> bool:
        """Tam zamanlı alarm izni var mı?"""
        return self._facility.has_exact_alarm_capability()

    def _skip(self, alarm: ScheduledAlarm, reason: str) -> None:
        if self._event_bus:
            self._event_bus.publish(
                AlarmSkippedEvent(prayer=alarm.prayer, trigger_at=alarm.trigger_at, reason=reason)
            )

    def schedule(
        self,
        alarm: ScheduledAlarm,
        *,
        sound_enabled: bool = True,
        now: datetime | None = None,
    ) -> ScheduleResult:
        """
        Alarmı kaydet.

        Args:
            alarm: Kaydedilecek alarm
            sound_enabled: Bu vakit için ezan sesi açık mı
            now: Şu an (varsayılan: sistem saati)

        Returns:
            Planlama sonucu

        Raises:
            CapabilityDeniedError: Tam zamanlı alarm izni yoksa
        """
        if now is None:
            now = datetime.now(alarm.trigger_at.tzinfo)

        if alarm.trigger_at <= now:
            logger.warning(
                f"{alarm.prayer.display_name} atlandı - vakit geçmiş ({alarm.trigger_at})"
            )
            self._skip(alarm, ScheduleResult.SKIPPED_STALE.value)
            return ScheduleResult.SKIPPED_STALE

        if not sound_enabled:
            logger.info(f"{alarm.prayer.display_name} atlandı - ses kapalı")
            self._skip(alarm, ScheduleResult.SKIPPED_DISABLED.value)
            return ScheduleResult.SKIPPED_DISABLED

        if not self._facility.has_exact_alarm_capability():
            logger.error(
                f"Tam zamanlı alarm izni yok; {alarm.prayer.display_name} planlanamadı"
            )
            self._skip(alarm, "capability_denied")
            raise CapabilityDeniedError("Tam zamanlı alarm izni verilmemiş")

        try:
            self._facility.register_exact_wakeup(
                alarm.slot_identity,
                alarm.trigger_at,
                alarm.to_payload(),
            )
        except StaleTriggerError:
            logger.warning(f"{alarm.prayer.display_name} atlandı - kayıt sırasında vakit geçti")
            self._skip(alarm, ScheduleResult.SKIPPED_STALE.value)
            return ScheduleResult.SKIPPED_STALE

        logger.info(
            f"Planlandı: {alarm.prayer.display_name} -> {alarm.trigger_at} "
            f"(kimlik: {alarm.slot_identity}, ses: {alarm.sound})"
        )

        if self._event_bus:
            self._event_bus.publish(AlarmScheduledEvent(alarm=alarm))

        return ScheduleResult.SCHEDULED

    def cancel_all(self) -> int:
        """Motorun kullanmış olabileceği tüm kimlikleri iptal et."""
        cancelled = 0
        for slot_identity in KNOWN_SLOT_IDENTITIES:
            try:
                if self._facility.cancel(slot_identity):
                    cancelled += 1
            except Exception as e:
                logger.warning(f"Alarm iptal edilemedi (kimlik: {slot_identity}): {e}")

        logger.info(f"{cancelled} alarm iptal edildi.")
        if self._event_bus:
            self._event_bus.publish(AlarmsCancelledEvent(cancelled_count=cancelled))
        return cancelled

    def get_pending(self) -> list[tuple[int, datetime]]:
        """Bekleyen uyandırmalar."""
        return self._facility.get_pending()

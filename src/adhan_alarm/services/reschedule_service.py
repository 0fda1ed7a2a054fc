"""Reschedule coordinator: keeps exactly one alarm pending for the next prayer."""

import asyncio
import logging
from collections.abc import Callable, Iterator
from datetime import date, datetime, timedelta

from adhan_alarm.domain.events import RescheduleCompletedEvent, RescheduleFailedEvent
from adhan_alarm.domain.exceptions import CapabilityDeniedError, ConfigurationMissingError
from adhan_alarm.domain.models import (
    AdhanSettings,
    DailyPrayerTimes,
    NextPrayer,
    PrayerName,
    RescheduleState,
    ScheduledAlarm,
)
from adhan_alarm.services.alarm_scheduler import SLOT_IDENTITY, AlarmScheduler, ScheduleResult
from adhan_alarm.services.ports import (
    EventBusPort,
    PreferenceStorePort,
    PrayerTimeCalculatorPort,
    RescheduleStateRepositoryPort,
)
from adhan_alarm.services.preferences import read_settings
from adhan_alarm.services.selector import select_next

logger = logging.getLogger(__name__)

# Alarm birkaç saniye erken tetiklenirse aynı vakit yeniden seçilmesin
EARLY_FIRE_TOLERANCE = timedelta(minutes=15)

# Sesi kapalı vakitler atlanırken bakılacak gün sayısı
LOOKAHEAD_DAYS = 3


def _system_now() -> datetime:
    return datetime.now().astimezone()


class RescheduleCoordinator:
    """Vakit hesapla, sıradaki alarmı tek kimlik altında yeniden kur."""

    def __init__(
        self,
        preference_store: PreferenceStorePort,
        state_repository: RescheduleStateRepositoryPort,
        calculator: PrayerTimeCalculatorPort,
        alarm_scheduler: AlarmScheduler,
        event_bus: EventBusPort | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize reschedule coordinator.

        Args:
            preference_store: Ham ayar deposu
            state_repository: Yeniden planlama durumu deposu
            calculator: Namaz vakti hesaplayıcı
            alarm_scheduler: Alarm planlayıcı
            event_bus: Event bus (opsiyonel)
            clock: Timezone-aware şu anı döndüren fonksiyon
        """
        self._preference_store = preference_store
        self._state_repository = state_repository
        self._calculator = calculator
        self._alarm_scheduler = alarm_scheduler
        self._event_bus = event_bus
        self._clock = clock or _system_now
        self._lock = asyncio.Lock()
        self._background_tasks: set[asyncio.Task] = set()

    # ============== Tetikler ==============

    async def on_alarm_fired(
        self, prayer: PrayerName | None, is_isha: bool = False
    ) -> ScheduledAlarm | None:
        """Alarm tetiklendikten sonra her durumda çağrılır."""
        label = prayer.display_name if prayer else "bilinmeyen vakit"
        logger.info(f"Alarm tetiklendi ({label}, yatsı: {is_isha}), yeniden planlanıyor")
        return await self.run_reschedule_pass(fired_prayer=prayer, after_isha=is_isha)

    async def on_boot_or_time_change(self) -> ScheduledAlarm | None:
        """Açılış, saat ya da saat dilimi değişikliği."""
        logger.info("Açılış/saat değişikliği, yeniden planlanıyor")
        return await self.run_reschedule_pass()

    async def request_reschedule(self) -> ScheduledAlarm | None:
        """Açık yeniden planlama isteği (ayar değişikliği vb.)."""
        return await self.run_reschedule_pass()

    async def resume_if_pending(self) -> ScheduledAlarm | None:
        """Yarım kalmış bir planlama varsa tekrar dene."""
        try:
            state = await self._state_repository.load()
        except Exception as e:
            logger.error(f"Planlama durumu okunamadı: {e}")
            return await self.run_reschedule_pass()

        if not state.needs_reschedule:
            logger.debug("Bekleyen yeniden planlama yok.")
            return None

        logger.info(f"Yarım kalan planlama bulundu (istek: {state.requested_at}), tekrar deneniyor")
        return await self.run_reschedule_pass()

    def trigger_in_background(
        self, prayer: PrayerName | None = None, is_isha: bool = False
    ) -> asyncio.Task:
        """Planlamayı arka planda başlat, tetikleyen hemen dönsün."""
        task = asyncio.create_task(
            self.run_reschedule_pass(fired_prayer=prayer, after_isha=is_isha)
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    # ============== Planlama ==============

    async def get_state(self) -> RescheduleState:
        """Kalıcı planlama durumu."""
        return await self._state_repository.load()

    async def run_reschedule_pass(
        self,
        *,
        fired_prayer: PrayerName | None = None,
        after_isha: bool = False,
    ) -> ScheduledAlarm | None:
        """
        Sıradaki vakti bul ve alarmı kur.

        Aynı girdilerle kaç kez çalışırsa çalışsın sonuç tek bir bekleyen
        alarmdır. Hata fırlatmaz; başarısız geçişte needs_reschedule True
        kalır ve sonraki tetik tekrar dener.
        """
        async with self._lock:
            await self._mark_requested()

            try:
                alarm = await self._reschedule(fired_prayer, after_isha)
            except ConfigurationMissingError as e:
                logger.error(f"Planlama iptal: {e}")
                self._publish_failure(str(e))
                return None
            except CapabilityDeniedError as e:
                logger.error(f"Planlama yapılamadı: {e}")
                self._publish_failure(str(e), capability_denied=True)
                return None
            except Exception as e:
                logger.exception(f"Yeniden planlama hatası: {e}")
                self._publish_failure(str(e))
                return None

            await self._mark_completed()

            if self._event_bus:
                self._event_bus.publish(RescheduleCompletedEvent(alarm=alarm))
            return alarm

    async def preview(self) -> NextPrayer | None:
        """Alarm kurmadan sıradaki vakti göster."""
        try:
            settings = read_settings(await self._preference_store.load())
            if settings.coordinates is None:
                return None
            now = self._clock().astimezone(self._calculator.timezone_for(settings.coordinates))
            today = self._day(settings, now.date())
            tomorrow = self._day(settings, now.date() + timedelta(days=1))
            return select_next(now, today, tomorrow.fajr)
        except Exception as e:
            logger.error(f"Sıradaki vakit hesaplanamadı: {e}")
            return None

    async def _reschedule(
        self, fired_prayer: PrayerName | None, after_isha: bool
    ) -> ScheduledAlarm | None:
        settings = read_settings(await self._preference_store.load())
        if settings.coordinates is None:
            raise ConfigurationMissingError("Konum kayıtlı değil, planlama yapılamıyor")

        tz = self._calculator.timezone_for(settings.coordinates)
        now = self._clock().astimezone(tz)
        logger.debug(
            f"Konum: {settings.coordinates.latitude}, {settings.coordinates.longitude} "
            f"metod: {settings.method.value}"
        )

        days: dict[date, DailyPrayerTimes] = {}

        def day(target: date) -> DailyPrayerTimes:
            if target not in days:
                days[target] = self._day(settings, target)
            return days[target]

        today = day(now.date())
        if after_isha:
            fired_prayer = PrayerName.ISHA
        reference = self._selection_floor(now, today, fired_prayer)

        for candidate in self._candidates(reference, now.date(), day):
            alarm = ScheduledAlarm(
                prayer=candidate.prayer,
                sound=settings.sound_for(candidate.prayer),
                trigger_at=candidate.at,
                is_isha=candidate.is_isha,
                slot_identity=SLOT_IDENTITY,
            )
            result = self._alarm_scheduler.schedule(
                alarm,
                sound_enabled=settings.is_sound_enabled(candidate.prayer),
                now=now,
            )
            if result is ScheduleResult.SCHEDULED:
                return alarm

        # Tüm sesler kapalı: önceki geçişten kalan alarm da kalkmalı
        logger.warning(f"{LOOKAHEAD_DAYS} gün içinde planlanacak vakit bulunamadı")
        self._alarm_scheduler.cancel_all()
        return None

    def _day(self, settings: AdhanSettings, target: date) -> DailyPrayerTimes:
        if settings.coordinates is None:
            raise ConfigurationMissingError("Konum kayıtlı değil, planlama yapılamıyor")
        return self._calculator.calculate(settings.coordinates, settings.method, target)

    @staticmethod
    def _selection_floor(
        now: datetime, today: DailyPrayerTimes, fired_prayer: PrayerName | None
    ) -> datetime:
        """Tetiklenen vakit birazdan geliyorsa onu geçmiş say."""
        if fired_prayer is None:
            return now
        fired_at = today.get_time(fired_prayer)
        if now < fired_at <= now + EARLY_FIRE_TOLERANCE:
            return fired_at
        return now

    @staticmethod
    def _candidates(
        reference: datetime,
        first_date: date,
        day: Callable[[date], DailyPrayerTimes],
    ) -> Iterator[NextPrayer]:
        """Seçiciyle başlayıp sonraki vakitleri sırayla ver."""
        today = day(first_date)
        tomorrow = day(first_date + timedelta(days=1))
        first = select_next(reference, today, tomorrow.fajr)
        yield first

        for offset in range(LOOKAHEAD_DAYS):
            for prayer_time in day(first_date + timedelta(days=offset)).all_prayer_times():
                if prayer_time.at > first.at:
                    yield NextPrayer(
                        prayer=prayer_time.name,
                        at=prayer_time.at,
                        is_isha=prayer_time.name is PrayerName.ISHA,
                    )

    # ============== Durum ==============

    async def _mark_requested(self) -> None:
        try:
            state = await self._state_repository.load()
            state.needs_reschedule = True
            state.requested_at = self._clock()
            await self._state_repository.save(state)
        except Exception as e:
            logger.error(f"Planlama isteği kaydedilemedi: {e}")

    async def _mark_completed(self) -> None:
        try:
            state = await self._state_repository.load()
            state.needs_reschedule = False
            state.last_completed_at = self._clock()
            await self._state_repository.save(state)
        except Exception as e:
            logger.error(f"Planlama durumu kaydedilemedi: {e}")

    def _publish_failure(self, message: str, capability_denied: bool = False) -> None:
        if self._event_bus:
            self._event_bus.publish(
                RescheduleFailedEvent(error_message=message, capability_denied=capability_denied)
            )

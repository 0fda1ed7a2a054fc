"""APScheduler based alarm facility."""

import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from typing import Any

from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from adhan_alarm.domain.exceptions import StaleTriggerError
from adhan_alarm.services.ports import AlarmFacilityPort

logger = logging.getLogger(__name__)

JOB_ID_PREFIX = "adhan_slot_"

FireHandler = Callable[[Mapping[str, Any]], Awaitable[None]]


def job_id_for(slot_identity: int) -> str:
    """Kimliğe karşılık gelen iş adı."""
    return f"{JOB_ID_PREFIX}{slot_identity}"


def slot_from_job_id(job_id: str) -> int | None:
    """İş adından kimliği çöz, bizim işimiz değilse None."""
    if not job_id.startswith(JOB_ID_PREFIX):
        return None
    try:
        return int(job_id[len(JOB_ID_PREFIX) :])
    except ValueError:
        return None


class APSchedulerAdapter(AlarmFacilityPort):
    """APScheduler ile tam zamanlı uyandırma adaptörü."""

    def __init__(
        self,
        *,
        exact_alarms: bool = True,
        misfire_grace_seconds: int = 60,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            exact_alarms: Tam zamanlı alarm izni var mı (False: izin reddedilmiş host)
            misfire_grace_seconds: Geç kalan işin yine de çalıştırılacağı süre
        """
        jobstores = {"default": MemoryJobStore()}
        self._scheduler = AsyncIOScheduler(jobstores=jobstores)
        self._started = False
        self._exact_alarms = exact_alarms
        self._misfire_grace_seconds = misfire_grace_seconds
        self._fire_handler: FireHandler | None = None

    def set_fire_handler(self, handler: FireHandler) -> None:
        """Alarm tetiklendiğinde çağrılacak fonksiyonu ayarla."""
        self._fire_handler = handler

    def set_exact_alarms(self, enabled: bool) -> None:
        """Tam zamanlı alarm iznini değiştir."""
        self._exact_alarms = enabled

    @property
    def is_running(self) -> bool:
        """Scheduler çalışıyor mu?"""
        return self._started

    def start(self) -> None:
        """Scheduler'ı başlat."""
        if not self._started:
            self._scheduler.start()
            self._started = True
            logger.info("APScheduler başlatıldı.")

    def shutdown(self) -> None:
        """Scheduler'ı kapat."""
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False
            logger.info("APScheduler kapatıldı.")

    def has_exact_alarm_capability(self) -> bool:
        """Tam zamanlı alarm izni var mı?"""
        return self._exact_alarms

    def register_exact_wakeup(
        self,
        slot_identity: int,
        trigger_at: datetime,
        payload: Mapping[str, Any],
    ) -> None:
        """Aynı kimlikteki kaydın yerine yeni uyandırma kaydet."""
        if trigger_at <= datetime.now(trigger_at.tzinfo):
            raise StaleTriggerError(f"Vakit geçmiş: {trigger_at}")

        if not self._started:
            self.start()

        job_id = job_id_for(slot_identity)
        self._scheduler.add_job(
            self._fire,
            trigger=DateTrigger(run_date=trigger_at),
            id=job_id,
            kwargs={"slot_identity": slot_identity, "payload": dict(payload)},
            replace_existing=True,
            misfire_grace_time=self._misfire_grace_seconds,
            coalesce=True,
        )
        logger.debug(f"İş planlandı: {job_id} -> {trigger_at}")

    async def _fire(self, slot_identity: int, payload: dict[str, Any]) -> None:
        logger.info(f"Uyandırma tetiklendi: {job_id_for(slot_identity)}")
        if self._fire_handler is None:
            logger.warning("Alarm işleyicisi ayarlanmamış, tetik yok sayıldı.")
            return
        try:
            await self._fire_handler(payload)
        except Exception as e:
            logger.exception(f"Alarm işlenirken hata: {e}")

    def cancel(self, slot_identity: int) -> bool:
        """Kimliğe ait kaydı iptal et."""
        job_id = job_id_for(slot_identity)
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            return False
        logger.debug(f"İş iptal edildi: {job_id}")
        return True

    def get_pending(self) -> list[tuple[int, datetime]]:
        """Bekleyen uyandırmaları listele."""
        result = []
        for job in self._scheduler.get_jobs():
            slot_identity = slot_from_job_id(job.id)
            run_time = getattr(job, "next_run_time", None)
            if slot_identity is not None and run_time is not None:
                result.append((slot_identity, run_time))
        return sorted(result, key=lambda x: x[1])

"""Entry point invoked when the alarm facility fires."""

import logging
from collections.abc import Mapping
from typing import Any

from adhan_alarm.domain.events import AlarmFiredEvent, SilentReminderEvent
from adhan_alarm.domain.models import FAJR_SOUND, PrayerName, ScheduledAlarm
from adhan_alarm.services.playback_service import PlaybackService
from adhan_alarm.services.ports import EventBusPort, PreferenceStorePort
from adhan_alarm.services.preferences import read_settings
from adhan_alarm.services.reschedule_service import RescheduleCoordinator

logger = logging.getLogger(__name__)


class AlarmReceiver:
    """Tetiklenen alarmı ezana çevirir ve zinciri devam ettirir."""

    def __init__(
        self,
        preference_store: PreferenceStorePort,
        playback: PlaybackService,
        coordinator: RescheduleCoordinator,
        event_bus: EventBusPort | None = None,
    ) -> None:
        self._preference_store = preference_store
        self._playback = playback
        self._coordinator = coordinator
        self._event_bus = event_bus

    async def on_alarm_fired(self, payload: Mapping[str, Any]) -> None:
        """
        Alarm tesisinden gelen payload'ı işle.

        Ezan çalınsa da çalınmasa da sonraki alarm mutlaka planlanır;
        aksi halde zincir kopar ve hiçbir alarm kalmaz.
        """
        prayer_name = str(payload.get("prayer_name") or "")
        sound = str(payload.get("sound_file") or FAJR_SOUND)
        is_isha = bool(payload.get("is_isha", False))
        prayer = PrayerName.from_label(prayer_name)

        logger.info(f"Alarm alındı: {prayer_name or '?'} (ses: {sound}, yatsı: {is_isha})")
        if self._event_bus:
            self._event_bus.publish(
                AlarmFiredEvent(prayer_name=prayer_name, sound_file=sound, is_isha=is_isha)
            )

        try:
            await self._announce(prayer, prayer_name, sound)
        except Exception as e:
            logger.error(f"Ezan başlatılamadı: {e}")

        await self._coordinator.on_alarm_fired(prayer, is_isha)

    async def fire(self, alarm: ScheduledAlarm) -> None:
        """Planlanmış bir alarmı elle tetikle."""
        await self.on_alarm_fired(alarm.to_payload())

    async def _announce(self, prayer: PrayerName | None, prayer_name: str, sound: str) -> None:
        settings = read_settings(await self._preference_store.load())

        if prayer is not None and not settings.is_sound_enabled(prayer):
            logger.info(f"{prayer.display_name} için ses kapalı, sessiz hatırlatma")
            if self._event_bus:
                self._event_bus.publish(SilentReminderEvent(prayer_name=prayer_name))
            return

        await self._playback.play(prayer_name or "Ezan", sound, settings.volume)

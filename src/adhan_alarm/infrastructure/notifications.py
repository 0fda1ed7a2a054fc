"""Desktop notifications for alert events."""

import logging
import shutil
import subprocess
from collections import deque

from adhan_alarm.domain.events import (
    AlertDismissedEvent,
    AudioErrorEvent,
    DomainEvent,
    OngoingAlertEvent,
    RescheduleFailedEvent,
    SilentReminderEvent,
)
from adhan_alarm.services.ports import EventBusPort

logger = logging.getLogger(__name__)

APP_NAME = "Adhan Alarm"


class AlertPresenter:
    """Uyarı event'lerini notify-send ile gösterir, yoksa loglar."""

    def __init__(self, use_notify_send: bool | None = None, history_size: int = 50) -> None:
        if use_notify_send is None:
            use_notify_send = shutil.which("notify-send") is not None
        self._use_notify_send = use_notify_send
        self.shown: deque[tuple[str, str]] = deque(maxlen=history_size)

    @property
    def uses_notify_send(self) -> bool:
        """Bildirimler notify-send ile mi gösteriliyor?"""
        return self._use_notify_send

    def attach(self, event_bus: EventBusPort) -> None:
        """Event bus'a abone ol."""
        event_bus.subscribe(OngoingAlertEvent, self.handle)
        event_bus.subscribe(AlertDismissedEvent, self.handle)
        event_bus.subscribe(SilentReminderEvent, self.handle)
        event_bus.subscribe(AudioErrorEvent, self.handle)
        event_bus.subscribe(RescheduleFailedEvent, self.handle)

    def handle(self, event: DomainEvent) -> None:
        """Event'i bildirime çevir."""
        match event:
            case OngoingAlertEvent(prayer_name=name):
                self._show(f"{name} vakti", "Ezan okunuyor", urgency="critical")
            case SilentReminderEvent(prayer_name=name):
                self._show(f"{name} vakti", "Namaz vakti girdi", urgency="normal")
            case AlertDismissedEvent(prayer_name=name):
                logger.debug(f"{name} bildirimi kaldırıldı")
            case AudioErrorEvent(error_message=message):
                self._show("Ezan çalınamadı", message, urgency="normal")
            case RescheduleFailedEvent(error_message=message, capability_denied=True):
                self._show("Alarm kurulamadı", message, urgency="critical")
            case _:
                logger.debug(f"Bildirim yok: {type(event).__name__}")

    def _show(self, title: str, body: str, urgency: str) -> None:
        self.shown.append((title, body))
        if not self._use_notify_send:
            logger.info(f"[bildirim] {title}: {body}")
            return
        try:
            subprocess.Popen(
                ["notify-send", f"--app-name={APP_NAME}", f"--urgency={urgency}", title, body],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"Bildirim gösterilemedi: {e}")

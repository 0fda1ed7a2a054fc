"""In-memory event bus implementation."""

import logging
from collections import defaultdict, deque
from collections.abc import Callable

from adhan_alarm.domain.events import DomainEvent
from adhan_alarm.services.ports import EventBusPort

logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBusPort):
    """Basit in-memory event bus.

    Üst sınıfa abone olan handler alt sınıf event'lerini de alır.
    """

    def __init__(self, history_size: int = 50) -> None:
        """Initialize event bus."""
        self._handlers: dict[type[DomainEvent], list[Callable[[DomainEvent], None]]] = defaultdict(
            list
        )
        self._recent: deque[DomainEvent] = deque(maxlen=history_size)

    def publish(self, event: DomainEvent) -> None:
        """Event yayınla."""
        self._recent.append(event)

        handlers = [
            handler
            for event_type in type(event).__mro__
            for handler in self._handlers.get(event_type, [])
        ]
        logger.debug(f"Event yayınlandı: {type(event).__name__} ({len(handlers)} handler)")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler hatası: {e}")

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: Callable[[DomainEvent], None],
    ) -> None:
        """Event tipine abone ol."""
        self._handlers[event_type].append(handler)
        logger.debug(f"Event aboneliği: {event_type.__name__}")

    def unsubscribe(
        self,
        event_type: type[DomainEvent],
        handler: Callable[[DomainEvent], None],
    ) -> None:
        """Event aboneliğini iptal et."""
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)
            logger.debug(f"Event aboneliği iptal: {event_type.__name__}")

    def recent(self, limit: int | None = None) -> list[DomainEvent]:
        """Son yayınlanan event'ler (eskiden yeniye)."""
        events = list(self._recent)
        return events[-limit:] if limit else events

    def clear_all(self) -> None:
        """Tüm abonelikleri ve geçmişi temizle."""
        self._handlers.clear()
        self._recent.clear()

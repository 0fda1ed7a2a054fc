"""Service layer interfaces (ports)."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Any

from adhan_alarm.domain.events import DomainEvent
from adhan_alarm.domain.models import (
    CalculationMethod,
    Coordinates,
    DailyPrayerTimes,
    RescheduleState,
)

# Player çıkış kodu, 0 ise ses sonuna kadar çalındı
CompletionCallback = Callable[[int], Awaitable[None]]


class FocusChange(str, Enum):
    """Ses odağı değişiklikleri."""

    GAIN = "gain"
    LOSS = "loss"
    LOSS_TRANSIENT = "loss_transient"


FocusListener = Callable[[FocusChange], Awaitable[None]]


class PrayerTimeCalculatorPort(ABC):
    """Namaz vakti hesaplama arayüzü (port)."""

    @abstractmethod
    def timezone_for(self, coordinates: Coordinates) -> tzinfo:
        """Koordinatların yerel saat dilimi."""

    @abstractmethod
    def calculate(
        self,
        coordinates: Coordinates,
        method: CalculationMethod,
        target_date: date,
    ) -> DailyPrayerTimes:
        """Belirtilen tarih için beş vakti hesapla."""


class PreferenceStorePort(ABC):
    """Tipsiz anahtar-değer ayar deposu arayüzü (port)."""

    @abstractmethod
    async def load(self) -> dict[str, Any]:
        """Tüm ham değerleri oku."""

    @abstractmethod
    async def update(self, values: Mapping[str, Any]) -> None:
        """Verilen anahtarları yaz (diğerleri korunur)."""


class RescheduleStateRepositoryPort(ABC):
    """Yeniden planlama durumu deposu (port)."""

    @abstractmethod
    async def load(self) -> RescheduleState:
        """Durumu oku."""

    @abstractmethod
    async def save(self, state: RescheduleState) -> None:
        """Durumu kaydet."""


class AlarmFacilityPort(ABC):
    """Tam zamanlı uyandırma tesisi arayüzü (port)."""

    @abstractmethod
    def register_exact_wakeup(
        self,
        slot_identity: int,
        trigger_at: datetime,
        payload: Mapping[str, Any],
    ) -> None:
        """Aynı kimlikteki kaydın yerine yeni uyandırma kaydet."""

    @abstractmethod
    def cancel(self, slot_identity: int) -> bool:
        """Kimliğe ait kaydı iptal et."""

    @abstractmethod
    def has_exact_alarm_capability(self) -> bool:
        """Tam zamanlı alarm izni var mı?"""

    @abstractmethod
    def get_pending(self) -> list[tuple[int, datetime]]:
        """Bekleyen uyandırmaları listele."""


class AudioPlayerPort(ABC):
    """Ses çalma arayüzü (port)."""

    @abstractmethod
    async def start(
        self,
        file_path: str,
        volume: int = 100,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        """Çalmayı başlat, bitince on_complete çıkış koduyla çağrılır."""

    @abstractmethod
    async def pause(self) -> None:
        """Çalmayı duraklat."""

    @abstractmethod
    async def resume(self) -> None:
        """Duraklatılan çalmaya devam et."""

    @abstractmethod
    async def stop(self) -> None:
        """Çalmayı durdur."""

    @abstractmethod
    def is_playing(self) -> bool:
        """Şu anda ses çalıyor mu?"""


class DeviceVolumePort(ABC):
    """Cihaz ses seviyesi arayüzü (port)."""

    @abstractmethod
    async def get_volume(self) -> int:
        """Mevcut cihaz ses seviyesi."""

    @abstractmethod
    async def get_max_volume(self) -> int:
        """En yüksek cihaz ses seviyesi."""

    @abstractmethod
    async def set_volume(self, volume: int) -> None:
        """Cihaz ses seviyesini ayarla."""


class AudioFocusPort(ABC):
    """Ses odağı arayüzü (port)."""

    @abstractmethod
    async def request(self, listener: FocusListener) -> bool:
        """Odağı iste, verilirse True."""

    @abstractmethod
    async def abandon(self, listener: FocusListener) -> None:
        """Odağı bırak."""


class WakeLockPort(ABC):
    """Uyanık tutma kilidi arayüzü (port)."""

    @abstractmethod
    async def acquire(self, timeout_seconds: float) -> None:
        """Kilidi al."""

    @abstractmethod
    async def release(self) -> None:
        """Kilidi bırak."""

    @abstractmethod
    def is_held(self) -> bool:
        """Kilit tutuluyor mu?"""


class EventBusPort(ABC):
    """Event bus arayüzü (port)."""

    @abstractmethod
    def publish(self, event: DomainEvent) -> None:
        """Event yayınla."""

    @abstractmethod
    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: Callable[[DomainEvent], None],
    ) -> None:
        """Event tipine abone ol."""

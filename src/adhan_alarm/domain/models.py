"""Domain models and value objects."""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Self

# Fajr her zaman kendi ezanıyla çalınır
FAJR_SOUND = "fajr"
DEFAULT_ADHAN = "Rabeh Ibn Darah Al Jazairi - Adan Al Jazaer"
FALLBACK_SOUND = "azan1"


class PrayerName(str, Enum):
    """Namaz vakti isimleri (kanonik sırada)."""

    FAJR = "fajr"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"

    @property
    def display_name(self) -> str:
        """Görüntüleme adı."""
        return self.value.capitalize()

    @property
    def icon(self) -> str:
        """Emoji ikonu."""
        icons = {
            PrayerName.FAJR: "🌙",
            PrayerName.DHUHR: "☀️",
            PrayerName.ASR: "🌤️",
            PrayerName.MAGHRIB: "🌇",
            PrayerName.ISHA: "🌃",
        }
        return icons[self]

    @property
    def sound_enabled_key(self) -> str:
        """Ayar deposundaki ses açık/kapalı anahtarı."""
        return f"{self.value}_sound_enabled"

    @classmethod
    def from_label(cls, label: str | None) -> Self | None:
        """'Fajr', 'ISHA' gibi etiketleri çöz, bilinmeyenlerde None."""
        if not label:
            return None
        try:
            return cls(label.strip().lower())
        except ValueError:
            return None


class CalculationMethod(str, Enum):
    """Namaz vakti hesaplama metodları."""

    MUSLIM_WORLD_LEAGUE = "muslim_world_league"
    EGYPTIAN = "egyptian"
    KARACHI = "karachi"
    UMM_AL_QURA = "umm_al_qura"
    NORTH_AMERICA = "north_america"
    DUBAI = "dubai"
    MOON_SIGHTING_COMMITTEE = "moon_sighting_committee"
    KUWAIT = "kuwait"
    QATAR = "qatar"
    SINGAPORE = "singapore"

    @property
    def display_name(self) -> str:
        """Görüntüleme adı."""
        names = {
            CalculationMethod.MUSLIM_WORLD_LEAGUE: "Muslim World League",
            CalculationMethod.EGYPTIAN: "Egyptian General Authority of Survey",
            CalculationMethod.KARACHI: "University of Islamic Sciences, Karachi",
            CalculationMethod.UMM_AL_QURA: "Umm al-Qura University, Makkah",
            CalculationMethod.NORTH_AMERICA: "Islamic Society of North America",
            CalculationMethod.DUBAI: "Dubai",
            CalculationMethod.MOON_SIGHTING_COMMITTEE: "Moonsighting Committee",
            CalculationMethod.KUWAIT: "Kuwait",
            CalculationMethod.QATAR: "Qatar",
            CalculationMethod.SINGAPORE: "Majlis Ugama Islam Singapura",
        }
        return names[self]

    @property
    def fajr_isha_ref(self) -> int:
        """pyIslam imsak/yatsı açı referansı.

        pyIslam'da karşılığı olmayan metodlar açıları en yakın olan
        metoda eşlenir.
        """
        refs = {
            CalculationMethod.KARACHI: 1,
            CalculationMethod.MUSLIM_WORLD_LEAGUE: 2,
            CalculationMethod.EGYPTIAN: 3,
            CalculationMethod.UMM_AL_QURA: 4,
            CalculationMethod.NORTH_AMERICA: 5,
            CalculationMethod.SINGAPORE: 7,
            CalculationMethod.DUBAI: 1,
            CalculationMethod.MOON_SIGHTING_COMMITTEE: 1,
            CalculationMethod.KUWAIT: 2,
            CalculationMethod.QATAR: 4,
        }
        return refs[self]

    @classmethod
    def default(cls) -> Self:
        """Tanınmayan metodlarda kullanılan varsayılan."""
        return cls.NORTH_AMERICA

    @classmethod
    def from_name(cls, name: Any) -> Self:
        """Metod adını çöz; hiçbir zaman hata fırlatmaz."""
        if not isinstance(name, str):
            return cls.default()
        compact = re.sub(r"[^a-z0-9]", "", name.lower())
        return _METHOD_ALIASES.get(compact, cls.default())


_METHOD_ALIASES: dict[str, CalculationMethod] = {
    **{method.value.replace("_", ""): method for method in CalculationMethod},
    "mwl": CalculationMethod.MUSLIM_WORLD_LEAGUE,
    "isna": CalculationMethod.NORTH_AMERICA,
    "makkah": CalculationMethod.UMM_AL_QURA,
    "egypt": CalculationMethod.EGYPTIAN,
    # pyIslam/adhan'da olmayan metodlar
    "tehran": CalculationMethod.MUSLIM_WORLD_LEAGUE,
    "turkey": CalculationMethod.MUSLIM_WORLD_LEAGUE,
}


@dataclass(frozen=True)
class Coordinates:
    """Konum bilgisi (immutable value object)."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        """Koordinat doğrulaması."""
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Geçersiz enlem: {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"Geçersiz boylam: {self.longitude}")


@dataclass(frozen=True)
class PrayerTime:
    """Tek bir namaz vakti."""

    name: PrayerName
    at: datetime

    @property
    def time_str(self) -> str:
        """HH:MM formatında."""
        return self.at.strftime("%H:%M")


@dataclass(frozen=True)
class DailyPrayerTimes:
    """Bir günün beş vakti, kesin artan sırada."""

    date: date
    fajr: datetime
    dhuhr: datetime
    asr: datetime
    maghrib: datetime
    isha: datetime

    def __post_init__(self) -> None:
        """Vakitlerin sırasını doğrula."""
        instants = [self.fajr, self.dhuhr, self.asr, self.maghrib, self.isha]
        for earlier, later in zip(instants, instants[1:]):
            if not earlier < later:
                raise ValueError(f"Vakitler artan sırada değil: {earlier} >= {later}")

    def get_time(self, prayer: PrayerName) -> datetime:
        """Belirtilen vaktin anını döndür."""
        mapping = {
            PrayerName.FAJR: self.fajr,
            PrayerName.DHUHR: self.dhuhr,
            PrayerName.ASR: self.asr,
            PrayerName.MAGHRIB: self.maghrib,
            PrayerName.ISHA: self.isha,
        }
        return mapping[prayer]

    def get_prayer_time(self, prayer: PrayerName) -> PrayerTime:
        """PrayerTime nesnesi olarak döndür."""
        return PrayerTime(name=prayer, at=self.get_time(prayer))

    def all_prayer_times(self) -> list[PrayerTime]:
        """Tüm vakitleri kanonik sırada döndür."""
        return [self.get_prayer_time(prayer) for prayer in PrayerName]

    def to_dict(self) -> dict[str, str]:
        """Dictionary olarak döndür."""
        data = {"date": self.date.isoformat()}
        for prayer_time in self.all_prayer_times():
            data[prayer_time.name.value] = prayer_time.time_str
        return data


@dataclass(frozen=True)
class NextPrayer:
    """Alarm kurulacak sıradaki vakit."""

    prayer: PrayerName
    at: datetime
    is_isha: bool = False


@dataclass(frozen=True)
class ScheduledAlarm:
    """Alarm tesisine verilen tek bir uyandırma."""

    prayer: PrayerName
    sound: str
    trigger_at: datetime
    is_isha: bool
    slot_identity: int

    def to_payload(self) -> dict[str, Any]:
        """Alarm tetiklendiğinde geri verilecek düz veri."""
        return {
            "prayer_name": self.prayer.display_name,
            "sound_file": self.sound,
            "is_isha": self.is_isha,
            "trigger_at": self.trigger_at.isoformat(),
            "slot_identity": self.slot_identity,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Self:
        """Payload'dan oluştur."""
        prayer = PrayerName.from_label(payload.get("prayer_name"))
        if prayer is None:
            raise ValueError(f"Bilinmeyen vakit: {payload.get('prayer_name')!r}")
        return cls(
            prayer=prayer,
            sound=payload.get("sound_file") or FAJR_SOUND,
            trigger_at=datetime.fromisoformat(payload["trigger_at"]),
            is_isha=bool(payload.get("is_isha", False)),
            slot_identity=int(payload["slot_identity"]),
        )


@dataclass
class RescheduleState:
    """Yeniden planlama durumu (kalıcı)."""

    needs_reschedule: bool = False
    requested_at: datetime | None = None
    last_completed_at: datetime | None = None


class PlaybackState(str, Enum):
    """Ezan çalma oturumu durumları."""

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"


@dataclass
class PlaybackSession:
    """Tek bir ezan çalma oturumu."""

    prayer_name: str
    sound_source: str | None
    requested_volume: float
    state: PlaybackState = PlaybackState.IDLE
    saved_device_volume: int | None = None
    paused_by_focus_loss: bool = False

    @property
    def is_active(self) -> bool:
        """Oturum cihazı tutuyor mu?"""
        return self.state in (PlaybackState.PLAYING, PlaybackState.PAUSED)


@dataclass
class AdhanSettings:
    """Ayar deposundan çözülmüş tipli ayarlar."""

    coordinates: Coordinates | None = None
    method: CalculationMethod = CalculationMethod.NORTH_AMERICA
    volume: float = 1.0
    selected_adhan: str = DEFAULT_ADHAN
    sound_enabled: dict[PrayerName, bool] = field(
        default_factory=lambda: {prayer: True for prayer in PrayerName}
    )

    def is_sound_enabled(self, prayer: PrayerName) -> bool:
        """Belirtilen vakit için ezan sesi açık mı?"""
        return self.sound_enabled.get(prayer, True)

    def sound_for(self, prayer: PrayerName) -> str:
        """Vakit için çalınacak ses adı."""
        return FAJR_SOUND if prayer is PrayerName.FAJR else self.selected_adhan

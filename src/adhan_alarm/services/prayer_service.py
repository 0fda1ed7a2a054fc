"""Prayer time calculation service."""

import logging
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from pyIslam.praytimes import Prayer, PrayerConf
from timezonefinder import TimezoneFinder

from adhan_alarm.domain.models import CalculationMethod, Coordinates, DailyPrayerTimes
from adhan_alarm.services.ports import PrayerTimeCalculatorPort

logger = logging.getLogger(__name__)

# pyIslam asr mezhebi: 1=Şafi (gölge boyu 1x)
STANDARD_ASR = 1


class PrayerService(PrayerTimeCalculatorPort):
    """Namaz vakti hesaplama servisi."""

    def __init__(
        self,
        *,
        asr_madhab: int = STANDARD_ASR,
        rounding_seconds: int = 30,
        timezone_finder: TimezoneFinder | None = None,
    ) -> None:
        """
        Initialize prayer service.

        Args:
            asr_madhab: Asr hesaplama mezhebi (pyIslam: 1=Şafi, 2=Hanefi)
            rounding_seconds: Dakikaya yuvarlamadan önce eklenen saniye
            timezone_finder: Saat dilimi bulucu (test için enjekte edilebilir)
        """
        self._asr_madhab = asr_madhab
        self._rounding_seconds = rounding_seconds
        self._tzf = timezone_finder
        self._tz_cache: dict[Coordinates, ZoneInfo] = {}

    def _finder(self) -> TimezoneFinder:
        if self._tzf is None:
            self._tzf = TimezoneFinder()
        return self._tzf

    def timezone_for(self, coordinates: Coordinates) -> tzinfo:
        """Koordinatların saat dilimi, bulunamazsa UTC."""
        cached = self._tz_cache.get(coordinates)
        if cached is not None:
            return cached

        tz_name = self._finder().timezone_at(lat=coordinates.latitude, lng=coordinates.longitude)
        if tz_name is None:
            logger.warning(
                f"Saat dilimi bulunamadı ({coordinates.latitude}, {coordinates.longitude}), UTC"
            )
            tz_name = "UTC"

        tz = ZoneInfo(tz_name)
        self._tz_cache[coordinates] = tz
        return tz

    def timezone_name(self, coordinates: Coordinates) -> str:
        """Saat dilimi adı."""
        return str(self.timezone_for(coordinates))

    @staticmethod
    def _utc_offset_hours(tz: tzinfo, target_date: date) -> float:
        """Hedef günün öğlen saatindeki UTC farkı (yaz saati dahil)."""
        noon = datetime.combine(target_date, time(12, 0), tzinfo=tz)
        offset = noon.utcoffset()
        if offset is None:
            return 0.0
        return offset.total_seconds() / 3600

    def _localize(self, time_obj: time, target_date: date, tz: tzinfo) -> datetime:
        """Yerel vakti dakikaya yuvarlanmış aware datetime'a çevir."""
        dt = datetime.combine(target_date, time_obj)
        adjusted = dt + timedelta(seconds=self._rounding_seconds)
        return adjusted.replace(second=0, microsecond=0, tzinfo=tz)

    def calculate(
        self,
        coordinates: Coordinates,
        method: CalculationMethod,
        target_date: date,
    ) -> DailyPrayerTimes:
        """Belirtilen tarih için namaz vakitlerini hesapla."""
        tz = self.timezone_for(coordinates)
        conf = PrayerConf(
            coordinates.longitude,
            coordinates.latitude,
            self._utc_offset_hours(tz, target_date),
            method.fajr_isha_ref,
            self._asr_madhab,
        )
        prayer = Prayer(conf, target_date)

        raw = [
            prayer.fajr_time(),
            prayer.dohr_time(),
            prayer.asr_time(),
            prayer.maghreb_time(),
            prayer.ishaa_time(),
        ]

        # Yüksek enlemlerde yatsı gece yarısını geçebilir
        instants: list[datetime] = []
        for time_obj in raw:
            at = self._localize(time_obj, target_date, tz)
            while instants and at <= instants[-1]:
                at += timedelta(days=1)
            instants.append(at)

        fajr, dhuhr, asr, maghrib, isha = instants
        return DailyPrayerTimes(
            date=target_date,
            fajr=fajr,
            dhuhr=dhuhr,
            asr=asr,
            maghrib=maghrib,
            isha=isha,
        )

    def calculate_range(
        self,
        coordinates: Coordinates,
        method: CalculationMethod,
        start_date: date,
        days: int,
    ) -> list[DailyPrayerTimes]:
        """Belirtilen tarihten itibaren n gün için vakitleri hesapla."""
        return [
            self.calculate(coordinates, method, start_date + timedelta(days=i))
            for i in range(days)
        ]

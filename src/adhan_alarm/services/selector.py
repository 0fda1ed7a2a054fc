"""Next-prayer selection."""

from datetime import datetime

from adhan_alarm.domain.models import DailyPrayerTimes, NextPrayer, PrayerName, PrayerTime


def upcoming_today(now: datetime, today: DailyPrayerTimes) -> PrayerTime | None:
    """Bugünün henüz gelmemiş ilk vakti.

    Tam ``now`` anına denk gelen vakit geçmiş sayılır.
    """
    for prayer_time in today.all_prayer_times():
        if prayer_time.at > now:
            return prayer_time
    return None


def select_next(now: datetime, today: DailyPrayerTimes, tomorrow_fajr: datetime) -> NextPrayer:
    """
    Alarm kurulacak tek vakti seç.

    Args:
        now: Şu an (timezone-aware)
        today: Bugünün vakitleri
        tomorrow_fajr: Yarının imsak vakti

    Returns:
        Bugünün sıradaki vakti, hepsi geçtiyse yarının Fajr'ı
    """
    upcoming = upcoming_today(now, today)
    if upcoming is None:
        return NextPrayer(prayer=PrayerName.FAJR, at=tomorrow_fajr, is_isha=False)

    return NextPrayer(
        prayer=upcoming.name,
        at=upcoming.at,
        is_isha=upcoming.name is PrayerName.ISHA,
    )

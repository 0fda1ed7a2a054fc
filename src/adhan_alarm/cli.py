"""Command-line interface for Adhan Alarm."""

import argparse
import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

from adhan_alarm import __version__
from adhan_alarm.domain.models import CalculationMethod


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="adhan-alarm",
        description="Namaz vakti alarmı ve ezan çalma motoru",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"adhan-alarm {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Komutlar")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Servisi başlat")
    serve_parser.add_argument("--host", "-H", help="Sunucu adresi (varsayılan: 0.0.0.0)")
    serve_parser.add_argument("--port", "-p", type=int, help="Sunucu portu (varsayılan: 8080)")
    serve_parser.add_argument("--preferences", "-s", type=Path, help="Ayar dosyası yolu")
    serve_parser.add_argument("--state", type=Path, help="Planlama durumu dosyası yolu")
    serve_parser.add_argument("--audio-dir", "-a", type=Path, help="Ezan ses dosyaları dizini")
    serve_parser.add_argument(
        "--no-exact-alarms",
        action="store_true",
        help="Tam zamanlı alarm izni yokmuş gibi çalış",
    )
    serve_parser.add_argument(
        "--log-level",
        "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log seviyesi (varsayılan: INFO)",
    )

    method_names = [m.value for m in CalculationMethod]

    # times command
    times_parser = subparsers.add_parser("times", help="Namaz vakitlerini göster")
    _add_location_args(times_parser, method_names)
    times_parser.add_argument(
        "--days",
        "-d",
        type=int,
        default=1,
        help="Kaç günlük (varsayılan: 1)",
    )

    # next command
    next_parser = subparsers.add_parser("next", help="Alarm kurulacak sıradaki vakti göster")
    _add_location_args(next_parser, method_names)

    # test-audio command
    test_parser = subparsers.add_parser("test-audio", help="Ses testi yap")
    test_parser.add_argument(
        "--sound",
        "-f",
        help="Ses dosyası yolu ya da ses adı (varsayılan: seçili ezan)",
    )
    test_parser.add_argument("--audio-dir", "-a", type=Path, help="Ezan ses dosyaları dizini")
    test_parser.add_argument(
        "--volume",
        "-V",
        type=int,
        default=80,
        help="Ses seviyesi (0-100, varsayılan: 80)",
    )

    return parser


def _add_location_args(parser: argparse.ArgumentParser, method_names: list[str]) -> None:
    parser.add_argument("--lat", type=float, help="Enlem (varsayılan: ayar dosyası)")
    parser.add_argument("--lng", type=float, help="Boylam (varsayılan: ayar dosyası)")
    parser.add_argument(
        "--method",
        "-m",
        choices=method_names,
        help="Hesaplama metodu (varsayılan: ayar dosyası)",
    )
    parser.add_argument("--preferences", "-s", type=Path, help="Ayar dosyası yolu")


def _load_settings(args: argparse.Namespace):
    """Komut satırı ve ayar dosyasından tipli ayarları üret."""
    from adhan_alarm.config import get_config
    from adhan_alarm.domain.models import Coordinates
    from adhan_alarm.infrastructure.preference_store import JsonPreferenceStore
    from adhan_alarm.services.preferences import read_settings

    store = JsonPreferenceStore(args.preferences or get_config().preferences_path)
    settings = read_settings(asyncio.run(store.load()))

    if args.lat is not None and args.lng is not None:
        settings.coordinates = Coordinates(latitude=args.lat, longitude=args.lng)
    if args.method:
        settings.method = CalculationMethod(args.method)
    return settings


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the web server."""
    import uvicorn

    from adhan_alarm.api.app import create_app
    from adhan_alarm.config import get_config, setup_logging

    config = get_config()
    log_level = args.log_level or config.log_level
    setup_logging(log_level)

    app = create_app(
        preferences_path=args.preferences or config.preferences_path,
        state_path=args.state or config.state_path,
        audio_dir=args.audio_dir or config.audio_dir,
        exact_alarms=config.exact_alarms and not args.no_exact_alarms,
    )

    uvicorn.run(
        app,
        host=args.host or config.host,
        port=args.port or config.port,
        log_level=log_level.lower(),
    )


def cmd_times(args: argparse.Namespace) -> int:
    """Show prayer times."""
    from adhan_alarm.services.prayer_service import PrayerService

    settings = _load_settings(args)
    if settings.coordinates is None:
        print("❌ Konum yok. --lat/--lng verin ya da ayar dosyasına kaydedin.")
        return 1

    service = PrayerService()
    tz = service.timezone_for(settings.coordinates)
    now = datetime.now(tz)
    times_list = service.calculate_range(settings.coordinates, settings.method, now.date(), args.days)

    print(f"\n📍 Konum: {settings.coordinates.latitude:.4f}, {settings.coordinates.longitude:.4f}")
    print(f"🌍 Timezone: {tz}")
    print(f"🧭 Metod: {settings.method.display_name}")
    print()

    print("=" * 60)
    print(f"{'Tarih':<15} {'Fajr':>8} {'Dhuhr':>8} {'Asr':>8} {'Maghrib':>8} {'Isha':>8}")
    print("-" * 60)

    for times in times_list:
        print(
            f"{times.date.strftime('%d.%m.%Y'):<15} "
            f"{times.fajr.strftime('%H:%M'):>8} "
            f"{times.dhuhr.strftime('%H:%M'):>8} "
            f"{times.asr.strftime('%H:%M'):>8} "
            f"{times.maghrib.strftime('%H:%M'):>8} "
            f"{times.isha.strftime('%H:%M'):>8}"
        )

    print("=" * 60)
    return 0


def cmd_next(args: argparse.Namespace) -> int:
    """Show the prayer the next alarm would be set for."""
    from adhan_alarm.services.prayer_service import PrayerService
    from adhan_alarm.services.selector import select_next

    settings = _load_settings(args)
    if settings.coordinates is None:
        print("❌ Konum yok. --lat/--lng verin ya da ayar dosyasına kaydedin.")
        return 1

    service = PrayerService()
    now = datetime.now(service.timezone_for(settings.coordinates))
    today = service.calculate(settings.coordinates, settings.method, now.date())
    tomorrow = service.calculate(
        settings.coordinates, settings.method, now.date() + timedelta(days=1)
    )
    next_prayer = select_next(now, today, tomorrow.fajr)

    remaining = next_prayer.at - now
    hours, remainder = divmod(int(remaining.total_seconds()), 3600)
    minutes = remainder // 60
    sound = "açık" if settings.is_sound_enabled(next_prayer.prayer) else "kapalı"

    print(f"{next_prayer.prayer.icon} {next_prayer.prayer.display_name}")
    print(f"⏰ {next_prayer.at.strftime('%d.%m.%Y %H:%M')} ({hours} sa {minutes} dk sonra)")
    print(f"🔈 Ezan sesi: {sound} ({settings.sound_for(next_prayer.prayer)})")
    return 0


def cmd_test_audio(args: argparse.Namespace) -> int:
    """Test audio playback."""
    from adhan_alarm.config import get_config
    from adhan_alarm.domain.models import DEFAULT_ADHAN
    from adhan_alarm.infrastructure.audio import get_best_player
    from adhan_alarm.services.playback_service import SoundResolver

    async def _test() -> int:
        try:
            player = get_best_player()
        except RuntimeError as e:
            print(f"❌ {e}")
            return 1
        print(f"🔊 Ses oynatıcı: {player.__class__.__name__}")

        resolver = SoundResolver(args.audio_dir or get_config().audio_dir)
        file_path = resolver.resolve(args.sound or DEFAULT_ADHAN)
        if file_path is None:
            print(f"❌ Ses bulunamadı: {args.sound or DEFAULT_ADHAN}")
            return 1

        print(f"📂 Dosya: {file_path}")
        print(f"🔈 Ses seviyesi: {args.volume}%")
        print("▶️  Çalınıyor... (durdurmak için Ctrl+C)")

        done = asyncio.Event()
        exit_codes: list[int] = []

        async def _finished(returncode: int) -> None:
            exit_codes.append(returncode)
            done.set()

        try:
            await player.start(str(file_path), volume=args.volume, on_complete=_finished)
            await done.wait()
            if exit_codes[0] != 0:
                print(f"❌ Oynatıcı hata koduyla çıktı: {exit_codes[0]}")
                return 1
            print("✅ Tamamlandı!")
        except Exception as e:
            print(f"❌ Hata: {e}")
            return 1
        finally:
            await player.stop()
        return 0

    return asyncio.run(_test())


def main() -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.command is None:
        # Varsayılan olarak serve çalıştır
        args = parser.parse_args(["serve"])

    commands = {
        "serve": cmd_serve,
        "times": cmd_times,
        "next": cmd_next,
        "test-audio": cmd_test_audio,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args) or 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())

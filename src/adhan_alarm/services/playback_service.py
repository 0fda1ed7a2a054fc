"""Adhan playback session lifecycle."""

import asyncio
import logging
import re
from pathlib import Path

from adhan_alarm.domain.events import (
    AdhanPausedEvent,
    AdhanResumedEvent,
    AdhanStartedEvent,
    AdhanStoppedEvent,
    AlertDismissedEvent,
    AudioErrorEvent,
    DomainEvent,
    LaunchPlayerEvent,
    OngoingAlertEvent,
)
from adhan_alarm.domain.exceptions import ResourceUnavailableError
from adhan_alarm.domain.models import FALLBACK_SOUND, PlaybackSession, PlaybackState
from adhan_alarm.services.ports import (
    AudioFocusPort,
    AudioPlayerPort,
    DeviceVolumePort,
    EventBusPort,
    FocusChange,
    WakeLockPort,
)

logger = logging.getLogger(__name__)

WAKE_LOCK_TIMEOUT_SECONDS = 10 * 60
SOUND_EXTENSIONS = (".mp3", ".ogg", ".wav")


def normalize_sound_name(name: str) -> str:
    """'Rabeh Ibn Darah - Adan' -> 'rabeh_ibn_darah_adan'."""
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


class SoundResolver:
    """Ses adını ya da yolunu çalınabilir dosyaya çözer."""

    def __init__(self, audio_dir: Path, fallback: str = FALLBACK_SOUND) -> None:
        self._audio_dir = audio_dir
        self._fallback = fallback

    @property
    def audio_dir(self) -> Path:
        """Ses dosyaları dizini."""
        return self._audio_dir

    def _bundled(self, name: str) -> Path | None:
        normalized = normalize_sound_name(name)
        if not normalized:
            return None
        for extension in SOUND_EXTENSIONS:
            candidate = self._audio_dir / f"{normalized}{extension}"
            if candidate.is_file():
                return candidate
        return None

    def resolve(self, sound: str | None) -> Path | None:
        """
        Ses kaynağını çöz.

        Sıra: diskte var olan yerel dosya, ses dizinindeki normalize edilmiş
        ad, sabit yedek ses. Hiçbiri yoksa None.
        """
        if sound:
            local = Path(sound).expanduser()
            if local.is_file():
                return local

            bundled = self._bundled(sound)
            if bundled is not None:
                return bundled
            logger.warning(f"Ses bulunamadı: {sound}, {self._fallback} kullanılacak")

        return self._bundled(self._fallback)

    def available_sounds(self) -> list[str]:
        """Ses dizinindeki sesler."""
        if not self._audio_dir.is_dir():
            return []
        return sorted(
            path.stem for path in self._audio_dir.iterdir() if path.suffix in SOUND_EXTENSIONS
        )


class PlaybackService:
    """Tek ezan oturumunun sahibi: wake-lock, ses odağı ve cihaz sesi dahil."""

    def __init__(
        self,
        audio_player: AudioPlayerPort,
        device_volume: DeviceVolumePort,
        audio_focus: AudioFocusPort,
        wake_lock: WakeLockPort,
        sound_resolver: SoundResolver,
        event_bus: EventBusPort | None = None,
    ) -> None:
        """
        Initialize playback service.

        Args:
            audio_player: Ses çalma adaptörü
            device_volume: Cihaz ses seviyesi adaptörü
            audio_focus: Ses odağı hakemi
            wake_lock: Uyanık tutma kilidi
            sound_resolver: Ses kaynağı çözücü
            event_bus: Event bus (opsiyonel)
        """
        self._audio_player = audio_player
        self._device_volume = device_volume
        self._audio_focus = audio_focus
        self._wake_lock = wake_lock
        self._sound_resolver = sound_resolver
        self._event_bus = event_bus
        self._session: PlaybackSession | None = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> PlaybackSession | None:
        """Etkin oturum."""
        return self._session

    @property
    def state(self) -> PlaybackState:
        """Etkin oturumun durumu, yoksa IDLE."""
        return self._session.state if self._session else PlaybackState.IDLE

    @property
    def sound_resolver(self) -> SoundResolver:
        """Ses kaynağı çözücü."""
        return self._sound_resolver

    def is_playing(self) -> bool:
        """Ezan çalıyor mu?"""
        return self.state is PlaybackState.PLAYING

    def _publish(self, event: DomainEvent) -> None:
        if self._event_bus:
            self._event_bus.publish(event)

    # ============== Komutlar ==============

    async def play(
        self, prayer_name: str, sound: str | None, volume: float = 1.0
    ) -> PlaybackSession | None:
        """
        Ezanı çal.

        Etkin bir oturum varsa önce tamamen durdurulur.

        Args:
            prayer_name: Vakit adı
            sound: Yerel dosya yolu ya da ses adı
            volume: Çalma sesi (0-1, cihaz sesine göre)

        Returns:
            Başlayan oturum, başlatılamadıysa None
        """
        async with self._lock:
            if self._session is not None and self._session.is_active:
                logger.info("Yeni ezan isteği, mevcut oturum durduruluyor")
                await self._teardown(self._session, "superseded")

            session = PlaybackSession(
                prayer_name=prayer_name,
                sound_source=sound,
                requested_volume=min(max(volume, 0.0), 1.0),
            )
            self._session = session

            try:
                await self._start(session)
            except ResourceUnavailableError as e:
                logger.error(f"{e}, oturum kapatılıyor")
                self._publish(AudioErrorEvent(error_message=str(e), prayer_name=prayer_name))
                await self._teardown(session, "resource_unavailable")
                return None
            except Exception as e:
                logger.error(f"Ezan çalınırken hata: {e}")
                self._publish(
                    AudioErrorEvent(error_message=f"Ezan çalınırken hata: {e}", prayer_name=prayer_name)
                )
                await self._teardown(session, "error")
                return None

            return session

    async def _start(self, session: PlaybackSession) -> None:
        # Görünür çıktı önce: sistem kısa bir süre içinde bildirim bekler
        self._publish(OngoingAlertEvent(prayer_name=session.prayer_name))

        await self._wake_lock.acquire(WAKE_LOCK_TIMEOUT_SECONDS)

        if not await self._audio_focus.request(self._on_focus_change):
            logger.warning("Ses odağı verilmedi, yine de çalınıyor")

        path = self._sound_resolver.resolve(session.sound_source)
        if path is None:
            raise ResourceUnavailableError(
                f"Çalınabilir ses bulunamadı: {session.sound_source!r}"
            )
        session.sound_source = str(path)

        session.saved_device_volume = await self._device_volume.get_volume()
        await self._device_volume.set_volume(await self._device_volume.get_max_volume())

        volume_percent = round(session.requested_volume * 100)
        logger.info(
            f"{session.prayer_name} ezanı çalınıyor: {path.name} (ses: {volume_percent}%)"
        )
        await self._audio_player.start(
            str(path),
            volume=volume_percent,
            on_complete=lambda returncode: self._on_completion(session, returncode),
        )

        session.state = PlaybackState.PLAYING
        self._publish(
            AdhanStartedEvent(prayer_name=session.prayer_name, volume=session.requested_volume)
        )
        self._publish(LaunchPlayerEvent(prayer_name=session.prayer_name))

    async def pause(self) -> bool:
        """Ezanı duraklat."""
        async with self._lock:
            return await self._pause(by_focus_loss=False)

    async def _pause(self, by_focus_loss: bool) -> bool:
        session = self._session
        if session is None or session.state is not PlaybackState.PLAYING:
            logger.debug("Duraklatılacak ezan yok.")
            return False

        try:
            await self._audio_player.pause()
        except Exception as e:
            await self._abort(session, f"Ezan duraklatılamadı: {e}")
            return False

        session.state = PlaybackState.PAUSED
        session.paused_by_focus_loss = by_focus_loss
        logger.info(f"{session.prayer_name} ezanı duraklatıldı")
        self._publish(AdhanPausedEvent(prayer_name=session.prayer_name))
        return True

    async def resume(self) -> bool:
        """Duraklatılan ezana devam et."""
        async with self._lock:
            return await self._resume()

    async def _resume(self) -> bool:
        session = self._session
        if session is None or session.state is not PlaybackState.PAUSED:
            logger.debug("Devam ettirilecek ezan yok.")
            return False

        try:
            await self._audio_player.resume()
        except Exception as e:
            await self._abort(session, f"Ezana devam edilemedi: {e}")
            return False

        session.state = PlaybackState.PLAYING
        session.paused_by_focus_loss = False
        logger.info(f"{session.prayer_name} ezanına devam ediliyor")
        self._publish(AdhanResumedEvent(prayer_name=session.prayer_name))
        return True

    async def stop(self, reason: str = "stopped") -> bool:
        """Ezanı durdur ve tüm kaynakları bırak."""
        async with self._lock:
            session = self._session
            if session is None or not session.is_active:
                logger.debug("Durdurulacak ezan yok.")
                return False
            await self._teardown(session, reason)
            return True

    # ============== Geri çağırmalar ==============

    async def _on_completion(self, session: PlaybackSession, returncode: int = 0) -> None:
        async with self._lock:
            if session is not self._session or not session.is_active:
                return
            if returncode != 0:
                await self._abort(
                    session, f"Oynatıcı çalma sırasında hata verdi (çıkış kodu: {returncode})"
                )
                return
            logger.info(f"{session.prayer_name} ezanı tamamlandı.")
            await self._teardown(session, "completed")

    async def _abort(self, session: PlaybackSession, message: str) -> None:
        """Kurtarılamayan çalma hatası: bildir ve kaynakları bırak."""
        logger.error(f"{session.prayer_name}: {message}")
        self._publish(AudioErrorEvent(error_message=message, prayer_name=session.prayer_name))
        await self._teardown(session, "error")

    async def _on_focus_change(self, change: FocusChange) -> None:
        async with self._lock:
            session = self._session
            if session is None or not session.is_active:
                return

            if change is FocusChange.LOSS:
                logger.info("Ses odağı kaybedildi, ezan durduruluyor")
                await self._teardown(session, "focus_lost")
            elif change is FocusChange.LOSS_TRANSIENT:
                logger.info("Ses odağı geçici olarak kaybedildi, duraklatılıyor")
                await self._pause(by_focus_loss=True)
            elif change is FocusChange.GAIN and session.paused_by_focus_loss:
                logger.info("Ses odağı geri geldi, devam ediliyor")
                await self._resume()

    # ============== Kapanış ==============

    async def _teardown(self, session: PlaybackSession, reason: str) -> None:
        """Çıkışı durdur, cihaz sesini geri yükle, odağı ve kilidi bırak.

        Her adım ayrı korunur; biri başarısız olsa da diğerleri çalışır.
        """
        try:
            await self._audio_player.stop()
        except Exception as e:
            logger.error(f"Ses durdurulamadı: {e}")

        if session.saved_device_volume is not None:
            try:
                await self._device_volume.set_volume(session.saved_device_volume)
            except Exception as e:
                logger.error(f"Cihaz sesi geri yüklenemedi: {e}")

        try:
            await self._audio_focus.abandon(self._on_focus_change)
        except Exception as e:
            logger.error(f"Ses odağı bırakılamadı: {e}")

        try:
            await self._wake_lock.release()
        except Exception as e:
            logger.error(f"WakeLock bırakılamadı: {e}")

        session.state = PlaybackState.STOPPED
        if self._session is session:
            self._session = None

        logger.info(f"{session.prayer_name} ezan oturumu kapandı ({reason})")
        self._publish(AlertDismissedEvent(prayer_name=session.prayer_name))
        self._publish(AdhanStoppedEvent(prayer_name=session.prayer_name, reason=reason))

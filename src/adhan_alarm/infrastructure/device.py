"""Device adapters: mixer volume, audio focus and wake-lock."""

import asyncio
import logging
import re
import shutil
import time

from adhan_alarm.services.ports import (
    AudioFocusPort,
    DeviceVolumePort,
    FocusChange,
    FocusListener,
    WakeLockPort,
)

logger = logging.getLogger(__name__)

_PERCENT = re.compile(r"\[(\d{1,3})%\]")


class SoftwareVolumeControl(DeviceVolumePort):
    """Mixer olmayan sistemler için bellekte tutulan ses seviyesi."""

    def __init__(self, volume: int = 100, max_volume: int = 100) -> None:
        self._volume = volume
        self._max_volume = max_volume

    async def get_volume(self) -> int:
        return self._volume

    async def get_max_volume(self) -> int:
        return self._max_volume

    async def set_volume(self, volume: int) -> None:
        if not 0 <= volume <= self._max_volume:
            raise ValueError(f"Geçersiz ses seviyesi: {volume}")
        self._volume = volume


class AmixerVolumeControl(DeviceVolumePort):
    """ALSA amixer ile cihaz ses seviyesi."""

    def __init__(self, control: str = "Master") -> None:
        self._control = control

    @staticmethod
    def is_available() -> bool:
        """amixer kurulu mu?"""
        return shutil.which("amixer") is not None

    async def _run(self, *args: str) -> str:
        proc = await asyncio.create_subprocess_exec(
            "amixer",
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            error_msg = stderr.decode().strip() if stderr else ""
            raise RuntimeError(f"amixer hatası ({proc.returncode}): {error_msg}")
        return stdout.decode()

    async def get_volume(self) -> int:
        """Mevcut seviye (yüzde)."""
        output = await self._run("get", self._control)
        match = _PERCENT.search(output)
        if match is None:
            raise RuntimeError(f"amixer çıktısı çözülemedi: {self._control}")
        return int(match.group(1))

    async def get_max_volume(self) -> int:
        return 100

    async def set_volume(self, volume: int) -> None:
        """Seviyeyi ayarla (yüzde)."""
        if not 0 <= volume <= 100:
            raise ValueError(f"Geçersiz ses seviyesi: {volume}")
        await self._run("-q", "set", self._control, f"{volume}%")
        logger.debug(f"Cihaz sesi ayarlandı: {volume}%")


def get_volume_control() -> DeviceVolumePort:
    """amixer varsa onu, yoksa yazılım kontrolünü döndür."""
    if AmixerVolumeControl.is_available():
        return AmixerVolumeControl()
    logger.info("amixer bulunamadı, yazılım ses kontrolü kullanılacak")
    return SoftwareVolumeControl()


class InProcessAudioFocus(AudioFocusPort):
    """
    Süreç içi ses odağı hakemi.

    Odağı aynı anda tek dinleyici tutar. Yeni bir istek önceki sahibe LOSS
    gönderir. Diğer ses üreticileri ``interrupt`` ile odağı geçici olarak
    alıp ``end_interruption`` ile geri verebilir.
    """

    def __init__(self) -> None:
        self._holder: FocusListener | None = None
        self._interrupted = False

    @property
    def has_holder(self) -> bool:
        return self._holder is not None

    async def request(self, listener: FocusListener) -> bool:
        previous = self._holder
        self._holder = listener
        self._interrupted = False
        if previous is not None and previous != listener:
            logger.debug("Ses odağı yeni sahibe geçti")
            await previous(FocusChange.LOSS)
        return True

    async def abandon(self, listener: FocusListener) -> None:
        if self._holder == listener:
            self._holder = None
            self._interrupted = False

    async def interrupt(self, transient: bool = True) -> None:
        """Başka bir ses kaynağı odağı istedi."""
        holder = self._holder
        if holder is None:
            return
        if transient:
            self._interrupted = True
            await holder(FocusChange.LOSS_TRANSIENT)
        else:
            self._holder = None
            await holder(FocusChange.LOSS)

    async def end_interruption(self) -> None:
        """Geçici kesinti bitti, odağı sahibine geri ver."""
        holder = self._holder
        if holder is None or not self._interrupted:
            return
        self._interrupted = False
        await holder(FocusChange.GAIN)


class InhibitorWakeLock(WakeLockPort):
    """
    systemd-inhibit ile uyku engelleme.

    systemd yoksa yalnızca kilit süresini takip eder.
    """

    def __init__(self, who: str = "adhan-alarm", why: str = "Ezan çalınıyor") -> None:
        self._who = who
        self._why = why
        self._process: asyncio.subprocess.Process | None = None
        self._deadline: float | None = None

    @staticmethod
    def is_available() -> bool:
        """systemd-inhibit kurulu mu?"""
        return shutil.which("systemd-inhibit") is not None

    async def acquire(self, timeout_seconds: float) -> None:
        """Kilidi al; süre dolunca kendiliğinden düşer."""
        await self.release()
        self._deadline = time.monotonic() + timeout_seconds

        if not self.is_available():
            logger.debug("systemd-inhibit yok, kilit yalnızca takip ediliyor")
            return

        self._process = await asyncio.create_subprocess_exec(
            "systemd-inhibit",
            "--what=sleep:idle",
            f"--who={self._who}",
            f"--why={self._why}",
            "--mode=block",
            "sleep",
            str(int(timeout_seconds)),
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        logger.debug(f"WakeLock alındı ({int(timeout_seconds)}s)")

    async def release(self) -> None:
        """Kilidi bırak."""
        process = self._process
        self._process = None
        self._deadline = None

        if process is not None and process.returncode is None:
            try:
                process.terminate()
                await asyncio.wait_for(process.wait(), timeout=2.0)
            except TimeoutError:
                process.kill()
                await process.wait()
            except ProcessLookupError:
                pass
            logger.debug("WakeLock bırakıldı")

    def is_held(self) -> bool:
        return self._deadline is not None and time.monotonic() < self._deadline

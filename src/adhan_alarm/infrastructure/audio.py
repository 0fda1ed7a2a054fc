"""Subprocess audio players for Linux / Raspberry Pi."""

import asyncio
import logging
import shutil
import signal
from abc import ABC, abstractmethod
from pathlib import Path

from adhan_alarm.services.ports import AudioPlayerPort, CompletionCallback

logger = logging.getLogger(__name__)


class BaseAudioPlayer(AudioPlayerPort, ABC):
    """Base class for audio players."""

    executable: str = ""

    def __init__(self) -> None:
        self._process: asyncio.subprocess.Process | None = None
        self._watcher: asyncio.Task | None = None
        self._paused = False

    @abstractmethod
    def _get_command(self, file_path: str, volume: int) -> list[str]:
        """Çalma komutu oluştur."""

    def _is_available(self) -> bool:
        """Player kurulu mu?"""
        return shutil.which(self.executable) is not None

    async def start(
        self,
        file_path: str,
        volume: int = 100,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        """Ses dosyasını çalmaya başla (beklemeden)."""
        if not Path(file_path).exists():
            raise FileNotFoundError(f"Ses dosyası bulunamadı: {file_path}")

        if not self._is_available():
            raise RuntimeError(f"{self.__class__.__name__} kullanılamıyor")

        if not 0 <= volume <= 100:
            raise ValueError(f"Geçersiz ses seviyesi: {volume}")

        # Önceki çalmayı durdur
        await self.stop()

        cmd = self._get_command(file_path, volume)
        logger.info(f"Ses çalma başlatılıyor: {' '.join(cmd)}")

        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        self._process = process
        self._paused = False
        self._watcher = asyncio.create_task(self._watch(process, on_complete))
        logger.info(f"Ses process başlatıldı: PID={process.pid}")

    async def _watch(
        self,
        process: asyncio.subprocess.Process,
        on_complete: CompletionCallback | None,
    ) -> None:
        """Process bitince tamamlanma geri çağrısını çıkış koduyla tetikle."""
        _, stderr = await process.communicate()

        if process.returncode != 0:
            error_msg = stderr.decode().strip() if stderr else ""
            logger.warning(f"Player çıkış kodu: {process.returncode}, hata: {error_msg}")

        if self._process is not process:
            return
        self._process = None
        self._watcher = None

        if on_complete is not None:
            await on_complete(process.returncode)

    async def pause(self) -> None:
        """Process'i SIGSTOP ile duraklat."""
        if self._process is None or self._process.returncode is not None:
            raise RuntimeError("Duraklatılacak ses yok")
        self._process.send_signal(signal.SIGSTOP)
        self._paused = True

    async def resume(self) -> None:
        """Process'e SIGCONT ile devam ettir."""
        if self._process is None or self._process.returncode is not None:
            raise RuntimeError("Devam ettirilecek ses yok")
        self._process.send_signal(signal.SIGCONT)
        self._paused = False

    async def stop(self) -> None:
        """Çalmayı durdur."""
        process, watcher = self._process, self._watcher
        self._process = None
        self._watcher = None

        if process is not None:
            try:
                if self._paused:
                    process.send_signal(signal.SIGCONT)
                process.terminate()
                await asyncio.wait_for(process.wait(), timeout=2.0)
            except TimeoutError:
                process.kill()
                await process.wait()
            except ProcessLookupError:
                pass  # Zaten sonlanmış
        self._paused = False

        if watcher is not None and not watcher.done():
            watcher.cancel()

    def is_playing(self) -> bool:
        """Şu anda ses çalıyor mu?"""
        return (
            self._process is not None
            and self._process.returncode is None
            and not self._paused
        )


class Mpg123Player(BaseAudioPlayer):
    """mpg123 ile ses çalma."""

    executable = "mpg123"

    def _get_command(self, file_path: str, volume: int) -> list[str]:
        """mpg123 komutu oluştur."""
        # mpg123 volume: 0-32768, biz 0-100 kullanıyoruz
        scaled_volume = int((volume / 100) * 32768)
        return ["mpg123", "--quiet", "--scale", str(scaled_volume), file_path]


class FfplayPlayer(BaseAudioPlayer):
    """ffplay (FFmpeg) ile ses çalma."""

    executable = "ffplay"

    def _get_command(self, file_path: str, volume: int) -> list[str]:
        """ffplay komutu oluştur."""
        return [
            "ffplay",
            "-nodisp",
            "-autoexit",
            "-volume",
            str(volume),
            "-loglevel",
            "quiet",
            file_path,
        ]


class PulseAudioPlayer(BaseAudioPlayer):
    """paplay (PulseAudio) ile ses çalma."""

    executable = "paplay"

    def _get_command(self, file_path: str, volume: int) -> list[str]:
        """paplay komutu oluştur."""
        # paplay volume: 0-65536
        scaled_volume = int((volume / 100) * 65536)
        return ["paplay", f"--volume={scaled_volume}", file_path]


def get_best_player() -> BaseAudioPlayer:
    """Sistemde mevcut en iyi player'ı döndür."""
    players: list[type[BaseAudioPlayer]] = [
        Mpg123Player,  # MP3 için en iyi
        FfplayPlayer,  # Çok formatlı
        PulseAudioPlayer,  # PulseAudio varsa
    ]

    for player_class in players:
        if shutil.which(player_class.executable) is not None:
            logger.info(f"Ses oynatıcı seçildi: {player_class.executable}")
            return player_class()

    raise RuntimeError("Hiçbir ses oynatıcı bulunamadı. mpg123, ffplay veya paplay kurulu olmalı.")

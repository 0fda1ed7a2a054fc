"""JSON-based preference and reschedule-state stores."""

import json
import logging
import os
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from adhan_alarm.domain.models import RescheduleState
from adhan_alarm.services.ports import PreferenceStorePort, RescheduleStateRepositoryPort

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "adhan-alarm"
DEFAULT_PREFERENCES_PATH = DEFAULT_CONFIG_DIR / "preferences.json"
DEFAULT_STATE_PATH = DEFAULT_CONFIG_DIR / "reschedule_state.json"


class _JsonFile:
    """Tek bir JSON nesnesini okuyup atomik olarak yazan yardımcı."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path

    @property
    def file_path(self) -> Path:
        """Dosya yolu."""
        return self._file_path

    async def _ensure_dir(self) -> None:
        """Dizinin var olduğundan emin ol."""
        parent = self._file_path.parent
        if not parent.exists():
            await aiofiles.os.makedirs(parent, exist_ok=True)
            logger.info(f"Ayar dizini oluşturuldu: {parent}")

    async def read(self) -> dict[str, Any]:
        """Dosyayı oku; yoksa ya da bozuksa boş sözlük."""
        if not self._file_path.exists():
            return {}

        try:
            async with aiofiles.open(self._file_path, encoding="utf-8") as f:
                data = json.loads(await f.read())
        except json.JSONDecodeError as e:
            logger.error(f"Geçersiz JSON ({self._file_path}): {e}")
            return {}
        except OSError as e:
            logger.error(f"Dosya okunamadı ({self._file_path}): {e}")
            return {}

        if not isinstance(data, dict):
            logger.error(f"Beklenmeyen içerik ({self._file_path}): {type(data).__name__}")
            return {}
        return data

    async def write(self, data: Mapping[str, Any]) -> None:
        """Geçici dosyaya yaz ve yerine taşı."""
        await self._ensure_dir()
        tmp_path = self._file_path.with_name(f".{self._file_path.name}.{os.getpid()}.tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(dict(data), ensure_ascii=False, indent=2))
        await aiofiles.os.replace(tmp_path, self._file_path)


class JsonPreferenceStore(PreferenceStorePort):
    """Ham ayarları JSON dosyasında saklar; değerlere dokunmaz."""

    def __init__(self, file_path: Path | None = None) -> None:
        """
        Initialize store.

        Args:
            file_path: Ayar dosyası yolu (varsayılan: ~/.config/adhan-alarm/preferences.json)
        """
        self._file = _JsonFile(file_path or DEFAULT_PREFERENCES_PATH)

    @property
    def file_path(self) -> Path:
        """Ayar dosyası yolu."""
        return self._file.file_path

    async def load(self) -> dict[str, Any]:
        """Tüm ham değerleri oku."""
        return await self._file.read()

    async def update(self, values: Mapping[str, Any]) -> None:
        """Verilen anahtarları yaz."""
        data = await self._file.read()
        data.update(values)
        try:
            await self._file.write(data)
        except Exception as e:
            logger.error(f"Ayarlar kaydedilirken hata: {e}")
            raise
        logger.info(f"Ayarlar kaydedildi: {', '.join(sorted(values))}")


def _to_epoch_ms(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp() * 1000)


def _from_epoch_ms(value: Any) -> datetime | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


class JsonRescheduleStateRepository(RescheduleStateRepositoryPort):
    """Yeniden planlama durumunu kendi JSON dosyasında saklar."""

    def __init__(self, file_path: Path | None = None) -> None:
        self._file = _JsonFile(file_path or DEFAULT_STATE_PATH)

    @property
    def file_path(self) -> Path:
        """Durum dosyası yolu."""
        return self._file.file_path

    async def load(self) -> RescheduleState:
        """Durumu oku."""
        data = await self._file.read()
        return RescheduleState(
            needs_reschedule=data.get("needs_reschedule") is True,
            requested_at=_from_epoch_ms(data.get("requested_at")),
            last_completed_at=_from_epoch_ms(data.get("last_rescheduled_at")),
        )

    async def save(self, state: RescheduleState) -> None:
        """Durumu kaydet."""
        await self._file.write(
            {
                "needs_reschedule": state.needs_reschedule,
                "requested_at": _to_epoch_ms(state.requested_at),
                "last_rescheduled_at": _to_epoch_ms(state.last_completed_at),
            }
        )
        logger.debug(f"Planlama durumu kaydedildi (bekliyor: {state.needs_reschedule})")

"""Tolerant decoding of values read from the preference store.

The store is not schema-typed: depending on which writer persisted a value, a
number may arrive as a native float or int, as the raw IEEE-754 bit pattern
of a double stored in a 64-bit integer, or as a decorated string such as
``"This is the prefix for Double.41.0082"``. Everything here is applied once
at the store boundary; the rest of the engine only sees typed values.
"""

import logging
import math
import re
import struct
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from adhan_alarm.domain.models import (
    DEFAULT_ADHAN,
    AdhanSettings,
    CalculationMethod,
    Coordinates,
    PrayerName,
)

logger = logging.getLogger(__name__)

LEGACY_KEY_PREFIX = "flutter."

KEY_LATITUDE = "latitude"
KEY_LONGITUDE = "longitude"
KEY_CALCULATION_METHOD = "calculation_method"
KEY_ADHAN_VOLUME = "adhan_volume"
KEY_SELECTED_ADHAN = "selected_adhan"

DEFAULT_VOLUME = 1.0

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_INT64_MIN = -(2**63)
_UINT64_MAX = 2**64 - 1

_NUMBER_TOKEN = re.compile(r"-?\d+(?:\.\d+)?")

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


@dataclass(frozen=True)
class NumberValue:
    value: float


@dataclass(frozen=True)
class BooleanValue:
    value: bool


@dataclass(frozen=True)
class TextValue:
    value: str


@dataclass(frozen=True)
class Absent:
    pass


PrefValue = NumberValue | BooleanValue | TextValue | Absent


def _finite(value: float) -> float | None:
    return value if math.isfinite(value) else None


def bits_to_double(bits: int) -> float | None:
    """64 bitlik tamsayıyı IEEE-754 double olarak yorumla."""
    if not _INT64_MIN <= bits <= _UINT64_MAX:
        return None
    fmt = ">q" if bits < 0 else ">Q"
    (value,) = struct.unpack(">d", struct.pack(fmt, bits))
    return _finite(value)


def double_to_bits(value: float) -> int:
    """Double değerin işaretli 64 bitlik bit deseni."""
    (bits,) = struct.unpack(">q", struct.pack(">d", value))
    return bits


def _parse_float(text: str) -> float | None:
    try:
        return _finite(float(text))
    except ValueError:
        return None


def _decode_text(raw: str) -> float | None:
    tokens = _NUMBER_TOKEN.findall(raw)
    if tokens:
        value = _parse_float(tokens[-1])
        if value is not None:
            return value

    value = _parse_float(raw.strip())
    if value is not None:
        return value

    try:
        return bits_to_double(int(raw.strip()))
    except ValueError:
        return None


def decode_number(raw: Any) -> float | None:
    """Ham değeri sayıya çöz; çözülemezse None döner, hata fırlatmaz."""
    try:
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, float):
            return _finite(raw)
        if isinstance(raw, int):
            if _INT32_MIN <= raw <= _INT32_MAX:
                return float(raw)
            return bits_to_double(raw)
        if isinstance(raw, str):
            return _decode_text(raw)
        return _parse_float(str(raw))
    except Exception as e:
        logger.debug(f"Sayı çözülemedi ({raw!r}): {e}")
        return None


def decode_bool(raw: Any, default: bool) -> bool:
    """Ham değeri bool'a çöz, olmazsa varsayılanı döndür."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int | float) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return default


def decode_string(raw: Any, default: str) -> str:
    """Ham değeri metne çöz; boş ya da eksikse varsayılan."""
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return default


def classify(raw: Any) -> PrefValue:
    """Ham değeri etiketli birleşime dönüştür."""
    if raw is None:
        return Absent()
    if isinstance(raw, bool):
        return BooleanValue(raw)
    if isinstance(raw, str):
        return TextValue(raw)
    number = decode_number(raw)
    return NumberValue(number) if number is not None else Absent()


def lookup(values: Mapping[str, Any], key: str) -> Any:
    """Anahtarı önce olduğu gibi, sonra eski önekiyle ara."""
    if key in values:
        return values[key]
    return values.get(f"{LEGACY_KEY_PREFIX}{key}")


def _decode_volume(raw: Any) -> float:
    volume = decode_number(raw)
    if volume is None:
        return DEFAULT_VOLUME
    if 1.0 < volume <= 100.0:
        volume = volume / 100.0
    return min(max(volume, 0.0), 1.0)


def _decode_coordinates(values: Mapping[str, Any]) -> Coordinates | None:
    latitude = decode_number(lookup(values, KEY_LATITUDE))
    longitude = decode_number(lookup(values, KEY_LONGITUDE))
    if latitude is None or longitude is None:
        return None
    try:
        return Coordinates(latitude=latitude, longitude=longitude)
    except ValueError as e:
        logger.warning(f"Kayıtlı konum geçersiz: {e}")
        return None


def read_settings(values: Mapping[str, Any]) -> AdhanSettings:
    """Ham ayarlardan tipli AdhanSettings üret."""
    return AdhanSettings(
        coordinates=_decode_coordinates(values),
        method=CalculationMethod.from_name(lookup(values, KEY_CALCULATION_METHOD)),
        volume=_decode_volume(lookup(values, KEY_ADHAN_VOLUME)),
        selected_adhan=decode_string(lookup(values, KEY_SELECTED_ADHAN), DEFAULT_ADHAN),
        sound_enabled={
            prayer: decode_bool(lookup(values, prayer.sound_enabled_key), True)
            for prayer in PrayerName
        },
    )


def settings_to_values(settings: AdhanSettings) -> dict[str, Any]:
    """Tipli ayarları depoya yazılacak düz değerlere çevir."""
    values: dict[str, Any] = {
        KEY_CALCULATION_METHOD: settings.method.value,
        KEY_ADHAN_VOLUME: settings.volume,
        KEY_SELECTED_ADHAN: settings.selected_adhan,
    }
    if settings.coordinates is not None:
        values[KEY_LATITUDE] = settings.coordinates.latitude
        values[KEY_LONGITUDE] = settings.coordinates.longitude
    for prayer in PrayerName:
        values[prayer.sound_enabled_key] = settings.is_sound_enabled(prayer)
    return values

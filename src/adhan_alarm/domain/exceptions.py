"""Domain exceptions."""


class AdhanAlarmError(Exception):
    """Base class for engine errors."""


class ConfigurationMissingError(AdhanAlarmError):
    """Konum gibi zorunlu bir ayar eksik."""


class CapabilityDeniedError(AdhanAlarmError):
    """Sistem tam zamanlı alarm iznini vermiyor."""


class StaleTriggerError(AdhanAlarmError):
    """Tetik zamanı geçmiş."""


class ResourceUnavailableError(AdhanAlarmError):
    """Çalınabilir ses kaynağı bulunamadı."""

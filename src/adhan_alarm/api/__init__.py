"""Web API layer."""

from adhan_alarm.api.app import create_app
from adhan_alarm.api.dependencies import get_app_state

__all__ = ["create_app", "get_app_state"]

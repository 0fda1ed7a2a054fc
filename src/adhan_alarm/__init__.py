"""Adhan Alarm - namaz vakti alarmı ve ezan çalma motoru."""

__version__ = "0.1.0"

"""
Configuration for the observer (connection lookups and timing knobs).
"""

from .settings import ConnectionSettings, ObserverSettings, Settings, get_settings, reload_settings

__all__ = [
    "ConnectionSettings",
    "ObserverSettings",
    "Settings",
    "get_settings",
    "reload_settings",
]

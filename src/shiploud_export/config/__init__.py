"""
Module: config
Description: Runtime configuration for the export client.
"""

from .settings import DEFAULT_INGEST_URL, Settings, get_settings, resolve_ingest_url

__all__ = [
    "DEFAULT_INGEST_URL",
    "Settings",
    "get_settings",
    "resolve_ingest_url",
]

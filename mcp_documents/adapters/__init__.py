"""
Adapters - External implementations of ports

This package contains implementations of the core ports:
- http_api.py: httpx client for the document service REST API
- settings_file.py: JSON-file device preferences
"""
from .http_api import HttpDocumentGateway, build_thumbnail_url
from .settings_file import JsonSettingsStore, get_default_settings_path

__all__ = [
    "HttpDocumentGateway",
    "build_thumbnail_url",
    "JsonSettingsStore",
    "get_default_settings_path",
]

"""
Settings File Adapter

Implements SettingsStore port as a JSON file on the local filesystem.
"""
import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Any

from ..core.domain import Settings, ThemeMode
from ..core.ports import SettingsError, SettingsStore


DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_TENANT_ID = "11111111-1111-4111-8111-111111111111"
DEFAULT_SPEECH_PAUSE_MS = 3000
SPEECH_PAUSE_RANGE_MS = (1500, 10000)


def clamp_speech_pause(ms: int) -> int:
    low, high = SPEECH_PAUSE_RANGE_MS
    return max(low, min(high, ms))


def get_default_settings_path() -> Path:
    """Get settings file path from env or use fallback"""
    env_path = os.environ.get("DOCUMENTS_SETTINGS_PATH")
    if env_path:
        return Path(env_path)
    return Path.home() / ".config" / "mcp-documents" / "settings.json"


class JsonSettingsStore(SettingsStore):
    """Preferences persisted as a flat JSON object"""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise SettingsError(f"Cannot read settings from {self.path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def _write(self, key: str, value: Any) -> Settings:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return self._to_settings(data)

    def _to_settings(self, data: dict[str, Any]) -> Settings:
        try:
            speech_pause = int(data.get("speech_pause_duration_ms", DEFAULT_SPEECH_PAUSE_MS))
        except (TypeError, ValueError) as e:
            raise SettingsError(f"Invalid speech_pause_duration_ms in {self.path}: {e}") from e
        return Settings(
            api_base_url=data.get("api_base_url") or os.environ.get("DOCUMENTS_API_URL", DEFAULT_API_BASE_URL),
            tenant_id=data.get("tenant_id") or DEFAULT_TENANT_ID,
            api_key=data.get("api_key", os.environ.get("DOCUMENTS_API_KEY", "")),
            theme_mode=ThemeMode.from_string(data.get("theme_mode")),
            speech_pause_duration_ms=clamp_speech_pause(speech_pause),
        )

    def load(self) -> Settings:
        return self._to_settings(self._read())

    def set_api_base_url(self, url: str) -> Settings:
        return self._write("api_base_url", url)

    def set_tenant_id(self, tenant_id: str) -> Settings:
        return self._write("tenant_id", tenant_id)

    def set_api_key(self, key: str) -> Settings:
        return self._write("api_key", key)

    def set_theme_mode(self, mode: ThemeMode) -> Settings:
        return self._write("theme_mode", ThemeMode(mode).value)

    def set_speech_pause_duration(self, ms: int) -> Settings:
        return self._write("speech_pause_duration_ms", clamp_speech_pause(int(ms)))


def with_overrides(settings: Settings, **overrides: Any) -> Settings:
    """Settings with non-empty overrides applied (e.g. from CLI flags)"""
    return replace(settings, **{k: v for k, v in overrides.items() if v})

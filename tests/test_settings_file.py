"""
Unit tests for mcp_documents.adapters.settings_file
"""
import json

import pytest

from mcp_documents.adapters.settings_file import (
    DEFAULT_API_BASE_URL,
    DEFAULT_TENANT_ID,
    JsonSettingsStore,
    get_default_settings_path,
    with_overrides,
)
from mcp_documents.core.domain import ThemeMode
from mcp_documents.core.ports import SettingsError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("DOCUMENTS_API_URL", raising=False)
    monkeypatch.delenv("DOCUMENTS_API_KEY", raising=False)
    monkeypatch.delenv("DOCUMENTS_SETTINGS_PATH", raising=False)


class TestJsonSettingsStore:
    """Test preference persistence."""

    def test_defaults_when_missing(self, tmp_path):
        settings = JsonSettingsStore(tmp_path / "settings.json").load()
        assert settings.api_base_url == DEFAULT_API_BASE_URL
        assert settings.tenant_id == DEFAULT_TENANT_ID
        assert settings.api_key == ""
        assert settings.theme_mode is ThemeMode.SYSTEM
        assert settings.speech_pause_duration_ms == 3000

    def test_env_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOCUMENTS_API_URL", "http://nas:3000")
        monkeypatch.setenv("DOCUMENTS_API_KEY", "env-key")
        settings = JsonSettingsStore(tmp_path / "settings.json").load()
        assert settings.api_base_url == "http://nas:3000"
        assert settings.api_key == "env-key"

    def test_set_and_reload(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        store = JsonSettingsStore(path)
        store.set_api_base_url("http://docs:8080")
        store.set_tenant_id("tenant-2")
        store.set_api_key("k")
        saved = store.set_theme_mode(ThemeMode.DARK)

        assert saved.theme_mode is ThemeMode.DARK
        reloaded = JsonSettingsStore(path).load()
        assert reloaded.api_base_url == "http://docs:8080"
        assert reloaded.tenant_id == "tenant-2"
        assert reloaded.api_key == "k"
        assert json.loads(path.read_text())["theme_mode"] == "DARK"

    @pytest.mark.parametrize("requested,stored", [(500, 1500), (4000, 4000), (60000, 10000)])
    def test_speech_pause_clamped(self, tmp_path, requested, stored):
        store = JsonSettingsStore(tmp_path / "settings.json")
        assert store.set_speech_pause_duration(requested).speech_pause_duration_ms == stored

    def test_unknown_theme_is_system(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"theme_mode": "NEON"}))
        assert JsonSettingsStore(path).load().theme_mode is ThemeMode.SYSTEM

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        with pytest.raises(SettingsError):
            JsonSettingsStore(path).load()

    @pytest.mark.parametrize("stored,loaded", [(50, 1500), (60000, 10000), ("4000", 4000)])
    def test_hand_edited_speech_pause_clamped_on_load(self, tmp_path, stored, loaded):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"speech_pause_duration_ms": stored}))
        assert JsonSettingsStore(path).load().speech_pause_duration_ms == loaded

    @pytest.mark.parametrize("stored", ["slow", None, [3000]])
    def test_invalid_speech_pause(self, tmp_path, stored):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"speech_pause_duration_ms": stored}))
        with pytest.raises(SettingsError, match="speech_pause_duration_ms"):
            JsonSettingsStore(path).load()

    def test_rewriting_invalid_speech_pause_recovers(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"speech_pause_duration_ms": "slow"}))
        store = JsonSettingsStore(path)
        assert store.set_speech_pause_duration(2000).speech_pause_duration_ms == 2000
        assert store.load().speech_pause_duration_ms == 2000


class TestHelpers:
    def test_default_path_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOCUMENTS_SETTINGS_PATH", str(tmp_path / "s.json"))
        assert get_default_settings_path() == tmp_path / "s.json"

    def test_default_path_fallback(self):
        assert get_default_settings_path().parts[-2:] == ("mcp-documents", "settings.json")

    def test_with_overrides_skips_empty(self, tmp_path):
        settings = JsonSettingsStore(tmp_path / "settings.json").load()
        assert with_overrides(settings, api_base_url=None) == settings
        assert with_overrides(settings, api_base_url="http://x").api_base_url == "http://x"

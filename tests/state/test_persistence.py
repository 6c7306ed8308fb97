"""Tests for settings persistence."""

import pytest
from pathlib import Path

from stockreport.state.persistence import SettingsStore
from stockreport.domain.settings import ReportSettings


class TestSettingsStore:
    """Tests for SettingsStore."""

    def test_load_default_when_file_not_exists(self, tmp_path):
        """Load returns default settings when file doesn't exist."""
        store = SettingsStore(tmp_path / "settings.json")
        settings = store.load()

        assert isinstance(settings, ReportSettings)
        assert settings.format.currency_prefix == "Rs "  # Default
        assert not store.exists()

    def test_save_and_load(self, tmp_path):
        """Save and load settings."""
        store = SettingsStore(tmp_path / "settings.json")

        # Create and save settings
        settings = ReportSettings()
        settings.format.currency_prefix = "$"
        settings.net_total.subtrahends = ["returns"]
        settings.page.row_height = 10
        store.save(settings)

        # Load and verify
        loaded = store.load()
        assert loaded.format.currency_prefix == "$"
        assert loaded.net_total.subtrahends == ["returns"]
        assert loaded.page.row_height == 10

    def test_save_creates_directory(self, tmp_path):
        """Save creates parent directory if it doesn't exist."""
        nested_path = tmp_path / "nested" / "dir" / "settings.json"
        store = SettingsStore(nested_path)

        store.save(ReportSettings())

        assert nested_path.exists()

    def test_load_returns_default_on_corrupted_file(self, tmp_path, caplog):
        """Load returns default settings if file is corrupted."""
        settings_path = tmp_path / "settings.json"
        settings_path.write_text("invalid json {{{")

        store = SettingsStore(settings_path)
        settings = store.load()

        # Should return defaults, not crash
        assert settings == ReportSettings()
        assert "Could not load settings" in caplog.text

    def test_load_returns_default_on_invalid_values(self, tmp_path):
        """Values failing validation fall back to defaults."""
        settings_path = tmp_path / "settings.json"
        settings_path.write_text('{"net_total": {"minuend": "profit"}}')

        settings = SettingsStore(settings_path).load()

        assert settings.net_total.minuend == "sales"

    def test_delete_settings(self, tmp_path):
        """Delete removes settings file."""
        settings_path = tmp_path / "settings.json"
        store = SettingsStore(settings_path)

        # Create settings file
        store.save(ReportSettings())
        assert settings_path.exists()

        # Delete
        deleted = store.delete()
        assert deleted is True
        assert not settings_path.exists()

        # Delete again (file doesn't exist)
        deleted = store.delete()
        assert deleted is False

    def test_default_path(self):
        """Default path is in home directory."""
        store = SettingsStore()
        assert store.path == Path.home() / ".stockreport_settings.json"

    def test_json_formatting(self, tmp_path):
        """Saved JSON is pretty-formatted."""
        settings_path = tmp_path / "settings.json"
        store = SettingsStore(settings_path)

        store.save(ReportSettings())

        # Check that JSON is indented
        content = settings_path.read_text()
        assert "  " in content  # Has indentation
        assert "\n" in content  # Has newlines

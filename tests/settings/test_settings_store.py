"""
Tests for the per-user JSON settings store.
"""

import json

import pytest
from pydantic import ValidationError

from smartchecker.models.linting import LintSeverity
from smartchecker.models.settings import CheckerSettings
from smartchecker.services.settings_service import JsonSettingsStore


@pytest.fixture
def store(tmp_path):
    return JsonSettingsStore(settings_dir=str(tmp_path / "settings"), username="alice")


class TestJsonSettingsStore:
    def test_defaults_when_missing(self, store):
        assert store.get_settings() == CheckerSettings()
        assert not store.settings_path.exists()

    def test_round_trip(self, store):
        settings = CheckerSettings(use_remote=True, severity_level=LintSeverity.ERROR, timeout_ms=2500)
        store.save_settings(settings)

        assert store.settings_path.name == "alice.json"
        assert store.get_settings() == settings
        on_disk = json.loads(store.settings_path.read_text())
        assert on_disk["severity_level"] == "error"

    def test_corrupt_file_falls_back_to_defaults(self, store):
        store.settings_path.write_text("{not json")
        assert store.get_settings() == CheckerSettings()

    def test_invalid_values_fall_back_to_defaults(self, store):
        store.settings_path.write_text(json.dumps({"timeout_ms": -5}))
        assert store.get_settings() == CheckerSettings()

    def test_partial_update_merges(self, store):
        store.save_settings(CheckerSettings(use_remote=True))
        updated = store.update_settings({"check_delay_ms": 300})

        assert updated.use_remote is True
        assert updated.check_delay_ms == 300
        assert store.get_settings() == updated

    def test_invalid_update_is_not_written(self, store):
        store.save_settings(CheckerSettings(check_delay_ms=900))
        with pytest.raises(ValidationError):
            store.update_settings({"severity_level": "fatal"})
        assert store.get_settings().check_delay_ms == 900

    def test_deep_merge_nested_dicts(self, store):
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        store._deep_merge(base, {"a": {"y": 3}, "c": 4})
        assert base == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}

    def test_reset(self, store):
        store.save_settings(CheckerSettings(enabled=False))
        assert store.reset_settings() == CheckerSettings()
        assert store.get_settings().enabled is True

    def test_users_are_isolated(self, tmp_path):
        alice = JsonSettingsStore(settings_dir=str(tmp_path), username="alice")
        bob = JsonSettingsStore(settings_dir=str(tmp_path), username="bob")
        alice.save_settings(CheckerSettings(use_remote=True))

        assert bob.get_settings().use_remote is False

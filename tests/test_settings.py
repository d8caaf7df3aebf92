"""Tests for the settings store."""

from __future__ import annotations

import json

from heft.core.scanner import DirectoryScanner
from heft.core.exclusions import DEFAULT_RULES, SkipRule
from heft.settings import DEFAULT_DEPTH, Settings


class TestSettings:
    def test_defaults(self, isolate_settings):
        settings = Settings.instance()
        assert settings.path == isolate_settings
        assert settings.default_depth() == DEFAULT_DEPTH
        assert settings.result_limit() == 1000
        assert settings.extra_excludes() == []
        assert settings.confirm_before_clean() is True

    def test_set_persists(self, isolate_settings):
        Settings.instance().set("scan.default_depth", 5)
        data = json.loads(isolate_settings.read_text())
        assert data == {"scan": {"default_depth": 5}}
        assert Settings(isolate_settings).default_depth() == 5

    def test_get_unknown_key(self):
        assert Settings.instance().get("nope.missing", "fallback") == "fallback"
        assert Settings.instance().get("nope.missing") is None

    def test_invalid_values_fall_back(self, isolate_settings):
        isolate_settings.parent.mkdir(parents=True)
        isolate_settings.write_text(json.dumps({
            "scan": {"default_depth": -2, "result_limit": "many", "extra_excludes": "node_modules"},
            "clean": {"confirm": False},
        }))
        settings = Settings(isolate_settings)
        assert settings.default_depth() == DEFAULT_DEPTH
        assert settings.result_limit() == 1000
        assert settings.extra_excludes() == []
        assert settings.confirm_before_clean() is False

    def test_corrupt_file_ignored(self, isolate_settings):
        isolate_settings.parent.mkdir(parents=True)
        isolate_settings.write_text("{broken")
        assert Settings(isolate_settings).default_depth() == DEFAULT_DEPTH

    def test_instance_is_singleton(self):
        assert Settings.instance() is Settings.instance()


class TestScannerFromSettings:
    def test_uses_configured_limit_and_excludes(self, isolate_settings):
        settings = Settings(isolate_settings)
        settings.set("scan.result_limit", 25)
        settings.set("scan.extra_excludes", ["node_modules"])

        scanner = DirectoryScanner.from_settings(settings)
        assert scanner.limit == 25
        assert scanner.rules == DEFAULT_RULES + (SkipRule("node_modules"),)

    def test_explicit_limit_wins(self, isolate_settings):
        scanner = DirectoryScanner.from_settings(Settings(isolate_settings), limit=3)
        assert scanner.limit == 3

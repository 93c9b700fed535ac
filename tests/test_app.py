"""Tests for process wiring from environment configuration."""

from protivity import app
from protivity.models.constants import AUTOSAVE_DEBOUNCE_SECONDS, WORKSPACES_KEY


class TestAutosaveDelay:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("PROTIVITY_AUTOSAVE_DELAY_SEC", raising=False)
        assert app.get_autosave_delay() == AUTOSAVE_DEBOUNCE_SECONDS

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PROTIVITY_AUTOSAVE_DELAY_SEC", "1.5")
        assert app.get_autosave_delay() == 1.5

    def test_invalid_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("PROTIVITY_AUTOSAVE_DELAY_SEC", "soon")

        assert app.get_autosave_delay() == AUTOSAVE_DEBOUNCE_SECONDS
        assert "PROTIVITY_AUTOSAVE_DELAY_SEC" in caplog.text

    def test_negative_clamped(self, monkeypatch):
        monkeypatch.setenv("PROTIVITY_AUTOSAVE_DELAY_SEC", "-2")
        assert app.get_autosave_delay() == 0.0


class TestBuildStore:
    def test_bootstraps_file_database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'app.db'}"

        store = app.build_store(url)
        try:
            assert [ws.name for ws in store.workspaces] == ["Personal", "Work", "Study"]
            assert store.gateway.keys() == [WORKSPACES_KEY]
        finally:
            store.close()

    def test_reports_corrupt_collections(self, tmp_path, caplog):
        url = f"sqlite:///{tmp_path / 'app.db'}"
        first = app.build_store(url)
        first.gateway.write_raw("journalEntries", b"[{")
        first.close()

        store = app.build_store(url)
        try:
            assert "journalEntries" in store.load_errors
            assert store.journal_entries() == []
            assert "Started with empty journalEntries" in caplog.text
        finally:
            store.close()


class TestLogging:
    def test_level_from_env(self, monkeypatch):
        calls = []
        monkeypatch.setenv("PROTIVITY_LOG_LEVEL", "debug")
        monkeypatch.setattr(app.logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        app.configure_logging()

        assert calls[0]["level"] == app.logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        calls = []
        monkeypatch.setattr(app.logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        app.configure_logging("chatty")

        assert calls[0]["level"] == app.logging.INFO

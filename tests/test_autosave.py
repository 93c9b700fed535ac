"""Tests for debounced autosave, durability of flushed state and notifications."""

import threading
import time

from protivity.database.errors import PersistenceWriteError
from protivity.models.constants import WORKSPACES_KEY
from protivity.models.factory import create_goal, create_journal_entry, create_page, create_task
from protivity.store.debounce import Debouncer
from protivity.store.notifications import ChangeNotifier


class TestDebouncer:
    """A burst of triggers runs the action once."""

    def test_burst_runs_once(self, timers):
        calls = []
        debouncer = Debouncer(0.5, lambda: calls.append(1), timers)

        for _ in range(5):
            debouncer.trigger()

        assert len(timers.timers) == 5
        assert len(timers.active) == 1
        assert debouncer.pending

        timers.fire_all()
        assert calls == [1]
        assert not debouncer.pending

    def test_superseded_timer_does_nothing(self, timers):
        calls = []
        debouncer = Debouncer(0.5, lambda: calls.append(1), timers)
        debouncer.trigger()
        stale = timers.timers[0]
        debouncer.trigger()

        stale.fire()
        assert calls == []

    def test_cancel(self, timers):
        calls = []
        debouncer = Debouncer(0.5, lambda: calls.append(1), timers)
        debouncer.trigger()
        debouncer.cancel()

        timers.timers[0].fire()
        assert calls == []
        assert not debouncer.pending

    def test_action_errors_are_logged(self, timers, caplog):
        def boom():
            raise RuntimeError("disk on fire")

        debouncer = Debouncer(0.5, boom, timers)
        debouncer.trigger()
        timers.fire_all()

        assert "disk on fire" in caplog.text


class TestAutosave:
    """Mutations are coalesced into one write per quiet period."""

    def test_mutation_arms_timer_without_writing(self, store, personal_id, gateway, timers, sample_task):
        store.add_task(personal_id, sample_task)

        assert gateway.saves == []
        assert store.has_pending_changes
        assert len(timers.active) == 1

    def test_burst_of_updates_writes_once(self, store, personal_id, gateway, timers, sample_task):
        store.add_task(personal_id, sample_task)
        for i in range(10):
            store.update_task(personal_id, sample_task.model_copy(update={"notes": f"edit {i}"}))

        assert len(timers.active) == 1
        timers.fire_all()

        assert gateway.saved_keys() == [WORKSPACES_KEY]
        assert not store.has_pending_changes
        reloaded = gateway.load(WORKSPACES_KEY, type(store.workspaces[0])).items
        assert reloaded[0].tasks[0].notes == "edit 9"

    def test_only_dirty_collections_are_written(self, store, gateway, timers):
        store.add_journal_entry(create_journal_entry("Hi"))
        store.add_goal(None, create_goal("Solo"))
        timers.fire_all()

        assert sorted(gateway.saved_keys()) == ["goals", "journalEntries"]

    def test_not_found_does_not_arm_timer(self, store, personal_id, timers):
        store.delete_task(personal_id, "missing")

        assert timers.timers == []
        assert not store.has_pending_changes

    def test_real_timer_saves_after_quiet_period(self, make_store, gateway, sample_task):
        store = make_store(timer_factory=None, autosave_delay=0.2).load()
        gateway.saves.clear()
        personal_id = store.workspaces[0].id

        store.add_task(personal_id, sample_task)
        store.add_category(personal_id, "Errands")
        assert gateway.saves == []

        time.sleep(0.8)

        assert gateway.saved_keys() == [WORKSPACES_KEY]
        assert not store.has_pending_changes

    def test_close_flushes_pending_changes(self, store, personal_id, gateway, timers, sample_task):
        store.add_task(personal_id, sample_task)

        assert store.close() is True
        assert gateway.saved_keys() == [WORKSPACES_KEY]
        assert timers.active == []

    def test_failed_save_stays_pending_and_retries(
        self, store, personal_id, gateway, timers, sample_task, monkeypatch
    ):
        def failing_save(key, entities):
            raise PersistenceWriteError(key, "database is locked")

        store.add_task(personal_id, sample_task)
        monkeypatch.setattr(gateway, "save", failing_save)

        assert store.flush() is False
        assert store.has_pending_changes

        monkeypatch.undo()
        store.add_category(personal_id, "Errands")
        timers.fire_all()

        assert gateway.saved_keys() == [WORKSPACES_KEY]
        assert not store.has_pending_changes

    def test_flush_waits_for_in_flight_autosave(self, store, personal_id, gateway, timers, monkeypatch):
        """An older snapshot still being written never lands after a newer flush."""
        entered, release = threading.Event(), threading.Event()
        original_save = gateway.save

        def held_save(key, entities):
            if not entered.is_set():
                entered.set()
                release.wait(5)
            original_save(key, entities)

        monkeypatch.setattr(gateway, "save", held_save)
        store.add_category(personal_id, "Old")
        autosave = threading.Thread(target=timers.fire_all)
        autosave.start()
        assert entered.wait(5)

        store.add_category(personal_id, "New")
        results = []
        flusher = threading.Thread(target=lambda: results.append(store.flush()))
        flusher.start()
        time.sleep(0.1)
        release.set()
        autosave.join(5)
        flusher.join(5)

        assert results == [True]
        persisted = gateway.load(WORKSPACES_KEY, type(store.workspaces[0])).items[0]
        assert persisted.categories[-2:] == ["Old", "New"]


class TestDurability:
    """A fresh store loading flushed data sees the same state."""

    def test_reload_matches_flushed_state(self, store, make_store, personal_id, recurring_task, sample_task):
        goal = create_goal("Stay solvent")
        store.add_goal(personal_id, goal)
        store.add_task(personal_id, recurring_task.model_copy(update={"goal_id": goal.id}))
        store.add_task(personal_id, sample_task)
        store.toggle_task_completion(personal_id, recurring_task.id)
        store.toggle_task_completion(personal_id, sample_task.id)
        store.add_page(personal_id, create_page("Notes", "body"))
        store.add_task(None, create_task("Standalone", "Other"))
        store.add_goal(None, create_goal("Standalone goal"))
        store.add_journal_entry(create_journal_entry("Today was fine"))
        assert store.flush() is True

        reloaded = make_store().load()

        assert [w.model_dump() for w in reloaded.workspaces] == [w.model_dump() for w in store.workspaces]
        assert [t.model_dump() for t in reloaded.tasks()] == [t.model_dump() for t in store.tasks()]
        assert [g.model_dump() for g in reloaded.goals()] == [g.model_dump() for g in store.goals()]
        assert [e.model_dump() for e in reloaded.journal_entries()] == [
            e.model_dump() for e in store.journal_entries()
        ]
        assert reloaded.load_errors == {}

    def test_reload_selects_first_workspace(self, store, make_store):
        store.select_workspace(store.workspaces[2].id)
        store.flush()

        assert make_store().load().selected_workspace.name == "Personal"


class TestNotifications:
    """Subscribers hear about every applied mutation, synchronously and in order."""

    def test_ordered_and_before_write(self, store, personal_id, gateway, sample_task):
        seen = []
        store.subscribe(lambda: seen.append(("first", len(gateway.saves))))
        store.subscribe(lambda: seen.append(("second", len(gateway.saves))))

        store.add_task(personal_id, sample_task)

        assert seen == [("first", 0), ("second", 0)]

    def test_subscriber_sees_new_state(self, store, personal_id, sample_task):
        observed = []
        store.subscribe(lambda: observed.append([t.title for t in store.tasks(personal_id)]))

        store.add_task(personal_id, sample_task)

        assert observed == [["Buy milk"]]

    def test_failing_subscriber_does_not_block_others(self, store, personal_id, sample_task):
        seen = []

        def broken():
            raise RuntimeError("view gone")

        store.subscribe(broken)
        store.subscribe(lambda: seen.append("ok"))

        store.add_task(personal_id, sample_task)

        assert seen == ["ok"]

    def test_unsubscribe(self, store, personal_id, sample_task):
        seen = []
        unsubscribe = store.subscribe(lambda: seen.append("x"))
        unsubscribe()

        store.add_task(personal_id, sample_task)

        assert seen == []
        assert len(store.notifier) == 0

    def test_noop_mutations_do_not_notify(self, store, personal_id):
        seen = []
        store.subscribe(lambda: seen.append("x"))

        store.add_category(personal_id, "Personal")
        store.delete_task(personal_id, "missing")

        assert seen == []

    def test_shared_notifier(self, make_store):
        notifier = ChangeNotifier()
        seen = []
        notifier.subscribe(lambda: seen.append("x"))
        store = make_store(notifier=notifier).load()

        store.add_category(store.workspaces[0].id, "Errands")

        assert seen == ["x"]

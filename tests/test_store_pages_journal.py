"""Tests for page and journal operations on the Store."""

import pytest
from datetime import datetime
from pydantic import ValidationError

from protivity.models.constants import JOURNAL_KEY
from protivity.models.factory import create_journal_entry, create_page
from protivity.models.workspace import Folder, FolderItem, PageItem, Workspace
from protivity.store.results import MutationResult


CREATED = datetime(2026, 1, 10, 8, 0)


@pytest.fixture
def page(store, personal_id):
    page = create_page("Reading list", "Dune", now=CREATED)
    store.add_page(personal_id, page)
    return page


class TestPages:
    """Page edits keep creation time and move modification time forward."""

    def test_add_and_read(self, store, personal_id, page):
        assert store.pages(personal_id) == [page]
        assert store.get_page(personal_id, page.id).content == "Dune"

    def test_duplicate_rejected(self, store, personal_id, page):
        with pytest.raises(ValueError):
            store.add_page(personal_id, page)

    def test_update_changed_content_stamps_now(self, store, personal_id, page, clock):
        store.update_page(personal_id, page.model_copy(update={"content": "Dune, Emma"}))

        stored = store.get_page(personal_id, page.id)
        assert stored.content == "Dune, Emma"
        assert stored.date_created == CREATED
        assert stored.date_modified == clock.now
        assert stored.date_modified >= stored.date_created

    def test_update_cannot_rewrite_creation_time(self, store, personal_id, page):
        rewritten = page.model_copy(update={"title": "Books", "date_created": datetime(2030, 1, 1)})
        store.update_page(personal_id, rewritten)

        assert store.get_page(personal_id, page.id).date_created == CREATED

    def test_update_without_text_change_keeps_stamp(self, store, personal_id, page):
        store.update_page(personal_id, page.model_copy())
        assert store.get_page(personal_id, page.id).date_modified == CREATED

    def test_edit_page(self, store, personal_id, page, clock):
        clock.advance(hours=2)

        assert store.edit_page(personal_id, page.id, "Books", "Dune") is MutationResult.APPLIED
        stored = store.get_page(personal_id, page.id)
        assert stored.title == "Books"
        assert stored.date_modified == clock.now

    def test_edit_page_requires_title(self, store, personal_id, page):
        with pytest.raises(ValueError):
            store.edit_page(personal_id, page.id, "", "x")

    def test_update_invalid_page(self, store, personal_id, page):
        with pytest.raises(ValidationError):
            store.update_page(personal_id, page.model_copy(update={"title": " "}))

    def test_delete_clears_selection(self, store, personal_id, page):
        store.select_page(page.id)
        assert store.selected_page.id == page.id

        assert store.delete_page(personal_id, page.id) is MutationResult.APPLIED
        assert store.selected_page is None
        assert store.pages(personal_id) == []

    def test_selection_sees_latest_edit(self, store, personal_id, page):
        store.select_page(page.id)
        store.edit_page(personal_id, page.id, "Renamed", "")

        assert store.selected_page.title == "Renamed"

    def test_select_workspace_clears_page(self, store, page):
        store.select_page(page.id)
        store.select_workspace(store.workspaces[1].id)

        assert store.selected_page is None

    def test_missing(self, store, personal_id):
        assert store.delete_page(personal_id, "missing") is MutationResult.NOT_FOUND
        assert store.edit_page(personal_id, "missing", "T", "") is MutationResult.NOT_FOUND
        assert store.pages("missing") == []


class TestJournal:
    """Journal entries are a global collection grouped by ISO week."""

    def test_crud(self, store, gateway):
        entry = create_journal_entry("Quiet morning", datetime(2026, 1, 14, 7, 0))

        store.add_journal_entry(entry)
        store.update_journal_entry(entry.model_copy(update={"thoughts": "Quiet, then busy"}))
        store.flush()

        assert store.journal_entries()[0].thoughts == "Quiet, then busy"
        assert gateway.saved_keys() == [JOURNAL_KEY]

        assert store.delete_journal_entry(entry.id) is MutationResult.APPLIED
        assert store.journal_entries() == []
        assert store.delete_journal_entry(entry.id) is MutationResult.NOT_FOUND

    def test_duplicate_rejected(self, store):
        entry = create_journal_entry("Once")
        store.add_journal_entry(entry)

        with pytest.raises(ValueError):
            store.add_journal_entry(entry)

    def test_by_week(self, store):
        store.add_journal_entry(create_journal_entry("older", datetime(2026, 1, 2, 9, 0)))
        store.add_journal_entry(create_journal_entry("newer", datetime(2026, 1, 14, 9, 0)))

        groups = store.journal_entries_by_week()

        assert list(groups) == ["3/2026", "1/2026"]


class TestPageIdentity:
    """Page ids are unique across workspaces."""

    def test_same_page_in_second_workspace_rejected(self, store, personal_id, page):
        work_id = store.workspaces[1].id

        with pytest.raises(ValueError, match="already exists"):
            store.add_page(work_id, page)

        assert store.pages(work_id) == []
        store.select_page(page.id)
        store.delete_workspace(work_id)
        assert store.selected_page.id == page.id


class TestPageOutline:
    """Outline nodes wrapping a page follow its edits and deletion."""

    @pytest.fixture
    def outlined(self, store):
        page = create_page("Roadmap", "v1", now=CREATED)
        nested = create_page("Q1", "goals", now=CREATED)
        folder = Folder(name="Plans", items=[PageItem(page=nested)])
        ws = store.add_workspace(
            Workspace(name="Planning", pages=[page, nested], items=[PageItem(page=page), FolderItem(folder=folder)])
        )
        return ws.id, page, nested

    def test_edit_page_updates_outline(self, store, outlined, clock):
        ws_id, page, nested = outlined

        store.edit_page(ws_id, page.id, "Roadmap 2026", "v2")
        store.update_page(ws_id, nested.model_copy(update={"content": "ship it"}))

        items = store.get_workspace(ws_id).items
        assert items[0].page.title == "Roadmap 2026"
        assert items[0].page.date_modified == clock.now
        assert items[1].folder.items[0].page.content == "ship it"

    def test_delete_page_removes_outline_nodes(self, store, outlined):
        ws_id, page, nested = outlined

        store.delete_page(ws_id, page.id)
        store.delete_page(ws_id, nested.id)

        items = store.get_workspace(ws_id).items
        assert len(items) == 1
        assert items[0].folder.name == "Plans"
        assert items[0].folder.items == []

"""Workspace-scoped store: the single in-memory source of truth.

All mutation goes through a ``Store``. Each applied mutation updates memory
synchronously, re-arms the debounced autosave and then notifies subscribers.
Reads return copies so callers always re-resolve against canonical state.

Task and goal operations take a ``workspace_id``; ``None`` addresses the
standalone (workspace-less) task and goal collections.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set, TypeVar, Union

from pydantic import BaseModel

from protivity.database.errors import CorruptDataError, PersistenceError
from protivity.database.gateway import PersistenceGateway
from protivity.engine import queries
from protivity.engine.journal import group_by_week
from protivity.engine.recurrence import build_successor
from protivity.engine.search import TaskFilter, filter_tasks, search_tasks
from protivity.models.color import RGBColor
from protivity.models.constants import (
    ARCHIVED_TASKS_KEY,
    AUTOSAVE_DEBOUNCE_SECONDS,
    DEFAULT_TASK_CATEGORIES,
    GOALS_KEY,
    JOURNAL_KEY,
    TASKS_KEY,
    WORKSPACES_KEY,
)
from protivity.models.factory import create_workspace, default_workspaces
from protivity.models.goal import Goal
from protivity.models.journal import JournalEntry
from protivity.models.page import Page
from protivity.models.task import Task
from protivity.models.workspace import FolderItem, PageItem, Workspace, WorkspaceItem
from protivity.store.debounce import Debouncer, TimerFactory
from protivity.store.notifications import ChangeNotifier, Subscriber
from protivity.store.results import MutationResult

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseModel)


@dataclass
class StandaloneCollections:
    """Tasks and goals that belong to no workspace."""
    tasks: List[Task] = field(default_factory=list)
    archived_tasks: List[Task] = field(default_factory=list)
    goals: List[Goal] = field(default_factory=list)


Scope = Union[Workspace, StandaloneCollections]


def _index_of(items: List[E], entity_id: str) -> Optional[int]:
    for i, item in enumerate(items):
        if item.id == entity_id:
            return i
    return None


def _copy(entity: Optional[E]) -> Optional[E]:
    return entity.model_copy(deep=True) if entity is not None else None


def _copies(entities: List[E]) -> List[E]:
    return [e.model_copy(deep=True) for e in entities]


def _validated(entity: E) -> E:
    """Re-run validation and detach the entity from the caller's object."""
    return type(entity).model_validate(entity.model_dump())


def _replace_outline_page(items: List[WorkspaceItem], page: Page) -> None:
    """Write an edited page through to every outline node wrapping it."""
    for item in items:
        if isinstance(item, PageItem) and item.page.id == page.id:
            item.page = page.model_copy(deep=True)
        elif isinstance(item, FolderItem):
            _replace_outline_page(item.folder.items, page)


def _drop_outline_page(items: List[WorkspaceItem], page_id: str) -> List[WorkspaceItem]:
    kept: List[WorkspaceItem] = []
    for item in items:
        if isinstance(item, PageItem) and item.page.id == page_id:
            continue
        if isinstance(item, FolderItem):
            item.folder.items = _drop_outline_page(item.folder.items, page_id)
        kept.append(item)
    return kept


class Store:
    """Owns workspaces, standalone tasks/goals and the journal."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        notifier: Optional[ChangeNotifier] = None,
        autosave_delay: float = AUTOSAVE_DEBOUNCE_SECONDS,
        timer_factory: Optional[TimerFactory] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.gateway = gateway
        self.notifier = notifier or ChangeNotifier()
        self._clock = clock or datetime.now
        # Guards state against the autosave thread taking a snapshot mid-mutation
        self._lock = threading.RLock()
        # Serializes whole write passes so snapshots reach the database in order
        self._save_lock = threading.Lock()
        self._workspaces: List[Workspace] = []
        self._standalone = StandaloneCollections()
        self._journal: List[JournalEntry] = []
        self._selected_workspace_id: Optional[str] = None
        self._selected_page_id: Optional[str] = None
        self._dirty: Set[str] = set()
        self.load_errors: Dict[str, CorruptDataError] = {}
        self._autosave = Debouncer(autosave_delay, self._write_dirty, timer_factory)

    # ------------------------------------------------------------------
    # Lifecycle and persistence
    # ------------------------------------------------------------------

    def load(self) -> "Store":
        """Load every collection; bootstrap default workspaces when none exist."""
        results = {
            WORKSPACES_KEY: self.gateway.load(WORKSPACES_KEY, Workspace),
            TASKS_KEY: self.gateway.load(TASKS_KEY, Task),
            ARCHIVED_TASKS_KEY: self.gateway.load(ARCHIVED_TASKS_KEY, Task),
            GOALS_KEY: self.gateway.load(GOALS_KEY, Goal),
            JOURNAL_KEY: self.gateway.load(JOURNAL_KEY, JournalEntry),
        }
        bootstrapped = False
        with self._lock:
            self.load_errors = {key: r.error for key, r in results.items() if not r.ok}
            self._workspaces = list(results[WORKSPACES_KEY].items)
            self._standalone = StandaloneCollections(
                tasks=list(results[TASKS_KEY].items),
                archived_tasks=list(results[ARCHIVED_TASKS_KEY].items),
                goals=list(results[GOALS_KEY].items),
            )
            self._journal = list(results[JOURNAL_KEY].items)
            self._selected_page_id = None
            if not self._workspaces:
                self._workspaces = default_workspaces()
                self._dirty.add(WORKSPACES_KEY)
                bootstrapped = True
            self._selected_workspace_id = self._workspaces[0].id
        if bootstrapped:
            logger.info("No workspace data found; created default workspaces")
            self.flush()
        return self

    def flush(self) -> bool:
        """Write pending changes now instead of waiting for the autosave timer.

        Returns False if any collection failed to save; it stays pending and
        is retried by the next mutation or flush.
        """
        if self._autosave.pending:
            self._autosave.cancel()
        return self._write_dirty()

    def close(self) -> bool:
        """Flush before teardown; pending debounced writes are otherwise lost."""
        return self.flush()

    @property
    def has_pending_changes(self) -> bool:
        with self._lock:
            return bool(self._dirty)

    def _snapshot(self, key: str) -> List[BaseModel]:
        if key == WORKSPACES_KEY:
            return _copies(self._workspaces)
        if key == TASKS_KEY:
            return _copies(self._standalone.tasks)
        if key == ARCHIVED_TASKS_KEY:
            return _copies(self._standalone.archived_tasks)
        if key == GOALS_KEY:
            return _copies(self._standalone.goals)
        if key == JOURNAL_KEY:
            return _copies(self._journal)
        raise KeyError(key)

    def _write_dirty(self) -> bool:
        # Held from snapshot to last save: a newer snapshot can never be
        # overwritten by an older one still in flight on the timer thread
        with self._save_lock:
            with self._lock:
                keys = sorted(self._dirty)
                self._dirty.clear()
                snapshots = {key: self._snapshot(key) for key in keys}

            failed: List[str] = []
            for key, entities in snapshots.items():
                try:
                    self.gateway.save(key, entities)
                except PersistenceError as e:
                    logger.error(f"Autosave of {key} failed, keeping it pending: {str(e)}")
                    failed.append(key)
            if failed:
                with self._lock:
                    self._dirty.update(failed)
            return not failed

    def _mark_dirty(self, workspace_id: Optional[str], *standalone_keys: str) -> None:
        if workspace_id is not None:
            self._dirty.add(WORKSPACES_KEY)
        else:
            self._dirty.update(standalone_keys)

    def _changed(self) -> MutationResult:
        self._autosave.trigger()
        self.notifier.publish()
        return MutationResult.APPLIED

    def _not_found(self, kind: str, entity_id: Optional[str]) -> MutationResult:
        logger.debug(f"{kind} {entity_id} not found; nothing to do")
        return MutationResult.NOT_FOUND

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register for "data changed" events; returns an unsubscribe function."""
        return self.notifier.subscribe(callback)

    # ------------------------------------------------------------------
    # Workspaces
    # ------------------------------------------------------------------

    @property
    def workspaces(self) -> List[Workspace]:
        with self._lock:
            return _copies(self._workspaces)

    def _workspace(self, workspace_id: Optional[str]) -> Optional[Workspace]:
        if workspace_id is None:
            return None
        index = _index_of(self._workspaces, workspace_id)
        return self._workspaces[index] if index is not None else None

    def _scope(self, workspace_id: Optional[str]) -> Optional[Scope]:
        if workspace_id is None:
            return self._standalone
        return self._workspace(workspace_id)

    def get_workspace(self, workspace_id: str) -> Optional[Workspace]:
        with self._lock:
            return _copy(self._workspace(workspace_id))

    def add_workspace(self, workspace: Workspace) -> Workspace:
        """Append a workspace.

        Raises:
            ValueError: a workspace with the same id already exists
        """
        workspace = _validated(workspace)
        with self._lock:
            if _index_of(self._workspaces, workspace.id) is not None:
                raise ValueError(f"Workspace {workspace.id} already exists")
            self._workspaces.append(workspace)
            self._dirty.add(WORKSPACES_KEY)
            result = _copy(workspace)
        self._changed()
        return result

    def create_workspace(self, name: str, icon: str, color: RGBColor) -> Workspace:
        """Create and add a workspace with categories chosen from its name."""
        return self.add_workspace(create_workspace(name, icon, color))

    def update_workspace(self, workspace: Workspace) -> MutationResult:
        workspace = _validated(workspace)
        with self._lock:
            index = _index_of(self._workspaces, workspace.id)
            if index is None:
                return self._not_found("Workspace", workspace.id)
            self._workspaces[index] = workspace
            self._dirty.add(WORKSPACES_KEY)
        return self._changed()

    def delete_workspace(self, workspace_id: str) -> MutationResult:
        """Delete a workspace and everything it owns.

        If it was selected, the selected page is cleared and the selection
        moves to the first remaining workspace (or none).
        """
        with self._lock:
            index = _index_of(self._workspaces, workspace_id)
            if index is None:
                return self._not_found("Workspace", workspace_id)
            removed = self._workspaces.pop(index)
            if self._selected_workspace_id == workspace_id:
                self._selected_workspace_id = self._workspaces[0].id if self._workspaces else None
                self._selected_page_id = None
            elif _index_of(removed.pages, self._selected_page_id or "") is not None:
                self._selected_page_id = None
            self._dirty.add(WORKSPACES_KEY)
        return self._changed()

    def select_workspace(self, workspace_id: Optional[str]) -> MutationResult:
        """Point the selection at a workspace (or clear it with None)."""
        with self._lock:
            if workspace_id is not None and self._workspace(workspace_id) is None:
                return self._not_found("Workspace", workspace_id)
            if workspace_id == self._selected_workspace_id:
                return MutationResult.UNCHANGED
            self._selected_workspace_id = workspace_id
            self._selected_page_id = None
        self.notifier.publish()
        return MutationResult.APPLIED

    @property
    def selected_workspace(self) -> Optional[Workspace]:
        with self._lock:
            return _copy(self._workspace(self._selected_workspace_id))

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def get_categories(self, workspace_id: Optional[str]) -> List[str]:
        """Category labels of a workspace; standalone tasks use the fixed defaults."""
        if workspace_id is None:
            return list(DEFAULT_TASK_CATEGORIES)
        with self._lock:
            workspace = self._workspace(workspace_id)
            return list(workspace.categories) if workspace is not None else []

    def add_category(self, workspace_id: str, category: str) -> MutationResult:
        """Append a category label; an existing label is left alone.

        Raises:
            ValueError: category is blank
        """
        if not category or not category.strip():
            raise ValueError("category must not be empty")
        with self._lock:
            workspace = self._workspace(workspace_id)
            if workspace is None:
                return self._not_found("Workspace", workspace_id)
            if category in workspace.categories:
                return MutationResult.UNCHANGED
            workspace.categories.append(category)
            self._dirty.add(WORKSPACES_KEY)
        return self._changed()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def _ids_in_scopes(self, *collections: str) -> Set[str]:
        """Ids held in the named collections of every scope, standalone included."""
        ids: Set[str] = set()
        for scope in [self._standalone] + self._workspaces:
            for name in collections:
                ids.update(e.id for e in getattr(scope, name, []))
        return ids

    def _link_goal(self, scope: Scope, goal_id: Optional[str], task_id: str) -> bool:
        """Append task_id to a goal's references; False if the goal is missing."""
        if goal_id is None:
            return False
        index = _index_of(scope.goals, goal_id)
        if index is None:
            return False
        goal = scope.goals[index]
        if task_id not in goal.task_ids:
            scope.goals[index] = goal.model_copy(update={"task_ids": goal.task_ids + [task_id]})
        return True

    def _unlink_goal(self, scope: Scope, goal_id: Optional[str], task_id: str) -> bool:
        if goal_id is None:
            return False
        index = _index_of(scope.goals, goal_id)
        if index is None:
            return False
        goal = scope.goals[index]
        if task_id not in goal.task_ids:
            return False
        scope.goals[index] = goal.model_copy(update={"task_ids": [i for i in goal.task_ids if i != task_id]})
        return True

    def tasks(self, workspace_id: Optional[str] = None) -> List[Task]:
        """Active tasks of a workspace (or the standalone collection)."""
        with self._lock:
            scope = self._scope(workspace_id)
            return _copies(scope.tasks) if scope is not None else []

    def archived_tasks(self, workspace_id: Optional[str] = None) -> List[Task]:
        with self._lock:
            scope = self._scope(workspace_id)
            return _copies(scope.archived_tasks) if scope is not None else []

    def get_task(self, workspace_id: Optional[str], task_id: str) -> Optional[Task]:
        """Find a task, active or archived."""
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return None
            for collection in (scope.tasks, scope.archived_tasks):
                index = _index_of(collection, task_id)
                if index is not None:
                    return _copy(collection[index])
            return None

    def add_task(self, workspace_id: Optional[str], task: Task) -> MutationResult:
        """Append a task; a task with ``goal_id`` is also added to that goal.

        Raises:
            ValueError: a task with the same id already exists anywhere
        """
        task = _validated(task)
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            if task.id in self._ids_in_scopes("tasks", "archived_tasks"):
                raise ValueError(f"Task {task.id} already exists")
            target = scope.archived_tasks if task.is_archived else scope.tasks
            target.append(task)
            linked = self._link_goal(scope, task.goal_id, task.id)
            self._mark_dirty(
                workspace_id, ARCHIVED_TASKS_KEY if task.is_archived else TASKS_KEY, *([GOALS_KEY] if linked else [])
            )
        return self._changed()

    def update_task(self, workspace_id: Optional[str], task: Task) -> MutationResult:
        """Replace a stored task (active or archived) by id.

        Changing ``goal_id`` moves the task between goals' reference lists.
        """
        task = _validated(task)
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            for key, collection in ((TASKS_KEY, scope.tasks), (ARCHIVED_TASKS_KEY, scope.archived_tasks)):
                index = _index_of(collection, task.id)
                if index is None:
                    continue
                previous = collection[index]
                # The collection decides the archived flag, not the caller
                task = task.model_copy(update={"is_archived": key == ARCHIVED_TASKS_KEY})
                collection[index] = task
                keys = [key]
                if previous.goal_id != task.goal_id:
                    self._unlink_goal(scope, previous.goal_id, task.id)
                    self._link_goal(scope, task.goal_id, task.id)
                    keys.append(GOALS_KEY)
                self._mark_dirty(workspace_id, *keys)
                break
            else:
                return self._not_found("Task", task.id)
        return self._changed()

    def delete_task(self, workspace_id: Optional[str], task_id: str) -> MutationResult:
        """Remove a task (active or archived).

        Goals keep their reference; goal queries skip it once it dangles.
        """
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            for key, collection in ((TASKS_KEY, scope.tasks), (ARCHIVED_TASKS_KEY, scope.archived_tasks)):
                index = _index_of(collection, task_id)
                if index is not None:
                    del collection[index]
                    self._mark_dirty(workspace_id, key)
                    break
            else:
                return self._not_found("Task", task_id)
        return self._changed()

    def toggle_task_completion(self, workspace_id: Optional[str], task_id: str) -> MutationResult:
        """Flip completion of an active task.

        Completing a recurring task keeps it (completed) and appends a fresh
        successor due one interval later. Completing any other task moves it
        to the archive. Un-completing clears ``last_completed_date``. Archived
        tasks must be unarchived before they can be toggled.
        """
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            index = _index_of(scope.tasks, task_id)
            if index is None:
                return self._not_found("Task", task_id)
            task = scope.tasks[index]

            if task.is_completed:
                scope.tasks[index] = task.model_copy(update={"is_completed": False, "last_completed_date": None})
                self._mark_dirty(workspace_id, TASKS_KEY)
            else:
                completed = task.model_copy(update={"is_completed": True, "last_completed_date": self._clock()})
                if completed.is_recurring:
                    scope.tasks[index] = completed
                    keys = [TASKS_KEY]
                    successor = build_successor(completed)
                    if successor is not None:
                        scope.tasks.append(successor)
                        if self._link_goal(scope, successor.goal_id, successor.id):
                            keys.append(GOALS_KEY)
                        logger.debug(f"Task {task_id} recurred as {successor.id} due {successor.due_date}")
                    self._mark_dirty(workspace_id, *keys)
                else:
                    del scope.tasks[index]
                    scope.archived_tasks.append(completed.model_copy(update={"is_archived": True}))
                    self._mark_dirty(workspace_id, TASKS_KEY, ARCHIVED_TASKS_KEY)
        return self._changed()

    def archive_task(self, workspace_id: Optional[str], task_id: str) -> MutationResult:
        """Move an active non-recurring task to the archive.

        Recurring tasks are never archived and report UNCHANGED.
        """
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            index = _index_of(scope.tasks, task_id)
            if index is None:
                return self._not_found("Task", task_id)
            task = scope.tasks[index]
            if task.is_recurring:
                return MutationResult.UNCHANGED
            del scope.tasks[index]
            scope.archived_tasks.append(
                task.model_copy(update={"is_archived": True, "last_completed_date": self._clock()})
            )
            self._mark_dirty(workspace_id, TASKS_KEY, ARCHIVED_TASKS_KEY)
        return self._changed()

    def unarchive_task(self, workspace_id: Optional[str], task_id: str) -> MutationResult:
        """Move an archived task back into the active collection."""
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            index = _index_of(scope.archived_tasks, task_id)
            if index is None:
                return self._not_found("Archived task", task_id)
            task = scope.archived_tasks.pop(index)
            scope.tasks.append(task.model_copy(update={"is_archived": False}))
            self._mark_dirty(workspace_id, TASKS_KEY, ARCHIVED_TASKS_KEY)
        return self._changed()

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    def goals(self, workspace_id: Optional[str] = None) -> List[Goal]:
        with self._lock:
            scope = self._scope(workspace_id)
            return _copies(scope.goals) if scope is not None else []

    def get_goal(self, workspace_id: Optional[str], goal_id: str) -> Optional[Goal]:
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return None
            index = _index_of(scope.goals, goal_id)
            return _copy(scope.goals[index]) if index is not None else None

    def add_goal(self, workspace_id: Optional[str], goal: Goal) -> MutationResult:
        """Append a goal.

        Raises:
            ValueError: a goal with the same id already exists in any scope
        """
        goal = _validated(goal)
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            if goal.id in self._ids_in_scopes("goals"):
                raise ValueError(f"Goal {goal.id} already exists")
            scope.goals.append(goal)
            self._mark_dirty(workspace_id, GOALS_KEY)
        return self._changed()

    def update_goal(self, workspace_id: Optional[str], goal: Goal) -> MutationResult:
        goal = _validated(goal)
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            index = _index_of(scope.goals, goal.id)
            if index is None:
                return self._not_found("Goal", goal.id)
            scope.goals[index] = goal
            self._mark_dirty(workspace_id, GOALS_KEY)
        return self._changed()

    def delete_goal(self, workspace_id: Optional[str], goal_id: str) -> MutationResult:
        """Remove a goal and clear ``goal_id`` on tasks that pointed at it."""
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            index = _index_of(scope.goals, goal_id)
            if index is None:
                return self._not_found("Goal", goal_id)
            del scope.goals[index]
            keys = [GOALS_KEY]
            for key, collection in ((TASKS_KEY, scope.tasks), (ARCHIVED_TASKS_KEY, scope.archived_tasks)):
                for i, task in enumerate(collection):
                    if task.goal_id == goal_id:
                        collection[i] = task.model_copy(update={"goal_id": None})
                        if key not in keys:
                            keys.append(key)
            self._mark_dirty(workspace_id, *keys)
        return self._changed()

    def toggle_goal_completion(self, workspace_id: Optional[str], goal_id: str) -> MutationResult:
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            index = _index_of(scope.goals, goal_id)
            if index is None:
                return self._not_found("Goal", goal_id)
            goal = scope.goals[index]
            scope.goals[index] = goal.model_copy(update={"is_completed": not goal.is_completed})
            self._mark_dirty(workspace_id, GOALS_KEY)
        return self._changed()

    def add_task_to_goal(self, workspace_id: Optional[str], goal_id: str, task_id: str) -> MutationResult:
        """Make a goal reference a task in the same scope.

        The task's ``goal_id`` is set, and a previous goal drops its reference.
        """
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            goal_index = _index_of(scope.goals, goal_id)
            if goal_index is None:
                return self._not_found("Goal", goal_id)
            for key, collection in ((TASKS_KEY, scope.tasks), (ARCHIVED_TASKS_KEY, scope.archived_tasks)):
                index = _index_of(collection, task_id)
                if index is None:
                    continue
                task = collection[index]
                if task.goal_id == goal_id and task_id in scope.goals[goal_index].task_ids:
                    return MutationResult.UNCHANGED
                if task.goal_id != goal_id:
                    self._unlink_goal(scope, task.goal_id, task_id)
                    collection[index] = task.model_copy(update={"goal_id": goal_id})
                self._link_goal(scope, goal_id, task_id)
                self._mark_dirty(workspace_id, key, GOALS_KEY)
                break
            else:
                return self._not_found("Task", task_id)
        return self._changed()

    def remove_task_from_goal(self, workspace_id: Optional[str], goal_id: str, task_id: str) -> MutationResult:
        """Drop a goal's reference to a task and clear the task's ``goal_id``."""
        with self._lock:
            scope = self._scope(workspace_id)
            if scope is None:
                return self._not_found("Workspace", workspace_id)
            if _index_of(scope.goals, goal_id) is None:
                return self._not_found("Goal", goal_id)
            if not self._unlink_goal(scope, goal_id, task_id):
                return MutationResult.UNCHANGED
            keys = [GOALS_KEY]
            for key, collection in ((TASKS_KEY, scope.tasks), (ARCHIVED_TASKS_KEY, scope.archived_tasks)):
                index = _index_of(collection, task_id)
                if index is not None and collection[index].goal_id == goal_id:
                    collection[index] = collection[index].model_copy(update={"goal_id": None})
                    keys.append(key)
            self._mark_dirty(workspace_id, *keys)
        return self._changed()

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def pages(self, workspace_id: str) -> List[Page]:
        with self._lock:
            workspace = self._workspace(workspace_id)
            return _copies(workspace.pages) if workspace is not None else []

    def get_page(self, workspace_id: str, page_id: str) -> Optional[Page]:
        with self._lock:
            workspace = self._workspace(workspace_id)
            if workspace is None:
                return None
            index = _index_of(workspace.pages, page_id)
            return _copy(workspace.pages[index]) if index is not None else None

    def add_page(self, workspace_id: str, page: Page) -> MutationResult:
        """Append a page to a workspace.

        Raises:
            ValueError: a page with the same id already exists in any workspace
        """
        page = _validated(page)
        with self._lock:
            workspace = self._workspace(workspace_id)
            if workspace is None:
                return self._not_found("Workspace", workspace_id)
            if page.id in self._ids_in_scopes("pages"):
                raise ValueError(f"Page {page.id} already exists")
            workspace.pages.append(page)
            self._dirty.add(WORKSPACES_KEY)
        return self._changed()

    def update_page(self, workspace_id: str, page: Page) -> MutationResult:
        """Replace a page by id.

        ``date_created`` is kept from the stored page, and ``date_modified``
        moves to now only when the title or content actually changed. Outline
        nodes wrapping the page are updated too.
        """
        page = _validated(page)
        with self._lock:
            workspace = self._workspace(workspace_id)
            if workspace is None:
                return self._not_found("Workspace", workspace_id)
            index = _index_of(workspace.pages, page.id)
            if index is None:
                return self._not_found("Page", page.id)
            stored = workspace.pages[index]
            changed = page.title != stored.title or page.content != stored.content
            workspace.pages[index] = page.model_copy(
                update={
                    "date_created": stored.date_created,
                    "date_modified": self._clock() if changed else stored.date_modified,
                }
            )
            _replace_outline_page(workspace.items, workspace.pages[index])
            self._dirty.add(WORKSPACES_KEY)
        return self._changed()

    def edit_page(self, workspace_id: str, page_id: str, title: str, content: str) -> MutationResult:
        """Set a page's title and content and stamp ``date_modified``."""
        if not title or not title.strip():
            raise ValueError("title must not be empty")
        with self._lock:
            workspace = self._workspace(workspace_id)
            if workspace is None:
                return self._not_found("Workspace", workspace_id)
            index = _index_of(workspace.pages, page_id)
            if index is None:
                return self._not_found("Page", page_id)
            workspace.pages[index] = workspace.pages[index].model_copy(
                update={"title": title, "content": content, "date_modified": self._clock()}
            )
            _replace_outline_page(workspace.items, workspace.pages[index])
            self._dirty.add(WORKSPACES_KEY)
        return self._changed()

    def delete_page(self, workspace_id: str, page_id: str) -> MutationResult:
        """Remove a page from the workspace and from its outline."""
        with self._lock:
            workspace = self._workspace(workspace_id)
            if workspace is None:
                return self._not_found("Workspace", workspace_id)
            index = _index_of(workspace.pages, page_id)
            if index is None:
                return self._not_found("Page", page_id)
            del workspace.pages[index]
            workspace.items = _drop_outline_page(workspace.items, page_id)
            if self._selected_page_id == page_id:
                self._selected_page_id = None
            self._dirty.add(WORKSPACES_KEY)
        return self._changed()

    def _find_page(self, page_id: Optional[str]) -> Optional[Page]:
        if page_id is None:
            return None
        for workspace in self._workspaces:
            index = _index_of(workspace.pages, page_id)
            if index is not None:
                return workspace.pages[index]
        return None

    def select_page(self, page_id: Optional[str]) -> MutationResult:
        """Point the page selection at any existing page (or clear it with None)."""
        with self._lock:
            if page_id is not None and self._find_page(page_id) is None:
                return self._not_found("Page", page_id)
            if page_id == self._selected_page_id:
                return MutationResult.UNCHANGED
            self._selected_page_id = page_id
        self.notifier.publish()
        return MutationResult.APPLIED

    @property
    def selected_page(self) -> Optional[Page]:
        with self._lock:
            return _copy(self._find_page(self._selected_page_id))

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def journal_entries(self) -> List[JournalEntry]:
        with self._lock:
            return _copies(self._journal)

    def add_journal_entry(self, entry: JournalEntry) -> MutationResult:
        """Append a journal entry.

        Raises:
            ValueError: an entry with the same id already exists
        """
        entry = _validated(entry)
        with self._lock:
            if _index_of(self._journal, entry.id) is not None:
                raise ValueError(f"Journal entry {entry.id} already exists")
            self._journal.append(entry)
            self._dirty.add(JOURNAL_KEY)
        return self._changed()

    def update_journal_entry(self, entry: JournalEntry) -> MutationResult:
        entry = _validated(entry)
        with self._lock:
            index = _index_of(self._journal, entry.id)
            if index is None:
                return self._not_found("Journal entry", entry.id)
            self._journal[index] = entry
            self._dirty.add(JOURNAL_KEY)
        return self._changed()

    def delete_journal_entry(self, entry_id: str) -> MutationResult:
        with self._lock:
            index = _index_of(self._journal, entry_id)
            if index is None:
                return self._not_found("Journal entry", entry_id)
            del self._journal[index]
            self._dirty.add(JOURNAL_KEY)
        return self._changed()

    def journal_entries_by_week(self) -> Dict[str, List[JournalEntry]]:
        return group_by_week(self.journal_entries())

    # ------------------------------------------------------------------
    # Derived queries
    # ------------------------------------------------------------------

    def _now(self, now: Optional[datetime]) -> datetime:
        return now if now is not None else self._clock()

    def tasks_for_category(self, workspace_id: Optional[str], category: str) -> List[Task]:
        return queries.tasks_for_category(self.tasks(workspace_id), category)

    def tasks_for_today(self, workspace_id: Optional[str] = None, now: Optional[datetime] = None) -> List[Task]:
        return queries.tasks_for_today(self.tasks(workspace_id), self._now(now))

    def upcoming_tasks(self, workspace_id: Optional[str] = None, now: Optional[datetime] = None) -> List[Task]:
        return queries.upcoming_tasks(self.tasks(workspace_id), self._now(now))

    def completed_tasks(self, workspace_id: Optional[str] = None) -> List[Task]:
        return queries.completed_tasks(self.tasks(workspace_id))

    def search_tasks(self, workspace_id: Optional[str], text: str) -> List[Task]:
        return search_tasks(self.tasks(workspace_id), text)

    def filter_tasks(
        self,
        workspace_id: Optional[str],
        task_filter: TaskFilter = TaskFilter.ALL,
        category: Optional[str] = None,
        text: str = "",
        now: Optional[datetime] = None,
    ) -> List[Task]:
        return filter_tasks(self.tasks(workspace_id), task_filter, category, text, self._now(now))

    def tasks_for_goal(self, workspace_id: Optional[str], goal_id: str) -> List[Task]:
        """Resolvable tasks of a goal, active or archived, in goal order."""
        goal = self.get_goal(workspace_id, goal_id)
        if goal is None:
            return []
        return queries.tasks_for_goal(goal, self.tasks(workspace_id) + self.archived_tasks(workspace_id))

    def completion_percentage_for_goal(self, workspace_id: Optional[str], goal_id: str) -> float:
        goal = self.get_goal(workspace_id, goal_id)
        if goal is None:
            return 0.0
        return queries.completion_percentage_for_goal(
            goal, self.tasks(workspace_id) + self.archived_tasks(workspace_id)
        )

    def active_goals(self, workspace_id: Optional[str] = None) -> List[Goal]:
        return queries.active_goals(self.goals(workspace_id))

    def completed_goals(self, workspace_id: Optional[str] = None) -> List[Goal]:
        return queries.completed_goals(self.goals(workspace_id))

    def upcoming_goals(self, workspace_id: Optional[str] = None, now: Optional[datetime] = None) -> List[Goal]:
        return queries.upcoming_goals(self.goals(workspace_id), self._now(now))

"""Pytest fixtures and configuration for ProTIvity tests."""

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from protivity.database.database import build_session_factory, init_db
from protivity.database.gateway import PersistenceGateway
from protivity.models.factory import create_task
from protivity.models.task import Priority, RecurrenceInterval
from protivity.store.store import Store


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


class RecordingGateway(PersistenceGateway):
    """Gateway that records every successful save (key, record count)."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.saves = []

    def save(self, key, entities):
        super().save(key, entities)
        self.saves.append((key, len(entities)))

    def saved_keys(self):
        return [key for key, _ in self.saves]


class ManualTimer:
    """Timer that only fires when a test says so."""

    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fired = True
        self.callback()


class ManualTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self):
        return [t for t in self.timers if t.started and not t.cancelled and not t.fired]

    def fire_all(self):
        for timer in list(self.active):
            timer.fire()


class FixedClock:
    """Callable clock returning a controllable local time."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite engine, created fresh for each test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    init_db(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def gateway(engine):
    """Recording persistence gateway on the in-memory database."""
    return RecordingGateway(build_session_factory(engine))


@pytest.fixture
def timers():
    return ManualTimerFactory()


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 1, 15, 9, 30))


@pytest.fixture
def make_store(gateway, timers, clock):
    """Build (unloaded) stores sharing the test gateway, timers and clock."""
    def _make(**kwargs):
        kwargs.setdefault("timer_factory", timers)
        kwargs.setdefault("clock", clock)
        return Store(gateway, **kwargs)
    return _make


@pytest.fixture
def store(make_store, gateway):
    """Loaded store holding the default workspaces; bootstrap writes are cleared."""
    s = make_store().load()
    gateway.saves.clear()
    return s


@pytest.fixture
def personal_id(store):
    """Id of the bootstrapped Personal workspace (selected after load)."""
    return store.workspaces[0].id


@pytest.fixture
def sample_task():
    return create_task("Buy milk", "Shopping", priority=Priority.HIGH, notes="2 litres")


@pytest.fixture
def recurring_task(clock):
    return create_task(
        "Pay rent",
        "Personal",
        due_date=datetime(2026, 1, 31, 9, 0),
        recurrence_interval=RecurrenceInterval.MONTHLY,
    )

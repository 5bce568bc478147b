"""Shared fixtures: a manual clock for the animators and an in-memory database."""
import os
import sys
from datetime import date
from pathlib import Path

import pytest

# Environment must be set before the app modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import database  # noqa: E402


class FakeHandle:
    def __init__(self, when, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Just enough of an asyncio loop: time() and call_later(), driven by advance()."""

    def __init__(self):
        self.now = 0.0
        self._handles = []

    def time(self):
        return self.now

    def call_later(self, delay, callback):
        handle = FakeHandle(self.now + delay, callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self):
        return len([h for h in self._handles if not h.cancelled])

    def advance(self, seconds):
        deadline = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when <= deadline]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._handles.remove(handle)
            self.now = max(self.now, handle.when)
            handle.callback()
        self._handles = [h for h in self._handles if not h.cancelled]
        self.now = deadline


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database.Base.metadata.create_all(bind=engine)
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def seeded(session):
    """Two months of activity, one goal transfer, a spending limit and a score."""
    session.add_all(
        [
            database.Transaction(date=date(2024, 1, 2), description="Salary", amount=3000.0, category="Income"),
            database.Transaction(date=date(2024, 1, 5), description="Groceries", amount=-500.0, category="Food"),
            database.Transaction(date=date(2024, 1, 9), description="Metro", amount=-200.0, category="Transport"),
            database.Transaction(date=date(2024, 1, 12), description="Misc", amount=-100.0, category=""),
            database.Transaction(
                date=date(2024, 1, 20), description="To vacation", amount=-300.0, category="Savings", goal_id="g1"
            ),
            database.Transaction(date=date(2024, 2, 2), description="Salary", amount=3200.0, category="Income"),
            database.Transaction(date=date(2024, 2, 6), description="Groceries", amount=-600.0, category="food"),
            database.Asset(id="a1", name="Flat", kind="property", current_value=200000.0),
            database.Goal(id="g1", title="Vacation", target_amount=2000.0, current_amount=300.0,
                          target_type="savings"),
            database.Goal(id="g2", title="Food budget", target_amount=550.0, current_amount=0.0,
                          category="Food", target_type="goal"),
            database.HealthScoreRecord(month=date(2024, 2, 1), score=72, explanation="Spending is steady"),
        ]
    )
    session.commit()
    return session

"""Shared pytest fixtures for TaskTimers tests."""

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from tasktimers.database.db import configure_engine, init_db
from tasktimers.database.gateway import PersistenceGateway
from tasktimers.timer.engine import TimerEngine

from helpers import FakeClock, FakeFeedback, FakeNotifier


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def gateway():
    return PersistenceGateway()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def feedback():
    return FakeFeedback()


@pytest.fixture
def make_engine(qapp, gateway, clock, notifier, feedback):
    """Factory for engines sharing one database, clock and fakes.

    Building a second engine simulates a process restart.
    """
    def factory(**kwargs):
        kwargs.setdefault("notifier", notifier)
        kwargs.setdefault("feedback", feedback)
        return TimerEngine(parent=None, gateway=gateway, clock=clock, **kwargs)
    return factory


@pytest.fixture
def engine(make_engine):
    """Fresh TimerEngine on the fake clock with the seeded catalog."""
    return make_engine()

"""Shared pytest fixtures for Tempus Ring tests."""

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from tempusring.commands import Backend
from tempusring.recorder import SessionRecorder
from tempusring.settings import PreferencesStore
from tempusring.storage.statistics import StatisticsStore
from tempusring.timer.engine import TimerConfig, TimerEngine

from helpers import FakeClock


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Keep every test away from the real application data directory."""
    monkeypatch.setenv("TEMPUSRING_DATA_DIR", str(tmp_path / "appdata"))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    """Fresh TimerEngine on a fake clock, default config (manual mode)."""
    return TimerEngine(clock=clock, wall_clock=clock.wall)


@pytest.fixture
def engine_auto(clock):
    """Fresh TimerEngine that auto-starts breaks (and therefore work)."""
    return TimerEngine(
        TimerConfig(auto_start_breaks=True), clock=clock, wall_clock=clock.wall,
    )


@pytest.fixture
def prefs_store(tmp_path):
    return PreferencesStore(tmp_path)


@pytest.fixture
def stats_store(tmp_path):
    return StatisticsStore(tmp_path)


@pytest.fixture
def backend(engine, prefs_store, stats_store, clock):
    recorder = SessionRecorder(stats_store, now=clock.datetime)
    return Backend(engine, prefs_store, stats_store, recorder)

"""Central Pytest Fixtures for ChronOS.

Fixtures included:
- Settings: default_settings, settings_with_events
- Store: store, recording_store
- Storage: settings_path, repository
- Isolation: isolated_env (autouse; HOME, cwd and config cache)
"""

from datetime import date, datetime
from pathlib import Path

import pytest

from chronos.config import reset_config
from chronos.core.events import TimelineStore
from chronos.core.models import EventCategory, RangeEvent, SingleEvent, TimelineSettings
from chronos.storage import SettingsRepository

# =============================================================================
# Constants
# =============================================================================

BIRTHDAY = date(1990, 1, 1)
NOW = datetime(2024, 1, 10, 12, 0)


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep tests away from the real home directory and config files."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for name in ("CHRONOS_DEBUG", "CHRONOS_VERBOSE"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def default_settings() -> TimelineSettings:
    return TimelineSettings(birthday=BIRTHDAY)


@pytest.fixture
def settings_with_events() -> TimelineSettings:
    """Settings with one event in every built-in category and one custom type."""
    return TimelineSettings(
        birthday=BIRTHDAY,
        custom_event_types=(EventCategory(name="Sport", color="#FF9800"),),
        events={
            "Major Life": (SingleEvent(week_key="2012-W36", description="Graduation"),),
            "Travel": (
                RangeEvent(
                    start_week_key="2019-W27",
                    end_week_key="2019-W29",
                    description="Road trip",
                ),
            ),
            "Relationship": (SingleEvent(week_key="2015-W10", description="Met Sam"),),
            "Education/Career": (SingleEvent(week_key="2016-W01", description="First job"),),
            "Sport": (SingleEvent(week_key="2021-W10", description="Marathon"),),
        },
        filled_weeks=("2024-W01",),
    )


# =============================================================================
# Store
# =============================================================================


@pytest.fixture
def store(default_settings: TimelineSettings) -> TimelineStore:
    return TimelineStore(default_settings)


@pytest.fixture
def recording_store(default_settings: TimelineSettings) -> tuple[TimelineStore, list]:
    """A store plus the list of snapshots its listener received."""
    snapshots: list[TimelineSettings] = []
    return TimelineStore(default_settings, listeners=[snapshots.append]), snapshots


# =============================================================================
# Storage
# =============================================================================


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "settings.json"


@pytest.fixture
def repository(settings_path: Path) -> SettingsRepository:
    return SettingsRepository(settings_path)

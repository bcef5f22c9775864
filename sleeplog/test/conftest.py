from zoneinfo import ZoneInfo

import pytest

from sleeplog.configs.sleep_config import SleepConfig
from sleeplog.database.table_initializer import initialize_tables
from sleeplog.models.base import dispose_engines
from sleeplog.sleep.sleep_records import SleepRecordsManager


@pytest.fixture(autouse=True)
def sleep_db(tmp_path, monkeypatch):
    """Fresh SQLite file per test."""
    db_path = (tmp_path / "sleeplog_test.db").as_posix()
    monkeypatch.setenv("SLEEPLOG_DATABASE_URI", f"sqlite:///{db_path}")
    initialize_tables()
    yield db_path
    dispose_engines()


@pytest.fixture
def moscow():
    return ZoneInfo("Europe/Moscow")


@pytest.fixture
def sleep_config(tmp_path):
    path = tmp_path / "config_sleep_tracking.yaml"
    path.write_text(
        'reference_timezone: "Europe/Moscow"\n'
        "history:\n"
        "  recent_days: 3\n",
        encoding="utf-8",
    )
    return SleepConfig(config_path=path)


@pytest.fixture
def records(moscow, sleep_config):
    return SleepRecordsManager(tz=moscow, config=sleep_config)

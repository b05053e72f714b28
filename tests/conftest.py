from __future__ import annotations

from pathlib import Path

import pytest

from pysurvivor.config import settings
from pysurvivor.models import Member, PoolRules
from pysurvivor.persistence import PoolStore
from tests.support import SEASON, FakeClock, utc, week9_anchor, week9_games


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in (
        settings.DB_PATH_ENV,
        settings.LOCK_ZONE_ENV,
        settings.DEFAULT_LOCK_TIME_ENV,
        settings.POLL_SECONDS_ENV,
        settings.REGULAR_SEASON_WEEKS_ENV,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store(tmp_path: Path) -> PoolStore:
    return PoolStore(tmp_path / "pysurvivor.sqlite")


@pytest.fixture
def clock() -> FakeClock:
    # Wednesday before week 9; nothing in week 9 has locked yet.
    return FakeClock(utc(2024, 10, 30, 12, 0))


@pytest.fixture
def seeded_store(store: PoolStore) -> PoolStore:
    store.save_pool(PoolRules(pool_id="rolling", season=SEASON, name="Rolling"))
    store.save_pool(
        PoolRules(pool_id="hybrid", season=SEASON, name="Hybrid", deadline_mode="hybrid", fixed_local_time="13:00")
    )
    for pool_id in ("rolling", "hybrid"):
        store.save_member(pool_id, Member(member_id="alice", display_name="Alice"))
        store.save_member(pool_id, Member(member_id="bob", display_name="Bob"))
    store.upsert_games(week9_games())
    store.upsert_week_anchors([week9_anchor()])
    return store

"""Persistence layer for pools, rosters, schedules and picks."""

from __future__ import annotations

import logging
import os
import sqlite3
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from pysurvivor.config import settings
from pysurvivor.models import Game, Member, Pick, PoolRules, WeekAnchor


logger = logging.getLogger(__name__)

PickGuard = Callable[[Optional[Pick], List[Pick]], None]
PoolGuard = Callable[[Optional[PoolRules], List[Pick]], None]


class PoolStore:
    """SQLite-backed store for the engine's inputs and the pick ledger."""

    def __init__(self, db_path: Path | str):
        self._use_uri = False
        env_db = os.getenv(settings.DB_PATH_ENV)
        if env_db:
            if env_db.startswith("file:"):
                self.db_path = env_db
                self._use_uri = True
            else:
                self.db_path = Path(env_db)
        elif isinstance(db_path, str) and db_path.startswith("file:"):
            self.db_path = db_path
            self._use_uri = True
        else:
            self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self, *, autocommit: bool = False) -> sqlite3.Connection:
        kwargs: dict = {"timeout": 30.0}
        if autocommit:
            kwargs["isolation_level"] = None
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(self.db_path, **kwargs)
            except sqlite3.OperationalError:
                fallback_dir = Path(tempfile.gettempdir()) / "pysurvivor-runtime"
                fallback_dir.mkdir(parents=True, exist_ok=True)
                fallback = fallback_dir / "pysurvivor.sqlite"
                logger.warning("Cannot open %s; falling back to %s", self.db_path, fallback)
                conn = sqlite3.connect(fallback, **kwargs)
                self.db_path = fallback
                self._create_schema(conn)
        else:
            conn = sqlite3.connect(self.db_path, uri=self._use_uri, **kwargs)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            self._create_schema(conn)

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS pools (
                id TEXT PRIMARY KEY,
                season INTEGER NOT NULL,
                name TEXT,
                strikes_allowed INTEGER NOT NULL,
                tie_rule TEXT NOT NULL,
                deadline_mode TEXT NOT NULL,
                fixed_local_time TEXT,
                start_week INTEGER NOT NULL,
                include_playoffs INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS members (
                pool_id TEXT NOT NULL,
                member_id TEXT NOT NULL,
                display_name TEXT,
                avatar_url TEXT,
                joined_at TEXT NOT NULL,
                PRIMARY KEY (pool_id, member_id)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS games (
                season INTEGER NOT NULL,
                week INTEGER NOT NULL,
                home_team TEXT NOT NULL,
                away_team TEXT NOT NULL,
                kickoff TEXT NOT NULL,
                status TEXT NOT NULL,
                winner TEXT,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (season, week, home_team, away_team)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS week_anchors (
                season INTEGER NOT NULL,
                week INTEGER NOT NULL,
                anchor_date TEXT NOT NULL,
                PRIMARY KEY (season, week)
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS picks (
                pool_id TEXT NOT NULL,
                member_id TEXT NOT NULL,
                week INTEGER NOT NULL,
                team TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (pool_id, member_id, week)
            )
            """
        )
        conn.commit()

    # -- pools and rosters -------------------------------------------------

    def save_pool(self, rules: PoolRules, *, guard: Optional[PoolGuard] = None) -> PoolRules:
        """Create or replace a pool's rules.

        With a ``guard``, the write runs in an immediate transaction and the
        guard sees the stored rules (None for a new pool) and every pick in the
        pool; raising from it leaves the stored rules untouched.
        """

        conn = self._connect(autocommit=True)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                if guard is not None:
                    row = conn.execute("SELECT * FROM pools WHERE id = ?", (rules.pool_id,)).fetchone()
                    existing = self._row_to_pool(row) if row is not None else None
                    guard(existing, self._fetch_pool_picks(conn, rules.pool_id))
                self._upsert_pool(conn, rules)
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()
        return rules

    def _upsert_pool(self, conn: sqlite3.Connection, rules: PoolRules) -> None:
        now = datetime.now(timezone.utc).isoformat()
        conn.execute(
            """
            INSERT INTO pools (
                id, season, name, strikes_allowed, tie_rule, deadline_mode,
                fixed_local_time, start_week, include_playoffs, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                season = excluded.season,
                name = excluded.name,
                strikes_allowed = excluded.strikes_allowed,
                tie_rule = excluded.tie_rule,
                deadline_mode = excluded.deadline_mode,
                fixed_local_time = excluded.fixed_local_time,
                start_week = excluded.start_week,
                include_playoffs = excluded.include_playoffs,
                updated_at = excluded.updated_at
            """,
            (
                rules.pool_id,
                rules.season,
                rules.name,
                rules.strikes_allowed,
                rules.tie_rule.value,
                rules.deadline_mode.value,
                rules.fixed_local_time,
                rules.start_week,
                int(rules.include_playoffs),
                now,
                now,
            ),
        )

    def get_pool(self, pool_id: str) -> Optional[PoolRules]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM pools WHERE id = ?", (pool_id,)).fetchone()
            if row is None:
                return None
            return self._row_to_pool(row)

    def save_member(self, pool_id: str, member: Member) -> Member:
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO members (pool_id, member_id, display_name, avatar_url, joined_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(pool_id, member_id) DO UPDATE SET
                    display_name = excluded.display_name,
                    avatar_url = excluded.avatar_url
                """,
                (pool_id, member.member_id, member.display_name, member.avatar_url, now),
            )
            conn.commit()
        return member

    def list_members(self, pool_id: str) -> List[Member]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM members WHERE pool_id = ? ORDER BY member_id",
                (pool_id,),
            ).fetchall()
        return [
            Member(
                member_id=row["member_id"],
                display_name=row["display_name"] or "",
                avatar_url=row["avatar_url"],
            )
            for row in rows
        ]

    # -- schedule and scores ----------------------------------------------

    def upsert_games(self, games: Iterable[Game]) -> int:
        """Insert or overwrite games by key; late score corrections replace the old row."""

        now = datetime.now(timezone.utc).isoformat()
        payload = [
            (
                game.season,
                game.week,
                game.home_team,
                game.away_team,
                game.kickoff.isoformat(),
                game.status.value,
                game.winner,
                now,
            )
            for game in games
        ]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO games (
                    season, week, home_team, away_team, kickoff, status, winner, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(season, week, home_team, away_team) DO UPDATE SET
                    kickoff = excluded.kickoff,
                    status = excluded.status,
                    winner = excluded.winner,
                    updated_at = excluded.updated_at
                """,
                payload,
            )
            conn.commit()
        return len(payload)

    def list_games(
        self,
        season: int,
        *,
        week: int | None = None,
        through_week: int | None = None,
    ) -> List[Game]:
        query = "SELECT * FROM games WHERE season = ?"
        params: list[int] = [season]
        if week is not None:
            query += " AND week = ?"
            params.append(week)
        if through_week is not None:
            query += " AND week <= ?"
            params.append(through_week)
        query += " ORDER BY week, kickoff, home_team"
        with self._connect() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_game(row) for row in rows]

    def upsert_week_anchors(self, anchors: Iterable[WeekAnchor]) -> int:
        payload = [(a.season, a.week, a.anchor_date.isoformat()) for a in anchors]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO week_anchors (season, week, anchor_date) VALUES (?, ?, ?)
                ON CONFLICT(season, week) DO UPDATE SET anchor_date = excluded.anchor_date
                """,
                payload,
            )
            conn.commit()
        return len(payload)

    def get_week_anchor(self, season: int, week: int) -> Optional[WeekAnchor]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM week_anchors WHERE season = ? AND week = ?",
                (season, week),
            ).fetchone()
        if row is None:
            return None
        return WeekAnchor(season=row["season"], week=row["week"], anchor_date=date.fromisoformat(row["anchor_date"]))

    def list_week_anchors(self, season: int) -> List[WeekAnchor]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM week_anchors WHERE season = ? ORDER BY week",
                (season,),
            ).fetchall()
        return [
            WeekAnchor(season=row["season"], week=row["week"], anchor_date=date.fromisoformat(row["anchor_date"]))
            for row in rows
        ]

    # -- picks ----------------------------------------------------------------

    def get_pick(self, pool_id: str, member_id: str, week: int) -> Optional[Pick]:
        with self._connect() as conn:
            return self._fetch_pick(conn, pool_id, member_id, week)

    def list_member_picks(self, pool_id: str, member_id: str) -> List[Pick]:
        with self._connect() as conn:
            return self._fetch_member_picks(conn, pool_id, member_id)

    def list_pool_picks(self, pool_id: str, *, through_week: int | None = None) -> List[Pick]:
        query = "SELECT * FROM picks WHERE pool_id = ?"
        params: list[str | int] = [pool_id]
        if through_week is not None:
            query += " AND week <= ?"
            params.append(through_week)
        query += " ORDER BY member_id, week"
        with self._connect() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_pick(row) for row in rows]

    def write_pick(self, *, pool_id: str, member_id: str, week: int, team: str, guard: PickGuard) -> Pick:
        """Conditionally upsert a pick.

        ``guard`` runs inside an immediate (write-locked) transaction with the
        slot's current pick and all of the member's picks in the pool; raising
        from it aborts the write. Concurrent writers to the same database are
        serialized, so whatever the guard checked still holds at commit.
        """

        conn = self._connect(autocommit=True)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                existing = self._fetch_pick(conn, pool_id, member_id, week)
                guard(existing, self._fetch_member_picks(conn, pool_id, member_id))
                now = datetime.now(timezone.utc).isoformat()
                conn.execute(
                    """
                    INSERT INTO picks (pool_id, member_id, week, team, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(pool_id, member_id, week) DO UPDATE SET
                        team = excluded.team,
                        updated_at = excluded.updated_at
                    """,
                    (pool_id, member_id, week, team, now, now),
                )
                stored = self._fetch_pick(conn, pool_id, member_id, week)
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()
        if stored is None:  # pragma: no cover
            raise KeyError(f"Pick {pool_id}/{member_id}/{week} not found after write")
        return stored

    def delete_pick(self, *, pool_id: str, member_id: str, week: int, guard: PickGuard) -> Optional[Pick]:
        """Conditionally delete a pick; returns the removed pick, or None if the slot was empty."""

        conn = self._connect(autocommit=True)
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                existing = self._fetch_pick(conn, pool_id, member_id, week)
                if existing is not None:
                    guard(existing, self._fetch_member_picks(conn, pool_id, member_id))
                    conn.execute(
                        "DELETE FROM picks WHERE pool_id = ? AND member_id = ? AND week = ?",
                        (pool_id, member_id, week),
                    )
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()
        return existing

    def _fetch_pick(self, conn: sqlite3.Connection, pool_id: str, member_id: str, week: int) -> Optional[Pick]:
        row = conn.execute(
            "SELECT * FROM picks WHERE pool_id = ? AND member_id = ? AND week = ?",
            (pool_id, member_id, week),
        ).fetchone()
        return self._row_to_pick(row) if row is not None else None

    def _fetch_member_picks(self, conn: sqlite3.Connection, pool_id: str, member_id: str) -> List[Pick]:
        rows = conn.execute(
            "SELECT * FROM picks WHERE pool_id = ? AND member_id = ? ORDER BY week",
            (pool_id, member_id),
        ).fetchall()
        return [self._row_to_pick(row) for row in rows]

    def _fetch_pool_picks(self, conn: sqlite3.Connection, pool_id: str) -> List[Pick]:
        rows = conn.execute(
            "SELECT * FROM picks WHERE pool_id = ? ORDER BY week, member_id",
            (pool_id,),
        ).fetchall()
        return [self._row_to_pick(row) for row in rows]

    # -- row mapping ------------------------------------------------------------

    def _row_to_pool(self, row: sqlite3.Row) -> PoolRules:
        return PoolRules(
            pool_id=row["id"],
            season=row["season"],
            name=row["name"] or "",
            strikes_allowed=row["strikes_allowed"],
            tie_rule=row["tie_rule"],
            deadline_mode=row["deadline_mode"],
            fixed_local_time=row["fixed_local_time"],
            start_week=row["start_week"],
            include_playoffs=bool(row["include_playoffs"]),
        )

    def _row_to_game(self, row: sqlite3.Row) -> Game:
        return Game(
            season=row["season"],
            week=row["week"],
            home_team=row["home_team"],
            away_team=row["away_team"],
            kickoff=datetime.fromisoformat(row["kickoff"]),
            status=row["status"],
            winner=row["winner"],
        )

    def _row_to_pick(self, row: sqlite3.Row) -> Pick:
        return Pick(
            pool_id=row["pool_id"],
            member_id=row["member_id"],
            week=row["week"],
            team=row["team"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

"""Command-line interface for loading feeds and inspecting a pool."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from pysurvivor.config import settings, team_name
from pysurvivor.engine import LockInfo, Standings, SurvivorError, SurvivorService
from pysurvivor.ingest import FeedReport, load_anchors_file, load_games_file
from pysurvivor.persistence import PoolStore


def _parse_mapping(entries: list[str]) -> dict[str, str]:
    mapping: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid mapping entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        mapping[key.strip()] = value.strip()
    return mapping


def _parse_weeks(raw: str) -> list[int]:
    weeks: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, end = part.split("-", 1)
            weeks.extend(range(int(start), int(end) + 1))
        else:
            weeks.append(int(part))
    return sorted(set(weeks))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Survivor pool pick locks and standings")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help=f"SQLite database path (default {settings.DEFAULT_DB_PATH}, or ${settings.DB_PATH_ENV})",
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    games = sub.add_parser("import-games", help="Load schedule and score rows from CSV or JSON")
    games.add_argument("path", type=Path, help="Path to games feed (.csv or .json)")
    games.add_argument(
        "--column",
        action="append",
        default=[],
        help="Mapping for CSV columns (e.g., kickoff=start_time)",
    )

    anchors = sub.add_parser("import-anchors", help="Load week anchor dates from CSV or JSON")
    anchors.add_argument("path", type=Path, help="Path to week anchors feed (.csv or .json)")
    anchors.add_argument(
        "--column",
        action="append",
        default=[],
        help="Mapping for CSV columns (e.g., anchor_date=sunday)",
    )

    standings = sub.add_parser("standings", help="Print pool standings")
    standings.add_argument("pool_id")
    standings.add_argument("--through-week", type=int, required=True, help="Last week to include")
    standings.add_argument(
        "--history",
        default=None,
        help="Weeks to report strike history for (e.g., 1-5,8)",
    )
    standings.add_argument("--json", action="store_true", help="Emit JSON instead of a table")

    lock = sub.add_parser("lock-info", help="Show the lock deadline for a pool week")
    lock.add_argument("pool_id")
    lock.add_argument("--week", type=int, required=True)
    lock.add_argument("--member", default=None, help="Member whose pick lock should be reported")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def _print_report(kind: str, report: FeedReport) -> None:
    print(f"Loaded {report.loaded_rows}/{report.total_rows} {kind}")
    if report.skipped_rows:
        preview = "; ".join(report.skipped_rows[:5])
        more = len(report.skipped_rows) - 5
        suffix = f", +{more} more" if more > 0 else ""
        print(f"Skipped rows: {preview}{suffix}")


def _print_standings(standings: Standings) -> None:
    print(
        f"Pool {standings.pool_id} through week {standings.through_week}: "
        f"{standings.alive_count} alive, {standings.eliminated_count} eliminated"
    )
    for entry in standings.entries:
        status = "alive" if entry.alive else f"out wk{entry.eliminated_week}"
        pick = entry.week_pick or "-"
        outcome = entry.week_outcome.value if entry.week_outcome is not None else "-"
        print(
            f"  {entry.display_name or entry.member_id:<24} {entry.record:<8} "
            f"strikes={entry.strikes} left={entry.strikes_remaining} {status:<10} {pick} {outcome}"
        )


def _print_lock_info(info: LockInfo) -> None:
    print(f"Pool {info.pool_id} week {info.week} ({info.deadline_mode.value})")
    if info.fixed_lock_at is not None:
        print(f"  fixed deadline {info.fixed_local_time} -> {info.fixed_lock_at.isoformat()}")
    if info.pick is not None:
        state = "committed" if info.locked else "draft"
        print(f"  pick {info.pick.team} ({team_name(info.pick.team)}) is {state}")
    if info.lock_at is not None:
        print(f"  locks at {info.lock_at.isoformat()} ({info.seconds_remaining:.0f}s remaining)")
    for matchup in info.matchups:
        flag = "locked" if matchup.locked else "open"
        print(
            f"  {matchup.game.away_team}@{matchup.game.home_team} "
            f"kickoff {matchup.game.kickoff.isoformat()} lock {matchup.lock_at.isoformat()} {flag}"
        )


def _serve(store: PoolStore, host: str, port: int) -> None:
    import uvicorn

    from pysurvivor.api import create_app

    uvicorn.run(create_app(store), host=host, port=port)


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = PoolStore(args.db or settings.DEFAULT_DB_PATH)

    if args.command == "serve":
        _serve(store, args.host, args.port)
        return

    if args.command == "import-games":
        games, report = load_games_file(args.path, mapping=_parse_mapping(args.column) or None)
        store.upsert_games(games)
        _print_report("games", report)
        return

    if args.command == "import-anchors":
        anchors, report = load_anchors_file(args.path, mapping=_parse_mapping(args.column) or None)
        store.upsert_week_anchors(anchors)
        _print_report("week anchors", report)
        return

    service = SurvivorService(store)
    try:
        if args.command == "standings":
            result = service.get_standings(args.pool_id, args.through_week)
            history = (
                service.get_standings_history(args.pool_id, _parse_weeks(args.history))
                if args.history
                else {}
            )
            if args.json:
                payload = result.to_dict()
                if history:
                    payload["history"] = {
                        str(week): {entry.member_id: entry.strikes for entry in snapshot.entries}
                        for week, snapshot in history.items()
                    }
                print(json.dumps(payload, indent=2))
            else:
                _print_standings(result)
                for week, snapshot in history.items():
                    strikes = ", ".join(f"{entry.member_id}={entry.strikes}" for entry in snapshot.entries)
                    print(f"  week {week} strikes: {strikes}")
        elif args.command == "lock-info":
            _print_lock_info(service.get_lock_info(args.pool_id, args.week, args.member))
    except SurvivorError as exc:
        raise SystemExit(f"{exc.code}: {exc}") from exc


if __name__ == "__main__":
    main()

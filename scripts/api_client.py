"""Lightweight REST client for the pysurvivor API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def _load_records(path: Path) -> list[dict]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid feed JSON in {path}: {exc}") from exc
    if isinstance(payload, dict):
        payload = payload.get("records") or payload.get("games") or payload.get("weeks") or []
    return payload


def _show(resp: httpx.Response) -> None:
    if resp.status_code >= 400:
        try:
            detail = resp.json().get("detail")
        except ValueError:
            detail = resp.text
        raise SystemExit(f"{resp.status_code}: {json.dumps(detail)}")
    print(json.dumps(resp.json(), indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the pysurvivor REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--pool", help="Pool id for pick, lock and standings requests")
    parser.add_argument("--member", help="Member id for pick requests")
    parser.add_argument("--week", type=int, help="Week for pick and lock requests")
    parser.add_argument("--games", type=Path, help="Upload a games JSON feed")
    parser.add_argument("--anchors", type=Path, help="Upload a week anchors JSON feed")
    parser.add_argument("--pick", metavar="TEAM", help="Submit TEAM as the member's pick for --week")
    parser.add_argument("--clear", action="store_true", help="Clear the member's pick for --week")
    parser.add_argument("--list-picks", action="store_true", help="List the member's picks")
    parser.add_argument("--lock-info", action="store_true", help="Show lock info for --week")
    parser.add_argument("--standings", type=int, metavar="WEEK", help="Print standings through WEEK")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        if args.games:
            _show(client.post("/feed/games", json={"records": _load_records(args.games)}))
        if args.anchors:
            _show(client.post("/feed/week-anchors", json={"records": _load_records(args.anchors)}))

        if not args.pool:
            return
        picks_url = f"/pools/{args.pool}/members/{args.member}/picks"
        if args.pick or args.clear:
            if not args.member or args.week is None:
                raise SystemExit("--member and --week are required to submit or clear a pick")
            if args.pick:
                _show(client.put(f"{picks_url}/{args.week}", json={"team": args.pick}))
            else:
                _show(client.delete(f"{picks_url}/{args.week}"))
        if args.list_picks:
            if not args.member:
                raise SystemExit("--member is required to list picks")
            _show(client.get(picks_url))
        if args.lock_info:
            if args.week is None:
                raise SystemExit("--week is required for lock info")
            params = {"week": args.week}
            if args.member:
                params["member_id"] = args.member
            _show(client.get(f"/pools/{args.pool}/lock", params=params))
        if args.standings is not None:
            _show(client.get(f"/pools/{args.pool}/standings", params={"through_week": args.standings}))


if __name__ == "__main__":
    main()

import json

import anyio
import pytest
from httpx import ASGITransport, AsyncClient

from pysurvivor.api import create_app
from pysurvivor.engine import StandingsPoller
from tests.support import utc


@pytest.fixture
async def client(seeded_store, clock):
    app = create_app(seeded_store, clock=clock)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        async_client.clock = clock
        yield async_client


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.anyio
async def test_save_pool_accepts_fixed_alias(client: AsyncClient):
    resp = await client.put(
        "/pools/office",
        json={"season": 2024, "name": "Office", "deadline_mode": "fixed", "fixed_local_time": "1:00 pm"},
    )
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["deadline_mode"] == "hybrid"
    assert payload["tie_rule"] == "push"

    resp = await client.get("/pools/office")
    assert resp.status_code == 200
    assert resp.json()["fixed_local_time"] == "1:00 pm"


@pytest.mark.anyio
async def test_save_pool_rejects_bad_tie_rule(client: AsyncClient):
    resp = await client.put("/pools/office", json={"season": 2024, "tie_rule": "coinflip"})
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_member_requires_pool(client: AsyncClient):
    resp = await client.put("/pools/missing/members/alice", json={"display_name": "Alice"})
    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "pool_not_found"


@pytest.mark.anyio
async def test_pick_lifecycle(client: AsyncClient):
    resp = await client.put("/pools/rolling/members/alice/picks/9", json={"team": "Texans"})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["team"] == "HOU"
    assert payload["team_name"] == "Houston Texans"
    assert payload["committed"] is False

    resp = await client.get("/pools/rolling/members/alice/picks")
    assert resp.json()["used_teams"] == ["HOU"]

    client.clock.now = utc(2024, 11, 1, 1, 0)
    resp = await client.put("/pools/rolling/members/alice/picks/9", json={"team": "KC"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "lock_expired"

    resp = await client.delete("/pools/rolling/members/alice/picks/9")
    assert resp.status_code == 409

    resp = await client.get("/pools/rolling/members/alice/picks")
    assert resp.json()["picks"][0]["committed"] is True


@pytest.mark.anyio
async def test_clear_draft(client: AsyncClient):
    await client.put("/pools/rolling/members/bob/picks/9", json={"team": "KC"})
    resp = await client.delete("/pools/rolling/members/bob/picks/9")
    assert resp.status_code == 200
    assert resp.json()["cleared"] is True

    resp = await client.delete("/pools/rolling/members/bob/picks")
    assert resp.json() == {"cleared": [], "skipped": []}


@pytest.mark.anyio
async def test_pick_errors_map_to_status_codes(client: AsyncClient):
    await client.post(
        "/feed/games",
        json={
            "records": [
                {
                    "season": 2024,
                    "week": 10,
                    "homeTeamCode": "KC",
                    "awayTeamCode": "DEN",
                    "kickoffInstant": "2024-11-10T18:00:00Z",
                }
            ]
        },
    )
    await client.put("/pools/rolling/members/alice/picks/9", json={"team": "KC"})

    resp = await client.put("/pools/rolling/members/alice/picks/10", json={"team": "KC"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "team_already_used"

    resp = await client.put("/pools/rolling/members/alice/picks/9", json={"team": "DAL"})
    assert resp.status_code == 404
    assert resp.json()["detail"]["error"] == "schedule_data_missing"

    resp = await client.put("/pools/rolling/members/alice/picks/20", json={"team": "KC"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "week_out_of_range"

    resp = await client.put("/pools/missing/members/alice/picks/9", json={"team": "KC"})
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_lock_info_endpoint(client: AsyncClient):
    resp = await client.get("/pools/hybrid/lock", params={"week": 9})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["deadline_mode"] == "hybrid"
    assert payload["fixed_local_time"] == "13:00"
    assert payload["lock_at"].startswith("2024-11-03T18:00:00")
    assert payload["locked"] is False
    assert len(payload["matchups"]) == 4
    assert payload["matchups"][0]["home_team"] == "NYJ"


@pytest.mark.anyio
async def test_feed_upload_reports_skipped_rows(client: AsyncClient):
    resp = await client.post(
        "/feed/games",
        json={
            "records": [
                {
                    "season": 2024,
                    "week": 9,
                    "home_team": "NYJ",
                    "away_team": "HOU",
                    "kickoff": "2024-11-01T00:15:00Z",
                    "status": "final",
                    "winner": "home",
                },
                {"season": 2024, "week": 9, "home_team": "BUF"},
            ]
        },
    )
    assert resp.status_code == 200
    report = resp.json()
    assert report["total_rows"] == 2
    assert report["loaded_rows"] == 1
    assert len(report["skipped_rows"]) == 1

    resp = await client.post(
        "/feed/week-anchors",
        json={"records": [{"season": 2024, "week": 10, "anchorDate": "2024-11-10"}]},
    )
    assert resp.json()["loaded_rows"] == 1


@pytest.mark.anyio
async def test_standings_endpoint(client: AsyncClient):
    await client.put("/pools/rolling/members/alice/picks/9", json={"team": "HOU"})
    await client.put("/pools/rolling/members/bob/picks/9", json={"team": "NYJ"})
    await client.post(
        "/feed/games",
        json={
            "records": [
                {
                    "season": 2024,
                    "week": 9,
                    "home_team": "NYJ",
                    "away_team": "HOU",
                    "kickoff": "2024-11-01T00:15:00Z",
                    "status": "final",
                    "winner": "NYJ",
                }
            ]
        },
    )
    client.clock.now = utc(2024, 11, 2, 12, 0)

    resp = await client.get("/pools/rolling/standings", params={"through_week": 9})
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["alive_count"] == 1
    assert payload["eliminated_count"] == 1
    first, second = payload["entries"]
    assert first["member_id"] == "bob"
    assert first["record"] == "1-0"
    assert first["week_outcome"] == "win"
    assert second["member_id"] == "alice"
    assert second["eliminated_week"] == 9


@pytest.mark.anyio
async def test_standings_unknown_pool(client: AsyncClient):
    resp = await client.get("/pools/missing/standings", params={"through_week": 1})
    assert resp.status_code == 404



@pytest.mark.anyio
async def test_pool_rules_frozen_after_first_lock(client: AsyncClient):
    resp = await client.put("/pools/hybrid/members/alice/picks/9", json={"team": "ARI"})
    assert resp.status_code == 200

    client.clock.now = utc(2024, 11, 3, 19, 0)
    resp = await client.put("/pools/hybrid", json={"season": 2024, "name": "Hybrid", "deadline_mode": "rolling"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "rules_locked"

    resp = await client.put("/pools/hybrid/members/alice/picks/9", json={"team": "KC"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "lock_expired"

    resp = await client.put(
        "/pools/hybrid",
        json={"season": 2024, "name": "Renamed", "deadline_mode": "hybrid", "fixed_local_time": "13:00"},
    )
    assert resp.status_code == 200
    resp = await client.get("/pools/hybrid")
    assert resp.json()["name"] == "Renamed"
    assert resp.json()["deadline_mode"] == "hybrid"


@pytest.mark.anyio
async def test_standings_stream_unknown_pool(client: AsyncClient):
    resp = await client.get("/pools/missing/standings/stream", params={"through_week": 9})
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_standings_stream_sends_events_until_disconnect(seeded_store, clock, monkeypatch):
    pollers: list[StandingsPoller] = []

    def recording_poller(*args, **kwargs) -> StandingsPoller:
        poller = StandingsPoller(*args, **kwargs)
        pollers.append(poller)
        return poller

    monkeypatch.setattr("pysurvivor.api.StandingsPoller", recording_poller)
    app = create_app(seeded_store, clock=clock)

    # ASGITransport buffers the full body and this stream never ends, so call
    # the app directly and disconnect after the first event.
    disconnected = anyio.Event()
    request_delivered = False
    messages: list[dict] = []

    async def receive() -> dict:
        nonlocal request_delivered
        if not request_delivered:
            request_delivered = True
            return {"type": "http.request", "body": b"", "more_body": False}
        await disconnected.wait()
        return {"type": "http.disconnect"}

    async def send(message: dict) -> None:
        messages.append(message)
        if message["type"] == "http.response.body" and message.get("body", b"").startswith(b"data:"):
            disconnected.set()

    path = "/pools/rolling/standings/stream"
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"through_week=9&interval=1",
        "headers": [(b"host", b"testserver")],
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
    }
    with anyio.fail_after(5):
        await app(scope, receive, send)

    start = messages[0]
    assert start["type"] == "http.response.start"
    assert start["status"] == 200
    assert (b"content-type", b"text/event-stream; charset=utf-8") in start["headers"]

    event = next(m["body"] for m in messages if m.get("body", b"").startswith(b"data:"))
    assert event.endswith(b"\n\n")
    payload = json.loads(event[len(b"data:"):])
    assert payload["pool_id"] == "rolling"
    assert payload["through_week"] == 9
    assert payload["alive_count"] == 2

    assert len(pollers) == 1
    assert pollers[0].stopped

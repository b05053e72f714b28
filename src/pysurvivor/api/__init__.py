"""REST API for the survivor pool engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from pysurvivor.api.schemas import (
    ClearAllResponse,
    FeedReportResponse,
    FeedUploadRequest,
    LockInfoResponse,
    MatchupLockResponse,
    MemberPicksResponse,
    MemberRequest,
    MemberResponse,
    MemberStandingResponse,
    PickRequest,
    PickResponse,
    PoolRulesRequest,
    PoolRulesResponse,
    StandingsResponse,
)
from pysurvivor.config import settings, team_name
from pysurvivor.engine import (
    LockExpired,
    LockInfo,
    PickState,
    PoolNotFound,
    RulesLocked,
    ScheduleDataMissing,
    Standings,
    StandingsPoller,
    SurvivorError,
    SurvivorService,
    TeamAlreadyUsed,
    WeekOutOfRange,
)
from pysurvivor.engine.clock import Clock
from pysurvivor.ingest import FeedReport, records_to_anchors, records_to_games
from pysurvivor.models import Member, Pick, PoolRules
from pysurvivor.persistence import PoolStore


_ERROR_STATUS: list[tuple[type[SurvivorError], int]] = [
    (LockExpired, 409),
    (TeamAlreadyUsed, 409),
    (RulesLocked, 409),
    (WeekOutOfRange, 400),
    (ScheduleDataMissing, 404),
    (PoolNotFound, 404),
]


def _http_error(exc: SurvivorError) -> HTTPException:
    status = next((code for kind, code in _ERROR_STATUS if isinstance(exc, kind)), 400)
    return HTTPException(status_code=status, detail={"error": exc.code, "message": str(exc)})


def _pool_response(rules: PoolRules) -> PoolRulesResponse:
    return PoolRulesResponse(
        pool_id=rules.pool_id,
        season=rules.season,
        name=rules.name,
        strikes_allowed=rules.strikes_allowed,
        tie_rule=rules.tie_rule.value,
        deadline_mode=rules.deadline_mode.value,
        fixed_local_time=rules.fixed_local_time,
        start_week=rules.start_week,
        include_playoffs=rules.include_playoffs,
    )


def _pick_response(pick: Pick, *, lock_at=None, committed: bool = False) -> PickResponse:
    return PickResponse(
        pool_id=pick.pool_id,
        member_id=pick.member_id,
        week=pick.week,
        team=pick.team,
        team_name=team_name(pick.team),
        lock_at=lock_at,
        committed=committed,
        updated_at=pick.updated_at,
    )


def _state_response(state: PickState) -> PickResponse:
    return _pick_response(state.pick, lock_at=state.lock_at, committed=state.committed)


def _lock_info_response(info: LockInfo) -> LockInfoResponse:
    return LockInfoResponse(
        pool_id=info.pool_id,
        week=info.week,
        deadline_mode=info.deadline_mode.value,
        checked_at=info.checked_at,
        fixed_local_time=info.fixed_local_time,
        fixed_lock_at=info.fixed_lock_at,
        lock_at=info.lock_at,
        locked=info.locked,
        seconds_remaining=info.seconds_remaining,
        pick=(
            _pick_response(info.pick, lock_at=info.lock_at, committed=info.locked)
            if info.pick is not None
            else None
        ),
        matchups=[
            MatchupLockResponse(
                home_team=matchup.game.home_team,
                away_team=matchup.game.away_team,
                kickoff=matchup.game.kickoff,
                status=matchup.game.status.value,
                lock_at=matchup.lock_at,
                locked=matchup.locked,
            )
            for matchup in info.matchups
        ],
    )


def _standings_response(standings: Standings) -> StandingsResponse:
    return StandingsResponse(
        pool_id=standings.pool_id,
        through_week=standings.through_week,
        strikes_allowed=standings.strikes_allowed,
        alive_count=standings.alive_count,
        eliminated_count=standings.eliminated_count,
        entries=[
            MemberStandingResponse(
                member_id=entry.member_id,
                display_name=entry.display_name,
                avatar_url=entry.avatar_url,
                wins=entry.wins,
                losses=entry.losses,
                pushes=entry.pushes,
                record=entry.record,
                strikes=entry.strikes,
                strikes_remaining=entry.strikes_remaining,
                alive=entry.alive,
                eliminated_week=entry.eliminated_week,
                week_pick=entry.week_pick,
                week_outcome=entry.week_outcome.value if entry.week_outcome is not None else None,
            )
            for entry in standings.entries
        ],
    )


def _report_response(report: FeedReport) -> FeedReportResponse:
    return FeedReportResponse(
        total_rows=report.total_rows,
        loaded_rows=report.loaded_rows,
        skipped_rows=report.skipped_rows,
    )


def _validation_detail(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


def create_app(store: PoolStore | None = None, *, clock: Clock | None = None) -> FastAPI:
    app = FastAPI(title="pysurvivor engine")
    store = store or PoolStore(Path(settings.DEFAULT_DB_PATH))
    service = SurvivorService(store, clock=clock)
    app.state.pool_store = store
    app.state.service = service

    def _fetch_pool_or_404(pool_id: str) -> PoolRules:
        try:
            return service.get_pool(pool_id)
        except PoolNotFound as exc:
            raise _http_error(exc) from exc

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.put("/pools/{pool_id}", response_model=PoolRulesResponse)
    async def save_pool(pool_id: str, payload: PoolRulesRequest) -> PoolRulesResponse:
        try:
            rules = PoolRules(pool_id=pool_id, **payload.model_dump())
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=_validation_detail(exc)) from exc
        try:
            service.save_pool(rules)
        except SurvivorError as exc:
            raise _http_error(exc) from exc
        return _pool_response(rules)

    @app.get("/pools/{pool_id}", response_model=PoolRulesResponse)
    async def get_pool(pool_id: str) -> PoolRulesResponse:
        return _pool_response(_fetch_pool_or_404(pool_id))

    @app.put("/pools/{pool_id}/members/{member_id}", response_model=MemberResponse)
    async def save_member(pool_id: str, member_id: str, payload: MemberRequest) -> MemberResponse:
        _fetch_pool_or_404(pool_id)
        member = Member(member_id=member_id, display_name=payload.display_name, avatar_url=payload.avatar_url)
        store.save_member(pool_id, member)
        return MemberResponse(
            pool_id=pool_id,
            member_id=member.member_id,
            display_name=member.display_name,
            avatar_url=member.avatar_url,
        )

    @app.post("/feed/games", response_model=FeedReportResponse)
    async def upload_games(payload: FeedUploadRequest) -> FeedReportResponse:
        games, report = records_to_games(payload.records)
        store.upsert_games(games)
        return _report_response(report)

    @app.post("/feed/week-anchors", response_model=FeedReportResponse)
    async def upload_week_anchors(payload: FeedUploadRequest) -> FeedReportResponse:
        anchors, report = records_to_anchors(payload.records)
        store.upsert_week_anchors(anchors)
        return _report_response(report)

    @app.get("/pools/{pool_id}/lock", response_model=LockInfoResponse)
    async def lock_info(
        pool_id: str,
        week: int = Query(..., ge=1),
        member_id: str | None = Query(None),
    ) -> LockInfoResponse:
        try:
            info = service.get_lock_info(pool_id, week, member_id)
        except SurvivorError as exc:
            raise _http_error(exc) from exc
        return _lock_info_response(info)

    @app.get("/pools/{pool_id}/members/{member_id}/picks", response_model=MemberPicksResponse)
    async def list_picks(pool_id: str, member_id: str) -> MemberPicksResponse:
        try:
            states = service.list_picks(pool_id, member_id)
        except SurvivorError as exc:
            raise _http_error(exc) from exc
        return MemberPicksResponse(
            pool_id=pool_id,
            member_id=member_id,
            picks=[_state_response(state) for state in states],
            used_teams=[state.pick.team for state in states],
        )

    @app.put("/pools/{pool_id}/members/{member_id}/picks/{week}", response_model=PickResponse)
    async def submit_pick(pool_id: str, member_id: str, week: int, payload: PickRequest) -> PickResponse:
        try:
            state = service.submit_pick(pool_id, member_id, week, payload.team)
        except SurvivorError as exc:
            raise _http_error(exc) from exc
        return _state_response(state)

    @app.delete("/pools/{pool_id}/members/{member_id}/picks/{week}")
    async def clear_pick(pool_id: str, member_id: str, week: int) -> dict[str, Any]:
        try:
            removed = service.clear_pick(pool_id, member_id, week)
        except SurvivorError as exc:
            raise _http_error(exc) from exc
        return {
            "pool_id": pool_id,
            "member_id": member_id,
            "week": week,
            "cleared": removed is not None,
        }

    @app.delete("/pools/{pool_id}/members/{member_id}/picks", response_model=ClearAllResponse)
    async def clear_all_picks(pool_id: str, member_id: str) -> ClearAllResponse:
        try:
            result = service.clear_all_picks(pool_id, member_id)
        except SurvivorError as exc:
            raise _http_error(exc) from exc
        return ClearAllResponse(cleared=result.cleared, skipped=result.skipped)

    @app.get("/pools/{pool_id}/standings", response_model=StandingsResponse)
    async def standings(pool_id: str, through_week: int = Query(..., ge=1)) -> StandingsResponse:
        try:
            result = service.get_standings(pool_id, through_week)
        except SurvivorError as exc:
            raise _http_error(exc) from exc
        return _standings_response(result)

    @app.get("/pools/{pool_id}/standings/stream")
    async def stream_standings(
        pool_id: str,
        request: Request,
        through_week: int = Query(..., ge=1),
        interval: float | None = Query(None, ge=1.0),
    ) -> StreamingResponse:
        _fetch_pool_or_404(pool_id)
        poller = StandingsPoller(lambda: service.get_standings(pool_id, through_week), interval=interval)

        async def events():
            try:
                async for snapshot in poller.updates():
                    if await request.is_disconnected():
                        break
                    payload = _standings_response(snapshot).model_dump(mode="json")
                    yield f"data: {json.dumps(payload)}\n\n"
            finally:
                poller.stop()

        return StreamingResponse(events(), media_type="text/event-stream")

    return app

from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import FastAPI, HTTPException, Path

from scorekeeper.config import default_settings, settings
from scorekeeper.fan_catalog import get_fan_by_id, get_fan_catalog, get_fans_by_category
from scorekeeper.fan_resolver import resolve_fan_selection, validate_fan_combination
from scorekeeper.game_state import ScoreKeeper
from scorekeeper.log_config import configure_logging
from scorekeeper.persistence import SnapshotError
from scorekeeper.repository import InMemorySessionRepository, StoredSession
from scorekeeper.rulesets import RULE_SETS, get_available_rule_sets
from scorekeeper.schemas import (
    FanCategory,
    FanResolveRequest,
    FanResolveResponse,
    FanType,
    FanValidateRequest,
    FanValidateResponse,
    InputMode,
    PlayerNameUpdate,
    RuleSetInfo,
    RuleVariant,
    ScoreRequest,
    ScoreResult,
    SessionResponse,
    SessionSnapshot,
    SettingsUpdate,
    StartGameRequest,
    WinRequest,
    WinResponse,
)
from scorekeeper.score_calculator import calculate_score
from scorekeeper.validators import require_game, validate_declaration, validate_win_request

configure_logging(settings.log_level)
logger = structlog.get_logger()

app = FastAPI(title="Hong Kong Mahjong Scorekeeper", version="0.1.0")
repo = InMemorySessionRepository(ttl_hours=settings.session_ttl_hours, state_dir=settings.state_dir)


def _session_response(item: StoredSession) -> SessionResponse:
    return SessionResponse(
        session_id=str(item.id),
        created_at=item.created_at,
        expires_at=item.expires_at,
        snapshot=item.keeper.snapshot,
    )


def _stored_session_error(exc: SnapshotError) -> HTTPException:
    logger.error("stored session unreadable", error=str(exc))
    return HTTPException(status_code=500, detail=f"Stored session is unreadable: {exc}")


def _update(session_id: UUID, operation):
    try:
        updated = repo.update(session_id, operation)
    except SnapshotError as exc:
        raise _stored_session_error(exc) from exc
    if updated is None:
        raise HTTPException(status_code=404, detail="session not found or expired")
    return updated


@app.get("/")
def root() -> dict[str, str]:
    return {
        "message": "Hong Kong Mahjong Scorekeeper API",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/v1/fans", response_model=list[FanType])
def list_fans(variant: RuleVariant | None = None, category: FanCategory | None = None) -> list[FanType]:
    if category is not None:
        return get_fans_by_category(category, variant or RuleVariant.standard)
    return get_fan_catalog(variant)


@app.get("/api/v1/fans/{fan_id}", response_model=FanType)
def get_fan(fan_id: str) -> FanType:
    fan = get_fan_by_id(fan_id)
    if fan is None:
        raise HTTPException(status_code=404, detail=f"Unknown fan type: {fan_id}")
    return fan


@app.post("/api/v1/fans/resolve", response_model=FanResolveResponse)
def resolve_fans(req: FanResolveRequest) -> FanResolveResponse:
    resolution = resolve_fan_selection(req.fan_ids, req.variant)
    return FanResolveResponse(
        total_fan=resolution.total_fan,
        surviving_fans=resolution.surviving_fans,
        suppressed_ids=resolution.suppressed_ids,
        description=resolution.description,
    )


@app.post("/api/v1/fans/validate", response_model=FanValidateResponse)
def validate_fans(req: FanValidateRequest) -> FanValidateResponse:
    validation = validate_fan_combination(req.fan_ids)
    return FanValidateResponse(valid=validation.valid, conflicts=validation.conflicts)


@app.get("/api/v1/rulesets", response_model=list[RuleSetInfo])
def list_rule_sets(implemented_only: bool = False) -> list[RuleSetInfo]:
    rule_sets = get_available_rule_sets() if implemented_only else list(RULE_SETS.values())
    return [
        RuleSetInfo(
            id=rule_set.id,
            name=rule_set.name,
            implemented=rule_set.implemented,
            base_score=rule_set.default_config.base_score,
            min_fan=rule_set.default_config.min_fan,
            max_fan=rule_set.default_config.max_fan,
            starting_score=rule_set.default_config.starting_score,
        )
        for rule_set in rule_sets
    ]


@app.post("/api/v1/score", response_model=ScoreResult)
def score(req: ScoreRequest) -> ScoreResult:
    validate_declaration(req.declaration)
    return calculate_score(req.declaration, req.config)


@app.post("/api/v1/games", response_model=SessionResponse)
def create_game(req: StartGameRequest) -> SessionResponse:
    item = repo.create(SessionSnapshot(settings=default_settings()))
    item, _ = _update(item.id, lambda keeper: keeper.start_game(**req.model_dump(exclude_none=True)))
    logger.info("session created", session_id=str(item.id))
    return _session_response(item)


@app.get("/api/v1/games/{session_id}", response_model=SessionResponse)
def get_game(session_id: UUID) -> SessionResponse:
    try:
        item = repo.get(session_id)
    except SnapshotError as exc:
        raise _stored_session_error(exc) from exc
    if item is None:
        raise HTTPException(status_code=404, detail="session not found or expired")
    return _session_response(item)


def _score_win(keeper: ScoreKeeper, req: WinRequest) -> ScoreResult:
    require_game(keeper)
    result = keeper.preview_score(
        winner_id=req.winner_id,
        win_type=req.win_type,
        loser_id=req.loser_id,
        fan_count=req.fan_count if req.mode == InputMode.pro else None,
        selected_fan_ids=req.selected_fan_ids if req.mode == InputMode.normal else None,
        description=req.description,
    )
    if result is None:  # pragma: no cover
        raise HTTPException(status_code=422, detail="Win request has no fan information")
    return result


@app.post("/api/v1/games/{session_id}/preview", response_model=ScoreResult)
def preview_win(session_id: UUID, req: WinRequest) -> ScoreResult:
    validate_win_request(req)
    _, result = _update(session_id, lambda keeper: _score_win(keeper, req))
    return result


@app.post("/api/v1/games/{session_id}/wins", response_model=WinResponse)
def record_win(session_id: UUID, req: WinRequest) -> WinResponse:
    validate_win_request(req)

    def apply(keeper: ScoreKeeper) -> tuple[ScoreResult, bool]:
        result = _score_win(keeper, req)
        if result.error is not None:
            return result, False
        keeper.record_win(result)
        return result, True

    item, (result, applied) = _update(session_id, apply)
    return WinResponse(applied=applied, result=result, game=item.keeper.game)


@app.post("/api/v1/games/{session_id}/draws", response_model=SessionResponse)
def record_draw(session_id: UUID) -> SessionResponse:
    def apply(keeper: ScoreKeeper) -> None:
        require_game(keeper)
        keeper.record_draw()

    item, _ = _update(session_id, apply)
    return _session_response(item)


@app.post("/api/v1/games/{session_id}/undo", response_model=SessionResponse)
def undo(session_id: UUID) -> SessionResponse:
    def apply(keeper: ScoreKeeper) -> None:
        game = require_game(keeper)
        if not game.history:
            raise HTTPException(status_code=409, detail="Nothing to undo")
        keeper.undo_last_round()

    item, _ = _update(session_id, apply)
    return _session_response(item)


@app.post("/api/v1/games/{session_id}/reset", response_model=SessionResponse)
def reset(session_id: UUID) -> SessionResponse:
    item, _ = _update(session_id, lambda keeper: keeper.reset_game())
    return _session_response(item)


@app.post("/api/v1/games/{session_id}/end", response_model=SessionResponse)
def end(session_id: UUID) -> SessionResponse:
    item, _ = _update(session_id, lambda keeper: keeper.end_game())
    return _session_response(item)


@app.patch("/api/v1/games/{session_id}/players/{seat_index}", response_model=SessionResponse)
def rename_player(session_id: UUID, req: PlayerNameUpdate, seat_index: int = Path(ge=0, le=3)) -> SessionResponse:
    item, _ = _update(session_id, lambda keeper: keeper.update_player_name(seat_index, req.name))
    return _session_response(item)


@app.patch("/api/v1/games/{session_id}/settings", response_model=SessionResponse)
def update_settings(session_id: UUID, req: SettingsUpdate) -> SessionResponse:
    def apply(keeper: ScoreKeeper) -> None:
        changes = req.model_dump(exclude_none=True, exclude={"preferred_input_mode"})
        if changes:
            keeper.update_settings(**changes)
        if req.preferred_input_mode is not None:
            keeper.set_preferred_input_mode(req.preferred_input_mode)

    item, _ = _update(session_id, apply)
    return _session_response(item)

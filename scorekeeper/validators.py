from fastapi import HTTPException

from scorekeeper.game_state import ScoreKeeper
from scorekeeper.schemas import Declaration, GameState, InputMode, Player, WinRequest


def validate_roster(players: list[Player]) -> None:
    if len(players) != 4:
        raise HTTPException(status_code=422, detail=f"Roster must contain exactly 4 players, got {len(players)}")
    ids = [p.id for p in players]
    if len(set(ids)) != len(ids):
        raise HTTPException(status_code=422, detail="Player ids must be unique")
    seats = sorted(p.seat_index for p in players)
    if seats != [0, 1, 2, 3]:
        raise HTTPException(status_code=422, detail="Players must occupy seats 0-3 exactly once")


def validate_declaration(declaration: Declaration) -> None:
    validate_roster(declaration.players)
    if all(p.id != declaration.dealer_id for p in declaration.players):
        raise HTTPException(status_code=422, detail=f"Dealer is not in the roster: {declaration.dealer_id}")


def validate_win_request(req: WinRequest) -> None:
    if req.mode == InputMode.pro and req.fan_count is None:
        raise HTTPException(status_code=422, detail="fan_count is required in pro mode")
    if req.mode == InputMode.normal and req.selected_fan_ids is None:
        raise HTTPException(status_code=422, detail="selected_fan_ids is required in normal mode")
    if req.mode == InputMode.pro and req.selected_fan_ids:
        raise HTTPException(status_code=422, detail="selected_fan_ids cannot be combined with pro mode")


def require_game(keeper: ScoreKeeper) -> GameState:
    if keeper.game is None:
        raise HTTPException(status_code=409, detail="No game in progress")
    return keeper.game

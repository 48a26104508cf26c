from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import structlog

from scorekeeper.rulesets import get_rule_set
from scorekeeper.schemas import (
    SEAT_COLORS,
    Declaration,
    DirectDeclaration,
    DrawOutcome,
    GameSettings,
    GameState,
    InputMode,
    PatternDeclaration,
    Player,
    Round,
    ScoreResult,
    SessionSnapshot,
    Wind,
    WinOutcome,
    WinType,
    next_wind,
)

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex[:12]


def create_players(names: list[str], starting_score: int) -> list[Player]:
    return [
        Player(id=_new_id(), name=name, score=starting_score, seat_index=seat, color=SEAT_COLORS[seat])
        for seat, name in enumerate(names)
    ]


def new_game(settings: GameSettings) -> GameState:
    now = _utcnow()
    return GameState(
        id=_new_id(),
        rule_set_id=settings.rule_set_id,
        players=create_players(settings.player_names, settings.scoring_config.starting_score),
        dealer_seat_index=0,
        round_wind=Wind.east,
        round_number=1,
        dealer_continue_count=0,
        history=[],
        created_at=now,
        updated_at=now,
    )


def next_dealer(seat_index: int, wind: Wind) -> tuple[int, Wind]:
    """Pass the deal to the next seat; the wind moves on when the deal returns to seat 0."""
    seat = (seat_index + 1) % 4
    if seat == 0:
        wind = next_wind(wind)
    return seat, wind


def _snapshot_round(state: GameState, outcome: WinOutcome | DrawOutcome) -> Round:
    return Round(
        id=_new_id(),
        round_number=state.round_number,
        round_wind=state.round_wind,
        dealer_seat_index=state.dealer_seat_index,
        dealer_continue_count=state.dealer_continue_count,
        outcome=outcome,
        timestamp=_utcnow(),
    )


def _apply_deltas(players: list[Player], deltas: dict[str, int], sign: int = 1) -> list[Player]:
    return [p.model_copy(update={"score": p.score + sign * deltas.get(p.id, 0)}) for p in players]


def record_win(state: GameState, result: ScoreResult) -> GameState:
    if result.error is not None:
        raise ValueError(f"Cannot record a rejected score result: {result.error}")

    deltas = {change.player_id: change.delta for change in result.changes}
    round_ = _snapshot_round(state, WinOutcome(result=result))

    if result.is_dealer_win:
        dealer_seat, wind = state.dealer_seat_index, state.round_wind
        continue_count = state.dealer_continue_count + 1
        round_number = state.round_number
    else:
        dealer_seat, wind = next_dealer(state.dealer_seat_index, state.round_wind)
        continue_count = 0
        round_number = state.round_number + 1

    return state.model_copy(
        update={
            "players": _apply_deltas(state.players, deltas),
            "dealer_seat_index": dealer_seat,
            "round_wind": wind,
            "round_number": round_number,
            "dealer_continue_count": continue_count,
            "history": [*state.history, round_],
            "updated_at": _utcnow(),
        }
    )


def record_draw(state: GameState) -> GameState:
    round_ = _snapshot_round(state, DrawOutcome())
    dealer_seat, wind = next_dealer(state.dealer_seat_index, state.round_wind)
    return state.model_copy(
        update={
            "dealer_seat_index": dealer_seat,
            "round_wind": wind,
            "round_number": state.round_number + 1,
            "dealer_continue_count": 0,
            "history": [*state.history, round_],
            "updated_at": _utcnow(),
        }
    )


def undo_last_round(state: GameState) -> GameState:
    if not state.history:
        return state
    last = state.history[-1]
    players = state.players
    if isinstance(last.outcome, WinOutcome):
        deltas = {change.player_id: change.delta for change in last.outcome.result.changes}
        players = _apply_deltas(players, deltas, sign=-1)
    return state.model_copy(
        update={
            "players": players,
            "dealer_seat_index": last.dealer_seat_index,
            "round_wind": last.round_wind,
            "round_number": last.round_number,
            "dealer_continue_count": last.dealer_continue_count,
            "history": state.history[:-1],
            "updated_at": _utcnow(),
        }
    )


def advance_dealer(state: GameState) -> GameState:
    dealer_seat, wind = next_dealer(state.dealer_seat_index, state.round_wind)
    return state.model_copy(
        update={
            "dealer_seat_index": dealer_seat,
            "round_wind": wind,
            "dealer_continue_count": 0,
            "updated_at": _utcnow(),
        }
    )


def next_round(state: GameState) -> GameState:
    return state.model_copy(
        update={
            "round_number": state.round_number + 1,
            "dealer_continue_count": 0,
            "updated_at": _utcnow(),
        }
    )


def rename_player(state: GameState, seat_index: int, name: str) -> GameState:
    players = [p.model_copy(update={"name": name}) if p.seat_index == seat_index else p for p in state.players]
    return state.model_copy(update={"players": players, "updated_at": _utcnow()})


class ScoreKeeper:
    """Owns one session snapshot and applies state transitions to it.

    Every operation that needs a game is a no-op returning ``None`` while no
    game has been started.
    """

    def __init__(self, snapshot: SessionSnapshot | None = None) -> None:
        self.snapshot = snapshot or SessionSnapshot()

    @property
    def game(self) -> GameState | None:
        return self.snapshot.game

    @property
    def settings(self) -> GameSettings:
        return self.snapshot.settings

    def _set_game(self, game: GameState | None) -> GameState | None:
        self.snapshot = self.snapshot.model_copy(update={"game": game})
        return game

    def start_game(self, **overrides: Any) -> GameState:
        merged = {**self.settings.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
        settings = GameSettings.model_validate(merged)
        self.snapshot = self.snapshot.model_copy(update={"settings": settings})
        game = new_game(settings)
        logger.info("game started", game_id=game.id, rule_set_id=settings.rule_set_id.value)
        return self._set_game(game)

    def end_game(self) -> None:
        if self.game is not None:
            logger.info("game ended", game_id=self.game.id, rounds=len(self.game.history))
        self._set_game(None)

    def reset_game(self) -> GameState:
        return self.start_game()

    def record_win(self, result: ScoreResult) -> GameState | None:
        if self.game is None:
            return None
        game = self._set_game(record_win(self.game, result))
        logger.debug(
            "win recorded",
            game_id=game.id,
            total_fan=result.total_fan,
            is_dealer_win=result.is_dealer_win,
            dealer_seat_index=game.dealer_seat_index,
            round_wind=game.round_wind.value,
        )
        return game

    def record_draw(self) -> GameState | None:
        if self.game is None:
            return None
        game = self._set_game(record_draw(self.game))
        logger.debug("draw recorded", game_id=game.id, dealer_seat_index=game.dealer_seat_index)
        return game

    def undo_last_round(self) -> GameState | None:
        if self.game is None or not self.game.history:
            return None
        game = self._set_game(undo_last_round(self.game))
        logger.debug("round undone", game_id=game.id, remaining=len(game.history))
        return game

    def advance_dealer(self) -> GameState | None:
        if self.game is None:
            return None
        return self._set_game(advance_dealer(self.game))

    def next_round(self) -> GameState | None:
        if self.game is None:
            return None
        return self._set_game(next_round(self.game))

    def update_settings(self, **changes: Any) -> GameSettings:
        merged = {**self.settings.model_dump(), **{k: v for k, v in changes.items() if v is not None}}
        settings = GameSettings.model_validate(merged)
        self.snapshot = self.snapshot.model_copy(update={"settings": settings})
        return settings

    def update_player_name(self, seat_index: int, name: str) -> None:
        names = list(self.settings.player_names)
        names[seat_index] = name
        self.update_settings(player_names=names)
        if self.game is not None:
            self._set_game(rename_player(self.game, seat_index, name))

    def set_preferred_input_mode(self, mode: InputMode) -> None:
        self.snapshot = self.snapshot.model_copy(update={"preferred_input_mode": mode})

    def get_dealer(self) -> Player | None:
        if self.game is None:
            return None
        return self.game.players[self.game.dealer_seat_index]

    def get_player_by_id(self, player_id: str) -> Player | None:
        if self.game is None:
            return None
        return next((p for p in self.game.players if p.id == player_id), None)

    def get_player_by_seat(self, seat_index: int) -> Player | None:
        if self.game is None:
            return None
        return next((p for p in self.game.players if p.seat_index == seat_index), None)

    def build_declaration(
        self,
        winner_id: str,
        win_type: WinType,
        loser_id: str | None = None,
        fan_count: int | None = None,
        selected_fan_ids: list[str] | None = None,
        description: str | None = None,
    ) -> Declaration | None:
        """Declaration against the current roster and dealer; a fan count wins over a selection."""
        dealer = self.get_dealer()
        if dealer is None:
            return None
        common = {
            "win_type": win_type,
            "winner_id": winner_id,
            "loser_id": loser_id,
            "players": self.game.players,
            "dealer_id": dealer.id,
        }
        if fan_count is not None:
            return DirectDeclaration(fan_count=fan_count, description=description, **common)
        if selected_fan_ids is not None:
            return PatternDeclaration(selected_fan_ids=selected_fan_ids, **common)
        return None

    def preview_score(
        self,
        winner_id: str,
        win_type: WinType,
        loser_id: str | None = None,
        fan_count: int | None = None,
        selected_fan_ids: list[str] | None = None,
        description: str | None = None,
    ) -> ScoreResult | None:
        declaration = self.build_declaration(winner_id, win_type, loser_id, fan_count, selected_fan_ids, description)
        if declaration is None:
            return None
        rule_set = get_rule_set(self.game.rule_set_id)
        return rule_set.calculate(declaration, self.settings.scoring_config)

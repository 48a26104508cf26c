from __future__ import annotations

import structlog

from scorekeeper.fan_resolver import resolve_fan_selection
from scorekeeper.schemas import (
    Declaration,
    DirectDeclaration,
    PatternDeclaration,
    PaymentMode,
    Player,
    ScoreChange,
    ScoreErrorCode,
    ScoreResult,
    ScoringConfig,
    WinType,
)

logger = structlog.get_logger()

ERROR_MESSAGES = {
    ScoreErrorCode.winner_not_found: "winner not found in roster",
    ScoreErrorCode.insufficient_fan: "insufficient fan: at least {min_fan} fan required",
    ScoreErrorCode.discarder_required: "a discard win requires the discarding player",
    ScoreErrorCode.discarder_not_found: "discarding player not found among the other players",
}


def _find_player(players: list[Player], player_id: str | None) -> Player | None:
    if player_id is None:
        return None
    return next((p for p in players if p.id == player_id), None)


def _failure(
    code: ScoreErrorCode,
    *,
    total_fan: int = 0,
    base_points: int = 0,
    fan_description: str = "",
    is_dealer_win: bool = False,
    **message_args: int,
) -> ScoreResult:
    message = ERROR_MESSAGES[code].format(**message_args)
    logger.info("score calculation rejected", error_code=code.value, total_fan=total_fan)
    return ScoreResult(
        total_fan=total_fan,
        base_points=base_points,
        fan_description=fan_description,
        changes=[],
        is_dealer_win=is_dealer_win,
        error=message,
        error_code=code,
    )


def _resolve_fan(declaration: Declaration, config: ScoringConfig) -> tuple[int, str]:
    if isinstance(declaration, DirectDeclaration):
        return declaration.fan_count, declaration.description or f"{declaration.fan_count} 番"
    if isinstance(declaration, PatternDeclaration):
        resolution = resolve_fan_selection(declaration.selected_fan_ids, config.variant)
        return resolution.total_fan, resolution.description
    raise TypeError(f"Unsupported declaration: {type(declaration).__name__}")


def calculate_base_points(total_fan: int, config: ScoringConfig) -> int:
    """base_score * 2 ** fan, with the fan count saturating at max_fan."""
    effective_fan = min(max(total_fan, 0), config.max_fan)
    return config.base_score * 2**effective_fan


def _self_draw_share(base_points: int, config: ScoringConfig) -> int:
    """Single self-draw share; in half mode odd amounts round up so a share never drops to zero."""
    if config.payment_mode == PaymentMode.half:
        return (base_points + 1) // 2
    return base_points


def _self_draw_changes(players: list[Player], winner: Player, dealer_id: str, share: int) -> list[ScoreChange]:
    is_dealer_win = winner.id == dealer_id
    payments: dict[str, int] = {}
    for player in players:
        if player.id == winner.id:
            continue
        payment = share * 2 if is_dealer_win or player.id == dealer_id else share
        payments[player.id] = payment
    received = sum(payments.values())

    changes: list[ScoreChange] = []
    for player in players:
        delta = received if player.id == winner.id else -payments[player.id]
        changes.append(ScoreChange(player_id=player.id, delta=delta, new_score=player.score + delta))
    return changes


def _discard_changes(players: list[Player], winner: Player, loser: Player, payment: int) -> list[ScoreChange]:
    changes: list[ScoreChange] = []
    for player in players:
        if player.id == winner.id:
            delta = payment
        elif player.id == loser.id:
            delta = -payment
        else:
            delta = 0
        changes.append(ScoreChange(player_id=player.id, delta=delta, new_score=player.score + delta))
    return changes


def calculate_score(declaration: Declaration, config: ScoringConfig) -> ScoreResult:
    """Turn a win declaration into per-player transfers.

    Domain failures (unknown winner, too few fan, missing or unknown discarder)
    come back as a ScoreResult with ``error`` set and no changes; nothing here
    raises for them.
    """
    players = declaration.players
    winner = _find_player(players, declaration.winner_id)
    if winner is None:
        return _failure(ScoreErrorCode.winner_not_found)

    total_fan, fan_description = _resolve_fan(declaration, config)
    is_dealer_win = winner.id == declaration.dealer_id

    if total_fan < config.min_fan:
        return _failure(
            ScoreErrorCode.insufficient_fan,
            total_fan=total_fan,
            fan_description=fan_description,
            is_dealer_win=is_dealer_win,
            min_fan=config.min_fan,
        )

    base_points = calculate_base_points(total_fan, config)

    if declaration.win_type == WinType.self_draw:
        share = _self_draw_share(base_points, config)
        changes = _self_draw_changes(players, winner, declaration.dealer_id, share)
    else:
        failure_fields = {
            "total_fan": total_fan,
            "base_points": base_points,
            "fan_description": fan_description,
            "is_dealer_win": is_dealer_win,
        }
        if declaration.loser_id is None:
            return _failure(ScoreErrorCode.discarder_required, **failure_fields)
        opponents = [p for p in players if p.id != winner.id]
        loser = _find_player(opponents, declaration.loser_id)
        if loser is None:
            return _failure(ScoreErrorCode.discarder_not_found, **failure_fields)
        is_dealer_lose = loser.id == declaration.dealer_id
        payment = base_points * 2 if is_dealer_win or is_dealer_lose else base_points
        changes = _discard_changes(players, winner, loser, payment)

    logger.debug(
        "score calculated",
        winner_id=winner.id,
        win_type=declaration.win_type.value,
        total_fan=total_fan,
        base_points=base_points,
        is_dealer_win=is_dealer_win,
    )
    return ScoreResult(
        total_fan=total_fan,
        base_points=base_points,
        fan_description=fan_description,
        changes=changes,
        is_dealer_win=is_dealer_win,
    )


def calculate_direct(
    win_type: WinType,
    winner_id: str,
    loser_id: str | None,
    fan_count: int,
    players: list[Player],
    dealer_id: str,
    config: ScoringConfig,
    description: str | None = None,
) -> ScoreResult:
    declaration = DirectDeclaration(
        win_type=win_type,
        winner_id=winner_id,
        loser_id=loser_id,
        fan_count=fan_count,
        description=description,
        players=players,
        dealer_id=dealer_id,
    )
    return calculate_score(declaration, config)


def calculate_pattern(
    win_type: WinType,
    winner_id: str,
    loser_id: str | None,
    selected_fan_ids: list[str],
    players: list[Player],
    dealer_id: str,
    config: ScoringConfig,
) -> ScoreResult:
    declaration = PatternDeclaration(
        win_type=win_type,
        winner_id=winner_id,
        loser_id=loser_id,
        selected_fan_ids=selected_fan_ids,
        players=players,
        dealer_id=dealer_id,
    )
    return calculate_score(declaration, config)

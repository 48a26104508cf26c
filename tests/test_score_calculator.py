import itertools

import pytest

from scorekeeper.schemas import (
    DirectDeclaration,
    PatternDeclaration,
    PaymentMode,
    Player,
    PlayerColor,
    RuleVariant,
    ScoreErrorCode,
    ScoringConfig,
    WinType,
)
from scorekeeper.score_calculator import (
    calculate_base_points,
    calculate_direct,
    calculate_pattern,
    calculate_score,
)


def base_players() -> list[Player]:
    colors = [PlayerColor.red, PlayerColor.blue, PlayerColor.green, PlayerColor.yellow]
    return [
        Player(id=f"p{seat}", name=name, score=500, seat_index=seat, color=colors[seat])
        for seat, name in enumerate(["東家", "南家", "西家", "北家"])
    ]


def base_config(**kwargs) -> ScoringConfig:
    payload = {"base_score": 1, "min_fan": 3, "max_fan": 13, "starting_score": 500}
    payload.update(kwargs)
    return ScoringConfig.model_validate(payload)


def deltas(result) -> dict[str, int]:
    return {change.player_id: change.delta for change in result.changes}


def test_dealer_self_draw_doubles_every_payment():
    result = calculate_direct(WinType.self_draw, "p0", None, 3, base_players(), "p0", base_config())
    assert result.error is None
    assert result.base_points == 8
    assert result.is_dealer_win is True
    assert deltas(result) == {"p0": 48, "p1": -16, "p2": -16, "p3": -16}
    assert [c.new_score for c in result.changes] == [548, 484, 484, 484]


def test_non_dealer_self_draw_doubles_only_the_dealer():
    result = calculate_direct(WinType.self_draw, "p1", None, 3, base_players(), "p0", base_config())
    assert result.is_dealer_win is False
    assert deltas(result) == {"p0": -16, "p1": 32, "p2": -8, "p3": -8}


def test_discard_by_dealer_is_doubled():
    result = calculate_direct(WinType.discard, "p1", "p0", 5, base_players(), "p0", base_config())
    assert result.base_points == 32
    assert deltas(result) == {"p0": -64, "p1": 64, "p2": 0, "p3": 0}


def test_discard_between_non_dealers_is_single():
    result = calculate_direct(WinType.discard, "p2", "p3", 4, base_players(), "p0", base_config())
    assert deltas(result) == {"p0": 0, "p1": 0, "p2": 16, "p3": -16}


def test_dealer_wins_on_discard_is_doubled():
    result = calculate_direct(WinType.discard, "p0", "p2", 3, base_players(), "p0", base_config())
    assert deltas(result) == {"p0": 16, "p1": 0, "p2": -16, "p3": 0}


def test_pattern_mode_with_base_four():
    result = calculate_pattern(
        WinType.self_draw,
        "p0",
        None,
        ["all-chows", "self-draw", "concealed"],
        base_players(),
        "p0",
        base_config(base_score=4),
    )
    assert result.total_fan == 3
    assert result.base_points == 32
    assert result.fan_description == "平糊、自摸、門清"
    assert deltas(result)["p0"] == 192


def test_pattern_mode_counts_included_fan_once():
    result = calculate_pattern(
        WinType.discard, "p1", "p2", ["full-flush", "half-flush"], base_players(), "p0", base_config()
    )
    assert result.total_fan == 7
    assert result.fan_description == "清一色"
    assert result.base_points == 128


def test_pattern_mode_uses_config_variant():
    players = base_players()
    standard = calculate_pattern(WinType.self_draw, "p1", None, ["seven-robs-one"], players, "p0", base_config())
    custom = calculate_pattern(
        WinType.self_draw, "p1", None, ["seven-robs-one"], players, "p0", base_config(variant=RuleVariant.custom)
    )
    assert standard.error_code == ScoreErrorCode.insufficient_fan
    assert custom.error is None
    assert custom.total_fan == 13


def test_direct_mode_description_defaults_to_fan_count():
    result = calculate_direct(WinType.self_draw, "p1", None, 5, base_players(), "p0", base_config())
    assert result.fan_description == "5 番"


def test_direct_mode_keeps_given_description():
    result = calculate_direct(WinType.self_draw, "p1", None, 7, base_players(), "p0", base_config(), "清一色")
    assert result.fan_description == "清一色"


def test_insufficient_fan_returns_error_without_changes():
    result = calculate_direct(WinType.self_draw, "p0", None, 2, base_players(), "p0", base_config())
    assert result.error_code == ScoreErrorCode.insufficient_fan
    assert "insufficient fan" in result.error
    assert "3" in result.error
    assert result.changes == []
    assert result.total_fan == 2
    assert result.base_points == 0
    assert result.is_dealer_win is True


@pytest.mark.parametrize("fan", range(0, 3))
def test_every_fan_below_minimum_is_rejected(fan):
    result = calculate_direct(WinType.discard, "p1", "p2", fan, base_players(), "p0", base_config())
    assert result.error is not None
    assert result.changes == []


def test_unknown_winner():
    result = calculate_direct(WinType.self_draw, "ghost", None, 5, base_players(), "p0", base_config())
    assert result.error_code == ScoreErrorCode.winner_not_found
    assert result.changes == []
    assert result.is_dealer_win is False
    assert result.total_fan == 0


def test_discard_requires_discarder():
    result = calculate_direct(WinType.discard, "p1", None, 5, base_players(), "p0", base_config())
    assert result.error_code == ScoreErrorCode.discarder_required
    assert result.changes == []
    assert result.base_points == 32


def test_discard_with_unknown_discarder():
    result = calculate_direct(WinType.discard, "p1", "ghost", 5, base_players(), "p0", base_config())
    assert result.error_code == ScoreErrorCode.discarder_not_found
    assert result.changes == []


def test_winner_cannot_be_own_discarder():
    result = calculate_direct(WinType.discard, "p1", "p1", 5, base_players(), "p0", base_config())
    assert result.error_code == ScoreErrorCode.discarder_not_found


def test_discarder_is_ignored_on_self_draw():
    result = calculate_direct(WinType.self_draw, "p1", "p2", 3, base_players(), "p0", base_config())
    assert result.error is None
    assert deltas(result)["p2"] == -8


def test_fan_cap_saturates():
    config = base_config(max_fan=10)
    capped = calculate_base_points(10, config)
    assert capped == 1024
    for extra in range(0, 6):
        assert calculate_base_points(10 + extra, config) == capped


def test_over_cap_hand_keeps_declared_total():
    result = calculate_direct(WinType.discard, "p1", "p2", 15, base_players(), "p0", base_config(base_score=4))
    assert result.total_fan == 15
    assert result.base_points == 4 * 2**13


def test_half_payment_mode_halves_self_draw_shares():
    result = calculate_direct(
        WinType.self_draw, "p1", None, 3, base_players(), "p0", base_config(payment_mode=PaymentMode.half)
    )
    assert result.base_points == 8
    assert deltas(result) == {"p0": -8, "p1": 16, "p2": -4, "p3": -4}


def test_half_payment_mode_chicken_hand_still_pays():
    config = base_config(min_fan=0, payment_mode=PaymentMode.half)
    result = calculate_direct(WinType.self_draw, "p1", None, 0, base_players(), "p0", config)
    assert result.error is None
    assert result.base_points == 1
    assert deltas(result) == {"p0": -2, "p1": 4, "p2": -1, "p3": -1}
    assert sum(1 for c in result.changes if c.delta > 0) == 1


def test_half_payment_mode_rounds_odd_shares_up():
    config = base_config(base_score=3, min_fan=0, payment_mode=PaymentMode.half)
    result = calculate_direct(WinType.self_draw, "p0", None, 0, base_players(), "p0", config)
    assert result.base_points == 3
    assert deltas(result) == {"p0": 12, "p1": -4, "p2": -4, "p3": -4}


def test_half_payment_mode_leaves_discard_unchanged():
    result = calculate_direct(
        WinType.discard, "p1", "p0", 5, base_players(), "p0", base_config(payment_mode=PaymentMode.half)
    )
    assert deltas(result) == {"p0": -64, "p1": 64, "p2": 0, "p3": 0}


def test_calculate_score_accepts_declaration_models():
    players = base_players()
    direct = DirectDeclaration(win_type=WinType.self_draw, winner_id="p2", fan_count=4, players=players, dealer_id="p0")
    pattern = PatternDeclaration(
        win_type=WinType.self_draw, winner_id="p2", selected_fan_ids=["seven-pairs"], players=players, dealer_id="p0"
    )
    assert calculate_score(direct, base_config()).changes == calculate_score(pattern, base_config()).changes


def test_new_score_uses_current_balances():
    players = base_players()
    players[1] = players[1].model_copy(update={"score": 420})
    result = calculate_direct(WinType.discard, "p0", "p1", 3, players, "p0", base_config())
    assert {c.player_id: c.new_score for c in result.changes}["p1"] == 404


@pytest.mark.parametrize("payment_mode", list(PaymentMode))
def test_successful_results_are_zero_sum_and_cover_every_player(payment_mode):
    players = base_players()
    config = base_config(min_fan=0, payment_mode=payment_mode)
    ids = [p.id for p in players]
    for winner, dealer, fan in itertools.product(ids, ids, range(0, 15)):
        scenarios = [(WinType.self_draw, None)] + [(WinType.discard, loser) for loser in ids if loser != winner]
        for win_type, loser in scenarios:
            result = calculate_direct(win_type, winner, loser, fan, players, dealer, config)
            assert result.error is None
            assert sum(c.delta for c in result.changes) == 0
            assert sorted(c.player_id for c in result.changes) == sorted(ids)
            positive = [c for c in result.changes if c.delta > 0]
            assert [c.player_id for c in positive] == [winner]
            if win_type == WinType.discard:
                assert sum(1 for c in result.changes if c.delta < 0) == 1

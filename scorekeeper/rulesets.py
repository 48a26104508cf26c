from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from scorekeeper.schemas import Declaration, RuleSetId, ScoreResult, ScoringConfig
from scorekeeper.score_calculator import calculate_score


@dataclass(frozen=True)
class RuleSet:
    id: RuleSetId
    name: str
    default_config: ScoringConfig
    calculate: Callable[[Declaration, ScoringConfig], ScoreResult]
    implemented: bool = True


CANTONESE_RULESET = RuleSet(
    id=RuleSetId.cantonese,
    name="廣東牌",
    default_config=ScoringConfig(base_score=4, min_fan=3, max_fan=13, starting_score=500),
    calculate=calculate_score,
)

# Sichuan and Taiwan are registered but score with the Cantonese rules.
RULE_SETS: dict[RuleSetId, RuleSet] = {
    RuleSetId.cantonese: CANTONESE_RULESET,
    RuleSetId.sichuan: RuleSet(
        id=RuleSetId.sichuan,
        name="四川牌",
        default_config=CANTONESE_RULESET.default_config,
        calculate=calculate_score,
        implemented=False,
    ),
    RuleSetId.taiwan: RuleSet(
        id=RuleSetId.taiwan,
        name="台灣牌",
        default_config=CANTONESE_RULESET.default_config,
        calculate=calculate_score,
        implemented=False,
    ),
}


def get_rule_set(rule_set_id: RuleSetId) -> RuleSet:
    return RULE_SETS[rule_set_id]


def get_available_rule_sets() -> list[RuleSet]:
    return [rule_set for rule_set in RULE_SETS.values() if rule_set.implemented]

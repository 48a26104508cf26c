from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from scorekeeper.fan_catalog import ZERO_VALUE_LABEL, get_fan_by_id, is_in_variant
from scorekeeper.schemas import FanType, RuleVariant

DESCRIPTION_SEPARATOR = "、"


@dataclass
class FanResolution:
    total_fan: int
    surviving_fans: list[FanType] = field(default_factory=list)
    suppressed_ids: list[str] = field(default_factory=list)
    description: str = ZERO_VALUE_LABEL


@dataclass
class FanValidation:
    valid: bool
    conflicts: list[list[str]] = field(default_factory=list)


def _unique_in_order(fan_ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for fan_id in fan_ids:
        if fan_id in seen:
            continue
        seen.add(fan_id)
        ordered.append(fan_id)
    return ordered


def _selected_fans(fan_ids: Iterable[str], variant: RuleVariant) -> list[FanType]:
    selected: list[FanType] = []
    for fan_id in _unique_in_order(fan_ids):
        fan = get_fan_by_id(fan_id)
        if fan is None or not is_in_variant(fan, variant):
            continue
        selected.append(fan)
    return selected


def resolve_fan_selection(fan_ids: Iterable[str], variant: RuleVariant = RuleVariant.standard) -> FanResolution:
    """Net fan total for a selection of fan ids.

    Unknown or out-of-variant ids are dropped. A fan listed in another selected
    fan's ``includes`` is suppressed, and so is a fan whose ``implied_by`` names
    any other selected fan. The surviving fans keep their selection order.
    """
    selected = _selected_fans(fan_ids, variant)
    selected_ids = {fan.id for fan in selected}

    suppressed: set[str] = set()
    for fan in selected:
        suppressed.update(fan.includes & selected_ids)
    for fan in selected:
        if fan.implied_by & selected_ids:
            suppressed.add(fan.id)

    surviving = [fan for fan in selected if fan.id not in suppressed]
    total_fan = sum(fan.value for fan in surviving)
    description = DESCRIPTION_SEPARATOR.join(fan.name for fan in surviving) or ZERO_VALUE_LABEL
    return FanResolution(
        total_fan=total_fan,
        surviving_fans=surviving,
        suppressed_ids=[fan.id for fan in selected if fan.id in suppressed],
        description=description,
    )


def validate_fan_combination(fan_ids: Iterable[str]) -> FanValidation:
    """Report each mutually exclusive pair in the selection once, by display name."""
    ordered = _unique_in_order(fan_ids)
    conflicts: list[list[str]] = []
    for i, fan_id in enumerate(ordered):
        fan = get_fan_by_id(fan_id)
        if fan is None or not fan.incompatible_with:
            continue
        for other_id in ordered[i + 1 :]:
            if other_id in fan.incompatible_with:
                other = get_fan_by_id(other_id)
                conflicts.append([fan.name, other.name if other else other_id])
    return FanValidation(valid=not conflicts, conflicts=conflicts)

import pytest

from scorekeeper.fan_catalog import (
    FAN_TYPES,
    ZERO_VALUE_LABEL,
    get_common_fans,
    get_custom_fans,
    get_fan_by_id,
    get_fan_catalog,
    get_fans_by_category,
    get_limit_fans,
    get_standard_fans,
)
from scorekeeper.schemas import FanCategory, RuleVariant, VariantScope

KNOWN_IDS = {fan.id for fan in FAN_TYPES}


def test_fan_ids_are_unique():
    ids = [fan.id for fan in FAN_TYPES]
    assert len(ids) == len(set(ids))


def test_catalog_covers_every_category():
    assert {fan.category for fan in FAN_TYPES} == set(FanCategory)


@pytest.mark.parametrize("fan", FAN_TYPES, ids=lambda fan: fan.id)
def test_incompatibility_is_declared_on_both_sides(fan):
    for other_id in fan.incompatible_with:
        other = get_fan_by_id(other_id)
        assert other is not None, f"{fan.id} references unknown {other_id}"
        assert fan.id in other.incompatible_with, f"{other_id} does not list {fan.id}"


@pytest.mark.parametrize("fan", FAN_TYPES, ids=lambda fan: fan.id)
def test_cross_references_point_at_known_fans(fan):
    assert fan.includes <= KNOWN_IDS
    assert fan.implied_by <= KNOWN_IDS
    assert fan.id not in fan.includes | fan.implied_by | fan.incompatible_with


def test_get_fan_by_id():
    full_flush = get_fan_by_id("full-flush")
    assert full_flush is not None
    assert full_flush.name == "清一色"
    assert full_flush.value == 7
    assert "half-flush" in full_flush.includes


def test_get_fan_by_id_unknown_returns_none():
    assert get_fan_by_id("not-a-fan") is None


def test_fans_by_category_filters_category():
    situational = get_fans_by_category(FanCategory.situational)
    assert situational
    assert all(fan.category == FanCategory.situational for fan in situational)


def test_fans_by_category_respects_variant():
    standard_ids = {fan.id for fan in get_fans_by_category(FanCategory.flowers, RuleVariant.standard)}
    custom_ids = {fan.id for fan in get_fans_by_category(FanCategory.flowers, RuleVariant.custom)}
    assert "all-flowers" not in standard_ids
    assert "all-flowers" in custom_ids
    assert standard_ids < custom_ids


def test_standard_view_excludes_custom_only_fans():
    assert all(fan.variant_scope != VariantScope.custom for fan in get_standard_fans())
    assert get_fan_catalog(RuleVariant.standard) == get_standard_fans()


def test_custom_view_is_the_whole_catalog():
    assert get_custom_fans() == list(FAN_TYPES)
    assert get_fan_catalog() == list(FAN_TYPES)


def test_limit_fans():
    limit_fans = get_limit_fans()
    assert limit_fans
    assert all(fan.is_limit for fan in limit_fans)
    assert {"thirteen-orphans", "heavenly-hand"} <= {fan.id for fan in limit_fans}


def test_common_fans():
    ids = [fan.id for fan in get_common_fans()]
    assert "all-chows" in ids
    assert "full-flush" in ids
    assert "self-draw" in ids


def test_accessors_return_fresh_lists():
    fans = get_common_fans()
    fans.clear()
    assert get_common_fans()


def test_zero_value_label_is_chicken_hand():
    assert ZERO_VALUE_LABEL == "雞糊"
    assert get_fan_by_id("chicken").value == 0

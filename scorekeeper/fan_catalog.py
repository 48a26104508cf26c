from __future__ import annotations

from types import MappingProxyType

from scorekeeper.schemas import FanCategory, FanType, RuleVariant, VariantScope

ZERO_VALUE_FAN_ID = "chicken"
LIMIT_FAN_VALUE = 13

COMMON_FAN_IDS = ("all-chows", "all-pungs", "half-flush", "full-flush", "self-draw", "concealed")

# Ordered by category, then by value.
FAN_TYPES: tuple[FanType, ...] = (
    # basic
    FanType(
        id="chicken",
        name="雞糊",
        english_name="Chicken Hand",
        value=0,
        category=FanCategory.basic,
        description="No scoring pattern; only wins when the minimum is zero",
    ),
    FanType(
        id="all-chows",
        name="平糊",
        english_name="All Chows",
        value=1,
        category=FanCategory.basic,
        description="Four chows and a pair, no pungs",
        incompatible_with=frozenset({"all-pungs", "seven-pairs", "mixed-terminals", "all-concealed-pungs"}),
    ),
    # triplets
    FanType(
        id="all-pungs",
        name="對對糊",
        english_name="All Pungs",
        value=3,
        category=FanCategory.triplets,
        description="Four pungs or kongs and a pair",
        incompatible_with=frozenset({"all-chows", "seven-pairs"}),
    ),
    FanType(
        id="three-concealed-pungs",
        name="三暗刻",
        english_name="Three Concealed Pungs",
        value=3,
        category=FanCategory.triplets,
        description="Three pungs formed entirely from drawn tiles",
        variant_scope=VariantScope.custom,
    ),
    # suits
    FanType(
        id="half-flush",
        name="混一色",
        english_name="Half Flush",
        value=3,
        category=FanCategory.suits,
        description="One suit plus honour tiles",
        incompatible_with=frozenset({"full-flush", "all-honors"}),
    ),
    FanType(
        id="full-flush",
        name="清一色",
        english_name="Full Flush",
        value=7,
        category=FanCategory.suits,
        description="Every tile from a single suit, no honours",
        incompatible_with=frozenset({"half-flush", "all-honors"}),
        includes=frozenset({"half-flush"}),
    ),
    FanType(
        id="all-honors",
        name="字一色",
        english_name="All Honors",
        value=10,
        category=FanCategory.suits,
        description="Only wind and dragon tiles",
        incompatible_with=frozenset({"half-flush", "full-flush"}),
    ),
    # honors
    FanType(
        id="red-dragon",
        name="紅中",
        english_name="Red Dragon Pung",
        value=1,
        category=FanCategory.honors,
        description="A pung of red dragons",
        implied_by=frozenset({"big-dragons"}),
    ),
    FanType(
        id="green-dragon",
        name="發財",
        english_name="Green Dragon Pung",
        value=1,
        category=FanCategory.honors,
        description="A pung of green dragons",
        implied_by=frozenset({"big-dragons"}),
    ),
    FanType(
        id="white-dragon",
        name="白板",
        english_name="White Dragon Pung",
        value=1,
        category=FanCategory.honors,
        description="A pung of white dragons",
        implied_by=frozenset({"big-dragons"}),
    ),
    FanType(
        id="seat-wind",
        name="門風",
        english_name="Seat Wind Pung",
        value=1,
        category=FanCategory.honors,
        description="A pung of the player's own seat wind",
    ),
    FanType(
        id="prevailing-wind",
        name="圈風",
        english_name="Prevailing Wind Pung",
        value=1,
        category=FanCategory.honors,
        description="A pung of the current round wind",
    ),
    FanType(
        id="small-dragons",
        name="小三元",
        english_name="Small Three Dragons",
        value=5,
        category=FanCategory.honors,
        description="Two dragon pungs and a dragon pair",
        incompatible_with=frozenset({"big-dragons"}),
    ),
    FanType(
        id="small-winds",
        name="小四喜",
        english_name="Small Four Winds",
        value=6,
        category=FanCategory.honors,
        description="Three wind pungs and a wind pair",
        incompatible_with=frozenset({"big-winds"}),
    ),
    FanType(
        id="big-dragons",
        name="大三元",
        english_name="Big Three Dragons",
        value=8,
        category=FanCategory.honors,
        description="Pungs of all three dragons",
        incompatible_with=frozenset({"small-dragons"}),
        includes=frozenset({"small-dragons"}),
    ),
    FanType(
        id="big-winds",
        name="大四喜",
        english_name="Big Four Winds",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.honors,
        description="Pungs of all four winds",
        is_limit=True,
        incompatible_with=frozenset({"small-winds"}),
        includes=frozenset({"small-winds"}),
    ),
    # terminals
    FanType(
        id="mixed-terminals",
        name="花么九",
        english_name="Mixed Terminals",
        value=1,
        category=FanCategory.terminals,
        description="Only terminals and honours",
        incompatible_with=frozenset({"all-chows", "pure-terminals"}),
    ),
    FanType(
        id="pure-terminals",
        name="清么九",
        english_name="Pure Terminals",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.terminals,
        description="Only ones and nines, no honours",
        is_limit=True,
        incompatible_with=frozenset({"mixed-terminals"}),
        includes=frozenset({"all-pungs"}),
    ),
    # special
    FanType(
        id="seven-pairs",
        name="七對",
        english_name="Seven Pairs",
        value=4,
        category=FanCategory.special,
        description="Seven distinct pairs",
        incompatible_with=frozenset({"all-chows", "all-pungs"}),
    ),
    FanType(
        id="thirteen-orphans",
        name="十三么",
        english_name="Thirteen Orphans",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.special,
        description="One of each terminal and honour plus a duplicate",
        is_limit=True,
    ),
    FanType(
        id="nine-gates",
        name="九蓮寶燈",
        english_name="Nine Gates",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.special,
        description="1112345678999 of one suit plus any tile of that suit",
        is_limit=True,
        includes=frozenset({"full-flush"}),
    ),
    FanType(
        id="all-kongs",
        name="十八羅漢",
        english_name="All Kongs",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.special,
        description="Four kongs and a pair",
        is_limit=True,
        includes=frozenset({"all-pungs"}),
    ),
    # situational
    FanType(
        id="self-draw",
        name="自摸",
        english_name="Self Draw",
        value=1,
        category=FanCategory.situational,
        description="Winning tile drawn from the wall",
        incompatible_with=frozenset({"last-tile-discard", "robbing-kong"}),
        implied_by=frozenset({"win-on-kong", "heavenly-hand"}),
    ),
    FanType(
        id="concealed",
        name="門清",
        english_name="Concealed Hand",
        value=1,
        category=FanCategory.situational,
        description="No melds claimed from other players",
        implied_by=frozenset({"seven-pairs"}),
    ),
    FanType(
        id="last-tile-draw",
        name="海底撈月",
        english_name="Win on Last Tile (Self Draw)",
        value=1,
        category=FanCategory.situational,
        description="Winning on the last tile of the wall",
        incompatible_with=frozenset({"last-tile-discard", "robbing-kong"}),
    ),
    FanType(
        id="last-tile-discard",
        name="河底撈魚",
        english_name="Win on Last Tile (Discard)",
        value=1,
        category=FanCategory.situational,
        description="Winning on the final discard of the hand",
        incompatible_with=frozenset({"self-draw", "last-tile-draw", "win-on-kong"}),
    ),
    FanType(
        id="win-on-kong",
        name="槓上開花",
        english_name="Win on Kong",
        value=1,
        category=FanCategory.situational,
        description="Winning on the replacement tile after a kong",
        incompatible_with=frozenset({"last-tile-discard", "robbing-kong"}),
    ),
    FanType(
        id="robbing-kong",
        name="搶槓",
        english_name="Robbing the Kong",
        value=1,
        category=FanCategory.situational,
        description="Winning on a tile another player adds to a pung",
        incompatible_with=frozenset({"self-draw", "last-tile-draw", "win-on-kong"}),
    ),
    # flowers
    FanType(
        id="no-flowers",
        name="無花",
        english_name="No Flowers",
        value=1,
        category=FanCategory.flowers,
        description="No flower or season tiles drawn",
        incompatible_with=frozenset({"own-flower", "flower-set", "all-flowers", "seven-robs-one"}),
    ),
    FanType(
        id="own-flower",
        name="正花",
        english_name="Own Flower",
        value=1,
        category=FanCategory.flowers,
        description="The flower or season matching the player's seat",
        incompatible_with=frozenset({"no-flowers"}),
    ),
    FanType(
        id="flower-set",
        name="一台花",
        english_name="Complete Flower Set",
        value=2,
        category=FanCategory.flowers,
        description="All four flowers or all four seasons",
        incompatible_with=frozenset({"no-flowers"}),
        includes=frozenset({"own-flower"}),
    ),
    FanType(
        id="all-flowers",
        name="八仙過海",
        english_name="Eight Immortals",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.flowers,
        description="All eight flower and season tiles",
        variant_scope=VariantScope.custom,
        is_limit=True,
        incompatible_with=frozenset({"no-flowers", "seven-robs-one"}),
        includes=frozenset({"flower-set", "own-flower"}),
    ),
    FanType(
        id="seven-robs-one",
        name="七搶一",
        english_name="Seven Rob One",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.flowers,
        description="Holding seven flowers and claiming the eighth",
        variant_scope=VariantScope.custom,
        is_limit=True,
        incompatible_with=frozenset({"no-flowers", "all-flowers"}),
    ),
    # limit
    FanType(
        id="all-concealed-pungs",
        name="坎坎糊",
        english_name="All Concealed Pungs",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.limit,
        description="Four concealed pungs and a pair",
        is_limit=True,
        incompatible_with=frozenset({"all-chows"}),
        includes=frozenset({"all-pungs", "concealed"}),
    ),
    FanType(
        id="heavenly-hand",
        name="天糊",
        english_name="Heavenly Hand",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.limit,
        description="Dealer wins with the initial fourteen tiles",
        is_limit=True,
        incompatible_with=frozenset({"earthly-hand"}),
    ),
    FanType(
        id="earthly-hand",
        name="地糊",
        english_name="Earthly Hand",
        value=LIMIT_FAN_VALUE,
        category=FanCategory.limit,
        description="Non-dealer wins on the dealer's first discard",
        is_limit=True,
        incompatible_with=frozenset({"heavenly-hand"}),
    ),
)

_FANS_BY_ID = MappingProxyType({fan.id: fan for fan in FAN_TYPES})


def is_in_variant(fan: FanType, variant: RuleVariant) -> bool:
    if variant == RuleVariant.custom:
        return True
    return fan.variant_scope in {VariantScope.standard, VariantScope.both}


_VARIANT_VIEWS = MappingProxyType(
    {variant: tuple(fan for fan in FAN_TYPES if is_in_variant(fan, variant)) for variant in RuleVariant}
)
_LIMIT_FANS = tuple(fan for fan in FAN_TYPES if fan.is_limit)
_COMMON_FANS = tuple(_FANS_BY_ID[fan_id] for fan_id in COMMON_FAN_IDS)
ZERO_VALUE_LABEL = _FANS_BY_ID[ZERO_VALUE_FAN_ID].name


def get_fan_by_id(fan_id: str) -> FanType | None:
    return _FANS_BY_ID.get(fan_id)


def get_fan_catalog(variant: RuleVariant | None = None) -> list[FanType]:
    if variant is None:
        return list(FAN_TYPES)
    return list(_VARIANT_VIEWS[variant])


def get_fans_by_category(category: FanCategory, variant: RuleVariant = RuleVariant.standard) -> list[FanType]:
    return [fan for fan in _VARIANT_VIEWS[variant] if fan.category == category]


def get_limit_fans() -> list[FanType]:
    return list(_LIMIT_FANS)


def get_common_fans() -> list[FanType]:
    return list(_COMMON_FANS)


def get_standard_fans() -> list[FanType]:
    return list(_VARIANT_VIEWS[RuleVariant.standard])


def get_custom_fans() -> list[FanType]:
    return list(_VARIANT_VIEWS[RuleVariant.custom])

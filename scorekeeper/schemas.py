from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, conint, field_validator


class Wind(str, Enum):
    east = "east"
    south = "south"
    west = "west"
    north = "north"


WIND_ORDER: tuple[Wind, ...] = (Wind.east, Wind.south, Wind.west, Wind.north)


def next_wind(wind: Wind) -> Wind:
    return WIND_ORDER[(WIND_ORDER.index(wind) + 1) % len(WIND_ORDER)]


class WinType(str, Enum):
    self_draw = "self-draw"
    discard = "discard"


class FanCategory(str, Enum):
    basic = "basic"
    triplets = "triplets"
    suits = "suits"
    honors = "honors"
    terminals = "terminals"
    special = "special"
    situational = "situational"
    flowers = "flowers"
    limit = "limit"


class VariantScope(str, Enum):
    standard = "standard"
    custom = "custom"
    both = "both"


class RuleVariant(str, Enum):
    standard = "standard"
    custom = "custom"


class PaymentMode(str, Enum):
    full = "full"
    half = "half"


class InputMode(str, Enum):
    pro = "pro"
    normal = "normal"


class RuleSetId(str, Enum):
    cantonese = "cantonese"
    sichuan = "sichuan"
    taiwan = "taiwan"


class PlayerColor(str, Enum):
    red = "red"
    blue = "blue"
    green = "green"
    yellow = "yellow"


SEAT_COLORS = {0: PlayerColor.red, 1: PlayerColor.blue, 2: PlayerColor.green, 3: PlayerColor.yellow}

SeatIndex = conint(ge=0, le=3)
PlayerNames = Annotated[list[str], Field(min_length=4, max_length=4)]


class ScoreErrorCode(str, Enum):
    winner_not_found = "winner_not_found"
    insufficient_fan = "insufficient_fan"
    discarder_required = "discarder_required"
    discarder_not_found = "discarder_not_found"


class Player(BaseModel):
    id: str
    name: str
    score: int
    seat_index: SeatIndex
    color: PlayerColor


class FanType(BaseModel):
    id: str
    name: str
    english_name: str
    value: conint(ge=0)
    category: FanCategory
    description: str
    variant_scope: VariantScope = VariantScope.both
    is_limit: bool = False
    incompatible_with: frozenset[str] = frozenset()
    includes: frozenset[str] = frozenset()
    implied_by: frozenset[str] = frozenset()

    model_config = ConfigDict(frozen=True)


class ScoringConfig(BaseModel):
    base_score: conint(ge=1) = 1
    min_fan: conint(ge=0) = 3
    max_fan: conint(ge=1) = 13
    starting_score: int = 500
    variant: RuleVariant = RuleVariant.standard
    payment_mode: PaymentMode = PaymentMode.full


class ScoreChange(BaseModel):
    player_id: str
    delta: int
    new_score: int


class ScoreResult(BaseModel):
    total_fan: int
    base_points: int
    fan_description: str
    changes: list[ScoreChange] = Field(default_factory=list)
    is_dealer_win: bool
    error: str | None = None
    error_code: ScoreErrorCode | None = None


class _DeclarationBase(BaseModel):
    win_type: WinType
    winner_id: str
    loser_id: str | None = None
    players: list[Player]
    dealer_id: str


class DirectDeclaration(_DeclarationBase):
    mode: Literal["pro"] = "pro"
    fan_count: conint(ge=0)
    description: str | None = None


class PatternDeclaration(_DeclarationBase):
    mode: Literal["normal"] = "normal"
    selected_fan_ids: list[str] = Field(default_factory=list)


Declaration = Annotated[Union[DirectDeclaration, PatternDeclaration], Field(discriminator="mode")]


class WinOutcome(BaseModel):
    type: Literal["win"] = "win"
    result: ScoreResult


class DrawOutcome(BaseModel):
    type: Literal["draw"] = "draw"


RoundOutcome = Annotated[Union[WinOutcome, DrawOutcome], Field(discriminator="type")]


class Round(BaseModel):
    id: str
    round_number: conint(ge=1)
    round_wind: Wind
    dealer_seat_index: SeatIndex
    dealer_continue_count: conint(ge=0) = 0
    outcome: RoundOutcome
    timestamp: datetime

    model_config = ConfigDict(frozen=True)


class GameState(BaseModel):
    id: str
    rule_set_id: RuleSetId = RuleSetId.cantonese
    players: list[Player] = Field(min_length=4, max_length=4)
    dealer_seat_index: SeatIndex = 0
    round_wind: Wind = Wind.east
    round_number: conint(ge=1) = 1
    dealer_continue_count: conint(ge=0) = 0
    history: list[Round] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class GameSettings(BaseModel):
    rule_set_id: RuleSetId = RuleSetId.cantonese
    scoring_config: ScoringConfig = Field(default_factory=ScoringConfig)
    player_names: PlayerNames = Field(default_factory=lambda: ["東", "南", "西", "北"])


class SessionSnapshot(BaseModel):
    settings: GameSettings = Field(default_factory=GameSettings)
    game: GameState | None = None
    preferred_input_mode: InputMode = InputMode.pro


# API payloads


class FanResolveRequest(BaseModel):
    fan_ids: list[str]
    variant: RuleVariant = RuleVariant.standard


class FanResolveResponse(BaseModel):
    total_fan: int
    surviving_fans: list[FanType]
    suppressed_ids: list[str]
    description: str


class FanValidateRequest(BaseModel):
    fan_ids: list[str]


class FanValidateResponse(BaseModel):
    valid: bool
    conflicts: list[list[str]]


class ScoreRequest(BaseModel):
    declaration: Declaration
    config: ScoringConfig = Field(default_factory=ScoringConfig)


class RuleSetInfo(BaseModel):
    id: RuleSetId
    name: str
    implemented: bool
    base_score: int
    min_fan: int
    max_fan: int
    starting_score: int


class StartGameRequest(BaseModel):
    player_names: PlayerNames | None = None
    rule_set_id: RuleSetId | None = None
    scoring_config: ScoringConfig | None = None


class WinRequest(BaseModel):
    """A win declared against the current game; roster and dealer come from the session."""

    mode: InputMode
    win_type: WinType
    winner_id: str
    loser_id: str | None = None
    fan_count: conint(ge=0) | None = None
    selected_fan_ids: list[str] | None = None
    description: str | None = None

    @field_validator("selected_fan_ids")
    @classmethod
    def _strip_blank_ids(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        return [fan_id.strip() for fan_id in value if fan_id.strip()]


class WinResponse(BaseModel):
    applied: bool
    result: ScoreResult
    game: GameState


class SessionResponse(BaseModel):
    session_id: str
    created_at: datetime
    expires_at: datetime
    snapshot: SessionSnapshot


class PlayerNameUpdate(BaseModel):
    name: str = Field(min_length=1)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class SettingsUpdate(BaseModel):
    rule_set_id: RuleSetId | None = None
    scoring_config: ScoringConfig | None = None
    player_names: PlayerNames | None = None
    preferred_input_mode: InputMode | None = None

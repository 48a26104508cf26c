from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from scorekeeper.schemas import GameSettings, PaymentMode, RuleSetId, RuleVariant, ScoringConfig


class Settings(BaseSettings):
    base_score: int = 1
    min_fan: int = 3
    max_fan: int = 13
    starting_score: int = 500
    variant: RuleVariant = RuleVariant.standard
    payment_mode: PaymentMode = PaymentMode.full
    rule_set_id: RuleSetId = RuleSetId.cantonese
    player_names: list[str] = ["東", "南", "西", "北"]
    log_level: str = "INFO"
    state_dir: str | None = None
    session_ttl_hours: int = 24

    model_config = SettingsConfigDict(env_prefix="SCOREKEEPER_", env_file=".env", env_file_encoding="utf-8")


settings = Settings()


def default_scoring_config(source: Settings | None = None) -> ScoringConfig:
    source = source or settings
    return ScoringConfig(
        base_score=source.base_score,
        min_fan=source.min_fan,
        max_fan=source.max_fan,
        starting_score=source.starting_score,
        variant=source.variant,
        payment_mode=source.payment_mode,
    )


def default_settings(source: Settings | None = None) -> GameSettings:
    source = source or settings
    return GameSettings(
        rule_set_id=source.rule_set_id,
        scoring_config=default_scoring_config(source),
        player_names=list(source.player_names),
    )

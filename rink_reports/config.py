"""
Typed settings for the rink reports service.

Uses Pydantic Settings to load configuration from environment variables
with validation and type safety. Thresholds that shape classification and
report highlights live in nested groups so tests can build variants without
touching the environment.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .validate_env import validate_env


class GameClockConfig(BaseModel):
    # Scorekeepers enter the clock counting down from the period length
    period_length_minutes: int = 20
    regulation_periods: int = 3
    min_penalty_minutes: int = 1
    max_penalty_minutes: int = 10


class ClassifierConfig(BaseModel):
    # Substring matches against the lowercased penalty label
    major_vocabulary: list[str] = Field(
        default_factory=lambda: ["major", "fighting", "fight", "match penalty"]
    )
    misconduct_vocabulary: list[str] = Field(
        default_factory=lambda: ["misconduct", "abuse of official"]
    )
    double_minor_threshold_minutes: int = 2


class HighlightConfig(BaseModel):
    high_scoring_goals: int = 8
    hat_trick_goals: int = 3
    penalty_heavy_count: int = 8
    per_rule_cap: int = 3
    max_highlights: int = 6
    standout_count: int = 3
    top_scorer_count: int = 10
    # Standout tag thresholds
    hat_trick_hero_goals: int = 3
    playmaker_assists: int = 3
    consistent_points: int = 4


class ReportConfig(BaseModel):
    divisions: list[str] = Field(default_factory=lambda: ["Gold", "Silver", "Bronze"])
    # Fold only new events on append instead of replaying the full log
    incremental_reconstruction: bool = True
    # Recompute from scratch after each incremental fold and compare
    verify_replay: bool = False
    # Incremental trackers kept in memory per worker, least recently used evicted first
    max_tracked_games: int = Field(default=256, ge=1)
    author: str = "Rink Report Generator"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    In Docker, environment variables are passed directly via docker-compose.
    For local development an optional .env file in the working directory is
    read. All settings are validated by Pydantic.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="allow",
    )

    environment: str = Field("development", alias="ENVIRONMENT")
    log_level: str | None = Field(None, alias="LOG_LEVEL")
    database_url: str = Field("sqlite+pysqlite:///:memory:", alias="DATABASE_URL")
    redis_url: str = Field("redis://localhost:6379/3", alias="REDIS_URL")
    sql_echo: bool = Field(False, alias="SQL_ECHO")
    report_divisions: str | None = Field(None, alias="REPORT_DIVISIONS")

    game_clock: GameClockConfig = Field(default_factory=GameClockConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    highlights: HighlightConfig = Field(default_factory=HighlightConfig)
    reports: ReportConfig = Field(default_factory=ReportConfig)

    @model_validator(mode="after")
    def _apply_division_override(self) -> Settings:
        """
        Allow REPORT_DIVISIONS=Gold,Silver to override the nested report config
        without requiring double-underscore syntax.
        """
        if self.report_divisions:
            divisions = [d.strip() for d in self.report_divisions.split(",") if d.strip()]
            if divisions:
                self.reports.divisions = divisions
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Settings are cached to avoid re-parsing environment variables
    on every access.
    """
    validate_env()
    return Settings()


# Global settings instance - import this in other modules
settings = get_settings()

"""Pydantic configuration models for habitlens.

All config is loaded from ~/.habitlens/config.json and can be overridden
via HABITLENS_ prefixed environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, JsonConfigSettingsSource, SettingsConfigDict


class StorageConfig(BaseModel):
    """Where checkpointed engine state lives."""

    state_dir: Path = Field(
        default=Path("~/.habitlens/state"),
        description="Directory holding one JSON file per persisted state key.",
    )


class SeriesConfig(BaseModel):
    """Retention policy for per-pattern time series."""

    retention_days: int = Field(
        default=90,
        ge=1,
        le=3650,
        description="Data points older than this are pruned on every append.",
    )


class TrendConfig(BaseModel):
    """Trend classification thresholds.

    Defaults reproduce the behaviour the editor add-on has always shipped
    with. The cyclical tests average empty weekday/hour buckets as 0 unless
    exclude_empty_buckets is set.
    """

    min_data_points: int = Field(default=5, ge=2)
    regression_window: int = Field(
        default=30,
        ge=2,
        description="Number of most recent points fed to the regression.",
    )
    stable_slope_threshold: float = Field(default=0.01, ge=0.0)
    cyclical_min_points: int = Field(default=14, ge=2)
    weekly_variation_ratio: float = Field(default=0.3, ge=0.0)
    daily_variation_ratio: float = Field(default=0.25, ge=0.0)
    work_hours: list[int] = Field(default_factory=lambda: list(range(9, 18)))
    exclude_empty_buckets: bool = Field(
        default=False,
        description="Average only populated weekday/hour buckets in the cyclical tests.",
    )

    @field_validator("work_hours")
    @classmethod
    def _check_work_hours(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("work_hours must not be empty")
        bad = [h for h in value if not 0 <= h <= 23]
        if bad:
            raise ValueError(f"work_hours out of range 0..23: {bad}")
        if len(set(value)) == 24:
            raise ValueError("work_hours must leave at least one off hour")
        return sorted(set(value))


class HabitsConfig(BaseModel):
    """Habit change detection: windowing and distribution-shift thresholds."""

    window_size_days: float = Field(default=14, gt=0)
    significance_threshold: float = Field(
        default=0.3,
        gt=0.0,
        le=1.0,
        description="Minimum share drop of a pattern between adjacent windows.",
    )
    increase_ratio: float = Field(
        default=0.5,
        gt=0.0,
        le=1.0,
        description="Replacement pattern must grow by significance_threshold * increase_ratio.",
    )
    min_data_points: int = Field(default=5, ge=1)
    retention_days: int = Field(default=180, ge=1, le=3650)
    preference_shift_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    style_evolution_confidence: float = Field(default=0.5, ge=0.0, le=1.0)


class InsightsConfig(BaseModel):
    """Shape of the aggregated insight report."""

    recent_days: int = Field(default=30, ge=1)
    max_recent_changes: int = Field(default=10, ge=1, le=1000)


class SchedulerConfig(BaseModel):
    """Periodic recomputation of series trends."""

    enabled: bool = True
    interval_hours: float = Field(default=24, gt=0, le=24 * 30)
    initial_delay_seconds: float = Field(
        default=60,
        ge=0,
        description="Delay before the first pass after startup.",
    )


class LoggingConfig(BaseModel):
    """File sink settings. The log directory sits beside storage.state_dir."""

    file_enabled: bool = True
    rotation: str = Field(default="10 MB", description="loguru rotation condition.")
    retention: int = Field(default=5, ge=1, le=100, description="Rotated files to keep.")


class HabitLensConfig(BaseSettings):
    """Root configuration for habitlens.

    Loaded from ~/.habitlens/config.json with HABITLENS_ env var overrides.
    Precedence, highest first: init kwargs, HABITLENS_ env vars, the JSON
    file. Sections are deep-merged, so an env var overrides one key of a
    section the file also sets.
    """

    model_config = SettingsConfigDict(
        env_prefix="HABITLENS_",
        env_nested_delimiter="__",
        json_file=Path("~/.habitlens/config.json").expanduser(),
        json_file_encoding="utf-8",
        extra="ignore",
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    series: SeriesConfig = Field(default_factory=SeriesConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    habits: HabitsConfig = Field(default_factory=HabitsConfig)
    insights: InsightsConfig = Field(default_factory=InsightsConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Enable JSON file loading alongside env vars and init kwargs."""
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls),
        )

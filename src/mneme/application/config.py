from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mneme.domain import constants
from mneme.domain.scheduling.models import SchedulerSettings


def config_files() -> list[Path]:
    """Candidate TOML files, highest priority first."""
    return [
        Path.home() / ".config/mneme/config.toml",
        Path.home() / ".mneme.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for mneme.
    Supports loading from:
    1. Environment variables (MNEME_*)
    2. Config file (~/.config/mneme/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEME_",
        toml_file=config_files(),
        extra="ignore",
    )

    # Paths
    state_file: Path | None = None

    # Storage
    backend: Literal["auto", "memory", "yaml"] = "auto"

    # Scheduler
    learning_steps: list[int] = Field(default_factory=lambda: list(constants.DEFAULT_LEARNING_STEPS))
    relearning_steps: list[int] = Field(
        default_factory=lambda: list(constants.DEFAULT_RELEARNING_STEPS)
    )
    graduating_interval: int = constants.DEFAULT_GRADUATING_INTERVAL
    easy_interval: int = constants.DEFAULT_EASY_INTERVAL
    starting_ease: float = constants.DEFAULT_STARTING_EASE
    min_ease: float = constants.DEFAULT_MIN_EASE
    hard_interval_factor: float = constants.DEFAULT_HARD_INTERVAL_FACTOR
    easy_bonus: float = constants.DEFAULT_EASY_BONUS
    use_fuzz: bool = constants.DEFAULT_USE_FUZZ
    interval_modifier: float = constants.DEFAULT_INTERVAL_MODIFIER

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("state_file", mode="before")
    @classmethod
    def resolve_state_file(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser().resolve()

    @field_validator("learning_steps", "relearning_steps", mode="before")
    @classmethod
    def split_steps(cls, v: Any) -> Any:
        # "1,10" from CLI overrides; env values are JSON lists
        if isinstance(v, str):
            return [int(part) for part in v.replace(" ", "").split(",") if part]
        if isinstance(v, int):
            return [v]
        return v

    @field_validator("learning_steps", "relearning_steps")
    @classmethod
    def positive_steps(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("at least one step is required")
        if any(step <= 0 for step in v):
            raise ValueError("steps must be positive minutes")
        return v

    @field_validator("graduating_interval", "easy_interval")
    @classmethod
    def at_least_one_day(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1 day")
        return v

    @field_validator(
        "min_ease", "starting_ease", "hard_interval_factor", "easy_bonus", "interval_modifier"
    )
    @classmethod
    def positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @model_validator(mode="after")
    def ease_bounds(self) -> "AppConfig":
        if self.starting_ease < self.min_ease:
            raise ValueError("starting_ease must not be below min_ease")
        return self

    def to_scheduler_settings(self) -> SchedulerSettings:
        return SchedulerSettings(
            learning_steps=tuple(self.learning_steps),
            relearning_steps=tuple(self.relearning_steps),
            graduating_interval=self.graduating_interval,
            easy_interval=self.easy_interval,
            starting_ease=self.starting_ease,
            min_ease=self.min_ease,
            hard_interval_factor=self.hard_interval_factor,
            easy_bonus=self.easy_bonus,
            use_fuzz=self.use_fuzz,
            interval_modifier=self.interval_modifier,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mneme/config.toml (if exists)
    3. Environment variables (MNEME_*)
    4. cli_overrides (passed from Typer)
    """
    # Typer passes None for options the user did not set.
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)

import random
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mnemos.domain import constants as c
from mnemos.domain.ability.config import AbilityConfig
from mnemos.domain.scheduling.config import SchedulerConfig, SessionConfig


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/mnemos/config.toml",
        Path.home() / ".mnemos.toml",
    ]


class AppConfig(BaseSettings):
    """
    Runtime configuration for mnemos.
    Supports loading from:
    1. Environment variables (MNEMOS_*)
    2. Config file (~/.config/mnemos/config.toml)
    3. Manual overrides (CLI / HTTP)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEMOS_",
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Scheduler tuning
    leech_threshold: int = Field(default=c.LEECH_THRESHOLD, gt=0)
    graduation_interval: float = Field(default=c.GRADUATION_INTERVAL, gt=0)
    max_interval: float = Field(default=c.MAX_INTERVAL, ge=1)
    fuzz_min: float = c.FUZZ_RANGE[0]
    fuzz_max: float = c.FUZZ_RANGE[1]
    seed: int | None = None

    # Ability estimation
    ability_window_days: int = Field(default=c.ABILITY_WINDOW_DAYS, gt=0)
    ability_max_records: int = Field(default=c.ABILITY_MAX_RECORDS, gt=0)

    # Sessions
    default_item_minutes: float = Field(default=c.DEFAULT_ITEM_MINUTES, gt=0)
    session_minutes: float = Field(default=c.DEFAULT_SESSION_MINUTES, ge=0)

    # Server
    host: str = "127.0.0.1"
    port: int = 8777

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

        # Find the first existing file
        toml_file = None
        for f in config_files():
            if f.exists():
                toml_file = f
                break

        # Later sources lose: overrides beat env, env beats the file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def check_fuzz_range(self) -> "AppConfig":
        if self.fuzz_min > self.fuzz_max:
            raise ValueError(f"fuzz_min ({self.fuzz_min}) exceeds fuzz_max ({self.fuzz_max})")
        if self.fuzz_min <= 0:
            raise ValueError("fuzz_min must be positive")
        return self

    def scheduler_config(self) -> SchedulerConfig:
        return SchedulerConfig(
            leech_threshold=self.leech_threshold,
            graduation_interval=self.graduation_interval,
            max_interval=self.max_interval,
            fuzz_range=(self.fuzz_min, self.fuzz_max),
        )

    def ability_config(self) -> AbilityConfig:
        return AbilityConfig(
            window_days=self.ability_window_days,
            max_records=self.ability_max_records,
        )

    def session_config(self) -> SessionConfig:
        return SessionConfig(default_item_minutes=self.default_item_minutes)

    def rng(self) -> random.Random:
        """Seeded RNG for replayable runs, system RNG otherwise."""
        if self.seed is not None:
            return random.Random(self.seed)
        return random.SystemRandom()


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mnemos/config.toml (if exists)
    3. Environment variables (MNEMOS_*)
    4. overrides (passed from Typer or the HTTP layer), None values ignored
    """
    cleaned = {k: v for k, v in (overrides or {}).items() if v is not None}
    return AppConfig(**cleaned)

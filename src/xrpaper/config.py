"""Configuration models and loading logic."""

from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_SETTINGS_FILE = Path("configs/settings.yaml")
SETTINGS_FILE_ENV = "XRPAPER_SETTINGS_FILE"


class ProjectConfig(BaseModel):
    """Project metadata settings."""

    name: str = "xrpaper"
    env: str = "dev"


class PathsConfig(BaseModel):
    """Filesystem paths for the local journal store, logs and reports."""

    data_root: Path = Path("./data")
    logs_root: Path = Path("./logs")
    reports_root: Path = Path("./artifacts/reports")
    database_file: Path = Path("./data/xrpaper.duckdb")
    session_file: Path = Path("./data/session.json")

    def resolved(self, project_root: Path) -> "PathsConfig":
        """Return a copy with project-relative paths resolved to absolute paths."""

        updates: dict[str, Path] = {}
        for field_name in type(self).model_fields:
            value = getattr(self, field_name)
            updates[field_name] = value if value.is_absolute() else (project_root / value).resolve()
        return self.model_copy(update=updates)


class LoggingConfig(BaseModel):
    """Log level and file name under ``paths.logs_root``."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    file_name: str = "xrpaper.log"


class AuthConfig(BaseModel):
    """Single local account used by the bundled auth provider."""

    user_id: str = "local-user"
    email: str | None = None
    password: SecretStr | None = None
    start_signed_in: bool = True


class LevelsConfig(BaseModel):
    """Defaults for level entry and study filters."""

    default_symbol: str = "BTCUSDT"
    default_timeframe: Literal["1m", "5m", "15m", "30m", "1h", "4h", "1d", "1w", "1mo", "1y"] = "5m"


class ScoreMoodConfig(BaseModel):
    """Thresholds for the additive mood score (0-4)."""

    favorable_min_score: int = Field(default=3, ge=0, le=4)
    unfavorable_max_score: int = Field(default=1, ge=0, le=4)

    @model_validator(mode="after")
    def _check_order(self) -> "ScoreMoodConfig":
        if self.unfavorable_max_score >= self.favorable_min_score:
            raise ValueError("unfavorable_max_score must be lower than favorable_min_score")
        return self


class AtrBandMoodConfig(BaseModel):
    """ATR% bands and RSI-K momentum band for the volatility mood policy."""

    favorable_min_atr_pct: float = Field(default=1.0, ge=0.0)
    unfavorable_max_atr_pct: float = Field(default=0.5, ge=0.0)
    rsi_k_band_low: float = Field(default=50.0, ge=0.0, le=100.0)
    rsi_k_band_high: float = Field(default=80.0, ge=0.0, le=100.0)

    @model_validator(mode="after")
    def _check_bands(self) -> "AtrBandMoodConfig":
        if self.unfavorable_max_atr_pct > self.favorable_min_atr_pct:
            raise ValueError("unfavorable_max_atr_pct must not exceed favorable_min_atr_pct")
        if self.rsi_k_band_low > self.rsi_k_band_high:
            raise ValueError("rsi_k_band_low must not exceed rsi_k_band_high")
        return self


class SignalsConfig(BaseModel):
    """Mood policy selection and thresholds."""

    mood_policy: Literal["score", "atr_band"] = "score"
    score: ScoreMoodConfig = Field(default_factory=ScoreMoodConfig)
    atr_band: AtrBandMoodConfig = Field(default_factory=AtrBandMoodConfig)


class AppSettings(BaseSettings):
    """Top-level application settings."""

    _yaml_file_override: ClassVar[Path | None] = None

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    levels: LevelsConfig = Field(default_factory=LevelsConfig)
    signals: SignalsConfig = Field(default_factory=SignalsConfig)

    model_config = SettingsConfigDict(
        env_prefix="XRPAPER_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Use YAML defaults while allowing env vars to override values."""

        yaml_file = resolve_settings_file(cls._yaml_file_override)
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )

    def as_dict(self) -> dict[str, object]:
        """Return settings as a standard nested dictionary."""

        return self.model_dump(mode="json")


def find_project_root(start: Path | None = None) -> Path:
    """Locate the project root by traversing upward for config markers."""

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / "configs/settings.yaml").exists():
            return candidate
    return current


def resolve_settings_file(override: Path | None = None) -> Path:
    """Resolve settings file from explicit override, env var, or default."""

    chosen = override
    if chosen is None:
        env_value = os.getenv(SETTINGS_FILE_ENV)
        if env_value:
            chosen = Path(env_value)
    if chosen is None:
        chosen = DEFAULT_SETTINGS_FILE

    if not chosen.is_absolute():
        chosen = (find_project_root() / chosen).resolve()
    return chosen


def load_settings(config_file: Path | None = None) -> AppSettings:
    """Load settings with YAML defaults and environment variable overrides."""

    settings_file = resolve_settings_file(config_file)
    project_root = settings_file.parent.parent.resolve()
    AppSettings._yaml_file_override = settings_file
    try:
        settings = AppSettings()
    finally:
        AppSettings._yaml_file_override = None
    resolved_paths = settings.paths.resolved(project_root=project_root)
    return settings.model_copy(update={"paths": resolved_paths})

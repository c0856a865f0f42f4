from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class HistogramConfig(BaseModel):
    """Histogram layout. Defaults cover real-time factors from 0x to 2x."""

    num_bins: int = Field(200, description="Number of equal-width bins")
    range_min: float = Field(0.0, description="Lower edge of the first bin")
    range_max: float = Field(2.0, description="Upper edge of the last bin (inclusive)")


class WindowConfig(BaseModel):
    capacity: int = Field(250, description="Number of recent samples kept for the trend view")


class ClockSourceConfig(BaseModel):
    kind: Literal["file", "http"] = Field(
        "file", description="Where (simTime, realTime) pairs come from"
    )
    path: str = Field("-", description="CSV file of sim,real lines; '-' reads stdin")
    url: Optional[str] = Field(None, description="Endpoint returning {'sim': .., 'real': ..}")
    poll_interval_sec: float = 0.1
    network_timeout_sec: int = 10
    max_retries: int = 5
    backoff_base_sec: float = 0.5
    backoff_cap_sec: float = 10.0


class RuntimeConfig(BaseModel):
    histogram: HistogramConfig = Field(default_factory=HistogramConfig)
    window: WindowConfig = Field(default_factory=WindowConfig)
    clock: ClockSourceConfig = Field(default_factory=ClockSourceConfig)
    report_interval_sec: float = Field(1.0, description="Cadence of the status line")


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    LOG_LEVEL: str = "INFO"
    CLOCK_URL: Optional[str] = None


class AppConfig(BaseModel):
    env: EnvSettings
    runtime: RuntimeConfig

    @staticmethod
    def load(config_path: Optional[Path] = None) -> "AppConfig":
        env = EnvSettings()  # loads from environment and .env

        runtime = RuntimeConfig()
        if config_path is None:
            default_path = Path("config.yaml")
            config_path = default_path if default_path.exists() else None

        if config_path and Path(config_path).exists():
            with open(config_path, "r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            try:
                runtime = RuntimeConfig(**raw)
            except ValidationError as ve:
                raise ValueError(f"Invalid {config_path}: {ve}")
        elif config_path:
            raise ValueError(f"Config file not found: {config_path}")

        if env.CLOCK_URL and runtime.clock.url is None:
            runtime.clock.url = env.CLOCK_URL
            # an explicit kind in the YAML wins over the environment
            if "kind" not in runtime.clock.model_fields_set:
                runtime.clock.kind = "http"
        return AppConfig(env=env, runtime=runtime)


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load merged configuration from environment and optional YAML."""

    return AppConfig.load(config_path)

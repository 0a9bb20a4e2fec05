"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DetectorConfig(BaseModel):
    """Error detection configuration."""

    context_lines: int = Field(10, ge=0, le=100, description="Lines of context around the error")
    dedup_window: float = Field(2.0, gt=0.0, le=60.0, description="Duplicate suppression window in seconds")
    supported_languages: set[str] = {
        "javascript",
        "typescript",
        "javascriptreact",
        "typescriptreact",
    }
    fallback_language: str = "javascript"
    unknown_file: str = "unknown"
    read_timeout: float = Field(10.0, gt=0.0)

    @field_validator("supported_languages")
    @classmethod
    def validate_supported_languages(cls, v: set[str]) -> set[str]:
        """Require at least one language id."""
        if not v:
            raise ValueError("supported_languages must not be empty")
        return v


class TrackerConfig(BaseModel):
    """Fix tracking configuration."""

    diagnostics_settle_delay: float = Field(0.5, ge=0.0, le=30.0)
    content_settle_delay: float = Field(1.5, ge=0.0, le=60.0)
    snapshot_timeout: float = Field(10.0, gt=0.0)

    @model_validator(mode="after")
    def check_delay_order(self) -> "TrackerConfig":
        """The content path is the slow fallback behind the diagnostics path."""
        if self.content_settle_delay < self.diagnostics_settle_delay:
            raise ValueError(
                "content_settle_delay must not be shorter than diagnostics_settle_delay "
                f"({self.content_settle_delay} < {self.diagnostics_settle_delay})"
            )
        return self


class CorrelationConfig(BaseModel):
    """Error-to-fix correlation configuration."""

    auto_track: bool = False


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("fixtrace.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    file: FileLoggingConfig = FileLoggingConfig()


class RuntimeConfig(BaseModel):
    """Runtime configuration."""

    shutdown_timeout: float = Field(5.0, gt=0.0, le=120.0, description="Seconds to wait for in-flight reads")


class FixTraceConfig(BaseSettings):
    """Root configuration for fixtrace."""

    detector: DetectorConfig = DetectorConfig()
    tracker: TrackerConfig = TrackerConfig()
    correlation: CorrelationConfig = CorrelationConfig()
    logging: LoggingConfig = LoggingConfig()
    runtime: RuntimeConfig = RuntimeConfig()

    model_config = SettingsConfigDict(
        env_prefix="FIXTRACE_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

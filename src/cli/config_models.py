"""Pydantic configuration models for reflect."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class PathsConfig(BaseModel):
    """File paths configuration."""

    data_dir: Path = Path("~/.claude-reflect")
    profile: Path = Path("~/.claude-reflect/profile.json")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.data_dir = self.data_dir.expanduser()
        self.profile = self.profile.expanduser()
        return self


class MemoryConfig(BaseModel):
    """Memory service (worker API + local database) configuration."""

    host: str = "127.0.0.1"
    port: int = 37777
    data_dir: Path = Path("~/.claude-mem")
    settings_path: Path = Path("~/.claude-mem/settings.json")
    timeout: float = 2.0

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port must be 1-65535, got {v}")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout must be positive, got {v}")
        return v

    @model_validator(mode="after")
    def expand_paths(self):
        self.data_dir = self.data_dir.expanduser()
        self.settings_path = self.settings_path.expanduser()
        return self


class GitConfig(BaseModel):
    """Git history reading."""

    history_limit: int = 1000

    @field_validator("history_limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"history_limit must be >= 1, got {v}")
        return v


class AggregationConfig(BaseModel):
    """Project aggregation thresholds."""

    sample_threshold: int = 200
    core_file_count: int = 10

    @field_validator("sample_threshold", "core_file_count")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be >= 1, got {v}")
        return v


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    json_output: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class ReflectConfig(BaseModel):
    """Main configuration model."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "ReflectConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")

"""Pydantic models for decoder, loader and fetcher options."""

from enum import Enum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator


class DroppedPolicy(str, Enum):
    """What to do with a realtime substructure that is treated as absent."""

    IGNORE = "ignore"
    LOG = "log"
    COLLECT = "collect"
    RAISE = "raise"


class DecodeOptions(BaseModel):
    """Options for decoding a GTFS-realtime buffer."""

    model_config = ConfigDict(frozen=True)

    max_buffer_bytes: int | None = Field(default=64 * 1024 * 1024, ge=1)
    max_depth: int = Field(default=32, ge=1, le=100)
    dropped_policy: DroppedPolicy = DroppedPolicy.LOG
    profile: bool = False


class LoaderOptions(BaseModel):
    """Options for loading and validating a static GTFS table set."""

    model_config = ConfigDict(frozen=True)

    strict_enums: bool = True
    max_rows_per_table: int | None = Field(default=None, ge=1)
    require_shapes: bool = False
    profile: bool = False


class RetryConfig(BaseModel):
    """Configuration for retry behavior on transient failures."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    backoff_base: float = Field(default=1.0, ge=0.1, le=10.0)
    backoff_max: float = Field(default=10.0, ge=1.0, le=60.0)


class FeedSource(BaseModel):
    """A realtime feed endpoint to fetch."""

    url: HttpUrl
    name: str | None = None
    timeout_seconds: int = Field(default=30, ge=1, le=120)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    headers: dict[str, str] = Field(default_factory=dict)
    query: dict[str, str] = Field(default_factory=dict)


class OptionsFile(BaseModel):
    """Schema for an options YAML file."""

    decode: DecodeOptions = Field(default_factory=DecodeOptions)
    load: LoaderOptions = Field(default_factory=LoaderOptions)
    sources: Annotated[list[FeedSource], Field(default_factory=list)]

    @model_validator(mode="after")
    def validate_unique_source_names(self) -> Self:
        """Ensure named sources do not collide."""
        names = [s.name for s in self.sources if s.name]
        if len(names) != len(set(names)):
            raise ValueError("Source names must be unique")
        return self

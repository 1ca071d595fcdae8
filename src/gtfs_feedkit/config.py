"""Configuration loading and settings for gtfs-feedkit."""

from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gtfs_feedkit.models import (
    DecodeOptions,
    DroppedPolicy,
    FeedSource,
    LoaderOptions,
    OptionsFile,
)


def load_options_file(path: Path) -> OptionsFile:
    """Load and parse an options YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed OptionsFile. An empty file yields all defaults.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If the options are invalid.
    """
    with path.open() as f:
        raw_config = yaml.safe_load(f)

    return OptionsFile.model_validate(raw_config or {})


def find_source(options: OptionsFile, name: str) -> FeedSource | None:
    """Look up a named feed source."""
    for source in options.sources:
        if source.name == name:
            return source
    return None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=True,
    )

    options_path: Path | None = Field(
        default=None,
        validation_alias="GTFS_OPTIONS_PATH",
        description="Optional YAML file with decode/load options and feed sources",
    )

    # Guards
    max_buffer_bytes: int | None = Field(
        default=None,
        ge=1,
        validation_alias="GTFS_RT_MAX_BUFFER_BYTES",
        description="Reject realtime buffers larger than this many bytes",
    )
    max_rows_per_table: int | None = Field(
        default=None,
        ge=1,
        validation_alias="GTFS_MAX_ROWS_PER_TABLE",
        description="Reject static tables with more rows than this",
    )

    # Behaviour
    strict_enums: bool | None = Field(
        default=None,
        validation_alias="GTFS_STRICT_ENUMS",
        description="Report unknown enum codes as violations",
    )
    dropped_policy: DroppedPolicy | None = Field(
        default=None,
        validation_alias="GTFS_RT_DROPPED_POLICY",
        description="ignore, log, collect or raise for degraded realtime substructures",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="text",
        validation_alias="LOG_FORMAT",
        description="Log output format (json or text)",
    )
    profile: bool = Field(
        default=False,
        validation_alias="GTFS_PROFILE",
        description="Log per-stage timings",
    )

    def load_options(self) -> OptionsFile:
        """Resolve options: environment overrides > options file > defaults."""
        if self.options_path is not None:
            options = load_options_file(self.options_path)
        else:
            options = OptionsFile()

        decode_overrides: dict[str, object] = {}
        if self.max_buffer_bytes is not None:
            decode_overrides["max_buffer_bytes"] = self.max_buffer_bytes
        if self.dropped_policy is not None:
            decode_overrides["dropped_policy"] = self.dropped_policy
        if self.profile:
            decode_overrides["profile"] = True

        load_overrides: dict[str, object] = {}
        if self.max_rows_per_table is not None:
            load_overrides["max_rows_per_table"] = self.max_rows_per_table
        if self.strict_enums is not None:
            load_overrides["strict_enums"] = self.strict_enums
        if self.profile:
            load_overrides["profile"] = True

        return options.model_copy(
            update={
                "decode": options.decode.model_copy(update=decode_overrides),
                "load": options.load.model_copy(update=load_overrides),
            }
        )

    def decode_options(self) -> DecodeOptions:
        return self.load_options().decode

    def loader_options(self) -> LoaderOptions:
        return self.load_options().load

"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from gtfs_feedkit.config import Settings, find_source, load_options_file
from gtfs_feedkit.models import DroppedPolicy, OptionsFile


class TestLoadOptionsFile:
    """Tests for options file loading."""

    def test_load_valid_file(self, sample_options_file: Path) -> None:
        """Test loading a valid options file."""
        options = load_options_file(sample_options_file)

        assert options.decode.max_buffer_bytes == 1048576
        assert options.decode.max_depth == 16
        assert options.decode.dropped_policy is DroppedPolicy.COLLECT
        assert options.load.strict_enums is False
        assert options.load.require_shapes is True
        assert len(options.sources) == 2
        assert options.sources[0].headers == {"x-api-key": "secret"}

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        """Test an empty file yields default options."""
        empty = tmp_path / "options.yaml"
        empty.write_text("")
        assert load_options_file(empty) == OptionsFile()

    def test_file_not_found(self, tmp_path: Path) -> None:
        """Test loading non-existent file raises error."""
        with pytest.raises(FileNotFoundError):
            load_options_file(tmp_path / "nonexistent.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test loading invalid YAML raises error."""
        invalid_file = tmp_path / "invalid.yaml"
        invalid_file.write_text("decode: [unclosed")
        with pytest.raises(yaml.YAMLError):
            load_options_file(invalid_file)

    def test_invalid_policy(self, tmp_path: Path) -> None:
        """Test an unknown dropped policy is rejected."""
        bad = tmp_path / "options.yaml"
        bad.write_text("decode:\n  dropped_policy: shrug\n")
        with pytest.raises(ValidationError):
            load_options_file(bad)

    def test_find_source(self, sample_options_file: Path) -> None:
        """Test looking up sources by name."""
        options = load_options_file(sample_options_file)
        source = find_source(options, "vehicles")
        assert source is not None
        assert source.query == {"api_key": "abc123"}
        assert find_source(options, "unknown") is None


class TestSettings:
    """Tests for Settings class."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default settings values."""
        for name in ("GTFS_OPTIONS_PATH", "GTFS_PROFILE", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()
        assert settings.options_path is None
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"
        assert settings.profile is False
        assert settings.load_options() == OptionsFile()

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment variables override defaults."""
        monkeypatch.setenv("GTFS_RT_MAX_BUFFER_BYTES", "2048")
        monkeypatch.setenv("GTFS_RT_DROPPED_POLICY", "raise")
        monkeypatch.setenv("GTFS_MAX_ROWS_PER_TABLE", "10")
        monkeypatch.setenv("GTFS_STRICT_ENUMS", "false")
        monkeypatch.setenv("GTFS_PROFILE", "1")

        settings = Settings()

        decode = settings.decode_options()
        assert decode.max_buffer_bytes == 2048
        assert decode.dropped_policy is DroppedPolicy.RAISE
        assert decode.profile is True
        load = settings.loader_options()
        assert load.max_rows_per_table == 10
        assert load.strict_enums is False
        assert load.profile is True

    @pytest.mark.parametrize("value", ["0", "false", "FALSE"])
    def test_profile_off_values(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        """Test the values that leave profiling disabled."""
        monkeypatch.setenv("GTFS_PROFILE", value)
        assert Settings().profile is False

    def test_env_over_file(
        self, monkeypatch: pytest.MonkeyPatch, sample_options_file: Path
    ) -> None:
        """Test environment overrides win over the options file."""
        monkeypatch.setenv("GTFS_OPTIONS_PATH", str(sample_options_file))
        monkeypatch.setenv("GTFS_RT_DROPPED_POLICY", "ignore")

        options = Settings().load_options()

        assert options.decode.dropped_policy is DroppedPolicy.IGNORE
        assert options.decode.max_depth == 16
        assert options.load.require_shapes is True
        assert len(options.sources) == 2

    def test_invalid_limit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test non-positive limits are rejected."""
        monkeypatch.setenv("GTFS_MAX_ROWS_PER_TABLE", "0")
        with pytest.raises(ValidationError):
            Settings()

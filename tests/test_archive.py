"""Tests for reading static GTFS archives."""

import zipfile
from pathlib import Path
from typing import TypeAlias

import pytest

from gtfs_feedkit.archive import read_archive, read_zip
from gtfs_feedkit.static.loader import load_feed

Tables: TypeAlias = dict[str, list[dict[str, str]]]


def to_csv(rows: list[dict[str, str]]) -> str:
    """Render rows as CSV text with a header drawn from every row's keys."""
    columns: list[str] = []
    for row in rows:
        columns.extend(c for c in row if c not in columns)
    lines = [",".join(columns)]
    lines.extend(",".join(row.get(c, "") for c in columns) for row in rows)
    return "\r\n".join(lines) + "\r\n"


def write_zip(path: Path, tables: Tables, prefix: str = "") -> Path:
    """Write tables into a ZIP archive, optionally under a folder."""
    with zipfile.ZipFile(path, "w") as zf:
        for name, rows in tables.items():
            zf.writestr(f"{prefix}{name}.txt", to_csv(rows))
    return path


class TestReadZip:
    """Tests for ZIP archives."""

    def test_round_trip_through_loader(self, tmp_path: Path, static_tables: Tables) -> None:
        """Test a zipped feed loads into the same Feed as the raw rows."""
        archive = write_zip(tmp_path / "gtfs.zip", static_tables)
        assert load_feed(read_archive(archive)) == load_feed(static_tables)

    def test_nested_folder(self, tmp_path: Path, static_tables: Tables) -> None:
        """Test tables inside a single top-level folder are found."""
        archive = write_zip(tmp_path / "gtfs.zip", static_tables, prefix="feed/")
        tables = read_archive(archive)
        assert sorted(tables) == sorted(static_tables)

    def test_bytes_source(self, tmp_path: Path, static_tables: Tables) -> None:
        """Test reading an archive held in memory."""
        archive = write_zip(tmp_path / "gtfs.zip", static_tables)
        tables = read_zip(archive.read_bytes())
        assert tables["agency"][0]["agency_name"] == "Test Transit"

    def test_bom_and_header_whitespace(self, tmp_path: Path) -> None:
        """Test a UTF-8 byte order mark and padded headers are normalized."""
        archive = tmp_path / "gtfs.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("agency.txt", "\ufeffagency_id, agency_name\r\nA1,Tränsit\r\n".encode())
            zf.writestr("notes.md", "ignored")
        tables = read_archive(archive)
        assert tables == {"agency": [{"agency_id": "A1", "agency_name": "Tränsit"}]}

    def test_not_a_zip(self, tmp_path: Path) -> None:
        """Test a non-archive file is rejected."""
        bogus = tmp_path / "gtfs.zip"
        bogus.write_text("not a zip")
        with pytest.raises(zipfile.BadZipFile):
            read_archive(bogus)

    def test_missing_path(self, tmp_path: Path) -> None:
        """Test a missing path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_archive(tmp_path / "absent.zip")


class TestReadDirectory:
    """Tests for extracted directories."""

    def test_directory(self, tmp_path: Path, static_tables: Tables) -> None:
        """Test reading *.txt files from a directory."""
        for name, rows in static_tables.items():
            (tmp_path / f"{name}.txt").write_text(to_csv(rows), newline="")
        tables = read_archive(str(tmp_path))
        assert sorted(tables) == sorted(static_tables)
        assert len(tables["stop_times"]) == 5

    def test_nested_directory(self, tmp_path: Path, static_tables: Tables) -> None:
        """Test a single nested feed folder is used as the root."""
        root = tmp_path / "google_transit"
        root.mkdir()
        for name, rows in static_tables.items():
            (root / f"{name}.txt").write_text(to_csv(rows), newline="")
        assert "stops" in read_archive(tmp_path)

"""Tokenize a static GTFS archive into the row mappings the loader consumes.

Accepts a ZIP file on disk, ZIP bytes held in memory, or an extracted
directory. Tables are keyed by name without the ".txt" suffix. Files nested
one directory deep (a common packaging mistake) are found as well.
"""

import csv
import io
import zipfile
from collections.abc import Iterable
from pathlib import Path, PurePosixPath
from typing import TypeAlias

from gtfs_feedkit.logging import get_logger

logger = get_logger(__name__)

Rows: TypeAlias = list[dict[str, str]]
TableSet: TypeAlias = dict[str, Rows]

TABLE_SUFFIX = ".txt"


def _read_rows(text_stream: Iterable[str]) -> Rows:
    reader = csv.DictReader(text_stream)
    if reader.fieldnames is not None:
        reader.fieldnames = [name.strip() for name in reader.fieldnames]
    # Surplus cells land under a None key; drop them
    return [{k: v for k, v in row.items() if k is not None} for row in reader]


def _decode(raw: bytes) -> io.StringIO:
    # utf-8-sig drops the byte order mark many producers emit
    return io.StringIO(raw.decode("utf-8-sig"), newline="")


def _feed_root(names: Iterable[PurePosixPath]) -> PurePosixPath:
    """Directory holding agency.txt, or the archive root."""
    for name in names:
        if name.name == "agency.txt" and len(name.parts) <= 2:
            return name.parent
    return PurePosixPath(".")


def read_zip(source: Path | bytes) -> TableSet:
    """Read every table of a GTFS ZIP archive.

    Args:
        source: Path to the archive, or its raw bytes.

    Returns:
        Mapping of table name to rows.

    Raises:
        zipfile.BadZipFile: If the source is not a ZIP archive.
        UnicodeDecodeError: If a table is not UTF-8.
    """
    handle = io.BytesIO(source) if isinstance(source, bytes) else source
    tables: TableSet = {}
    with zipfile.ZipFile(handle) as zf:
        members = {
            PurePosixPath(info.filename): info
            for info in zf.infolist()
            if not info.is_dir()
        }
        root = _feed_root(members)
        for path, info in members.items():
            if path.parent != root or path.suffix != TABLE_SUFFIX:
                continue
            tables[path.stem] = _read_rows(_decode(zf.read(info)))

    logger.debug(
        "archive_read",
        source="<bytes>" if isinstance(source, bytes) else str(source),
        tables=sorted(tables),
    )
    return tables


def read_directory(path: Path) -> TableSet:
    """Read every `*.txt` table of an extracted GTFS directory."""
    root = path
    if not (root / "agency.txt").is_file():
        nested = [p.parent for p in path.glob("*/agency.txt")]
        if len(nested) == 1:
            root = nested[0]

    tables: TableSet = {}
    for table_path in sorted(root.glob(f"*{TABLE_SUFFIX}")):
        tables[table_path.stem] = _read_rows(_decode(table_path.read_bytes()))
    logger.debug("archive_read", source=str(path), tables=sorted(tables))
    return tables


def read_archive(path: Path | str) -> TableSet:
    """Read a GTFS archive from a ZIP file or a directory.

    Raises:
        FileNotFoundError: If the path does not exist.
    """
    path = Path(path)
    if path.is_dir():
        return read_directory(path)
    if not path.exists():
        raise FileNotFoundError(f"GTFS archive not found: {path}")
    return read_zip(path)

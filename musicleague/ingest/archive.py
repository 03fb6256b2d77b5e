"""
musicleague/ingest/archive.py
=============================
Safe loading of league archives (ZIP files of CSV tables).

Archives are community-uploaded and untrusted. Before any entry is
decompressed, the entry list is checked against:
1. Entry count limit
2. Absolute paths and `..` segments (zip-slip), even though nothing is ever
   written to disk: the same names become in-memory keys
3. `.csv` extension only
4. Declared uncompressed size per entry and in total

Usage:
    from musicleague.ingest.archive import ArchiveLimits, read_archive

    files = read_archive(payload, ArchiveLimits())
    for name, text in files.items():
        ...
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
import zlib
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from musicleague.core.errors import ArchiveValidationError, ErrorKind

logger = logging.getLogger(__name__)

MB = 1024 * 1024

_DRIVE_LETTER = re.compile(r"^[a-zA-Z]:[\\/]")
_CSV_SUFFIX = re.compile(r"\.csv$", re.IGNORECASE)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True, slots=True)
class ArchiveLimits:
    """Resource limits applied to one archive."""

    max_archive_bytes: int = 50 * MB
    max_entries: int = 100
    max_entry_bytes: int = 20 * MB
    max_total_bytes: int = 200 * MB


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """Entry metadata as declared by the archive's central directory."""

    name: str
    uncompressed_size: Optional[int] = None


# =============================================================================
# Validation
# =============================================================================


def check_payload_size(size: int, limits: ArchiveLimits, file_name: Optional[str] = None) -> None:
    """Reject a raw payload over the archive cap before decoding is attempted."""
    if size > limits.max_archive_bytes:
        raise ArchiveValidationError(
            ErrorKind.ARCHIVE_TOO_LARGE,
            f"ZIP file too large ({size / MB:.1f} MB, limit {limits.max_archive_bytes / MB:.0f} MB)",
            file_name,
        )


def validate_entry_name(name: str, file_name: Optional[str] = None) -> None:
    """
    Reject unsafe or non-CSV entry names.

    Raises:
        ArchiveValidationError: absolute_path, path_traversal or unsupported_file_type
    """
    if name.startswith("/") or name.startswith("\\") or _DRIVE_LETTER.match(name):
        raise ArchiveValidationError(
            ErrorKind.ABSOLUTE_PATH,
            f'Invalid entry name: absolute path "{name}"',
            file_name,
            entry_name=name,
        )

    components = name.replace("\\", "/").split("/")
    if ".." in components:
        raise ArchiveValidationError(
            ErrorKind.PATH_TRAVERSAL,
            f'Invalid entry name: path traversal "{name}"',
            file_name,
            entry_name=name,
        )

    if not _CSV_SUFFIX.search(name):
        raise ArchiveValidationError(
            ErrorKind.UNSUPPORTED_FILE_TYPE,
            f"Unsupported file type: {name}",
            file_name,
            entry_name=name,
        )


def validate_entries(
    entries: Iterable[ArchiveEntry],
    limits: ArchiveLimits = ArchiveLimits(),
    file_name: Optional[str] = None,
) -> list[ArchiveEntry]:
    """
    Validate an archive's entry list. Inspects metadata only.

    Entries without a declared size are not counted toward the size limits.

    Returns:
        The validated entries, in archive order

    Raises:
        ArchiveValidationError: On the first violation found
    """
    entries = list(entries)
    if len(entries) > limits.max_entries:
        raise ArchiveValidationError(
            ErrorKind.TOO_MANY_ENTRIES,
            f"ZIP contains too many files ({len(entries)}, limit {limits.max_entries})",
            file_name,
        )

    total = 0
    for entry in entries:
        validate_entry_name(entry.name, file_name)

        size = entry.uncompressed_size
        if size is None:
            continue
        if size > limits.max_entry_bytes:
            raise ArchiveValidationError(
                ErrorKind.FILE_TOO_LARGE,
                f"File too large: {entry.name} ({size / MB:.1f} MB)",
                file_name,
                entry_name=entry.name,
            )
        total += size
        if total > limits.max_total_bytes:
            raise ArchiveValidationError(
                ErrorKind.ARCHIVE_TOO_LARGE,
                "Archive expands to too much data",
                file_name,
                entry_name=entry.name,
            )

    return entries


# =============================================================================
# Reading
# =============================================================================


def read_archive(
    payload: bytes,
    limits: ArchiveLimits = ArchiveLimits(),
    file_name: Optional[str] = None,
) -> Dict[str, str]:
    """
    Validate and decode a ZIP payload into {entry name: CSV text}.

    Entry contents are only read after the whole entry list has passed
    validation. zipfile stops reading an entry at its declared size, so the
    declared-size limits also bound what is decompressed.

    Raises:
        ArchiveValidationError: On any size, name or format violation
    """
    check_payload_size(len(payload), limits, file_name)

    try:
        archive = zipfile.ZipFile(io.BytesIO(payload))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError) as e:
        raise ArchiveValidationError(
            ErrorKind.INVALID_ARCHIVE, f"Not a readable ZIP archive: {e}", file_name
        ) from e

    with archive:
        infos = archive.infolist()
        validate_entries(
            (ArchiveEntry(info.filename, info.file_size) for info in infos),
            limits,
            file_name,
        )

        files: Dict[str, str] = {}
        for info in infos:
            try:
                raw = archive.read(info)
            except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError) as e:
                raise ArchiveValidationError(
                    ErrorKind.INVALID_ARCHIVE,
                    f"Could not read entry {info.filename}: {e}",
                    file_name,
                    entry_name=info.filename,
                ) from e
            files[info.filename] = raw.decode("utf-8-sig", errors="replace")

    logger.debug("[archive] Read %d entries", len(files), extra={"count": len(files)})
    return files

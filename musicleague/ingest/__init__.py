"""
Ingest Module - archive bytes to typed table rows.

Components:
    - archive: ZIP validation and decoding (untrusted input)
    - tables: CSV parsing into Competitor/RoundDefinition/SubmissionRecord/VoteRecord

Usage:
    from musicleague.ingest import read_archive, parse_archive_tables
"""

from musicleague.ingest.archive import (
    ArchiveEntry,
    ArchiveLimits,
    check_payload_size,
    read_archive,
    validate_entries,
    validate_entry_name,
)
from musicleague.ingest.tables import (
    ParsedTables,
    ParseResult,
    TableKind,
    classify_entry,
    parse_archive_tables,
    parse_points,
    parse_table,
)

__all__ = [
    "ArchiveEntry",
    "ArchiveLimits",
    "check_payload_size",
    "read_archive",
    "validate_entries",
    "validate_entry_name",
    "ParsedTables",
    "ParseResult",
    "TableKind",
    "classify_entry",
    "parse_archive_tables",
    "parse_points",
    "parse_table",
]

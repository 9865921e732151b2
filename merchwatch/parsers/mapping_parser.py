"""
merchwatch/parsers/mapping_parser.py
Parses PID → designer / merchandiser dump tables (CSV, RFC4180 quoting).

Header names are matched case-insensitively. Each logical field has an
ordered list of candidate column names; the first one present in the
header wins. Rows without a standalone 6-digit PID are dropped silently.
First-seen entry per PID wins, both within a table and across tables.
"""

import csv
import io
import logging
import re
from typing import Dict, Iterable, List, Optional

from merchwatch.models.record import MappingEntry

logger = logging.getLogger(__name__)

BOM_UTF8 = b'\xef\xbb\xbf'

# Target name first, then accepted synonyms.
COLUMN_CANDIDATES: Dict[str, List[str]] = {
    'pid':      ['pid', 'product_id', 'productid'],
    'designer': ['designer_name', 'designer', 'designername'],
    'merch':    ['merch_name', 'merch', 'merchandiser', 'merchandisername'],
}

PID_CELL = re.compile(r'\b([0-9]{6})\b')


def decode_mapping_bytes(raw: bytes) -> str:
    """Decode a dump file: strips a UTF-8 BOM, replaces undecodable bytes."""
    if raw.startswith(BOM_UTF8):
        raw = raw[len(BOM_UTF8):]
    return raw.decode('utf-8', errors='replace')


def resolve_columns(header: List[str]) -> Dict[str, Optional[int]]:
    """Map each logical field to its column index in header (or None)."""
    normalized = [h.strip().lower() for h in header]
    resolved: Dict[str, Optional[int]] = {}
    for field_name, candidates in COLUMN_CANDIDATES.items():
        resolved[field_name] = next(
            (normalized.index(c) for c in candidates if c in normalized),
            None,
        )
    return resolved


def parse_mapping_csv(text: str) -> Dict[str, MappingEntry]:
    """
    Parse one dump table into {pid: MappingEntry}.
    Never raises on malformed content — returns what it could read.
    """
    mapping: Dict[str, MappingEntry] = {}
    content = (text or '').lstrip('\ufeff')
    if not content.strip():
        return mapping

    try:
        rows = list(csv.reader(io.StringIO(content, newline='')))
    except csv.Error as e:
        logger.warning(f"Mapping table is not valid CSV: {e}")
        return mapping

    rows = [r for r in rows if any(cell.strip() for cell in r)]
    if not rows:
        return mapping

    columns = resolve_columns(rows[0])
    pid_idx = columns['pid']
    if pid_idx is None:
        logger.warning(f"Mapping table has no PID column; header={rows[0][:8]}")
        return mapping

    dropped = 0
    for row in rows[1:]:
        m = PID_CELL.search(_cell(row, pid_idx))
        if not m:
            dropped += 1
            continue
        pid = m.group(1)
        if pid in mapping:
            continue
        mapping[pid] = MappingEntry(
            designer = _cell(row, columns['designer']),
            merch    = _cell(row, columns['merch']),
        )

    logger.debug(f"Mapping table: {len(mapping)} PIDs, {dropped} rows without PID")
    return mapping


def merge_mappings(tables: Iterable[Dict[str, MappingEntry]]) -> Dict[str, MappingEntry]:
    """Merge tables in load order. Earlier entries are never overwritten."""
    merged: Dict[str, MappingEntry] = {}
    for table in tables:
        for pid, entry in table.items():
            merged.setdefault(pid, entry)
    return merged


def _cell(row: List[str], idx: Optional[int]) -> str:
    if idx is None or idx >= len(row):
        return ''
    return row[idx].strip()

"""
merchwatch/mapping_store.py
Process-wide PID mapping table, loaded at most once.

Sources, in priority order (earliest entry for a PID wins):
  1. dump_*.csv files in mapping_dir (sorted by file name)
  2. mapping_urls — raw CSV fetched over HTTP(S), e.g. a repository raw link

The first caller triggers the load; concurrent callers wait on the same
Future instead of loading again. A failing source is logged and skipped.
If nothing could be read the table is empty, and the report proceeds with
blank designer / merchandiser fields. The result is never refreshed.
"""

import logging
import threading
import urllib.error
import urllib.request
from concurrent.futures import Future
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from merchwatch.models.record import MappingEntry
from merchwatch.parsers.mapping_parser import (
    decode_mapping_bytes,
    merge_mappings,
    parse_mapping_csv,
)

logger = logging.getLogger(__name__)

DEFAULT_GLOB = 'dump_*.csv'


def load_mapping_directory(directory: Path, pattern: str = DEFAULT_GLOB) -> List[Dict[str, MappingEntry]]:
    """Parse every matching table in directory. Unreadable files are skipped."""
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning(f"Mapping directory not found: {directory}")
        return []

    tables: List[Dict[str, MappingEntry]] = []
    for path in sorted(directory.glob(pattern)):
        try:
            table = parse_mapping_csv(decode_mapping_bytes(path.read_bytes()))
        except OSError as e:
            logger.error(f"Mapping file read error {path.name}: {e}")
            continue
        logger.info(f"Loaded {len(table)} PIDs from {path.name}")
        tables.append(table)
    return tables


def fetch_mapping_url(url: str, timeout_sec: int = 15) -> Dict[str, MappingEntry]:
    """Download and parse one remote table. Raises on network failure."""
    req = urllib.request.Request(url, method='GET', headers={'Accept': 'text/csv, text/plain'})
    with urllib.request.urlopen(req, timeout=timeout_sec) as resp:
        raw = resp.read()
    table = parse_mapping_csv(decode_mapping_bytes(raw))
    logger.info(f"Loaded {len(table)} PIDs from {url}")
    return table


class MappingStore:
    """
    Lazy, once-only mapping table.

    Usage:
        store   = MappingStore(mapping_dir=Path("data"))
        mapping = store.get()      # loads on first call, cached afterwards
    """

    def __init__(
        self,
        mapping_dir:  Optional[Path]   = None,
        mapping_urls: Sequence[str]    = (),
        pattern:      str              = DEFAULT_GLOB,
        timeout_sec:  int              = 15,
    ):
        self.mapping_dir  = Path(mapping_dir) if mapping_dir else None
        self.mapping_urls = list(mapping_urls or [])
        self.pattern      = pattern
        self.timeout_sec  = timeout_sec

        self._lock:   threading.Lock                              = threading.Lock()
        self._future: Optional["Future[Dict[str, MappingEntry]]"] = None

    @property
    def is_loaded(self) -> bool:
        future = self._future
        return future is not None and future.done()

    def get(self) -> Dict[str, MappingEntry]:
        """Return the mapping, loading it first if no caller has yet."""
        with self._lock:
            future = self._future
            owner  = future is None
            if owner:
                future = self._future = Future()

        if owner:
            try:
                mapping = self._load_all()
            except Exception as exc:
                logger.error(f"Mapping load error: {exc}", exc_info=True)
                mapping = {}
            future.set_result(mapping)

        return future.result()

    def _load_all(self) -> Dict[str, MappingEntry]:
        tables: List[Dict[str, MappingEntry]] = []

        if self.mapping_dir is not None:
            tables.extend(load_mapping_directory(self.mapping_dir, self.pattern))

        for url in self.mapping_urls:
            try:
                tables.append(fetch_mapping_url(url, self.timeout_sec))
            except (urllib.error.URLError, OSError, ValueError) as e:
                logger.error(f"Mapping fetch failed for {url}: {e}")

        mapping = merge_mappings(tables)
        if not mapping:
            logger.warning("Mapping table is empty; reports will have blank designer/merch")
        else:
            logger.info(f"Mapping ready: {len(mapping)} PIDs from {len(tables)} table(s)")
        return mapping

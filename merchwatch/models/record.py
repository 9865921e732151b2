"""
merchwatch/models/record.py
Shared dataclass schema. Parsers, detectors, classifiers and the report
assembler all use these types. Do not add logic here — data only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List


STATUS_CLOSED   = 'Closed'
STATUS_OPEN     = 'Open'
STATUS_BREACHED = 'Open — Breached'


@dataclass(frozen=True)
class ChatMessage:
    """One parsed chat line. timestamp is always in the fixed IST zone."""
    timestamp:  datetime
    sender:     str
    body:       str
    raw:        str = ''


@dataclass(frozen=True)
class MappingEntry:
    """Designer / merchandiser assigned to a PID. Both may be empty."""
    designer:   str = ''
    merch:      str = ''


@dataclass
class PidTimeline:
    """All post-cutoff messages mentioning one PID, oldest first."""
    pid:        str
    messages:   List[ChatMessage] = field(default_factory=list)


@dataclass
class ClassificationResult:
    """
    Output of one SLA policy for one PID.
    Each policy exports only its own subset of columns; unused fields stay ''.
    """
    pid:                str
    status:             str
    designer:           str = ''
    assigned_merch:     str = ''
    age_hhmm:           str = ''
    notes:              str = ''

    # Message-intent policy
    latest_cs_preview:  str = ''
    cs_ts_ist:          str = ''
    last_merch_preview: str = ''
    merch_ts_ist:       str = ''

    # Alternating-sender policy
    first_sender:       str = ''
    first_preview:      str = ''
    first_ts_ist:       str = ''
    next_sender:        str = ''
    next_preview:       str = ''
    next_ts_ist:        str = ''

    # Formatted timestamp used for ordering within a status tier
    sort_ts:            str = ''

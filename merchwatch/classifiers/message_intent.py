"""
merchwatch/classifiers/message_intent.py
Message-intent / assigned-merchandiser policy.

Every message in a PID timeline is tagged twice:
  - query-like         (cue keywords or a trailing '?')
  - from the assigned merchandiser (fuzzy name match against the mapping)

The PID is Open while the latest query has no later message from the
assigned merchandiser, and Open — Breached once that query is older than
the SLA. Timelines with no query at all are Closed. Every PID is reported.
"""

from datetime import datetime
from typing import Iterable, Optional

from merchwatch.classifiers.base import SlaPolicy
from merchwatch.detectors.intent_detector import (
    FUZZY_THRESHOLD,
    is_query_like,
    sender_matches_merch,
)
from merchwatch.models.record import (
    STATUS_BREACHED,
    STATUS_CLOSED,
    STATUS_OPEN,
    ClassificationResult,
    MappingEntry,
    PidTimeline,
)
from merchwatch.parsers.chat_parser import format_hhmm, format_ist


class MessageIntentPolicy(SlaPolicy):

    name                = 'message_intent'
    default_sla_minutes = 120
    columns = [
        'pid', 'designer', 'assigned_merch', 'status', 'age_hhmm',
        'latest_cs_preview', 'cs_ts_ist', 'last_merch_preview',
        'merch_ts_ist', 'notes',
    ]

    def __init__(
        self,
        preview_chars:   int                      = 160,
        query_cues:      Optional[Iterable[str]]  = None,
        fuzzy_threshold: float                    = FUZZY_THRESHOLD,
    ):
        super().__init__(preview_chars=preview_chars)
        self.query_cues      = list(query_cues) if query_cues is not None else None
        self.fuzzy_threshold = fuzzy_threshold

    def classify(
        self,
        timeline:    PidTimeline,
        entry:       MappingEntry,
        now:         datetime,
        sla_minutes: int,
    ) -> ClassificationResult:
        result = ClassificationResult(
            pid            = timeline.pid,
            status         = STATUS_CLOSED,
            designer       = entry.designer,
            assigned_merch = entry.merch,
        )

        newest_first    = list(reversed(timeline.messages))
        latest_query    = next(
            (m for m in newest_first if is_query_like(m.body, self.query_cues)),
            None,
        )
        latest_assigned = next(
            (m for m in newest_first
             if sender_matches_merch(m.sender, entry.merch, self.fuzzy_threshold)),
            None,
        )

        if latest_query is None:
            result.notes = 'no query found'
            return result

        result.latest_cs_preview = self.preview(latest_query.body)
        result.cs_ts_ist         = format_ist(latest_query.timestamp)
        result.sort_ts           = result.cs_ts_ist

        if latest_assigned is None or latest_assigned.timestamp <= latest_query.timestamp:
            age = now - latest_query.timestamp
            result.status   = STATUS_BREACHED if self.exceeds(age, sla_minutes) else STATUS_OPEN
            result.age_hhmm = format_hhmm(age)
            if not entry.merch:
                result.notes = 'no merchandiser mapped'
            elif latest_assigned is None:
                result.notes = 'no reply from assigned merchandiser'
            else:
                result.notes = 'no reply since latest query'
            return result

        result.last_merch_preview = self.preview(latest_assigned.body)
        result.merch_ts_ist       = format_ist(latest_assigned.timestamp)
        result.sort_ts            = result.merch_ts_ist
        return result

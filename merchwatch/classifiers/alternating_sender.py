"""
merchwatch/classifiers/alternating_sender.py
Alternating-sender policy.

Looks only at the first message mentioning a PID and the one right after it:

  no second message           → breached if the first has aged past the SLA
  second from another sender  → a reply; breached if it came after the SLA,
                                otherwise Closed
  second from the same sender → a follow-up, not a reply; breached if the
                                first has aged past the SLA

Only breached timelines are reported. Closed and still-fresh Open ones
are dropped.
"""

from datetime import datetime

from merchwatch.classifiers.base import SlaPolicy
from merchwatch.models.record import (
    STATUS_BREACHED,
    STATUS_CLOSED,
    STATUS_OPEN,
    ClassificationResult,
    MappingEntry,
    PidTimeline,
)
from merchwatch.parsers.chat_parser import format_hhmm, format_ist


class AlternatingSenderPolicy(SlaPolicy):

    name                = 'alternating_sender'
    default_sla_minutes = 60
    columns = [
        'pid', 'designer', 'assigned_merch', 'status', 'age_hhmm',
        'first_sender', 'first_preview', 'first_ts_ist',
        'next_sender', 'next_preview', 'next_ts_ist', 'notes',
    ]

    def classify(
        self,
        timeline:    PidTimeline,
        entry:       MappingEntry,
        now:         datetime,
        sla_minutes: int,
    ) -> ClassificationResult:
        first = timeline.messages[0]
        nxt   = timeline.messages[1] if len(timeline.messages) > 1 else None

        result = ClassificationResult(
            pid            = timeline.pid,
            status         = STATUS_OPEN,
            designer       = entry.designer,
            assigned_merch = entry.merch,
            first_sender   = first.sender,
            first_preview  = self.preview(first.body),
            first_ts_ist   = format_ist(first.timestamp),
            sort_ts        = format_ist(first.timestamp),
        )
        if nxt is not None:
            result.next_sender  = nxt.sender
            result.next_preview = self.preview(nxt.body)
            result.next_ts_ist  = format_ist(nxt.timestamp)

        if nxt is not None and nxt.sender != first.sender:
            gap = nxt.timestamp - first.timestamp
            if self.exceeds(gap, sla_minutes):
                result.status   = STATUS_BREACHED
                result.age_hhmm = format_hhmm(gap)
                result.notes    = 'reply after SLA'
            else:
                result.status = STATUS_CLOSED
                result.notes  = 'replied within SLA'
            return result

        age = now - first.timestamp
        result.notes = 'no reply' if nxt is None else 'follow-up from same sender'
        if self.exceeds(age, sla_minutes):
            result.status   = STATUS_BREACHED
            result.age_hhmm = format_hhmm(age)
        return result

    def include(self, result: ClassificationResult) -> bool:
        return result.status == STATUS_BREACHED

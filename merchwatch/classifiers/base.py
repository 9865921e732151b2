"""
merchwatch/classifiers/base.py
Abstract base class for SLA classification policies.
To add a new policy: subclass SlaPolicy, implement classify() and
register it in merchwatch/classifiers/__init__.py.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List

from merchwatch.models.record import (
    STATUS_BREACHED,
    STATUS_CLOSED,
    STATUS_OPEN,
    ClassificationResult,
    MappingEntry,
    PidTimeline,
)

STATUS_RANK = {
    STATUS_BREACHED: 0,
    STATUS_OPEN:     1,
    STATUS_CLOSED:   2,
}


class SlaPolicy(ABC):
    """
    One way of deciding whether a PID's conversation is still waiting on
    a response. The report assembler calls classify() per timeline, keeps
    results for which include() is True and orders them with order().
    The caller never knows which policy is running.
    """

    name:                str        = ''
    columns:             List[str]  = []
    default_sla_minutes: int        = 60

    def __init__(self, preview_chars: int = 160):
        self.preview_chars = preview_chars

    @abstractmethod
    def classify(
        self,
        timeline:    PidTimeline,
        entry:       MappingEntry,
        now:         datetime,
        sla_minutes: int,
    ) -> ClassificationResult:
        """Classify one non-empty timeline. Never raises on odd content."""
        ...

    def include(self, result: ClassificationResult) -> bool:
        """Whether a classified timeline belongs in the report."""
        return True

    def order(self, results: List[ClassificationResult]) -> List[ClassificationResult]:
        """
        Status tier first, then newest first within a tier. The formatted
        'YYYY-MM-DD HH:MM' strings compare the same way as the instants.
        """
        ranked = sorted(results, key=lambda r: r.sort_ts, reverse=True)
        ranked.sort(key=lambda r: STATUS_RANK.get(r.status, len(STATUS_RANK)))
        return ranked

    def preview(self, text: str) -> str:
        return (text or '')[:self.preview_chars]

    @staticmethod
    def exceeds(delta: timedelta, sla_minutes: int) -> bool:
        return delta > timedelta(minutes=sla_minutes)

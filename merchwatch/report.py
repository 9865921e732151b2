"""
merchwatch/report.py
Open-query report assembly.

Input: PID timelines (timeline builder), PID mapping (mapping store),
       one SLA policy.
Output: Report — ordered classification rows plus mapping coverage counts.
Nothing here is persisted; a report is rebuilt from scratch per request.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from merchwatch.classifiers.base import SlaPolicy
from merchwatch.models.record import ClassificationResult, MappingEntry, PidTimeline

EMPTY_ENTRY = MappingEntry()


@dataclass
class Report:
    policy:             str
    columns:            List[str]
    sla_minutes:        int
    rows:               List[ClassificationResult] = field(default_factory=list)
    pid_count:          int  = 0
    mapping_count:      int  = 0
    matched_pid_count:  int  = 0
    generated_at:       str  = ''


def build_report(
    timelines:   Dict[str, PidTimeline],
    mapping:     Dict[str, MappingEntry],
    policy:      SlaPolicy,
    sla_minutes: int,
    now:         Optional[datetime] = None,
) -> Report:
    """
    Classify every timeline, keep what the policy reports, order the rows.
    matched_pid_count counts PIDs with a non-empty designer or merchandiser.
    """
    now = now or datetime.now(timezone.utc)

    results: List[ClassificationResult] = []
    matched = 0
    for pid, timeline in timelines.items():
        if not timeline.messages:
            continue
        entry = mapping.get(pid, EMPTY_ENTRY)
        if entry.designer or entry.merch:
            matched += 1
        result = policy.classify(timeline, entry, now, sla_minutes)
        if policy.include(result):
            results.append(result)

    return Report(
        policy            = policy.name,
        columns           = list(policy.columns),
        sla_minutes       = sla_minutes,
        rows              = policy.order(results),
        pid_count         = len(timelines),
        mapping_count     = len(mapping),
        matched_pid_count = matched,
        generated_at      = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    )


def report_rows(report: Report) -> List[Dict[str, str]]:
    """Rows as plain dicts restricted to the policy's columns, in order."""
    return [
        {col: getattr(row, col) for col in report.columns}
        for row in report.rows
    ]


def report_to_dict(report: Report) -> Dict:
    """Convert Report to a JSON-serializable dict."""
    return {
        "policy":          report.policy,
        "columns":         list(report.columns),
        "sla_minutes":     report.sla_minutes,
        "rows":            report_rows(report),
        "pid_count":       report.pid_count,
        "mapping_count":   report.mapping_count,
        "matched_pid_count": report.matched_pid_count,
        "generated_at":    report.generated_at,
    }

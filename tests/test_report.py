"""
tests/test_report.py
Report assembly and CSV export.
"""

import csv
import io
from datetime import datetime, timedelta

from merchwatch.classifiers import AlternatingSenderPolicy, MessageIntentPolicy
from merchwatch.models.record import (
    STATUS_BREACHED,
    STATUS_CLOSED,
    ChatMessage,
    ClassificationResult,
    MappingEntry,
    PidTimeline,
)
from merchwatch.parsers.chat_parser import IST
from merchwatch.report import Report, build_report, report_rows, report_to_dict
from merchwatch.report_export import export_to_csv, parse_csv, rows_to_csv

T0 = datetime(2024, 10, 17, 10, 0, tzinfo=IST)


def _timelines():
    return {
        "123456": PidTimeline("123456", [
            ChatMessage(T0, "CS Team", "Any update on 123456?"),
        ]),
        "654321": PidTimeline("654321", [
            ChatMessage(T0, "CS Team", "654321 lead time?"),
            ChatMessage(T0 + timedelta(minutes=10), "Ravi Kumar", "654321 done"),
        ]),
        "777777": PidTimeline("777777", [
            ChatMessage(T0, "CS Team", "777777 fyi"),
        ]),
    }


MAPPING = {
    "123456": MappingEntry("Asha", "Ravi Kumar"),
    "654321": MappingEntry("", "Ravi Kumar"),
    "999999": MappingEntry("Unused", "Unused"),
}


class TestBuildReport:

    def test_message_intent_reports_every_pid(self):
        report = build_report(_timelines(), MAPPING, MessageIntentPolicy(), 120, now=T0 + timedelta(hours=5))
        assert [r.pid for r in report.rows] == ["123456", "654321", "777777"]
        assert [r.status for r in report.rows] == [STATUS_BREACHED, STATUS_CLOSED, STATUS_CLOSED]

    def test_alternating_sender_drops_closed(self):
        report = build_report(_timelines(), MAPPING, AlternatingSenderPolicy(), 60, now=T0 + timedelta(hours=5))
        assert {r.pid for r in report.rows} == {"123456", "777777"}
        assert all(r.status == STATUS_BREACHED for r in report.rows)

    def test_counts(self):
        report = build_report(_timelines(), MAPPING, AlternatingSenderPolicy(), 60, now=T0 + timedelta(hours=5))
        assert report.pid_count == 3
        assert report.mapping_count == 3
        assert report.matched_pid_count == 2

    def test_unmapped_pid_has_empty_metadata(self):
        report = build_report(_timelines(), MAPPING, MessageIntentPolicy(), 120, now=T0 + timedelta(hours=5))
        row = next(r for r in report.rows if r.pid == "777777")
        assert row.designer == ""
        assert row.assigned_merch == ""

    def test_empty_input(self):
        report = build_report({}, {}, MessageIntentPolicy(), 120, now=T0)
        assert report.rows == []
        assert report.generated_at

    def test_rows_use_policy_columns(self):
        report = build_report(_timelines(), MAPPING, MessageIntentPolicy(), 120, now=T0 + timedelta(hours=5))
        rows = report_rows(report)
        assert list(rows[0]) == MessageIntentPolicy.columns

    def test_report_to_dict(self):
        report = build_report(_timelines(), MAPPING, AlternatingSenderPolicy(), 60, now=T0 + timedelta(hours=5))
        d = report_to_dict(report)
        assert d["policy"] == "alternating_sender"
        assert d["matched_pid_count"] == 2
        assert len(d["rows"]) == 2


class TestCsvExport:

    def _report(self, preview: str) -> Report:
        row = ClassificationResult(
            pid="123456", status=STATUS_BREACHED,
            designer="Mehta, Neha", latest_cs_preview=preview,
        )
        return Report(policy="message_intent", columns=MessageIntentPolicy.columns, sla_minutes=120, rows=[row])

    def test_header_first(self):
        text = export_to_csv(self._report("hi"))
        assert text.splitlines()[0] == ",".join(MessageIntentPolicy.columns)

    def test_plain_fields_unquoted(self):
        text = export_to_csv(self._report("hi"))
        assert text.splitlines()[1].startswith("123456,")

    def test_quoting(self):
        text = export_to_csv(self._report('say "what", now\nplease'))
        assert '"Mehta, Neha"' in text
        assert '"say ""what"", now\nplease"' in text

    def test_round_trip_preserves_special_characters(self):
        preview = 'Any update, "urgent"?\nsecond line'
        text = export_to_csv(self._report(preview))
        rows = parse_csv(text)
        assert len(rows) == 1
        assert rows[0]["latest_cs_preview"] == preview
        assert rows[0]["designer"] == "Mehta, Neha"
        assert rows[0]["status"] == STATUS_BREACHED

    def test_readable_by_csv_module(self):
        text = rows_to_csv([{"a": "1,2", "b": None}], ["a", "b"])
        assert list(csv.reader(io.StringIO(text))) == [["a", "b"], ["1,2", ""]]

    def test_header_only_when_no_rows(self):
        text = rows_to_csv([], ["pid", "status"])
        assert text == "pid,status"

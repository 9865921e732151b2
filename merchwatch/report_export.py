"""
merchwatch/report_export.py
CSV export of a Report (RFC4180 quoting).

Fields containing a comma, double quote or line break are wrapped in
double quotes with inner quotes doubled. Header line first, LF between
records, no trailing newline.
"""

import csv
import io
from typing import Dict, List, Optional

from merchwatch.report import Report, report_rows


def rows_to_csv(rows: List[Dict[str, str]], columns: List[str]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
    writer.writerow(columns)
    for row in rows:
        writer.writerow(['' if row.get(c) is None else str(row.get(c)) for c in columns])
    return buf.getvalue().rstrip('\n')


def export_to_csv(report: Report) -> str:
    return rows_to_csv(report_rows(report), report.columns)


def parse_csv(text: str, columns: Optional[List[str]] = None) -> List[Dict[str, str]]:
    """
    Read an exported CSV back into row dicts. Uses the header line unless
    columns are given.
    """
    reader = csv.reader(io.StringIO(text or '', newline=''))
    records = list(reader)
    if not records:
        return []
    header = columns or records[0]
    body   = records[1:]
    return [dict(zip(header, rec)) for rec in body]

"""
merchwatch/parsers/chat_parser.py
Parses exported WhatsApp chat transcripts (Android and iOS styles).

Android:  17/10/2024, 9:40 pm - Priya: Any update on PID 123456?
          17/10/2024, 21:40 - Priya: Any update on PID 123456?
iOS:      [17/10/2024, 9:40:12 PM] Priya: Any update on PID 123456?

All timestamps are built at a fixed +05:30 offset, independent of the
server locale. Lines that do not match either shape (system notices,
continuation lines of multi-line messages) are skipped silently.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from merchwatch.models.record import ChatMessage

logger = logging.getLogger(__name__)

IST = timezone(timedelta(hours=5, minutes=30), 'IST')

_STAMP = (
    r'(?P<day>\d{1,2})/(?P<month>\d{1,2})/(?P<year>\d{4}|\d{2}),\s*'
    r'(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?'
    r'\s*(?P<ampm>[ap]\.?m\.?)?'
)

BRACKETED_LINE = re.compile(
    r'^\[' + _STAMP + r'\]\s*(?P<sender>[^:]+):\s?(?P<body>.*)$',
    re.IGNORECASE,
)
DASHED_LINE = re.compile(
    r'^' + _STAMP + r'\s*-\s(?P<sender>[^:]+):\s?(?P<body>.*)$',
    re.IGNORECASE,
)
LINE_PATTERNS = (BRACKETED_LINE, DASHED_LINE)

_CUTOFF_FORMAT = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_INVISIBLE_PREFIX = '\ufeff\u200e\u200f'


def parse_cutoff_date(value: str) -> datetime:
    """
    'YYYY-MM-DD' -> midnight IST at the start of that date.
    Raises ValueError for anything else.
    """
    text = (value or '').strip()
    if not _CUTOFF_FORMAT.match(text):
        raise ValueError(f"Invalid cutoffDate: {value!r}")
    day = datetime.strptime(text, '%Y-%m-%d')
    return day.replace(tzinfo=IST)


def parse_chat_line(line: str) -> Optional[ChatMessage]:
    """Parse a single transcript line. Returns None when it does not match."""
    cleaned = line.lstrip(_INVISIBLE_PREFIX)
    for pattern in LINE_PATTERNS:
        m = pattern.match(cleaned)
        if m:
            break
    else:
        return None

    ts = _build_timestamp(m)
    if ts is None:
        return None
    return ChatMessage(
        timestamp = ts,
        sender    = m.group('sender').strip(),
        body      = m.group('body').strip(),
        raw       = line,
    )


def parse_chat_text(chat_text: str, cutoff: datetime) -> List[ChatMessage]:
    """
    Parse a full transcript and keep only messages strictly after cutoff.
    Input order is preserved.
    """
    messages: List[ChatMessage] = []
    lines   = re.split(r'\r?\n', chat_text or '')
    skipped = 0
    early   = 0

    for raw in lines:
        msg = parse_chat_line(raw)
        if msg is None:
            skipped += 1
            continue
        if msg.timestamp <= cutoff:
            early += 1
            continue
        messages.append(msg)

    logger.info(
        f"Parsed {len(messages)} messages after cutoff "
        f"({early} before cutoff, {skipped} unmatched lines)"
    )
    return messages


def format_ist(ts: Optional[datetime]) -> str:
    """'YYYY-MM-DD HH:MM IST' in the fixed +05:30 zone, '' for None."""
    if ts is None:
        return ''
    return ts.astimezone(IST).strftime('%Y-%m-%d %H:%M') + ' IST'


def format_hhmm(delta: Optional[timedelta]) -> str:
    """Elapsed time as zero-padded HH:MM. Hours are not wrapped at 24."""
    if delta is None:
        return ''
    total_min = max(0, int(delta.total_seconds() // 60))
    return f"{total_min // 60:02d}:{total_min % 60:02d}"


def _build_timestamp(m: re.Match) -> Optional[datetime]:
    year = m.group('year')
    year_num = int(year) + 2000 if len(year) == 2 else int(year)
    hour = int(m.group('hour'))

    ampm = (m.group('ampm') or '').replace('.', '').lower()
    if ampm == 'pm' and hour < 12:
        hour += 12
    elif ampm == 'am' and hour == 12:
        hour = 0

    try:
        return datetime(
            year_num,
            int(m.group('month')),
            int(m.group('day')),
            hour,
            int(m.group('minute')),
            int(m.group('second') or 0),
            tzinfo=IST,
        )
    except ValueError:
        logger.debug(f"Skipped line with out-of-range date: {m.group(0)[:40]!r}")
        return None

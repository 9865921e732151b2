"""
merchwatch/detectors/pid_extractor.py
Finds product IDs (exactly six digits) in free chat text.
Accepts an optional "PID" label: "PID 123456", "pid:123456", "PID-123456".
A longer numeral never yields a six-digit slice of itself.
"""

import re
from typing import List

PID_PATTERN = re.compile(r'\b(?:pid\s*[:\-]?\s*)?([0-9]{6})\b', re.IGNORECASE)


def extract_pids(text: str) -> List[str]:
    """Distinct PIDs in first-seen order."""
    found = dict.fromkeys(m.group(1) for m in PID_PATTERN.finditer(text or ''))
    return list(found)

"""
merchwatch/detectors — PID extraction and message-intent heuristics.
"""

from merchwatch.detectors.intent_detector import (
    QUERY_CUES,
    is_query_like,
    normalize_name,
    sender_matches_merch,
)
from merchwatch.detectors.pid_extractor import extract_pids

__all__ = [
    "QUERY_CUES",
    "extract_pids",
    "is_query_like",
    "normalize_name",
    "sender_matches_merch",
]

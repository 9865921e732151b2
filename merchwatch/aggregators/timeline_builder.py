"""
merchwatch/aggregators/timeline_builder.py
Groups parsed chat messages into one chronological timeline per PID.

A message that mentions several PIDs lands in each of their timelines.
Timelines come back in order of first mention; messages inside a
timeline are sorted by timestamp with ties kept in input order.
"""

import logging
from typing import Dict, List

from merchwatch.detectors.pid_extractor import extract_pids
from merchwatch.models.record import ChatMessage, PidTimeline

logger = logging.getLogger(__name__)


def build_pid_timelines(messages: List[ChatMessage]) -> Dict[str, PidTimeline]:
    timelines: Dict[str, PidTimeline] = {}

    for msg in messages:
        for pid in extract_pids(msg.body):
            timelines.setdefault(pid, PidTimeline(pid=pid)).messages.append(msg)

    for timeline in timelines.values():
        timeline.messages.sort(key=lambda m: m.timestamp)

    logger.info(f"Built {len(timelines)} PID timelines from {len(messages)} messages")
    return timelines

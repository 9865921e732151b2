"""
merchwatch/detectors/intent_detector.py
Fixed keyword heuristics — no model, fully offline.

  is_query_like()        : does a message ask a question / chase an update?
  sender_matches_merch() : is the sender the PID's assigned merchandiser?

Cue list and fuzzy threshold are plain data; both can be overridden from
merchwatch_config.json without touching the classifiers.
"""

import math
import re
from typing import Iterable, Optional

# ── QUERY CUES ───────────────────────────────────────────────
# Lower-case substrings. Extend freely.

QUERY_CUES = [
    '?', 'any update', 'please update', 'pls update', 'need', 'possible',
    'price', 'lead time', 'can we', 'please confirm', 'pls confirm',
    'update?', 'any updates', 'status', 'dispatch', 'deliver',
    'photo', 'video', 'images', 'material', 'size', 'timeline',
]

FUZZY_THRESHOLD = 0.6

_TRAILING_QUESTION = re.compile(r'\?\s*$')
_NON_ALNUM = re.compile(r'[^\w\s]|_')
_WHITESPACE = re.compile(r'\s+')


def is_query_like(text: str, cues: Optional[Iterable[str]] = None) -> bool:
    t = (text or '').lower()
    cue_list = QUERY_CUES if cues is None else cues
    if any(c.lower() in t for c in cue_list if c):
        return True
    return bool(_TRAILING_QUESTION.search(t))


def normalize_name(name: str) -> str:
    """Lower-case, drop punctuation, collapse whitespace."""
    s = _NON_ALNUM.sub('', (name or '').lower())
    return _WHITESPACE.sub(' ', s).strip()


def sender_matches_merch(
    sender:     str,
    merch_name: str,
    threshold:  float = FUZZY_THRESHOLD,
) -> bool:
    """
    Fuzzy match of a chat display name against a mapped merchandiser name.
    True if either normalized name contains the other, or if enough of the
    merchandiser's name tokens appear inside the sender name.
    """
    s = normalize_name(sender)
    m = normalize_name(merch_name)
    if not s or not m:
        return False
    if s in m or m in s:
        return True

    tokens  = m.split(' ')
    matched = sum(1 for t in tokens if t in s)
    return matched >= max(1, math.ceil(len(tokens) * threshold))

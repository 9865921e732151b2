"""
merchwatch/classifiers — SLA classification policies.

Both policies stay selectable; neither is deprecated. Pick one by name
via config ("policy") or per request.
"""

from typing import Any, Dict, Optional

from merchwatch.classifiers.alternating_sender import AlternatingSenderPolicy
from merchwatch.classifiers.base import SlaPolicy
from merchwatch.classifiers.message_intent import MessageIntentPolicy

POLICIES = {
    AlternatingSenderPolicy.name: AlternatingSenderPolicy,
    MessageIntentPolicy.name:     MessageIntentPolicy,
}

DEFAULT_POLICY = MessageIntentPolicy.name


def get_policy(name: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> SlaPolicy:
    """
    Build a policy instance by name, tuned from config when given.
    Raises KeyError for unknown names.
    """
    config = config or {}
    key = (name or config.get('policy') or DEFAULT_POLICY).strip().lower()
    if key not in POLICIES:
        raise KeyError(f"Unknown policy {key!r}; choose one of {sorted(POLICIES)}")

    preview_chars = int(config.get('preview_chars') or 160)
    if key == MessageIntentPolicy.name:
        return MessageIntentPolicy(
            preview_chars   = preview_chars,
            query_cues      = config.get('query_cues'),
            fuzzy_threshold = float(config.get('fuzzy_threshold') or 0.6),
        )
    return POLICIES[key](preview_chars=preview_chars)


__all__ = [
    "AlternatingSenderPolicy",
    "MessageIntentPolicy",
    "SlaPolicy",
    "POLICIES",
    "DEFAULT_POLICY",
    "get_policy",
]

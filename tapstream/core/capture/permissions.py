"""Heuristic detection of permission failures in status records.

The capture process has no dedicated record type for missing permissions,
so detection matches known phrasing in the message text and will miss
wording it does not know about.
"""

from __future__ import annotations

import re
from typing import Iterable, Pattern

from ...data.models import LogRecord, MessageType

PERMISSION_PATTERNS = (
    r"permissions?\s+(?:is\s+|was\s+|are\s+)?(?:denied|required|missing|not\s+granted)",
    r"\b(?:requires?|grant|enable)\b[^.]*\bpermission",
    r"not\s+(?:authori[sz]ed|permitted)",
    r"access\s+(?:is\s+)?denied",
    r"\btcc\b[^.]*\b(?:denied|refused|not\s+granted)",
)


def compile_patterns(patterns: Iterable[str]) -> Pattern[str]:
    return re.compile("|".join(f"(?:{pattern})" for pattern in patterns), re.IGNORECASE)


_PERMISSION_RE = compile_patterns(PERMISSION_PATTERNS)


def mentions_permission(record: LogRecord, pattern: Pattern[str] = _PERMISSION_RE) -> bool:
    """Return ``True`` when ``record`` reads like a permission problem."""

    return bool(pattern.search(record.message))


def is_fatal_permission_denial(record: LogRecord, pattern: Pattern[str] = _PERMISSION_RE) -> bool:
    """Permission messages reported as errors end the session."""

    return record.message_type is MessageType.ERROR and mentions_permission(record, pattern)


__all__ = [
    "PERMISSION_PATTERNS",
    "compile_patterns",
    "is_fatal_permission_denial",
    "mentions_permission",
]

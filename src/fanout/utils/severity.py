"""
Module: severity.py
Description: Severity label classification.

Maps free-text alert severity labels to ordinal urgency levels used
when selecting recipients.
"""

from enum import IntEnum
from typing import Optional


class SeverityLevel(IntEnum):
    """Ordinal urgency level, 0 is the most urgent."""

    EXTREME = 0
    SEVERE = 1
    MODERATE = 2
    MINOR = 3
    UNKNOWN = 4


DEFAULT_SEVERITY_LEVEL = SeverityLevel.UNKNOWN

_LABELS = {
    "EXTREME": SeverityLevel.EXTREME,
    "SEVERE": SeverityLevel.SEVERE,
    "MODERATE": SeverityLevel.MODERATE,
    "MINOR": SeverityLevel.MINOR,
}


def classify(label: Optional[str]) -> SeverityLevel:
    """
    Map a severity label to its level.

    The label is trimmed and compared case-insensitively. Anything that
    is not a known label, including an empty string, resolves to
    DEFAULT_SEVERITY_LEVEL.

    Example:
        >>> classify(" extreme ")
        <SeverityLevel.EXTREME: 0>
        >>> classify("bogus")
        <SeverityLevel.UNKNOWN: 4>
    """
    if not isinstance(label, str):
        return DEFAULT_SEVERITY_LEVEL
    return _LABELS.get(label.strip().upper(), DEFAULT_SEVERITY_LEVEL)

"""
Module: test_severity.py
Description: Unit tests for severity label classification.
"""

import pytest

from fanout.utils.severity import DEFAULT_SEVERITY_LEVEL, SeverityLevel, classify


class TestClassify:
    """Test cases for classify()."""

    @pytest.mark.parametrize("label,expected", [
        ("Extreme", SeverityLevel.EXTREME),
        ("Severe", SeverityLevel.SEVERE),
        ("Moderate", SeverityLevel.MODERATE),
        ("Minor", SeverityLevel.MINOR),
    ])
    def test_known_labels(self, label, expected):
        """Test every known label maps to its level."""
        assert classify(label) == expected

    def test_trimmed_and_case_insensitive(self):
        """Test surrounding whitespace and case are ignored."""
        assert classify("  extreme ") == SeverityLevel.EXTREME
        assert classify("SEVERE") == SeverityLevel.SEVERE
        assert classify("\tmInOr\n") == SeverityLevel.MINOR

    @pytest.mark.parametrize("label", ["", "   ", "bogus", "Unknown", "severe!", None, 3])
    def test_unknown_labels_default(self, label):
        """Test anything else resolves to the default level without raising."""
        assert classify(label) == DEFAULT_SEVERITY_LEVEL == SeverityLevel.UNKNOWN

    def test_levels_are_ordinal(self):
        """Test lower values mean more urgent alerts."""
        assert [int(level) for level in SeverityLevel] == [0, 1, 2, 3, 4]
        assert SeverityLevel.EXTREME < SeverityLevel.MINOR

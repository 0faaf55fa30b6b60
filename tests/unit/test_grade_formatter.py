"""
Unit Tests for Grade Formatter

Tests for:
- Letter grade boundaries
- Precision and missing value display
- Highest / lowest score highlighting
"""

import pytest

from report_card_builder.data_models import GradeDisplayMode
from report_card_builder.grade_formatter import (
    LOWEST_PERFORMANCE_COMMENT,
    MISSING_DISPLAY,
    format_raw_score,
    format_score,
    highlight_extremes,
    is_below,
    letter_grade,
    performance_comment,
)


class TestLetterGrade:
    """Tests for the A-F mapping"""

    @pytest.mark.parametrize("score,letter", [
        (100, "A"), (90, "A"), (89.99, "B"), (80, "B"), (79.99, "C"),
        (70, "C"), (69.99, "D"), (60, "D"), (59.99, "F"), (0, "F"),
    ])
    def test_boundaries(self, score, letter):
        assert letter_grade(score) == letter

    def test_thresholds_are_independent(self):
        """65 is a passing D but still below the attention threshold"""
        assert letter_grade(65) == "D"
        assert not is_below(65, 60)
        assert is_below(65, 70)
        assert not is_below(None, 70)


class TestFormatScore:
    """Tests for score display"""

    def test_precision(self):
        assert format_score(85.0) == "85.00"
        assert format_score(85.0, precision=1) == "85.0"
        assert format_score(61.26, precision=1) == "61.3"
        assert format_score(2 / 3 * 100) == "66.67"

    def test_letter_mode(self):
        assert format_score(85.0, GradeDisplayMode.LETTER) == "B"
        assert format_score(85.0, "letter") == "B"

    def test_missing(self):
        assert format_score(None) == MISSING_DISPLAY
        assert format_score(None, GradeDisplayMode.LETTER) == MISSING_DISPLAY
        assert format_raw_score(None) == MISSING_DISPLAY

    def test_raw_score_as_entered(self):
        assert format_raw_score(90.0) == "90"
        assert format_raw_score(87.5) == "87.5"
        assert format_raw_score(87.123456) == "87.123456"
        assert format_raw_score(0.00001) == "0.00001"
        assert format_raw_score(100.0) == "100"
        assert format_raw_score(55.0, GradeDisplayMode.LETTER) == "F"


class TestPerformanceComment:
    """Tests for the overall remark"""

    def test_tiers(self):
        assert performance_comment(95).startswith("Excellent")
        assert performance_comment(85).startswith("Great job")
        assert performance_comment(72).startswith("Good effort")
        assert performance_comment(60).startswith("Satisfactory")
        assert performance_comment(40) == LOWEST_PERFORMANCE_COMMENT
        assert performance_comment(None) == LOWEST_PERFORMANCE_COMMENT


class TestHighlightExtremes:
    """Tests for highlight_extremes"""

    def test_flags_max_and_min(self):
        extremes = highlight_extremes({"p1": 70.0, "p2": 95.0, "p3": 60.0, "exam1": None})
        assert extremes.max_period == "p2"
        assert extremes.min_period == "p3"
        assert extremes.is_highest(95.0)
        assert extremes.is_lowest(60.0)
        assert not extremes.is_highest(None)

    def test_all_equal_is_not_flagged(self):
        extremes = highlight_extremes({"p1": 80.0, "p2": 80.0})
        assert not extremes.flagged
        assert not extremes.is_highest(80.0)
        assert not extremes.is_lowest(80.0)

    def test_single_score_is_not_flagged(self):
        assert not highlight_extremes({"p1": 80.0, "p2": None}).flagged

    def test_first_period_with_extreme_is_reported(self):
        extremes = highlight_extremes({"p1": 50.0, "p2": 90.0, "p3": 90.0, "p4": 50.0})
        assert extremes.max_period == "p2"
        assert extremes.min_period == "p1"

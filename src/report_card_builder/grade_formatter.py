#!/usr/bin/env python3
"""
GRADE FORMATTER - Letter grades, score display and highlighting

GRADE MAPPING:
A >= 90, B >= 80, C >= 70, D >= 60, F below 60 (each threshold inclusive)

THRESHOLDS (ReportCardSettings, passed in by the view profile):
- FAILING_THRESHOLD (60): pass/fail for final semantics and the overall badge
- ATTENTION_THRESHOLD (70): per-score "needs attention" highlight on the
  student dashboard; never changes the letter

Priority: MEDIUM - Presentation only
Dependencies: data_models.py
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from .data_models import GradeDisplayMode

LETTER_GRADE_CUTOFFS = (
    (90.0, "A"),
    (80.0, "B"),
    (70.0, "C"),
    (60.0, "D"),
)
FAILING_LETTER = "F"

MISSING_DISPLAY = "-"

PERFORMANCE_COMMENTS = (
    (90.0, "Excellent work! Keep up the outstanding performance."),
    (80.0, "Great job! Consistently strong performance."),
    (70.0, "Good effort. Continue to work hard."),
    (60.0, "Satisfactory. There is room for improvement."),
)
LOWEST_PERFORMANCE_COMMENT = "Needs improvement. Please see the administration for guidance."


def letter_grade(score: float) -> str:
    """Convert a numeric score to A-F"""
    for cutoff, letter in LETTER_GRADE_CUTOFFS:
        if score >= cutoff:
            return letter
    return FAILING_LETTER


def is_below(score: Optional[float], threshold: float) -> bool:
    """True for a present score under the threshold"""
    return score is not None and score < threshold


def format_score(
    score: Optional[float],
    mode: GradeDisplayMode = GradeDisplayMode.NUMERIC,
    precision: int = 2,
) -> str:
    """
    Display text for an average

    Args:
        score: Value to show, None for absent
        mode: NUMERIC or LETTER
        precision: Decimal places in NUMERIC mode (per view: 2 admin/report, 1 dashboard)
    """
    if score is None:
        return MISSING_DISPLAY
    if GradeDisplayMode(mode) == GradeDisplayMode.LETTER:
        return letter_grade(score)
    return f"{score:.{precision}f}"


def format_raw_score(score: Optional[float], mode: GradeDisplayMode = GradeDisplayMode.NUMERIC) -> str:
    """Display text for an entered score: as entered (90, 87.5), or its letter"""
    if score is None:
        return MISSING_DISPLAY
    if GradeDisplayMode(mode) == GradeDisplayMode.LETTER:
        return letter_grade(score)
    return f"{score:.10f}".rstrip("0").rstrip(".")


def performance_comment(final_average: Optional[float]) -> str:
    """Overall remark for a final average"""
    score = final_average or 0.0
    for cutoff, comment in PERFORMANCE_COMMENTS:
        if score >= cutoff:
            return comment
    return LOWEST_PERFORMANCE_COMMENT


@dataclass
class ExtremeScores:
    """Highest and lowest score of one subject across periods"""
    max_period: Optional[str] = None
    min_period: Optional[str] = None
    max_score: Optional[float] = None
    min_score: Optional[float] = None

    @property
    def flagged(self) -> bool:
        return self.max_period is not None

    def is_highest(self, score: Optional[float]) -> bool:
        return self.flagged and score is not None and score == self.max_score

    def is_lowest(self, score: Optional[float]) -> bool:
        return self.flagged and score is not None and score == self.min_score


def highlight_extremes(scores: Mapping[str, Optional[float]]) -> ExtremeScores:
    """
    Find the highest and lowest scored periods of one subject

    Only flags when there are at least two distinct comparable scores; when
    every score is equal nothing is flagged. The first period holding the
    extreme value is reported.
    """
    present = [(pid, s) for pid, s in scores.items() if s is not None]
    if len(present) < 2:
        return ExtremeScores()

    max_score = max(s for _, s in present)
    min_score = min(s for _, s in present)
    if max_score == min_score:
        return ExtremeScores()

    return ExtremeScores(
        max_period=next(pid for pid, s in present if s == max_score),
        min_period=next(pid for pid, s in present if s == min_score),
        max_score=max_score,
        min_score=min_score,
    )

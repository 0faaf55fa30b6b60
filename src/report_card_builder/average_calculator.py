#!/usr/bin/env python3
"""
AVERAGE CALCULATOR - Semester, final and class-wide averages
Aggregate a grade matrix over the semester groups of a period registry

CALCULATION TYPES:
✅ Period Average: Mean of one period across ALL subjects (absent = 0)
✅ Semester Average: Mean of one subject's scores in one semester group
✅ Final Average: Mean of a subject's semester averages
✅ Class Averages: Per period, per semester and final, across subjects

MISSING SCORE POLICIES:
- ZERO_FILL (admin, printable report card): absent scores count as 0 and
  stay in the denominator; an empty semester group averages to 0
- SKIP_ABSENT (student dashboard): absent scores are left out; an average
  with nothing to average is None and displays as "-"

EDGE CASES HANDLED:
- Zero subjects or zero periods: 0 (never a division by zero)
- Only one semester with data: final average equals that semester's average
- Semester-type columns (sem1, sem2) are outputs, never inputs

All functions are pure: identical registry and matrix give identical results.

Priority: CRITICAL - Core averaging rules
Dependencies: grade_matrix.py, period_registry.py, data_models.py
"""

import logging
from typing import Iterable, List, Mapping, Optional, Sequence

from .data_models import ComputedAverages, MissingScorePolicy, Period
from .grade_matrix import GradeMatrix
from .period_registry import PeriodRegistry, group_into_semesters

logger = logging.getLogger(__name__)


def safe_mean(values: Iterable[float]) -> float:
    """Arithmetic mean, 0 for no values"""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def mean_present(values: Iterable[Optional[float]]) -> Optional[float]:
    """Mean of the non-None values, None when there are none"""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def period_average(matrix: GradeMatrix, period_id: str) -> float:
    """
    Mean of one period's score across all subjects

    Divides by the subject count, not by the number of present scores:
    an absent score adds 0 to the sum but still counts.
    """
    if matrix.is_empty:
        return 0.0
    return float(matrix.column(period_id).fillna(0.0).sum()) / len(matrix)


def class_average(
    matrix: GradeMatrix,
    period_id: str,
    policy: MissingScorePolicy = MissingScorePolicy.ZERO_FILL,
) -> Optional[float]:
    """
    Footer average of one period across subjects

    ZERO_FILL is the whole-class mean of period_average; SKIP_ABSENT averages
    only the subjects that have a score and is None when none do.
    """
    if MissingScorePolicy(policy) == MissingScorePolicy.ZERO_FILL:
        return period_average(matrix, period_id)

    present = matrix.column(period_id).dropna()
    if present.empty:
        return None
    return float(present.mean())


def semester_average(
    scores: Mapping[str, Optional[float]],
    semester_periods: Sequence[Period],
    policy: MissingScorePolicy = MissingScorePolicy.ZERO_FILL,
) -> Optional[float]:
    """
    Mean of one subject's scores across one semester group

    Args:
        scores: The subject's scores keyed by period id (None when absent)
        semester_periods: Periods of the semester group
        policy: Missing score policy

    Returns:
        Average; 0 for an empty group under ZERO_FILL, None for no present
        scores under SKIP_ABSENT
    """
    period_ids = [p.id for p in semester_periods if p.is_gradable]

    if MissingScorePolicy(policy) == MissingScorePolicy.ZERO_FILL:
        if not period_ids:
            return 0.0
        return sum(scores.get(pid) or 0.0 for pid in period_ids) / len(period_ids)

    return mean_present(scores.get(pid) for pid in period_ids)


def _has_scores(scores: Mapping[str, Optional[float]], semester_periods: Sequence[Period]) -> bool:
    return any(scores.get(p.id) is not None for p in semester_periods if p.is_gradable)


def final_average(semester_averages: Sequence[Optional[float]]) -> Optional[float]:
    """
    Mean of semester averages

    Semesters without data (None) are left out, so a single semester with
    data gives exactly that semester's average. None when no semester has data.
    """
    return mean_present(semester_averages)


class AverageCalculator:
    """Compute every derived average for a report card"""

    def __init__(self, missing_policy: MissingScorePolicy = MissingScorePolicy.ZERO_FILL):
        """
        Initialize calculator

        Args:
            missing_policy: How absent scores take part in averages
        """
        self.missing_policy = MissingScorePolicy(missing_policy)
        self.calculation_log: List[str] = []

    def calculate(self, registry: PeriodRegistry, matrix: GradeMatrix) -> ComputedAverages:
        """
        Calculate all averages

        Args:
            registry: Active periods of the report card
            matrix: Collected scores

        Returns:
            ComputedAverages with per-subject and class-wide results
        """
        self.calculation_log = []
        self.calculation_log.append(
            f"📊 Calculating averages for {len(matrix)} subjects over {len(registry)} periods "
            f"({self.missing_policy.value})"
        )

        semesters = group_into_semesters(registry)
        self.calculation_log.append(f"   Semester groups: {[[p.id for p in g] for g in semesters]}")

        # Per subject
        subject_semester_averages = []
        subject_final_averages = []
        all_scores = [matrix.row_scores(row) for row in range(len(matrix))]
        for scores in all_scores:
            sem_avgs = [semester_average(scores, group, self.missing_policy) for group in semesters]
            # A semester without a single entered score has no data, even
            # though ZERO_FILL displays it as 0
            final_avg = final_average([
                avg if _has_scores(scores, group) else None
                for avg, group in zip(sem_avgs, semesters)
            ])
            if final_avg is None and self.missing_policy == MissingScorePolicy.ZERO_FILL:
                final_avg = 0.0
            subject_semester_averages.append(sem_avgs)
            subject_final_averages.append(final_avg)

        # Class-wide
        period_class_averages = {
            period.id: class_average(matrix, period.id, self.missing_policy)
            for group in semesters
            for period in group
        }

        if self.missing_policy == MissingScorePolicy.ZERO_FILL:
            # Mean of the group's period averages, then of the semesters
            semester_class_averages = [
                safe_mean(period_class_averages[p.id] for p in group) for group in semesters
            ]
            # Semesters nobody has a score in yet stay out of the final,
            # as they do for each subject
            final_class_avg = safe_mean(
                avg for avg, group in zip(semester_class_averages, semesters)
                if any(_has_scores(scores, group) for scores in all_scores)
            )
        else:
            # Mean over the subjects that have a value in that column
            semester_class_averages = [
                mean_present(row[i] for row in subject_semester_averages)
                for i in range(len(semesters))
            ]
            final_class_avg = mean_present(subject_final_averages)

        self.calculation_log.append("✅ Calculation complete:")
        self.calculation_log.append(
            "   Final class average: "
            + ("-" if final_class_avg is None else f"{final_class_avg:.2f}")
        )

        return ComputedAverages(
            missing_policy=self.missing_policy,
            semesters=[[p.id for p in group] for group in semesters],
            subject_semester_averages=subject_semester_averages,
            subject_final_averages=subject_final_averages,
            period_class_averages=period_class_averages,
            semester_class_averages=semester_class_averages,
            final_class_average=final_class_avg,
        )

    def get_calculation_log(self) -> List[str]:
        return list(self.calculation_log)

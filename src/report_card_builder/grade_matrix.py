#!/usr/bin/env python3
"""
GRADE MATRIX - Per-subject, per-period numeric scores
Collect sparse or malformed score input into a subject x period table

COLLECTION RULES:
✅ Every score goes through "parse as float, else default" - never raises
✅ Missing, blank, non-numeric, non-finite and out-of-range (0-100) input is invalid
✅ The default for invalid input is chosen by the caller:
   - 90 (PLACEHOLDER_SCORE setting) for form placeholders, so blank forms don't look like failing grades
   - 0 (SUBMISSION_DEFAULT_SCORE setting) for submission payloads, so omitted scores don't inflate averages
   - None to keep the score absent (student dashboard)

STORAGE:
- pandas DataFrame, one row per subject (in subject order), one float column
  per period id; absent scores are NaN

Priority: HIGH - Input to every average
Dependencies: pandas, numpy, data_models.py
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .data_models import Period, SubjectGrade
from .period_registry import PeriodRegistry

logger = logging.getLogger(__name__)


MIN_SCORE = 0.0
MAX_SCORE = 100.0


def parse_score(value: Any, default: Optional[float] = None) -> Optional[float]:
    """
    Parse one score input

    Args:
        value: Raw input (number, numeric text, None, anything else)
        default: Returned for invalid input

    Returns:
        Score as float in [0, 100], or the default
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default

    try:
        score = float(value)
    except (TypeError, ValueError):
        return default

    if not math.isfinite(score) or score < MIN_SCORE or score > MAX_SCORE:
        return default

    return score


def _optional(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


class GradeMatrix:
    """Subject x period score table for one report card"""

    def __init__(
        self,
        subjects: Sequence[str],
        period_ids: Sequence[str],
        frame: Optional[pd.DataFrame] = None,
        comments: Optional[Sequence[Optional[str]]] = None,
    ):
        self.subjects: List[str] = list(subjects)
        self.period_ids: List[str] = list(period_ids)
        self.comments: List[Optional[str]] = (
            list(comments) if comments is not None else [None] * len(self.subjects)
        )

        if frame is None:
            frame = pd.DataFrame(
                np.nan, index=range(len(self.subjects)), columns=self.period_ids, dtype=float
            )
        self.frame: pd.DataFrame = frame.reset_index(drop=True)

        if len(self.frame) != len(self.subjects):
            raise ValueError(
                f"Grade matrix has {len(self.frame)} rows for {len(self.subjects)} subjects"
            )

    @classmethod
    def collect(
        cls,
        subjects: Iterable[SubjectGrade],
        periods: Union[PeriodRegistry, Iterable[Period]],
        default: Optional[float] = None,
    ) -> "GradeMatrix":
        """
        Build a matrix from subject rows and the active periods

        Args:
            subjects: Subject rows with raw score maps
            periods: Active periods (registry or sequence)
            default: Value used for invalid or missing input (None keeps it absent)

        Returns:
            GradeMatrix with one row per subject and one column per period
        """
        subjects = list(subjects)
        period_ids = [p.id for p in periods]

        rows = []
        invalid = 0
        for subject in subjects:
            row = []
            for period_id in period_ids:
                raw = subject.score(period_id)
                score = parse_score(raw, default)
                if raw is not None and parse_score(raw) is None:
                    invalid += 1
                row.append(np.nan if score is None else score)
            rows.append(row)

        if invalid:
            logger.debug(f"Replaced {invalid} invalid score inputs with default {default}")

        frame = pd.DataFrame(
            {pid: [row[i] for row in rows] for i, pid in enumerate(period_ids)},
            index=range(len(subjects)),
            columns=period_ids,
            dtype=float,
        )

        return cls(
            [s.subject for s in subjects],
            period_ids,
            frame,
            comments=[s.comment for s in subjects],
        )

    def __len__(self) -> int:
        return len(self.subjects)

    @property
    def is_empty(self) -> bool:
        return len(self.subjects) == 0

    def column(self, period_id: str) -> pd.Series:
        """Scores for one period across all subjects (NaN when absent)"""
        if period_id not in self.frame.columns:
            return pd.Series([np.nan] * len(self), dtype=float)
        return self.frame[period_id]

    def score(self, row: int, period_id: str) -> Optional[float]:
        if period_id not in self.frame.columns:
            return None
        return _optional(self.frame.at[row, period_id])

    def row_scores(self, row: int) -> Dict[str, Optional[float]]:
        """Scores of one subject keyed by period id (None when absent)"""
        return {pid: self.score(row, pid) for pid in self.period_ids}

    def to_records(self, default: Optional[float]) -> List[Dict[str, Any]]:
        """
        Flat grade entries as the document store keeps them

        Each entry is {"subject": ..., [<period id>: score, ...], ["comment": ...]}.
        Absent scores are written as default, or left out when default is None.
        """
        records = []
        for row, subject in enumerate(self.subjects):
            record: Dict[str, Any] = {"subject": subject}
            for period_id in self.period_ids:
                score = self.score(row, period_id)
                if score is None:
                    score = default
                if score is not None:
                    record[period_id] = score
            comment = self.comments[row]
            if comment:
                record["comment"] = comment
            records.append(record)
        return records

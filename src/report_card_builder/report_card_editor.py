#!/usr/bin/env python3
"""
REPORT CARD EDITOR - One admin editing session
Discrete mutations of a report card, each followed by plain recomputation

SESSION OPERATIONS:
✅ new / reset / load: Start blank (default periods, one blank subject) or from a document
✅ Subjects: add, remove (never the first row), rename, comment
✅ Scores: set raw input per subject and period
✅ Periods: add period / exam, remove (never the last one)
✅ Output: form values (blank -> 90), submission document (blank -> 0),
   averages and report table for any view

Nothing here renders; callers re-read averages() / table() after each change.

Priority: HIGH - Replaces UI event handlers with a data pipeline
Dependencies: period_registry, grade_matrix, average_calculator, report_table, data_processor
"""

import logging
import random
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from .average_calculator import AverageCalculator
from .config import ReportCardSettings, get_settings
from .data_models import ComputedAverages, Period, ReportCard, SubjectGrade
from .data_processor import document_to_report_card, report_card_to_document
from .grade_matrix import GradeMatrix
from .period_registry import PeriodRegistry, registry_from_periods
from .report_table import ReportTable, ViewProfile, build_report_table

logger = logging.getLogger(__name__)


MIN_SUBJECTS = 1
FIRST_SUBJECT_WARNING = "The first subject cannot be removed."
MISSING_DETAILS_MESSAGE = "Please enter School Name, Student Name, and ID."
NO_SUBJECTS_MESSAGE = "Please add at least one subject."


def generate_student_id(year: Optional[int] = None, rng: Optional[random.Random] = None) -> str:
    """Student id of the form <year><5 random digits>"""
    year = year or datetime.now().year
    rng = rng or random.Random()
    return f"{year}{rng.randint(10000, 99999)}"


class ReportCardEditor:
    """Edit session for a single report card"""

    def __init__(self, report_card: Optional[ReportCard] = None, settings: Optional[ReportCardSettings] = None):
        self.settings = settings or get_settings()
        self.messages: List[str] = []
        self.editing_existing = False
        if report_card is None:
            self.reset()
        else:
            self._set_card(report_card)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @classmethod
    def new(cls, settings: Optional[ReportCardSettings] = None) -> "ReportCardEditor":
        return cls(settings=settings)

    def reset(self):
        """Blank card: default periods and one blank subject"""
        self.report_card = ReportCard(
            academic_year=self.settings.DEFAULT_ACADEMIC_YEAR,
            subjects=[SubjectGrade()],
        )
        self.registry = PeriodRegistry.default()
        self.editing_existing = False
        self.messages = []

    def load(self, document: Mapping[str, Any]):
        """Start editing a stored document"""
        self._set_card(document_to_report_card(document))
        self.editing_existing = True
        logger.info(f"📝 Editing report card {self.report_card.student_id}")

    def _set_card(self, report_card: ReportCard):
        subjects = list(report_card.subjects) or [SubjectGrade()]
        self.registry = registry_from_periods(report_card.periods)
        self.report_card = report_card.model_copy(update={"subjects": subjects})

    def set_details(self, **details):
        """Update student fields (name, class_name, roll_number, ...)"""
        self.report_card = self.report_card.model_copy(update=details)

    # ------------------------------------------------------------------
    # Subjects and scores
    # ------------------------------------------------------------------

    @property
    def subjects(self) -> List[SubjectGrade]:
        return list(self.report_card.subjects)

    def _replace_subject(self, index: int, subject: SubjectGrade):
        subjects = self.subjects
        subjects[index] = subject
        self.report_card = self.report_card.model_copy(update={"subjects": subjects})

    def add_subject(self, name: str = "") -> int:
        subjects = self.subjects + [SubjectGrade(subject=name)]
        self.report_card = self.report_card.model_copy(update={"subjects": subjects})
        return len(subjects) - 1

    def remove_subject(self, index: int) -> bool:
        """Remove a subject row; the first row always stays"""
        if index == 0 or len(self.subjects) <= MIN_SUBJECTS:
            self._warn(FIRST_SUBJECT_WARNING)
            return False
        subjects = self.subjects
        del subjects[index]
        self.report_card = self.report_card.model_copy(update={"subjects": subjects})
        return True

    def rename_subject(self, index: int, name: str):
        subject = self.subjects[index]
        self._replace_subject(index, subject.model_copy(update={"subject": (name or "").strip()}))

    def set_comment(self, index: int, comment: Optional[str]):
        subject = self.subjects[index]
        self._replace_subject(index, subject.model_copy(update={"comment": comment}))

    def set_score(self, index: int, period_id: str, value: Any):
        """Store raw input; it is parsed when averages are collected"""
        if period_id not in self.registry:
            raise ValueError(f"Unknown period: {period_id}")
        subject = self.subjects[index]
        scores = dict(subject.scores)
        scores[period_id] = value
        self._replace_subject(index, subject.model_copy(update={"scores": scores}))

    # ------------------------------------------------------------------
    # Periods
    # ------------------------------------------------------------------

    def add_period(self, kind, custom_name: Optional[str] = None) -> Period:
        return self.registry.add_period(kind, custom_name)

    def remove_period(self, period_id: str) -> bool:
        removed = self.registry.remove_period(period_id)
        if not removed:
            self.messages.extend(self.registry.messages)
            self.registry.messages = []
        return removed

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    @property
    def current(self) -> ReportCard:
        """The card with the session's period registry"""
        return self.report_card.model_copy(update={"periods": self.registry.periods})

    def form_matrix(self) -> GradeMatrix:
        """Values shown in the entry form; blank inputs show the placeholder score"""
        return GradeMatrix.collect(self.subjects, self.registry.gradable_periods, default=self.settings.PLACEHOLDER_SCORE)

    def submission_matrix(self) -> GradeMatrix:
        """Values saved on submit; blank inputs become the submission default"""
        return GradeMatrix.collect(self.subjects, self.registry.gradable_periods, default=self.settings.SUBMISSION_DEFAULT_SCORE)

    def averages(self, profile: ViewProfile) -> ComputedAverages:
        matrix = GradeMatrix.collect(self.subjects, self.registry, default=profile.score_default)
        return AverageCalculator(profile.missing_policy).calculate(self.registry, matrix)

    def table(self, profile: ViewProfile, display_mode=None) -> ReportTable:
        return build_report_table(self.current, profile, display_mode)

    def build_submission(self) -> Dict[str, Any]:
        """
        Document to save

        Raises:
            ValueError: With the user-facing message when required details
                are missing or no subject has a name
        """
        card = self.current
        if not card.school_name or not card.name or not card.student_id:
            raise ValueError(MISSING_DETAILS_MESSAGE)

        named = [s for s in card.subjects if s.subject]
        if not named:
            raise ValueError(NO_SUBJECTS_MESSAGE)

        document = report_card_to_document(
            card.model_copy(update={"subjects": named}),
            default=self.settings.SUBMISSION_DEFAULT_SCORE,
        )
        logger.info(f"✅ Prepared submission for {card.student_id} with {len(named)} subjects")
        return document

    def _warn(self, message: str):
        logger.warning(f"⚠️ {message}")
        self.messages.append(message)

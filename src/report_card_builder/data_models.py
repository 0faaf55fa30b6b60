#!/usr/bin/env python3
"""
DATA MODELS - Pydantic schemas for report card data validation
Type-safe data structures for grading periods, subject grades and averages

COMPREHENSIVE DATA VALIDATION:
✅ Periods: Stable id, display name, period/exam/semester type
✅ Subject Grades: Subject name, optional comment, sparse score map
✅ Report Cards: Student details, ordered subjects, explicit period list
✅ Activity Logs: Who did what and when, for the super-admin audit view
✅ Computed Averages: Semester, final and class-wide averages (never stored)

VALIDATION RULES:
- Period ids must be non-empty strings
- Identifier fields given as numbers are stored as strings
- Score values are kept raw here; parsing happens in grade_matrix
- Documents use camelCase keys (className, rollNumber, ...) as aliases

Priority: CRITICAL - Foundation for all averaging and rendering
Dependencies: Pydantic for validation
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PeriodType(str, Enum):
    """Kinds of grading period"""
    PERIOD = "period"
    EXAM = "exam"
    SEMESTER = "semester"  # Derived semester-average column, never an input


class MissingScorePolicy(str, Enum):
    """How absent scores take part in an average"""
    ZERO_FILL = "zero_fill"  # Absent counts as 0 and stays in the denominator
    SKIP_ABSENT = "skip_absent"  # Absent is left out; no scores -> None


class GradeDisplayMode(str, Enum):
    """Number or letter display for scores"""
    NUMERIC = "numeric"
    LETTER = "letter"


class Period(BaseModel):
    """A single grading interval or exam slot"""

    id: str = Field(..., min_length=1, description="Unique, stable period key (p1, exam1, sem1, ...)")
    name: str = Field(..., description="Display name")
    type: PeriodType = Field(PeriodType.PERIOD, description="period, exam or semester")

    model_config = ConfigDict(frozen=True)

    @property
    def is_exam(self) -> bool:
        return self.type == PeriodType.EXAM

    @property
    def is_gradable(self) -> bool:
        """Semester columns are computed, everything else takes a score"""
        return self.type != PeriodType.SEMESTER


class SubjectGrade(BaseModel):
    """One subject row of a report card"""

    subject: str = Field("", description="Subject name")
    comment: Optional[str] = Field(None, description="Instructor comment for this subject")
    scores: Dict[str, Any] = Field(
        default_factory=dict,
        description="Raw score input keyed by period id; may be sparse or malformed",
    )

    @field_validator("subject", mode="before")
    @classmethod
    def clean_subject(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    def score(self, period_id: str) -> Any:
        """Raw score input for a period, None when absent"""
        return self.scores.get(period_id)


class ReportCard(BaseModel):
    """Complete report card for one student"""

    student_id: str = Field("", alias="id", description="Student identifier, also the document key")
    name: str = Field("", description="Student name")
    class_name: Optional[str] = Field(None, alias="className", description="Class")
    roll_number: Optional[str] = Field(None, alias="rollNumber", description="Roll number")
    school_name: Optional[str] = Field(None, alias="schoolName", description="School name")
    academic_year: Optional[str] = Field(None, alias="academicYear", description="School year")
    principal_comment: Optional[str] = Field(None, alias="principalComment", description="Principal remarks")
    is_archived: bool = Field(False, alias="isArchived", description="Archived record flag")
    sponsor_id: Optional[str] = Field(None, alias="sponsorId", description="Owning instructor identity")

    subjects: List[SubjectGrade] = Field(default_factory=list, description="Ordered subject rows")
    periods: List[Period] = Field(default_factory=list, description="Ordered period registry")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("student_id", "name", mode="before")
    @classmethod
    def coerce_required_text(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("class_name", "roll_number", "sponsor_id", mode="before")
    @classmethod
    def coerce_optional_text(cls, v):
        if v is None:
            return v
        return str(v)

    @property
    def subject_names(self) -> List[str]:
        return [s.subject for s in self.subjects]


class ActivityLog(BaseModel):
    """One audit entry: an instructor or student action"""

    instructor_id: Optional[str] = Field(None, alias="instructorId")
    instructor_email: Optional[str] = Field(None, alias="instructorEmail")
    student_id: Optional[str] = Field(None, alias="studentId")
    student_name: Optional[str] = Field(None, alias="studentName")
    user_type: str = Field("INSTRUCTOR", alias="userType", description="INSTRUCTOR or STUDENT")
    action: str = Field(..., min_length=1, description="LOGIN, ADD_STUDENT, CLEANUP_LOGS, ...")
    details: str = Field("", description="Free text shown in the audit view")
    timestamp: datetime = Field(default_factory=_utc_now, description="UTC, stored without tzinfo")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("instructor_id", "student_id", mode="before")
    @classmethod
    def coerce_ids(cls, v):
        if v is None:
            return v
        return str(v)

    @field_validator("details", mode="before")
    @classmethod
    def blank_details(cls, v):
        return "" if v is None else v

    @field_validator("timestamp")
    @classmethod
    def naive_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    def matches(self, text: str) -> bool:
        """Case-insensitive match on who, what and details"""
        needle = text.casefold()
        fields = (self.instructor_email, self.student_name, self.student_id, self.action, self.details)
        return any(needle in f.casefold() for f in fields if f)


class ComputedAverages(BaseModel):
    """Averages derived from a period registry and grade matrix"""

    missing_policy: MissingScorePolicy = Field(..., description="Policy used for absent scores")
    semesters: List[List[str]] = Field(default_factory=list, description="Period ids per semester group")

    # Per subject row, in subject order
    subject_semester_averages: List[List[Optional[float]]] = Field(default_factory=list)
    subject_final_averages: List[Optional[float]] = Field(default_factory=list)

    # Class-wide (across subjects)
    period_class_averages: Dict[str, Optional[float]] = Field(default_factory=dict)
    semester_class_averages: List[Optional[float]] = Field(default_factory=list)
    final_class_average: Optional[float] = Field(None)


# Export all models
__all__ = [
    'PeriodType',
    'MissingScorePolicy',
    'GradeDisplayMode',
    'Period',
    'SubjectGrade',
    'ReportCard',
    'ActivityLog',
    'ComputedAverages',
]

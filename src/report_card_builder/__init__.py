"""Report card grade averaging, presentation and rendering"""

from .average_calculator import (
    AverageCalculator,
    class_average,
    final_average,
    period_average,
    semester_average,
)
from .data_models import (
    ComputedAverages,
    GradeDisplayMode,
    MissingScorePolicy,
    Period,
    PeriodType,
    ReportCard,
    SubjectGrade,
)
from .grade_formatter import format_score, highlight_extremes, letter_grade
from .grade_matrix import GradeMatrix, parse_score
from .period_registry import PeriodRegistry, group_into_semesters
from .report_table import ViewProfile, build_report_table, get_view_profile

__version__ = "1.0.0"

__all__ = [
    "AverageCalculator",
    "ComputedAverages",
    "GradeDisplayMode",
    "GradeMatrix",
    "MissingScorePolicy",
    "Period",
    "PeriodRegistry",
    "PeriodType",
    "ReportCard",
    "SubjectGrade",
    "ViewProfile",
    "build_report_table",
    "class_average",
    "final_average",
    "format_score",
    "get_view_profile",
    "group_into_semesters",
    "highlight_extremes",
    "letter_grade",
    "parse_score",
    "period_average",
    "semester_average",
]

#!/usr/bin/env python3
"""
REPORT TABLE - Presentation payload for a report card
Turn a report card into header / body / footer rows of display cells

PIPELINE:
Period Registry + Subject Grades -> Grade Matrix -> Computed Averages -> Report Table

VIEWS:
✅ admin: 2 decimals, absent = 0, failing below 60, placeholder 90 for blank inputs
✅ report_card: 2 decimals, absent = 0, failing below 60, highest/lowest highlighted
✅ dashboard: 1 decimal, absent skipped ("-"), needs attention below 70,
   letter column, overall badge still fails below 60

The table is plain data; styling belongs to whatever renders it.

Priority: MEDIUM - Consumed by report_card_generator and UIs
Dependencies: average_calculator, grade_formatter, grade_matrix, period_registry
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .average_calculator import AverageCalculator
from .config import ReportCardSettings, get_settings
from .data_models import ComputedAverages, GradeDisplayMode, MissingScorePolicy, ReportCard
from .grade_formatter import (
    format_raw_score,
    format_score,
    highlight_extremes,
    is_below,
    letter_grade,
    performance_comment,
)
from .grade_matrix import GradeMatrix
from .period_registry import registry_from_periods

# Cell flags
FAILING = "failing"
NEEDS_ATTENTION = "needs_attention"
HIGHEST = "highest"
LOWEST = "lowest"


@dataclass(frozen=True)
class ViewProfile:
    """Display and averaging rules of one view"""
    name: str
    precision: int
    missing_policy: MissingScorePolicy
    highlight_threshold: float
    highlight_flag: str = FAILING
    passing_threshold: float = 60.0
    highlight_extremes: bool = False
    show_letter_column: bool = False
    display_mode: GradeDisplayMode = GradeDisplayMode.NUMERIC
    score_default: Optional[float] = None  # Applied to invalid input when collecting


def build_view_profiles(settings: Optional[ReportCardSettings] = None) -> Dict[str, ViewProfile]:
    """The built-in admin, report_card and dashboard profiles"""
    settings = settings or get_settings()
    return {
        "admin": ViewProfile(
            name="admin",
            precision=settings.ADMIN_PRECISION,
            missing_policy=MissingScorePolicy.ZERO_FILL,
            highlight_threshold=settings.FAILING_THRESHOLD,
            passing_threshold=settings.FAILING_THRESHOLD,
            score_default=settings.PLACEHOLDER_SCORE,
        ),
        "report_card": ViewProfile(
            name="report_card",
            precision=settings.PRINT_PRECISION,
            missing_policy=MissingScorePolicy.ZERO_FILL,
            highlight_threshold=settings.FAILING_THRESHOLD,
            passing_threshold=settings.FAILING_THRESHOLD,
            highlight_extremes=True,
        ),
        "dashboard": ViewProfile(
            name="dashboard",
            precision=settings.DASHBOARD_PRECISION,
            missing_policy=MissingScorePolicy.SKIP_ABSENT,
            highlight_threshold=settings.ATTENTION_THRESHOLD,
            highlight_flag=NEEDS_ATTENTION,
            passing_threshold=settings.FAILING_THRESHOLD,
            show_letter_column=True,
        ),
    }


def get_view_profile(name: str, settings: Optional[ReportCardSettings] = None) -> ViewProfile:
    profiles = build_view_profiles(settings)
    if name not in profiles:
        raise ValueError(f"Unknown view '{name}' (expected one of {sorted(profiles)})")
    return profiles[name]


@dataclass
class TableCell:
    """One displayed value"""
    text: str
    kind: str = "score"  # label, score, semester, final, letter
    value: Optional[float] = None
    period_id: Optional[str] = None
    flags: List[str] = field(default_factory=list)


@dataclass
class SubjectRow:
    subject: str
    cells: List[TableCell]
    comment: Optional[str] = None
    final_average: Optional[float] = None


@dataclass
class PerformanceSummary:
    final_average: Optional[float]
    display: str
    letter: str
    comment: str
    passing: bool


@dataclass
class ReportTable:
    """Header, body and footer rows plus the overall summary"""
    view: str
    display_mode: GradeDisplayMode
    header: List[TableCell]
    rows: List[SubjectRow]
    footer: List[TableCell]
    summary: PerformanceSummary
    averages: ComputedAverages

    def to_dict(self) -> Dict[str, Any]:
        def cell(c: TableCell) -> Dict[str, Any]:
            return {"text": c.text, "kind": c.kind, "value": c.value,
                    "period_id": c.period_id, "flags": list(c.flags)}

        return {
            "view": self.view,
            "display_mode": self.display_mode.value,
            "header": [cell(c) for c in self.header],
            "rows": [
                {"subject": r.subject, "comment": r.comment, "final_average": r.final_average,
                 "cells": [cell(c) for c in r.cells]}
                for r in self.rows
            ],
            "footer": [cell(c) for c in self.footer],
            "summary": {
                "final_average": self.summary.final_average,
                "display": self.summary.display,
                "letter": self.summary.letter,
                "comment": self.summary.comment,
                "passing": self.summary.passing,
            },
            "averages": self.averages.model_dump(mode="json"),
        }


def _threshold_flags(value: Optional[float], profile: ViewProfile) -> List[str]:
    return [profile.highlight_flag] if is_below(value, profile.highlight_threshold) else []


def build_report_table(
    report_card: ReportCard,
    profile: ViewProfile,
    display_mode: Optional[GradeDisplayMode] = None,
) -> ReportTable:
    """
    Build the presentation payload for one report card

    Args:
        report_card: Report card with subjects and period list
        profile: View rules (precision, missing policy, highlighting)
        display_mode: Overrides the profile's numeric/letter mode

    Returns:
        ReportTable ready for rendering
    """
    mode = GradeDisplayMode(display_mode or profile.display_mode)
    registry = registry_from_periods(report_card.periods)
    matrix = GradeMatrix.collect(report_card.subjects, registry, default=profile.score_default)
    averages = AverageCalculator(profile.missing_policy).calculate(registry, matrix)

    names = registry.names()
    semesters = averages.semesters
    zero_fill = profile.missing_policy == MissingScorePolicy.ZERO_FILL

    def avg_cell(value: Optional[float], kind: str, period_id: Optional[str] = None) -> TableCell:
        return TableCell(
            text=format_score(value, mode, profile.precision),
            kind=kind,
            value=value,
            period_id=period_id,
            flags=_threshold_flags(value, profile),
        )

    # Header
    header = [TableCell(text="Subject", kind="label")]
    for index, group in enumerate(semesters):
        header.extend(TableCell(text=names[pid], kind="score", period_id=pid) for pid in group)
        if group:
            header.append(TableCell(text=f"Sem {index + 1} Avg", kind="semester"))
    header.append(TableCell(text="Final Avg", kind="final"))
    if profile.show_letter_column:
        header.append(TableCell(text="Grade", kind="letter"))

    # Body
    rows = []
    for row_index, subject in enumerate(matrix.subjects):
        scores = matrix.row_scores(row_index)
        gradable = {pid: scores.get(pid) for group in semesters for pid in group}
        extremes = highlight_extremes(gradable) if profile.highlight_extremes else None

        cells = []
        for sem_index, group in enumerate(semesters):
            for pid in group:
                score = scores.get(pid)
                shown = 0.0 if score is None and zero_fill else score
                flags = _threshold_flags(shown, profile)
                if extremes is not None:
                    if extremes.is_highest(score):
                        flags.append(HIGHEST)
                    if extremes.is_lowest(score):
                        flags.append(LOWEST)
                cells.append(TableCell(
                    text=format_raw_score(shown, mode),
                    kind="score",
                    value=score,
                    period_id=pid,
                    flags=flags,
                ))
            if group:
                cells.append(avg_cell(averages.subject_semester_averages[row_index][sem_index], "semester"))

        final_avg = averages.subject_final_averages[row_index]
        cells.append(avg_cell(final_avg, "final"))
        if profile.show_letter_column:
            cells.append(TableCell(
                text=letter_grade(final_avg) if final_avg is not None else format_score(None),
                kind="letter",
                value=final_avg,
                flags=_threshold_flags(final_avg, profile),
            ))

        rows.append(SubjectRow(
            subject=subject,
            cells=cells,
            comment=(matrix.comments[row_index] or "").strip() or None,
            final_average=final_avg,
        ))

    # Footer
    footer = [TableCell(text="Average", kind="label")]
    for sem_index, group in enumerate(semesters):
        footer.extend(avg_cell(averages.period_class_averages[pid], "score", pid) for pid in group)
        if group:
            footer.append(avg_cell(averages.semester_class_averages[sem_index], "semester"))
    footer.append(avg_cell(averages.final_class_average, "final"))
    if profile.show_letter_column:
        footer.append(TableCell(text="", kind="letter"))

    final_class = averages.final_class_average
    summary = PerformanceSummary(
        final_average=final_class,
        display=format_score(final_class, mode, profile.precision),
        letter=letter_grade(final_class or 0.0),
        comment=performance_comment(final_class),
        passing=(final_class or 0.0) >= profile.passing_threshold,
    )

    return ReportTable(
        view=profile.name,
        display_mode=mode,
        header=header,
        rows=rows,
        footer=footer,
        summary=summary,
        averages=averages,
    )

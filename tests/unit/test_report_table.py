"""
Unit Tests for Report Table

Tests for:
- Column layout (periods, semester averages, final, letter)
- Per-view precision, missing display and highlighting
- Footer class averages and the overall summary
"""

import json

import pytest

from report_card_builder.data_models import GradeDisplayMode, ReportCard, SubjectGrade
from report_card_builder.report_table import (
    FAILING,
    HIGHEST,
    LOWEST,
    NEEDS_ATTENTION,
    build_report_table,
    build_view_profiles,
    get_view_profile,
)


@pytest.fixture
def report_card(sample_subjects, two_semester_periods):
    return ReportCard(id="202400001", name="Jane Doe", subjects=sample_subjects, periods=two_semester_periods)


def texts(cells):
    return [c.text for c in cells]


def cell_for(row, period_id):
    return next(c for c in row.cells if c.period_id == period_id)


class TestViewProfiles:
    """Tests for the built-in views"""

    def test_profiles(self, settings):
        profiles = build_view_profiles(settings)
        assert set(profiles) == {"admin", "report_card", "dashboard"}
        assert profiles["admin"].precision == 2
        assert profiles["admin"].score_default == 90.0
        assert profiles["dashboard"].precision == 1
        assert profiles["dashboard"].highlight_threshold == 70.0
        assert profiles["dashboard"].passing_threshold == 60.0
        assert profiles["report_card"].highlight_extremes

    def test_unknown_view(self, settings):
        with pytest.raises(ValueError):
            get_view_profile("transcript", settings)


class TestReportCardView:
    """Printable report card: absent = 0, failing below 60"""

    def test_header(self, report_card, settings):
        table = build_report_table(report_card, get_view_profile("report_card", settings))
        assert texts(table.header) == [
            "Subject", "p1", "p2", "p3", "exam1", "Sem 1 Avg",
            "p4", "p5", "p6", "exam2", "Sem 2 Avg", "Final Avg",
        ]

    def test_subject_rows(self, report_card, settings):
        table = build_report_table(report_card, get_view_profile("report_card", settings))
        math, english = table.rows

        assert math.subject == "Math"
        assert math.comment == "Strong term"
        assert texts(math.cells) == [
            "90", "80", "70", "60", "75.00", "100", "90", "0", "0", "47.50", "61.25",
        ]
        assert english.comment is None
        assert texts(english.cells)[:5] == ["85", "75", "0", "95", "63.75"]

    def test_flags(self, report_card, settings):
        table = build_report_table(report_card, get_view_profile("report_card", settings))
        math, english = table.rows

        assert cell_for(math, "p4").flags == [HIGHEST]
        assert cell_for(math, "exam1").flags == [LOWEST]
        assert cell_for(math, "p1").flags == []
        assert cell_for(math, "p6").flags == [FAILING]
        assert FAILING in math.cells[9].flags  # Sem 2 Avg 47.50

        # Invalid input shows as 0 but keeps no stored value
        assert cell_for(english, "p3").value is None
        assert cell_for(english, "p3").flags == [FAILING]

    def test_footer_and_summary(self, report_card, settings):
        table = build_report_table(report_card, get_view_profile("report_card", settings))

        assert table.footer[0].text == "Average"
        assert texts(table.footer)[1:6] == ["87.50", "77.50", "35.00", "77.50", "69.38"]
        assert table.footer[-1].text == "46.56"

        assert table.summary.display == "46.56"
        assert table.summary.letter == "F"
        assert table.summary.passing is False

    def test_letter_mode(self, report_card, settings):
        table = build_report_table(
            report_card, get_view_profile("report_card", settings), GradeDisplayMode.LETTER
        )
        math = table.rows[0]
        assert table.display_mode == GradeDisplayMode.LETTER
        assert texts(math.cells)[:5] == ["A", "B", "C", "D", "C"]


class TestDashboardView:
    """Student dashboard: absent skipped, needs attention below 70"""

    def test_rows(self, report_card, settings):
        table = build_report_table(report_card, get_view_profile("dashboard", settings))
        math, english = table.rows

        assert table.header[-1].text == "Grade"
        assert texts(math.cells) == [
            "90", "80", "70", "60", "75.0", "100", "90", "-", "-", "95.0", "85.0", "B",
        ]
        assert texts(english.cells)[2] == "-"
        assert texts(english.cells)[9] == "-"

    def test_attention_flags(self, report_card, settings):
        table = build_report_table(report_card, get_view_profile("dashboard", settings))
        math, english = table.rows

        assert cell_for(math, "exam1").flags == [NEEDS_ATTENTION]
        assert cell_for(math, "p3").flags == []
        assert cell_for(english, "p3").flags == []
        assert HIGHEST not in cell_for(math, "p4").flags

    def test_summary(self, report_card, settings):
        table = build_report_table(report_card, get_view_profile("dashboard", settings))
        assert table.summary.display == "85.0"
        assert table.summary.letter == "B"
        assert table.summary.passing is True
        assert table.footer[-1].text == ""


class TestAdminView:
    """Admin entry grid: invalid or blank input shows the placeholder"""

    def test_placeholder_scores(self, report_card, settings):
        table = build_report_table(report_card, get_view_profile("admin", settings))
        english = table.rows[1]
        assert cell_for(english, "p3").text == "90"
        assert cell_for(english, "exam2").text == "90"


class TestEdgeCases:
    """Tests for empty report cards"""

    def test_no_subjects_uses_default_periods(self, settings):
        card = ReportCard(id="1", name="Empty")
        table = build_report_table(card, get_view_profile("report_card", settings))

        assert table.rows == []
        assert "1st Period" in texts(table.header)
        assert "1st Sem Avg" not in texts(table.header)
        assert table.footer[-1].text == "0.00"
        assert table.summary.passing is False

    def test_to_dict_is_json_serializable(self, report_card, settings):
        payload = build_report_table(report_card, get_view_profile("dashboard", settings)).to_dict()
        decoded = json.loads(json.dumps(payload))

        assert decoded["view"] == "dashboard"
        assert decoded["display_mode"] == "numeric"
        assert decoded["rows"][0]["subject"] == "Math"
        assert decoded["summary"]["letter"] == "B"
        assert decoded["averages"]["missing_policy"] == "skip_absent"


class TestMidYear:
    """Cards with only the first semester entered"""

    def test_summary_uses_semesters_with_scores(self, settings):
        first_semester = {"p1": 85, "p2": 85, "p3": 85, "exam1": 85}
        card = ReportCard(
            id="1",
            name="Jane",
            subjects=[
                SubjectGrade(subject="Math", scores=first_semester),
                SubjectGrade(subject="English", scores=first_semester),
            ],
        )
        table = build_report_table(card, get_view_profile("report_card", settings))

        assert [row.final_average for row in table.rows] == pytest.approx([85.0, 85.0])
        assert table.footer[-1].text == "85.00"
        assert table.summary.display == "85.00"
        assert table.summary.letter == "B"
        assert table.summary.passing is True

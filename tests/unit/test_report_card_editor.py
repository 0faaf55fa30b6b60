"""
Unit Tests for Report Card Editor

Tests for:
- New and loaded editing sessions
- Subject and period mutations with their guards
- Form vs. submission defaults
- Submission validation
"""

import random

import pytest

from report_card_builder.data_models import ReportCard
from report_card_builder.period_registry import LAST_PERIOD_WARNING
from report_card_builder.report_card_editor import (
    FIRST_SUBJECT_WARNING,
    MISSING_DETAILS_MESSAGE,
    NO_SUBJECTS_MESSAGE,
    ReportCardEditor,
    generate_student_id,
)
from report_card_builder.report_table import get_view_profile

from conftest import make_periods


@pytest.fixture
def editor(settings):
    return ReportCardEditor(settings=settings)


class TestSession:
    """Tests for starting a session"""

    def test_new_card(self, settings):
        editor = ReportCardEditor.new(settings)
        assert len(editor.registry) == 10
        assert len(editor.subjects) == 1
        assert editor.subjects[0].subject == ""
        assert editor.report_card.academic_year == "2023-2024"
        assert editor.editing_existing is False

    def test_load_document(self, editor, student_document):
        editor.load(student_document)
        assert editor.editing_existing is True
        assert editor.report_card.student_id == "202412345"
        assert editor.registry.ids == ["p1", "p2", "p3", "exam1", "p4", "p5", "p6", "exam2"]

    def test_reset(self, editor, student_document):
        editor.load(student_document)
        editor.reset()
        assert editor.editing_existing is False
        assert editor.report_card.student_id == ""

    def test_generate_student_id(self):
        student_id = generate_student_id(2024, random.Random(7))
        assert student_id.startswith("2024")
        assert len(student_id) == 9
        assert student_id.isdigit()


class TestSubjects:
    """Tests for subject rows"""

    def test_first_subject_cannot_be_removed(self, editor):
        assert editor.remove_subject(0) is False
        assert editor.messages == [FIRST_SUBJECT_WARNING]
        assert len(editor.subjects) == 1

    def test_add_rename_remove(self, editor):
        index = editor.add_subject("Art")
        assert index == 1
        editor.rename_subject(0, "  Math ")
        editor.set_comment(0, "Good")

        assert [s.subject for s in editor.subjects] == ["Math", "Art"]
        assert editor.subjects[0].comment == "Good"
        assert editor.remove_subject(1) is True
        assert [s.subject for s in editor.subjects] == ["Math"]

    def test_set_score(self, editor):
        editor.set_score(0, "p1", "88")
        assert editor.subjects[0].scores == {"p1": "88"}

    def test_set_score_unknown_period(self, editor):
        with pytest.raises(ValueError):
            editor.set_score(0, "p42", 70)


class TestPeriods:
    """Tests for period changes in a session"""

    def test_add_period(self, editor):
        period = editor.add_period("period")
        assert (period.id, period.name) == ("p7", "7th Period")
        assert editor.current.periods[-1].id == "p7"

    def test_add_exam_to_loaded_card(self, settings):
        card = ReportCard(id="1", name="A", periods=make_periods("p1", "p2"))
        editor = ReportCardEditor(card, settings)
        exam = editor.add_period("exam", "Finals")
        assert (exam.id, exam.name) == ("exam1", "Finals")
        assert [p.id for p in editor.current.periods] == ["p1", "p2", "exam1"]

    def test_last_period_cannot_be_removed(self, settings):
        card = ReportCard(id="1", name="A", periods=make_periods("p1"))
        editor = ReportCardEditor(card, settings)

        assert editor.remove_period("p1") is False
        assert editor.messages == [LAST_PERIOD_WARNING]
        assert editor.registry.ids == ["p1"]


class TestOutput:
    """Tests for computed output of a session"""

    def test_form_and_submission_defaults(self, editor):
        editor.set_score(0, "p1", "75")
        editor.set_score(0, "p2", "")

        form = editor.form_matrix()
        submission = editor.submission_matrix()

        assert form.score(0, "p1") == 75.0
        assert form.score(0, "p2") == 90.0
        assert submission.score(0, "p2") == 0.0
        assert "sem1" not in form.period_ids

    def test_averages_follow_edits(self, editor, settings):
        profile = get_view_profile("report_card", settings)
        editor.rename_subject(0, "Math")
        for period_id in ("p1", "p2", "p3", "exam1"):
            editor.set_score(0, period_id, 80)
        assert editor.averages(profile).subject_semester_averages[0][0] == 80.0

        editor.set_score(0, "exam1", 40)
        assert editor.averages(profile).subject_semester_averages[0][0] == 70.0

    def test_table(self, editor, settings):
        editor.rename_subject(0, "Math")
        table = editor.table(get_view_profile("dashboard", settings))
        assert table.rows[0].subject == "Math"
        assert table.rows[0].cells[-1].text == "-"


class TestSubmission:
    """Tests for build_submission"""

    def test_missing_details(self, editor):
        editor.rename_subject(0, "Math")
        with pytest.raises(ValueError, match="Please enter School Name"):
            editor.build_submission()

    def test_no_named_subject(self, editor):
        editor.set_details(school_name="ESA", name="Jane", student_id="2024123")
        with pytest.raises(ValueError) as excinfo:
            editor.build_submission()
        assert str(excinfo.value) == NO_SUBJECTS_MESSAGE

    def test_submission_document(self, editor):
        editor.set_details(school_name="ESA", name="Jane", student_id="2024123", class_name="7A")
        editor.rename_subject(0, "Math")
        editor.add_subject("")
        editor.set_score(0, "p1", "95")
        editor.set_score(0, "p2", "oops")

        document = editor.build_submission()

        assert document["_id"] == "2024123"
        assert document["schoolName"] == "ESA"
        assert document["className"] == "7A"
        assert len(document["grades"]) == 1
        math = document["grades"][0]
        assert math["p1"] == 95.0
        assert math["p2"] == 0.0
        assert math["exam2"] == 0.0
        assert "sem1" not in math
        assert len(document["periods"]) == 10

    def test_missing_details_message(self):
        assert MISSING_DETAILS_MESSAGE == "Please enter School Name, Student Name, and ID."

"""
Pytest Configuration and Fixtures

Provides common fixtures for all tests including:
- Period lists and registries
- Subject grade rows
- Stored student documents and backups
- Settings isolated from the environment
"""

import json
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from report_card_builder.config import ReportCardSettings
from report_card_builder.data_models import Period, PeriodType, SubjectGrade
from report_card_builder.period_registry import PeriodRegistry


def make_periods(*ids):
    """Periods for ids, type inferred from the prefix"""
    periods = []
    for pid in ids:
        if pid.startswith("exam"):
            ptype = PeriodType.EXAM
        elif pid.startswith("sem"):
            ptype = PeriodType.SEMESTER
        else:
            ptype = PeriodType.PERIOD
        periods.append(Period(id=pid, name=pid, type=ptype))
    return periods


@pytest.fixture
def settings():
    """Settings with library defaults, ignoring any .env file"""
    return ReportCardSettings(_env_file=None)


@pytest.fixture
def two_semester_periods():
    return make_periods("p1", "p2", "p3", "exam1", "p4", "p5", "p6", "exam2")


@pytest.fixture
def two_semester_registry(two_semester_periods):
    return PeriodRegistry(two_semester_periods)


@pytest.fixture
def sample_subjects():
    """Two subjects, full first semester, partial second"""
    return [
        SubjectGrade(
            subject="Math",
            comment="Strong term",
            scores={"p1": 90, "p2": 80, "p3": 70, "exam1": 60, "p4": 100, "p5": 90},
        ),
        SubjectGrade(
            subject="English",
            scores={"p1": "85", "p2": 75, "p3": "abc", "exam1": 95, "p4": None},
        ),
    ]


@pytest.fixture
def student_document():
    """Stored document without an explicit period list (legacy shape)"""
    return {
        "_id": "202412345",
        "name": "Jane Doe",
        "className": "Grade 7A",
        "rollNumber": 12,
        "schoolName": "Old School Name",
        "academicYear": "2024-2025",
        "principalComment": "Keep it up.",
        "sponsorId": "instructor-1",
        "grades": [
            {"subject": "Math", "p1": 90, "p2": 80, "p3": 70, "exam1": 60,
             "p4": 88, "p5": 92, "p6": 79, "exam2": 81, "_id": "abc123"},
            {"subject": "Science", "comment": "Needs focus", "p1": 55, "p2": 65,
             "p3": 58, "exam1": 62, "p4": 70, "p5": 68, "p6": 74, "exam2": 66},
        ],
        "createdAt": "2024-09-01T10:00:00Z",
    }


@pytest.fixture
def backup_file(tmp_path, student_document):
    backup = {
        "timestamp": "2024-10-01T00:00:00Z",
        "version": "1.0",
        "data": {
            "students": [
                student_document,
                {"_id": "202400002", "name": "John Roe", "sponsorId": "instructor-2",
                 "className": "Grade 7B", "grades": []},
            ],
            "settings": [{"sponsorId": "instructor-1", "schoolName": "Emmanuel Suah Academy",
                          "academicYear": "2024-2025"}],
            "logs": [{"action": "ADD_STUDENT", "details": "Added student: Jane Doe"}],
        },
    }
    path = tmp_path / "backup.json"
    path.write_text(json.dumps(backup), encoding="utf-8")
    return path

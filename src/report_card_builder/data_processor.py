#!/usr/bin/env python3
"""
DATA PROCESSOR - Report card documents, backups and grade spreadsheets
Convert between stored documents and ReportCard models, and load/save them

DATA SOURCES:
✅ Student documents - {_id, name, className, rollNumber, schoolName,
   academicYear, principalComment, grades: [{subject, comment, p1, ...}]}
✅ Sponsor settings - schoolName / academicYear per instructor
✅ JSON backups - {timestamp, version, data: {students, settings, logs}}
✅ Grades CSV - one row per student and subject, one column per period
✅ Activity logs - instructor and student actions for the super-admin audit view

PERIOD MIGRATION:
- Documents saved with an explicit "periods" list use it as-is
- Older documents only have score keys; the period registry is derived once
  from the keys of the first grade entry (see period_registry.derive_from_scores)

VALIDATION STRATEGY:
1. Invalid documents are skipped and reported, never fatal for a whole backup
2. Access is scoped by owning instructor (sponsorId) unless super admin
3. Student look-up requires the id and a case-insensitive name match
4. Saves, deletes, student logins and log cleanups are recorded as activity

Priority: HIGH - Boundary with the document store
Dependencies: pandas, pydantic, data_models.py, period_registry.py
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd
from pydantic import ValidationError

from .config import ReportCardSettings, get_settings
from .data_models import ActivityLog, Period, ReportCard, SubjectGrade
from .grade_matrix import GradeMatrix
from .period_registry import NON_PERIOD_KEYS, PeriodRegistry, registry_from_periods

logger = logging.getLogger(__name__)


BACKUP_VERSION = "1.0"

CSV_KEY_COLUMNS = ["student_id", "name", "subject", "comment"]

# Audit view: newest entries first, more of them when a filter is applied
LOG_LIMIT = 200
FILTERED_LOG_LIMIT = 1000

INSTRUCTOR = "INSTRUCTOR"
STUDENT = "STUDENT"


def _is_period_key(key: str) -> bool:
    return key not in NON_PERIOD_KEYS and not key.startswith("_")


def _as_datetime(value: Any) -> datetime:
    """Naive UTC datetime from a date, datetime or date string"""
    try:
        stamp = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid date format: {value}") from e
    if pd.isna(stamp):
        raise ValueError(f"Invalid date format: {value}")
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert("UTC").tz_localize(None)
    return stamp.to_pydatetime()


def document_to_report_card(document: Mapping[str, Any]) -> ReportCard:
    """
    Build a ReportCard from a stored student document

    Args:
        document: Student document as kept by the document store

    Returns:
        ReportCard with subjects and an explicit period list
    """
    grades = list(document.get("grades") or [])

    subjects = []
    for entry in grades:
        entry = dict(entry or {})
        subjects.append(SubjectGrade(
            subject=entry.get("subject"),
            comment=entry.get("comment"),
            scores={str(k): v for k, v in entry.items() if _is_period_key(str(k))},
        ))

    stored_periods = document.get("periods")
    if stored_periods:
        registry = PeriodRegistry(Period.model_validate(p) for p in stored_periods)
    else:
        registry = PeriodRegistry.derive_from_scores(grades[0] if grades else {})

    fields = {k: v for k, v in document.items() if k not in ("grades", "periods", "_id")}
    if "id" not in fields and "_id" in document:
        fields["id"] = document["_id"]

    return ReportCard.model_validate({**fields, "subjects": subjects, "periods": registry.periods})


def report_card_to_document(
    report_card: ReportCard,
    default: Optional[float],
) -> Dict[str, Any]:
    """
    Flatten a ReportCard into a storable document

    Scores are parsed for every gradable period of the card; invalid or missing
    input is written as default, or left out when default is None.
    """
    registry = registry_from_periods(report_card.periods)
    matrix = GradeMatrix.collect(report_card.subjects, registry.gradable_periods, default=default)

    document = report_card.model_dump(by_alias=True, exclude={"subjects", "periods"})
    document["_id"] = report_card.student_id
    document["grades"] = matrix.to_records(default=default)
    document["periods"] = [p.model_dump(mode="json") for p in registry.periods]
    return document


def merge_sponsor_settings(
    document: Mapping[str, Any],
    settings_document: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """Copy of document with the sponsor's configured school name applied"""
    merged = dict(document)
    if settings_document and settings_document.get("schoolName"):
        merged["schoolName"] = settings_document["schoolName"]
    return merged


class ReportCardDataProcessor:
    """Load, scope and save report card documents"""

    def __init__(self, data_dir: Path = None, settings: Optional[ReportCardSettings] = None):
        if data_dir is None:
            self.data_dir = Path.cwd() / "data"
        else:
            self.data_dir = Path(data_dir)
        self.settings = settings or get_settings()

        # Data storage
        self.documents: Dict[str, Dict[str, Any]] = {}  # student id -> raw document
        self.sponsor_settings: Dict[str, Dict[str, Any]] = {}  # sponsorId -> settings
        self.activity_logs: List[ActivityLog] = []

        # Validation results
        self.validation_errors: List[str] = []
        self.validation_warnings: List[str] = []

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def load_backup(self, file_path: Path) -> bool:
        """Load a JSON backup file into memory"""

        file_path = Path(file_path)
        if not file_path.is_absolute():
            file_path = self.data_dir / file_path

        try:
            logger.info(f"📊 Loading backup from: {file_path}")
            with open(file_path, "r", encoding="utf-8") as f:
                backup = json.load(f)
        except (OSError, ValueError) as e:
            self.validation_errors.append(f"Could not read backup {file_path}: {e}")
            logger.error(f"  ❌ Failed to load backup: {e}")
            return False

        data = backup.get("data") if isinstance(backup, dict) else None
        if not isinstance(data, dict) or "students" not in data:
            self.validation_errors.append("Invalid backup file format")
            logger.error("  ❌ Invalid backup file format")
            return False

        restored = self.restore(data)
        logger.info(f"  ✅ Loaded {restored} student records")
        return True

    def restore(self, data: Mapping[str, Any]) -> int:
        """
        Upsert students and settings from backup data

        Logs are appended, never replaced.

        Returns:
            Number of student documents restored
        """
        restored = 0
        for document in data.get("students") or []:
            student_id = document.get("_id", document.get("id"))
            if student_id in (None, ""):
                self.validation_warnings.append(f"Skipped student without id: {document.get('name')}")
                continue
            try:
                document_to_report_card(document)
            except (ValidationError, ValueError) as e:
                self.validation_warnings.append(f"Skipped invalid student {student_id}: {e}")
                logger.warning(f"  ⚠️  Skipped invalid student {student_id}")
                continue
            self.documents[str(student_id)] = dict(document)
            restored += 1

        for settings in data.get("settings") or []:
            sponsor_id = settings.get("sponsorId")
            if sponsor_id:
                self.sponsor_settings[str(sponsor_id)] = dict(settings)

        for entry in data.get("logs") or []:
            try:
                self.activity_logs.append(ActivityLog.model_validate(entry))
            except ValidationError as e:
                self.validation_warnings.append(f"Skipped invalid log entry: {e}")
        return restored

    def build_backup(self) -> Dict[str, Any]:
        return {
            "timestamp": datetime.now().isoformat(),
            "version": BACKUP_VERSION,
            "data": {
                "students": list(self.documents.values()),
                "settings": list(self.sponsor_settings.values()),
                "logs": [
                    log.model_dump(by_alias=True, mode="json", exclude_none=True)
                    for log in self.activity_logs
                ],
            },
        }

    def write_backup(self, output_path: Optional[Path] = None) -> Path:
        """Write all documents to a dated JSON backup"""
        if output_path is None:
            output_path = self.data_dir / f"backup-{datetime.now().strftime('%Y-%m-%d')}.json"
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.build_backup(), f, indent=2, default=str)

        logger.info(f"💾 Backup of {len(self.documents)} students written to {output_path}")
        return output_path

    # ------------------------------------------------------------------
    # Report cards
    # ------------------------------------------------------------------

    def save(self, report_card: ReportCard, actor_id: Optional[str] = None, actor_email: Optional[str] = None):
        """Store (insert or replace) a report card; omitted scores get the submission default"""
        is_new = report_card.student_id not in self.documents
        self.documents[report_card.student_id] = report_card_to_document(
            report_card, self.settings.SUBMISSION_DEFAULT_SCORE
        )

        verb = "Added" if is_new else "Updated"
        self.record_activity(
            "ADD_STUDENT" if is_new else "UPDATE_STUDENT",
            f"{verb} student: {report_card.name} (ID: {report_card.student_id})",
            instructor_id=actor_id or report_card.sponsor_id,
            instructor_email=actor_email or "Unknown",
        )

    def delete(self, student_id: str, actor_id: Optional[str] = None, actor_email: Optional[str] = None) -> bool:
        document = self.documents.pop(str(student_id), None)
        if document is None:
            return False

        self.record_activity(
            "DELETE_STUDENT",
            f"Deleted student: {document.get('name')} (ID: {student_id})",
            instructor_id=actor_id,
            instructor_email=actor_email or "Unknown",
        )
        return True

    def get_report_card(self, student_id: str, apply_settings: bool = True) -> ReportCard:
        """
        Report card for a student id

        The owning sponsor's school name replaces the stored one when
        apply_settings is set.
        """
        document = self.documents.get(str(student_id))
        if document is None:
            raise ValueError(f"Student {student_id} not found")

        if apply_settings and document.get("sponsorId"):
            document = merge_sponsor_settings(
                document, self.sponsor_settings.get(str(document["sponsorId"]))
            )
        return document_to_report_card(document)

    def report_cards(self) -> List[ReportCard]:
        return [self.get_report_card(student_id) for student_id in self.documents]

    def cards_for_actor(self, actor_id: str, is_super_admin: bool = False) -> List[ReportCard]:
        """Report cards the caller may list or change"""
        cards = self.report_cards()
        if is_super_admin:
            return cards
        return [c for c in cards if c.sponsor_id == actor_id]

    def find_for_student_login(self, student_id: str, name: str) -> Optional[ReportCard]:
        """Report card when the id exists and the name matches (case-insensitive)"""
        try:
            card = self.get_report_card(str(student_id).strip())
        except ValueError:
            return None

        if card.name.strip().lower() != (name or "").strip().lower():
            logger.info(f"Name does not match student {student_id}")
            return None

        self.record_activity(
            "STUDENT_LOGIN",
            student_id=card.student_id,
            student_name=card.name,
            user_type=STUDENT,
        )
        return card

    # ------------------------------------------------------------------
    # Activity logs
    # ------------------------------------------------------------------

    def record_activity(
        self,
        action: str,
        details: str = "",
        instructor_id: Optional[str] = None,
        instructor_email: Optional[str] = None,
        student_id: Optional[str] = None,
        student_name: Optional[str] = None,
        user_type: str = INSTRUCTOR,
        timestamp: Optional[datetime] = None,
    ) -> ActivityLog:
        """Append one audit entry (timestamped now unless given)"""
        fields = {
            "action": action,
            "details": details,
            "instructor_id": instructor_id,
            "instructor_email": instructor_email,
            "student_id": student_id,
            "student_name": student_name,
            "user_type": user_type,
        }
        if timestamp is not None:
            fields["timestamp"] = timestamp

        entry = ActivityLog(**fields)
        self.activity_logs.append(entry)
        logger.debug(f"📝 {entry.user_type} {entry.action}: {entry.details}")
        return entry

    def query_logs(
        self,
        start_date=None,
        end_date=None,
        search: Optional[str] = None,
        action: Optional[str] = None,
        user_type: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ActivityLog]:
        """
        Audit entries, newest first

        Args:
            start_date: Earliest timestamp (inclusive)
            end_date: Last day to include; the whole day counts
            search: Case-insensitive text in email, student name/id, action or details
            action: Exact action name
            user_type: INSTRUCTOR or STUDENT
            limit: Maximum entries; 200 by default, 1000 when any filter is set

        Raises:
            ValueError: For a date that cannot be parsed
        """
        filtering = any((start_date, end_date, search, action, user_type))
        logs = list(self.activity_logs)

        if user_type:
            logs = [log for log in logs if log.user_type == user_type.strip()]
        if action:
            logs = [log for log in logs if log.action == action.strip()]
        if start_date:
            start = _as_datetime(start_date)
            logs = [log for log in logs if log.timestamp >= start]
        if end_date:
            end = _as_datetime(end_date).replace(hour=23, minute=59, second=59, microsecond=999999)
            logs = [log for log in logs if log.timestamp <= end]
        if search:
            logs = [log for log in logs if log.matches(search)]

        if limit is None:
            limit = FILTERED_LOG_LIMIT if filtering else LOG_LIMIT
        logs.sort(key=lambda log: log.timestamp, reverse=True)
        return logs[:limit]

    def delete_logs_older_than(
        self,
        older_than,
        actor_id: Optional[str] = None,
        actor_email: Optional[str] = None,
    ) -> int:
        """
        Remove audit entries before a date and record the cleanup

        Returns:
            Number of entries removed

        Raises:
            ValueError: When the date is missing or cannot be parsed
        """
        if not older_than:
            raise ValueError("Missing olderThan date parameter")
        threshold = _as_datetime(older_than)

        kept = [log for log in self.activity_logs if log.timestamp >= threshold]
        deleted = len(self.activity_logs) - len(kept)
        self.activity_logs = kept

        self.record_activity(
            "CLEANUP_LOGS",
            f"Deleted {deleted} logs older than {older_than}",
            instructor_id=actor_id,
            instructor_email=actor_email or "Unknown",
        )
        logger.info(f"🧹 Deleted {deleted} activity logs older than {older_than}")
        return deleted

    # ------------------------------------------------------------------
    # Grades spreadsheet
    # ------------------------------------------------------------------

    def grades_frame(self, student_ids: Optional[Iterable[str]] = None) -> pd.DataFrame:
        """Wide grades table: one row per student and subject"""
        wanted = set(str(s) for s in student_ids) if student_ids is not None else None

        frames = []
        period_order: List[str] = []
        for student_id in self.documents:
            if wanted is not None and student_id not in wanted:
                continue
            card = self.get_report_card(student_id, apply_settings=False)
            registry = registry_from_periods(card.periods)
            matrix = GradeMatrix.collect(card.subjects, registry.gradable_periods, default=None)

            frame = matrix.frame.copy()
            frame.insert(0, "student_id", card.student_id)
            frame.insert(1, "name", card.name)
            frame.insert(2, "subject", matrix.subjects)
            frame.insert(3, "comment", matrix.comments)
            frames.append(frame)
            period_order.extend(pid for pid in matrix.period_ids if pid not in period_order)

        if not frames:
            return pd.DataFrame(columns=CSV_KEY_COLUMNS)
        return pd.concat(frames, ignore_index=True)[CSV_KEY_COLUMNS + period_order]

    def export_grades_csv(self, output_path: Path, student_ids: Optional[Iterable[str]] = None) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        df = self.grades_frame(student_ids)
        df.to_csv(output_path, index=False)
        logger.info(f"💾 Exported {len(df)} grade rows to {output_path}")
        return output_path

    def import_grades_csv(self, file_path: Path) -> bool:
        """
        Replace the grades of existing students from a wide grades CSV

        Period columns are every column besides student_id, name, subject and
        comment; blank cells stay absent. Unknown students are reported and
        skipped.
        """
        file_path = Path(file_path)
        try:
            logger.info(f"📊 Loading grades from: {file_path}")
            df = pd.read_csv(file_path, encoding="utf-8-sig", dtype={"student_id": str})
        except (OSError, ValueError) as e:
            self.validation_errors.append(f"Could not read grades CSV {file_path}: {e}")
            logger.error(f"  ❌ Failed to load grades: {e}")
            return False

        missing = [c for c in ("student_id", "subject") if c not in df.columns]
        if missing:
            self.validation_errors.append(f"Grades CSV missing columns: {missing}")
            return False

        period_ids = [c for c in df.columns if c not in CSV_KEY_COLUMNS]
        updated = 0
        for student_id, rows in df.groupby("student_id", sort=False):
            student_id = str(student_id).strip()
            if student_id not in self.documents:
                self.validation_warnings.append(f"Grades for unknown student {student_id} skipped")
                continue

            card = self.get_report_card(student_id, apply_settings=False)
            subjects = []
            for _, row in rows.iterrows():
                comment = row.get("comment")
                subjects.append(SubjectGrade(
                    subject="" if pd.isna(row["subject"]) else row["subject"],
                    comment=None if comment is None or pd.isna(comment) else str(comment),
                    scores={pid: row[pid] for pid in period_ids if not pd.isna(row[pid])},
                ))

            # Columns of the sheet become the card's periods, keeping known names
            known = {p.id: p for p in card.periods}
            derived = PeriodRegistry.derive_from_scores({pid: None for pid in period_ids})
            periods = [known.get(p.id, p) for p in derived]

            self.documents[student_id] = report_card_to_document(
                card.model_copy(update={"subjects": subjects, "periods": periods}),
                default=None,
            )
            updated += 1

        logger.info(f"  ✅ Updated grades for {updated} students")
        return True

    def generate_validation_report(self) -> str:
        lines = ["REPORT CARD DATA VALIDATION", "=" * 40]
        lines.append(f"Students: {len(self.documents)}")
        lines.append(f"Errors: {len(self.validation_errors)}")
        lines.extend(f"  ❌ {e}" for e in self.validation_errors)
        lines.append(f"Warnings: {len(self.validation_warnings)}")
        lines.extend(f"  ⚠️ {w}" for w in self.validation_warnings)
        return "\n".join(lines)

#!/usr/bin/env python3
"""
PERIOD REGISTRY - Ordered grading periods for one report card
Add, remove, derive and group the periods a report card is graded on

OPERATIONS:
✅ add_period: Next sequential id per kind (p1, p2, ... / exam1, exam2, ...)
✅ remove_period: Rejected (with warning) when it would leave zero periods
✅ derive_from_scores: Rebuild periods from the keys of a stored score map
✅ group_into_semesters: Split periods into semesters closed by exams

DEFAULT SET (kept exactly for stored documents without grades):
1st Period, 2nd Period, 3rd Period, 1st Semester (exam), 1st Sem Avg,
4th Period, 5th Period, 6th Period, 2nd Semester (exam), 2nd Sem Avg

ORDERING:
- Registry order decides which exam closes which semester
- A semester group closes right after each exam-type period
- Inside a group, pN periods are put in number order ahead of the exam;
  other ids keep their place after them
- Trailing periods without an exam form a final, partial semester
- Semester-type periods are computed columns and are skipped when grouping

Priority: HIGH - Drives every average and table column
Dependencies: data_models.py for Period definitions
"""

import logging
import re
import time
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from .data_models import Period, PeriodType

logger = logging.getLogger(__name__)


# Keys stored next to scores in a grade entry that are not periods
NON_PERIOD_KEYS = frozenset({"subject", "comment", "_id", "id", "__v"})

DEFAULT_PERIODS = (
    ("p1", "1st Period", PeriodType.PERIOD),
    ("p2", "2nd Period", PeriodType.PERIOD),
    ("p3", "3rd Period", PeriodType.PERIOD),
    ("exam1", "1st Semester", PeriodType.EXAM),
    ("sem1", "1st Sem Avg", PeriodType.SEMESTER),
    ("p4", "4th Period", PeriodType.PERIOD),
    ("p5", "5th Period", PeriodType.PERIOD),
    ("p6", "6th Period", PeriodType.PERIOD),
    ("exam2", "2nd Semester", PeriodType.EXAM),
    ("sem2", "2nd Sem Avg", PeriodType.SEMESTER),
)

# Names the admin screen has always shown for the default exam/average ids
LEGACY_PERIOD_NAMES = {
    "exam1": "1st Semester",
    "exam2": "2nd Semester",
    "sem1": "1st Sem Avg",
    "sem2": "2nd Sem Avg",
}

MIN_PERIODS = 1
LAST_PERIOD_WARNING = "You must have at least one period."


def get_default_periods() -> List[Period]:
    """Fresh copy of the ten default periods"""
    return [Period(id=pid, name=name, type=ptype) for pid, name, ptype in DEFAULT_PERIODS]


def ordinal_suffix(number: int) -> str:
    """English ordinal suffix: 1 -> st, 2 -> nd, 3 -> rd, 11/12/13 -> th"""
    ones, tens = number % 10, number % 100
    if ones == 1 and tens != 11:
        return "st"
    if ones == 2 and tens != 12:
        return "nd"
    if ones == 3 and tens != 13:
        return "rd"
    return "th"


def numeric_suffix(period_id: str) -> Optional[int]:
    """Trailing number of a period id (p12 -> 12), None when there is none"""
    match = re.search(r"(\d+)$", period_id)
    return int(match.group(1)) if match else None


def infer_period_type(period_id: str) -> PeriodType:
    """Infer type from id prefix: exam* -> exam, sem* -> semester, else period"""
    if period_id.startswith("exam"):
        return PeriodType.EXAM
    if period_id.startswith("sem"):
        return PeriodType.SEMESTER
    return PeriodType.PERIOD


def default_period_name(period_id: str, period_type: Optional[PeriodType] = None) -> str:
    """Display name derived from a period id"""
    if period_id in LEGACY_PERIOD_NAMES:
        return LEGACY_PERIOD_NAMES[period_id]

    period_type = period_type or infer_period_type(period_id)
    if not re.fullmatch(r"(p|exam|sem)\d+", period_id):
        # Timestamp fallback ids and foreign keys keep their raw key
        return period_id

    number = numeric_suffix(period_id)
    if period_type == PeriodType.EXAM:
        return f"Exam {number}"
    if period_type == PeriodType.SEMESTER:
        return f"{number}{ordinal_suffix(number)} Sem Avg"
    return f"{number}{ordinal_suffix(number)} Period"


def _period_number(period_id: str) -> Optional[int]:
    match = re.fullmatch(r"p(\d+)", period_id)
    return int(match.group(1)) if match else None


def _in_number_order(periods: List[Period]) -> List[Period]:
    """Numbered periods by number; anything else after them, order kept"""
    def key(period: Period):
        number = _period_number(period.id)
        return (number is None, number or 0)
    return sorted(periods, key=key)


def group_into_semesters(periods: Iterable[Period]) -> List[List[Period]]:
    """
    Split periods into semester groups

    e.g. [p1, p2, p3, exam1, p4, p5, p6, exam2] -> [[p1, p2, p3, exam1], [p4, p5, p6, exam2]]
    e.g. [p2, p1, exam1, p3] -> [[p1, p2, exam1], [p3]]

    Args:
        periods: Periods in registry order

    Returns:
        List of semester groups; always at least one (possibly empty) group
    """
    semesters: List[List[Period]] = []
    current: List[Period] = []

    for period in periods:
        if not period.is_gradable:
            continue
        if period.is_exam:
            semesters.append(_in_number_order(current) + [period])
            current = []
        else:
            current.append(period)

    # Leftovers without a closing exam, or nothing at all
    if current or not semesters:
        semesters.append(_in_number_order(current))

    return semesters


class PeriodRegistry:
    """Ordered, uniquely keyed set of grading periods owned by one report card"""

    def __init__(
        self,
        periods: Optional[Iterable[Period]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize registry

        Args:
            periods: Initial periods in display order
            clock: Time source for collision fallback ids
        """
        self._periods: List[Period] = list(periods or [])
        self._clock = clock
        self.messages: List[str] = []

        seen = set()
        for period in self._periods:
            if period.id in seen:
                raise ValueError(f"Duplicate period id: {period.id}")
            seen.add(period.id)

    @classmethod
    def default(cls) -> "PeriodRegistry":
        return cls(get_default_periods())

    @classmethod
    def derive_from_scores(cls, score_map: Optional[Mapping[str, object]]) -> "PeriodRegistry":
        """
        Rebuild a registry from the keys of one stored grade entry

        This is the migration path for documents saved without an explicit
        period list. Known non-period keys and storage-internal keys
        (anything starting with an underscore) are ignored. An empty map
        falls back to the default periods.
        """
        periods = []
        for key in (score_map or {}):
            key = str(key)
            if key in NON_PERIOD_KEYS or key.startswith("_"):
                continue
            period_type = infer_period_type(key)
            periods.append(Period(id=key, name=default_period_name(key, period_type), type=period_type))

        if not periods:
            logger.info("ℹ️  No period keys found - using default periods")
            return cls.default()

        logger.debug(f"Derived {len(periods)} periods from stored scores")
        return cls(periods)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def periods(self) -> List[Period]:
        return list(self._periods)

    @property
    def ids(self) -> List[str]:
        return [p.id for p in self._periods]

    @property
    def gradable_periods(self) -> List[Period]:
        return [p for p in self._periods if p.is_gradable]

    def names(self) -> Dict[str, str]:
        return {p.id: p.name for p in self._periods}

    def __len__(self) -> int:
        return len(self._periods)

    def __iter__(self) -> Iterator[Period]:
        return iter(list(self._periods))

    def __contains__(self, period_id: object) -> bool:
        return any(p.id == period_id for p in self._periods)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_period(self, kind, custom_name: Optional[str] = None) -> Period:
        """
        Append a new period or exam

        Args:
            kind: PeriodType.PERIOD or PeriodType.EXAM (or their string values)
            custom_name: Display name; defaults to "Nth Period" / "Exam N"

        Returns:
            The Period that was added
        """
        kind = PeriodType(kind)
        if kind == PeriodType.SEMESTER:
            raise ValueError("Semester averages are derived and cannot be added as periods")

        count = sum(1 for p in self._periods if p.type == kind) + 1
        custom_name = (custom_name or "").strip()

        if kind == PeriodType.PERIOD:
            new_id = f"p{count}"
            new_name = custom_name or f"{count}{ordinal_suffix(count)} Period"
        else:
            new_id = f"exam{count}"
            new_name = custom_name or f"Exam {count}"

        if new_id in self:
            # e.g. p2 was removed earlier and p3 still exists
            new_id = self._fallback_id(kind)
            logger.debug(f"Period id collision - using {new_id}")

        period = Period(id=new_id, name=new_name, type=kind)
        self._periods.append(period)
        logger.info(f"➕ Added {kind.value} '{new_name}' ({new_id})")
        return period

    def remove_period(self, period_id: str) -> bool:
        """
        Remove a period

        Returns:
            True when removed; False when rejected (last period) or unknown.
            The registry is unchanged on rejection.
        """
        if len(self._periods) <= MIN_PERIODS:
            self._warn(LAST_PERIOD_WARNING)
            return False

        if period_id not in self:
            self._warn(f"Unknown period: {period_id}")
            return False

        self._periods = [p for p in self._periods if p.id != period_id]
        logger.info(f"➖ Removed period {period_id}")
        return True

    def group_into_semesters(self) -> List[List[Period]]:
        return group_into_semesters(self._periods)

    def _fallback_id(self, kind: PeriodType) -> str:
        base = f"{kind.value}_{int(self._clock() * 1000)}"
        candidate, n = base, 1
        while candidate in self:
            candidate = f"{base}_{n}"
            n += 1
        return candidate

    def _warn(self, message: str):
        logger.warning(f"⚠️ {message}")
        self.messages.append(message)


def registry_from_periods(periods: Sequence[Period]) -> PeriodRegistry:
    """Registry for a stored period list, defaults when it is empty"""
    if not periods:
        return PeriodRegistry.default()
    return PeriodRegistry(periods)

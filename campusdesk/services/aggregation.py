"""
Attendance and marks aggregation
================================

Pure functions over already-loaded rows. No database access here, so the
dashboards, the analytics service and the tests all share one grading and
bucketing rule.
"""

import datetime
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from campusdesk.core.config import settings
from campusdesk.models.attendance import AttendanceStatus
from campusdesk.schemas.analytics import AttendanceSummary, MarkSummary


ATTENDANCE_GOOD = "Good"
ATTENDANCE_AVERAGE = "Average"
ATTENDANCE_POOR = "Poor"


def percentage(part: float, whole: float) -> float:
    """part / whole * 100, or 0 when whole is 0"""
    if not whole:
        return 0.0
    return part / whole * 100.0


def attendance_status(
    percent: float,
    good_threshold: Optional[float] = None,
    average_threshold: Optional[float] = None,
) -> str:
    """Bucket an attendance percentage into Good / Average / Poor"""
    good = settings.ATTENDANCE_GOOD_THRESHOLD if good_threshold is None else good_threshold
    average = settings.ATTENDANCE_AVERAGE_THRESHOLD if average_threshold is None else average_threshold
    if percent >= good:
        return ATTENDANCE_GOOD
    if percent >= average:
        return ATTENDANCE_AVERAGE
    return ATTENDANCE_POOR


class GradeScale:
    """
    Ordered (min_percentage, grade) table; the first threshold met wins.

    Built from settings.GRADE_SCALE by default:
        A+ >= 90, A >= 85, B+ >= 80, B >= 75, C >= 60, D >= 50, else F
    """

    def __init__(self, thresholds: Sequence[Tuple[float, str]], failing_grade: str = "F"):
        self.thresholds = sorted(thresholds, key=lambda entry: entry[0], reverse=True)
        self.failing_grade = failing_grade

    @classmethod
    def from_settings(cls) -> "GradeScale":
        return cls(settings.get_grade_scale(), settings.FAILING_GRADE)

    @property
    def grades(self) -> List[str]:
        """Grades best first, failing grade last"""
        return [grade for _, grade in self.thresholds] + [self.failing_grade]

    def grade_for(self, percent: float) -> str:
        for minimum, grade in self.thresholds:
            if percent >= minimum:
                return grade
        return self.failing_grade


def grade_for(percent: float, scale: Optional[GradeScale] = None) -> str:
    """Grade letter for a percentage using the configured scale"""
    return (scale or GradeScale.from_settings()).grade_for(percent)


# ============================================
# Row shapes the aggregators accept
# ============================================

@dataclass(frozen=True)
class AttendanceRecord:
    student_id: int
    subject_id: int
    date: datetime.date
    status: AttendanceStatus


@dataclass(frozen=True)
class MarkRecord:
    student_id: int
    exam_id: int
    subject_id: int
    exam_name: str
    marks_obtained: float
    total_marks: int
    date: Optional[datetime.date] = None


def aggregate_attendance(records: Iterable[AttendanceRecord]) -> List[AttendanceSummary]:
    """
    Group attendance rows by (student, subject, YYYY-MM) and summarise each group.

    Groups come back in first-seen order. Empty input gives an empty list.
    """
    groups: "OrderedDict[Tuple[int, int, str], List[int]]" = OrderedDict()
    for record in records:
        key = (record.student_id, record.subject_id, record.date.strftime("%Y-%m"))
        counts = groups.setdefault(key, [0, 0])
        counts[0] += 1
        if record.status == AttendanceStatus.PRESENT:
            counts[1] += 1

    summaries = []
    for (student_id, subject_id, month), (total_days, present_days) in groups.items():
        percent = percentage(present_days, total_days)
        summaries.append(AttendanceSummary(
            student_id=student_id,
            subject_id=subject_id,
            month=month,
            total_days=total_days,
            present_days=present_days,
            percentage=percent,
            status=attendance_status(percent),
        ))
    return summaries


def aggregate_marks(
    records: Iterable[MarkRecord],
    scale: Optional[GradeScale] = None,
) -> List[MarkSummary]:
    """Per-record percentage, grade and exam month (YYYY-MM, None when undated). A zero total scores 0%."""
    scale = scale or GradeScale.from_settings()
    summaries = []
    for record in records:
        percent = percentage(record.marks_obtained, record.total_marks)
        summaries.append(MarkSummary(
            student_id=record.student_id,
            exam_id=record.exam_id,
            subject_id=record.subject_id,
            exam_name=record.exam_name,
            month=record.date.strftime("%Y-%m") if record.date else None,
            marks_obtained=record.marks_obtained,
            total_marks=record.total_marks,
            percentage=percent,
            grade=scale.grade_for(percent),
        ))
    return summaries

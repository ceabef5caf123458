"""Attendance finalization and reporting.

A teacher "finalizes" a class/day by submitting statuses for some students.
Every student on the current roster ends up with exactly one row for that
day: the submitted status, or ``absent`` when nothing was submitted.
Existing rows are updated in place, missing ones are inserted.
"""
import logging
from datetime import datetime, time, timedelta, timezone

from extensions import db
from models import AttendanceRecord, Enrollment
from models.attendance import STATUSES
from services.class_service import get_owned_class, roster, roster_ids
from services.errors import Conflict, PermissionDenied, ValidationError, persistence_guard
from utils.validators import parse_day, to_int

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "absent"


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_bounds(day):
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def records_for_day(class_id, day, student_id=None):
    start, end = day_bounds(day)
    query = AttendanceRecord.query.filter(
        AttendanceRecord.class_id == class_id,
        AttendanceRecord.date >= start,
        AttendanceRecord.date < end
    )
    if student_id is not None:
        query = query.filter(AttendanceRecord.student_id == student_id)
    return query


def parse_submissions(records):
    """Turn ``[{student_id, status}]`` into ``{student_id: status}``."""
    if records is None:
        return {}
    if not isinstance(records, list):
        raise ValidationError("attendanceRecords must be a list")

    submitted = {}
    for record in records:
        if not isinstance(record, dict) or "student_id" not in record:
            raise ValidationError("Each attendance record needs a student_id")
        status = record.get("status")
        if status not in STATUSES:
            raise ValidationError(
                f"Invalid status '{status}'. Must be one of: {', '.join(STATUSES)}"
            )
        submitted[to_int(record["student_id"], "student_id")] = status
    return submitted


@persistence_guard("Error submitting attendance")
def finalize_attendance(teacher, class_id, date_value, submitted):
    class_ = get_owned_class(teacher, class_id)
    day = parse_day(date_value)

    target = {
        student_id: submitted.get(student_id, DEFAULT_STATUS)
        for student_id in roster_ids(class_.id)
    }

    existing = {
        student_id for (student_id,) in
        records_for_day(class_.id, day).with_entities(AttendanceRecord.student_id).all()
    }

    to_insert = {s: status for s, status in target.items() if s not in existing}
    to_update = {s: status for s, status in target.items() if s in existing}

    stamp = datetime.combine(day, utcnow().time())
    db.session.add_all([
        AttendanceRecord(student_id=s, class_id=class_.id, date=stamp, status=status)
        for s, status in to_insert.items()
    ])

    for student_id, status in to_update.items():
        records_for_day(class_.id, day, student_id).update(
            {"status": status}, synchronize_session=False
        )

    db.session.commit()
    logger.info(
        "Finalized attendance for class %s on %s: %d inserted, %d updated",
        class_.id, day.isoformat(), len(to_insert), len(to_update)
    )
    return {
        "submitted": len(target),
        "inserted": len(to_insert),
        "updated": len(to_update),
    }


@persistence_guard("Error fetching attendance report")
def attendance_report(teacher, class_id, date_value):
    class_ = get_owned_class(teacher, class_id)
    day = parse_day(date_value)

    marked = {r.student_id: r for r in records_for_day(class_.id, day).all()}

    report = []
    for enrollment, student in roster(class_.id):
        record = marked.get(student.id)
        email = student.email or ""
        report.append({
            "student_id": student.id,
            "student_name": student.name or (email.split("@")[0] if email else "Unknown"),
            "student_email": email,
            "status": record.status if record else DEFAULT_STATUS,
            "marked_at": record.created_at.isoformat() if record and record.created_at else None,
        })

    summary = {status: sum(1 for r in report if r["status"] == status) for status in STATUSES}
    summary["total"] = len(report)

    return {
        "class_name": class_.name,
        "date": day.isoformat(),
        "report": report,
        "summary": summary,
    }


@persistence_guard("Error marking attendance")
def mark_self_present(student, class_id, date_value=None):
    """QR check-in: a student marks themself present once per day."""
    class_id = to_int(class_id, "classId")
    enrolled = Enrollment.query.filter_by(student_id=student.id, class_id=class_id).first()
    if not enrolled:
        raise PermissionDenied("Student not enrolled in this class")

    day = parse_day(date_value) if date_value else utcnow().date()
    existing = records_for_day(class_id, day, student.id).all()
    if existing:
        logger.warning(
            "Duplicate attendance attempt: student %s, class %s, date %s",
            student.id, class_id, day.isoformat()
        )
        raise Conflict(
            "Attendance already marked for this date",
            status_code=409,
            status=existing[0].status,
            recordCount=len(existing)
        )

    record = AttendanceRecord(
        student_id=student.id,
        class_id=class_id,
        date=datetime.combine(day, utcnow().time()),
        status="present"
    )
    db.session.add(record)
    db.session.commit()
    return record


def student_attendance(student):
    class_ids = [e.class_id for e in Enrollment.query.filter_by(student_id=student.id).all()]
    if not class_ids:
        return []
    return (
        AttendanceRecord.query
        .filter(AttendanceRecord.student_id == student.id, AttendanceRecord.class_id.in_(class_ids))
        .order_by(AttendanceRecord.date.desc())
        .all()
    )

"""Attendance-risk notifications for students.

Attendance is aggregated per subject (subject code + group, falling back to
the class name for sections without a code) and graded into a risk level.
A student gets at most one notification per subject and level in any 24 hour
window.
"""
import logging
import math
import random
from datetime import timedelta

from extensions import db
from models import AttendanceRecord, ClassSection, Enrollment, Notification
from services.attendance_service import utcnow
from services.errors import NotFound, persistence_guard
from utils.validators import to_int

logger = logging.getLogger(__name__)

REPEAT_WINDOW = timedelta(hours=24)
RECENT_LIMIT = 50

# upper bounds (exclusive), checked in order; anything above is "excellent"
RISK_THRESHOLDS = (("critical", 75), ("warning", 85), ("good", 95))
ALERT_LEVELS = ("critical", "warning")

MESSAGE_TEMPLATES = {
    "critical": [
        "URGENT: {name}, your {code} attendance is at {percentage}%! You've missed "
        "{absent} out of {total} classes. Attend the next {code} class or risk detention.",
        "Attention {name}: your {code} attendance has dropped to {percentage}%, below the "
        "75% threshold. Don't miss your next {subject} class!",
    ],
    "warning": [
        "Hey {name}, your {code} attendance is at {percentage}%. You're at risk! Try to "
        "attend all upcoming {subject} classes to stay above 85%.",
        "Heads up {name}! Your {code} attendance is {percentage}%. A few more absences "
        "and you'll hit the danger zone.",
    ],
    "good": [
        "Good job {name}! Your {code} attendance is at {percentage}%. Keep it up!",
        "{name}, you have {percentage}% attendance in {code}. Maintain this consistency "
        "in {subject}.",
    ],
    "excellent": [
        "Outstanding, {name}! Your {code} attendance is {percentage}%. You're well above "
        "the requirement.",
        "{name}, {percentage}% in {code} is exceptional. No detention worries at all.",
    ],
}


def categorize_risk(percentage):
    for level, upper in RISK_THRESHOLDS:
        if percentage < upper:
            return level
    return "excellent"


def attendance_percentage(present_days, total_days):
    if not total_days:
        return 0
    # half rounds up
    return int(math.floor(present_days * 100 / total_days + 0.5))


def subject_attendance(student):
    """Per-subject attendance stats, counting distinct calendar days."""
    classes = (
        db.session.query(ClassSection)
        .join(Enrollment, Enrollment.class_id == ClassSection.id)
        .filter(Enrollment.student_id == student.id)
        .order_by(ClassSection.id.asc())
        .all()
    )

    subjects = {}
    for class_ in classes:
        code = class_.subject_code or class_.name
        entry = subjects.setdefault((code, class_.group_name), {
            "subject_code": code,
            "subject_name": class_.name,
            "group_name": class_.group_name,
            "class_ids": [],
        })
        entry["class_ids"].append(class_.id)

    stats = []
    for entry in subjects.values():
        records = AttendanceRecord.query.filter(
            AttendanceRecord.student_id == student.id,
            AttendanceRecord.class_id.in_(entry["class_ids"])
        ).all()
        days = {r.date.date() for r in records}
        present = {r.date.date() for r in records if r.status == "present"}

        stats.append({
            "subject_code": entry["subject_code"],
            "subject_name": entry["subject_name"],
            "group_name": entry["group_name"],
            "totalDays": len(days),
            "presentDays": len(present),
            "absentDays": len(days) - len(present),
            "percentage": attendance_percentage(len(present), len(days)),
        })
    return stats


def compose_message(student, stat, level):
    template = random.choice(MESSAGE_TEMPLATES[level])
    return template.format(
        name=student.name,
        code=stat["subject_code"],
        subject=stat["subject_name"],
        percentage=stat["percentage"],
        absent=stat["absentDays"],
        total=stat["totalDays"],
    )


def _recent_duplicate(student, subject_code, level, now):
    return Notification.query.filter(
        Notification.student_id == student.id,
        Notification.subject_code == subject_code,
        Notification.type == level,
        Notification.created_at >= now - REPEAT_WINDOW
    ).first()


@persistence_guard("Failed to generate notifications")
def generate_notifications(student):
    """Create one notification per subject unless an identical one is recent.

    Subjects without any attendance yet are reported in the stats but never
    produce a notification.
    """
    stats = subject_attendance(student)
    now = utcnow()

    created = []
    for stat in stats:
        if not stat["totalDays"]:
            continue

        level = categorize_risk(stat["percentage"])
        if _recent_duplicate(student, stat["subject_code"], level, now):
            logger.info(
                "Skipping repeat %s notification for student %s in %s",
                level, student.id, stat["subject_code"]
            )
            continue

        notification = Notification(
            student_id=student.id,
            subject_code=stat["subject_code"],
            subject_name=stat["subject_name"],
            message=compose_message(student, stat, level),
            type=level,
            attendance_percentage=stat["percentage"],
            is_read=False,
            created_at=now
        )
        db.session.add(notification)
        created.append(notification)

        if level in ALERT_LEVELS:
            # mail delivery is handled outside this service
            logger.info(
                "Attendance alert for %s: %s at %d%% (%s)",
                student.email, stat["subject_code"], stat["percentage"], level
            )

    db.session.commit()
    logger.info("Generated %d notification(s) for student %s", len(created), student.id)
    return created, stats


def list_notifications(student):
    return (
        Notification.query
        .filter_by(student_id=student.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )


def unread_count(student):
    return Notification.query.filter_by(student_id=student.id, is_read=False).count()


def _own_notification(student, notification_id):
    notification = Notification.query.filter_by(
        id=to_int(notification_id, "id"), student_id=student.id
    ).first()
    if not notification:
        raise NotFound("Notification not found")
    return notification


@persistence_guard("Failed to mark notification as read")
def mark_read(student, notification_id):
    notification = _own_notification(student, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        db.session.commit()
    return notification


@persistence_guard("Failed to mark all notifications as read")
def mark_all_read(student):
    count = (
        Notification.query
        .filter_by(student_id=student.id, is_read=False)
        .update({"is_read": True, "read_at": utcnow()}, synchronize_session=False)
    )
    db.session.commit()
    return count


@persistence_guard("Failed to delete notification")
def delete_notification(student, notification_id):
    notification = _own_notification(student, notification_id)
    db.session.delete(notification)
    db.session.commit()

import logging

from extensions import db
from models import ClassSection, Enrollment, User
from models.class_model import DAYS_OF_WEEK
from services.errors import NotFound, PermissionDenied, ValidationError, persistence_guard
from utils.validators import parse_time, require_group, to_int

logger = logging.getLogger(__name__)


def get_class_or_404(class_id):
    class_ = db.session.get(ClassSection, to_int(class_id, "classId"))
    if not class_:
        raise NotFound("Class not found")
    return class_


def get_owned_class(teacher, class_id):
    """Load a class and check it belongs to the calling teacher."""
    class_ = get_class_or_404(class_id)
    if class_.teacher_id != teacher.id:
        logger.warning(
            "Teacher %s tried to act on class %s owned by %s",
            teacher.id, class_.id, class_.teacher_id
        )
        raise PermissionDenied("You don't have permission to access this class")
    return class_


def roster_ids(class_id):
    rows = db.session.query(Enrollment.student_id).filter(
        Enrollment.class_id == class_id
    ).all()
    return [student_id for (student_id,) in rows]


def roster(class_id):
    return (
        db.session.query(Enrollment, User)
        .join(User, Enrollment.student_id == User.id)
        .filter(Enrollment.class_id == class_id)
        .order_by(User.name.asc())
        .all()
    )


def list_classes(teacher_id=None):
    query = ClassSection.query
    if teacher_id is not None:
        query = query.filter(ClassSection.teacher_id == teacher_id)
    return query.order_by(ClassSection.created_at.desc(), ClassSection.id.desc()).all()


@persistence_guard("Error creating class")
def create_class(data):
    name = (data.get("name") or "").strip()
    day_of_week = (data.get("day_of_week") or "").strip().lower()
    schedule_time = data.get("schedule_time") or data.get("start_time")
    teacher_id = data.get("teacher_id")
    group_name = data.get("group_name")

    if not name or not day_of_week or not schedule_time or not teacher_id or not group_name:
        raise ValidationError("All fields including group are required")
    if day_of_week not in DAYS_OF_WEEK:
        raise ValidationError(f"Invalid day_of_week: {data.get('day_of_week')}")
    require_group(group_name)

    teacher = db.session.get(User, to_int(teacher_id, "teacher_id"))
    if not teacher or teacher.role != "teacher":
        raise ValidationError("teacher_id must reference a teacher account")

    duration = data.get("duration_hours") or 1.0
    try:
        duration = float(duration)
    except (TypeError, ValueError):
        raise ValidationError("duration_hours must be a number")
    if duration <= 0:
        raise ValidationError("duration_hours must be positive")

    subject_code = (data.get("subject_code") or "").strip() or None

    class_ = ClassSection(
        name=name,
        day_of_week=day_of_week,
        start_time=parse_time(schedule_time),
        duration_hours=duration,
        teacher_id=teacher.id,
        group_name=group_name,
        subject_code=subject_code
    )
    db.session.add(class_)
    db.session.commit()
    logger.info("Created class %s (%s) for teacher %s", class_.id, class_.name, teacher.id)
    return class_


@persistence_guard("Error deleting class")
def delete_class(class_id):
    class_ = get_class_or_404(class_id)
    db.session.delete(class_)
    db.session.commit()
    logger.info("Deleted class %s", class_id)


def list_subjects(group_name=None):
    """Group classes carrying a subject code by that code."""
    query = ClassSection.query.filter(ClassSection.subject_code.isnot(None))
    if group_name:
        query = query.filter(ClassSection.group_name == group_name)

    subjects = {}
    for class_ in query.order_by(ClassSection.subject_code.asc(), ClassSection.id.asc()).all():
        entry = subjects.setdefault(class_.subject_code, {
            "subject_code": class_.subject_code,
            "subject_name": class_.subject_code,
            "group_name": class_.group_name,
            "sessions": []
        })
        entry["sessions"].append({
            "day": class_.day_of_week,
            "time": class_.start_time.strftime("%H:%M")
        })
    return list(subjects.values())

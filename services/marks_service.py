import logging

from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import ClassSection, Enrollment, User
from models.enrollment import SECTION_COLUMNS
from services.batch import BatchResult
from services.class_service import get_owned_class
from services.errors import NotFound, ValidationError, persistence_guard
from utils.validators import parse_marks, to_int

logger = logging.getLogger(__name__)

# request keys accepted by the admin override, mapped to columns
OVERRIDE_FIELDS = dict(SECTION_COLUMNS, marks="marks")


def section_column(section):
    column = SECTION_COLUMNS.get(section)
    if not column:
        raise ValidationError("Invalid section. Must be: st1, st2, evaluation, or end_term")
    return column


@persistence_guard("Error uploading marks")
def upload_section_marks(teacher, class_id, section, entries):
    if not class_id or not section or not isinstance(entries, list):
        raise ValidationError("classId, section, and marksData array are required")

    column = section_column(section)
    class_ = get_owned_class(teacher, class_id)

    parsed = []
    for item in entries:
        if not isinstance(item, dict) or not item.get("student_id") or item.get("marks") is None:
            raise ValidationError("Each entry must have student_id and marks")
        parsed.append((to_int(item["student_id"], "student_id"), parse_marks(item["marks"])))

    student_ids = [student_id for student_id, _ in parsed]
    enrolled = {
        student_id for (student_id,) in
        db.session.query(Enrollment.student_id)
        .filter(Enrollment.class_id == class_.id, Enrollment.student_id.in_(student_ids))
        .all()
    }
    invalid = [s for s in student_ids if s not in enrolled]
    if invalid:
        raise ValidationError(
            "Some students are not enrolled in this class",
            invalidStudents=invalid
        )

    result = BatchResult()
    for student_id, marks in parsed:
        item = {"student_id": student_id, "marks": marks}
        try:
            updated = (
                Enrollment.query
                .filter_by(class_id=class_.id, student_id=student_id)
                .update({column: marks}, synchronize_session=False)
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception("Failed to store %s for student %s", column, student_id)
            result.add_failure(item, str(e))
            continue

        if updated:
            result.add_success(item)
        else:
            result.add_failure(item, "Enrollment no longer exists")

    logger.info(
        "Uploaded %s marks for class %s: %d stored, %d failed",
        section, class_.id, result.success_count, len(result.failed)
    )
    return class_, result


def class_marks(teacher, class_id):
    class_ = get_owned_class(teacher, class_id)
    rows = (
        db.session.query(Enrollment, User)
        .join(User, Enrollment.student_id == User.id)
        .filter(Enrollment.class_id == class_.id)
        .order_by(Enrollment.marks.desc(), User.name.asc())
        .all()
    )
    marks = []
    for enrollment, student in rows:
        data = enrollment.marks_dict()
        data.update({"student_id": student.id, "users": student.to_brief()})
        marks.append(data)
    return class_, marks


def all_marks(class_id=None, student_id=None):
    query = (
        db.session.query(Enrollment, User, ClassSection)
        .join(User, Enrollment.student_id == User.id)
        .join(ClassSection, Enrollment.class_id == ClassSection.id)
    )
    if class_id:
        query = query.filter(Enrollment.class_id == to_int(class_id, "classId"))
    if student_id:
        query = query.filter(Enrollment.student_id == to_int(student_id, "studentId"))

    marks = []
    for enrollment, student, class_ in query.order_by(ClassSection.name.asc(), User.name.asc()).all():
        data = enrollment.marks_dict()
        data.update({
            "student_id": enrollment.student_id,
            "class_id": enrollment.class_id,
            "users": student.to_brief(),
            "classes": {
                "id": class_.id,
                "name": class_.name,
                "day_of_week": class_.day_of_week,
                "start_time": class_.start_time.strftime("%H:%M"),
            },
        })
        marks.append(data)
    return marks


def student_marks(student):
    rows = (
        db.session.query(Enrollment, ClassSection)
        .join(ClassSection, Enrollment.class_id == ClassSection.id)
        .filter(Enrollment.student_id == student.id)
        .order_by(ClassSection.name.asc())
        .all()
    )
    marks = []
    for enrollment, class_ in rows:
        data = enrollment.marks_dict()
        data.update({
            "class_id": class_.id,
            "class_name": class_.name,
            "classes": class_.to_dict(with_teacher=False),
        })
        marks.append(data)
    return marks


def _get_enrollment(class_id, student_id):
    enrollment = Enrollment.query.filter_by(
        class_id=to_int(class_id, "classId"),
        student_id=to_int(student_id, "studentId")
    ).first()
    if not enrollment:
        raise NotFound("Enrollment not found")
    return enrollment


@persistence_guard("Error updating marks")
def override_marks(class_id, student_id, data):
    """Admin override: any of marks/st1/st2/evaluation/end_term."""
    enrollment = _get_enrollment(class_id, student_id)

    changes = {}
    for key, column in OVERRIDE_FIELDS.items():
        if key in data:
            changes[column] = None if data[key] is None else parse_marks(data[key], key)
    if not changes:
        raise ValidationError("Marks must be between 0-100")

    for column, value in changes.items():
        setattr(enrollment, column, value)
    db.session.commit()
    logger.info(
        "Admin override for class %s student %s: %s",
        enrollment.class_id, enrollment.student_id, ", ".join(sorted(changes))
    )
    return enrollment


@persistence_guard("Error updating marks")
def set_legacy_marks(enrollment_id, marks):
    enrollment = db.session.get(Enrollment, to_int(enrollment_id, "id"))
    if not enrollment:
        raise NotFound("Enrollment not found")
    enrollment.marks = parse_marks(marks)
    db.session.commit()
    return enrollment


@persistence_guard("Error deleting marks")
def clear_legacy_marks(class_id, student_id):
    enrollment = _get_enrollment(class_id, student_id)
    enrollment.marks = None
    db.session.commit()

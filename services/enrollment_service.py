"""Enrollment creation, including subject-based bulk enrollment.

Duplicate detection relies on the (student_id, class_id) unique constraint:
each pair is written with a single ``INSERT .. ON CONFLICT DO NOTHING`` and an
empty result means the pair already existed.
"""
import logging

from sqlalchemy import insert as plain_insert, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.dialects import postgresql, sqlite

from extensions import db
from models import ClassSection, Enrollment, User
from services.batch import BatchResult
from services.class_service import get_class_or_404
from services.errors import Conflict, NotFound, ValidationError, persistence_guard
from utils.validators import require_group, to_int

logger = logging.getLogger(__name__)

_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def insert_enrollment_if_absent(student_id, class_id):
    """Insert the pair and return its id, or None if it already exists."""
    values = {"student_id": student_id, "class_id": class_id}
    insert = _CONFLICT_INSERTS.get(db.engine.dialect.name)
    if insert is None:
        stmt = plain_insert(Enrollment).values(**values)
        try:
            with db.session.begin_nested():
                return db.session.execute(stmt).inserted_primary_key[0]
        except IntegrityError:
            return None

    stmt = (
        insert(Enrollment)
        .values(**values)
        .on_conflict_do_nothing(index_elements=["student_id", "class_id"])
        .returning(Enrollment.id)
    )
    return db.session.execute(stmt).scalar_one_or_none()


def list_enrollments():
    rows = (
        db.session.query(Enrollment, User, ClassSection)
        .join(User, Enrollment.student_id == User.id)
        .join(ClassSection, Enrollment.class_id == ClassSection.id)
        .order_by(Enrollment.id.asc())
        .all()
    )
    return [_enrollment_payload(e, u, c) for e, u, c in rows]


def _enrollment_payload(enrollment, student, class_):
    data = enrollment.to_dict()
    data["users"] = student.to_brief()
    data["classes"] = {"id": class_.id, "name": class_.name}
    return data


@persistence_guard("Error creating enrollment")
def create_enrollment(student_id, class_id):
    if not student_id or not class_id:
        raise ValidationError("Student and class required")

    student = db.session.get(User, to_int(student_id, "student_id"))
    if not student or student.role != "student":
        raise NotFound("Student not found")
    class_ = get_class_or_404(class_id)

    enrollment_id = insert_enrollment_if_absent(student.id, class_.id)
    if enrollment_id is None:
        logger.warning("Duplicate enrollment: student %s, class %s", student.id, class_.id)
        raise Conflict("Student already enrolled in this class")

    db.session.commit()
    enrollment = db.session.get(Enrollment, enrollment_id)
    logger.info("Enrolled student %s in class %s", student.id, class_.id)
    return _enrollment_payload(enrollment, student, class_)


def resolve_subject_classes(subject_code, group_name):
    """Classes of a subject in a group, matched by code or by name prefix."""
    return (
        ClassSection.query
        .filter(ClassSection.group_name == group_name)
        .filter(or_(
            ClassSection.subject_code == subject_code,
            ClassSection.name.istartswith(subject_code, autoescape=True)
        ))
        .order_by(ClassSection.id.asc())
        .all()
    )


@persistence_guard("Error creating enrollments")
def expand_subject_enrollment(student_ids, subject_code, group_name):
    if not student_ids or not subject_code or not group_name or not isinstance(student_ids, list):
        raise ValidationError("Student IDs, subject code, and group name are required")
    require_group(group_name)
    subject_code = str(subject_code).strip()

    classes = resolve_subject_classes(subject_code, group_name)
    if not classes:
        raise NotFound(
            f"No classes found for subject {subject_code} in group {group_name}"
        )

    requested = []
    for raw in student_ids:
        student_id = to_int(raw, "student_ids")
        if student_id not in requested:
            requested.append(student_id)

    known = {
        user_id for (user_id,) in
        db.session.query(User.id).filter(User.id.in_(requested), User.role == "student").all()
    }

    result = BatchResult()
    created_ids = []
    for student_id in requested:
        if student_id not in known:
            result.add_failure({"student_id": student_id}, "Student not found")
            continue
        for class_ in classes:
            enrollment_id = insert_enrollment_if_absent(student_id, class_.id)
            if enrollment_id is None:
                result.add_skip({"student_id": student_id, "class_id": class_.id})
            else:
                created_ids.append(enrollment_id)

    db.session.commit()

    if created_ids:
        for enrollment in Enrollment.query.filter(Enrollment.id.in_(created_ids)).order_by(Enrollment.id).all():
            result.add_success(enrollment.to_dict())

    logger.info(
        "Subject enrollment %s/%s: %d created, %d skipped, %d failed",
        subject_code, group_name, result.success_count, result.skip_count, len(result.failed)
    )

    body = result.to_dict()
    body.update({
        "message": f"Enrolled {len(known)} student(s) in {subject_code}",
        "subject": subject_code,
        "group": group_name,
        "classesPerStudent": len(classes),
        "classes": [c.label() for c in classes],
    })
    return body


@persistence_guard("Error deleting enrollment")
def delete_enrollment(enrollment_id):
    enrollment = db.session.get(Enrollment, to_int(enrollment_id, "id"))
    if not enrollment:
        raise NotFound("Enrollment not found")
    db.session.delete(enrollment)
    db.session.commit()

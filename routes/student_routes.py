from flask import Blueprint, request, jsonify
from flask_login import current_user

from extensions import db
from models import ClassSection, Enrollment
from services.attendance_service import mark_self_present, student_attendance
from services.errors import ValidationError
from services.marks_service import student_marks
from utils.decorators import role_required

student_bp = Blueprint("student", __name__, url_prefix="/student")


@student_bp.route("/mark-attendance", methods=["POST"])
@role_required("student")
def mark_attendance():
    data = request.get_json(silent=True) or {}
    if not data.get("classId"):
        raise ValidationError("classId is required")

    record = mark_self_present(current_user, data["classId"], data.get("date"))
    return jsonify({"message": "Attendance marked successfully", "data": record.to_dict()})


@student_bp.route("/attendance", methods=["GET"])
@role_required("student")
def my_attendance():
    return jsonify([r.to_dict() for r in student_attendance(current_user)])


@student_bp.route("/marks", methods=["GET"])
@role_required("student")
def my_marks():
    return jsonify(student_marks(current_user))


@student_bp.route("/classes", methods=["GET"])
@role_required("student")
def my_classes():
    classes = (
        db.session.query(ClassSection)
        .join(Enrollment, Enrollment.class_id == ClassSection.id)
        .filter(Enrollment.student_id == current_user.id)
        .order_by(ClassSection.name.asc())
        .all()
    )
    return jsonify([c.to_dict() for c in classes])

from flask import Blueprint, request, jsonify
from flask_login import current_user

from services.attendance_service import attendance_report, finalize_attendance, parse_submissions
from services.class_service import get_owned_class, list_classes, roster
from services.errors import ValidationError
from services.marks_service import class_marks, upload_section_marks
from utils.decorators import role_required

teacher_bp = Blueprint("teacher", __name__, url_prefix="/teacher")


@teacher_bp.route("/classes", methods=["GET"])
@role_required("teacher")
def my_classes():
    classes = list_classes(teacher_id=current_user.id)
    return jsonify([c.to_dict(with_teacher=False) for c in classes])


@teacher_bp.route("/classes/<int:class_id>/students", methods=["GET"])
@role_required("teacher")
def class_students(class_id):
    class_ = get_owned_class(current_user, class_id)
    students = []
    for enrollment, student in roster(class_.id):
        data = student.to_brief()
        data["group_name"] = student.group_name
        data["enrollment_id"] = enrollment.id
        students.append(data)
    return jsonify({"className": class_.name, "students": students})


# =========================================================
# ATTENDANCE
# =========================================================
@teacher_bp.route("/submit-attendance", methods=["POST"])
@role_required("teacher")
def submit_attendance():
    data = request.get_json(silent=True) or {}
    class_id = data.get("classId")
    date = data.get("date")

    if not class_id or not date:
        raise ValidationError("classId and date are required")

    submitted = parse_submissions(data.get("attendanceRecords"))
    counts = finalize_attendance(current_user, class_id, date, submitted)

    return jsonify(dict(counts, message="Attendance submitted successfully"))


@teacher_bp.route("/attendance-report/<int:class_id>/<date>", methods=["GET"])
@role_required("teacher")
def get_attendance_report(class_id, date):
    return jsonify(attendance_report(current_user, class_id, date))


# =========================================================
# MARKS
# =========================================================
@teacher_bp.route("/upload-marks", methods=["POST"])
@role_required("teacher")
def upload_marks():
    data = request.get_json(silent=True) or {}
    class_, result = upload_section_marks(
        current_user, data.get("classId"), data.get("section"), data.get("marksData")
    )

    if not result.ok:
        return jsonify({
            "message": "Some marks failed to update",
            "uploaded": result.success_count,
            "errors": result.failed
        }), 500

    return jsonify({
        "message": "Marks uploaded successfully",
        "uploaded": result.success_count,
        "className": class_.name
    })


@teacher_bp.route("/marks/<int:class_id>", methods=["GET"])
@role_required("teacher")
def get_class_marks(class_id):
    class_, marks = class_marks(current_user, class_id)
    return jsonify({"className": class_.name, "marks": marks})

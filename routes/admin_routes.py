from flask import Blueprint, request, jsonify, send_file

from services import class_service, enrollment_service, marks_service, user_service
from services.export_service import export_marks
from utils.decorators import role_required

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


def _body():
    return request.get_json(silent=True) or {}


# =========================================================
# CLASSES
# =========================================================
@admin_bp.route("/classes", methods=["GET"])
@role_required("admin")
def get_classes():
    return jsonify([c.to_dict() for c in class_service.list_classes()])


@admin_bp.route("/classes", methods=["POST"])
@role_required("admin")
def create_class():
    class_ = class_service.create_class(_body())
    return jsonify({"message": "Class created successfully", "data": class_.to_dict()})


@admin_bp.route("/classes/<int:class_id>", methods=["DELETE"])
@role_required("admin")
def delete_class(class_id):
    class_service.delete_class(class_id)
    return jsonify({"message": "Class deleted successfully"})


@admin_bp.route("/subjects", methods=["GET"])
@role_required("admin")
def get_subjects():
    return jsonify(class_service.list_subjects(request.args.get("group_name")))


# =========================================================
# ENROLLMENTS
# =========================================================
@admin_bp.route("/enrollments", methods=["GET"])
@role_required("admin")
def get_enrollments():
    return jsonify(enrollment_service.list_enrollments())


@admin_bp.route("/enrollments", methods=["POST"])
@role_required("admin")
def create_enrollment():
    data = _body()
    enrollment = enrollment_service.create_enrollment(data.get("student_id"), data.get("class_id"))
    return jsonify({"message": "Enrollment created successfully", "data": enrollment})


@admin_bp.route("/enrollments/subject", methods=["POST"])
@role_required("admin")
def subject_enrollment():
    data = _body()
    result = enrollment_service.expand_subject_enrollment(
        data.get("student_ids"), data.get("subject_code"), data.get("group_name")
    )
    return jsonify(result)


@admin_bp.route("/enrollments/<int:enrollment_id>", methods=["DELETE"])
@role_required("admin")
def delete_enrollment(enrollment_id):
    enrollment_service.delete_enrollment(enrollment_id)
    return jsonify({"message": "Enrollment deleted successfully"})


@admin_bp.route("/enrollments/<int:enrollment_id>/marks", methods=["PUT"])
@role_required("admin")
def update_enrollment_marks(enrollment_id):
    enrollment = marks_service.set_legacy_marks(enrollment_id, _body().get("marks"))
    return jsonify({"message": "Marks updated successfully", "data": enrollment.to_dict()})


# =========================================================
# USERS & GROUPS
# =========================================================
@admin_bp.route("/users", methods=["GET"])
@role_required("admin")
def get_users():
    return jsonify([u.to_dict() for u in user_service.list_users()])


@admin_bp.route("/users", methods=["POST"])
@role_required("admin")
def create_user():
    user = user_service.create_user(_body())
    return jsonify({"message": "User created successfully", "data": user.to_dict()})


@admin_bp.route("/users/<int:user_id>", methods=["DELETE"])
@role_required("admin")
def delete_user(user_id):
    user_service.delete_user(user_id)
    return jsonify({"message": "User deleted successfully"})


@admin_bp.route("/users/<int:user_id>/group", methods=["PUT"])
@role_required("admin")
def update_user_group(user_id):
    user = user_service.set_group(user_id, _body().get("group_name"))
    return jsonify({"message": "Student group updated successfully", "data": user.to_dict()})


@admin_bp.route("/users/bulk-group", methods=["PUT"])
@role_required("admin")
def bulk_update_group():
    data = _body()
    # both spellings are sent by existing clients
    user_ids = data.get("userIds") or data.get("user_ids")
    group_name = data.get("group_name")
    users = user_service.bulk_set_group(user_ids, group_name)
    return jsonify({
        "message": f"{len(users)} student(s) assigned to group {group_name}",
        "updated": len(users),
        "data": [u.to_dict() for u in users]
    })


# =========================================================
# MARKS
# =========================================================
@admin_bp.route("/marks", methods=["GET"])
@role_required("admin")
def get_marks():
    return jsonify(marks_service.all_marks(
        class_id=request.args.get("classId"),
        student_id=request.args.get("studentId")
    ))


@admin_bp.route("/marks/<int:class_id>/<int:student_id>", methods=["PUT"])
@role_required("admin")
def override_marks(class_id, student_id):
    enrollment = marks_service.override_marks(class_id, student_id, _body())
    return jsonify({"message": "Marks updated successfully", "data": enrollment.to_dict()})


@admin_bp.route("/marks/<int:class_id>/<int:student_id>", methods=["DELETE"])
@role_required("admin")
def delete_marks(class_id, student_id):
    marks_service.clear_legacy_marks(class_id, student_id)
    return jsonify({"message": "Marks deleted successfully"})


@admin_bp.route("/marks/export", methods=["GET"])
@role_required("admin")
def export_marks_report():
    output, mimetype, download_name = export_marks(
        request.args.get("format", "csv"),
        class_id=request.args.get("classId")
    )
    return send_file(
        output,
        mimetype=mimetype,
        as_attachment=True,
        download_name=download_name
    )

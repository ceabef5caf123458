from flask import Blueprint, jsonify
from flask_login import current_user

from services import notification_service
from utils.decorators import role_required

notifications_bp = Blueprint("notifications", __name__, url_prefix="/notifications")


@notifications_bp.route("/", methods=["GET"])
@role_required("student")
def get_notifications():
    notifications = notification_service.list_notifications(current_user)
    return jsonify({
        "success": True,
        "notifications": [n.to_dict() for n in notifications],
        "unreadCount": sum(1 for n in notifications if not n.is_read)
    })


@notifications_bp.route("/unread-count", methods=["GET"])
@role_required("student")
def get_unread_count():
    return jsonify({
        "success": True,
        "unreadCount": notification_service.unread_count(current_user)
    })


@notifications_bp.route("/generate", methods=["POST"])
@role_required("student")
def generate():
    created, stats = notification_service.generate_notifications(current_user)
    return jsonify({
        "success": True,
        "message": f"Generated {len(created)} new notifications",
        "notifications": [n.to_dict() for n in created],
        "stats": stats
    })


@notifications_bp.route("/<int:notification_id>/read", methods=["PATCH"])
@role_required("student")
def read_one(notification_id):
    notification = notification_service.mark_read(current_user, notification_id)
    return jsonify({
        "success": True,
        "message": "Notification marked as read",
        "notification": notification.to_dict()
    })


@notifications_bp.route("/mark-all-read", methods=["PATCH"])
@role_required("student")
def read_all():
    count = notification_service.mark_all_read(current_user)
    return jsonify({
        "success": True,
        "message": f"Marked {count} notifications as read",
        "count": count
    })


@notifications_bp.route("/<int:notification_id>", methods=["DELETE"])
@role_required("student")
def delete(notification_id):
    notification_service.delete_notification(current_user, notification_id)
    return jsonify({"success": True, "message": "Notification deleted"})

from datetime import datetime, timezone

from extensions import db

RISK_LEVELS = ("critical", "warning", "good", "excellent")


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Notification(db.Model):
    """Per-student attendance alert for one subject."""

    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)

    student_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    subject_code = db.Column(db.String(100), nullable=False)
    subject_name = db.Column(db.String(100), nullable=True)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.Enum(*RISK_LEVELS, name="notification_type"), nullable=False)
    attendance_percentage = db.Column(db.Integer, nullable=False)

    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "subject_code": self.subject_code,
            "subject_name": self.subject_name,
            "message": self.message,
            "type": self.type,
            "attendance_percentage": self.attendance_percentage,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Notification student={self.student_id} {self.subject_code} {self.type}>"

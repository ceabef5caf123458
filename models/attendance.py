from extensions import db

STATUSES = ("present", "absent", "late")


class AttendanceRecord(db.Model):
    __tablename__ = "attendance"

    id = db.Column(db.Integer, primary_key=True)

    student_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    class_id = db.Column(
        db.Integer,
        db.ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False
    )

    # one row per (student, class, calendar day); enforced by range queries only
    date = db.Column(db.DateTime, nullable=False, index=True)
    status = db.Column(db.Enum(*STATUSES, name="attendance_status"), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "class_id": self.class_id,
            "date": self.date.isoformat() if self.date else None,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<AttendanceRecord student={self.student_id} {self.date} {self.status}>"

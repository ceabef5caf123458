from extensions import db

DAYS_OF_WEEK = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
)


class ClassSection(db.Model):
    __tablename__ = "classes"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    day_of_week = db.Column(db.String(10), nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    duration_hours = db.Column(db.Float, nullable=False, default=1.0)

    teacher_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id"),
        nullable=False
    )

    group_name = db.Column(db.String(10), nullable=False)
    subject_code = db.Column(db.String(20), nullable=True, index=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    enrollments = db.relationship(
        "Enrollment",
        backref="class_",
        lazy=True,
        cascade="all, delete"
    )
    attendance_records = db.relationship(
        "AttendanceRecord",
        backref="class_",
        lazy=True,
        cascade="all, delete"
    )

    def to_dict(self, with_teacher=True):
        data = {
            "id": self.id,
            "name": self.name,
            "day_of_week": self.day_of_week,
            "start_time": self.start_time.strftime("%H:%M") if self.start_time else None,
            "duration_hours": self.duration_hours,
            "teacher_id": self.teacher_id,
            "group_name": self.group_name,
            "subject_code": self.subject_code,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if with_teacher:
            data["users"] = self.teacher.to_brief() if self.teacher else None
        return data

    def label(self):
        return f"{self.name} ({self.day_of_week})"

    def __repr__(self):
        return f"<ClassSection {self.name} {self.group_name}>"

from extensions import db
from flask_login import UserMixin

ROLES = ("admin", "teacher", "student")


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.Enum(*ROLES, name="user_role"), nullable=False)
    group_name = db.Column(db.String(10), nullable=True)

    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    enrollments = db.relationship(
        "Enrollment",
        backref="student",
        lazy=True,
        cascade="all, delete"
    )
    attendance_records = db.relationship(
        "AttendanceRecord",
        backref="student",
        lazy=True,
        cascade="all, delete"
    )
    notifications = db.relationship(
        "Notification",
        backref="student",
        lazy=True,
        cascade="all, delete"
    )
    owned_classes = db.relationship("ClassSection", backref="teacher", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "group_name": self.group_name,
            "email_verified": self.email_verified,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def to_brief(self):
        return {"id": self.id, "name": self.name, "email": self.email}

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

from extensions import db

# logical section -> storage column
SECTION_COLUMNS = {
    "st1": "st1_marks",
    "st2": "st2_marks",
    "evaluation": "evaluation_marks",
    "end_term": "end_term_marks",
}

MARK_COLUMNS = ("marks",) + tuple(SECTION_COLUMNS.values())


def _marks_range(column):
    return db.CheckConstraint(
        f"{column} IS NULL OR ({column} >= 0 AND {column} <= 100)",
        name=f"ck_enrollments_{column}_range"
    )


class Enrollment(db.Model):
    __tablename__ = "enrollments"

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

    marks = db.Column(db.Float, nullable=True)
    st1_marks = db.Column(db.Float, nullable=True)
    st2_marks = db.Column(db.Float, nullable=True)
    evaluation_marks = db.Column(db.Float, nullable=True)
    end_term_marks = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime, server_default=db.func.now())

    __table_args__ = (
        db.UniqueConstraint("student_id", "class_id", name="unique_student_class"),
    ) + tuple(_marks_range(c) for c in MARK_COLUMNS)

    def marks_dict(self):
        return {
            "marks": self.marks,
            "st1": self.st1_marks,
            "st2": self.st2_marks,
            "evaluation": self.evaluation_marks,
            "end_term": self.end_term_marks,
        }

    def to_dict(self):
        data = {
            "id": self.id,
            "student_id": self.student_id,
            "class_id": self.class_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        data.update(self.marks_dict())
        return data

    def __repr__(self):
        return f"<Enrollment student={self.student_id} class={self.class_id}>"

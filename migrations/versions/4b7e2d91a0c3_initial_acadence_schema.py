"""initial acadence schema

Revision ID: 4b7e2d91a0c3
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "4b7e2d91a0c3"
down_revision = None
branch_labels = None
depends_on = None

MARK_COLUMNS = ("marks", "st1_marks", "st2_marks", "evaluation_marks", "end_term_marks")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.Enum("admin", "teacher", "student", name="user_role"), nullable=False),
        sa.Column("group_name", sa.String(length=10), nullable=True),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
    )

    op.create_table(
        "classes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("day_of_week", sa.String(length=10), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("duration_hours", sa.Float(), nullable=False, server_default=sa.text("1.0")),
        sa.Column("teacher_id", sa.Integer(), nullable=False),
        sa.Column("group_name", sa.String(length=10), nullable=False),
        sa.Column("subject_code", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.ForeignKeyConstraint(["teacher_id"], ["users.id"]),
    )
    op.create_index("ix_classes_subject_code", "classes", ["subject_code"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("class_id", sa.Integer(), nullable=False),
        *[sa.Column(c, sa.Float(), nullable=True) for c in MARK_COLUMNS],
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["class_id"], ["classes.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("student_id", "class_id", name="unique_student_class"),
        *[
            sa.CheckConstraint(
                f"{c} IS NULL OR ({c} >= 0 AND {c} <= 100)",
                name=f"ck_enrollments_{c}_range"
            )
            for c in MARK_COLUMNS
        ],
    )

    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("class_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("present", "absent", "late", name="attendance_status"),
            nullable=False
        ),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["class_id"], ["classes.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_attendance_date", "attendance", ["date"])


def downgrade():
    op.drop_index("ix_attendance_date", table_name="attendance")
    op.drop_table("attendance")
    op.drop_table("enrollments")
    op.drop_index("ix_classes_subject_code", table_name="classes")
    op.drop_table("classes")
    op.drop_table("users")
    sa.Enum(name="attendance_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from extensions import db
from models import AttendanceRecord
from services import attendance_service
from services.attendance_service import (
    attendance_report, finalize_attendance, mark_self_present, parse_submissions, utcnow
)
from services.errors import Conflict, NotFound, PermissionDenied, PersistenceError, ValidationError

DAY = "2026-03-02"


def rows_for(class_):
    return {
        r.student_id: r.status
        for r in AttendanceRecord.query.filter_by(class_id=class_.id).all()
    }


@pytest.fixture
def roster(make_user, make_class, enroll, teacher):
    class_ = make_class(teacher)
    students = [make_user("student") for _ in range(3)]
    for s in students:
        enroll(s, class_)
    return class_, students


def test_unmarked_students_default_to_absent(teacher, roster):
    class_, (s1, s2, s3) = roster

    result = finalize_attendance(teacher, class_.id, DAY, {s1.id: "present", s2.id: "late"})

    assert result == {"submitted": 3, "inserted": 3, "updated": 0}
    assert rows_for(class_) == {s1.id: "present", s2.id: "late", s3.id: "absent"}


def test_finalize_is_idempotent(teacher, roster):
    class_, (s1, s2, s3) = roster
    submitted = {s1.id: "present"}

    finalize_attendance(teacher, class_.id, DAY, submitted)
    second = finalize_attendance(teacher, class_.id, DAY, submitted)

    assert second["inserted"] == 0
    assert second["updated"] == 3
    assert AttendanceRecord.query.filter_by(class_id=class_.id).count() == 3
    assert rows_for(class_) == {s1.id: "present", s2.id: "absent", s3.id: "absent"}


def test_refinalize_updates_status_in_place(teacher, roster):
    class_, (s1, s2, s3) = roster
    finalize_attendance(teacher, class_.id, DAY, {})

    result = finalize_attendance(teacher, class_.id, f"{DAY}T15:45:00Z", {s3.id: "present"})

    assert result == {"submitted": 3, "inserted": 0, "updated": 3}
    assert rows_for(class_)[s3.id] == "present"


def test_new_roster_member_gets_inserted(teacher, roster, make_user, enroll):
    class_, students = roster
    finalize_attendance(teacher, class_.id, DAY, {})
    newcomer = make_user("student")
    enroll(newcomer, class_)

    result = finalize_attendance(teacher, class_.id, DAY, {newcomer.id: "present"})

    assert result["inserted"] == 1
    assert result["updated"] == 3
    assert rows_for(class_)[newcomer.id] == "present"


def test_other_days_are_untouched(teacher, roster):
    class_, (s1, s2, s3) = roster
    finalize_attendance(teacher, class_.id, "2026-03-01", {s1.id: "present"})

    result = finalize_attendance(teacher, class_.id, DAY, {})

    assert result["inserted"] == 3
    assert AttendanceRecord.query.filter_by(class_id=class_.id).count() == 6


def test_submissions_outside_roster_are_ignored(teacher, roster, make_user):
    class_, students = roster
    outsider = make_user("student")

    result = finalize_attendance(teacher, class_.id, DAY, {outsider.id: "present"})

    assert result["submitted"] == 3
    assert outsider.id not in rows_for(class_)


def test_timestamps_land_on_the_requested_day(teacher, roster):
    class_, students = roster
    finalize_attendance(teacher, class_.id, DAY, {})

    days = {r.date.date() for r in AttendanceRecord.query.all()}
    assert days == {date(2026, 3, 2)}


def test_other_teacher_is_denied(make_user, roster):
    class_, students = roster
    intruder = make_user("teacher")

    with pytest.raises(PermissionDenied):
        finalize_attendance(intruder, class_.id, DAY, {})
    assert AttendanceRecord.query.count() == 0


def test_missing_class_is_not_found(teacher):
    with pytest.raises(NotFound):
        finalize_attendance(teacher, 999, DAY, {})


def test_bad_date_is_rejected(teacher, roster):
    class_, students = roster
    with pytest.raises(ValidationError):
        finalize_attendance(teacher, class_.id, "not-a-date", {})


def test_parse_submissions_rejects_unknown_status():
    with pytest.raises(ValidationError):
        parse_submissions([{"student_id": 1, "status": "excused"}])


def test_parse_submissions_builds_mapping():
    assert parse_submissions([
        {"student_id": "4", "status": "late"},
        {"student_id": 5, "status": "present"},
    ]) == {4: "late", 5: "present"}
    assert parse_submissions(None) == {}


def test_report_summary_matches_roster(teacher, roster):
    class_, (s1, s2, s3) = roster
    finalize_attendance(teacher, class_.id, DAY, {s1.id: "present", s2.id: "late"})

    report = attendance_report(teacher, class_.id, DAY)

    summary = report["summary"]
    assert summary == {"present": 1, "absent": 1, "late": 1, "total": 3}
    assert summary["present"] + summary["absent"] + summary["late"] == summary["total"]
    assert report["class_name"] == "Maths"
    assert report["date"] == DAY
    assert all(r["marked_at"] for r in report["report"])


def test_report_without_rows_defaults_to_absent(teacher, roster):
    class_, students = roster

    report = attendance_report(teacher, class_.id, DAY)

    assert {r["status"] for r in report["report"]} == {"absent"}
    assert all(r["marked_at"] is None for r in report["report"])
    assert report["summary"]["absent"] == 3
    assert AttendanceRecord.query.count() == 0


def test_student_check_in_once_per_day(roster):
    class_, (s1, s2, s3) = roster

    record = mark_self_present(s1, class_.id, DAY)
    assert record.status == "present"

    with pytest.raises(Conflict) as exc:
        mark_self_present(s1, class_.id, DAY)
    assert exc.value.status_code == 409
    assert exc.value.payload["status"] == "present"


def test_student_check_in_requires_enrollment(make_user, roster):
    class_, students = roster
    outsider = make_user("student")

    with pytest.raises(PermissionDenied):
        mark_self_present(outsider, class_.id, DAY)


def test_check_in_defaults_to_today(roster):
    class_, (s1, s2, s3) = roster

    record = mark_self_present(s1, class_.id)

    assert record.date.date() == utcnow().date()


def test_store_failure_rolls_back_and_raises_persistence_error(teacher, roster, monkeypatch):
    class_, (s1, s2, s3) = roster

    def fail_commit():
        raise OperationalError("INSERT INTO attendance", {}, Exception("db down"))

    monkeypatch.setattr(db.session, "commit", fail_commit)
    with pytest.raises(PersistenceError) as exc:
        finalize_attendance(teacher, class_.id, DAY, {s1.id: "present"})
    monkeypatch.undo()

    assert exc.value.status_code == 500
    assert exc.value.message == "Error submitting attendance"
    assert "db down" in exc.value.error
    assert AttendanceRecord.query.count() == 0


def test_unexpected_failure_becomes_persistence_error(teacher, roster, monkeypatch):
    class_, students = roster

    def broken_roster(class_id):
        raise RuntimeError("roster unavailable")

    monkeypatch.setattr(attendance_service, "roster_ids", broken_roster)

    with pytest.raises(PersistenceError) as exc:
        finalize_attendance(teacher, class_.id, DAY, {})

    assert exc.value.message == "Error submitting attendance"
    assert exc.value.error == "roster unavailable"
    assert AttendanceRecord.query.count() == 0


def test_offset_timestamp_is_finalized_on_its_utc_day(teacher, roster):
    class_, students = roster

    finalize_attendance(teacher, class_.id, "2026-03-02T22:00:00-05:00", {})

    assert {r.date.date() for r in AttendanceRecord.query.all()} == {date(2026, 3, 3)}

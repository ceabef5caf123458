from datetime import datetime

import pytest

from extensions import db
from models import AttendanceRecord, Notification


@pytest.fixture
def student_with_alerts(teacher, make_class, make_user, enroll, auth_headers):
    student = make_user("student")
    for code in ("CS101", "MA102"):
        class_ = make_class(teacher, name=f"{code} lecture", subject_code=code)
        enroll(student, class_)
        db.session.add(AttendanceRecord(
            student_id=student.id, class_id=class_.id,
            date=datetime(2026, 3, 2, 9, 0), status="absent"
        ))
    db.session.commit()
    return student, auth_headers(student)


def test_generate_then_list(client, student_with_alerts):
    student, headers = student_with_alerts

    generated = client.post("/notifications/generate", headers=headers).get_json()
    listed = client.get("/notifications/", headers=headers).get_json()

    assert generated["message"] == "Generated 2 new notifications"
    assert {n["type"] for n in generated["notifications"]} == {"critical"}
    assert len(generated["stats"]) == 2
    assert listed["unreadCount"] == 2
    assert len(listed["notifications"]) == 2


def test_read_flow(client, student_with_alerts):
    student, headers = student_with_alerts
    client.post("/notifications/generate", headers=headers)
    first = Notification.query.order_by(Notification.id).first()

    resp = client.patch(f"/notifications/{first.id}/read", headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["notification"]["is_read"] is True
    assert resp.get_json()["notification"]["read_at"]
    assert client.get("/notifications/unread-count", headers=headers).get_json()["unreadCount"] == 1

    resp = client.patch("/notifications/mark-all-read", headers=headers)
    assert resp.get_json()["count"] == 1
    assert client.get("/notifications/unread-count", headers=headers).get_json()["unreadCount"] == 0


def test_delete_own_notification(client, student_with_alerts):
    student, headers = student_with_alerts
    client.post("/notifications/generate", headers=headers)
    first = Notification.query.order_by(Notification.id).first()

    resp = client.delete(f"/notifications/{first.id}", headers=headers)

    assert resp.status_code == 200
    assert Notification.query.count() == 1
    assert client.delete(f"/notifications/{first.id}", headers=headers).status_code == 404


def test_other_students_notifications_are_hidden(client, student_with_alerts, make_user, auth_headers):
    student, headers = student_with_alerts
    client.post("/notifications/generate", headers=headers)
    first = Notification.query.order_by(Notification.id).first()
    other = auth_headers(make_user("student"))

    assert client.patch(f"/notifications/{first.id}/read", headers=other).status_code == 404
    assert client.delete(f"/notifications/{first.id}", headers=other).status_code == 404
    assert client.get("/notifications/", headers=other).get_json()["notifications"] == []


def test_teachers_cannot_use_notifications(client, teacher, auth_headers):
    assert client.get("/notifications/", headers=auth_headers(teacher)).status_code == 403

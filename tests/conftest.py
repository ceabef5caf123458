from datetime import time

import pytest
from flask import g

from app import create_app
from config.config import TestConfig
from extensions import db
from models import ClassSection, Enrollment, User
from utils.password_utils import hash_password
from utils.tokens import create_access_token


@pytest.fixture
def app():
    app = create_app(TestConfig)

    @app.teardown_request
    def forget_request_user(exc):
        # the test app context outlives each request, and g with it
        g.pop("_login_user", None)
        g.pop("auth_error", None)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make_user(role="student", name=None, email=None, password="secret123",
                   verified=True, group_name=None):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@acadence.com",
            password_hash=hash_password(password),
            role=role,
            group_name=group_name,
            email_verified=verified
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_class(app):
    def _make_class(teacher, name="Maths", day="monday", group_name="G1", subject_code=None):
        class_ = ClassSection(
            name=name,
            day_of_week=day,
            start_time=time(9, 0),
            duration_hours=1.0,
            teacher_id=teacher.id,
            group_name=group_name,
            subject_code=subject_code
        )
        db.session.add(class_)
        db.session.commit()
        return class_

    return _make_class


@pytest.fixture
def enroll(app):
    def _enroll(student, class_, **marks):
        enrollment = Enrollment(student_id=student.id, class_id=class_.id, **marks)
        db.session.add(enrollment)
        db.session.commit()
        return enrollment

    return _enroll


@pytest.fixture
def admin(make_user):
    return make_user("admin", name="Admin One", email="admin1@acadence.com")


@pytest.fixture
def teacher(make_user):
    return make_user("teacher", name="Vijay Pradeep", email="vijay.pradeep@acadence.com")


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _headers

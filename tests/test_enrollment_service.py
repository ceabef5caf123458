import pytest

from models import Enrollment
from services.enrollment_service import (
    create_enrollment, expand_subject_enrollment, insert_enrollment_if_absent,
    resolve_subject_classes
)
from services.errors import Conflict, NotFound, ValidationError


@pytest.fixture
def subject_classes(teacher, make_class):
    c1 = make_class(teacher, name="CS101 Lecture", day="monday", subject_code="CS101")
    c2 = make_class(teacher, name="CS101 Lab", day="thursday", subject_code="CS101")
    make_class(teacher, name="CS101 Lecture", day="monday", group_name="G2", subject_code="CS101")
    make_class(teacher, name="MA201 Lecture", day="friday", subject_code="MA201")
    return c1, c2


def test_expand_skips_existing_pairs(make_user, enroll, subject_classes):
    c1, c2 = subject_classes
    s1 = make_user("student")
    s2 = make_user("student")
    enroll(s1, c1)

    result = expand_subject_enrollment([s1.id, s2.id], "CS101", "G1")

    assert result["success_count"] == 3
    assert result["skip_count"] == 1
    assert result["failed"] == []
    assert result["classes"] == ["CS101 Lecture (monday)", "CS101 Lab (thursday)"]
    assert {(e["student_id"], e["class_id"]) for e in result["succeeded"]} == {
        (s1.id, c2.id), (s2.id, c1.id), (s2.id, c2.id)
    }
    assert Enrollment.query.count() == 4


def test_expand_twice_creates_nothing_new(make_user, subject_classes):
    s1 = make_user("student")
    expand_subject_enrollment([s1.id], "CS101", "G1")

    again = expand_subject_enrollment([s1.id], "CS101", "G1")

    assert again["success_count"] == 0
    assert again["skip_count"] == 2


def test_expand_reports_unknown_students(make_user, teacher, subject_classes):
    s1 = make_user("student")

    result = expand_subject_enrollment([s1.id, 4242, teacher.id], "CS101", "G1")

    assert result["success_count"] == 2
    assert [f["item"]["student_id"] for f in result["failed"]] == [4242, teacher.id]
    assert Enrollment.query.count() == 2


def test_name_prefix_fallback_is_case_insensitive(teacher, make_class):
    legacy = make_class(teacher, name="ph110 Physics", subject_code=None)

    assert resolve_subject_classes("PH110", "G1") == [legacy]


def test_unknown_subject_is_not_found(make_user, subject_classes):
    s1 = make_user("student")
    with pytest.raises(NotFound):
        expand_subject_enrollment([s1.id], "ZZ999", "G1")


def test_expand_validates_group(make_user, subject_classes):
    s1 = make_user("student")
    with pytest.raises(ValidationError):
        expand_subject_enrollment([s1.id], "CS101", "group-1")
    with pytest.raises(ValidationError):
        expand_subject_enrollment([], "CS101", "G1")


def test_duplicate_enrollment_is_a_conflict(make_user, make_class, teacher):
    student = make_user("student")
    class_ = make_class(teacher)
    create_enrollment(student.id, class_.id)

    with pytest.raises(Conflict):
        create_enrollment(student.id, class_.id)
    assert Enrollment.query.count() == 1


def test_create_enrollment_payload(make_user, make_class, teacher):
    student = make_user("student", name="Asha")
    class_ = make_class(teacher, name="Physics")

    data = create_enrollment(student.id, class_.id)

    assert data["users"]["name"] == "Asha"
    assert data["classes"]["name"] == "Physics"
    assert data["st1"] is None


def test_create_enrollment_unknown_class(make_user):
    student = make_user("student")
    with pytest.raises(NotFound):
        create_enrollment(student.id, 77)


def test_conditional_insert_returns_none_on_duplicate(make_user, make_class, teacher):
    student = make_user("student")
    class_ = make_class(teacher)

    assert insert_enrollment_if_absent(student.id, class_.id) is not None
    assert insert_enrollment_if_absent(student.id, class_.id) is None

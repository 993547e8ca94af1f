import pytest
from unittest.mock import patch

from conftest import as_user
from edumonitor.domain.context import CallContext
from edumonitor.domain.entities import Role
from edumonitor.domain.errors import Forbidden, NotFound, Unauthenticated, ValidationError


def test_create_classroom(services, signup):
    educator = signup(Role.EDUCATOR)
    classroom = services.classrooms.create(as_user(educator), "Algebra")
    assert classroom.title == "Algebra"
    assert classroom.instructor == educator.id
    assert classroom.students == frozenset()


def test_create_requires_educator(services, signup):
    with pytest.raises(Unauthenticated):
        services.classrooms.create(CallContext.end_user(), "Algebra")
    with pytest.raises(Forbidden):
        services.classrooms.create(as_user(signup(Role.STUDENT)), "Algebra")


def test_create_requires_title(services, signup):
    with pytest.raises(ValidationError):
        services.classrooms.create(as_user(signup(Role.EDUCATOR)), "  ")


def test_lookup_without_login(services, school):
    classroom = services.classrooms.lookup(CallContext.end_user(), school["classroom"].id)
    assert classroom == school["classroom"]


def test_lookup_missing(services):
    assert services.classrooms.lookup(CallContext.end_user(), "0b3c3f0e-5a3c-4a9e-8a4d-2f6f1e9d7c11") is None


def test_student_enrolls_and_withdraws_self(services, signup):
    educator = signup(Role.EDUCATOR)
    student = signup(Role.STUDENT)
    classroom = services.classrooms.create(as_user(educator), "Algebra")

    services.classrooms.enroll(as_user(student), classroom.id, email="ignored@example.com")
    enrolled = services.classrooms.list_enrolled_classrooms(as_user(student))
    assert [c.id for c in enrolled] == [classroom.id]

    services.classrooms.withdraw(as_user(student), classroom.id)
    assert services.classrooms.list_enrolled_classrooms(as_user(student)) == []

    # double withdraw is a no-op
    with patch.object(services.classrooms.classrooms, "put") as put:
        services.classrooms.withdraw(as_user(student), classroom.id)
        put.assert_not_called()


def test_duplicate_enroll_is_noop(services, school):
    student = school["student"]
    with patch.object(services.classrooms.classrooms, "put") as put:
        classroom = services.classrooms.enroll(as_user(student), school["classroom"].id)
        put.assert_not_called()
    assert classroom.students == frozenset({student.id})


def test_instructor_enrolls_by_email(services, school):
    other = school["other_student"]
    classroom = services.classrooms.enroll(
        as_user(school["educator"]), school["classroom"].id, email=other.email.upper()
    )
    assert other.id in classroom.students


def test_instructor_enroll_checks(services, school, signup):
    classroom_id = school["classroom"].id
    with pytest.raises(Forbidden):
        services.classrooms.enroll(as_user(signup(Role.EDUCATOR)), classroom_id, email=school["other_student"].email)
    with pytest.raises(ValidationError):
        services.classrooms.enroll(as_user(school["educator"]), classroom_id)
    with pytest.raises(NotFound):
        services.classrooms.enroll(as_user(school["educator"]), classroom_id, email="ghost@example.com")
    with pytest.raises(ValidationError):
        services.classrooms.enroll(as_user(school["educator"]), classroom_id, email=school["guardian"].email)


def test_guardian_cannot_enroll(services, school):
    with pytest.raises(Forbidden):
        services.classrooms.enroll(as_user(school["guardian"]), school["classroom"].id)


def test_enroll_unknown_classroom(services, school):
    with pytest.raises(NotFound):
        services.classrooms.enroll(as_user(school["student"]), "0b3c3f0e-5a3c-4a9e-8a4d-2f6f1e9d7c11")


def test_list_instructing(services, school, signup, internal):
    educator = school["educator"]
    assert [c.id for c in services.classrooms.list_instructing_classrooms(as_user(educator))] == [school["classroom"].id]
    assert services.classrooms.list_instructing_classrooms(internal, educator.id)[0].title == "Algebra"
    with pytest.raises(Forbidden):
        services.classrooms.list_instructing_classrooms(as_user(school["student"]))


def test_guardian_lists_dependent_classrooms(services, school):
    classrooms = services.classrooms.list_enrolled_classrooms(as_user(school["guardian"]), school["student"].id)
    assert [c.id for c in classrooms] == [school["classroom"].id]

    with pytest.raises(Forbidden):
        services.classrooms.list_enrolled_classrooms(as_user(school["stranger"]), school["student"].id)
    with pytest.raises(ValidationError):
        services.classrooms.list_enrolled_classrooms(as_user(school["guardian"]))


def test_guardian_loses_access_after_removal(services, school):
    services.users.remove_guardian(as_user(school["student"]), school["guardian"].email)
    with pytest.raises(Forbidden):
        services.classrooms.list_enrolled_classrooms(as_user(school["guardian"]), school["student"].id)


def test_educator_cannot_list_enrolled(services, school):
    with pytest.raises(Forbidden):
        services.classrooms.list_enrolled_classrooms(as_user(school["educator"]), school["student"].id)


def test_internal_lists_enrolled_for_any_student(services, school, internal):
    classrooms = services.classrooms.list_enrolled_classrooms(internal, school["student"].id)
    assert [c.id for c in classrooms] == [school["classroom"].id]
    assert services.classrooms.list_enrolled_classrooms(internal, school["other_student"].id) == []

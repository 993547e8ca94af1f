import pytest

from conftest import as_user
from edumonitor.domain.entities import GradeEntry, Role
from edumonitor.domain.errors import Conflict, Forbidden, NotFound, ValidationError


@pytest.fixture
def component(services, school):
    return services.grades.add_grading_component(
        as_user(school["educator"]), school["classroom"].id, "Midterm", total=100, weight=1
    )


def test_scenario_post_and_lookup(services, school, component):
    """Educator posts a grade; student and linked guardian read it, a stranger cannot"""
    educator, student = school["educator"], school["student"]
    services.grades.post_grade(as_user(educator), component.id, student.id, 85, "good")

    entry = services.grades.lookup_grade(as_user(student), component.id, student.id)
    assert entry == GradeEntry(student=student.id, score=85, comments="good")

    with pytest.raises(Conflict):
        services.grades.post_grade(as_user(educator), component.id, student.id, 90, "better")

    assert services.grades.lookup_grade(as_user(school["guardian"]), component.id, student.id) == entry
    with pytest.raises(Forbidden):
        services.grades.lookup_grade(as_user(school["stranger"]), component.id, student.id)


def test_component_management_requires_instructor(services, school, signup, component):
    classroom_id = school["classroom"].id
    with pytest.raises(Forbidden):
        services.grades.add_grading_component(as_user(signup(Role.EDUCATOR)), classroom_id, "Quiz", 10, 1)
    with pytest.raises(Forbidden):
        services.grades.add_grading_component(as_user(school["student"]), classroom_id, "Quiz", 10, 1)
    with pytest.raises(Forbidden):
        services.grades.remove_grading_component(as_user(signup(Role.EDUCATOR)), component.id)


def test_component_validation(services, school):
    educator = as_user(school["educator"])
    classroom_id = school["classroom"].id
    with pytest.raises(ValidationError):
        services.grades.add_grading_component(educator, classroom_id, "Quiz", 0, 1)
    with pytest.raises(ValidationError):
        services.grades.add_grading_component(educator, classroom_id, "Quiz", 10, -1)
    with pytest.raises(ValidationError):
        services.grades.add_grading_component(educator, classroom_id, "", 10, 1)


def test_update_component_is_sparse(services, school, component):
    updated = services.grades.update_grading_component(as_user(school["educator"]), component.id, weight=2)
    assert (updated.title, updated.total, updated.weight) == ("Midterm", 100, 2)


def test_remove_component(services, school, component):
    services.grades.remove_grading_component(as_user(school["educator"]), component.id)
    assert services.grades.list_grading_components(as_user(school["educator"]), school["classroom"].id) == []
    with pytest.raises(NotFound):
        services.grades.remove_grading_component(as_user(school["educator"]), component.id)


def test_post_requires_enrollment(services, school, component):
    with pytest.raises(Forbidden):
        services.grades.post_grade(as_user(school["educator"]), component.id, school["other_student"].id, 70)


def test_withdrawn_student_cannot_be_graded(services, school, component):
    services.classrooms.withdraw(as_user(school["student"]), school["classroom"].id)
    with pytest.raises(Forbidden):
        services.grades.post_grade(as_user(school["educator"]), component.id, school["student"].id, 70)


def test_student_cannot_post(services, school, component):
    with pytest.raises(Forbidden):
        services.grades.post_grade(as_user(school["student"]), component.id, school["student"].id, 100)


def test_update_and_remove_grade(services, school, component):
    educator, student = as_user(school["educator"]), school["student"]
    with pytest.raises(NotFound):
        services.grades.update_grade(educator, component.id, student.id, score=50)

    services.grades.post_grade(educator, component.id, student.id, 60, "ok")
    updated = services.grades.update_grade(educator, component.id, student.id, score=75)
    assert updated == GradeEntry(student=student.id, score=75, comments="ok")

    services.grades.remove_grade(educator, component.id, student.id)
    with pytest.raises(NotFound):
        services.grades.lookup_grade(educator, component.id, student.id)
    with pytest.raises(NotFound):
        services.grades.remove_grade(educator, component.id, student.id)


def test_student_cannot_read_other_student(services, school, component):
    services.classrooms.enroll(as_user(school["other_student"]), school["classroom"].id)
    services.grades.post_grade(as_user(school["educator"]), component.id, school["student"].id, 85)
    with pytest.raises(Forbidden):
        services.grades.lookup_grade(as_user(school["other_student"]), component.id, school["student"].id)


def test_guardian_list_grades_hides_other_students(services, school, component):
    educator = as_user(school["educator"])
    student, other = school["student"], school["other_student"]
    services.classrooms.enroll(as_user(other), school["classroom"].id)
    quiz = services.grades.add_grading_component(educator, school["classroom"].id, "Quiz", total=10, weight=1)
    services.grades.post_grade(educator, component.id, student.id, 80, "fine")
    services.grades.post_grade(educator, component.id, other.id, 40, "private")
    services.grades.post_grade(educator, quiz.id, other.id, 10)

    report = services.grades.list_grades(as_user(school["guardian"]), school["classroom"].id, student.id)
    assert report.student == student.id
    entries = {line.component.id: line.entry for line in report.lines}
    assert entries[component.id] == GradeEntry(student=student.id, score=80, comments="fine")
    assert entries[quiz.id] is None
    assert all(line.component.grades == () for line in report.lines)
    assert report.overall == 80.0


def test_overall_is_weighted(services, school, component):
    educator, student = as_user(school["educator"]), school["student"]
    quiz = services.grades.add_grading_component(educator, school["classroom"].id, "Quiz", total=10, weight=3)
    services.grades.post_grade(educator, component.id, student.id, 50)
    services.grades.post_grade(educator, quiz.id, student.id, 10)

    report = services.grades.list_grades(as_user(student), school["classroom"].id)
    # (1 * 0.5 + 3 * 1.0) / 4
    assert report.overall == 87.5


def test_overall_without_grades(services, school, component):
    report = services.grades.list_grades(as_user(school["student"]), school["classroom"].id)
    assert report.overall is None
    assert [line.entry for line in report.lines] == [None]


def test_list_components_strips_grades_for_students(services, school, component):
    services.grades.post_grade(as_user(school["educator"]), component.id, school["student"].id, 85)

    full = services.grades.list_grading_components(as_user(school["educator"]), school["classroom"].id)
    assert len(full[0].grades) == 1
    visible = services.grades.list_grading_components(as_user(school["student"]), school["classroom"].id)
    assert visible[0].grades == ()
    assert services.grades.list_grading_components(as_user(school["guardian"]), school["classroom"].id)[0].id == component.id
    with pytest.raises(Forbidden):
        services.grades.list_grading_components(as_user(school["other_student"]), school["classroom"].id)

from ..domain.context import CallContext
from ..domain.entities import Classroom, Role
from ..domain.errors import Forbidden, ValidationError
from ..domain.validation import validate_id
from .users import UserService


def resolve_student(
    ctx: CallContext,
    users: UserService,
    student_id: str | None,
    service: str,
    classroom: Classroom | None = None,
) -> str:
    """Return the student whose records the caller may read.

    Students read their own records, guardians those of their dependents and
    educators those of the classroom they instruct. Internal callers name the
    student explicitly.
    """
    if student_id is not None:
        student_id = validate_id(student_id, "studentId")

    if ctx.is_internal:
        if student_id is None:
            raise ValidationError("studentId is required")
        return student_id

    user = ctx.require_user()
    if user.role == Role.STUDENT:
        if student_id is not None and student_id != user.id:
            raise Forbidden("Students can only see their own records")
        return user.id

    if student_id is None:
        raise ValidationError("studentId is required")

    if user.role == Role.GUARDIAN:
        if student_id not in users.list_dependents(ctx.peer(service), guardian_id=user.id):
            raise Forbidden("You are not a guardian of this student")
        return student_id

    if classroom is None or classroom.instructor != user.id:
        raise Forbidden("Only the instructor of the class can see its students' records")
    return student_id

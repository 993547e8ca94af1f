"""RosterGraph: classrooms, their instructor and the enrolled students."""
from dataclasses import replace
from uuid import uuid4

import structlog

from ..domain.context import CallContext
from ..domain.entities import Classroom, Role
from ..domain.errors import Forbidden, NotFound, ValidationError
from ..domain.validation import validate_id, validate_text
from ..infrastructure.store import Collection, Contains, Eq
from .users import UserService

logger = structlog.get_logger()


class ClassroomService:
    def __init__(self, classrooms: Collection, users: UserService):
        self.classrooms = classrooms
        self.users = users

    def create(self, ctx: CallContext, title: str) -> Classroom:
        educator = ctx.require_role(Role.EDUCATOR, message="Only educators can create classrooms")
        classroom = Classroom(
            id=str(uuid4()),
            title=validate_text(title, "title"),
            instructor=educator.id,
        )
        stored = Classroom.from_item(self.classrooms.put(classroom.to_item()))
        logger.info("classroom_created", classroom_id=stored.id, instructor_id=educator.id, request_id=ctx.request_id)
        return stored

    def lookup(self, ctx: CallContext, id: str) -> Classroom | None:
        item = self.classrooms.get(validate_id(id))
        return Classroom.from_item(item) if item else None

    def require(self, ctx: CallContext, id: str) -> Classroom:
        classroom = self.lookup(ctx, id)
        if classroom is None:
            raise NotFound("Classroom not found")
        return classroom

    def enroll(self, ctx: CallContext, classroom_id: str, email: str | None = None) -> Classroom:
        classroom = self.require(ctx, classroom_id)
        student_id = self._roster_subject(ctx, classroom, email, action="enroll")
        if student_id in classroom.students:
            return classroom

        stored = Classroom.from_item(self.classrooms.put(
            replace(classroom, students=classroom.students | {student_id}).to_item()
        ))
        logger.info("classroom_enrolled", classroom_id=classroom.id, student_id=student_id, request_id=ctx.request_id)
        return stored

    def withdraw(self, ctx: CallContext, classroom_id: str, email: str | None = None) -> Classroom:
        classroom = self.require(ctx, classroom_id)
        student_id = self._roster_subject(ctx, classroom, email, action="withdraw")
        if student_id not in classroom.students:
            return classroom

        stored = Classroom.from_item(self.classrooms.put(
            replace(classroom, students=classroom.students - {student_id}).to_item()
        ))
        logger.info("classroom_withdrawn", classroom_id=classroom.id, student_id=student_id, request_id=ctx.request_id)
        return stored

    def _roster_subject(self, ctx: CallContext, classroom: Classroom, email: str | None, action: str) -> str:
        user = ctx.require_role(
            Role.EDUCATOR, Role.STUDENT,
            message=f"Only an instructor or student can {action}",
        )
        if user.role == Role.STUDENT:
            # students only act on themselves
            return user.id

        if classroom.instructor != user.id:
            raise Forbidden(f"Only the instructor of the class can {action} other people")
        if email is None:
            raise ValidationError("email is required")
        student = self.users.lookup(ctx.peer("classrooms"), email=email)
        if student is None:
            raise NotFound("User not found")
        if student.role != Role.STUDENT:
            raise ValidationError("User is not a student")
        return student.id

    def list_instructing_classrooms(self, ctx: CallContext, instructor_id: str | None = None) -> list[Classroom]:
        if ctx.is_internal:
            if instructor_id is None:
                raise ValidationError("instructorId is required")
            instructor_id = validate_id(instructor_id, "instructorId")
        else:
            instructor_id = ctx.require_role(
                Role.EDUCATOR, message="Only educators can list instructing classrooms"
            ).id

        return [Classroom.from_item(item) for item in self.classrooms.scan(Eq("instructor", instructor_id))]

    def list_enrolled_classrooms(self, ctx: CallContext, student_id: str | None = None) -> list[Classroom]:
        if ctx.is_internal:
            if student_id is None:
                raise ValidationError("studentId is required")
            student_id = validate_id(student_id, "studentId")
        else:
            user = ctx.require_role(
                Role.STUDENT, Role.GUARDIAN,
                message="Only students or guardians can list enrolled classrooms",
            )
            if user.role == Role.STUDENT:
                student_id = user.id
            else:
                if student_id is None:
                    raise ValidationError("studentId is required")
                student_id = validate_id(student_id, "studentId")
                dependents = self.users.list_dependents(ctx.peer("classrooms"), guardian_id=user.id)
                if student_id not in dependents:
                    raise Forbidden("You are not a guardian of this student")

        return [Classroom.from_item(item) for item in self.classrooms.scan(Contains("students", student_id))]

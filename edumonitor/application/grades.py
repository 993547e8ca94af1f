"""GradeLedger: weighted grading components with embedded per-student grade entries.

A grade has no identity of its own; it is the entry for one student inside a
component's ``grades`` list.
"""
from dataclasses import replace
from uuid import uuid4

import structlog

from ..domain.context import CallContext
from ..domain.entities import Classroom, GradeEntry, GradeLine, GradeReport, GradingComponent, Role
from ..domain.errors import Conflict, Forbidden, NotFound, ValidationError
from ..domain.validation import validate_id, validate_number, validate_text
from ..infrastructure.store import Collection, Eq
from .access import resolve_student
from .classrooms import ClassroomService
from .users import UserService

logger = structlog.get_logger()


def _validate_comments(comments) -> str:
    if comments is None:
        return ""
    if not isinstance(comments, str):
        raise ValidationError("comments should be a string")
    return comments


class GradeService:
    def __init__(self, components: Collection, classrooms: ClassroomService, users: UserService):
        self.components = components
        self.classrooms = classrooms
        self.users = users

    def _component(self, id: str) -> GradingComponent:
        item = self.components.get(validate_id(id))
        if item is None:
            raise NotFound("Grading component not found")
        return GradingComponent.from_item(item)

    def _instructed_classroom(self, ctx: CallContext, classroom_id: str) -> Classroom:
        educator = ctx.require_role(Role.EDUCATOR, message="Only educators can manage grades")
        classroom = self.classrooms.require(ctx.peer("grades"), classroom_id)
        if classroom.instructor != educator.id:
            raise Forbidden("Only the instructor of the class can manage its grades")
        return classroom

    def _save(self, component: GradingComponent) -> GradingComponent:
        return GradingComponent.from_item(self.components.put(component.to_item()))

    # --- components

    def add_grading_component(
        self,
        ctx: CallContext,
        classroom_id: str,
        title: str,
        total: float,
        weight: float,
    ) -> GradingComponent:
        title = validate_text(title, "title")
        total = validate_number(total, "total", exclusive=True)
        weight = validate_number(weight, "weight")
        classroom = self._instructed_classroom(ctx, classroom_id)

        component = GradingComponent(
            id=str(uuid4()),
            title=title,
            classroom=classroom.id,
            total=total,
            weight=weight,
        )
        stored = self._save(component)
        logger.info("grading_component_added", component_id=stored.id, classroom_id=classroom.id, request_id=ctx.request_id)
        return stored

    def update_grading_component(
        self,
        ctx: CallContext,
        id: str,
        title: str | None = None,
        total: float | None = None,
        weight: float | None = None,
    ) -> GradingComponent:
        changes = {}
        if title is not None:
            changes["title"] = validate_text(title, "title")
        if total is not None:
            changes["total"] = validate_number(total, "total", exclusive=True)
        if weight is not None:
            changes["weight"] = validate_number(weight, "weight")

        component = self._component(id)
        self._instructed_classroom(ctx, component.classroom)
        if not changes:
            return component

        stored = self._save(replace(component, **changes))
        logger.info("grading_component_updated", component_id=id, fields=sorted(changes), request_id=ctx.request_id)
        return stored

    def remove_grading_component(self, ctx: CallContext, id: str) -> None:
        component = self._component(id)
        self._instructed_classroom(ctx, component.classroom)
        self.components.delete(component.id)
        logger.info("grading_component_removed", component_id=component.id, request_id=ctx.request_id)

    def list_grading_components(self, ctx: CallContext, classroom_id: str) -> list[GradingComponent]:
        classroom = self.classrooms.require(ctx.peer("grades"), classroom_id)
        components = [
            GradingComponent.from_item(item)
            for item in self.components.scan(Eq("classroom", classroom.id))
        ]
        if ctx.is_internal or ctx.require_user().id == classroom.instructor:
            return components

        user = ctx.user
        if user.role == Role.STUDENT:
            allowed = user.id in classroom.students
        elif user.role == Role.GUARDIAN:
            dependents = self.users.list_dependents(ctx.peer("grades"), guardian_id=user.id)
            allowed = bool(classroom.students.intersection(dependents))
        else:
            allowed = False
        if not allowed:
            raise Forbidden("You cannot see the grading components of this classroom")
        # grades of other students are never exposed
        return [replace(c, grades=()) for c in components]

    # --- grades

    def lookup_grade(self, ctx: CallContext, component_id: str, student_id: str) -> GradeEntry:
        component = self._component(component_id)
        classroom = self.classrooms.require(ctx.peer("grades"), component.classroom)
        student_id = resolve_student(ctx, self.users, student_id, "grades", classroom)

        entry = component.entry_for(student_id)
        if entry is None:
            raise NotFound("Grade not found")
        return entry

    def post_grade(
        self,
        ctx: CallContext,
        component_id: str,
        student_id: str,
        score: float,
        comments: str | None = "",
    ) -> GradeEntry:
        student_id = validate_id(student_id, "studentId")
        score = validate_number(score, "score")
        comments = _validate_comments(comments)

        component = self._component(component_id)
        classroom = self._instructed_classroom(ctx, component.classroom)
        if student_id not in classroom.students:
            raise Forbidden("Student is not enrolled in this classroom")
        if component.entry_for(student_id) is not None:
            raise Conflict("A grade was already posted for this student")

        entry = GradeEntry(student=student_id, score=score, comments=comments)
        self._save(replace(component, grades=component.grades + (entry,)))
        logger.info("grade_posted", component_id=component.id, student_id=student_id, request_id=ctx.request_id)
        return entry

    def update_grade(
        self,
        ctx: CallContext,
        component_id: str,
        student_id: str,
        score: float | None = None,
        comments: str | None = None,
    ) -> GradeEntry:
        student_id = validate_id(student_id, "studentId")
        if score is not None:
            score = validate_number(score, "score")
        if comments is not None:
            comments = _validate_comments(comments)

        component = self._component(component_id)
        self._instructed_classroom(ctx, component.classroom)
        entry = component.entry_for(student_id)
        if entry is None:
            raise NotFound("Grade not found")

        updated = replace(
            entry,
            score=entry.score if score is None else score,
            comments=entry.comments if comments is None else comments,
        )
        if updated == entry:
            return entry
        grades = tuple(updated if g.student == student_id else g for g in component.grades)
        self._save(replace(component, grades=grades))
        logger.info("grade_updated", component_id=component.id, student_id=student_id, request_id=ctx.request_id)
        return updated

    def remove_grade(self, ctx: CallContext, component_id: str, student_id: str) -> None:
        student_id = validate_id(student_id, "studentId")
        component = self._component(component_id)
        self._instructed_classroom(ctx, component.classroom)
        if component.entry_for(student_id) is None:
            raise NotFound("Grade not found")

        grades = tuple(g for g in component.grades if g.student != student_id)
        self._save(replace(component, grades=grades))
        logger.info("grade_removed", component_id=component.id, student_id=student_id, request_id=ctx.request_id)

    def list_grades(self, ctx: CallContext, classroom_id: str, student_id: str | None = None) -> GradeReport:
        classroom = self.classrooms.require(ctx.peer("grades"), classroom_id)
        student_id = resolve_student(ctx, self.users, student_id, "grades", classroom)

        lines = []
        for item in self.components.scan(Eq("classroom", classroom.id)):
            component = GradingComponent.from_item(item)
            lines.append(GradeLine(
                component=replace(component, grades=()),
                entry=component.entry_for(student_id),
            ))
        return GradeReport(classroom=classroom.id, student=student_id, lines=lines)

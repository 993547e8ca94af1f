"""AssignmentStore: class-scoped and self-assigned tasks with their completion set."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from uuid import uuid4

import structlog

from ..domain.context import CallContext
from ..domain.entities import Role, Task
from ..domain.errors import Forbidden, NotFound, ValidationError
from ..domain.validation import validate_deadline, validate_id, validate_text
from ..infrastructure.store import Collection, Eq
from .access import resolve_student
from .classrooms import ClassroomService
from .users import UserService

logger = structlog.get_logger()


class TaskService:
    def __init__(self, tasks: Collection, classrooms: ClassroomService, users: UserService):
        self.tasks = tasks
        self.classrooms = classrooms
        self.users = users

    def _get(self, id: str) -> Task | None:
        item = self.tasks.get(validate_id(id))
        return Task.from_item(item) if item else None

    def _require(self, id: str) -> Task:
        task = self._get(id)
        if task is None:
            raise NotFound("Task not found")
        return task

    def lookup(self, ctx: CallContext, id: str) -> Task | None:
        task = self._get(id)
        if task is None or ctx.is_internal:
            return task

        user = ctx.require_user()
        classroom = self.classrooms.lookup(ctx.peer("tasks"), task.classroom)
        if classroom is not None and classroom.instructor == user.id:
            return task

        if task.class_scoped:
            members = classroom.students if classroom else frozenset()
        else:
            members = frozenset({task.student})

        if user.role == Role.STUDENT and user.id in members:
            return task
        if user.role == Role.GUARDIAN:
            dependents = self.users.list_dependents(ctx.peer("tasks"), guardian_id=user.id)
            if members.intersection(dependents):
                return task
        raise Forbidden("You cannot see this task")

    def create(self, ctx: CallContext, title: str, deadline: datetime | str, classroom: str) -> Task:
        user = ctx.require_role(Role.EDUCATOR, Role.STUDENT, message="Only an instructor or student can add tasks")
        title = validate_text(title, "title")
        deadline = validate_deadline(deadline)
        room = self.classrooms.require(ctx.peer("tasks"), classroom)

        if user.role == Role.STUDENT:
            if user.id not in room.students:
                raise Forbidden("You are not enrolled in this classroom")
            student = user.id
        else:
            if room.instructor != user.id:
                raise Forbidden("Only the instructor of the class can add class tasks")
            student = None

        task = Task(id=str(uuid4()), title=title, classroom=room.id, deadline=deadline, student=student)
        stored = Task.from_item(self.tasks.put(task.to_item()))
        logger.info(
            "task_created",
            task_id=stored.id,
            classroom_id=room.id,
            student_id=student,
            request_id=ctx.request_id,
        )
        return stored

    def _authorize_owner(self, ctx: CallContext, task: Task) -> None:
        user = ctx.require_user()
        if task.class_scoped:
            classroom = self.classrooms.lookup(ctx.peer("tasks"), task.classroom)
            if classroom is None or classroom.instructor != user.id:
                raise Forbidden("Only the instructor of the class can change class tasks")
        elif task.student != user.id:
            raise Forbidden("Only the student who added this task can change it")

    def update(self, ctx: CallContext, id: str, title: str | None = None, deadline: datetime | str | None = None) -> Task:
        task = self._require(id)
        self._authorize_owner(ctx, task)

        changes = {}
        if title is not None:
            changes["title"] = validate_text(title, "title")
        if deadline is not None:
            changes["deadline"] = validate_deadline(deadline)
        if not changes:
            return task

        stored = Task.from_item(self.tasks.put(replace(task, **changes).to_item()))
        logger.info("task_updated", task_id=task.id, fields=sorted(changes), request_id=ctx.request_id)
        return stored

    def delete(self, ctx: CallContext, id: str) -> None:
        task = self._require(id)
        self._authorize_owner(ctx, task)
        self.tasks.delete(task.id)
        logger.info("task_deleted", task_id=task.id, request_id=ctx.request_id)

    def list(self, ctx: CallContext, student_id: str | None = None) -> list[Task]:
        peer = ctx.peer("tasks")
        user = ctx.user
        if user is not None and user.role == Role.EDUCATOR:
            if student_id is not None:
                raise Forbidden("Educators list the tasks of the classrooms they instruct")
            return self._class_tasks(self.classrooms.list_instructing_classrooms(peer, user.id))

        subject = resolve_student(ctx, self.users, student_id, "tasks")
        if ctx.is_internal:
            target = self.users.lookup(peer, id=subject)
            if target is None:
                raise NotFound("User not found")
            if target.role == Role.EDUCATOR:
                return self._class_tasks(self.classrooms.list_instructing_classrooms(peer, subject))

        own = [Task.from_item(item) for item in self.tasks.scan(Eq("student", subject))]
        shared = self._class_tasks(self.classrooms.list_enrolled_classrooms(peer, subject))
        return sorted(own + shared, key=lambda t: (t.deadline, t.id))

    def _class_tasks(self, classrooms) -> list[Task]:
        ids = {c.id for c in classrooms}
        if not ids:
            return []
        items = self.tasks.scan(Eq("student", None))
        tasks = [Task.from_item(item) for item in items if item["classroom"] in ids]
        return sorted(tasks, key=lambda t: (t.deadline, t.id))

    def update_completeness(self, ctx: CallContext, id: str, completed: bool) -> Task:
        if not isinstance(completed, bool):
            raise ValidationError("completed should be a boolean")
        student = ctx.require_role(Role.STUDENT, message="Only students can complete tasks")
        task = self._require(id)

        if task.class_scoped:
            classroom = self.classrooms.lookup(ctx.peer("tasks"), task.classroom)
            if classroom is None or student.id not in classroom.students:
                raise Forbidden("You are not enrolled in this classroom")
        elif task.student != student.id:
            raise Forbidden("Only the student who added this task can complete it")

        if (student.id in task.completed_students) == completed:
            return task
        done = task.completed_students | {student.id} if completed else task.completed_students - {student.id}
        stored = Task.from_item(self.tasks.put(replace(task, completed_students=done).to_item()))
        logger.info(
            "task_completeness_updated",
            task_id=task.id,
            student_id=student.id,
            completed=completed,
            request_id=ctx.request_id,
        )
        return stored

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    STUDENT = "STUDENT"
    EDUCATOR = "EDUCATOR"
    GUARDIAN = "GUARDIAN"


@dataclass(frozen=True)
class User:
    id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    password_hash: str | None = None
    dependents: frozenset[str] | None = None
    version: int = 0

    def public(self) -> "User":
        """Projection without the sensitive fields."""
        return replace(self, password_hash=None, dependents=None)

    def to_item(self) -> dict:
        item = {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role.value,
            "passwordHash": self.password_hash,
            "version": self.version,
        }
        if self.dependents is not None:
            item["dependents"] = sorted(self.dependents)
        return item

    @classmethod
    def from_item(cls, item: dict) -> "User":
        dependents = item.get("dependents")
        return cls(
            id=item["id"],
            email=item["email"],
            first_name=item.get("firstName", ""),
            last_name=item.get("lastName", ""),
            role=Role(item["role"]),
            password_hash=item.get("passwordHash"),
            dependents=frozenset(dependents) if dependents is not None else None,
            version=item.get("version", 0),
        )


@dataclass(frozen=True)
class Classroom:
    id: str
    title: str
    instructor: str
    students: frozenset[str] = frozenset()
    version: int = 0

    def to_item(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "instructor": self.instructor,
            "students": sorted(self.students),
            "version": self.version,
        }

    @classmethod
    def from_item(cls, item: dict) -> "Classroom":
        return cls(
            id=item["id"],
            title=item["title"],
            instructor=item["instructor"],
            students=frozenset(item.get("students") or ()),
            version=item.get("version", 0),
        )


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    classroom: str
    deadline: datetime
    # None means the task is assigned to the whole classroom
    student: str | None = None
    completed_students: frozenset[str] = frozenset()
    version: int = 0

    @property
    def class_scoped(self) -> bool:
        return self.student is None

    def to_item(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "classroom": self.classroom,
            "deadline": self.deadline.isoformat(),
            "student": self.student,
            "completedStudents": sorted(self.completed_students),
            "version": self.version,
        }

    @classmethod
    def from_item(cls, item: dict) -> "Task":
        return cls(
            id=item["id"],
            title=item["title"],
            classroom=item["classroom"],
            deadline=datetime.fromisoformat(item["deadline"]),
            student=item.get("student"),
            completed_students=frozenset(item.get("completedStudents") or ()),
            version=item.get("version", 0),
        )


@dataclass(frozen=True)
class GradeEntry:
    student: str
    score: float
    comments: str = ""

    def to_item(self) -> dict:
        return {"student": self.student, "score": self.score, "comments": self.comments}

    @classmethod
    def from_item(cls, item: dict) -> "GradeEntry":
        return cls(student=item["student"], score=item["score"], comments=item.get("comments", ""))


@dataclass(frozen=True)
class GradingComponent:
    id: str
    title: str
    classroom: str
    total: float
    weight: float
    grades: tuple[GradeEntry, ...] = ()
    version: int = 0

    def entry_for(self, student_id: str) -> GradeEntry | None:
        for entry in self.grades:
            if entry.student == student_id:
                return entry
        return None

    def to_item(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "classroom": self.classroom,
            "total": self.total,
            "weight": self.weight,
            "grades": [g.to_item() for g in self.grades],
            "version": self.version,
        }

    @classmethod
    def from_item(cls, item: dict) -> "GradingComponent":
        return cls(
            id=item["id"],
            title=item["title"],
            classroom=item["classroom"],
            total=item["total"],
            weight=item["weight"],
            grades=tuple(GradeEntry.from_item(g) for g in item.get("grades") or ()),
            version=item.get("version", 0),
        )


@dataclass(frozen=True)
class GradeLine:
    component: GradingComponent
    entry: GradeEntry | None = None


@dataclass(frozen=True)
class GradeReport:
    classroom: str
    student: str
    lines: list[GradeLine] = field(default_factory=list)

    @property
    def overall(self) -> float | None:
        """Weighted percentage over the graded components."""
        weighted = 0.0
        weights = 0.0
        for line in self.lines:
            if line.entry is None or not line.component.total:
                continue
            weighted += line.component.weight * line.entry.score / line.component.total
            weights += line.component.weight
        if not weights:
            return None
        return round(100 * weighted / weights, 2)

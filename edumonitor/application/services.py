from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..infrastructure.security import PasswordHasher
from ..infrastructure.store import CLASSROOMS, GRADING_COMPONENTS, TASKS, USERS, DocumentStore
from .classrooms import ClassroomService
from .grades import GradeService
from .tasks import TaskService
from .users import UserService


@dataclass
class Services:
    users: UserService
    classrooms: ClassroomService
    tasks: TaskService
    grades: GradeService


def build_services(db: Session) -> Services:
    """Wire the four services so each one writes only to its own collection."""
    store = DocumentStore(db)
    users = UserService(store.collection(USERS), hasher=PasswordHasher())
    classrooms = ClassroomService(store.collection(CLASSROOMS), users=users)
    return Services(
        users=users,
        classrooms=classrooms,
        tasks=TaskService(store.collection(TASKS), classrooms=classrooms, users=users),
        grades=GradeService(store.collection(GRADING_COMPONENTS), classrooms=classrooms, users=users),
    )

import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# must be set before edumonitor.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/99")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from edumonitor.application.services import build_services
from edumonitor.application.users import Profile
from edumonitor.domain.context import CallContext
from edumonitor.domain.entities import Role
from edumonitor.infrastructure.models import Base

# In-memory test database shared by every connection
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

PASSWORD = "password123"


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def services(db):
    return build_services(db)


@pytest.fixture
def internal():
    return CallContext.internal("tests")


@pytest.fixture
def signup(services):
    """Register a user and return it."""
    counter = {"n": 0}

    def _signup(role: Role, email: str | None = None, first_name: str = "Test"):
        counter["n"] += 1
        profile = Profile(
            email=email or f"{role.value.lower()}{counter['n']}@example.com",
            first_name=first_name,
            last_name="User",
            role=role,
        )
        return services.users.signup(CallContext.end_user(), profile, PASSWORD)

    return _signup


def as_user(user) -> CallContext:
    return CallContext.end_user(user)


@pytest.fixture
def school(services, signup):
    """Educator, classroom "Algebra" with one enrolled student, and a linked guardian."""
    educator = signup(Role.EDUCATOR)
    student = signup(Role.STUDENT)
    other_student = signup(Role.STUDENT)
    guardian = signup(Role.GUARDIAN)
    stranger = signup(Role.GUARDIAN)

    classroom = services.classrooms.create(as_user(educator), "Algebra")
    classroom = services.classrooms.enroll(as_user(student), classroom.id)
    services.users.add_guardian(as_user(student), guardian.email)

    return {
        "educator": educator,
        "student": student,
        "other_student": other_student,
        "guardian": guardian,
        "stranger": stranger,
        "classroom": classroom,
    }

from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ...domain.entities import Role


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    @field_validator("*", mode="before")
    @classmethod
    def _sorted_sets(cls, v):
        if isinstance(v, (set, frozenset)):
            return sorted(v)
        return v


# --- users

class SignupReq(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    role: Role

class LoginReq(BaseModel):
    email: EmailStr
    password: str

class ProfileUpdateReq(CamelModel):
    email: EmailStr | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")

class PasswordUpdateReq(CamelModel):
    old_password: str = Field(alias="oldPassword")
    new_password: str = Field(alias="newPassword", min_length=8)

class GuardianReq(BaseModel):
    email: EmailStr

class UserResp(CamelModel):
    id: str
    email: str
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")
    role: Role
    dependents: list[str] | None = None

class TokenResp(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResp


# --- classrooms

class ClassroomCreate(BaseModel):
    title: str

class RosterReq(BaseModel):
    email: EmailStr | None = None

class ClassroomResp(CamelModel):
    id: str
    title: str
    instructor: str
    students: list[str]


# --- tasks

class TaskCreate(BaseModel):
    title: str
    deadline: datetime
    classroom: str

class TaskUpdate(BaseModel):
    title: str | None = None
    deadline: datetime | None = None

class CompletenessReq(BaseModel):
    completed: bool

class TaskResp(CamelModel):
    id: str
    title: str
    classroom: str
    deadline: datetime
    student: str | None = None
    completed_students: list[str] = Field(serialization_alias="completedStudents")


# --- grades

class ComponentCreate(BaseModel):
    classroom: str
    title: str
    total: float = Field(gt=0)
    weight: float = Field(ge=0)

class ComponentUpdate(BaseModel):
    title: str | None = None
    total: float | None = Field(default=None, gt=0)
    weight: float | None = Field(default=None, ge=0)

class GradeResp(CamelModel):
    student: str
    score: float
    comments: str = ""

class GradePost(BaseModel):
    student: str
    score: float = Field(ge=0)
    comments: str = ""

class GradeUpdate(BaseModel):
    score: float | None = Field(default=None, ge=0)
    comments: str | None = None

class ComponentResp(CamelModel):
    id: str
    title: str
    classroom: str
    total: float
    weight: float
    grades: list[GradeResp] = []

class GradeLineResp(CamelModel):
    component: ComponentResp
    entry: GradeResp | None = None

class GradeReportResp(CamelModel):
    classroom: str
    student: str
    lines: list[GradeLineResp]
    overall: float | None = None

"""IdentityGraph: users, credentials, roles and the guardian -> dependents adjacency."""
from dataclasses import dataclass, replace
from uuid import uuid4

import structlog

from ..domain.context import CallContext
from ..domain.entities import Role, User
from ..domain.errors import Conflict, Forbidden, NotFound, Unauthenticated, ValidationError
from ..domain.validation import normalize_email, validate_id, validate_role, validate_text
from ..infrastructure.store import Collection, Contains, Eq

logger = structlog.get_logger()


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...


@dataclass
class Profile:
    email: str
    first_name: str
    last_name: str
    role: str | Role


class UserService:
    def __init__(self, users: Collection, hasher: IPasswordHasher):
        self.users = users
        self.hasher = hasher

    # --- queries

    def _find(self, id: str | None = None, email: str | None = None) -> User | None:
        conditions = []
        if id is not None:
            conditions.append(Eq("id", validate_id(id)))
        if email is not None:
            conditions.append(Eq("email", normalize_email(email)))
        items = self.users.scan(*conditions)
        return User.from_item(items[0]) if items else None

    def me(self, ctx: CallContext) -> User | None:
        return ctx.user

    def lookup(
        self,
        ctx: CallContext,
        id: str | None = None,
        email: str | None = None,
        include_dependents: bool = False,
        include_password_hash: bool = False,
    ) -> User | None:
        if id is None and email is None:
            raise ValidationError("id or email is required")
        if not ctx.is_internal:
            ctx.require_user()
            if include_password_hash:
                raise Forbidden("Password hashes are only available to internal callers")

        user = self._find(id=id, email=email)
        if user is None:
            return None

        if include_dependents and not ctx.is_internal and ctx.user.id != user.id:
            raise Forbidden("You can only see your own dependents")
        return replace(
            user,
            password_hash=user.password_hash if include_password_hash else None,
            dependents=user.dependents if include_dependents else None,
        )

    def list_guardians(self, ctx: CallContext, student_id: str | None = None) -> list[User]:
        if ctx.is_internal:
            if student_id is None:
                raise ValidationError("studentId is required")
            subject = validate_id(student_id, "studentId")
        else:
            subject = ctx.require_role(Role.STUDENT, message="Only students can list guardians").id

        items = self.users.scan(Eq("role", Role.GUARDIAN.value), Contains("dependents", subject))
        return [User.from_item(item).public() for item in items]

    def list_dependents(self, ctx: CallContext, guardian_id: str | None = None) -> list[str]:
        if ctx.is_internal:
            if guardian_id is None:
                raise ValidationError("guardianId is required")
            subject = validate_id(guardian_id, "guardianId")
        else:
            subject = ctx.require_role(Role.GUARDIAN, message="Only guardians can list dependents").id

        guardian = self._find(id=subject)
        if guardian is None:
            raise NotFound("User not found")
        return sorted(guardian.dependents or ())

    # --- account

    def signup(self, ctx: CallContext, profile: Profile, password: str) -> User:
        email = normalize_email(profile.email)
        role = validate_role(profile.role)
        first_name = validate_text(profile.first_name, "firstName")
        last_name = validate_text(profile.last_name, "lastName")
        if not isinstance(password, str) or not password:
            raise ValidationError("password should be a non-empty string")

        if self._find(email=email):
            raise Conflict("Email already registered")

        user = User(
            id=str(uuid4()),
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            password_hash=self.hasher.hash(password),
            dependents=frozenset() if role == Role.GUARDIAN else None,
        )
        stored = User.from_item(self.users.put(user.to_item()))
        logger.info("user_signed_up", user_id=stored.id, role=role.value, request_id=ctx.request_id)
        return stored.public()

    def login(self, ctx: CallContext, email: str, password: str) -> User:
        user = self._find(email=email)
        if user is None:
            raise NotFound("User not found")
        if not self.hasher.verify(password, user.password_hash):
            logger.info("login_failed", user_id=user.id, request_id=ctx.request_id)
            raise Unauthenticated("Invalid credentials")

        if ctx.session is not None:
            ctx.session.user = user.public()
        logger.info("user_logged_in", user_id=user.id, request_id=ctx.request_id)
        return user.public()

    def logout(self, ctx: CallContext) -> None:
        user = ctx.require_user()
        ctx.session.user = None
        logger.info("user_logged_out", user_id=user.id, request_id=ctx.request_id)

    def update_profile(
        self,
        ctx: CallContext,
        email: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        current = self._self_record(ctx)

        changes = {}
        if first_name is not None:
            changes["first_name"] = validate_text(first_name, "firstName")
        if last_name is not None:
            changes["last_name"] = validate_text(last_name, "lastName")
        if email is not None:
            email = normalize_email(email)
            if email != current.email:
                if self._find(email=email):
                    raise Conflict("Email already registered")
                changes["email"] = email
        if not changes:
            return current.public()

        stored = User.from_item(self.users.put(replace(current, **changes).to_item()))
        ctx.session.user = stored.public()
        logger.info("profile_updated", user_id=stored.id, fields=sorted(changes), request_id=ctx.request_id)
        return stored.public()

    def update_password(self, ctx: CallContext, old_password: str, new_password: str) -> None:
        current = self._self_record(ctx)
        if not self.hasher.verify(old_password, current.password_hash):
            raise Unauthenticated("Invalid credentials")
        if not isinstance(new_password, str) or not new_password:
            raise ValidationError("password should be a non-empty string")

        self.users.put(replace(current, password_hash=self.hasher.hash(new_password)).to_item())
        logger.info("password_updated", user_id=current.id, request_id=ctx.request_id)

    def _self_record(self, ctx: CallContext) -> User:
        user = self._find(id=ctx.require_user().id)
        if user is None:
            raise NotFound("User not found")
        return user

    # --- guardians

    def add_guardian(self, ctx: CallContext, email: str) -> User:
        student = ctx.require_role(Role.STUDENT, message="Only students can add guardians")
        guardian = self._guardian_by_email(email)
        if student.id in guardian.dependents:
            return guardian.public()

        stored = User.from_item(self.users.put(
            replace(guardian, dependents=guardian.dependents | {student.id}).to_item()
        ))
        logger.info("guardian_added", student_id=student.id, guardian_id=guardian.id, request_id=ctx.request_id)
        return stored.public()

    def remove_guardian(self, ctx: CallContext, email: str) -> User:
        student = ctx.require_role(Role.STUDENT, message="Only students can remove guardians")
        guardian = self._guardian_by_email(email)
        if student.id not in guardian.dependents:
            return guardian.public()

        stored = User.from_item(self.users.put(
            replace(guardian, dependents=guardian.dependents - {student.id}).to_item()
        ))
        logger.info("guardian_removed", student_id=student.id, guardian_id=guardian.id, request_id=ctx.request_id)
        return stored.public()

    def _guardian_by_email(self, email: str) -> User:
        guardian = self._find(email=email)
        if guardian is None:
            raise NotFound("User not found")
        if guardian.role != Role.GUARDIAN:
            raise ValidationError("User is not a guardian")
        if guardian.dependents is None:
            guardian = replace(guardian, dependents=frozenset())
        return guardian

"""Request-scoped call context.

Every service operation receives a ``CallContext``. The caller is either an
end user (with a session holding at most one logged-in user) or a trusted
internal caller, i.e. another service, which may name subject ids explicitly.
"""
from dataclasses import dataclass, field
from uuid import uuid4

from .entities import Role, User
from .errors import Forbidden, Unauthenticated


@dataclass
class Session:
    user: User | None = None


@dataclass(frozen=True)
class EndUser:
    session: Session = field(default_factory=Session)


@dataclass(frozen=True)
class Internal:
    service: str = "internal"


@dataclass
class CallContext:
    caller: EndUser | Internal
    request_id: str = field(default_factory=lambda: uuid4().hex)

    @classmethod
    def end_user(cls, user: User | None = None) -> "CallContext":
        return cls(caller=EndUser(Session(user=user.public() if user else None)))

    @classmethod
    def internal(cls, service: str = "internal") -> "CallContext":
        return cls(caller=Internal(service))

    @property
    def is_internal(self) -> bool:
        return isinstance(self.caller, Internal)

    @property
    def session(self) -> Session | None:
        if isinstance(self.caller, EndUser):
            return self.caller.session
        return None

    @property
    def user(self) -> User | None:
        session = self.session
        return session.user if session else None

    def require_user(self) -> User:
        user = self.user
        if user is None:
            raise Unauthenticated("You are not logged in")
        return user

    def require_role(self, *roles: Role, message: str = "") -> User:
        user = self.require_user()
        if user.role not in roles:
            names = " or ".join(r.value.lower() for r in roles)
            raise Forbidden(message or f"Only a {names} can do this")
        return user

    def peer(self, service: str) -> "CallContext":
        """Internal context for calling a sibling service on behalf of this request."""
        return CallContext(caller=Internal(service), request_id=self.request_id)

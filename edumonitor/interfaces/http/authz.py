import secrets

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from slowapi import Limiter
from sqlalchemy.orm import Session

from ...application.services import Services, build_services
from ...config import settings
from ...domain.context import CallContext
from ...infrastructure.db import get_db
from ...infrastructure.revocation import is_token_revoked
from ...infrastructure.security import decode_token

bearer = HTTPBearer(auto_error=False)


def get_limiter(request: Request) -> Limiter:
    return request.app.state.limiter


def get_services(db: Session = Depends(get_db)) -> Services:
    return build_services(db)


def get_claims(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> dict | None:
    if creds is None:
        return None
    try:
        claims = decode_token(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if is_token_revoked(claims["jti"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token revoked")
    return claims


def get_context(
    claims: dict | None = Depends(get_claims),
    internal_key: str | None = Header(default=None, alias="X-Internal-Key"),
    services: Services = Depends(get_services),
) -> CallContext:
    """Build the request-scoped context: trusted service, logged-in user or anonymous."""
    if internal_key is not None:
        if not secrets.compare_digest(internal_key, settings.INTERNAL_API_KEY):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid internal key")
        return CallContext.internal("gateway")

    if claims is None:
        return CallContext.end_user()

    user = services.users.lookup(CallContext.internal("gateway"), id=claims["sub"])
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return CallContext.end_user(user)

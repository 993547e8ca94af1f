from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from slowapi import Limiter

from ....application.services import Services
from ....application.users import Profile
from ....config import settings
from ....domain.context import CallContext
from ....infrastructure.revocation import revoke_token
from ....infrastructure.security import create_access_token
from ..authz import get_claims, get_context, get_limiter, get_services
from ..schemas import (
    GuardianReq,
    LoginReq,
    PasswordUpdateReq,
    ProfileUpdateReq,
    SignupReq,
    TokenResp,
    UserResp,
)

router = APIRouter(prefix="/api/users", tags=["users"])

def _signup_impl(request: Request, payload: SignupReq, ctx: CallContext, services: Services):
    profile = Profile(
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
    )
    user = services.users.signup(ctx, profile, payload.password)
    return UserResp.model_validate(user)

@router.post("/signup", response_model=UserResp, status_code=status.HTTP_201_CREATED)
def signup(
    request: Request,
    payload: SignupReq,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
    limiter: Limiter = Depends(get_limiter),
):
    limited_func = limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")(_signup_impl)
    return limited_func(request, payload, ctx, services)

def _login_impl(request: Request, payload: LoginReq, ctx: CallContext, services: Services):
    user = services.users.login(ctx, payload.email, payload.password)
    token = create_access_token(sub=user.id, role=user.role.value)
    return TokenResp(access_token=token, user=UserResp.model_validate(user))

@router.post("/login", response_model=TokenResp)
def login(
    request: Request,
    payload: LoginReq,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
    limiter: Limiter = Depends(get_limiter),
):
    # stricter limit against brute force
    limited_func = limiter.limit(settings.LOGIN_RATE_LIMIT)(_login_impl)
    return limited_func(request, payload, ctx, services)

@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    claims: dict | None = Depends(get_claims),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    services.users.logout(ctx)
    revoke_token(claims["jti"], claims["exp"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/me", response_model=UserResp | None)
def me(ctx: CallContext = Depends(get_context), services: Services = Depends(get_services)):
    user = services.users.me(ctx)
    return UserResp.model_validate(user) if user else None

@router.patch("/me", response_model=UserResp)
def update_profile(
    payload: ProfileUpdateReq,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    user = services.users.update_profile(
        ctx,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return UserResp.model_validate(user)

@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def update_password(
    payload: PasswordUpdateReq,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    services.users.update_password(ctx, payload.old_password, payload.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/lookup", response_model=UserResp)
def lookup(
    id: str | None = Query(None),
    email: str | None = Query(None),
    include_dependents: bool = Query(False, alias="includeDependents"),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    user = services.users.lookup(ctx, id=id, email=email, include_dependents=include_dependents)
    if not user: raise HTTPException(404, "user not found")
    return UserResp.model_validate(user)

@router.post("/guardians", response_model=UserResp)
def add_guardian(
    payload: GuardianReq,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    return UserResp.model_validate(services.users.add_guardian(ctx, payload.email))

@router.delete("/guardians", response_model=UserResp)
def remove_guardian(
    email: str = Query(...),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    return UserResp.model_validate(services.users.remove_guardian(ctx, email))

@router.get("/guardians", response_model=list[UserResp])
def list_guardians(
    student_id: str | None = Query(None, alias="studentId"),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    return [UserResp.model_validate(u) for u in services.users.list_guardians(ctx, student_id)]

@router.get("/dependents", response_model=list[str])
def list_dependents(
    guardian_id: str | None = Query(None, alias="guardianId"),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    return services.users.list_dependents(ctx, guardian_id)

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ....application.services import Services
from ....domain.context import CallContext
from ..authz import get_context, get_services
from ..schemas import ClassroomCreate, ClassroomResp, RosterReq

router = APIRouter(prefix="/api/classrooms", tags=["classrooms"])

@router.post("", response_model=ClassroomResp, status_code=status.HTTP_201_CREATED)
def create_classroom(
    payload: ClassroomCreate,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    return ClassroomResp.model_validate(services.classrooms.create(ctx, payload.title))

@router.get("/instructing", response_model=list[ClassroomResp])
def list_instructing(
    instructor_id: str | None = Query(None, alias="instructorId"),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    rows = services.classrooms.list_instructing_classrooms(ctx, instructor_id)
    return [ClassroomResp.model_validate(row) for row in rows]

@router.get("/enrolled", response_model=list[ClassroomResp])
def list_enrolled(
    student_id: str | None = Query(None, alias="studentId"),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    rows = services.classrooms.list_enrolled_classrooms(ctx, student_id)
    return [ClassroomResp.model_validate(row) for row in rows]

@router.get("/{classroom_id}", response_model=ClassroomResp)
def lookup_classroom(
    classroom_id: str,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    row = services.classrooms.lookup(ctx, classroom_id)
    if not row: raise HTTPException(404, "classroom not found")
    return ClassroomResp.model_validate(row)

@router.post("/{classroom_id}/enroll", response_model=ClassroomResp)
def enroll(
    classroom_id: str,
    payload: RosterReq | None = None,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    email = payload.email if payload else None
    return ClassroomResp.model_validate(services.classrooms.enroll(ctx, classroom_id, email))

@router.post("/{classroom_id}/withdraw", response_model=ClassroomResp)
def withdraw(
    classroom_id: str,
    payload: RosterReq | None = None,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    email = payload.email if payload else None
    return ClassroomResp.model_validate(services.classrooms.withdraw(ctx, classroom_id, email))

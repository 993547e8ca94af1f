from fastapi import APIRouter, Depends, Query, Response, status

from ....application.services import Services
from ....domain.context import CallContext
from ..authz import get_context, get_services
from ..schemas import (
    ComponentCreate,
    ComponentResp,
    ComponentUpdate,
    GradePost,
    GradeReportResp,
    GradeResp,
    GradeUpdate,
)

router = APIRouter(prefix="/api/grades", tags=["grades"])

# --- Grading components

@router.post("/components", response_model=ComponentResp, status_code=status.HTTP_201_CREATED)
def add_component(
    payload: ComponentCreate,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    component = services.grades.add_grading_component(
        ctx, payload.classroom, payload.title, payload.total, payload.weight
    )
    return ComponentResp.model_validate(component)

@router.get("/components", response_model=list[ComponentResp])
def list_components(
    classroom_id: str = Query(..., alias="classroomId"),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    rows = services.grades.list_grading_components(ctx, classroom_id)
    return [ComponentResp.model_validate(row) for row in rows]

@router.patch("/components/{component_id}", response_model=ComponentResp)
def update_component(
    component_id: str,
    payload: ComponentUpdate,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    component = services.grades.update_grading_component(
        ctx, component_id, title=payload.title, total=payload.total, weight=payload.weight
    )
    return ComponentResp.model_validate(component)

@router.delete("/components/{component_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_component(
    component_id: str,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    services.grades.remove_grading_component(ctx, component_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# --- Grades, keyed by (component, student)

@router.get("/components/{component_id}/grades/{student_id}", response_model=GradeResp)
def lookup_grade(
    component_id: str,
    student_id: str,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    return GradeResp.model_validate(services.grades.lookup_grade(ctx, component_id, student_id))

@router.post("/components/{component_id}/grades", response_model=GradeResp, status_code=status.HTTP_201_CREATED)
def post_grade(
    component_id: str,
    payload: GradePost,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    entry = services.grades.post_grade(
        ctx, component_id, payload.student, payload.score, payload.comments
    )
    return GradeResp.model_validate(entry)

@router.patch("/components/{component_id}/grades/{student_id}", response_model=GradeResp)
def update_grade(
    component_id: str,
    student_id: str,
    payload: GradeUpdate,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    entry = services.grades.update_grade(
        ctx, component_id, student_id, score=payload.score, comments=payload.comments
    )
    return GradeResp.model_validate(entry)

@router.delete("/components/{component_id}/grades/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_grade(
    component_id: str,
    student_id: str,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    services.grades.remove_grade(ctx, component_id, student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.get("/classrooms/{classroom_id}", response_model=GradeReportResp)
def list_grades(
    classroom_id: str,
    student_id: str | None = Query(None, alias="studentId"),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    return GradeReportResp.model_validate(services.grades.list_grades(ctx, classroom_id, student_id))

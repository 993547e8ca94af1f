from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ....application.services import Services
from ....domain.context import CallContext
from ..authz import get_context, get_services
from ..schemas import CompletenessReq, TaskCreate, TaskResp, TaskUpdate

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

@router.post("", response_model=TaskResp, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    task = services.tasks.create(ctx, payload.title, payload.deadline, payload.classroom)
    return TaskResp.model_validate(task)

@router.get("", response_model=list[TaskResp])
def list_tasks(
    student_id: str | None = Query(None, alias="studentId"),
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    return [TaskResp.model_validate(t) for t in services.tasks.list(ctx, student_id)]

@router.get("/{task_id}", response_model=TaskResp)
def lookup_task(
    task_id: str,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    task = services.tasks.lookup(ctx, task_id)
    if not task: raise HTTPException(404, "task not found")
    return TaskResp.model_validate(task)

@router.patch("/{task_id}", response_model=TaskResp)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    task = services.tasks.update(ctx, task_id, title=payload.title, deadline=payload.deadline)
    return TaskResp.model_validate(task)

@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    services.tasks.delete(ctx, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

@router.put("/{task_id}/completeness", response_model=TaskResp)
def update_completeness(
    task_id: str,
    payload: CompletenessReq,
    ctx: CallContext = Depends(get_context),
    services: Services = Depends(get_services),
):
    task = services.tasks.update_completeness(ctx, task_id, payload.completed)
    return TaskResp.model_validate(task)

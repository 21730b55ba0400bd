# =============================================================================
# app/routers/tasks.py - Task Endpoints
# =============================================================================
# Moving (within or across columns), copying, and deleting tasks.
# Task creation lives under /columns/{column_id}/tasks.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, status

from core.models.board import TaskMoveRequest, TaskResponse
from core.services.task_service import TaskService

router = APIRouter()

TaskId = Annotated[str, Path(description="Task UUID")]


@router.post("/{task_id}/move", response_model=TaskResponse)
async def move_task(task_id: TaskId, request: TaskMoveRequest):
    """
    Move a task, optionally into another column.

    Neighbour ids (or `target_index`) refer to tasks in the destination
    column, which is `target_column_id` when given and the task's current
    column otherwise.

    Include `version` to get 409 instead of a silent overwrite when the
    task was moved concurrently.
    """
    if request.target_index is not None:
        return TaskService.move_task_to_index(
            task_id,
            request.target_index,
            target_column_id=request.target_column_id,
            version=request.version,
        )
    return TaskService.move_task(
        task_id,
        target_column_id=request.target_column_id,
        before_task_id=request.before_task_id,
        after_task_id=request.after_task_id,
        version=request.version,
    )


@router.post(
    "/{task_id}/copy",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def copy_task(task_id: TaskId):
    """
    Copy a task to the end of its column.
    """
    return TaskService.copy_task(task_id)


@router.delete("/{task_id}", response_model=TaskResponse)
async def delete_task(task_id: TaskId):
    """Delete a task."""
    return TaskService.delete_task(task_id)

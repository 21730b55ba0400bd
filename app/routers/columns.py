# =============================================================================
# app/routers/columns.py - Column Endpoints
# =============================================================================
# Moving, copying and deleting a column, plus the column-level task operations:
# list, create (append or explicit key), bulk create, rebalance.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, status

from core.models.board import (
    ColumnBoardMoveRequest,
    ColumnMoveRequest,
    ColumnResponse,
    RebalanceResponse,
    TaskBulkCreate,
    TaskCreate,
    TaskResponse,
)
from core.services.column_service import ColumnService
from core.services.task_service import TaskService

router = APIRouter()

ColumnId = Annotated[str, Path(description="Column UUID")]


# =============================================================================
# Column Operations
# =============================================================================

@router.post("/{column_id}/move", response_model=ColumnResponse)
async def move_column(column_id: ColumnId, request: ColumnMoveRequest):
    """
    Move a column.

    Send either the neighbour ids the column should land between, or a
    `target_index` among the board's other columns. With neither, the
    column moves to the end.

    Include `version` to reject the move with 409 if someone else moved the
    column first. On 409 re-fetch the columns and recompute the move.
    """
    if request.target_index is not None:
        return ColumnService.move_column_to_index(
            column_id,
            request.target_index,
            version=request.version,
        )
    return ColumnService.move_column(
        column_id,
        before_column_id=request.before_column_id,
        after_column_id=request.after_column_id,
        version=request.version,
    )


@router.post("/{column_id}/move-to-board", response_model=ColumnResponse)
async def move_column_to_board(column_id: ColumnId, request: ColumnBoardMoveRequest):
    """
    Move a column, tasks included, to the end of another board.

    Returns 404 if the destination board doesn't exist and 409 when
    `version` is stale.
    """
    return ColumnService.move_column_to_board(
        column_id,
        request.target_board_id,
        version=request.version,
    )


@router.post(
    "/{column_id}/copy",
    response_model=ColumnResponse,
    status_code=status.HTTP_201_CREATED,
)
async def copy_column(column_id: ColumnId):
    """
    Copy a column and its tasks to the end of the same board.

    The copy is named "<name> (Copy)"; its tasks keep their order.
    """
    return ColumnService.copy_column(column_id)


@router.delete("/{column_id}", response_model=ColumnResponse)
async def delete_column(column_id: ColumnId):
    """
    Delete a column and its tasks. Other columns keep their keys.
    """
    return ColumnService.delete_column(column_id)


# =============================================================================
# Tasks in a Column
# =============================================================================

@router.get("/{column_id}/tasks", response_model=list[TaskResponse])
async def list_tasks(column_id: ColumnId):
    """
    List the column's tasks in display order (ascending position).
    """
    return TaskService.list_tasks(column_id)


@router.post(
    "/{column_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(column_id: ColumnId, request: TaskCreate):
    """
    Create a task, appended after the last one unless a position is given.
    """
    return TaskService.create_task(
        column_id,
        request.title,
        description=request.description,
        position=request.position,
    )


@router.post(
    "/{column_id}/tasks/bulk",
    response_model=list[TaskResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_tasks(column_id: ColumnId, request: TaskBulkCreate):
    """
    Create several tasks at once at `index` (default: end of the column).
    """
    return TaskService.create_tasks(column_id, request.titles, index=request.index)


@router.post("/{column_id}/rebalance", response_model=RebalanceResponse)
async def rebalance_column(column_id: ColumnId):
    """
    Rewrite every task key in the column with fresh short keys.
    """
    positions = TaskService.rebalance_column(column_id)
    return RebalanceResponse(parent_id=column_id, positions=positions)

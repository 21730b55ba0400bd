# =============================================================================
# app/routers/boards.py - Board Endpoints
# =============================================================================
# Board creation plus the board-level column operations:
# list, create (append or explicit key), bulk create, rebalance.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, status

from app.dependencies import StoreDep
from core.models.board import (
    BoardCreate,
    BoardResponse,
    ColumnBulkCreate,
    ColumnCreate,
    ColumnResponse,
    RebalanceResponse,
)
from core.services.column_service import ColumnService

router = APIRouter()

BoardId = Annotated[str, Path(description="Board UUID")]


# =============================================================================
# Boards
# =============================================================================

@router.post("", response_model=BoardResponse, status_code=status.HTTP_201_CREATED)
async def create_board(request: BoardCreate, store: StoreDep):
    """
    Create a new, empty board.
    """
    return store.insert_board(request.name)


@router.get("/{board_id}", response_model=BoardResponse)
async def get_board(board_id: BoardId, store: StoreDep):
    """
    Get board details.
    """
    return store.get_board(board_id)


# =============================================================================
# Columns
# =============================================================================

@router.get("/{board_id}/columns", response_model=list[ColumnResponse])
async def list_columns(board_id: BoardId):
    """
    List the board's columns in display order (ascending position).
    """
    return ColumnService.list_columns(board_id)


@router.post(
    "/{board_id}/columns",
    response_model=ColumnResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_column(board_id: BoardId, request: ColumnCreate):
    """
    Create a column.

    Without a position the column is appended after the last one.
    A client-predicted position is stored as given.
    """
    return ColumnService.create_column(board_id, request.name, position=request.position)


@router.post(
    "/{board_id}/columns/bulk",
    response_model=list[ColumnResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_columns(board_id: BoardId, request: ColumnBulkCreate):
    """
    Create several columns at once.

    All keys are minted in one pass, so the columns land contiguously at
    `index` in the order given.
    """
    return ColumnService.create_columns(board_id, request.names, index=request.index)


@router.post("/{board_id}/rebalance", response_model=RebalanceResponse)
async def rebalance_board(board_id: BoardId):
    """
    Rewrite every column key with fresh short keys, keeping the order.
    """
    positions = ColumnService.rebalance_board(board_id)
    return RebalanceResponse(parent_id=board_id, positions=positions)

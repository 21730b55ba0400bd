# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains schemas for data validation:
# - position.py: Position bounds and key-minting request/response
# - board.py: Board, column and task CRUD / move schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Position Models - Fractional-index keys
# -----------------------------------------------------------------------------
from .position import (
    KeysBetweenRequest,
    KeysBetweenResponse,
    PositionBounds,
)

# -----------------------------------------------------------------------------
# Board Models - Boards, columns, tasks
# -----------------------------------------------------------------------------
from .board import (
    BoardCreate,
    BoardResponse,
    ColumnBulkCreate,
    ColumnCreate,
    ColumnBoardMoveRequest,
    ColumnMoveRequest,
    ColumnResponse,
    RebalanceResponse,
    TaskBulkCreate,
    TaskCreate,
    TaskMoveRequest,
    TaskResponse,
)

# -----------------------------------------------------------------------------
# __all__ - Explicit public API
# -----------------------------------------------------------------------------
__all__ = [
    # Position
    "KeysBetweenRequest",
    "KeysBetweenResponse",
    "PositionBounds",
    # Board
    "BoardCreate",
    "BoardResponse",
    "ColumnBulkCreate",
    "ColumnCreate",
    "ColumnBoardMoveRequest",
    "ColumnMoveRequest",
    "ColumnResponse",
    "RebalanceResponse",
    "TaskBulkCreate",
    "TaskCreate",
    "TaskMoveRequest",
    "TaskResponse",
]

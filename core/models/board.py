# =============================================================================
# core/models/board.py - Board, Column and Task Schemas
# =============================================================================
# These models define the API contract for the Kanban hierarchy:
#   Board -> Columns (ordered by position) -> Tasks (ordered by position)
#
# Positions are fractional-index keys. Clients normally leave them out and
# let the server append, or send neighbour ids / a target index on move.
# =============================================================================

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# Boards
# =============================================================================

class BoardCreate(BaseModel):
    """Schema for creating a board."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Board name"
    )


class BoardResponse(BaseModel):
    """Schema for returning a board."""

    id: str
    name: str
    created_at: str


# =============================================================================
# Columns
# =============================================================================

class ColumnCreate(BaseModel):
    """
    Schema for creating a column.

    Example:
        {"name": "In Review"}
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Column name"
    )

    # Explicit key, e.g. one predicted by the client; appended when omitted
    position: str | None = Field(
        default=None,
        description="Position key (appends after the last column when omitted)"
    )


class ColumnBulkCreate(BaseModel):
    """
    Schema for creating several columns at once.

    Example:
        {"names": ["To Do", "Doing", "Done"], "index": 0}
    """

    names: list[str] = Field(
        ...,
        min_length=1,
        description="Column names, in the order they should appear"
    )

    index: int | None = Field(
        default=None,
        ge=0,
        description="Slot to insert at (0 = before all columns; omitted = end)"
    )


class ColumnResponse(BaseModel):
    """
    Schema for returning column data to clients.

    Example:
        {
            "id": "660e8400-...",
            "board_id": "550e8400-...",
            "name": "To Do",
            "position": "a0",
            "version": 1,
            "created_at": "2024-01-15T10:30:00+00:00",
            "updated_at": "2024-01-15T10:30:00+00:00"
        }
    """

    id: str
    board_id: str
    name: str
    position: str
    version: int
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class ColumnMoveRequest(BaseModel):
    """
    Schema for moving a column.

    Either name the neighbours the column should land between, or give
    the target slot index among the other columns.

    Example:
        {"before_column_id": "660e...", "after_column_id": "770e...", "version": 3}
    """

    before_column_id: str | None = Field(
        default=None,
        description="Column that should end up immediately before the moved one"
    )

    after_column_id: str | None = Field(
        default=None,
        description="Column that should end up immediately after the moved one"
    )

    target_index: int | None = Field(
        default=None,
        ge=0,
        description="Slot among the other columns (alternative to neighbour ids)"
    )

    version: int | None = Field(
        default=None,
        ge=1,
        description="Version the client last saw (optimistic concurrency)"
    )

    @model_validator(mode="after")
    def _one_target(self) -> "ColumnMoveRequest":
        if self.target_index is not None and (self.before_column_id or self.after_column_id):
            raise ValueError("Use either target_index or neighbour ids, not both")
        return self


class ColumnBoardMoveRequest(BaseModel):
    """
    Schema for moving a column to another board.

    The column is appended after the destination board's last column.

    Example:
        {"target_board_id": "550e...", "version": 2}
    """

    target_board_id: str = Field(
        ...,
        min_length=1,
        description="Destination board"
    )

    version: int | None = Field(
        default=None,
        ge=1,
        description="Version the client last saw (optimistic concurrency)"
    )


# =============================================================================
# Tasks
# =============================================================================

class TaskCreate(BaseModel):
    """
    Schema for creating a task.

    Example:
        {"title": "Write release notes"}
    """

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Task title"
    )

    description: str | None = Field(
        default=None,
        description="Optional longer description"
    )

    position: str | None = Field(
        default=None,
        description="Position key (appends after the last task when omitted)"
    )


class TaskBulkCreate(BaseModel):
    """Schema for creating several tasks in one column at once."""

    titles: list[str] = Field(
        ...,
        min_length=1,
        description="Task titles, in the order they should appear"
    )

    index: int | None = Field(
        default=None,
        ge=0,
        description="Slot to insert at (0 = top of the column; omitted = end)"
    )


class TaskResponse(BaseModel):
    """Schema for returning task data to clients."""

    id: str
    column_id: str
    title: str
    description: str | None = None
    position: str
    version: int
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class TaskMoveRequest(BaseModel):
    """
    Schema for moving a task, possibly into another column.

    Example:
        {"target_column_id": "660e...", "before_task_id": "880e...", "version": 2}
    """

    target_column_id: str | None = Field(
        default=None,
        description="Destination column (defaults to the task's current column)"
    )

    before_task_id: str | None = Field(
        default=None,
        description="Task that should end up immediately before the moved one"
    )

    after_task_id: str | None = Field(
        default=None,
        description="Task that should end up immediately after the moved one"
    )

    target_index: int | None = Field(
        default=None,
        ge=0,
        description="Slot among the other tasks of the destination column"
    )

    version: int | None = Field(
        default=None,
        ge=1,
        description="Version the client last saw (optimistic concurrency)"
    )

    @model_validator(mode="after")
    def _one_target(self) -> "TaskMoveRequest":
        if self.target_index is not None and (self.before_task_id or self.after_task_id):
            raise ValueError("Use either target_index or neighbour ids, not both")
        return self


# =============================================================================
# Rebalancing
# =============================================================================

class RebalanceResponse(BaseModel):
    """Result of rewriting a sibling set's keys."""

    parent_id: str = Field(..., description="Board or column whose children were rebalanced")
    positions: dict[str, str] = Field(..., description="Item id -> new position key")

# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .position_service import (
    InvalidIndexError,
    ItemNotFoundError,
    PositionAllocator,
    position_of,
    sort_by_position,
)
from .column_service import ColumnService
from .task_service import TaskService
from .optimistic_service import OptimisticReorder, ProvisionalMove

__all__ = [
    "InvalidIndexError",
    "ItemNotFoundError",
    "PositionAllocator",
    "position_of",
    "sort_by_position",
    "ColumnService",
    "TaskService",
    "OptimisticReorder",
    "ProvisionalMove",
]

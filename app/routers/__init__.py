# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - boards.py: Board creation and board-level column endpoints
# - columns.py: Column move/delete and column-level task endpoints
# - tasks.py: Task move, copy, and delete endpoints
# - positions.py: Stateless key generation
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import boards
from . import columns
from . import tasks
from . import positions

__all__ = [
    "health",
    "boards",
    "columns",
    "tasks",
    "positions",
]

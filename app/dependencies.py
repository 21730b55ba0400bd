# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
# =============================================================================

from typing import Annotated

from fastapi import Depends

from lib.board_store import BoardStore


def get_board_store() -> BoardStore:
    """
    Get the board store instance.

    Returns the singleton store.
    """
    return BoardStore.get_store()


# Type alias for dependency injection
StoreDep = Annotated[BoardStore, Depends(get_board_store)]

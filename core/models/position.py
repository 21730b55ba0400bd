# =============================================================================
# core/models/position.py - Position Key Schemas
# =============================================================================
# Types shared by the position allocator and its callers:
# - PositionBounds: the (before, after) keys bracketing an insertion slot
# - KeysBetweenRequest / KeysBetweenResponse: stateless key minting
# =============================================================================

from typing import NamedTuple

from pydantic import BaseModel, Field


class PositionBounds(NamedTuple):
    """
    Neighbour keys around an insertion slot.

    `before` is None at the head of the sibling set, `after` is None at the
    tail. Unpacks and compares like a plain (before, after) tuple.
    """
    before: str | None
    after: str | None


class KeysBetweenRequest(BaseModel):
    """
    Request to mint keys between two bounds.

    Bounds are checked by the allocator, so a reversed range reports
    INVALID_RANGE and a malformed key reports INVALID_ORDER_KEY.

    Example:
        {"before": "a0", "after": "a1", "count": 2}
    """

    before: str | None = Field(
        default=None,
        description="Key immediately preceding the insertion point (null = head)"
    )

    after: str | None = Field(
        default=None,
        description="Key immediately following the insertion point (null = tail)"
    )

    count: int = Field(
        default=1,
        ge=1,
        description="Number of keys to mint"
    )


class KeysBetweenResponse(BaseModel):
    """Minted keys, ascending."""

    keys: list[str] = Field(
        ...,
        description="Keys strictly between the bounds, sorted ascending"
    )

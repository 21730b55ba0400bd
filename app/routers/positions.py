# =============================================================================
# app/routers/positions.py - Raw Key Generation
# =============================================================================
# Stateless endpoint that mints order keys between two bounds, for clients
# that keep their own ordering and only need the allocator.
# =============================================================================

import logging

from fastapi import APIRouter

from core.models.position import KeysBetweenRequest, KeysBetweenResponse
from core.services.position_service import PositionAllocator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/between", response_model=KeysBetweenResponse)
async def keys_between(request: KeysBetweenRequest):
    """
    Generate `count` ascending keys strictly between `before` and `after`.

    Either bound may be null (open end). Returns 400 INVALID_RANGE when
    `before` is not lower than `after`, 400 INVALID_ORDER_KEY for a malformed
    bound, and 422 CAPACITY_EXCEEDED when the
    request exceeds the configured limits.
    """
    keys = PositionAllocator.generate_many(request.before, request.after, request.count)
    logger.debug(f"Minted {len(keys)} keys between {request.before!r} and {request.after!r}")
    return KeysBetweenResponse(keys=keys)

# =============================================================================
# core/services/position_service.py - Position Allocator
# =============================================================================
# Turns reorder decisions into position keys for a sibling set (the columns
# of one board, or the tasks of one column):
# - bounds_for_index: which neighbour keys bracket slot N
# - generate_one / generate_many: mint keys strictly between two bounds
# - compute_move_target: both in one call (used on every drag-and-drop)
# - rebalance: fresh short keys for a whole sibling set, same order
#
# The allocator is stateless. It never reads or writes the store, so it is
# safe to call from any thread or coroutine. Keeping keys unique and moves
# consistent is the job of whoever persists them.
#
# Items can be store rows (dicts), model objects with a `position`
# attribute, or bare key strings.
# =============================================================================

import logging
from typing import Any, Iterable, Sequence

from app.config import settings
from core.models.position import PositionBounds
from lib.fractional_index import (
    CapacityError,
    InvalidRangeError,
    generate_key_between,
    generate_n_keys_between,
)
from lib.utils import ApplicationError, get_field, normalize_id

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================

class InvalidIndexError(ApplicationError):
    """Raised when a target slot lies outside the sibling set."""

    def __init__(self, target_index: Any, size: int):
        super().__init__(
            message=f"Target index {target_index!r} is outside 0..{size}",
            code="INVALID_INDEX",
            suggestion=f"Use an index between 0 (head) and {size} (tail)",
            details={"target_index": target_index, "size": size},
        )


class ItemNotFoundError(ApplicationError):
    """Raised when a neighbour id is not part of the sibling set."""

    def __init__(self, item_id: str):
        super().__init__(
            message=f"Item not found in sibling set: {item_id}",
            code="ITEM_NOT_FOUND",
            suggestion="Neighbour ids must belong to the same board or column as the moved item",
            details={"item_id": item_id},
        )


# =============================================================================
# Item Helpers
# =============================================================================

def position_of(item: Any) -> str:
    """Position key of a row, model or bare key string."""
    if isinstance(item, str):
        return item
    return get_field(item, "position")


def sort_by_position(items: Iterable[Any]) -> list[Any]:
    """Sort items by position using byte-wise string order (stable)."""
    return sorted(items, key=position_of)


# =============================================================================
# Position Allocator
# =============================================================================

class PositionAllocator:
    """
    Allocator for fractional-index position keys.

    All methods are static and side-effect free.

    Example:
        columns = store.list_columns(board_id)
        key = PositionAllocator.compute_move_target(columns, target_index=1)
    """

    # -------------------------------------------------------------------------
    # Key Generation
    # -------------------------------------------------------------------------

    @staticmethod
    def generate_one(before: str | None, after: str | None) -> str:
        """
        Mint one key strictly between two neighbours.

        Args:
            before: Key immediately preceding the insertion point (None = head)
            after: Key immediately following the insertion point (None = tail)

        Returns:
            Key `k` with before < k < after. "a0" for an empty sibling set.

        Raises:
            InvalidRangeError: If before >= after
            InvalidOrderKeyError: If a bound is not a valid key
        """
        return generate_key_between(before, after)

    @staticmethod
    def generate_many(
        before: str | None,
        after: str | None,
        count: int,
        max_count: int | None = None,
        max_key_length: int | None = None,
    ) -> list[str]:
        """
        Mint `count` increasing keys strictly between two neighbours.

        Produces every key or none.

        Args:
            before: Key immediately preceding the insertion point (None = head)
            after: Key immediately following the insertion point (None = tail)
            count: Number of keys
            max_count: Most keys allowed (defaults to settings.MAX_BULK_KEYS)
            max_key_length: Longest key allowed (defaults to settings.MAX_KEY_LENGTH)

        Returns:
            List of `count` keys, sorted ascending

        Raises:
            InvalidRangeError: If before >= after
            CapacityError: If the batch is too large or keys grow too long
        """
        max_count = settings.MAX_BULK_KEYS if max_count is None else max_count
        max_key_length = settings.MAX_KEY_LENGTH if max_key_length is None else max_key_length

        if count > max_count:
            raise CapacityError(
                f"Cannot mint {count} keys in one batch (limit {max_count})",
                details={"count": count, "max_count": max_count},
            )

        keys = generate_n_keys_between(before, after, count)

        longest = max((len(k) for k in keys), default=0)
        if longest > max_key_length:
            raise CapacityError(
                f"Minting {count} keys between {before!r} and {after!r} needs "
                f"{longest}-character keys (limit {max_key_length})",
                details={
                    "count": count,
                    "before": before,
                    "after": after,
                    "key_length": longest,
                    "max_key_length": max_key_length,
                },
            )
        return keys

    # -------------------------------------------------------------------------
    # Index Resolution
    # -------------------------------------------------------------------------

    @staticmethod
    def bounds_for_index(items: Sequence[Any], target_index: int) -> PositionBounds:
        """
        Neighbour keys around a slot.

        Items are re-sorted by position first, so caller order doesn't matter.

        Args:
            items: The sibling set
            target_index: 0 = before every item, len(items) = after every item

        Returns:
            PositionBounds(before, after)

        Raises:
            InvalidIndexError: If target_index is outside 0..len(items)
        """
        ordered = sort_by_position(items)

        # bool is an int subclass but never a meaningful slot
        if (
            not isinstance(target_index, int)
            or isinstance(target_index, bool)
            or not 0 <= target_index <= len(ordered)
        ):
            raise InvalidIndexError(target_index, len(ordered))

        before = position_of(ordered[target_index - 1]) if target_index > 0 else None
        after = position_of(ordered[target_index]) if target_index < len(ordered) else None
        return PositionBounds(before, after)

    @staticmethod
    def compute_move_target(items: Sequence[Any], target_index: int) -> str:
        """
        Key for an item dropped at `target_index`.

        `items` should not contain the moved item itself.
        """
        before, after = PositionAllocator.bounds_for_index(items, target_index)
        return PositionAllocator.generate_one(before, after)

    @staticmethod
    def position_between(
        items: Sequence[Any],
        before_id: str | None = None,
        after_id: str | None = None,
    ) -> PositionBounds:
        """
        Neighbour keys from neighbour item ids.

        A missing side is filled from the sibling order: with only
        `before_id`, the bound above is the item that currently follows it;
        with only `after_id`, the bound below is the item that currently
        precedes it; with neither, the slot is the tail. When both are
        given they must be adjacent, otherwise the caller's view of the
        order is out of date.

        Args:
            items: The sibling set, without the moved item
            before_id: Item that should precede the moved one
            after_id: Item that should follow the moved one

        Raises:
            ItemNotFoundError: If an id isn't in the sibling set
            InvalidRangeError: If both ids are given and are not adjacent
        """
        ordered = sort_by_position(items)
        index_by_id = {normalize_id(get_field(item, "id")): i for i, item in enumerate(ordered)}

        def _index(item_id: str) -> int:
            item_id = normalize_id(item_id)
            if item_id not in index_by_id:
                raise ItemNotFoundError(item_id)
            return index_by_id[item_id]

        if before_id is None and after_id is None:
            return PositionAllocator.bounds_for_index(ordered, len(ordered))

        if before_id is not None and after_id is not None:
            lower, upper = _index(before_id), _index(after_id)
            bounds = PositionBounds(position_of(ordered[lower]), position_of(ordered[upper]))
            if upper != lower + 1:
                raise InvalidRangeError(*bounds)
            return bounds

        if before_id is not None:
            return PositionAllocator.bounds_for_index(ordered, _index(before_id) + 1)
        return PositionAllocator.bounds_for_index(ordered, _index(after_id))

    # -------------------------------------------------------------------------
    # Rebalancing
    # -------------------------------------------------------------------------

    @staticmethod
    def needs_rebalancing(position: str, threshold: int | None = None) -> bool:
        """
        Check whether a key has grown long enough to rebalance its siblings.

        Keys grow with repeated insertions at the same spot.

        Args:
            position: Key to check
            threshold: Maximum acceptable length (defaults to settings.REBALANCE_THRESHOLD)
        """
        threshold = settings.REBALANCE_THRESHOLD if threshold is None else threshold
        return len(position) > threshold

    @staticmethod
    def rebalance(items: Sequence[Any]) -> dict[str, str]:
        """
        Fresh keys for a whole sibling set, keeping the current order.

        Not subject to MAX_BULK_KEYS: the set already exists, and open-ended
        keys stay a few characters long however many items there are.

        Returns:
            Mapping of item id -> new position key
        """
        ordered = sort_by_position(items)
        keys = generate_n_keys_between(None, None, len(ordered))
        logger.debug(f"Rebalanced {len(ordered)} items")
        return {
            normalize_id(get_field(item, "id")): key
            for item, key in zip(ordered, keys)
        }

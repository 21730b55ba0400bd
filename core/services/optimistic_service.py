# =============================================================================
# core/services/optimistic_service.py - Optimistic Reordering
# =============================================================================
# Client-side view of one sibling set that applies drag-and-drop moves
# locally before the server confirms them.
#
# Flow:
#   view = OptimisticReorder(tasks)
#   move = view.propose_move(task_id, target_index=0)   # provisional key
#   client.post(f"/tasks/{task_id}/move", json=move.to_request())
#   view.confirm(move, server_row)        # on success
#   view.rollback(move)                   # on failure
#   view.reconcile(refetched_rows)        # on 409: re-fetch, then recompute
#
# A provisional key is never re-sent after a rejection: the order it was
# computed from is stale by definition.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from core.services.position_service import ItemNotFoundError, PositionAllocator, sort_by_position
from lib.utils import normalize_id

logger = logging.getLogger(__name__)


@dataclass
class ProvisionalMove:
    """
    A locally applied move awaiting server confirmation.

    `before_id` / `after_id` are the neighbours in the local order after the
    move, which is what the server needs to recompute the key itself.
    """
    item_id: str
    previous_position: str
    provisional_position: str
    before_id: str | None
    after_id: str | None
    version: int | None

    def to_request(self, kind: str = "task") -> dict[str, Any]:
        """Body for a move request (kind is "task" or "column")."""
        return {
            f"before_{kind}_id": self.before_id,
            f"after_{kind}_id": self.after_id,
            "version": self.version,
        }


class OptimisticReorder:
    """
    Local, position-sorted copy of a sibling set with pending moves.

    Not thread-safe: one instance belongs to one client view.
    """

    def __init__(self, items: Iterable[Mapping[str, Any]]):
        self._items: list[dict[str, Any]] = sort_by_position(dict(i) for i in items)
        self._pending: dict[str, ProvisionalMove] = {}

    @property
    def items(self) -> list[dict[str, Any]]:
        """Current local order (copies)."""
        return [dict(i) for i in self._items]

    @property
    def positions(self) -> list[str]:
        return [i["position"] for i in self._items]

    def is_pending(self, item_id: str) -> bool:
        return normalize_id(item_id) in self._pending

    def propose_move(self, item_id: str, target_index: int) -> ProvisionalMove:
        """
        Move an item locally and return the provisional move.

        Args:
            item_id: Item being dragged
            target_index: Drop slot among the *other* items

        Raises:
            ItemNotFoundError: If the item isn't in the local view
            InvalidIndexError: If target_index is out of range
        """
        item_id = normalize_id(item_id)
        item = self._find(item_id)
        siblings = [i for i in self._items if i["id"] != item_id]

        new_position = PositionAllocator.compute_move_target(siblings, target_index)
        previous_position = item["position"]

        item["position"] = new_position
        self._items = sort_by_position(self._items)

        index = next(n for n, i in enumerate(self._items) if i["id"] == item_id)
        move = ProvisionalMove(
            item_id=item_id,
            previous_position=previous_position,
            provisional_position=new_position,
            before_id=self._items[index - 1]["id"] if index > 0 else None,
            after_id=self._items[index + 1]["id"] if index + 1 < len(self._items) else None,
            version=item.get("version"),
        )
        self._pending[item_id] = move

        logger.debug(f"Provisional move {item_id}: {move.previous_position} -> {new_position}")
        return move

    def confirm(self, move: ProvisionalMove, server_item: Mapping[str, Any]) -> None:
        """Replace the provisional row with the server's authoritative row."""
        self._pending.pop(move.item_id, None)
        self._items = [i for i in self._items if i["id"] != move.item_id]
        self._items.append(dict(server_item))
        self._items = sort_by_position(self._items)

    def rollback(self, move: ProvisionalMove) -> None:
        """
        Put the moved item back at its previous position.

        Other items are left alone, so moves confirmed in the meantime
        survive. A move that is no longer pending (confirmed, reconciled or
        superseded by a newer move of the same item) is ignored.
        """
        if self._pending.get(move.item_id) is not move:
            logger.debug(f"Ignoring rollback of {move.item_id}: move no longer pending")
            return

        del self._pending[move.item_id]
        self._find(move.item_id)["position"] = move.previous_position
        self._items = sort_by_position(self._items)
        logger.debug(f"Rolled back move {move.item_id} to {move.previous_position}")

    def reconcile(self, authoritative_items: Iterable[Mapping[str, Any]]) -> None:
        """
        Adopt a freshly fetched server order.

        Drops every pending move; callers recompute from the new order.
        """
        dropped = len(self._pending)
        self._pending.clear()
        self._items = sort_by_position(dict(i) for i in authoritative_items)
        if dropped:
            logger.info(f"Reconciled with server order, dropped {dropped} pending moves")

    def _find(self, item_id: str) -> dict[str, Any]:
        for item in self._items:
            if item["id"] == item_id:
                return item
        raise ItemNotFoundError(item_id)

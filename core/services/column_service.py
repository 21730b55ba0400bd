# =============================================================================
# core/services/column_service.py - Column Ordering Operations
# =============================================================================
# Creates, moves and rebalances the columns of a board.
# Every read-compute-write runs under the store lock so two requests can't
# mint the same key for the same board.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import DuplicatePositionError
from core.services.position_service import PositionAllocator
from lib.board_store import BoardStore
from lib.fractional_index import validate_order_key
from lib.utils import normalize_id

logger = logging.getLogger(__name__)


class ColumnService:
    """
    Service for column management.

    Columns of a board form one sibling set ordered by `position`.
    """

    @staticmethod
    def list_columns(board_id: str | UUID) -> list[dict[str, Any]]:
        """List a board's columns in display order."""
        return BoardStore.get_store().list_columns(board_id)

    @staticmethod
    def create_column(
        board_id: str | UUID,
        name: str,
        position: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a column.

        Args:
            board_id: Board UUID
            name: Column name
            position: Explicit key; appended after the last column when None

        Returns:
            Created column dict

        Raises:
            BoardNotFoundError: If board doesn't exist
            InvalidOrderKeyError: If an explicit position is malformed
            DuplicatePositionError: If another column already has the position
        """
        store = BoardStore.get_store()

        with store.locked():
            columns = store.list_columns(board_id)
            if position is None:
                last_position = columns[-1]["position"] if columns else None
                position = PositionAllocator.generate_one(last_position, None)
            else:
                validate_order_key(position)
                for existing in columns:
                    if existing["position"] == position:
                        raise DuplicatePositionError(position, existing["id"])

            column = store.insert_column(board_id, name, position)

        logger.info(f"Created column {column['id']} at {position} on board {normalize_id(board_id)}")
        return column

    @staticmethod
    def create_columns(
        board_id: str | UUID,
        names: list[str],
        index: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Create several columns with one bulk key allocation.

        Args:
            board_id: Board UUID
            names: Column names, in display order
            index: Slot to insert at (None = after the last column)

        Returns:
            Created column dicts, in display order

        Raises:
            BoardNotFoundError: If board doesn't exist
            InvalidIndexError: If index is outside the board's columns
            CapacityError: If too many columns are requested at once
        """
        store = BoardStore.get_store()

        with store.locked():
            columns = store.list_columns(board_id)
            slot = len(columns) if index is None else index
            before, after = PositionAllocator.bounds_for_index(columns, slot)
            keys = PositionAllocator.generate_many(before, after, len(names))
            created = store.insert_columns(board_id, list(zip(names, keys)))

        logger.info(f"Created {len(created)} columns at slot {slot} on board {normalize_id(board_id)}")
        return created

    @staticmethod
    def move_column(
        column_id: str | UUID,
        before_column_id: str | None = None,
        after_column_id: str | None = None,
        version: int | None = None,
    ) -> dict[str, Any]:
        """
        Move a column between two neighbour columns.

        Args:
            column_id: Column to move
            before_column_id: Column that should precede it
            after_column_id: Column that should follow it
            version: Version the caller last saw (None = skip the check)

        Returns:
            Updated column dict

        Raises:
            ColumnNotFoundError: If the column doesn't exist
            ItemNotFoundError: If a neighbour isn't on the same board
            InvalidRangeError: If the neighbours are out of order
            VersionConflictError: If version is stale
        """
        store = BoardStore.get_store()

        with store.locked():
            column = store.get_column(column_id)
            siblings = [c for c in store.list_columns(column["board_id"]) if c["id"] != column["id"]]
            before, after = PositionAllocator.position_between(siblings, before_column_id, after_column_id)
            new_position = PositionAllocator.generate_one(before, after)
            return ColumnService._apply_move(column, siblings, new_position, version)

    @staticmethod
    def move_column_to_index(
        column_id: str | UUID,
        target_index: int,
        version: int | None = None,
    ) -> dict[str, Any]:
        """
        Move a column to a slot among the board's other columns.

        Raises:
            ColumnNotFoundError: If the column doesn't exist
            InvalidIndexError: If target_index is out of range
            VersionConflictError: If version is stale
        """
        store = BoardStore.get_store()

        with store.locked():
            column = store.get_column(column_id)
            siblings = [c for c in store.list_columns(column["board_id"]) if c["id"] != column["id"]]
            new_position = PositionAllocator.compute_move_target(siblings, target_index)
            return ColumnService._apply_move(column, siblings, new_position, version)

    @staticmethod
    def move_column_to_board(
        column_id: str | UUID,
        target_board_id: str | UUID,
        version: int | None = None,
    ) -> dict[str, Any]:
        """
        Move a column (with its tasks) to the end of another board.

        Task keys are left as they are; they only order tasks within the
        column.

        Args:
            column_id: Column to move
            target_board_id: Destination board
            version: Version the caller last saw (None = skip the check)

        Returns:
            Updated column dict

        Raises:
            ColumnNotFoundError: If the column doesn't exist
            BoardNotFoundError: If the destination board doesn't exist
            VersionConflictError: If version is stale
        """
        store = BoardStore.get_store()

        with store.locked():
            column = store.get_column(column_id)
            siblings = [c for c in store.list_columns(target_board_id) if c["id"] != column["id"]]
            new_position = PositionAllocator.compute_move_target(siblings, len(siblings))
            return ColumnService._apply_move(
                column,
                siblings,
                new_position,
                version,
                board_id=normalize_id(target_board_id),
            )

    @staticmethod
    def copy_column(column_id: str | UUID) -> dict[str, Any]:
        """
        Copy a column and its tasks to the end of the same board.

        The copy is named "<name> (Copy)". Copied tasks keep their titles,
        descriptions and position keys, which are only compared within
        the new column.

        Returns:
            Created column dict
        """
        store = BoardStore.get_store()

        with store.locked():
            original = store.get_column(column_id)
            columns = store.list_columns(original["board_id"])
            position = PositionAllocator.generate_one(columns[-1]["position"], None)
            copy = store.insert_column(original["board_id"], f"{original['name']} (Copy)", position)
            tasks = store.list_tasks(original["id"])
            for task in tasks:
                store.insert_task(
                    copy["id"],
                    task["title"],
                    task["position"],
                    description=task.get("description"),
                )

        logger.info(f"Copied column {original['id']} to {copy['id']} with {len(tasks)} tasks")
        return copy

    @staticmethod
    def rebalance_board(board_id: str | UUID) -> dict[str, str]:
        """
        Rewrite every column key of a board with fresh short keys.

        Returns:
            Mapping of column id -> new position
        """
        store = BoardStore.get_store()

        with store.locked():
            positions = PositionAllocator.rebalance(store.list_columns(board_id))
            store.reassign_column_positions(positions)

        logger.info(f"Rebalanced {len(positions)} columns on board {normalize_id(board_id)}")
        return positions

    @staticmethod
    def delete_column(column_id: str | UUID) -> dict[str, Any]:
        """Delete a column (and its tasks). Sibling keys are left untouched."""
        return BoardStore.get_store().delete_column(column_id)

    @staticmethod
    def _apply_move(
        column: dict[str, Any],
        siblings: list[dict[str, Any]],
        new_position: str,
        version: int | None,
        board_id: str | None = None,
    ) -> dict[str, Any]:
        # Caller holds the store lock. `siblings` are the destination board's
        # other columns. Every key is computed before the first write, so a
        # version conflict leaves the board untouched.
        store = BoardStore.get_store()
        board_id = board_id or column["board_id"]
        changes = {"position": new_position, "board_id": board_id}

        if not PositionAllocator.needs_rebalancing(new_position):
            updated = store.update_column(column["id"], changes, expected_version=version)
        else:
            logger.info(f"Column key {len(new_position)} chars long, rebalancing board {board_id}")
            positions = PositionAllocator.rebalance([*siblings, {**column, "position": new_position}])
            changes["position"] = positions.pop(column["id"])
            updated = store.update_column(column["id"], changes, expected_version=version)
            store.reassign_column_positions(positions)

        logger.info(f"Moved column {column['id']}: {column['position']} -> {updated['position']}")
        return updated

# =============================================================================
# core/services/task_service.py - Task Ordering Operations
# =============================================================================
# Creates, moves, copies and rebalances tasks. The tasks of one column form
# a sibling set; moving a task into another column gives it a key from the
# destination column's order.
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


class TaskService:
    """
    Service for task management.

    All key allocation for tasks goes through PositionAllocator while the
    store lock is held.
    """

    @staticmethod
    def list_tasks(column_id: str | UUID) -> list[dict[str, Any]]:
        """List a column's tasks in display order."""
        return BoardStore.get_store().list_tasks(column_id)

    @staticmethod
    def create_task(
        column_id: str | UUID,
        title: str,
        description: str | None = None,
        position: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a task.

        Args:
            column_id: Column UUID
            title: Task title
            description: Optional description
            position: Explicit key; appended after the last task when None

        Returns:
            Created task dict

        Raises:
            ColumnNotFoundError: If column doesn't exist
            InvalidOrderKeyError: If an explicit position is malformed
            DuplicatePositionError: If another task in the column has the position
        """
        store = BoardStore.get_store()

        with store.locked():
            tasks = store.list_tasks(column_id)
            if position is None:
                last_position = tasks[-1]["position"] if tasks else None
                position = PositionAllocator.generate_one(last_position, None)
            else:
                validate_order_key(position)
                for existing in tasks:
                    if existing["position"] == position:
                        raise DuplicatePositionError(position, existing["id"])

            task = store.insert_task(column_id, title, position, description=description)

        logger.info(f"Created task {task['id']} at {position} in column {normalize_id(column_id)}")
        return task

    @staticmethod
    def create_tasks(
        column_id: str | UUID,
        titles: list[str],
        index: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Create several tasks with one bulk key allocation.

        Every task gets its final key in one pass instead of re-reading the
        column after each insert.

        Raises:
            ColumnNotFoundError: If column doesn't exist
            InvalidIndexError: If index is outside the column's tasks
            CapacityError: If too many tasks are requested at once
        """
        store = BoardStore.get_store()

        with store.locked():
            tasks = store.list_tasks(column_id)
            slot = len(tasks) if index is None else index
            before, after = PositionAllocator.bounds_for_index(tasks, slot)
            keys = PositionAllocator.generate_many(before, after, len(titles))
            created = store.insert_tasks(column_id, list(zip(titles, keys)))

        logger.info(f"Created {len(created)} tasks at slot {slot} in column {normalize_id(column_id)}")
        return created

    @staticmethod
    def move_task(
        task_id: str | UUID,
        target_column_id: str | UUID | None = None,
        before_task_id: str | None = None,
        after_task_id: str | None = None,
        version: int | None = None,
    ) -> dict[str, Any]:
        """
        Move a task between two neighbour tasks, possibly across columns.

        Args:
            task_id: Task to move
            target_column_id: Destination column (None = stay in the same column)
            before_task_id: Task that should precede it in the destination
            after_task_id: Task that should follow it in the destination
            version: Version the caller last saw (None = skip the check)

        Returns:
            Updated task dict

        Raises:
            TaskNotFoundError: If the task doesn't exist
            ColumnNotFoundError: If the destination column doesn't exist
            ItemNotFoundError: If a neighbour isn't in the destination column
            InvalidRangeError: If the neighbours are out of order
            VersionConflictError: If version is stale
        """
        store = BoardStore.get_store()

        with store.locked():
            task = store.get_task(task_id)
            column_id = normalize_id(target_column_id) if target_column_id else task["column_id"]
            siblings = [t for t in store.list_tasks(column_id) if t["id"] != task["id"]]
            before, after = PositionAllocator.position_between(siblings, before_task_id, after_task_id)
            new_position = PositionAllocator.generate_one(before, after)
            return TaskService._apply_move(task, column_id, siblings, new_position, version)

    @staticmethod
    def move_task_to_index(
        task_id: str | UUID,
        target_index: int,
        target_column_id: str | UUID | None = None,
        version: int | None = None,
    ) -> dict[str, Any]:
        """
        Move a task to a slot among the destination column's other tasks.

        Raises:
            TaskNotFoundError: If the task doesn't exist
            ColumnNotFoundError: If the destination column doesn't exist
            InvalidIndexError: If target_index is out of range
            VersionConflictError: If version is stale
        """
        store = BoardStore.get_store()

        with store.locked():
            task = store.get_task(task_id)
            column_id = normalize_id(target_column_id) if target_column_id else task["column_id"]
            siblings = [t for t in store.list_tasks(column_id) if t["id"] != task["id"]]
            new_position = PositionAllocator.compute_move_target(siblings, target_index)
            return TaskService._apply_move(task, column_id, siblings, new_position, version)

    @staticmethod
    def copy_task(task_id: str | UUID) -> dict[str, Any]:
        """
        Copy a task to the end of its column.

        The copy is titled "<title> (Copy)".
        """
        store = BoardStore.get_store()

        with store.locked():
            original = store.get_task(task_id)
            tasks = store.list_tasks(original["column_id"])
            position = PositionAllocator.generate_one(tasks[-1]["position"], None)
            copy = store.insert_task(
                original["column_id"],
                f"{original['title']} (Copy)",
                position,
                description=original.get("description"),
            )

        logger.info(f"Copied task {original['id']} to {copy['id']}")
        return copy

    @staticmethod
    def rebalance_column(column_id: str | UUID) -> dict[str, str]:
        """
        Rewrite every task key of a column with fresh short keys.

        Returns:
            Mapping of task id -> new position
        """
        store = BoardStore.get_store()

        with store.locked():
            positions = PositionAllocator.rebalance(store.list_tasks(column_id))
            store.reassign_task_positions(positions)

        logger.info(f"Rebalanced {len(positions)} tasks in column {normalize_id(column_id)}")
        return positions

    @staticmethod
    def delete_task(task_id: str | UUID) -> dict[str, Any]:
        """Delete a task. Sibling keys are left untouched."""
        return BoardStore.get_store().delete_task(task_id)

    @staticmethod
    def _apply_move(
        task: dict[str, Any],
        column_id: str,
        siblings: list[dict[str, Any]],
        new_position: str,
        version: int | None,
    ) -> dict[str, Any]:
        # Caller holds the store lock. `siblings` are the destination column's
        # other tasks. Every key is computed before the first write, so a
        # version conflict leaves the column untouched.
        store = BoardStore.get_store()
        changes = {"position": new_position, "column_id": column_id}

        if not PositionAllocator.needs_rebalancing(new_position):
            updated = store.update_task(task["id"], changes, expected_version=version)
        else:
            logger.info(f"Task key {len(new_position)} chars long, rebalancing column {column_id}")
            positions = PositionAllocator.rebalance([*siblings, {**task, "position": new_position}])
            changes["position"] = positions.pop(task["id"])
            updated = store.update_task(task["id"], changes, expected_version=version)
            store.reassign_task_positions(positions)

        logger.info(
            f"Moved task {task['id']}: {task['column_id']}/{task['position']} -> "
            f"{updated['column_id']}/{updated['position']}"
        )
        return updated

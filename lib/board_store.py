# =============================================================================
# lib/board_store.py - In-Memory Board Store
# =============================================================================
# This module holds boards, columns and tasks as plain dict rows, the same
# shape a database table would return. It is the collaborator that persists
# `position` keys; it never generates them.
#
# Concurrency:
# - All reads and writes are serialized with a single re-entrant lock
# - Columns and tasks carry a `version` that is bumped on every update.
#   Passing `expected_version` to an update turns it into an optimistic
#   write that fails with VersionConflictError when the row moved on.
#
# Usage:
#   from lib.board_store import BoardStore
#   store = BoardStore.get_store()
#   board = store.insert_board("Roadmap")
#   columns = store.list_columns(board["id"])
# =============================================================================

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from app.exceptions import (
    BoardNotFoundError,
    ColumnNotFoundError,
    TaskNotFoundError,
    VersionConflictError,
)
from lib.utils import normalize_id

# Set up logging for this module
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _sibling_order(row: dict[str, Any]) -> tuple[str, str]:
    """Byte-order position, id as tiebreaker."""
    return row["position"], row["id"]


class BoardStore:
    """
    Thread-safe in-memory store for boards, columns and tasks.

    Implements singleton pattern - one store instance is shared across
    the application. Rows handed out are copies, so callers can't mutate
    stored state behind the lock.

    Example:
        store = BoardStore.get_store()
        board = store.insert_board("Sprint 12")
        column = store.insert_column(board["id"], "To Do", "a0")
        store.update_column(column["id"], {"position": "a1"}, expected_version=1)
    """

    _instance: BoardStore | None = None

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._boards: dict[str, dict[str, Any]] = {}
        self._columns: dict[str, dict[str, Any]] = {}
        self._tasks: dict[str, dict[str, Any]] = {}

    @classmethod
    def get_store(cls) -> BoardStore:
        """Get or create the singleton store."""
        if cls._instance is None:
            cls._instance = cls()
            logger.info("Board store initialized")
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (used by tests to start from an empty store)."""
        cls._instance = None

    def locked(self) -> threading.RLock:
        """
        Store lock, for holding across a read-compute-write sequence.

        Example:
            with store.locked():
                last = store.list_columns(board_id)[-1]["position"]
                store.insert_column(board_id, "Done", generate_key_between(last, None))
        """
        return self._lock

    # -------------------------------------------------------------------------
    # Boards
    # -------------------------------------------------------------------------

    def insert_board(self, name: str) -> dict[str, Any]:
        """Create a board row."""
        row = {
            "id": str(uuid4()),
            "name": name,
            "created_at": _now(),
        }
        with self._lock:
            self._boards[row["id"]] = row
            return dict(row)

    def get_board(self, board_id: str | UUID) -> dict[str, Any]:
        """
        Get a board by ID.

        Raises:
            BoardNotFoundError: If board doesn't exist
        """
        board_id = normalize_id(board_id)
        with self._lock:
            row = self._boards.get(board_id)
            if row is None:
                raise BoardNotFoundError(board_id)
            return dict(row)

    def board_count(self) -> int:
        with self._lock:
            return len(self._boards)

    # -------------------------------------------------------------------------
    # Columns
    # -------------------------------------------------------------------------

    def insert_column(self, board_id: str | UUID, name: str, position: str) -> dict[str, Any]:
        """Create a column row at the given position."""
        return self.insert_columns(board_id, [(name, position)])[0]

    def insert_columns(
        self,
        board_id: str | UUID,
        rows: list[tuple[str, str]],
    ) -> list[dict[str, Any]]:
        """
        Create several columns in one write.

        Args:
            board_id: Board UUID
            rows: (name, position) pairs

        Returns:
            Created column rows, in the order given
        """
        board_id = normalize_id(board_id)
        with self._lock:
            self.get_board(board_id)
            created = []
            for name, position in rows:
                now = _now()
                row = {
                    "id": str(uuid4()),
                    "board_id": board_id,
                    "name": name,
                    "position": position,
                    "version": 1,
                    "created_at": now,
                    "updated_at": now,
                }
                self._columns[row["id"]] = row
                created.append(dict(row))
            return created

    def get_column(self, column_id: str | UUID) -> dict[str, Any]:
        """
        Get a column by ID.

        Raises:
            ColumnNotFoundError: If column doesn't exist
        """
        column_id = normalize_id(column_id)
        with self._lock:
            row = self._columns.get(column_id)
            if row is None:
                raise ColumnNotFoundError(column_id)
            return dict(row)

    def list_columns(self, board_id: str | UUID) -> list[dict[str, Any]]:
        """List a board's columns sorted by position."""
        board_id = normalize_id(board_id)
        with self._lock:
            self.get_board(board_id)
            rows = [dict(r) for r in self._columns.values() if r["board_id"] == board_id]
        return sorted(rows, key=_sibling_order)

    def update_column(
        self,
        column_id: str | UUID,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        """
        Update a column.

        Raises:
            ColumnNotFoundError: If column doesn't exist
            BoardNotFoundError: If changes move it to a missing board
            VersionConflictError: If expected_version is stale
        """
        column_id = normalize_id(column_id)
        with self._lock:
            row = self._columns.get(column_id)
            if row is None:
                raise ColumnNotFoundError(column_id)
            if "board_id" in changes:
                changes = {**changes, "board_id": normalize_id(changes["board_id"])}
                self.get_board(changes["board_id"])
            return self._apply_update(row, changes, expected_version)

    def delete_column(self, column_id: str | UUID) -> dict[str, Any]:
        """Delete a column and its tasks."""
        column_id = normalize_id(column_id)
        with self._lock:
            row = self._columns.pop(column_id, None)
            if row is None:
                raise ColumnNotFoundError(column_id)
            orphaned = [tid for tid, t in self._tasks.items() if t["column_id"] == column_id]
            for task_id in orphaned:
                del self._tasks[task_id]
            logger.info(f"Deleted column {column_id} with {len(orphaned)} tasks")
            return dict(row)

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    def insert_task(
        self,
        column_id: str | UUID,
        title: str,
        position: str,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Create a task row at the given position."""
        return self.insert_tasks(column_id, [(title, position)], description=description)[0]

    def insert_tasks(
        self,
        column_id: str | UUID,
        rows: list[tuple[str, str]],
        description: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Create several tasks in one write.

        Args:
            column_id: Column UUID
            rows: (title, position) pairs
            description: Description applied to every created task

        Returns:
            Created task rows, in the order given
        """
        column_id = normalize_id(column_id)
        with self._lock:
            self.get_column(column_id)
            created = []
            for title, position in rows:
                now = _now()
                row = {
                    "id": str(uuid4()),
                    "column_id": column_id,
                    "title": title,
                    "description": description,
                    "position": position,
                    "version": 1,
                    "created_at": now,
                    "updated_at": now,
                }
                self._tasks[row["id"]] = row
                created.append(dict(row))
            return created

    def get_task(self, task_id: str | UUID) -> dict[str, Any]:
        """
        Get a task by ID.

        Raises:
            TaskNotFoundError: If task doesn't exist
        """
        task_id = normalize_id(task_id)
        with self._lock:
            row = self._tasks.get(task_id)
            if row is None:
                raise TaskNotFoundError(task_id)
            return dict(row)

    def list_tasks(self, column_id: str | UUID) -> list[dict[str, Any]]:
        """List a column's tasks sorted by position."""
        column_id = normalize_id(column_id)
        with self._lock:
            self.get_column(column_id)
            rows = [dict(r) for r in self._tasks.values() if r["column_id"] == column_id]
        return sorted(rows, key=_sibling_order)

    def update_task(
        self,
        task_id: str | UUID,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> dict[str, Any]:
        """
        Update a task.

        Raises:
            TaskNotFoundError: If task doesn't exist
            ColumnNotFoundError: If changes move it to a missing column
            VersionConflictError: If expected_version is stale
        """
        task_id = normalize_id(task_id)
        with self._lock:
            row = self._tasks.get(task_id)
            if row is None:
                raise TaskNotFoundError(task_id)
            if "column_id" in changes:
                changes = {**changes, "column_id": normalize_id(changes["column_id"])}
                self.get_column(changes["column_id"])
            return self._apply_update(row, changes, expected_version)

    def delete_task(self, task_id: str | UUID) -> dict[str, Any]:
        """Delete a task."""
        task_id = normalize_id(task_id)
        with self._lock:
            row = self._tasks.pop(task_id, None)
            if row is None:
                raise TaskNotFoundError(task_id)
            return dict(row)

    # -------------------------------------------------------------------------
    # Bulk Position Rewrite
    # -------------------------------------------------------------------------

    def reassign_column_positions(self, positions: dict[str, str]) -> list[dict[str, Any]]:
        """Replace the positions of several columns in one write."""
        with self._lock:
            for column_id in positions:
                if column_id not in self._columns:
                    raise ColumnNotFoundError(column_id)
            return [
                self._apply_update(self._columns[cid], {"position": pos}, None)
                for cid, pos in positions.items()
            ]

    def reassign_task_positions(self, positions: dict[str, str]) -> list[dict[str, Any]]:
        """Replace the positions of several tasks in one write."""
        with self._lock:
            for task_id in positions:
                if task_id not in self._tasks:
                    raise TaskNotFoundError(task_id)
            return [
                self._apply_update(self._tasks[tid], {"position": pos}, None)
                for tid, pos in positions.items()
            ]

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    @staticmethod
    def _apply_update(
        row: dict[str, Any],
        changes: dict[str, Any],
        expected_version: int | None,
    ) -> dict[str, Any]:
        # Caller holds the lock
        if expected_version is not None and row["version"] != expected_version:
            logger.warning(
                f"Version conflict on {row['id']}: expected {expected_version}, found {row['version']}"
            )
            raise VersionConflictError(row["id"], expected_version, row["version"])

        protected = {"id", "version", "created_at"}
        row.update({k: v for k, v in changes.items() if k not in protected})
        row["version"] += 1
        row["updated_at"] = _now()
        return dict(row)

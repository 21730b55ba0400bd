# =============================================================================
# tests/test_board_services.py - Column and Task Service Tests
# =============================================================================
# Tests the services that persist position keys through the board store:
# - Appending, explicit keys and bulk creation
# - Moves by neighbour ids and by index, across columns
# - Optimistic version checks
# - Automatic and explicit rebalancing
#
# Run with: pytest tests/test_board_services.py -v
# =============================================================================

import threading

import pytest

from app.config import settings
from app.exceptions import (
    BoardNotFoundError,
    ColumnNotFoundError,
    DuplicatePositionError,
    TaskNotFoundError,
    VersionConflictError,
)
from core.services import ColumnService, TaskService
from core.services.position_service import InvalidIndexError, ItemNotFoundError
from lib.fractional_index import CapacityError, InvalidOrderKeyError, InvalidRangeError


def _names(rows, field="name"):
    return [row[field] for row in rows]


@pytest.fixture
def columns(board):
    """Three columns: To Do, Doing, Done."""
    return ColumnService.create_columns(board["id"], ["To Do", "Doing", "Done"])


@pytest.fixture
def column(columns):
    return columns[0]


@pytest.fixture
def tasks(column):
    """Four tasks A..D in the first column."""
    return TaskService.create_tasks(column["id"], ["A", "B", "C", "D"])


# =============================================================================
# Column Service
# =============================================================================

class TestColumnCreation:
    """Tests for creating columns."""

    def test_first_column_gets_integer_zero(self, board):
        column = ColumnService.create_column(board["id"], "Backlog")

        assert column["position"] == "a0"
        assert column["version"] == 1

    def test_columns_append_in_order(self, board):
        for name in ["To Do", "Doing", "Done"]:
            ColumnService.create_column(board["id"], name)

        listed = ColumnService.list_columns(board["id"])
        assert _names(listed) == ["To Do", "Doing", "Done"]
        assert [c["position"] for c in listed] == ["a0", "a1", "a2"]

    def test_explicit_position_is_stored(self, board, columns):
        column = ColumnService.create_column(board["id"], "Review", position="a1V")

        assert column["position"] == "a1V"
        assert _names(ColumnService.list_columns(board["id"])) == [
            "To Do", "Doing", "Review", "Done",
        ]

    def test_malformed_explicit_position(self, board):
        with pytest.raises(InvalidOrderKeyError):
            ColumnService.create_column(board["id"], "Broken", position="a10")

    def test_duplicate_explicit_position(self, board, columns):
        with pytest.raises(DuplicatePositionError) as exc_info:
            ColumnService.create_column(board["id"], "Clash", position=columns[1]["position"])

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"position": "a1", "item_id": columns[1]["id"]}
        assert _names(ColumnService.list_columns(board["id"])) == ["To Do", "Doing", "Done"]

    def test_same_position_on_another_board(self, store, board, columns):
        """Positions only have to be unique among siblings."""
        other_board = store.insert_board("Other")
        column = ColumnService.create_column(other_board["id"], "Elsewhere", position="a1")

        assert column["position"] == "a1"

    def test_unknown_board(self):
        with pytest.raises(BoardNotFoundError):
            ColumnService.create_column("missing", "To Do")

    def test_bulk_create_at_head(self, board, columns):
        created = ColumnService.create_columns(board["id"], ["Inbox", "Triage"], index=0)

        assert created[0]["position"] < created[1]["position"] < columns[0]["position"]
        assert _names(ColumnService.list_columns(board["id"])) == [
            "Inbox", "Triage", "To Do", "Doing", "Done",
        ]

    def test_bulk_create_in_middle(self, board, columns):
        ColumnService.create_columns(board["id"], ["X", "Y", "Z"], index=1)

        assert _names(ColumnService.list_columns(board["id"])) == [
            "To Do", "X", "Y", "Z", "Doing", "Done",
        ]

    def test_bulk_create_bad_index(self, board, columns):
        with pytest.raises(InvalidIndexError):
            ColumnService.create_columns(board["id"], ["X"], index=4)

    def test_bulk_create_over_capacity_creates_nothing(self, board, monkeypatch):
        monkeypatch.setattr(settings, "MAX_BULK_KEYS", 2)

        with pytest.raises(CapacityError):
            ColumnService.create_columns(board["id"], ["A", "B", "C"])

        assert ColumnService.list_columns(board["id"]) == []


class TestColumnMoves:
    """Tests for moving columns."""

    def test_move_to_head_by_index(self, board, columns):
        done = columns[2]
        moved = ColumnService.move_column_to_index(done["id"], 0)

        assert moved["position"] < columns[0]["position"]
        assert moved["version"] == 2
        assert _names(ColumnService.list_columns(board["id"])) == ["Done", "To Do", "Doing"]

    def test_move_only_touches_moved_column(self, board, columns):
        ColumnService.move_column_to_index(columns[0]["id"], 2)

        listed = {c["id"]: c for c in ColumnService.list_columns(board["id"])}
        assert listed[columns[1]["id"]]["position"] == columns[1]["position"]
        assert listed[columns[2]["id"]]["position"] == columns[2]["position"]
        assert listed[columns[1]["id"]]["version"] == 1

    def test_move_between_neighbours(self, board, columns):
        todo, doing, done = columns
        ColumnService.move_column(done["id"], before_column_id=todo["id"], after_column_id=doing["id"])

        assert _names(ColumnService.list_columns(board["id"])) == ["To Do", "Done", "Doing"]

    def test_move_after_neighbour_only(self, board, columns):
        todo, doing, done = columns
        ColumnService.move_column(todo["id"], before_column_id=done["id"])

        assert _names(ColumnService.list_columns(board["id"])) == ["Doing", "Done", "To Do"]

    def test_move_without_neighbours_goes_to_end(self, board, columns):
        ColumnService.move_column(columns[0]["id"])

        assert _names(ColumnService.list_columns(board["id"]))[-1] == "To Do"

    def test_neighbour_from_another_board(self, store, columns):
        other_board = store.insert_board("Other")
        foreign = ColumnService.create_column(other_board["id"], "Elsewhere")

        with pytest.raises(ItemNotFoundError):
            ColumnService.move_column(columns[0]["id"], before_column_id=foreign["id"])

    def test_reversed_neighbours(self, columns):
        todo, doing, done = columns

        with pytest.raises(InvalidRangeError):
            ColumnService.move_column(todo["id"], before_column_id=done["id"], after_column_id=doing["id"])

    def test_stale_version_is_rejected(self, board, columns):
        todo = columns[0]
        ColumnService.move_column_to_index(todo["id"], 2, version=1)

        with pytest.raises(VersionConflictError) as exc_info:
            ColumnService.move_column_to_index(todo["id"], 0, version=1)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details == {"item_id": todo["id"], "expected_version": 1, "actual_version": 2}
        assert _names(ColumnService.list_columns(board["id"]))[-1] == "To Do"

    def test_unknown_column(self):
        with pytest.raises(ColumnNotFoundError):
            ColumnService.move_column_to_index("missing", 0)


class TestColumnRebalance:
    """Tests for board rebalancing and deletion."""

    def test_rebalance_board(self, board, columns):
        ColumnService.move_column_to_index(columns[2]["id"], 1)
        positions = ColumnService.rebalance_board(board["id"])

        assert sorted(positions.values()) == ["a0", "a1", "a2"]
        assert _names(ColumnService.list_columns(board["id"])) == ["To Do", "Done", "Doing"]

    def test_long_key_triggers_rebalance(self, board, monkeypatch):
        monkeypatch.setattr(settings, "REBALANCE_THRESHOLD", 4)
        first = ColumnService.create_column(board["id"], "First")
        ColumnService.create_column(board["id"], "Last")

        # Each new column lands right after "First", so the gap keeps halving
        names = [f"C{i}" for i in range(15)]
        for name in names:
            column = ColumnService.create_column(board["id"], name)
            ColumnService.move_column(column["id"], before_column_id=first["id"])

        listed = ColumnService.list_columns(board["id"])
        assert _names(listed) == ["First", *reversed(names), "Last"]
        assert all(len(c["position"]) <= 4 for c in listed)

    def test_rebalance_on_move_ignores_bulk_limit(self, board, monkeypatch):
        """A board with more columns than MAX_BULK_KEYS still rebalances on move."""
        monkeypatch.setattr(settings, "REBALANCE_THRESHOLD", 4)
        monkeypatch.setattr(settings, "MAX_BULK_KEYS", 2)
        first = ColumnService.create_column(board["id"], "First")
        ColumnService.create_column(board["id"], "Last")

        names = [f"C{i}" for i in range(15)]
        for name in names:
            column = ColumnService.create_column(board["id"], name)
            ColumnService.move_column(column["id"], before_column_id=first["id"])

        listed = ColumnService.list_columns(board["id"])
        assert _names(listed) == ["First", *reversed(names), "Last"]
        assert all(len(c["position"]) <= 4 for c in listed)

    @pytest.fixture
    def crowded(self, board, monkeypatch):
        """Columns A, B, C where moving C between A and B needs a 6-char key."""
        monkeypatch.setattr(settings, "REBALANCE_THRESHOLD", 4)
        return [
            ColumnService.create_column(board["id"], "A", position="a0"),
            ColumnService.create_column(board["id"], "B", position="a0001"),
            ColumnService.create_column(board["id"], "C", position="a1"),
        ]

    def test_rebalancing_move(self, board, crowded):
        a, b, c = crowded
        moved = ColumnService.move_column(
            c["id"], before_column_id=a["id"], after_column_id=b["id"], version=1,
        )

        assert moved["position"] == "a1"
        assert moved["version"] == 2
        listed = ColumnService.list_columns(board["id"])
        assert _names(listed) == ["A", "C", "B"]
        assert [col["position"] for col in listed] == ["a0", "a1", "a2"]

    def test_stale_rebalancing_move_writes_nothing(self, board, crowded):
        a, b, c = crowded
        before = ColumnService.list_columns(board["id"])

        with pytest.raises(VersionConflictError):
            ColumnService.move_column(
                c["id"], before_column_id=a["id"], after_column_id=b["id"], version=5,
            )

        assert ColumnService.list_columns(board["id"]) == before

    def test_delete_column_removes_tasks(self, store, board, column, tasks):
        ColumnService.delete_column(column["id"])

        assert column["id"] not in {c["id"] for c in ColumnService.list_columns(board["id"])}
        with pytest.raises(TaskNotFoundError):
            store.get_task(tasks[0]["id"])


class TestColumnCopyAndTransfer:
    """Tests for copying a column and moving it to another board."""

    def test_copy_goes_to_end_with_tasks(self, board, columns, column, tasks):
        TaskService.create_task(column["id"], "E", description="with notes")
        copy = ColumnService.copy_column(column["id"])

        assert copy["name"] == "To Do (Copy)"
        assert copy["version"] == 1
        assert ColumnService.list_columns(board["id"])[-1]["id"] == copy["id"]

        originals = TaskService.list_tasks(column["id"])
        copies = TaskService.list_tasks(copy["id"])
        assert _names(copies, "title") == ["A", "B", "C", "D", "E"]
        assert [t["position"] for t in copies] == [t["position"] for t in originals]
        assert copies[-1]["description"] == "with notes"
        assert {t["id"] for t in copies}.isdisjoint({t["id"] for t in originals})

    def test_copy_empty_column(self, board, columns):
        copy = ColumnService.copy_column(columns[1]["id"])

        assert TaskService.list_tasks(copy["id"]) == []
        assert copy["position"] > columns[2]["position"]

    def test_copy_unknown_column(self):
        with pytest.raises(ColumnNotFoundError):
            ColumnService.copy_column("missing")

    def test_move_to_board_appends(self, store, board, columns, column, tasks):
        other_board = store.insert_board("Other")
        existing = ColumnService.create_column(other_board["id"], "Existing")

        moved = ColumnService.move_column_to_board(column["id"], other_board["id"], version=1)

        assert moved["board_id"] == other_board["id"]
        assert moved["position"] > existing["position"]
        assert moved["version"] == 2
        assert _names(ColumnService.list_columns(other_board["id"])) == ["Existing", "To Do"]
        assert _names(ColumnService.list_columns(board["id"])) == ["Doing", "Done"]
        assert _names(TaskService.list_tasks(column["id"]), "title") == ["A", "B", "C", "D"]

    def test_move_to_empty_board(self, store, column):
        other_board = store.insert_board("Empty")

        moved = ColumnService.move_column_to_board(column["id"], other_board["id"])

        assert moved["position"] == "a0"

    def test_move_to_missing_board(self, board, columns, column):
        with pytest.raises(BoardNotFoundError):
            ColumnService.move_column_to_board(column["id"], "missing")

        assert ColumnService.list_columns(board["id"])[0] == column

    def test_move_to_board_stale_version(self, store, board, columns, column):
        other_board = store.insert_board("Other")
        ColumnService.move_column_to_index(column["id"], 2)

        with pytest.raises(VersionConflictError):
            ColumnService.move_column_to_board(column["id"], other_board["id"], version=1)

        assert ColumnService.list_columns(other_board["id"]) == []


# =============================================================================
# Task Service
# =============================================================================

class TestTaskCreation:
    """Tests for creating tasks."""

    def test_tasks_append(self, column):
        TaskService.create_task(column["id"], "First")
        TaskService.create_task(column["id"], "Second", description="details")

        listed = TaskService.list_tasks(column["id"])
        assert _names(listed, "title") == ["First", "Second"]
        assert listed[1]["description"] == "details"

    def test_bulk_create(self, column, tasks):
        assert _names(TaskService.list_tasks(column["id"]), "title") == ["A", "B", "C", "D"]
        assert [t["position"] for t in tasks] == ["a0", "a1", "a2", "a3"]

    def test_bulk_create_at_index(self, column, tasks):
        TaskService.create_tasks(column["id"], ["X", "Y"], index=2)

        assert _names(TaskService.list_tasks(column["id"]), "title") == ["A", "B", "X", "Y", "C", "D"]

    def test_unknown_column(self):
        with pytest.raises(ColumnNotFoundError):
            TaskService.create_task("missing", "Lost")

    def test_duplicate_explicit_position(self, column, tasks):
        with pytest.raises(DuplicatePositionError) as exc_info:
            TaskService.create_task(column["id"], "Clash", position="a2")

        assert exc_info.value.code == "DUPLICATE_POSITION"
        assert exc_info.value.details["item_id"] == tasks[2]["id"]
        assert len(TaskService.list_tasks(column["id"])) == 4

    def test_explicit_position_in_gap(self, column, tasks):
        task = TaskService.create_task(column["id"], "Between", position="a1V")

        assert _names(TaskService.list_tasks(column["id"]), "title") == ["A", "B", "Between", "C", "D"]
        assert task["position"] == "a1V"


class TestTaskMoves:
    """Tests for moving tasks."""

    def test_move_down_within_column(self, column, tasks):
        a = tasks[0]
        TaskService.move_task_to_index(a["id"], 2)

        assert _names(TaskService.list_tasks(column["id"]), "title") == ["B", "C", "A", "D"]

    def test_move_by_neighbours(self, column, tasks):
        a, b, c, d = tasks
        moved = TaskService.move_task(d["id"], before_task_id=a["id"], after_task_id=b["id"])

        assert a["position"] < moved["position"] < b["position"]
        assert _names(TaskService.list_tasks(column["id"]), "title") == ["A", "D", "B", "C"]

    def test_move_across_columns(self, columns, column, tasks):
        target = columns[1]
        existing = TaskService.create_task(target["id"], "Existing")

        moved = TaskService.move_task(tasks[1]["id"], target_column_id=target["id"], after_task_id=existing["id"])

        assert moved["column_id"] == target["id"]
        assert moved["position"] < existing["position"]
        assert _names(TaskService.list_tasks(column["id"]), "title") == ["A", "C", "D"]
        assert _names(TaskService.list_tasks(target["id"]), "title") == ["B", "Existing"]

    def test_move_to_index_in_empty_column(self, columns, tasks):
        target = columns[2]
        moved = TaskService.move_task_to_index(tasks[0]["id"], 0, target_column_id=target["id"])

        assert moved["column_id"] == target["id"]
        assert moved["position"] == "a0"

    def test_move_to_missing_column(self, tasks):
        with pytest.raises(ColumnNotFoundError):
            TaskService.move_task(tasks[0]["id"], target_column_id="missing")

    def test_neighbour_in_other_column(self, columns, tasks):
        elsewhere = TaskService.create_task(columns[1]["id"], "Elsewhere")

        with pytest.raises(ItemNotFoundError):
            TaskService.move_task(tasks[0]["id"], before_task_id=elsewhere["id"])

    def test_stale_version_is_rejected(self, column, tasks):
        a = tasks[0]
        TaskService.move_task_to_index(a["id"], 3, version=1)

        with pytest.raises(VersionConflictError):
            TaskService.move_task_to_index(a["id"], 0, version=1)

        assert _names(TaskService.list_tasks(column["id"]), "title") == ["B", "C", "D", "A"]

    def test_concurrent_moves_keep_keys_unique(self, column, tasks):
        """Test parallel moves into the same slot never mint the same key."""
        errors = []

        def move(task_id):
            try:
                TaskService.move_task_to_index(task_id, 0)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=move, args=(t["id"],)) for t in tasks]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        positions = [t["position"] for t in TaskService.list_tasks(column["id"])]
        assert errors == []
        assert len(set(positions)) == len(tasks)

    def test_repeated_inserts_trigger_rebalance(self, column, tasks, monkeypatch):
        monkeypatch.setattr(settings, "REBALANCE_THRESHOLD", 5)
        a = tasks[0]

        titles = [f"T{i}" for i in range(20)]
        for title in titles:
            task = TaskService.create_task(column["id"], title)
            TaskService.move_task(task["id"], before_task_id=a["id"])

        listed = TaskService.list_tasks(column["id"])
        assert _names(listed, "title") == ["A", *reversed(titles), "B", "C", "D"]
        assert all(len(t["position"]) <= 5 for t in listed)

    def test_stale_rebalancing_move_writes_nothing(self, columns, column, monkeypatch):
        """A cross-column move that would rebalance the target leaves both columns as they were."""
        monkeypatch.setattr(settings, "REBALANCE_THRESHOLD", 4)
        target = columns[1]
        low = TaskService.create_task(target["id"], "Low", position="a0")
        high = TaskService.create_task(target["id"], "High", position="a0001")
        task = TaskService.create_task(column["id"], "Mover")
        source_before = TaskService.list_tasks(column["id"])
        target_before = TaskService.list_tasks(target["id"])

        with pytest.raises(VersionConflictError):
            TaskService.move_task(
                task["id"],
                target_column_id=target["id"],
                before_task_id=low["id"],
                after_task_id=high["id"],
                version=3,
            )

        assert TaskService.list_tasks(column["id"]) == source_before
        assert TaskService.list_tasks(target["id"]) == target_before

    def test_rebalancing_cross_column_move(self, columns, column, monkeypatch):
        monkeypatch.setattr(settings, "REBALANCE_THRESHOLD", 4)
        target = columns[1]
        low = TaskService.create_task(target["id"], "Low", position="a0")
        high = TaskService.create_task(target["id"], "High", position="a0001")
        task = TaskService.create_task(column["id"], "Mover")

        moved = TaskService.move_task(
            task["id"],
            target_column_id=target["id"],
            before_task_id=low["id"],
            after_task_id=high["id"],
            version=1,
        )

        assert moved["column_id"] == target["id"]
        listed = TaskService.list_tasks(target["id"])
        assert _names(listed, "title") == ["Low", "Mover", "High"]
        assert [t["position"] for t in listed] == ["a0", "a1", "a2"]
        assert TaskService.list_tasks(column["id"]) == []


class TestTaskCopyDelete:
    """Tests for copying, rebalancing and deleting tasks."""

    def test_copy_goes_to_end(self, column, tasks):
        original = tasks[1]
        TaskService.move_task_to_index(original["id"], 0)
        copy = TaskService.copy_task(original["id"])

        assert copy["title"] == "B (Copy)"
        assert copy["id"] != original["id"]
        assert copy["version"] == 1
        assert TaskService.list_tasks(column["id"])[-1]["id"] == copy["id"]

    def test_rebalance_column(self, column, tasks):
        TaskService.move_task(tasks[3]["id"], before_task_id=tasks[0]["id"])
        positions = TaskService.rebalance_column(column["id"])

        assert sorted(positions.values()) == ["a0", "a1", "a2", "a3"]
        assert _names(TaskService.list_tasks(column["id"]), "title") == ["A", "D", "B", "C"]

    def test_delete_keeps_sibling_keys(self, column, tasks):
        TaskService.delete_task(tasks[1]["id"])

        assert [t["position"] for t in TaskService.list_tasks(column["id"])] == ["a0", "a2", "a3"]

    def test_delete_unknown(self):
        with pytest.raises(TaskNotFoundError):
            TaskService.delete_task("missing")

# =============================================================================
# tests/test_optimistic.py - Optimistic Reorder Tests
# =============================================================================
# Tests the client-side view that applies moves before the server confirms:
# propose, confirm, rollback, and reconcile after a conflict.
#
# Run with: pytest tests/test_optimistic.py -v
# =============================================================================

import pytest

from core.services import OptimisticReorder, ProvisionalMove
from core.services.position_service import InvalidIndexError, ItemNotFoundError


@pytest.fixture
def rows():
    return [
        {"id": "t2", "position": "a1", "version": 1},
        {"id": "t1", "position": "a0", "version": 1},
        {"id": "t3", "position": "a2", "version": 4},
    ]


@pytest.fixture
def view(rows):
    return OptimisticReorder(rows)


def _ids(view):
    return [item["id"] for item in view.items]


class TestProposeMove:
    """Tests for applying a move locally."""

    def test_initial_order_is_sorted(self, view):
        assert _ids(view) == ["t1", "t2", "t3"]
        assert view.positions == ["a0", "a1", "a2"]

    def test_move_to_head(self, view):
        move = view.propose_move("t3", 0)

        assert isinstance(move, ProvisionalMove)
        assert move.previous_position == "a2"
        assert move.provisional_position == "Zz"
        assert _ids(view) == ["t3", "t1", "t2"]
        assert view.is_pending("t3")

    def test_neighbours_reported(self, view):
        move = view.propose_move("t1", 1)

        assert _ids(view) == ["t2", "t1", "t3"]
        assert move.before_id == "t2"
        assert move.after_id == "t3"
        assert move.version == 1

    def test_request_body(self, view):
        move = view.propose_move("t3", 0)

        assert move.to_request() == {
            "before_task_id": None,
            "after_task_id": "t1",
            "version": 4,
        }
        assert set(move.to_request("column")) == {"before_column_id", "after_column_id", "version"}

    def test_unknown_item(self, view):
        with pytest.raises(ItemNotFoundError):
            view.propose_move("missing", 0)

    def test_index_out_of_range(self, view):
        """Only the two other items count as slots."""
        with pytest.raises(InvalidIndexError):
            view.propose_move("t1", 3)

        assert not view.is_pending("t1")

    def test_items_are_copies(self, view):
        view.items[0]["position"] = "zz"
        assert view.positions == ["a0", "a1", "a2"]


class TestResolveMove:
    """Tests for confirming, rolling back and reconciling."""

    def test_rollback_restores_order(self, view):
        move = view.propose_move("t3", 0)
        view.rollback(move)

        assert _ids(view) == ["t1", "t2", "t3"]
        assert view.positions == ["a0", "a1", "a2"]
        assert not view.is_pending("t3")

    def test_rollback_keeps_other_confirmed_moves(self, view):
        """Only the rejected item reverts when two moves overlap."""
        rejected = view.propose_move("t3", 0)
        accepted = view.propose_move("t1", 2)
        view.confirm(accepted, {"id": "t1", "position": "a3", "version": 2})

        view.rollback(rejected)

        assert _ids(view) == ["t2", "t3", "t1"]
        assert view.positions == ["a1", "a2", "a3"]
        assert view.items[2]["version"] == 2
        assert not view.is_pending("t3")

    def test_rollback_keeps_other_pending_moves(self, view):
        rejected = view.propose_move("t3", 0)
        view.propose_move("t2", 0)

        view.rollback(rejected)

        assert _ids(view) == ["t2", "t1", "t3"]
        assert view.positions == ["Zy", "a0", "a2"]
        assert view.is_pending("t2")

    def test_rollback_after_confirm_is_ignored(self, view):
        move = view.propose_move("t3", 0)
        view.confirm(move, {"id": "t3", "position": "Zz", "version": 5})

        view.rollback(move)

        assert _ids(view) == ["t3", "t1", "t2"]

    def test_rollback_of_superseded_move_is_ignored(self, view):
        first = view.propose_move("t3", 0)
        second = view.propose_move("t3", 1)

        view.rollback(first)

        assert view.is_pending("t3")
        assert _ids(view) == ["t1", "t3", "t2"]

        view.rollback(second)
        assert view.positions[0] == "Zz"

        assert not view.is_pending("t3")

    def test_confirm_adopts_server_row(self, view):
        move = view.propose_move("t3", 0)
        view.confirm(move, {"id": "t3", "position": "Zy", "version": 5})

        assert view.positions == ["Zy", "a0", "a1"]
        assert view.items[0]["version"] == 5
        assert not view.is_pending("t3")

    def test_reconcile_drops_pending_moves(self, view):
        view.propose_move("t3", 0)
        view.propose_move("t1", 2)

        server_rows = [
            {"id": "t1", "position": "a0", "version": 1},
            {"id": "t3", "position": "a0V", "version": 5},
            {"id": "t2", "position": "a1", "version": 2},
        ]
        view.reconcile(server_rows)

        assert _ids(view) == ["t1", "t3", "t2"]
        assert not view.is_pending("t1")
        assert not view.is_pending("t3")

    def test_recompute_after_reconcile(self, view):
        """A fresh proposal is computed from the reconciled order."""
        view.propose_move("t3", 0)
        view.reconcile([
            {"id": "t1", "position": "a0", "version": 1},
            {"id": "t2", "position": "a1", "version": 1},
            {"id": "t3", "position": "a5", "version": 5},
        ])

        move = view.propose_move("t3", 1)

        assert "a0" < move.provisional_position < "a1"
        assert move.version == 5

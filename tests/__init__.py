# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Kanban Position API:
# - test_fractional_index.py: Key format, midpoint, and bulk generation
# - test_position_service.py: PositionAllocator slot and capacity handling
# - test_board_services.py: Column/task services against the board store
# - test_optimistic.py: Client-side optimistic reordering
# - test_models.py: Pydantic model validation
# - test_api.py: HTTP endpoints via TestClient
#
# Run tests with: pytest
# =============================================================================

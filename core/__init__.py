# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas for data validation
# - services/: Position allocator, column/task services, optimistic reorder
#
# Code in this package should NOT define routes or touch HTTP requests.
# This keeps the logic testable and reusable.
# =============================================================================

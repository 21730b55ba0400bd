# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - fractional_index.py: Position key generation (fractional indexing)
# - board_store.py: In-memory store for boards, columns and tasks
# - utils.py: Shared utilities (error handling, ID normalization)
#
# fractional_index.py is pure and can be tested in isolation.
# board_store.py raises app-level errors, so import it directly:
#   from lib.board_store import BoardStore
# =============================================================================

from lib.utils import ApplicationError, normalize_id
from lib.fractional_index import (
    BASE_62_DIGITS,
    CapacityError,
    InvalidOrderKeyError,
    InvalidRangeError,
    generate_key_between,
    generate_n_keys_between,
    is_valid_order_key,
    validate_order_key,
)

__all__ = [
    # Fractional indexing
    "BASE_62_DIGITS",
    "CapacityError",
    "InvalidOrderKeyError",
    "InvalidRangeError",
    "generate_key_between",
    "generate_n_keys_between",
    "is_valid_order_key",
    "validate_order_key",
    # Utils
    "ApplicationError",
    "normalize_id",
]

# =============================================================================
# lib/fractional_index.py - Fractional Indexing Keys
# =============================================================================
# Generates lexicographically sortable position keys so that items can be
# inserted or moved between two neighbours without renumbering siblings.
#
# Key format:
#   <integer part><fraction part>
#
#   - The integer part starts with a head character that encodes its length:
#     'a'..'z' -> 2..27 chars (non-negative), 'A'..'Z' -> 27..2 chars
#     (negative). "a0" is integer zero.
#   - The fraction part is a base-62 string that never ends in '0'.
#
# Appending (no upper bound) increments the integer part, so keys stay short
# for the common "add to the end" case: a0, a1, ..., az, b00, b01, ...
# Inserting between two keys takes the digit-wise midpoint in the alphabet.
#
# All keys compare correctly with plain byte-wise string comparison
# (Python str ordering, or COLLATE "C" in PostgreSQL).
#
# Usage:
#   from lib.fractional_index import generate_key_between
#   first = generate_key_between(None, None)      # "a0"
#   second = generate_key_between(first, None)    # "a1"
#   middle = generate_key_between(first, second)  # "a0V"
# =============================================================================

from __future__ import annotations

from lib.utils import ApplicationError


# Sorted by ASCII byte value: 0-9 (48-57), A-Z (65-90), a-z (97-122)
BASE_62_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

INTEGER_ZERO = "a" + BASE_62_DIGITS[0]

# Reserved: nothing can be placed before it, so it is never a valid key
SMALLEST_INTEGER = "A" + BASE_62_DIGITS[0] * 26


# =============================================================================
# Errors
# =============================================================================

class InvalidOrderKeyError(ApplicationError):
    """Raised when a string is not a well-formed position key."""

    def __init__(self, key: str, reason: str):
        super().__init__(
            message=f"Invalid order key {key!r}: {reason}",
            code="INVALID_ORDER_KEY",
            suggestion="Only pass keys produced by the position allocator",
            details={"key": key, "reason": reason},
        )


class InvalidRangeError(ApplicationError):
    """Raised when the lower bound is not strictly below the upper bound."""

    def __init__(self, before: str, after: str):
        super().__init__(
            message=f"Invalid range: before={before!r} must sort strictly below after={after!r}",
            code="INVALID_RANGE",
            suggestion="Re-read the current sibling order and derive the bounds again",
            details={"before": before, "after": after},
        )


class CapacityError(ApplicationError):
    """Raised when keys cannot be produced within the allowed key space."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message=message,
            code="CAPACITY_EXCEEDED",
            suggestion="Split the insert into smaller batches or rebalance the sibling set",
            details=details,
        )


# =============================================================================
# Validation
# =============================================================================

def get_integer_length(head: str) -> int:
    """Length of the integer part announced by its head character."""
    if "a" <= head <= "z":
        return ord(head) - ord("a") + 2
    if "A" <= head <= "Z":
        return ord("Z") - ord(head) + 2
    raise InvalidOrderKeyError(head, "invalid integer head")


def get_integer_part(key: str) -> str:
    """Split off the integer part of a key."""
    if not key:
        raise InvalidOrderKeyError(key, "key is empty")
    length = get_integer_length(key[0])
    if length > len(key):
        raise InvalidOrderKeyError(key, "integer part is truncated")
    return key[:length]


def validate_order_key(key: str, digits: str = BASE_62_DIGITS) -> None:
    """
    Check that a key is well formed.

    Raises:
        InvalidOrderKeyError: If the key cannot be used as a position
    """
    if not isinstance(key, str):
        raise InvalidOrderKeyError(repr(key), "key must be a string")
    if key == SMALLEST_INTEGER:
        raise InvalidOrderKeyError(key, "smallest integer is reserved")

    integer = get_integer_part(key)
    for char in key[1:]:
        if char not in digits:
            raise InvalidOrderKeyError(key, f"character {char!r} is not in the alphabet")

    fraction = key[len(integer):]
    if fraction.endswith(digits[0]):
        raise InvalidOrderKeyError(key, "fraction part ends with a zero digit")


def is_valid_order_key(key: str, digits: str = BASE_62_DIGITS) -> bool:
    """Return True if the key is well formed."""
    try:
        validate_order_key(key, digits)
    except InvalidOrderKeyError:
        return False
    return True


def _validate_integer(integer: str) -> None:
    if len(integer) != get_integer_length(integer[0]):
        raise InvalidOrderKeyError(integer, "integer part has the wrong length")


# =============================================================================
# Integer Part Arithmetic
# =============================================================================

def increment_integer(integer: str, digits: str = BASE_62_DIGITS) -> str | None:
    """
    Next integer in key order, or None once "z" + 26 x "z" is reached.

    Examples:
        "a0" -> "a1", "az" -> "b00", "Zz" -> "a0"
    """
    _validate_integer(integer)
    head, tail = integer[0], list(integer[1:])

    carry = True
    for i in range(len(tail) - 1, -1, -1):
        value = digits.index(tail[i]) + 1
        if value == len(digits):
            tail[i] = digits[0]
        else:
            tail[i] = digits[value]
            carry = False
            break

    if not carry:
        return head + "".join(tail)

    if head == "Z":
        return "a" + digits[0]
    if head == "z":
        return None

    next_head = chr(ord(head) + 1)
    if next_head > "a":
        tail.append(digits[0])
    else:
        tail.pop()
    return next_head + "".join(tail)


def decrement_integer(integer: str, digits: str = BASE_62_DIGITS) -> str | None:
    """
    Previous integer in key order, or None once "A" + 26 x "0" is reached.

    Examples:
        "a1" -> "a0", "a0" -> "Zz", "b00" -> "az"
    """
    _validate_integer(integer)
    head, tail = integer[0], list(integer[1:])

    borrow = True
    for i in range(len(tail) - 1, -1, -1):
        value = digits.index(tail[i]) - 1
        if value == -1:
            tail[i] = digits[-1]
        else:
            tail[i] = digits[value]
            borrow = False
            break

    if not borrow:
        return head + "".join(tail)

    if head == "a":
        return "Z" + digits[-1]
    if head == "A":
        return None

    prev_head = chr(ord(head) - 1)
    if prev_head < "Z":
        tail.append(digits[-1])
    else:
        tail.pop()
    return prev_head + "".join(tail)


# =============================================================================
# Midpoint
# =============================================================================

def midpoint(a: str, b: str | None, digits: str = BASE_62_DIGITS) -> str:
    """
    Fraction strictly between two fractions.

    `a` may be empty (zero), `b` may be None (one). Neither may end in a
    zero digit.

    Examples:
        midpoint("", None) -> "V"
        midpoint("", "V")  -> "G"
        midpoint("4", "5") -> "4V"
    """
    zero = digits[0]
    if b is not None and a >= b:
        raise InvalidRangeError(a, b)
    if a.endswith(zero):
        raise InvalidOrderKeyError(a, "trailing zero in fraction")
    if b is not None and b.endswith(zero):
        raise InvalidOrderKeyError(b, "trailing zero in fraction")

    if b:
        # Strip the common prefix, treating a missing digit in `a` as zero
        n = 0
        while (a[n] if n < len(a) else zero) == b[n]:
            n += 1
        if n > 0:
            return b[:n] + midpoint(a[n:], b[n:], digits)

    digit_a = digits.index(a[0]) if a else 0
    digit_b = digits.index(b[0]) if b is not None else len(digits)

    if digit_b - digit_a > 1:
        # Round half up
        return digits[(digit_a + digit_b + 1) // 2]

    # First digits are consecutive
    if b is not None and len(b) > 1:
        return b[:1]
    return digits[digit_a] + midpoint(a[1:], None, digits)


# =============================================================================
# Key Generation
# =============================================================================

def generate_key_between(
    a: str | None,
    b: str | None,
    digits: str = BASE_62_DIGITS,
) -> str:
    """
    Generate a key that sorts strictly between `a` and `b`.

    Args:
        a: Lower bound (None = no lower bound)
        b: Upper bound (None = no upper bound)
        digits: Ordered alphabet

    Returns:
        A new key `k` with a < k < b

    Raises:
        InvalidRangeError: If a >= b (checked before the key format)
        InvalidOrderKeyError: If either bound is malformed
        CapacityError: If nothing fits below the smallest integer
    """
    if isinstance(a, str) and isinstance(b, str) and a >= b:
        raise InvalidRangeError(a, b)
    if a is not None:
        validate_order_key(a, digits)
    if b is not None:
        validate_order_key(b, digits)

    if a is None:
        if b is None:
            return INTEGER_ZERO

        int_b = get_integer_part(b)
        frac_b = b[len(int_b):]
        if int_b == SMALLEST_INTEGER:
            return int_b + midpoint("", frac_b, digits)
        if int_b < b:
            return int_b
        decremented = decrement_integer(int_b, digits)
        if decremented is None:
            raise CapacityError(
                f"No key fits before {b!r}: integer space exhausted",
                details={"after": b},
            )
        if decremented == SMALLEST_INTEGER:
            # Reserved on its own; only usable with a fraction
            return decremented + midpoint("", None, digits)
        return decremented

    if b is None:
        int_a = get_integer_part(a)
        frac_a = a[len(int_a):]
        incremented = increment_integer(int_a, digits)
        if incremented is None:
            return int_a + midpoint(frac_a, None, digits)
        return incremented

    int_a = get_integer_part(a)
    frac_a = a[len(int_a):]
    int_b = get_integer_part(b)
    frac_b = b[len(int_b):]

    if int_a == int_b:
        return int_a + midpoint(frac_a, frac_b, digits)

    incremented = increment_integer(int_a, digits)
    if incremented is None:
        raise CapacityError(
            f"No key fits after {a!r}: integer space exhausted",
            details={"before": a, "after": b},
        )
    if incremented < b:
        return incremented
    return int_a + midpoint(frac_a, None, digits)


def generate_n_keys_between(
    a: str | None,
    b: str | None,
    n: int,
    digits: str = BASE_62_DIGITS,
) -> list[str]:
    """
    Generate `n` strictly increasing keys between `a` and `b`.

    Open-ended ranges are filled sequentially from the bounded side, which
    walks the integer part and keeps keys short. Bounded ranges are split
    recursively: the middle key is minted first, then each half is filled.

    Args:
        a: Lower bound (None = no lower bound)
        b: Upper bound (None = no upper bound)
        n: Number of keys to generate

    Returns:
        List of `n` keys, sorted ascending

    Raises:
        ValueError: If n is negative
        InvalidOrderKeyError, InvalidRangeError, CapacityError:
            Same as generate_key_between
    """
    if n < 0:
        raise ValueError(f"Cannot generate a negative number of keys: {n}")
    if n == 0:
        return []
    if n == 1:
        return [generate_key_between(a, b, digits)]

    if b is None:
        key = generate_key_between(a, b, digits)
        keys = [key]
        for _ in range(n - 1):
            key = generate_key_between(key, b, digits)
            keys.append(key)
        return keys

    if a is None:
        key = generate_key_between(a, b, digits)
        keys = [key]
        for _ in range(n - 1):
            key = generate_key_between(a, key, digits)
            keys.append(key)
        keys.reverse()
        return keys

    mid = n // 2
    middle = generate_key_between(a, b, digits)
    return [
        *generate_n_keys_between(a, middle, mid, digits),
        middle,
        *generate_n_keys_between(middle, b, n - mid - 1, digits),
    ]

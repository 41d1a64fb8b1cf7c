"""Dense rank keys for ordering siblings without renumbering.

Keys are base-62 fractions written with the digits 0-9A-Za-z (ASCII order,
so plain string comparison orders them). A key never ends with the lowest
digit '0', which guarantees another key always fits between any two keys.
"""

RANK_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
_BASE = len(RANK_ALPHABET)
_DIGIT_VALUES = {c: i for i, c in enumerate(RANK_ALPHABET)}


def _to_int(key: str, width: int) -> int:
    """Read key as a width-digit base-62 integer (right-padded with zeros)."""
    value = 0
    for ch in key.ljust(width, RANK_ALPHABET[0]):
        value = value * _BASE + _DIGIT_VALUES[ch]
    return value


def _to_key(value: int, width: int) -> str:
    """Write value as width base-62 digits, dropping trailing zeros."""
    digits: list[str] = []
    for _ in range(width):
        value, rem = divmod(value, _BASE)
        digits.append(RANK_ALPHABET[rem])
    return "".join(reversed(digits)).rstrip(RANK_ALPHABET[0])


def _check_key(key: str, name: str) -> None:
    if not key:
        raise ValueError(f"{name} rank must be non-empty (use None for an open bound)")
    invalid = set(key) - _DIGIT_VALUES.keys()
    if invalid:
        raise ValueError(f"{name} rank {key!r} has characters outside the rank alphabet")
    if key.endswith(RANK_ALPHABET[0]):
        raise ValueError(f"{name} rank {key!r} must not end with {RANK_ALPHABET[0]!r}")


def rank_between(lower: str | None, upper: str | None, count: int) -> list[str]:
    """Return count ascending keys strictly between lower and upper.

    None means an open bound. Keys are spread evenly across the gap, using as
    few digits as possible, so later inserts between any two of them remain
    possible.

    Raises:
        ValueError: If count is negative, a bound is malformed, or lower >= upper.
    """
    if count < 0:
        raise ValueError("count must be >= 0")
    if lower is not None:
        _check_key(lower, "lower")
    if upper is not None:
        _check_key(upper, "upper")
    if lower is not None and upper is not None and lower >= upper:
        raise ValueError(f"lower rank {lower!r} must sort before upper rank {upper!r}")
    if count == 0:
        return []

    low = lower or ""
    width = max(len(low), len(upper or ""), 1)
    while True:
        low_int = _to_int(low, width)
        high_int = _to_int(upper, width) if upper is not None else _BASE**width
        gap = high_int - low_int
        if gap > count:
            break
        width += 1

    return [
        _to_key(low_int + (gap * (i + 1)) // (count + 1), width) for i in range(count)
    ]

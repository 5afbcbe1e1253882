"""Small numeric helpers."""


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp ``value`` into ``[lower, upper]``. The lower bound is checked first."""
    if value < lower:
        return lower
    if value > upper:
        return upper
    return value

"""
Small formatting helpers shared by the report renderers.
"""

UP_ICON = "⬆️"
DOWN_ICON = "⬇️"
FLAT_ICON = "➖"


def delta_indicator(delta: int) -> str:
    if delta > 0:
        return f"+{delta}"
    return str(delta)


def trend_icon(delta: int) -> str:
    if delta > 0:
        return UP_ICON
    if delta < 0:
        return DOWN_ICON
    return FLAT_ICON


def format_count(n: int) -> str:
    """Compact count: 950, 1.2k, 3.4M."""
    for divisor, suffix in ((1_000_000_000, "B"), (1_000_000, "M"), (1_000, "k")):
        if abs(n) >= divisor:
            value = f"{n / divisor:.1f}".rstrip("0").rstrip(".")
            return f"{value}{suffix}"
    return str(n)


def short_date(timestamp: str) -> str:
    """Date part of an ISO-8601 timestamp."""
    return timestamp.split("T")[0]

"""
Notification threshold policy.
"""

from typing import Optional, Union

AUTO_THRESHOLD = "auto"

# (inclusive upper bound on total stars, threshold)
ADAPTIVE_BANDS = (
    (50, 1),
    (200, 5),
    (500, 10),
)
ADAPTIVE_MAX_THRESHOLD = 20


def get_adaptive_threshold(total_stars: int) -> int:
    """
    Map a star total to the number of stars that must change before notifying.
    """
    for upper_bound, threshold in ADAPTIVE_BANDS:
        if total_stars <= upper_bound:
            return threshold
    return ADAPTIVE_MAX_THRESHOLD


def should_notify(
    total_stars: int,
    stars_at_last_notification: Optional[int],
    threshold: Union[int, str],
) -> bool:
    """
    Decide whether the change since the last notification is large enough.

    The comparison is against the total at the last notification, not the
    last observed total, so small changes accumulate across runs.

    Args:
        total_stars: Current total star count
        stars_at_last_notification: Total when a notification last fired
        threshold: Fixed threshold, 0 to always notify, or "auto"

    Returns:
        True if a notification should be sent
    """
    if threshold == 0:
        return True

    if threshold == AUTO_THRESHOLD:
        effective_threshold = get_adaptive_threshold(total_stars)
    else:
        effective_threshold = threshold

    baseline = stars_at_last_notification if stars_at_last_notification is not None else 0
    accumulated_delta = abs(total_stars - baseline)

    return accumulated_delta >= effective_threshold

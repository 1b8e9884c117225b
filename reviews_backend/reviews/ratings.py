"""
Rating arithmetic for book aggregates

Running averages are maintained incrementally: each review mutation adds,
removes or replaces a single value in an average of ``n`` values. Every
result is rounded to one decimal place before it is stored.

A rating of 0 means "not rated" on that dimension. Callers never pass 0 into
these functions; it is excluded from both counts and averages.
"""

from __future__ import annotations


def _round(value: float) -> float:
    return round(value, 1)


def add_rating(average: float, count: int, new_value: float) -> float:
    """
    Average after adding one value to an average of ``count`` values.

    Args:
        average: Current average
        count: Number of values in the current average
        new_value: Value being added

    Returns:
        float: New average (``count`` becomes ``count + 1``)
    """
    if count == 0:
        return _round(new_value)
    return _round((average * count + new_value) / (count + 1))


def remove_rating(average: float, count: int, old_value: float) -> float:
    """
    Average after removing one value from an average of ``count`` values.

    Returns 0 when the last value is removed.
    """
    if count <= 1:
        return 0
    return _round((average * count - old_value) / (count - 1))


def replace_rating(average: float, count: int, old_value: float, new_value: float) -> float:
    """Average after swapping ``old_value`` for ``new_value`` (count unchanged)."""
    return _round((average * count - old_value + new_value) / count)


def overall_rate(
    book_average: float,
    narrator_average: float,
    book_count: int,
    narrator_count: int,
) -> float:
    """
    Mean of the dimensions that have at least one rating.

    Args:
        book_average: Book dimension average
        narrator_average: Narrator dimension average
        book_count: Number of book ratings
        narrator_count: Number of narrator ratings

    Returns:
        float: Overall rate, or 0 if neither dimension has been rated
    """
    rated = [
        average
        for average, count in ((book_average, book_count), (narrator_average, narrator_count))
        if count > 0
    ]
    if not rated:
        return 0
    return _round(sum(rated) / len(rated))


def apply_rating_change(average: float, count: int, old_value: float, new_value: float) -> tuple[float, int]:
    """
    Move one reviewer's rating on a single dimension from ``old_value`` to ``new_value``.

    Covers every zero/non-zero combination:
        old > 0, new > 0  -> replace
        old = 0, new > 0  -> add, count + 1
        old > 0, new = 0  -> remove, count - 1
        old = 0, new = 0  -> untouched

    Returns:
        tuple: (new_average, new_count)
    """
    if old_value > 0 and new_value > 0:
        if count <= 0:
            # Drifted aggregate: the old rating was never counted
            return add_rating(average, 0, new_value), 1
        return replace_rating(average, count, old_value, new_value), count
    if old_value == 0 and new_value > 0:
        return add_rating(average, count, new_value), count + 1
    if old_value > 0 and new_value == 0:
        if count <= 0:
            return average, 0
        return remove_rating(average, count, old_value), max(0, count - 1)
    return average, count

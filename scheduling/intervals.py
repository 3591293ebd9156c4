# scheduling/intervals.py
"""
Half-open ``[start, end)`` interval arithmetic on minutes since midnight.

All functions take and return lists of ``(start, end)`` integer tuples and never
mutate their arguments.
"""
from datetime import time

MINUTES_PER_DAY = 24 * 60


def to_minutes(value):
    return value.hour * 60 + value.minute


def to_time(minutes):
    return time(minutes // 60, minutes % 60)


def merge(intervals):
    """Minimal sorted set of non-overlapping intervals.

    Overlapping and touching intervals are joined; empty ones are dropped.
    """
    result = []
    for start, end in sorted(i for i in intervals if i[1] > i[0]):
        if result and start <= result[-1][1]:
            if end > result[-1][1]:
                result[-1] = (result[-1][0], end)
        else:
            result.append((start, end))
    return result


def subtract(intervals, removed):
    """Remove every interval in ``removed`` from ``intervals``.

    A removed interval in the middle of an available one splits it in two.
    """
    result = merge(intervals)
    for cut_start, cut_end in merge(removed):
        remaining = []
        for start, end in result:
            if cut_end <= start or cut_start >= end:
                remaining.append((start, end))
                continue
            if start < cut_start:
                remaining.append((start, cut_start))
            if cut_end < end:
                remaining.append((cut_end, end))
        result = remaining
    return result


def overlaps(a, b):
    return a[0] < b[1] and b[0] < a[1]


def tile(intervals, duration):
    """Consecutive ``duration``-long pieces of each interval.

    A trailing remainder shorter than ``duration`` is discarded.
    """
    if duration <= 0:
        raise ValueError('duration must be positive')
    pieces = []
    for start, end in merge(intervals):
        cursor = start
        while cursor + duration <= end:
            pieces.append((cursor, cursor + duration))
            cursor += duration
    return pieces

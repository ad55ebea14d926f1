"""
Segment resolution: which agenda item is on now, which comes next, and how
far through (or past) the current one we are.

Everything is derived from ``(items, instant)`` on each call; there is no
running countdown to drift.
"""
from dataclasses import dataclass
from typing import Optional, Sequence

import clock
import config
from schedule import ScheduleItem

STATUS_IDLE = 'idle'
STATUS_RUNNING = 'running'
STATUS_OVERTIME = 'overtime'


@dataclass(frozen=True)
class SegmentState:
    active_item: Optional[ScheduleItem] = None
    next_item: Optional[ScheduleItem] = None
    progress: float = 0.0
    time_left_ms: int = 0
    is_overtime: bool = False
    total_duration_ms: int = 0
    status: str = STATUS_IDLE


EMPTY_STATE = SegmentState()


def sort_items(items):
    """Stable copy ordered by start time; equal starts keep their input order."""
    return sorted(items, key=lambda item: item.start_time)


def effective_end(sorted_items, index, day, tz=None):
    """
    End instant (ms) of ``sorted_items[index]``: its own end time, else the
    next item's start, else the default duration for the last item.
    """
    item = sorted_items[index]
    if item.end_time is not None:
        return clock.at_time_of_day(day, item.end_time, tz)
    if index + 1 < len(sorted_items):
        return clock.at_time_of_day(day, sorted_items[index + 1].start_time, tz)
    start = clock.at_time_of_day(day, item.start_time, tz)
    return clock.add_minutes(start, config.DEFAULT_DURATION_MINUTES)


def find_index(sorted_items, item):
    """Position of ``item`` in the sorted schedule, matched by id."""
    for index, candidate in enumerate(sorted_items):
        if candidate.id == item.id:
            return index
    raise KeyError(item.id)


def resolve(items: Sequence[ScheduleItem], instant: int, day=None, tz=None) -> SegmentState:
    """
    Resolve the schedule at ``instant`` (epoch ms).

    ``day`` anchors the items' HH:MM times to a calendar date; it defaults
    to the date of ``instant`` itself.
    """
    if not items:
        return EMPTY_STATE

    tz = tz or clock.get_timezone()
    day = day or clock.anchor_day(instant, tz)
    ordered = sort_items(items)
    starts = [clock.at_time_of_day(day, item.start_time, tz) for item in ordered]
    ends = [effective_end(ordered, i, day, tz) for i in range(len(ordered))]

    active_index = next(
        (i for i in range(len(ordered)) if starts[i] <= instant < ends[i]),
        None,
    )
    if active_index is None:
        # Nothing contains the instant: the most recently started item is
        # still on stage until a later one begins.
        started = [i for i in range(len(ordered)) if starts[i] <= instant]
        if started:
            active_index = started[-1]

    next_item = next((item for item, s in zip(ordered, starts) if s > instant), None)

    if active_index is None:
        return SegmentState(next_item=next_item, status=STATUS_IDLE)

    start, end = starts[active_index], ends[active_index]
    total = end - start
    time_left = end - instant

    if total <= 0 or time_left < 0:
        progress, overtime = 1.0, True
    else:
        progress, overtime = (instant - start) / total, False

    return SegmentState(
        active_item=ordered[active_index],
        next_item=next_item,
        progress=progress,
        time_left_ms=time_left,
        is_overtime=overtime,
        total_duration_ms=total,
        status=STATUS_OVERTIME if overtime else STATUS_RUNNING,
    )

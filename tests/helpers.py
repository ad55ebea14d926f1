from datetime import date, datetime, time

import pytz

from schedule import ScheduleItem

UTC = pytz.UTC
DAY = date(2025, 3, 14)


def at(hour, minute, second=0, day=DAY):
    """Epoch ms for a UTC wall-clock time on the test day."""
    return int(UTC.localize(datetime(day.year, day.month, day.day, hour, minute, second)).timestamp() * 1000)


def item(start, end=None, title=None, item_id=None, type='presentation'):
    h, m = map(int, start.split(':'))
    end_time = None
    if end is not None:
        eh, em = map(int, end.split(':'))
        end_time = time(eh, em)
    return ScheduleItem(
        id=item_id or f"event-{start}-{title or 'x'}",
        start_time=time(h, m),
        end_time=end_time,
        title=title or f"Talk at {start}",
        type=type,
    )


class FakeRealTime:
    """Settable stand-in for the system clock (epoch ms)."""

    def __init__(self, now_ms):
        self.now_ms = now_ms

    def __call__(self):
        return self.now_ms

    def advance(self, ms):
        self.now_ms += ms

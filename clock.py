# clock.py
"""
Clock source for the timer.

Every instant is an integer count of epoch milliseconds so offset
arithmetic stays exact. "Simulated now" is real time plus an operator
controlled offset; nothing here integrates previous readings.
"""
import threading
import time
from datetime import datetime, timedelta

import pytz

import config


def get_timezone(name=None):
    """Returns the pytz zone schedule times are interpreted in."""
    return pytz.timezone(name or config.TIMER_TIMEZONE)


def real_time_ms():
    return int(time.time() * 1000)


def anchor_day(instant_ms, tz=None):
    """Calendar date of an instant, seen from the schedule's timezone."""
    tz = tz or get_timezone()
    return datetime.fromtimestamp(instant_ms / 1000.0, tz).date()


def at_time_of_day(day, time_of_day, tz=None):
    """Epoch milliseconds of a wall-clock time on the given date."""
    tz = tz or get_timezone()
    local = tz.localize(datetime.combine(day, time_of_day))
    return int(local.timestamp() * 1000)


def add_minutes(instant_ms, minutes):
    return instant_ms + int(timedelta(minutes=minutes).total_seconds() * 1000)


def time_of_day_str(instant_ms, tz=None):
    tz = tz or get_timezone()
    return datetime.fromtimestamp(instant_ms / 1000.0, tz).strftime("%H:%M:%S")


class ClockSource:
    """Real time plus a signed, accumulated offset in milliseconds."""

    def __init__(self, real_time_fn=None):
        self._real_time_fn = real_time_fn or real_time_ms
        self._offset_ms = 0
        self._lock = threading.Lock()

    @property
    def offset_ms(self):
        with self._lock:
            return self._offset_ms

    def real_now(self):
        return int(self._real_time_fn())

    def now(self):
        """Returns simulated now: a fresh real-time sample plus the offset."""
        with self._lock:
            offset = self._offset_ms
        return self.real_now() + offset

    def set_offset(self, offset_ms):
        with self._lock:
            self._offset_ms = int(offset_ms)
            return self._offset_ms

    def shift(self, delta_ms):
        with self._lock:
            self._offset_ms += int(delta_ms)
            return self._offset_ms

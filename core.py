import logging
import threading

import clock
import config
import resolver
import schedule
from notifier import OvertimeNotifier
from time_travel import TimeTravelController

LOGGER = logging.getLogger(__name__)


# --- Display Helpers ---

def format_time(ms):
    """Formats a millisecond span as MM:SS (sign dropped, minutes not wrapped)."""
    total_seconds = abs(int(ms)) // 1000
    return f"{total_seconds // 60:02d}:{total_seconds % 60:02d}"


def get_running_color(segment):
    """Traffic-light colour for the active item."""
    if segment.active_item is None:
        return 'STOPPED'
    if segment.is_overtime:
        return 'RED'
    if segment.time_left_ms <= config.AMBER_THRESHOLD_MS:
        return 'AMBER'
    return 'GREEN'


def _item_dict(item):
    return item.to_dict() if item is not None else None


class TimerCore:
    """
    Owns the schedule, the clock offset and the overtime latch, and
    recomputes the segment state on every tick or change.
    """

    def __init__(self, clock_source=None, tz=None, on_overtime=None,
                 tick_interval=config.TICK_INTERVAL_SECONDS):
        self.tz = tz or clock.get_timezone()
        self.clock = clock_source or clock.ClockSource()
        self.store = schedule.ScheduleStore()
        self.travel = TimeTravelController(self.clock, self.tz)
        self.notifier = OvertimeNotifier(self._notify_overtime)
        self.tick_interval = tick_interval
        self.chime_count = 0
        self._extra_on_overtime = on_overtime
        self._lock = threading.RLock()
        self._last_state = resolver.EMPTY_STATE
        self._last_instant = self.clock.now()
        self._stop = threading.Event()
        self._thread = None

    # --- Recompute ---

    def tick(self):
        """Resolves the schedule at simulated now and feeds the overtime latch."""
        with self._lock:
            instant = self.clock.now()
            # Item times stay anchored to the real calendar day.
            day = clock.anchor_day(self.clock.real_now(), self.tz)
            state = resolver.resolve(self.store.items, instant, day=day, tz=self.tz)
            self.notifier.observe(state)
            self._last_state = state
            self._last_instant = instant
            return state

    def state(self):
        return self._last_state

    def _notify_overtime(self):
        self.chime_count += 1
        if self._extra_on_overtime is not None:
            self._extra_on_overtime()

    # --- Tick loop ---

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='timer-tick', daemon=True)
        self._thread.start()
        LOGGER.info("Tick loop started (every %.1fs)", self.tick_interval)

    def _run(self):
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception:
                LOGGER.exception("Tick failed; retrying on the next tick")
            self._stop.wait(self.tick_interval)

    def stop(self):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.tick_interval * 2)
            self._thread = None
        LOGGER.info("Tick loop stopped")

    # --- Schedule actions ---

    def load_schedule(self, items):
        with self._lock:
            snapshot = self.store.replace(items)
            LOGGER.info("Schedule replaced with %d item(s)", len(snapshot))
            self.tick()
        return snapshot

    def clear_schedule(self):
        with self._lock:
            self.store.clear()
            LOGGER.info("Schedule cleared")
            self.tick()
        return ()

    def ingest_text(self, text, session=None):
        return self.load_schedule(schedule.parse_schedule_from_text(text, session=session))

    def ingest_url(self, url, session=None):
        text = schedule.fetch_schedule_text(url, session=session)
        return self.ingest_text(text, session=session)

    def ingest_file(self, path):
        return self.load_schedule(schedule.load_schedule_file(path))

    def load_sample(self):
        return self.load_schedule(schedule.build_schedule(config.SAMPLE_SCHEDULE))

    def get_item(self, item_id):
        return self.store.find(item_id)

    # --- Time travel actions ---

    def adjust_time(self, minutes):
        self.travel.adjust_by(minutes)
        return self.tick()

    def reset_offset(self):
        self.travel.reset_offset()
        return self.tick()

    def jump_to_item(self, item):
        self.travel.jump_to_item_start(item)
        return self.tick()

    def jump_to_near_end(self, item=None):
        """
        Moves to just before the end of ``item`` (default: the active item).
        Raises KeyError if ``item`` is no longer in the loaded schedule.
        """
        with self._lock:
            if item is not None:
                current = self.store.find(item.id)
                if current is None:
                    raise KeyError(item.id)
                item = current
            else:
                item = self.tick().active_item
            if item is None:
                return None
            self.travel.jump_to_near_end(item, self.store.items)
            return self.tick()

    # --- Display feed ---

    def get_timer_state_details(self):
        segment = self._last_state
        offset = self.clock.offset_ms
        time_left = segment.time_left_ms
        return {
            'active_item': _item_dict(segment.active_item),
            'next_item': _item_dict(segment.next_item),
            'progress': segment.progress,
            'time_left_ms': time_left,
            'is_overtime': segment.is_overtime,
            'total_duration_ms': segment.total_duration_ms,
            'status': segment.status,
            'color': get_running_color(segment),
            'display_time': ('+' if segment.is_overtime else '') + format_time(time_left),
            'offset_ms': offset,
            'offset_minutes': round(offset / 60000),
            'simulated_time_of_day': clock.time_of_day_str(self._last_instant, self.tz),
            'chime_count': self.chime_count,
        }

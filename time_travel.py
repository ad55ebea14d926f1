"""Operator controls that move simulated time around the schedule."""
import logging

import clock
import config
import resolver

LOGGER = logging.getLogger(__name__)

MS_PER_MINUTE = 60 * 1000


class TimeTravelController:
    """Mutates only the clock offset; never touches the schedule."""

    def __init__(self, clock_source, tz=None):
        self.clock = clock_source
        self.tz = tz or clock.get_timezone()

    def adjust_by(self, delta_minutes):
        offset = self.clock.shift(int(delta_minutes) * MS_PER_MINUTE)
        LOGGER.info("Time adjusted by %+d min (offset now %d ms)", delta_minutes, offset)
        return offset

    def reset_offset(self):
        LOGGER.info("Time offset reset")
        return self.clock.set_offset(0)

    def _align(self, target_ms, real_now):
        # offset = target - real, so simulated now lands exactly on target
        return self.clock.set_offset(target_ms - real_now)

    def jump_to_item_start(self, item):
        real_now = self.clock.real_now()
        day = clock.anchor_day(real_now, self.tz)
        start = clock.at_time_of_day(day, item.start_time, self.tz)
        LOGGER.info("Jumping to start of %r", item.title)
        return self._align(start, real_now)

    def jump_to_near_end(self, item, items):
        """Lands NEAR_END_LEAD_MS before the item's effective end within ``items``."""
        real_now = self.clock.real_now()
        day = clock.anchor_day(real_now, self.tz)
        ordered = resolver.sort_items(items)
        end = resolver.effective_end(ordered, resolver.find_index(ordered, item), day, self.tz)
        LOGGER.info("Jumping to %d ms before end of %r", config.NEAR_END_LEAD_MS, item.title)
        return self._align(end - config.NEAR_END_LEAD_MS, real_now)

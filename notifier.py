import logging
import threading

LOGGER = logging.getLogger(__name__)

NORMAL = 'NORMAL'
NOTIFIED = 'NOTIFIED'


class OvertimeNotifier:
    """
    Two-state latch around the overtime flag.

    The callback runs once on the NORMAL -> NOTIFIED edge; any non-overtime
    observation re-arms the latch for the next overrun.
    """

    def __init__(self, on_overtime=None):
        self.on_overtime = on_overtime
        self.state = NORMAL
        self._lock = threading.Lock()

    @property
    def has_fired(self):
        return self.state == NOTIFIED

    def observe(self, segment_state):
        """Feeds one resolver result; returns True if the notification fired."""
        with self._lock:
            if not segment_state.is_overtime:
                self.state = NORMAL
                return False
            if self.state == NOTIFIED:
                return False
            self.state = NOTIFIED

        active = segment_state.active_item
        LOGGER.info("Overtime reached for %r", active.title if active else None)
        if self.on_overtime is not None:
            try:
                self.on_overtime()
            except Exception:
                LOGGER.exception("Overtime notification failed")
        return True

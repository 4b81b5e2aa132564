# scheduler.py
# Self-rescheduling interval task: one handler run in flight or pending at a time.

import logging
import threading
from typing import Any, Callable, Optional

from .errors import SchedulerConfigError
from .logger import format_error

Handler = Callable[[Any], None]


def daemon_timer(delay: float, fn: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    return timer


class IntervalTask:
    """
    Runs `handler(context)` after `start_delay` seconds, then again `interval`
    seconds after each run completes, whether it succeeded or raised.

    The next run is only scheduled once the current one has finished, so a task
    never overlaps with itself. `timer_factory(delay, fn)` must return an object
    with start() and cancel(); tests swap in a manual timer.
    """
    def __init__(self, start_delay: float, interval: float, name: str, context: Any, handler: Handler,
                 timer_factory: Callable[[float, Callable[[], None]], Any] = daemon_timer,
                 logger: Optional[logging.Logger] = None):
        if start_delay <= 0 or interval <= 0:
            raise SchedulerConfigError("invalid arg, start delay and interval should be greater than 0")
        self.name = name
        self.start_delay = start_delay
        self.interval = interval
        self.context = context
        self.handler = handler
        self._timer_factory = timer_factory
        self._timer = None
        self._generation = 0   # identifies the current timer; older timers are stale
        self._in_flight = False
        self._lock = threading.Lock()
        self._stopped = True
        self.logger = logger or logging.getLogger(__name__)

    @property
    def running(self) -> bool:
        return not self._stopped

    def start(self):
        with self._lock:
            if not self._stopped:
                return
            self._stopped = False
            # A run still executing from before a stop reschedules itself when it finishes.
            if not self._in_flight and self._timer is None:
                self._schedule(self.start_delay)
        self.logger.info(f'task "{self.name}" started')

    def stop(self) -> bool:
        """Stops the task and cancels a pending run. A run already executing is not interrupted."""
        with self._lock:
            if self._stopped and self._timer is None:
                return True
            self._stopped = True
            self._generation += 1
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        self.logger.info(f'task "{self.name}" stopped')
        return True

    def _schedule(self, delay: float):
        # Caller holds self._lock.
        self._generation += 1
        generation = self._generation
        self._timer = self._timer_factory(delay, lambda: self._run(generation))
        self._timer.start()

    def _run(self, generation: int):
        with self._lock:
            if self._stopped or generation != self._generation or self._in_flight:
                return
            self._timer = None
            self._in_flight = True
        try:
            self.handler(self.context)
        except Exception as e:
            self.logger.error(f'unexpected exception running task "{self.name}", {format_error(e)}')
        finally:
            with self._lock:
                self._in_flight = False
                if not self._stopped and self._timer is None:
                    self._schedule(self.interval)


def make_interval_task(start_delay: float, interval: float, name: str, context: Any, handler: Handler,
                       **kwargs) -> IntervalTask:
    """Validates the arguments and returns a not yet started IntervalTask."""
    logging.getLogger(__name__).info(f'create task: "{name}"')
    return IntervalTask(start_delay, interval, name, context, handler, **kwargs)

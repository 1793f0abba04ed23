"""Run a handler periodically or once a day at a fixed UTC hour."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

INTERVAL_MINUTE = 60.0
INTERVAL_DAILY = 24 * 60 * 60.0

_POLL = 0.05


class InvalidSchedulerConfigError(ValueError):
    """Raised when a scheduler is missing a required setting."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"{detail}: invalid scheduler config")
        self.detail = detail


def _seconds(value: float | timedelta) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class Scheduler:
    """Calls ``handler`` every ``interval`` seconds, or daily at ``target_hour`` UTC.

    The scheduler runs until ``stop_event`` is set or :meth:`stop` is called.
    Exceptions raised by the handler are logged and do not stop it.
    """

    def __init__(
        self,
        handler: Callable[[], Any] | None = None,
        interval: float | timedelta | None = None,
        logger: logging.Logger | None = None,
        stop_event: threading.Event | None = None,
        target_hour: int | None = None,
        initial_delay: float | timedelta = 0.0,
    ) -> None:
        self.handler = handler
        self.interval = 0.0 if interval is None else _seconds(interval)
        self.logger = logger
        self.stop_event = stop_event
        self.target_hour = -1 if target_hour is None else int(target_hour)
        self.initial_delay = _seconds(initial_delay)
        self._halted = threading.Event()
        self.validate()

    def validate(self) -> None:
        """Raise :class:`InvalidSchedulerConfigError` if a setting is missing."""
        if self.stop_event is None:
            raise InvalidSchedulerConfigError("stop_event cannot be None")
        if self.logger is None:
            raise InvalidSchedulerConfigError("logger cannot be None")
        if self.interval <= 0:
            raise InvalidSchedulerConfigError("interval must be positive")
        if self.handler is None:
            raise InvalidSchedulerConfigError("handler cannot be None")

    def start(self) -> None:
        """Start running in a background thread."""
        self.validate()
        self._halted.clear()
        target = self._run_at_target_hour if self.target_hour >= 0 else self._run_at_interval
        threading.Thread(target=target, name="scheduler", daemon=True).start()

    def stop(self) -> None:
        """Stop further runs of the handler."""
        self._halted.set()

    def _wait(self, delay: float) -> bool:
        """Sleep ``delay`` seconds; return False if cancelled meanwhile."""
        deadline = time.monotonic() + max(delay, 0.0)
        while not self._halted.is_set() and not self.stop_event.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return True
            if self.stop_event.wait(min(remaining, _POLL)):
                return False
        return False

    def _invoke(self) -> None:
        try:
            self.handler()
        except Exception as exc:
            self.logger.error(
                "scheduler handler error interval=%s error=%s", self.interval, exc
            )

    def _run_at_interval(self) -> None:
        next_tick = time.monotonic() + self.interval

        if self.initial_delay > 0:
            self.logger.info(
                "scheduler started with initial delay delay=%s interval=%s",
                self.initial_delay,
                self.interval,
            )
            if not self._wait(self.initial_delay):
                return
            self.logger.info("scheduler initial tick firing")
            self._invoke()

        while True:
            if not self._wait(next_tick - time.monotonic()):
                return
            self._invoke()
            next_tick += self.interval
            now = time.monotonic()
            if next_tick <= now:
                missed = (now - next_tick) // self.interval + 1
                next_tick += missed * self.interval

    def _run_at_target_hour(self) -> None:
        while True:
            now = datetime.now(timezone.utc)
            midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
            target = midnight + timedelta(hours=self.target_hour)
            if now > target:
                target += timedelta(days=1)
            delay = (target - now).total_seconds()

            self.logger.info(
                "scheduler waiting for target hour target=%s delay=%s",
                target.isoformat(),
                timedelta(seconds=delay),
            )
            if not self._wait(delay):
                return
            self.logger.info("scheduler firing at target hour")
            self._invoke()
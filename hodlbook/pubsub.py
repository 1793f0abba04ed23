"""A minimal topic publisher/subscriber over a thread-safe queue."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from typing import Any

_POLL = 0.05

_default_logger = logging.getLogger(__name__)


class InvalidPubSubConfigError(ValueError):
    """Raised when a pub/sub endpoint is missing a required setting."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"{detail}: invalid pubsub config")
        self.detail = detail


class PubSubCancelledError(Exception):
    """Raised when publishing is abandoned because the cancel event is set."""


class PubSub:
    """Publishes payloads to a queue and consumes them with a handler."""

    def __init__(
        self,
        topic: str = "",
        channel: queue.Queue[bytes] | None = None,
        cancel_event: threading.Event | None = None,
        logger: logging.Logger | None = None,
        handler: Callable[[bytes], Any] | None = None,
    ) -> None:
        self.topic = topic
        self.channel = channel
        self.cancel_event = cancel_event
        self.logger = logger
        self.handler = handler

    def validate(self) -> None:
        """Raise :class:`InvalidPubSubConfigError` if a setting is missing."""
        if self.cancel_event is None:
            raise InvalidPubSubConfigError("cancel_event cannot be None")
        if self.logger is None:
            raise InvalidPubSubConfigError("logger cannot be None")
        if not self.topic:
            raise InvalidPubSubConfigError("topic cannot be empty")
        if self.channel is None:
            raise InvalidPubSubConfigError("channel cannot be None")

    def _require_wiring(self) -> None:
        if self.cancel_event is None:
            raise InvalidPubSubConfigError("cancel_event cannot be None")
        if self.channel is None:
            raise InvalidPubSubConfigError("channel cannot be None")

    def publish(self, payload: bytes) -> None:
        """Put ``payload`` on the channel, waiting for room until cancelled."""
        self._require_wiring()
        while True:
            if self.cancel_event.is_set():
                raise PubSubCancelledError(f"publish to {self.topic!r} cancelled")
            try:
                self.channel.put(payload, timeout=_POLL)
                return
            except queue.Full:
                continue

    def subscribe(self) -> None:
        """Start consuming messages in a background thread."""
        if self.handler is None:
            raise InvalidPubSubConfigError("handler cannot be None")
        self._require_wiring()
        threading.Thread(target=self._consume, name=f"pubsub-{self.topic}", daemon=True).start()

    def _consume(self) -> None:
        logger = self.logger or _default_logger
        while not self.cancel_event.is_set():
            try:
                message = self.channel.get(timeout=_POLL)
            except queue.Empty:
                continue
            try:
                self.handler(message)
            except Exception as exc:
                logger.error("pubsub handler error topic=%s error=%s", self.topic, exc)
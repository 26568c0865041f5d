"""Bridge between Firestore watch streams and the asyncio event loop.

Firestore delivers snapshots on a background thread owned by the watch.
Records are parsed on that thread and then handed to the owning loop with
call_soon_threadsafe, so listener callbacks always run on the loop thread.

The watch never reports a failed stream to its callback; it just stops.
A loop-side watchdog polls the stream and delivers ListenerStoppedError
once it is no longer active.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SnapshotCallback = Callable[[T | None, Exception | None], None]

WATCHDOG_INTERVAL_SECONDS = 5.0


class ListenerStoppedError(Exception):
    """A watch stream ended while its listener was still registered."""

    def __init__(self, name: str) -> None:
        super().__init__("Realtime listener stopped")
        self.name = name


class ListenerRegistration:
    """Handle for an active snapshot listener.

    remove() is idempotent; deliveries queued before removal are dropped.
    With a loop, the blocking unsubscribe runs in the loop's default executor.
    """

    def __init__(self, name: str, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.name = name
        self._loop = loop
        self._watch: Any = None
        self._removed = False
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return not self._removed

    def attach(self, watch: Any) -> None:
        """Attach the underlying Watch once on_snapshot has returned it."""
        with self._lock:
            if not self._removed:
                self._watch = watch
                return
        # Removed before the watch finished starting
        self._stop(watch)

    def remove(self) -> None:
        """Stop the watch stream and drop further deliveries."""
        with self._lock:
            if self._removed:
                return
            self._removed = True
            watch, self._watch = self._watch, None

        if watch is not None:
            self._stop(watch)
        logger.debug("Removed listener %s", self.name)

    def _stop(self, watch: Any) -> None:
        # unsubscribe() joins the watch consumer thread
        if self._loop is not None and not self._loop.is_closed():
            try:
                self._loop.run_in_executor(None, self._unsubscribe, watch)
                return
            except RuntimeError:
                logger.debug("Executor unavailable, stopping %s inline", self.name)
        self._unsubscribe(watch)

    def _unsubscribe(self, watch: Any) -> None:
        try:
            watch.unsubscribe()
        except Exception as e:
            logger.warning("Failed to unsubscribe listener %s: %s", self.name, e)


class SnapshotBridge(Generic[T]):
    """Parses watch snapshots and delivers them on the event loop."""

    def __init__(
        self,
        registration: ListenerRegistration,
        parse: Callable[[list[Any]], T],
        callback: SnapshotCallback,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self.registration = registration
        self._parse = parse
        self._callback = callback
        self._loop = loop

    def on_snapshot(self, snapshots: list[Any], changes: Any, read_time: Any) -> None:
        """Watch callback, invoked on the watch thread."""
        if not self.registration.active:
            return

        try:
            value, error = self._parse(snapshots), None
        except Exception as e:
            logger.error(
                "Failed to parse snapshot for %s: %s", self.registration.name, e
            )
            value, error = None, e

        try:
            self._loop.call_soon_threadsafe(self._deliver, value, error)
        except RuntimeError:
            logger.warning(
                "Event loop closed, dropping snapshot for %s", self.registration.name
            )

    def _deliver(self, value: T | None, error: Exception | None) -> None:
        """Run the listener callback on the loop thread."""
        if not self.registration.active:
            return
        try:
            self._callback(value, error)
        except Exception:
            logger.exception("Listener callback failed for %s", self.registration.name)

    def supervise(self, stream: Any, interval: float) -> None:
        """Check the stream every interval seconds until it stops or is removed."""

        def check() -> None:
            if not self.registration.active:
                return
            if stream.is_active:
                self._loop.call_later(interval, check)
                return
            logger.error("Listener %s stopped unexpectedly", self.registration.name)
            self._deliver(None, ListenerStoppedError(self.registration.name))

        self._loop.call_later(interval, check)


def watch(
    target: Any,
    name: str,
    parse: Callable[[list[Any]], T],
    callback: SnapshotCallback,
    loop: asyncio.AbstractEventLoop | None = None,
    check_interval: float = WATCHDOG_INTERVAL_SECONDS,
) -> ListenerRegistration:
    """Subscribe to a document reference or query.

    Args:
        target: Sync DocumentReference or Query exposing on_snapshot
        name: Label used in logs
        parse: Maps the list of DocumentSnapshots to a value
        callback: Receives (value, error) on the event loop thread
        loop: Loop to deliver on (defaults to the running loop)
        check_interval: Seconds between watchdog checks of the stream

    Returns:
        ListenerRegistration to remove the listener
    """
    loop = loop or asyncio.get_running_loop()
    registration = ListenerRegistration(name, loop)
    bridge = SnapshotBridge(registration, parse, callback, loop)
    stream = target.on_snapshot(bridge.on_snapshot)
    registration.attach(stream)
    bridge.supervise(stream, check_interval)
    logger.debug("Added listener %s", name)
    return registration

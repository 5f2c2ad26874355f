"""Server lifecycle state management."""

import logging
import threading

from httpd.domain.correlation_id import CorrelationLoggerAdapter

LIFECYCLE_LOGGER = CorrelationLoggerAdapter(logging.getLogger("httpd.lifecycle"), {})


class ServerLifecycle:
    """Stop flag plus the connections still being served.

    Workers are registered by the accept loop before their thread starts, so
    a stop that races a fresh accept still waits for that connection.
    """

    def __init__(self) -> None:
        self._stop_event = threading.Event()
        self._changed = threading.Condition()
        self._in_flight: dict[threading.Thread, str] = {}

    def should_stop(self) -> bool:
        """Check if the server should stop accepting new connections."""
        return self._stop_event.is_set()

    def request_stop(self) -> None:
        """Stop accepting connections; in-flight workers run to completion."""
        self._stop_event.set()
        LIFECYCLE_LOGGER.info("Stop requested", extra={"event": "stop_requested"})

    def register_worker(self, thread: threading.Thread, client: str) -> None:
        """Track a worker thread and the peer it serves."""
        with self._changed:
            self._in_flight[thread] = client

    def cleanup_worker(self, thread: threading.Thread) -> None:
        """Forget a finished worker and wake anyone waiting on shutdown."""
        with self._changed:
            self._in_flight.pop(thread, None)
            self._changed.notify_all()

    def in_flight_clients(self) -> list[str]:
        """Peers of the connections not yet finished, sorted."""
        with self._changed:
            return sorted(self._in_flight.values())

    def wait_for_workers(self, timeout: float) -> bool:
        """Block until every registered worker has finished or timeout passes.

        Returns False, after logging the peers still connected, on timeout.
        """
        with self._changed:
            drained = self._changed.wait_for(lambda: not self._in_flight, timeout)
            stragglers = sorted(self._in_flight.values())
        if not drained:
            LIFECYCLE_LOGGER.warning(
                "Shutdown timeout exceeded",
                extra={
                    "event": "shutdown_timeout",
                    "remaining_workers": len(stragglers),
                    "clients": stragglers,
                },
            )
        return drained

"""Worker thread logic for handling a single client connection."""

import logging
import socket
import threading
import time
from typing import Optional

from httpd.bootstrap.config import DEFAULT_MAX_LINE_BYTES
from httpd.domain.correlation_id import (
    CorrelationLoggerAdapter,
    bind_connection,
    release_connection,
)
from httpd.domain.http_types import expects_headers
from httpd.lifecycle.state import ServerLifecycle
from httpd.pipeline.io import read_request, send_response
from httpd.pipeline.router import route_request
from httpd.pipeline.validation import MalformedRequest
from httpd.transport.context import WorkerContext

WORKER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("httpd.transport.worker"), {})


def _serve_one_request(client_socket: socket.socket, context: WorkerContext) -> None:
    """Read at most one request from the connection and answer it."""
    max_line_bytes = (
        context.config.max_line_bytes
        if context.config is not None
        else DEFAULT_MAX_LINE_BYTES
    )
    started_ns = time.monotonic_ns()

    with client_socket.makefile("rb") as reader:
        try:
            request = read_request(reader, max_line_bytes)
        except MalformedRequest as error:
            WORKER_LOGGER.warning(
                "Malformed request dropped",
                extra={"event": "malformed_request", "error": str(error)},
            )
            return

    if request is None:
        if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            WORKER_LOGGER.debug(
                "Client closed without sending a request",
                extra={"event": "no_request"},
            )
        return

    response = route_request(request, context.document_root)
    bytes_out = send_response(
        client_socket, response, expects_headers(request.version)
    )
    WORKER_LOGGER.info(
        "Request complete",
        extra={
            "event": "request_complete",
            "method": request.method,
            "route": request.path,
            "status_code": response.status_code,
            "bytes_out": bytes_out,
            "duration_ms": round((time.monotonic_ns() - started_ns) / 1_000_000, 3),
        },
    )


def _close_connection(
    client_socket: socket.socket, lifecycle: Optional[ServerLifecycle]
) -> None:
    try:
        client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    client_socket.close()
    WORKER_LOGGER.debug("Socket closed", extra={"event": "socket_closed"})

    if lifecycle is not None:
        lifecycle.cleanup_worker(threading.current_thread())
    release_connection()


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Answer one request on the connection, then close it whatever happens."""
    bind_connection(client_address)

    try:
        if context.config is not None:
            client_socket.settimeout(context.config.socket_timeout)
        WORKER_LOGGER.debug(
            "Connection processing started", extra={"event": "connection_started"}
        )
        _serve_one_request(client_socket, context)
    except (
        ConnectionError,
        TimeoutError,
        OSError,
        UnicodeDecodeError,
    ) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={"event": "connection_error", "error_type": type(error).__name__},
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
    finally:
        _close_connection(client_socket, context.lifecycle)

"""Main connection acceptance loop."""

import argparse
import logging
import socket
import threading

from httpd.bootstrap.config import ServerConfig
from httpd.bootstrap.socket_factory import create_server_socket
from httpd.domain.correlation_id import CorrelationLoggerAdapter, format_client
from httpd.lifecycle.state import ServerLifecycle
from httpd.transport.context import WorkerContext
from httpd.transport.worker import handle_client

ACCEPT_LOGGER = CorrelationLoggerAdapter(logging.getLogger("httpd.transport.accept"), {})


def _start_worker(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    handler_context: WorkerContext,
) -> None:
    """Hand an accepted connection to its own worker thread."""
    client = format_client(client_address)
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={"event": "client_accepted", "client": client},
        )
    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, handler_context),
        daemon=False,
    )
    lifecycle = handler_context.lifecycle
    if lifecycle is not None:
        lifecycle.register_worker(thread, client)
    try:
        thread.start()
    except RuntimeError as error:
        if lifecycle is not None:
            lifecycle.cleanup_worker(thread)
        client_socket.close()
        ACCEPT_LOGGER.error(
            "Worker thread could not be started",
            extra={
                "event": "worker_start_failed",
                "client": client,
                "error_type": type(error).__name__,
            },
        )


def run_server(
    args: argparse.Namespace, config: ServerConfig, lifecycle: ServerLifecycle
) -> None:
    """Accept connections until a stop is requested, then wait for workers."""

    server_socket = create_server_socket(args.host, args.port)

    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": args.host,
            "port": args.port,
            "directory": str(args.directory),
        },
    )

    handler_context = WorkerContext(
        document_root=args.directory,
        config=config,
        lifecycle=lifecycle,
    )

    try:
        while not lifecycle.should_stop():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            _start_worker(client_socket, client_address, handler_context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "grace_seconds": config.shutdown_grace_seconds,
                "remaining_workers": len(lifecycle.in_flight_clients()),
            },
        )
        lifecycle.wait_for_workers(config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})

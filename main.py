"""Static file HTTP server: one GET request per connection."""

import logging
import signal
import sys
from typing import Optional

from httpd.bootstrap.config import build_server_config, parse_cli_args
from httpd.bootstrap.logging_setup import configure_logging
from httpd.domain.correlation_id import CorrelationLoggerAdapter
from httpd.lifecycle.state import ServerLifecycle
from httpd.transport.accept_loop import run_server

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("httpd.server"), {})


def main(argv: Optional[list[str]] = None) -> None:
    """Start the HTTP server and spawn a worker thread per connection."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(
        args.log_level, args.log_destination, use_json=args.log_format == "json"
    )

    config = build_server_config(args)
    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "shutdown_signal", "signal": signum},
        )
        lifecycle.request_stop()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "directory": str(args.directory),
            "log_level": args.log_level,
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    run_server(args, config, lifecycle)


if __name__ == "__main__":
    main()

"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value else default


DEFAULT_SOCKET_TIMEOUT = _env_int("HTTPD_SOCKET_TIMEOUT", 30)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("HTTPD_SHUTDOWN_GRACE_SECONDS", 10)
DEFAULT_MAX_LINE_BYTES = _env_int("HTTPD_MAX_LINE_BYTES", 8192)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_FORMATS = ["json", "text"]


@dataclass
class ServerConfig:
    """Runtime settings shared by the accept loop and the workers."""

    socket_timeout: int
    shutdown_grace_seconds: int
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES


def document_root(value: str) -> Path:
    """Argparse type that accepts only an existing directory."""
    path = Path(value).resolve()
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"{value!r} is not a directory")
    return path


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Static file HTTP server")
    parser.add_argument(
        "--directory",
        type=document_root,
        default=".",
        help="Document root to serve files from",
    )
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    default_log_level = os.getenv("HTTPD_LOG_LEVEL", "INFO").upper()
    default_destination = _env_str("HTTPD_LOG_DESTINATION", "stdout")
    default_log_format = _env_str("HTTPD_LOG_FORMAT", "json").lower()
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=LOG_LEVELS,
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=default_log_format,
        choices=LOG_FORMATS,
        type=str.lower,
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Socket timeout in seconds for a single connection",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Seconds to wait for in-flight connections on shutdown",
    )
    parser.add_argument(
        "--max-line-bytes",
        type=int,
        default=DEFAULT_MAX_LINE_BYTES,
        help="Longest request or header line accepted",
    )
    return parser.parse_args(argv)


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    """Collect the runtime settings from parsed CLI arguments."""
    return ServerConfig(
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
        max_line_bytes=args.max_line_bytes,
    )

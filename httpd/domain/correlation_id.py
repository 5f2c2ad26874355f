"""Per-connection log context.

Each worker binds a ``ConnectionTag`` (a fresh correlation id plus the peer
address) for the lifetime of its connection. Every record logged through a
``CorrelationLoggerAdapter`` on that thread carries both, so call sites only
pass what is specific to the event.
"""

import contextvars
import logging
import uuid
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional

LOGGER_PREFIX = "httpd."
NO_CONNECTION = "-"


@dataclass(frozen=True)
class ConnectionTag:
    correlation_id: str
    client: str


_connection_var: contextvars.ContextVar[Optional[ConnectionTag]] = (
    contextvars.ContextVar("connection", default=None)
)


def format_client(client_address: tuple[str, int]) -> str:
    """Render a peer address as ``host:port``."""
    return f"{client_address[0]}:{client_address[1]}"


def bind_connection(client_address: tuple[str, int]) -> ConnectionTag:
    """Start a log context for a newly accepted connection."""
    tag = ConnectionTag(str(uuid.uuid4()), format_client(client_address))
    _connection_var.set(tag)
    return tag


def current_connection() -> Optional[ConnectionTag]:
    return _connection_var.get()


def get_correlation_id() -> Optional[str]:
    tag = _connection_var.get()
    return tag.correlation_id if tag is not None else None


def release_connection() -> None:
    _connection_var.set(None)


def component_name(logger_name: str) -> str:
    """``httpd.transport.worker`` -> ``transport.worker``; foreign names pass through."""
    if logger_name.startswith(LOGGER_PREFIX):
        return logger_name[len(LOGGER_PREFIX) :]
    return logger_name


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Stamps records with the bound connection and the emitting component.

    An explicit ``client`` extra wins over the bound one, which lets the
    accept loop name a peer before any worker has bound it.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        tag = current_connection()
        if tag is None:
            extra["correlation_id"] = NO_CONNECTION
        else:
            extra["correlation_id"] = tag.correlation_id
            extra.setdefault("client", tag.client)
        extra["component"] = component_name(self.logger.name)
        kwargs["extra"] = extra
        return msg, kwargs

"""Shared HTTP type definitions."""

from dataclasses import dataclass, field

VERSION_PREFIX = "HTTP/"


@dataclass
class HttpRequest:
    """A parsed request line plus its raw, uninterpreted header lines."""

    method: str
    path: str
    version: str
    headers: list[str] = field(default_factory=list)

    def add_header(self, line: str) -> None:
        """Append a raw header line; headers are never interpreted."""
        self.headers.append(line)


@dataclass
class HttpResponse:
    """Represents an HTTP response to be sent to a client."""

    status_line: str
    headers: dict[str, str]
    body: bytes

    @property
    def status_code(self) -> int:
        """Numeric code parsed from the status line."""
        return int(self.status_line.split(" ", 2)[1])


def expects_headers(version: str) -> bool:
    """Versioned requests get a status line and headers, simple ones only a body."""
    return version.startswith(VERSION_PREFIX)

"""HTTP Input/Output operations."""

import logging
import socket
from typing import BinaryIO, Optional

from httpd.bootstrap.config import DEFAULT_MAX_LINE_BYTES
from httpd.domain.correlation_id import CorrelationLoggerAdapter
from httpd.domain.http_types import HttpRequest, HttpResponse
from httpd.pipeline.validation import MalformedRequest, new_request

IO_LOGGER = CorrelationLoggerAdapter(logging.getLogger("httpd.io"), {})

CRLF = "\r\n"
LINE_ENCODING = "iso-8859-1"


def _decode_line(raw: bytes) -> str:
    return raw.decode(LINE_ENCODING).rstrip("\r\n")


def _discard_rest_of_line(reader: BinaryIO, chunk_bytes: int) -> None:
    """Consume the remainder of an over-long line without buffering it."""
    while True:
        raw = reader.readline(chunk_bytes)
        if not raw or raw.endswith(b"\n"):
            return


def read_request(
    reader: BinaryIO, max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
) -> Optional[HttpRequest]:
    """Read a request line and its header lines from the connection.

    Returns None when the peer closed the stream before sending a line.
    Header lines are kept verbatim; a blank line or end of stream ends them.
    A header line over the limit is skipped, the request is still returned.
    Raises MalformedRequest when the request line cannot be split or is
    longer than max_line_bytes.
    """
    raw = reader.readline(max_line_bytes + 1)
    if not raw:
        return None
    if len(raw) > max_line_bytes:
        raise MalformedRequest(f"Request line exceeds {max_line_bytes} bytes")

    request = new_request(_decode_line(raw))
    while True:
        raw = reader.readline(max_line_bytes + 1)
        if not raw:
            break
        if len(raw) > max_line_bytes:
            if not raw.endswith(b"\n"):
                _discard_rest_of_line(reader, max_line_bytes)
            IO_LOGGER.debug(
                "Over-long header line skipped",
                extra={"event": "header_line_skipped", "route": request.path},
            )
            continue
        line = _decode_line(raw)
        if not line.strip():
            break
        request.add_header(line)

    IO_LOGGER.debug(
        "Parsed request",
        extra={
            "method": request.method,
            "route": request.path,
            "version": request.version,
            "header_count": len(request.headers),
        },
    )
    return request


def serialize_response(response: HttpResponse, include_headers: bool) -> bytes:
    """Return the bytes on the wire, with or without the status and header block."""
    if not include_headers:
        return response.body
    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    header_block = (CRLF.join(header_lines) + CRLF + CRLF).encode(LINE_ENCODING)
    return header_block + response.body


def send_response(
    client_socket: socket.socket, response: HttpResponse, include_headers: bool
) -> int:
    """Write the response to the socket and return the number of bytes sent."""
    payload = serialize_response(response, include_headers)
    client_socket.sendall(payload)
    IO_LOGGER.debug(
        "Sent response",
        extra={"status_code": response.status_code, "bytes_out": len(payload)},
    )
    return len(payload)

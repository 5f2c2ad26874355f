"""Request line validation."""

from httpd.domain.http_types import HttpRequest


class MalformedRequest(Exception):
    """Raised when the request cannot be parsed; the connection is dropped."""


def split_request_line(request_line: str) -> tuple[str, str, str]:
    """Split a request line into method, path and version.

    Tokens are separated by single spaces and are not otherwise checked.
    Trailing empty tokens are ignored, as are tokens after the third.
    """
    tokens = request_line.split(" ")
    while tokens and not tokens[-1]:
        tokens.pop()
    if len(tokens) < 3:
        raise MalformedRequest(f"Expected 3 request line tokens, got {len(tokens)}")
    method, path, version = tokens[:3]
    if not (method and path and version):
        raise MalformedRequest("Empty token in request line")
    return method, path, version


def new_request(request_line: str) -> HttpRequest:
    """Build a request with no headers from its request line."""
    method, path, version = split_request_line(request_line)
    return HttpRequest(method, path, version)

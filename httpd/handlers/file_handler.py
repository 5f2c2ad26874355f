"""Static file serving."""

import logging
from pathlib import Path
from typing import Union

from httpd.domain.correlation_id import CorrelationLoggerAdapter
from httpd.domain.http_types import HttpRequest, HttpResponse
from httpd.domain.mime import mime_type_for
from httpd.domain.response_builders import not_found_response, ok_response
from httpd.domain.sandbox import ForbiddenPath, resolve_sandbox_path

FILE_LOGGER = CorrelationLoggerAdapter(logging.getLogger("httpd.handlers.file"), {})

INDEX_DOCUMENT = "index.html"


def expand_index(path: str) -> str:
    """Map a directory path such as '/docs/' to its index document."""
    if path.endswith("/"):
        return path + INDEX_DOCUMENT
    return path


def relative_to_root(path: str) -> str:
    """Drop the single leading slash of a request path."""
    return path[1:] if path.startswith("/") else path


def read_file(document_root: Union[str, Path], path: str) -> bytes:
    """Read a file below the document root, raising OSError or ForbiddenPath."""
    resolved_path = resolve_sandbox_path(document_root, relative_to_root(path))
    if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
        FILE_LOGGER.debug(
            "File read started",
            extra={"event": "file_read_started", "path": resolved_path.as_posix()},
        )
    return resolved_path.read_bytes()


def file_response(
    request: HttpRequest, document_root: Union[str, Path]
) -> HttpResponse:
    """Serve the requested file, or the 404 page when it cannot be read."""
    request.path = expand_index(request.path)
    try:
        content = read_file(document_root, request.path)
    except ForbiddenPath:
        FILE_LOGGER.warning(
            "Path outside document root blocked",
            extra={"event": "forbidden_path", "route": request.path},
        )
        return not_found_response()
    except OSError as error:
        FILE_LOGGER.info(
            "File not found",
            extra={
                "event": "file_not_found",
                "route": request.path,
                "error_type": type(error).__name__,
            },
        )
        return not_found_response()

    FILE_LOGGER.info(
        "File read complete",
        extra={
            "event": "file_read_complete",
            "route": request.path,
            "bytes_out": len(content),
        },
    )
    return ok_response(content, mime_type_for(request.path))

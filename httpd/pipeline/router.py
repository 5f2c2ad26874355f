"""Method dispatch."""

import logging
from pathlib import Path
from typing import Union

from httpd.domain.correlation_id import CorrelationLoggerAdapter
from httpd.domain.http_types import HttpRequest, HttpResponse
from httpd.domain.response_builders import not_implemented_response
from httpd.handlers.file_handler import file_response

ROUTER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("httpd.pipeline.router"), {})

GET_METHOD = "GET"


def route_request(
    request: HttpRequest, document_root: Union[str, Path]
) -> HttpResponse:
    """GET is served from the document root; every other method gets a 501."""
    if request.method == GET_METHOD:
        return file_response(request, document_root)

    ROUTER_LOGGER.info(
        "Method not implemented",
        extra={
            "event": "method_not_implemented",
            "method": request.method,
            "route": request.path,
        },
    )
    return not_implemented_response()

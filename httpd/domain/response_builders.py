"""Pure HTTP response builders."""

from email.utils import formatdate

from httpd.domain.http_types import HttpResponse

SERVER_ID = "Httpd 1.0"

OK_STATUS = "HTTP/1.0 200 OK"
NOT_FOUND_STATUS = "HTTP/1.0 404 File Not Found"
NOT_IMPLEMENTED_STATUS = "HTTP/1.0 501 Not Implemented"

NOT_FOUND_HTML = (
    "<HTML><HEAD><TITLE>File Not Found</TITLE></HEAD>"
    "<BODY><H1>HTTP Error 404: File Not Found</H1></BODY></HTML>"
)
NOT_IMPLEMENTED_HTML = (
    "<HTML><HEAD><TITLE>Not Implemented</TITLE></HEAD>"
    "<BODY><H1>HTTP Error 501: Not Implemented</H1></BODY></HTML>"
)


def http_date() -> str:
    """Current time as an IMF-fixdate, e.g. 'Sun, 06 Nov 1994 08:49:37 GMT'."""
    return formatdate(usegmt=True)


def _base_headers() -> dict[str, str]:
    return {"Date": http_date(), "Server": SERVER_ID}


def ok_response(content: bytes, content_type: str) -> HttpResponse:
    """Return a 200 response carrying the whole file and its exact length."""
    headers = _base_headers()
    headers["Content-length"] = str(len(content))
    headers["Content-type"] = content_type
    return HttpResponse(OK_STATUS, headers, content)


def _error_response(status_line: str, html: str) -> HttpResponse:
    # Error pages carry no Content-length; the body runs until the close.
    headers = _base_headers()
    headers["Content-type"] = "text/html"
    return HttpResponse(status_line, headers, html.encode("ascii"))


def not_found_response() -> HttpResponse:
    """Return the 404 error page."""
    return _error_response(NOT_FOUND_STATUS, NOT_FOUND_HTML)


def not_implemented_response() -> HttpResponse:
    """Return the 501 error page for any method other than GET."""
    return _error_response(NOT_IMPLEMENTED_STATUS, NOT_IMPLEMENTED_HTML)

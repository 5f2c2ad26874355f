"""Unit tests for the per-connection worker."""

import logging
import socket
import threading
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from httpd.bootstrap.config import ServerConfig
from httpd.domain.correlation_id import current_connection, get_correlation_id
from httpd.domain.response_builders import NOT_FOUND_HTML, NOT_IMPLEMENTED_HTML
from httpd.lifecycle.state import ServerLifecycle
from httpd.transport.context import WorkerContext
from httpd.transport.worker import handle_client
from tests.utils.documents import HELLO_TXT, INDEX_HTML, LARGE_BYTES
from tests.utils.http import BrokenPipeSocket, FakeSocket, parse_http_response

CLIENT = ("127.0.0.1", 54321)


@pytest.fixture(name="context")
def fixture_context(document_root: Path) -> WorkerContext:
    """Worker context serving the populated document root."""
    return WorkerContext(
        document_root=document_root,
        config=ServerConfig(socket_timeout=5, shutdown_grace_seconds=1),
        lifecycle=ServerLifecycle(),
    )


def _serve(raw_request: bytes, context: WorkerContext) -> FakeSocket:
    client = FakeSocket(raw_request)
    handle_client(client, CLIENT, context)
    return client


def _assert_closed_once(client: FakeSocket) -> None:
    assert client.close_count == 1
    assert client.shutdown_calls == [socket.SHUT_WR]
    assert all(reader.closed for reader in client.readers)


def test_get_serves_file_with_headers(context):
    client = _serve(b"GET /hello.txt HTTP/1.0\r\nHost: x\r\n\r\n", context)
    response = parse_http_response(client.sent)
    assert response.status_line == "HTTP/1.0 200 OK"
    assert response.headers["content-length"] == str(len(HELLO_TXT))
    assert response.headers["content-type"] == "text/plain"
    assert response.headers["server"] == "Httpd 1.0"
    assert "date" in response.headers
    assert response.body == HELLO_TXT
    _assert_closed_once(client)


def test_unversioned_request_gets_bare_body(context):
    client = _serve(b"GET / 0.9\r\n\r\n", context)
    assert client.sent == INDEX_HTML
    _assert_closed_once(client)


def test_unversioned_error_gets_bare_html(context):
    client = _serve(b"GET /missing.html simple\r\n\r\n", context)
    assert client.sent == NOT_FOUND_HTML.encode()


def test_missing_file_yields_404_page(context):
    client = _serve(b"GET /missing.html HTTP/1.0\r\n\r\n", context)
    response = parse_http_response(client.sent)
    assert response.status_line == "HTTP/1.0 404 File Not Found"
    assert "content-length" not in response.headers
    assert response.headers["content-type"] == "text/html"
    assert response.body == NOT_FOUND_HTML.encode()
    _assert_closed_once(client)


def test_other_methods_yield_501(context):
    client = _serve(b"POST /hello.txt HTTP/1.0\r\n\r\n", context)
    response = parse_http_response(client.sent)
    assert response.status_line == "HTTP/1.0 501 Not Implemented"
    assert response.body == NOT_IMPLEMENTED_HTML.encode()
    _assert_closed_once(client)


def test_large_file_length_is_exact(context):
    client = _serve(b"GET /large.bin HTTP/1.0\r\n\r\n", context)
    response = parse_http_response(client.sent)
    assert response.headers["content-length"] == str(len(LARGE_BYTES))
    assert response.body == LARGE_BYTES


def test_empty_connection_sends_nothing(context):
    client = _serve(b"", context)
    assert client.sent == b""
    _assert_closed_once(client)


@pytest.mark.parametrize(
    "raw_request", [b"GET\r\n\r\n", b"GET /only-path\r\n\r\n", b"\r\n"]
)
def test_malformed_request_closes_without_response(context, raw_request, caplog):
    caplog.set_level(logging.WARNING, logger="httpd")
    client = _serve(raw_request, context)
    assert client.sent == b""
    _assert_closed_once(client)
    assert any(
        getattr(record, "event", None) == "malformed_request"
        for record in caplog.records
    )


def test_large_cookie_header_does_not_lose_response(context):
    raw_request = (
        b"GET /hello.txt HTTP/1.0\r\nCookie: " + b"x" * 9000 + b"\r\n\r\n"
    )
    client = _serve(raw_request, context)
    response = parse_http_response(client.sent)
    assert response.status_line == "HTTP/1.0 200 OK"
    assert response.body == HELLO_TXT
    _assert_closed_once(client)


def test_socket_timeout_is_applied(context):
    client = _serve(b"GET / HTTP/1.0\r\n\r\n", context)
    assert client.timeout == 5


def test_write_failure_is_logged_and_socket_closed(context, caplog):
    caplog.set_level(logging.ERROR, logger="httpd")
    client = BrokenPipeSocket(b"GET / HTTP/1.0\r\n\r\n")
    handle_client(client, CLIENT, context)
    _assert_closed_once(client)
    record = next(
        r for r in caplog.records if getattr(r, "event", None) == "connection_error"
    )
    assert record.error_type == "BrokenPipeError"


def test_unexpected_error_is_logged_and_socket_closed(context, caplog):
    caplog.set_level(logging.ERROR, logger="httpd")
    client = FakeSocket(b"GET / HTTP/1.0\r\n\r\n")
    with patch(
        "httpd.transport.worker.route_request", side_effect=RuntimeError("boom")
    ):
        handle_client(client, CLIENT, context)
    assert client.sent == b""
    _assert_closed_once(client)
    record = next(
        r for r in caplog.records if getattr(r, "event", None) == "worker_error"
    )
    assert record.exc_info is not None


def test_shutdown_failure_does_not_prevent_close(context):
    client = MagicMock()
    client.makefile.return_value.__enter__.return_value.readline.return_value = b""
    client.shutdown.side_effect = OSError("not connected")
    handle_client(client, CLIENT, context)
    client.close.assert_called_once()


def test_worker_deregisters_from_lifecycle(context):
    """Registration happens in the accept loop; the worker only deregisters."""
    lifecycle = MagicMock(spec=ServerLifecycle)
    context.lifecycle = lifecycle
    _serve(b"GET / HTTP/1.0\r\n\r\n", context)
    lifecycle.register_worker.assert_not_called()
    lifecycle.cleanup_worker.assert_called_once_with(threading.current_thread())


def test_worker_wakes_shutdown_wait(context):
    lifecycle = context.lifecycle
    lifecycle.register_worker(threading.current_thread(), "127.0.0.1:54321")
    _serve(b"GET / HTTP/1.0\r\n\r\n", context)
    assert lifecycle.in_flight_clients() == []
    assert lifecycle.wait_for_workers(timeout=0)


def test_worker_logs_with_one_connection_tag(context, caplog):
    caplog.set_level(logging.DEBUG, logger="httpd")
    _serve(b"GET /hello.txt HTTP/1.0\r\n\r\n", context)

    events = {
        getattr(r, "event"): r for r in caplog.records if hasattr(r, "event")
    }
    assert {"connection_started", "request_complete", "socket_closed"} <= set(events)

    started = events["connection_started"]
    complete = events["request_complete"]
    assert started.correlation_id != "-"
    assert started.correlation_id == complete.correlation_id
    assert started.client == complete.client == "127.0.0.1:54321"
    assert events["socket_closed"].client == "127.0.0.1:54321"
    assert complete.status_code == 200
    assert complete.method == "GET"
    assert complete.route == "/hello.txt"
    assert current_connection() is None
    assert get_correlation_id() is None


def test_worker_without_config_or_lifecycle(document_root):
    client = _serve(
        b"GET /hello.txt HTTP/1.0\r\n\r\n", WorkerContext(document_root=document_root)
    )
    assert parse_http_response(client.sent).body == HELLO_TXT
    assert client.timeout is None

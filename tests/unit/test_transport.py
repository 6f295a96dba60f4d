"""
Unit tests for the HTTP transport, with a mocked requests session.
"""

import threading
from unittest import mock

import requests

from firebaserest.Transport import HttpTransport
from firebaserest.Transport import TransportResponse


def _session(status=200, text='{}', exc=None):
    session = mock.Mock()
    session.headers = {}
    if exc is not None:
        session.request.side_effect = exc
    else:
        session.request.return_value = mock.Mock(status_code=status, text=text)
    return session


def _wait_one(transport, *args, **kwargs):
    done = threading.Event()
    results = []

    def _onComplete(resp):
        results.append(resp)
        done.set()

    transport.request(*args, onComplete=_onComplete, **kwargs)
    assert done.wait(5)
    return results


def test_success():
    session = _session(200, '{"a":1}')
    transport = HttpTransport(timeout=7, session=session)
    try:
        results = _wait_one(transport, "PUT", "https://x.example.com/a.json", headers={"Content-Type": "application/json"}, body='{"a":1}')
    finally:
        transport.close()

    assert len(results) == 1
    assert results[0].completed
    assert results[0].isSuccess
    assert results[0].statusCode == 200
    assert results[0].body == '{"a":1}'

    args, kwargs = session.request.call_args
    assert args == ("PUT", "https://x.example.com/a.json")
    assert kwargs["data"] == b'{"a":1}'
    assert kwargs["timeout"] == 7
    assert session.headers["User-Agent"].startswith("firebaserest-py/")


def test_timeout_override():
    session = _session()
    transport = HttpTransport(timeout=15, session=session)
    try:
        _wait_one(transport, "GET", "https://time.example.com/", timeout=5)
    finally:
        transport.close()
    assert session.request.call_args[1]["timeout"] == 5


def test_http_error_is_completed():
    transport = HttpTransport(session=_session(404, 'null'))
    try:
        results = _wait_one(transport, "GET", "https://x.example.com/")
    finally:
        transport.close()
    assert results[0].completed
    assert not results[0].isSuccess
    assert results[0].statusCode == 404


def test_connection_error_not_completed(debug_messages):
    transport = HttpTransport(session=_session(exc=requests.exceptions.ConnectionError("refused")), printDebug=debug_messages.append)
    try:
        results = _wait_one(transport, "GET", "https://x.example.com/a.json?auth=SECRET")
    finally:
        transport.close()
    assert not results[0].completed
    assert results[0].statusCode == 0
    assert results[0].body == ''
    assert all("SECRET" not in m for m in debug_messages)


def test_handler_exception_is_contained(debug_messages):
    transport = HttpTransport(session=_session(), printDebug=debug_messages.append)

    def _bad(resp):
        raise ValueError("handler failed")

    try:
        transport.request("GET", "https://x.example.com/", _bad)
        results = _wait_one(transport, "GET", "https://x.example.com/")
    finally:
        transport.close()
    assert results[0].isSuccess
    assert any("handler failed" in m for m in debug_messages)


def test_closed_transport_still_completes():
    transport = HttpTransport(session=_session())
    transport.close()
    results = []
    transport.request("GET", "https://x.example.com/", results.append)
    assert len(results) == 1
    assert not results[0].completed


def test_many_concurrent_requests():
    transport = HttpTransport(maxConcurrent=4, session=_session())
    lock = threading.Lock()
    results = []
    done = threading.Event()

    def _onComplete(resp):
        with lock:
            results.append(resp)
            if len(results) == 50:
                done.set()

    try:
        for i in range(50):
            transport.request("GET", "https://x.example.com/%d.json" % i, _onComplete)
        assert done.wait(10)
    finally:
        transport.close()
    assert len(results) == 50


def test_response_repr():
    assert "404" in repr(TransportResponse(True, 404, "nope"))

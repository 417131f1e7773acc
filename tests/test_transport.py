import json
import os
import shutil
import socket
import tempfile
import threading

import pytest

from miru.transport import (
    ConnectionFailedError,
    ReadError,
    RequestDetails,
    RequestFailedError,
    Response,
    TransportError,
    build_get_request,
    build_post_request,
    build_request,
    handle_json_response,
    parse_response,
    send_request,
)

DETAILS = RequestDetails("GET", "/run/miru/miru.sock", "/v1/test", 10.0)


def _read_request(conn):
    data = b""
    while b"\r\n\r\n" not in data:
        chunk = conn.recv(4096)
        if not chunk:
            return data
        data += chunk
    head, _, body = data.partition(b"\r\n\r\n")
    length = 0
    for line in head.decode("latin-1").split("\r\n")[1:]:
        name, _, value = line.partition(":")
        if name.strip().lower() == "content-length":
            length = int(value.strip())
    while len(body) < length:
        body += conn.recv(4096)
    return head + b"\r\n\r\n" + body


@pytest.fixture
def unix_server():
    directory = tempfile.mkdtemp()
    path = os.path.join(directory, "agent.sock")
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(path)
    server.listen(1)
    received = []
    release = threading.Event()

    def serve(reply):
        conn, _ = server.accept()
        with conn:
            received.append(_read_request(conn))
            if reply is None:
                release.wait(5)
            else:
                conn.sendall(reply)

    def start(reply):
        thread = threading.Thread(target=serve, args=(reply,), daemon=True)
        thread.start()
        return thread

    yield path, start, received
    release.set()
    server.close()
    shutil.rmtree(directory)


def test_request_details_string():
    assert str(DETAILS) == (
        "GET /v1/test (timeout: 10000ms) to socket: '/run/miru/miru.sock'"
    )


def test_get_request_headers_and_bytes():
    request = build_get_request("localhost", "/v1/test")
    assert request.method == "GET"
    assert request.headers["Host"] == "localhost"
    assert "Content-Type" not in request.headers
    assert "Content-Length" not in request.headers
    wire = request.to_bytes()
    assert wire.startswith(b"GET /v1/test HTTP/1.1\r\n")
    assert b"Host: localhost\r\n" in wire
    assert wire.endswith(b"\r\n\r\n")


def test_post_request_carries_json_body():
    body = json.dumps({"format": "json", "schema": "{}"})
    request = build_post_request("localhost", "/v1/config_schemas/hash/serialized", body)
    assert request.method == "POST"
    assert request.headers["Content-Type"] == "application/json"
    assert int(request.headers["Content-Length"]) == len(body.encode("utf-8"))
    assert request.to_bytes().endswith(body.encode("utf-8"))


def test_build_request_with_empty_body_has_no_payload_headers():
    request = build_request("POST", "localhost", "/v1/x")
    assert request.body == ""
    assert "Content-Length" not in request.headers


def test_parse_response_with_content_length():
    response = parse_response(
        b'HTTP/1.1 200 OK\r\nContent-Length: 16\r\n\r\n{"digest":"abc"}'
    )
    assert response.status == 200
    assert response.reason == "OK"
    assert response.headers["content-length"] == "16"
    assert json.loads(response.body) == {"digest": "abc"}


def test_parse_response_without_length_reads_rest():
    response = parse_response(b"HTTP/1.1 200 OK\r\n\r\n[1, 2]")
    assert json.loads(response.body) == [1, 2]


@pytest.mark.parametrize(
    "data",
    [
        b"HTTP/1.1 200 OK\r\nContent-Length: 10\r\n",
        b"HTTP/1.1 200 OK\r\nContent-Length: 10\r\n\r\n{}",
        b"garbage\r\n\r\n",
        b"HTTP/1.1 200 OK\r\nbad header\r\n\r\n",
    ],
)
def test_parse_response_rejects_malformed(data):
    with pytest.raises(ValueError):
        parse_response(data)


def test_handle_json_response_ok():
    response = Response(status=200, body='{"digest": "sha256:abc"}')
    assert handle_json_response(response, DETAILS) == {"digest": "sha256:abc"}


def test_handle_json_response_failure_with_error_body():
    error_body = {
        "error": {
            "code": "not_found",
            "params": None,
            "message": "config not found",
            "debug_message": "no config",
        }
    }
    response = Response(status=404, body=json.dumps(error_body))
    with pytest.raises(RequestFailedError) as info:
        handle_json_response(response, DETAILS)
    assert info.value.status == 404
    assert info.value.details == DETAILS
    assert info.value.error_response.error.code == "not_found"
    assert info.value.error_response.error.message == "config not found"


def test_handle_json_response_failure_with_unparseable_body():
    response = Response(status=500, body="internal error")
    with pytest.raises(RequestFailedError) as info:
        handle_json_response(response, DETAILS)
    assert info.value.status == 500
    assert info.value.error_response is None
    assert isinstance(info.value, TransportError)


def test_send_request_to_missing_socket_fails_to_connect():
    directory = tempfile.mkdtemp()
    try:
        path = os.path.join(directory, "missing.sock")
        with pytest.raises(ConnectionFailedError) as info:
            send_request(path, build_get_request("localhost", "/v1/test"), 1.0)
        assert info.value.details.socket_path == path
    finally:
        shutil.rmtree(directory)


def test_send_request_round_trip(unix_server):
    path, start, received = unix_server
    payload = b'{"digest": "sha256:abc"}'
    reply = (
        b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
        b"Content-Length: " + str(len(payload)).encode() + b"\r\n\r\n" + payload
    )
    thread = start(reply)
    request = build_post_request("localhost", "/v1/config_schemas/hash/serialized", "{}")
    response = send_request(path, request, 5.0)
    thread.join(5)
    assert response.status == 200
    assert json.loads(response.body) == {"digest": "sha256:abc"}
    assert received == [request.to_bytes()]


def test_send_request_times_out_waiting_for_reply(unix_server):
    path, start, _ = unix_server
    start(None)
    with pytest.raises(ReadError) as info:
        send_request(path, build_get_request("localhost", "/v1/test"), 0.2)
    assert info.value.details.url == "/v1/test"


def test_send_request_truncated_reply_is_read_error(unix_server):
    path, start, _ = unix_server
    thread = start(b"HTTP/1.1 200 OK\r\nContent-Length: 50\r\n\r\n{}")
    with pytest.raises(ReadError):
        send_request(path, build_get_request("localhost", "/v1/test"), 5.0)
    thread.join(5)
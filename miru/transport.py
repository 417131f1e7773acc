"""HTTP/1.1 requests over a Unix domain socket to the local agent."""

from __future__ import annotations

import errno
import json
import socket
from dataclasses import dataclass, field
from typing import Any

from miru.api_errors import ErrorResponse

__all__ = [
    "TransportError",
    "ConnectionFailedError",
    "WriteError",
    "ReadError",
    "ShutdownError",
    "RequestFailedError",
    "RequestDetails",
    "Request",
    "Response",
    "build_request",
    "build_get_request",
    "build_post_request",
    "parse_response",
    "handle_json_response",
    "send_request",
]

USER_AGENT = "miru sdk unix socket client"
_RECV_SIZE = 65536


@dataclass(frozen=True)
class RequestDetails:
    """What was sent where, for error reporting."""

    method: str
    socket_path: str
    url: str
    timeout: float

    def __str__(self) -> str:
        timeout_ms = int(round(self.timeout * 1000))
        return (
            f"{self.method} {self.url} (timeout: {timeout_ms}ms) "
            f"to socket: '{self.socket_path}'"
        )


class TransportError(Exception):
    """Base class for failures talking to the agent."""

    def __init__(self, message: str, details: RequestDetails) -> None:
        super().__init__(f"{message} ({details})")
        self.details = details


class ConnectionFailedError(TransportError):
    """The socket could not be connected."""


class WriteError(TransportError):
    """The request could not be written."""


class ReadError(TransportError):
    """The response could not be read."""


class ShutdownError(TransportError):
    """The socket could not be shut down cleanly."""


class RequestFailedError(TransportError):
    """The agent answered with a non-OK status."""

    def __init__(
        self,
        status: int,
        details: RequestDetails,
        error_response: ErrorResponse | None = None,
    ) -> None:
        message = f"request failed with status {status}"
        if error_response is not None:
            error = error_response.error
            message += f": {error.code}: {error.message}"
        super().__init__(message, details)
        self.status = status
        self.error_response = error_response


@dataclass
class Request:
    """An HTTP/1.1 request."""

    method: str
    target: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    def to_bytes(self) -> bytes:
        """Serialize to wire bytes."""
        lines = [f"{self.method} {self.target} HTTP/1.1"]
        lines.extend(f"{name}: {value}" for name, value in self.headers.items())
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("latin-1") + self.body.encode("utf-8")


@dataclass
class Response:
    """An HTTP response; header names are lower case."""

    status: int
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""


def build_request(method: str, host: str, path: str, body: str = "") -> Request:
    """Build a request; a non-empty body is sent as JSON with its length."""
    headers = {"Host": host, "User-Agent": USER_AGENT}
    if body:
        headers["Content-Type"] = "application/json"
        headers["Content-Length"] = str(len(body.encode("utf-8")))
    return Request(method=method, target=path, headers=headers, body=body)


def build_get_request(host: str, path: str) -> Request:
    return build_request("GET", host, path)


def build_post_request(host: str, path: str, body: str) -> Request:
    return build_request("POST", host, path, body)


def _split_head(data: bytes) -> tuple[int, str, dict[str, str], bytes]:
    head, sep, rest = data.partition(b"\r\n\r\n")
    if not sep:
        raise ValueError("incomplete response header")
    status_line, *header_lines = head.decode("latin-1").split("\r\n")
    parts = status_line.split(" ", 2)
    if len(parts) < 2 or not parts[0].startswith("HTTP/"):
        raise ValueError(f"malformed status line: {status_line!r}")
    status = int(parts[1])
    reason = parts[2] if len(parts) == 3 else ""
    headers = {}
    for line in header_lines:
        name, colon, value = line.partition(":")
        if not colon:
            raise ValueError(f"malformed header line: {line!r}")
        headers[name.strip().lower()] = value.strip()
    return status, reason, headers, rest


def _decode_chunked(data: bytes) -> bytes:
    chunks = []
    while True:
        size_line, sep, data = data.partition(b"\r\n")
        if not sep:
            raise ValueError("incomplete chunk size")
        size = int(size_line.split(b";")[0].strip(), 16)
        if size == 0:
            return b"".join(chunks)
        if len(data) < size + 2 or data[size:size + 2] != b"\r\n":
            raise ValueError("incomplete chunk")
        chunks.append(data[:size])
        data = data[size + 2:]


def _is_chunked(headers: dict[str, str]) -> bool:
    return "chunked" in headers.get("transfer-encoding", "").lower()


def _has_no_body(status: int) -> bool:
    return 100 <= status < 200 or status in (204, 304)


def parse_response(data: bytes) -> Response:
    """Parse a complete HTTP response; raises ValueError if malformed or truncated."""
    status, reason, headers, rest = _split_head(data)
    if _has_no_body(status):
        body = b""
    elif _is_chunked(headers):
        body = _decode_chunked(rest)
    elif "content-length" in headers:
        length = int(headers["content-length"])
        if len(rest) < length:
            raise ValueError("truncated response body")
        body = rest[:length]
    else:
        body = rest
    return Response(status=status, reason=reason, headers=headers, body=body.decode("utf-8"))


def _is_complete(data: bytes) -> bool:
    """Whether *data* already holds a full response with a known length."""
    if b"\r\n\r\n" not in data:
        return False
    try:
        status, _, headers, rest = _split_head(data)
        if _has_no_body(status):
            return True
        if _is_chunked(headers):
            _decode_chunked(rest)
            return True
        if "content-length" in headers:
            return len(rest) >= int(headers["content-length"])
    except ValueError:
        return False
    return False


def handle_json_response(response: Response, details: RequestDetails) -> Any:
    """Return the decoded JSON body, or raise RequestFailedError on a non-OK status."""
    if response.status != 200:
        try:
            error_response = ErrorResponse.from_json(json.loads(response.body))
        except Exception:
            error_response = None
        raise RequestFailedError(response.status, details, error_response)
    return json.loads(response.body)


def _read_response(sock: socket.socket) -> bytes:
    buffer = bytearray()
    while True:
        chunk = sock.recv(_RECV_SIZE)
        if not chunk:
            break
        buffer += chunk
        if _is_complete(bytes(buffer)):
            break
    return bytes(buffer)


def send_request(socket_path: str, request: Request, timeout: float) -> Response:
    """Send *request* over the Unix socket at *socket_path* and return the response.

    *timeout* is in seconds and applies to each socket operation.
    """
    details = RequestDetails(request.method, socket_path, request.target, timeout)
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout)
        try:
            sock.connect(socket_path)
        except OSError as exc:
            raise ConnectionFailedError(str(exc), details) from exc
        try:
            sock.sendall(request.to_bytes())
        except OSError as exc:
            raise WriteError(str(exc), details) from exc
        try:
            response = parse_response(_read_response(sock))
        except (OSError, ValueError, UnicodeDecodeError) as exc:
            raise ReadError(str(exc) or type(exc).__name__, details) from exc
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as exc:
            if exc.errno != errno.ENOTCONN:
                raise ShutdownError(str(exc), details) from exc
    return response
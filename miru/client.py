"""Clients for the local agent's HTTP API."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from miru.configs import BaseConcreteConfig, RefreshLatestConcreteConfigRequest
from miru.schemas import HashSchemaSerializedRequest
from miru.transport import (
    Request,
    RequestDetails,
    Response,
    build_get_request,
    build_post_request,
    handle_json_response,
    send_request,
)

__all__ = ["BackendClient", "UnixSocketClient", "DEFAULT_SOCKET_PATH"]

DEFAULT_SOCKET_PATH = "/run/miru/miru.sock"
_DEFAULT_TIMEOUT = 10.0


class BackendClient(ABC):
    """The agent operations the SDK relies on."""

    @abstractmethod
    def hash_schema(self, config_schema: HashSchemaSerializedRequest) -> str:
        """Return the digest of a serialized config schema."""

    @abstractmethod
    def get_latest_concrete_config(
        self, config_schema_digest: str, config_slug: str
    ) -> BaseConcreteConfig:
        """Return the latest concrete config the agent holds."""

    @abstractmethod
    def refresh_latest_concrete_config(
        self, request: RefreshLatestConcreteConfigRequest
    ) -> BaseConcreteConfig:
        """Ask the agent to refresh and return the latest concrete config."""


class UnixSocketClient(BackendClient):
    """Talks to the agent over its Unix domain socket."""

    def __init__(self, socket_path: str = DEFAULT_SOCKET_PATH) -> None:
        self._socket_path = socket_path
        self._base_path = "/v1"
        self._host = "localhost"
        self._port = "80"

    @property
    def socket_path(self) -> str:
        return self._socket_path

    @property
    def base_path(self) -> str:
        return self._base_path

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> str:
        return self._port

    def execute(
        self, request: Request, timeout: float = _DEFAULT_TIMEOUT
    ) -> tuple[Response, RequestDetails]:
        """Send *request* (timeout in seconds); return the response and its details."""
        details = RequestDetails(request.method, self._socket_path, request.target, timeout)
        response = send_request(self._socket_path, request, timeout)
        return response, details

    def _get_json(self, path: str) -> Any:
        response, details = self.execute(build_get_request(self._host, path))
        return handle_json_response(response, details)

    def _post_json(self, path: str, payload: Any) -> Any:
        request = build_post_request(self._host, path, json.dumps(payload))
        response, details = self.execute(request)
        return handle_json_response(response, details)

    def test_route(self) -> Any:
        """Call the agent's test route and return its JSON answer."""
        return self._get_json(f"{self._base_path}/test")

    def hash_schema(self, config_schema: HashSchemaSerializedRequest) -> str:
        data = self._post_json(
            f"{self._base_path}/config_schemas/hash/serialized", config_schema.to_json()
        )
        digest = data["digest"]
        if not isinstance(digest, str):
            raise TypeError(f"'digest' must be a string, got {type(digest).__name__}")
        return digest

    def get_latest_concrete_config(
        self, config_schema_digest: str, config_slug: str
    ) -> BaseConcreteConfig:
        path = (
            f"{self._base_path}/concrete_configs/latest"
            f"?config_schema_digest={config_schema_digest}&config_slug={config_slug}"
        )
        return BaseConcreteConfig.from_json(self._get_json(path))

    def refresh_latest_concrete_config(
        self, request: RefreshLatestConcreteConfigRequest
    ) -> BaseConcreteConfig:
        data = self._post_json(
            f"{self._base_path}/concrete_configs/refresh_latest", request.to_json()
        )
        return BaseConcreteConfig.from_json(data)
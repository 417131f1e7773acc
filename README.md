# miru

This package is a small client for the Miru agent. The agent runs on the
device and answers HTTP/1.1 requests on a Unix domain socket. The package
talks to that socket directly and uses only the standard library.

## Installation

```
pip install .
```

## Usage

```python
from miru.client import UnixSocketClient
from miru.configs import RefreshLatestConcreteConfigRequest
from miru.schemas import HashSchemaSerializedRequest, HashSerializedConfigSchemaFormat

client = UnixSocketClient("/run/miru/miru.sock")

with open("motion-control.yaml") as fh:
    schema_text = fh.read()

digest = client.hash_schema(
    HashSchemaSerializedRequest(
        format=HashSerializedConfigSchemaFormat.YAML,
        schema=schema_text,
    )
)

config = client.refresh_latest_concrete_config(
    RefreshLatestConcreteConfigRequest(
        config_schema_digest=digest,
        config_slug="motion-control",
    )
)
print(config.concrete_config)
```

`UnixSocketClient()` with no argument connects to `/run/miru/miru.sock`.
All requests go to paths under `/v1`.

- `hash_schema(request)` posts the schema to
  `/v1/config_schemas/hash/serialized` and returns the `digest` string.
- `get_latest_concrete_config(digest, slug)` reads the latest concrete config
  that the agent already holds. It does not ask the agent to refresh first.
- `refresh_latest_concrete_config(request)` asks the agent to refresh the
  config and returns it as a `BaseConcreteConfig`.
- `test_route()` calls `/v1/test` and returns the decoded JSON.
- `execute(request, timeout=10.0)` sends any `miru.transport.Request` and
  returns a `(Response, RequestDetails)` pair.

The timeout is given in seconds. It applies to each socket operation in turn
(connect, send and receive), not to the request as a whole. The route methods
use ten seconds.

`miru.client.BackendClient` is the abstract interface that
`UnixSocketClient` implements. Subclass it to supply a stand-in client, for
example in tests.

### Lower-level transport

`miru.transport` holds the building blocks:

- `build_request`, `build_get_request` and `build_post_request` build
  requests. A non-empty body is sent as `application/json` and gets a
  `Content-Length` header.
- `Request.to_bytes()` returns the request in wire form.
- `parse_response(data)` parses a complete response. It handles
  `Content-Length` bodies, chunked bodies and bodies that run to the end of
  the connection.
- `send_request(socket_path, request, timeout)` sends one request and returns
  the response.
- `handle_json_response(response, details)` decodes a 200 response body as
  JSON.

## Models

`miru.api_errors` (`Error`, `ErrorResponse`), `miru.schemas`
(`HashSerializedConfigSchemaFormat`, `HashSchemaSerializedRequest`,
`SchemaDigestResponse`) and `miru.configs` (`BaseConcreteConfig`,
`RefreshLatestConcreteConfigRequest`) convert to and from plain JSON values
with `to_json()` and `from_json()`. A missing required key raises `KeyError`,
and a value of the wrong type raises `TypeError`.
`HashSerializedConfigSchemaFormat.from_json` accepts only `"json"` and
`"yaml"` and raises `ValueError` for anything else.

`validate()` raises `miru.helpers.ValidationError` when a model is not
well-formed. Text fields must hold strings, and a schema format must not be
left as `INVALID`. `HashSchemaSerializedRequest` and `SchemaDigestResponse`
have no constraints to check.

`miru.helpers` also provides RFC 3339 checks (`validate_rfc3339_date`,
`validate_rfc3339_date_time`), `has_only_unique_items`, and string
conversions for primitive values (`to_string_value`, `from_string_value`,
`from_string_list`).

## Errors

Transport failures raise subclasses of `miru.transport.TransportError`:

- `ConnectionFailedError`: the socket could not be connected.
- `WriteError`: the request could not be sent.
- `ReadError`: the response could not be read or parsed.
- `ShutdownError`: the socket could not be shut down cleanly.

Each of these carries the `RequestDetails` (method, socket path, URL and
timeout) in its `details` attribute.

A status other than 200 raises `RequestFailedError`. Its `status` attribute
holds the code. If the body parses as an `ErrorResponse`, that object is in
`error_response`; otherwise `error_response` is `None`.

## What this package does not do

This package only talks to the agent and models its messages. It does not:

- read config or schema files from disk
- check a config against its schema
- fall back to a default config when the agent cannot be reached
- give a parameter-query interface over a config

`concrete_config` comes back as plain decoded JSON, and the caller handles it
from there.

## Running the tests

```
pip install .[test]
pytest
```
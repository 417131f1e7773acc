"""Config schema hashing models exchanged with the agent API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from miru.helpers import ValidationError

__all__ = [
    "HashSerializedConfigSchemaFormat",
    "HashSchemaSerializedRequest",
    "SchemaDigestResponse",
]


def _as_object(data: Any, model: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{model} must be a JSON object, got {type(data).__name__}")
    return data


def _required(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise KeyError(f"missing required key {key!r}") from None


def _required_str(data: Mapping[str, Any], key: str) -> str:
    value = _required(data, key)
    if not isinstance(value, str):
        raise TypeError(f"{key!r} must be a string, got {type(value).__name__}")
    return value


class HashSerializedConfigSchemaFormat(Enum):
    """Serialization format of a config schema sent for hashing."""

    INVALID = "INVALID_VALUE_OPENAPI_GENERATED"
    JSON = "json"
    YAML = "yaml"

    def to_json(self) -> str:
        return self.value

    @classmethod
    def from_json(cls, data: Any) -> HashSerializedConfigSchemaFormat:
        """Parse a wire value; only ``json`` and ``yaml`` are accepted."""
        if not isinstance(data, str):
            raise TypeError(
                f"HashSerializedConfigSchemaFormat must be a string, "
                f"got {type(data).__name__}"
            )
        if data == cls.JSON.value:
            return cls.JSON
        if data == cls.YAML.value:
            return cls.YAML
        raise ValueError(
            f"Unexpected value {data} in json cannot be converted to enum of type "
            "HashSerializedConfigSchemaFormat"
        )

    def validate(self) -> None:
        """Raise ValidationError if no format has been chosen."""
        if self is HashSerializedConfigSchemaFormat.INVALID:
            raise ValidationError("HashSerializedConfigSchemaFormat: has no value;")


@dataclass
class HashSchemaSerializedRequest:
    """A serialized config schema to be hashed by the agent."""

    format: HashSerializedConfigSchemaFormat = HashSerializedConfigSchemaFormat.INVALID
    schema: str = ""

    def to_json(self) -> dict[str, Any]:
        return {"format": self.format.to_json(), "schema": self.schema}

    @classmethod
    def from_json(cls, data: Any) -> HashSchemaSerializedRequest:
        data = _as_object(data, "HashSchemaSerializedRequest")
        return cls(
            format=HashSerializedConfigSchemaFormat.from_json(_required(data, "format")),
            schema=_required_str(data, "schema"),
        )

    def validate(self) -> None:
        """Check the model; this model has no constraints to enforce."""


@dataclass
class SchemaDigestResponse:
    """The digest the agent computed for a config schema."""

    digest: str = ""

    def to_json(self) -> dict[str, Any]:
        return {"digest": self.digest}

    @classmethod
    def from_json(cls, data: Any) -> SchemaDigestResponse:
        data = _as_object(data, "SchemaDigestResponse")
        return cls(digest=_required_str(data, "digest"))

    def validate(self) -> None:
        """Check the model; this model has no constraints to enforce."""
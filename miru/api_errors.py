"""Error payloads returned by the agent API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from miru.helpers import ValidationError

__all__ = ["Error", "ErrorResponse"]


def _as_object(data: Any, model: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{model} must be a JSON object, got {type(data).__name__}")
    return data


def _required_str(data: Mapping[str, Any], key: str) -> str:
    try:
        value = data[key]
    except KeyError:
        raise KeyError(f"missing required key {key!r}") from None
    if not isinstance(value, str):
        raise TypeError(f"{key!r} must be a string, got {type(value).__name__}")
    return value


def _check_strings(instance: Any, model: str, fields: tuple[str, ...]) -> None:
    problems = [
        f"{model}.{name}: must be a string;"
        for name in fields
        if not isinstance(getattr(instance, name), str)
    ]
    if problems:
        raise ValidationError("".join(problems))


@dataclass
class Error:
    """A single API error."""

    code: str = ""
    params: Any = None
    message: str = ""
    debug_message: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "params": self.params,
            "message": self.message,
            "debug_message": self.debug_message,
        }

    @classmethod
    def from_json(cls, data: Any) -> Error:
        data = _as_object(data, "Error")
        return cls(
            code=_required_str(data, "code"),
            params=data.get("params"),
            message=_required_str(data, "message"),
            debug_message=_required_str(data, "debug_message"),
        )

    def validate(self) -> None:
        """Raise ValidationError if a text field does not hold a string."""
        _check_strings(self, "Error", ("code", "message", "debug_message"))


@dataclass
class ErrorResponse:
    """The body the API sends with a failed request."""

    error: Error

    def to_json(self) -> dict[str, Any]:
        return {"error": self.error.to_json()}

    @classmethod
    def from_json(cls, data: Any) -> ErrorResponse:
        data = _as_object(data, "ErrorResponse")
        if "error" not in data:
            raise KeyError("missing required key 'error'")
        return cls(error=Error.from_json(data["error"]))

    def validate(self) -> None:
        """Raise ValidationError if the nested error is missing or invalid."""
        if not isinstance(self.error, Error):
            raise ValidationError("ErrorResponse.error: must be an Error;")
        self.error.validate()
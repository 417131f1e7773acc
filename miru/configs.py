"""Concrete config models exchanged with the agent API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from miru.helpers import ValidationError

__all__ = ["BaseConcreteConfig", "RefreshLatestConcreteConfigRequest"]


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
class BaseConcreteConfig:
    """A concrete config as served by the agent."""

    object: str = ""
    id: str = ""
    created_at: str = ""
    client_id: str = ""
    config_schema_id: str = ""
    concrete_config: Any = None

    def to_json(self) -> dict[str, Any]:
        return {
            "object": self.object,
            "id": self.id,
            "created_at": self.created_at,
            "client_id": self.client_id,
            "config_schema_id": self.config_schema_id,
            "concrete_config": self.concrete_config,
        }

    @classmethod
    def from_json(cls, data: Any) -> BaseConcreteConfig:
        """Build from a JSON object; a missing or null ``concrete_config`` is None."""
        data = _as_object(data, "BaseConcreteConfig")
        return cls(
            object=_required_str(data, "object"),
            id=_required_str(data, "id"),
            created_at=_required_str(data, "created_at"),
            client_id=_required_str(data, "client_id"),
            config_schema_id=_required_str(data, "config_schema_id"),
            concrete_config=data.get("concrete_config"),
        )

    def validate(self) -> None:
        """Raise ValidationError if a text field does not hold a string."""
        _check_strings(
            self,
            "BaseConcreteConfig",
            ("object", "id", "created_at", "client_id", "config_schema_id"),
        )


@dataclass
class RefreshLatestConcreteConfigRequest:
    """Asks the agent to refresh the latest concrete config for a schema."""

    config_schema_digest: str = ""
    config_slug: str = ""

    def to_json(self) -> dict[str, Any]:
        return {
            "config_schema_digest": self.config_schema_digest,
            "config_slug": self.config_slug,
        }

    @classmethod
    def from_json(cls, data: Any) -> RefreshLatestConcreteConfigRequest:
        data = _as_object(data, "RefreshLatestConcreteConfigRequest")
        return cls(
            config_schema_digest=_required_str(data, "config_schema_digest"),
            config_slug=_required_str(data, "config_slug"),
        )

    def validate(self) -> None:
        """Raise ValidationError if a text field does not hold a string."""
        _check_strings(
            self,
            "RefreshLatestConcreteConfigRequest",
            ("config_schema_digest", "config_slug"),
        )
"""Client for the Miru agent's Unix-socket HTTP API and its JSON data models."""

__version__ = "0.1.0"

__all__ = ["api_errors", "client", "configs", "helpers", "schemas", "transport"]
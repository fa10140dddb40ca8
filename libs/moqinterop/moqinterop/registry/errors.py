"""Error types for the implementation registry."""

from __future__ import annotations


class SchemaError(Exception):
    """Raised when a registry or test-case catalogue is malformed.

    ``path`` names the offending field, e.g. ``implementations.moq-rs.roles``.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(f"{path}: {message}" if path else message)
        self.reason = message
        self.path = path

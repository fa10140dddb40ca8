"""Diagnostic message representation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from moqinterop.diagnostics.location import SourceLocation


class DiagnosticSeverity(Enum):
    """Severity level of a diagnostic message."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    """A single diagnostic message.

    ``code`` is a stable, machine-readable tag (e.g. ``plan-mismatch``) so
    report consumers can group diagnostics without matching on message text.
    """

    severity: DiagnosticSeverity
    message: str
    location: SourceLocation | None = None
    code: str | None = None
    notes: tuple[str, ...] = ()

    def __str__(self) -> str:
        loc = f"{self.location}: " if self.location else ""
        tag = f"[{self.code}] " if self.code else ""
        return f"{loc}{self.severity}: {tag}{self.message}"

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "line": self.location.line if self.location else None,
        }

"""Diagnostic collector for accumulating messages during TAP parsing."""

from __future__ import annotations

from moqinterop.diagnostics.diagnostic import Diagnostic, DiagnosticSeverity
from moqinterop.diagnostics.location import SourceLocation


class DiagnosticCollector:
    """Accumulates anomaly warnings; one collector can be shared by several parsers."""

    def __init__(self) -> None:
        self._diagnostics: list[Diagnostic] = []

    def warning(
        self,
        message: str,
        location: SourceLocation | None = None,
        *,
        code: str | None = None,
        notes: tuple[str, ...] = (),
    ) -> None:
        """Record a warning diagnostic."""
        self._diagnostics.append(
            Diagnostic(DiagnosticSeverity.WARNING, message, location, code, notes)
        )

    def get_all(self) -> list[Diagnostic]:
        """Return a copy of all collected diagnostics."""
        return list(self._diagnostics)

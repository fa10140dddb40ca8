"""Parse error types for the TAP parser."""

from __future__ import annotations

from moqinterop.diagnostics.location import SourceLocation


class ParseError(Exception):
    """Raised when client output carries no recognisable TAP at all.

    ``lines`` is how many lines of output were examined before giving up.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation | None = None,
        *,
        lines: int = 0,
    ) -> None:
        super().__init__(message)
        self.location = location
        self.lines = lines

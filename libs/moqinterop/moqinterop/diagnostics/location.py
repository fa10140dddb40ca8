"""Source location tracking for captured client output and registry files."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """A line within a captured stream or input document."""

    source: str
    line: int  # 1-indexed
    column: int | None = None

    def __str__(self) -> str:
        if self.column is None:
            return f"{self.source}:{self.line}"
        return f"{self.source}:{self.line}:{self.column}"

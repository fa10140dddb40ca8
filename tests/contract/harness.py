"""Client contract harness protocol and result types."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class ContractResult:
    """Verdict the engine reached for one scripted client run."""
    status: str
    reason: str | None = None
    anomalies: list[str] = field(default_factory=list)
    output: str = ""


class ClientHarness(Protocol):
    """Drives the engine with a scripted client and reports its verdict."""

    name: str

    def run(self, script: str, testcase: str = "setup-only", timeout: float = 10.0) -> ContractResult:
        """Run *script* as the client for one trial. Returns the engine's verdict."""
        ...

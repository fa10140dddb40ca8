"""Structured results produced by the TAP parser."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from moqinterop.diagnostics.diagnostic import Diagnostic


class AssertionOutcome(Enum):
    """Per-assertion verdict."""

    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"
    TODO = "todo"

    def __str__(self) -> str:
        return self.value


class Anomaly:
    """Stable codes for structural irregularities in a TAP stream."""

    PLAN_MISMATCH = "plan-mismatch"
    MISSING_PLAN = "missing-plan"
    DUPLICATE_PLAN = "duplicate-plan"
    MISSING_VERSION = "missing-version"
    UNSUPPORTED_VERSION = "unsupported-version"
    DUPLICATE_VERSION = "duplicate-version"
    OUT_OF_SEQUENCE = "out-of-sequence"
    TEST_AFTER_PLAN = "test-after-plan"
    YAML_UNTERMINATED = "yaml-unterminated"
    YAML_INVALID = "yaml-invalid"
    BAIL_OUT = "bail-out"


@dataclass(frozen=True)
class Plan:
    """Declared ``1..N`` plan. ``skip_reason`` is set for ``1..0 # SKIP``."""

    count: int
    line: int
    skip_reason: str | None = None


@dataclass(frozen=True)
class Assertion:
    """A single ``ok``/``not ok`` test point.

    ``log`` holds every non-TAP line (comments, client debug output) that
    followed this assertion up to the next one.
    """

    number: int
    description: str
    outcome: AssertionOutcome
    ok: bool
    line: int
    directive_reason: str | None = None
    diagnostics: Mapping[str, Any] | None = None
    log: tuple[str, ...] = ()

    @property
    def failed(self) -> bool:
        return self.outcome is AssertionOutcome.FAIL

    def to_dict(self) -> dict:
        return {
            "number": self.number,
            "description": self.description,
            "outcome": self.outcome.value,
            "directive_reason": self.directive_reason,
            "diagnostics": dict(self.diagnostics) if self.diagnostics is not None else None,
            "log": list(self.log),
        }


@dataclass(frozen=True)
class ParsedResult:
    """Best-effort structured view of one client's TAP output."""

    version: int | None
    plan: Plan | None
    assertions: tuple[Assertion, ...]
    preamble: tuple[str, ...] = ()
    bailed_out: str | None = None
    anomalies: tuple[Diagnostic, ...] = ()

    def count(self, outcome: AssertionOutcome) -> int:
        return sum(1 for a in self.assertions if a.outcome is outcome)

    @property
    def passed(self) -> int:
        return self.count(AssertionOutcome.PASS)

    @property
    def failed(self) -> int:
        return self.count(AssertionOutcome.FAIL)

    @property
    def skipped(self) -> int:
        return self.count(AssertionOutcome.SKIP)

    @property
    def todo(self) -> int:
        return self.count(AssertionOutcome.TODO)

    @property
    def failures(self) -> tuple[Assertion, ...]:
        return tuple(a for a in self.assertions if a.failed)

    @property
    def has_failures(self) -> bool:
        """True if any assertion failed or the client bailed out."""
        return self.bailed_out is not None or any(a.failed for a in self.assertions)

    def has_anomaly(self, code: str) -> bool:
        return any(d.code == code for d in self.anomalies)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "plan": self.plan.count if self.plan else None,
            "plan_skip_reason": self.plan.skip_reason if self.plan else None,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "todo": self.todo,
            "bailed_out": self.bailed_out,
            "assertions": [a.to_dict() for a in self.assertions],
            "preamble": list(self.preamble),
            "anomalies": [d.to_dict() for d in self.anomalies],
        }

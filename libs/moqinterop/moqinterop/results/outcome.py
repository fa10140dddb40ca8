"""Fold raw process results and parsed TAP into a final trial verdict."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from moqinterop.pairing.engine import Trial
from moqinterop.pairing.versions import VersionClassification
from moqinterop.runner.process import (
    CONTRACT_EXIT_CODES,
    EXIT_FAIL,
    EXIT_UNSUPPORTED,
    RawResult,
    RunStatus,
)
from moqinterop.tap.errors import ParseError
from moqinterop.tap.results import ParsedResult


class TrialStatus(Enum):
    """Final verdict for one trial."""

    PASS = "pass"
    FAIL = "fail"
    UNSUPPORTED = "unsupported"
    ERROR = "error"
    TIMEOUT = "timeout"

    def __str__(self) -> str:
        return self.value

    @property
    def successful(self) -> bool:
        """Pass or unsupported: nothing for a maintainer to look at."""
        return self in (TrialStatus.PASS, TrialStatus.UNSUPPORTED)


@dataclass(frozen=True)
class TrialOutcome:
    """Immutable record of one executed trial."""

    trial: Trial
    status: TrialStatus
    exit_code: int | None
    elapsed: float
    output: str
    truncated: bool = False
    parsed: ParsedResult | None = None
    reason: str | None = None

    @property
    def classification(self) -> VersionClassification:
        return self.trial.classification

    def to_dict(self, include_output: bool = True) -> dict:
        data = {
            "relay": self.trial.relay.identifier,
            "client": self.trial.client.identifier,
            "test_case": self.trial.test_case.identifier,
            "classification": self.classification.value,
            "status": self.status.value,
            "reason": self.reason,
            "exit_code": self.exit_code,
            "elapsed": round(self.elapsed, 3),
            "truncated": self.truncated,
            "tap": self.parsed.to_dict() if self.parsed is not None else None,
        }
        if include_output:
            data["output"] = self.output
        return data


def _verdict(
    raw: RawResult,
    parsed: ParsedResult | None,
    parse_error: ParseError | None,
) -> tuple[TrialStatus, str | None]:
    if raw.status is RunStatus.TIMEOUT:
        return TrialStatus.TIMEOUT, raw.reason or "client timed out"
    if raw.status is RunStatus.CANCELLED:
        return TrialStatus.ERROR, f"cancelled: {raw.reason or 'run cancelled'}"
    if raw.status is RunStatus.SPAWN_FAILED:
        return TrialStatus.ERROR, f"spawn failed: {raw.reason or 'unknown error'}"
    if raw.exit_code not in CONTRACT_EXIT_CODES:
        return TrialStatus.ERROR, f"client exited with unexpected code {raw.exit_code}"
    if parse_error is not None:
        return TrialStatus.ERROR, f"unparseable TAP output: {parse_error}"
    if raw.exit_code == EXIT_UNSUPPORTED:
        return TrialStatus.UNSUPPORTED, "test case not supported by client"
    if raw.exit_code == EXIT_FAIL:
        count = parsed.failed if parsed is not None else 0
        detail = f" ({count} failing assertion(s))" if count else ""
        return TrialStatus.FAIL, f"client reported failure{detail}"
    if parsed is not None and parsed.has_failures:
        if parsed.bailed_out is not None and not parsed.failed:
            return TrialStatus.FAIL, f"client exited 0 but bailed out: {parsed.bailed_out}"
        return (
            TrialStatus.FAIL,
            f"client exited 0 but TAP reported {parsed.failed} failing assertion(s)",
        )
    return TrialStatus.PASS, None


def classify(
    trial: Trial,
    raw: RawResult,
    parsed: ParsedResult | None = None,
    parse_error: ParseError | None = None,
) -> TrialOutcome:
    """Derive the final status.

    Priority: timeout, then error (cancelled, spawn failure, exit code
    outside the contract, unparseable output), then unsupported (127), then
    fail (exit 1, or exit 0 with failing assertions), then pass. The version
    classification is carried through and never changes the verdict.
    """
    status, reason = _verdict(raw, parsed, parse_error)
    return TrialOutcome(
        trial=trial,
        status=status,
        exit_code=raw.exit_code,
        elapsed=raw.elapsed,
        output=raw.output,
        truncated=raw.truncated,
        parsed=parsed,
        reason=reason,
    )

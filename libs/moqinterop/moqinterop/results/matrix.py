"""Interop matrix: the ordered collection of all trial outcomes for a run."""

from __future__ import annotations

import json
import threading
from collections import Counter
from pathlib import Path

from moqinterop.results.outcome import TrialOutcome, TrialStatus


class InteropMatrix:
    """Append-only, lock-serialised collection of trial outcomes.

    Workers append in completion order; :meth:`finalize` re-sorts into
    pairing order and freezes the matrix.
    """

    def __init__(self, current_target: str | None = None) -> None:
        self.current_target = current_target
        self._outcomes: list[TrialOutcome] = []
        self._keys: set[int] = set()
        self._lock = threading.Lock()
        self._final: tuple[TrialOutcome, ...] | None = None

    def append(self, outcome: TrialOutcome) -> None:
        """Record *outcome*. Each trial may be recorded once."""
        with self._lock:
            if self._final is not None:
                raise RuntimeError("Interop matrix is finalized")
            if outcome.trial.index in self._keys:
                raise ValueError(f"Outcome for trial {outcome.trial} already recorded")
            self._keys.add(outcome.trial.index)
            self._outcomes.append(outcome)

    def has(self, index: int) -> bool:
        with self._lock:
            return index in self._keys

    def finalize(self) -> tuple[TrialOutcome, ...]:
        """Sort into pairing order and make the matrix read-only. Idempotent."""
        with self._lock:
            if self._final is None:
                self._final = tuple(sorted(self._outcomes, key=lambda o: o.trial.index))
                self._outcomes = []
            return self._final

    @property
    def finalized(self) -> bool:
        return self._final is not None

    @property
    def outcomes(self) -> tuple[TrialOutcome, ...]:
        """Outcomes in pairing order once finalized, append order before."""
        with self._lock:
            if self._final is not None:
                return self._final
            return tuple(self._outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def __iter__(self):
        return iter(self.outcomes)

    def summary(self) -> dict[str, int]:
        """Count outcomes per status; every status is present."""
        counts = Counter(o.status for o in self.outcomes)
        return {status.value: counts.get(status, 0) for status in TrialStatus}

    def cells(self) -> dict[tuple[str, str], tuple[TrialOutcome, ...]]:
        """Group outcomes by (relay, client), preserving order."""
        grouped: dict[tuple[str, str], list[TrialOutcome]] = {}
        for outcome in self.outcomes:
            key = (outcome.trial.relay.identifier, outcome.trial.client.identifier)
            grouped.setdefault(key, []).append(outcome)
        return {key: tuple(values) for key, values in grouped.items()}

    def exit_status(self) -> int:
        """0 when every trial passed or was unsupported, else 1."""
        return 0 if all(o.status.successful for o in self.outcomes) else 1

    def to_dict(self, include_output: bool = True) -> dict:
        return {
            "current_target": self.current_target,
            "finalized": self.finalized,
            "summary": self.summary(),
            "outcomes": [o.to_dict(include_output) for o in self.outcomes],
        }

    def write_json(self, path: Path | str, include_output: bool = True) -> None:
        """Write the report hand-off document."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(include_output), f, indent=2)
            f.write("\n")

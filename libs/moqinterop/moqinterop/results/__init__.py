"""Result classification subpackage (Layer 3 -- depends on pairing, runner, tap)."""

from moqinterop.results.matrix import InteropMatrix
from moqinterop.results.outcome import TrialOutcome, TrialStatus, classify

__all__ = ["TrialStatus", "TrialOutcome", "classify", "InteropMatrix"]

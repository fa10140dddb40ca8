"""Run a set of trials on a bounded worker pool and collect the interop matrix."""

from __future__ import annotations

import dataclasses
import errno
import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, wait

from moqinterop.config import RunConfig
from moqinterop.pairing.engine import PairPredicate, Trial, build
from moqinterop.registry.model import Registry, TestCase
from moqinterop.results.matrix import InteropMatrix
from moqinterop.results.outcome import TrialOutcome, classify
from moqinterop.runner.process import EXIT_FAIL, EXIT_PASS, RawResult, RunStatus, TrialRunner
from moqinterop.tap.errors import ParseError
from moqinterop.tap.parser import parse

logger = logging.getLogger(__name__)

# Spawn failures that mean the host is out of resources, not that one client is broken.
EXHAUSTION_ERRNOS = frozenset({errno.EMFILE, errno.ENFILE, errno.ENOMEM, errno.EAGAIN})


class RunInterrupted(Exception):
    """Base for run-level failures; always carries the finalized partial matrix."""

    def __init__(self, message: str, matrix: InteropMatrix) -> None:
        super().__init__(message)
        self.matrix = matrix


class RunCancelled(RunInterrupted):
    """The operator interrupted the run."""


class RunAborted(RunInterrupted):
    """The host could not spawn client processes."""


class InteropRun:
    """One execution of a trial set.

    Outcomes are appended to the matrix by the workers themselves; the
    matrix serialises appends. Call :meth:`cancel` from any thread to stop
    in-flight clients.
    """

    def __init__(self, config: RunConfig, runner: TrialRunner | None = None) -> None:
        self._config = config
        self._runner = runner or TrialRunner(config)
        # Shared with the runner so cancel() reaches its wait loop.
        self._cancel = self._runner.cancel_event
        self._cancel_reason = "run cancelled"
        self._abort_reason: str | None = None
        self.matrix = InteropMatrix(config.current_target)

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self, reason: str = "run cancelled by operator") -> None:
        """Stop the run: running clients are terminated, queued trials are not started."""
        if not self._cancel.is_set():
            logger.warning("Cancelling run: %s", reason)
            self._cancel_reason = reason
            self._cancel.set()

    def execute(self, trials: Sequence[Trial]) -> InteropMatrix:
        """Run every trial and return the finalized matrix.

        Raises:
            RunCancelled: On KeyboardInterrupt; the matrix holds completed
                outcomes plus error outcomes for everything else.
            RunAborted: When client processes cannot be spawned at all.
        """
        logger.info(
            "Running %d trial(s) with %d worker(s), target %s",
            len(trials),
            self._config.workers,
            self._config.current_target,
        )
        interrupted = False
        executor = ThreadPoolExecutor(
            max_workers=self._config.workers, thread_name_prefix="trial"
        )
        pending = set()
        try:
            try:
                for trial in trials:
                    pending.add(executor.submit(self._run_one, trial))
            except KeyboardInterrupt:
                interrupted = True
                self.cancel("interrupted by operator")
            while pending:
                try:
                    _, pending = wait(pending, timeout=0.5)
                except KeyboardInterrupt:
                    interrupted = True
                    self.cancel("interrupted by operator")
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        # Trials never submitted or never started still need a matrix entry.
        for trial in trials:
            if not self.matrix.has(trial.index):
                self._record_cancelled(trial, "not executed")

        self.matrix.finalize()
        summary = ", ".join(f"{k}={v}" for k, v in self.matrix.summary().items() if v)
        logger.info("Run finished: %s", summary or "no trials")

        if self._abort_reason is not None:
            raise RunAborted(self._abort_reason, self.matrix)
        if interrupted:
            raise RunCancelled(self._cancel_reason, self.matrix)
        return self.matrix

    def _run_one(self, trial: Trial) -> None:
        try:
            outcome = self._execute_trial(trial)
        except Exception as e:  # contain per-trial failures at the trial boundary
            logger.exception("%s: unexpected error", trial)
            outcome = classify(
                trial,
                RawResult(RunStatus.SPAWN_FAILED, None, 0.0, "", reason=f"internal error: {e}"),
            )
        self.matrix.append(outcome)

    def _execute_trial(self, trial: Trial) -> TrialOutcome:
        if self._cancel.is_set():
            raw = RawResult(
                RunStatus.CANCELLED, None, 0.0, "", reason=f"{self._cancel_reason} (before start)"
            )
            return classify(trial, raw)

        logger.info("%s: starting (%s)", trial, trial.classification)
        raw = self._runner.execute(trial)

        if raw.status is RunStatus.SPAWN_FAILED and raw.spawn_errno in EXHAUSTION_ERRNOS:
            self._abort_reason = f"cannot spawn client processes: {raw.reason}"
            self.cancel(self._abort_reason)
        elif raw.status is RunStatus.CANCELLED and self._cancel.is_set():
            raw = dataclasses.replace(raw, reason=f"{self._cancel_reason} ({raw.reason})")

        parsed = None
        parse_error = None
        if raw.status is RunStatus.COMPLETED and raw.exit_code in (EXIT_PASS, EXIT_FAIL):
            try:
                parsed = parse(raw.output, raw.exit_code)
            except ParseError as e:
                parse_error = e
                logger.warning("%s: %s", trial, e)

        outcome = classify(trial, raw, parsed, parse_error)
        if parsed is not None and parsed.anomalies:
            logger.warning(
                "%s: TAP anomalies: %s",
                trial,
                "; ".join(str(d) for d in parsed.anomalies),
            )
        level = logging.INFO if outcome.status.successful else logging.WARNING
        logger.log(
            level,
            "%s: %s in %.2fs%s",
            trial,
            outcome.status,
            outcome.elapsed,
            f" ({outcome.reason})" if outcome.reason else "",
        )
        return outcome

    def _record_cancelled(self, trial: Trial, detail: str) -> None:
        raw = RawResult(RunStatus.CANCELLED, None, 0.0, "", reason=f"{self._cancel_reason} ({detail})")
        self.matrix.append(classify(trial, raw))


def run_interop(
    registry: Registry,
    test_cases: Sequence[TestCase],
    config: RunConfig,
    pair_filter: PairPredicate | None = None,
    runner: TrialRunner | None = None,
) -> InteropMatrix:
    """Pair *registry* against *test_cases* and execute every trial."""
    trials = build(registry, test_cases, config.current_target, pair_filter)
    if not trials:
        logger.warning("No trials to run: no relay/client pair matched")
    return InteropRun(config, runner).execute(trials)


"""Trial runner: launch one client against one relay and capture the result."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import IO

from moqinterop.config import RunConfig
from moqinterop.pairing.engine import Trial
from moqinterop.runner.targets import TargetResolutionError, resolve_client, resolve_relay

logger = logging.getLogger(__name__)

# Client process contract: environment in.
ENV_RELAY_URL = "RELAY_URL"
ENV_TESTCASE = "TESTCASE"
ENV_TLS_DISABLE_VERIFY = "TLS_DISABLE_VERIFY"
ENV_VERBOSE = "VERBOSE"
CONTRACT_ENV = (ENV_RELAY_URL, ENV_TESTCASE, ENV_TLS_DISABLE_VERIFY, ENV_VERBOSE)

# Client process contract: exit codes out.
EXIT_PASS = 0
EXIT_FAIL = 1
EXIT_UNSUPPORTED = 127
CONTRACT_EXIT_CODES = (EXIT_PASS, EXIT_FAIL, EXIT_UNSUPPORTED)

_READ_CHUNK = 8192
_CLEANUP_TIMEOUT = 30.0


class RunStatus(Enum):
    """How the client process ended, before any interpretation of its output."""

    COMPLETED = "completed"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    SPAWN_FAILED = "spawn-failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RawResult:
    """Uninterpreted result of one client execution."""

    status: RunStatus
    exit_code: int | None
    elapsed: float
    output: str
    truncated: bool = False
    reason: str | None = None
    spawn_errno: int | None = None


class OutputBuffer:
    """Byte buffer that stops growing at *limit* and remembers it overflowed."""

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._chunks: list[bytes] = []
        self._size = 0
        self.truncated = False

    def feed(self, chunk: bytes) -> None:
        room = self._limit - self._size
        if room <= 0:
            self.truncated = self.truncated or bool(chunk)
            return
        if len(chunk) > room:
            chunk = chunk[:room]
            self.truncated = True
        self._chunks.append(chunk)
        self._size += len(chunk)

    def __len__(self) -> int:
        return self._size

    def getvalue(self) -> str:
        return b"".join(self._chunks).decode("utf-8", errors="replace")


def _drain(stream: IO[bytes], buffer: OutputBuffer) -> None:
    """Read *stream* to EOF; keeps reading past the limit so the client never blocks."""
    read = getattr(stream, "read1", stream.read)
    with stream:
        while True:
            chunk = read(_READ_CHUNK)
            if not chunk:
                break
            buffer.feed(chunk)


def run_cleanup(argv: list[str]) -> None:
    """Run a launcher's cleanup command, logging rather than raising on failure."""
    try:
        subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=_CLEANUP_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("cleanup %s failed: %s", " ".join(argv), e)


def build_environment(
    trial: Trial,
    relay_url: str,
    tls_disable_verify: bool,
    verbose: bool,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return the client environment: *base* plus the contract variables."""
    env = dict(os.environ if base is None else base)
    env[ENV_RELAY_URL] = relay_url
    env[ENV_TESTCASE] = trial.test_case.identifier
    env[ENV_TLS_DISABLE_VERIFY] = "1" if tls_disable_verify else "0"
    env[ENV_VERBOSE] = "1" if verbose else "0"
    return env


class TrialRunner:
    """Execute trials as client subprocesses.

    One runner can be shared by many worker threads; per-trial state lives
    on the stack of :meth:`execute`. Setting *cancel_event* terminates every
    in-flight client at its next poll. Docker clients are named
    ``moq-interop-<run token>-<trial index>`` so a stopped trial's container
    can be removed with *cleanup*.
    """

    def __init__(
        self,
        config: RunConfig,
        cancel_event: threading.Event | None = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        base_env: Mapping[str, str] | None = None,
        cleanup: Callable[[list[str]], None] = run_cleanup,
    ) -> None:
        self._config = config
        self._cancel = cancel_event or threading.Event()
        self._popen = popen
        self._base_env = base_env
        self._cleanup = cleanup
        self._token = uuid.uuid4().hex[:8]

    def container_name(self, trial: Trial) -> str:
        return f"moq-interop-{self._token}-{trial.index}"

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel

    def execute(self, trial: Trial, timeout: float | None = None) -> RawResult:
        """Run *trial* once and return its raw result. Never raises for
        per-trial problems; they are reported through ``RawResult.status``."""
        timeout = self._config.timeout if timeout is None else timeout
        start = time.monotonic()

        try:
            relay = resolve_relay(trial.relay, self._config)
            client = resolve_client(trial.client, self._config, self.container_name(trial))
        except TargetResolutionError as e:
            logger.warning("%s: %s", trial, e)
            return RawResult(RunStatus.SPAWN_FAILED, None, 0.0, "", reason=str(e))

        env = build_environment(
            trial,
            relay.relay_url(),
            relay.tls_disable_verify(),
            self._config.verbose,
            self._base_env,
        )
        argv = client.command(CONTRACT_ENV)
        logger.debug("%s: RELAY_URL=%s argv=%s", trial, env[ENV_RELAY_URL], argv)

        if self._cancel.is_set():
            return RawResult(RunStatus.CANCELLED, None, 0.0, "", reason="cancelled before start")

        try:
            proc = self._popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=env,
                start_new_session=True,
            )
        except OSError as e:
            logger.warning("%s: failed to start client %s: %s", trial, argv[0], e)
            return RawResult(
                RunStatus.SPAWN_FAILED,
                None,
                time.monotonic() - start,
                "",
                reason=f"failed to start {argv[0]}: {e.strerror or e}",
                spawn_errno=e.errno,
            )

        buffer = OutputBuffer(self._config.output_limit)
        reader = threading.Thread(
            target=_drain,
            args=(proc.stdout, buffer),
            name=f"drain-{trial.index}",
            daemon=True,
        )
        reader.start()

        status, reason = self._wait(proc, start + timeout)
        if status is not RunStatus.COMPLETED:
            self._terminate(proc)
            cleanup = client.cleanup_command()
            if cleanup is not None:
                logger.debug("%s: %s", trial, " ".join(cleanup))
                self._cleanup(cleanup)
            if status is RunStatus.TIMEOUT:
                reason = f"client exceeded {timeout:g}s timeout"
                logger.warning("%s: %s", trial, reason)

        # A grandchild outside the process group can hold the pipe open.
        reader.join(timeout=max(self._config.terminate_grace, 1.0))
        if reader.is_alive():
            logger.warning("%s: client output pipe still open after exit", trial)
        elapsed = time.monotonic() - start
        if buffer.truncated:
            logger.warning("%s: output truncated at %d bytes", trial, len(buffer))

        return RawResult(
            status=status,
            exit_code=proc.returncode if status is RunStatus.COMPLETED else None,
            elapsed=elapsed,
            output=buffer.getvalue(),
            truncated=buffer.truncated,
            reason=reason,
        )

    def _wait(self, proc: subprocess.Popen, deadline: float) -> tuple[RunStatus, str | None]:
        """Block until the client exits, the deadline passes, or the run is cancelled."""
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return RunStatus.TIMEOUT, None
            try:
                proc.wait(timeout=min(self._config.poll_interval, remaining))
                return RunStatus.COMPLETED, None
            except subprocess.TimeoutExpired:
                pass
            if self._cancel.is_set():
                return RunStatus.CANCELLED, "cancelled while running"

    def _terminate(self, proc: subprocess.Popen) -> None:
        """Stop the client's process group: SIGTERM, then SIGKILL after the grace period."""
        self._signal(proc, signal.SIGTERM)
        try:
            proc.wait(timeout=self._config.terminate_grace)
            return
        except subprocess.TimeoutExpired:
            pass
        self._signal(proc, signal.SIGKILL)
        proc.wait()

    @staticmethod
    def _signal(proc: subprocess.Popen, sig: int) -> None:
        try:
            os.killpg(proc.pid, sig)
        except ProcessLookupError:
            return
        except PermissionError:
            # Group leader already gone and pid reused; fall back to the child itself.
            if proc.poll() is None:
                proc.send_signal(sig)

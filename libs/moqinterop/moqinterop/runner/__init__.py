"""Trial runner subpackage (Layer 3 -- depends on registry, pairing, config)."""

from moqinterop.runner.process import (
    CONTRACT_ENV,
    CONTRACT_EXIT_CODES,
    EXIT_FAIL,
    EXIT_PASS,
    EXIT_UNSUPPORTED,
    OutputBuffer,
    RawResult,
    RunStatus,
    TrialRunner,
    build_environment,
)
from moqinterop.runner.targets import (
    ClientLauncher,
    CommandClientLauncher,
    DockerClientLauncher,
    DockerRelayTarget,
    RelayTarget,
    RemoteRelayTarget,
    TargetResolutionError,
    resolve_client,
    resolve_relay,
)

__all__ = [
    "CONTRACT_ENV",
    "CONTRACT_EXIT_CODES",
    "EXIT_PASS",
    "EXIT_FAIL",
    "EXIT_UNSUPPORTED",
    "RunStatus",
    "RawResult",
    "OutputBuffer",
    "TrialRunner",
    "build_environment",
    "RelayTarget",
    "ClientLauncher",
    "DockerRelayTarget",
    "RemoteRelayTarget",
    "DockerClientLauncher",
    "CommandClientLauncher",
    "TargetResolutionError",
    "resolve_relay",
    "resolve_client",
]

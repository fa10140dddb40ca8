"""Runnable trial targets.

A relay is something a client connects to (``RelayTarget``); a client is
something the runner launches (``ClientLauncher``). Each has a local,
container-backed variant and a non-container variant, so the runner never
branches on descriptor shape.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from moqinterop.config import RunConfig
from moqinterop.registry.model import (
    CommandEndpoint,
    DockerEndpoint,
    Implementation,
    RemoteEndpoint,
)


class TargetResolutionError(Exception):
    """Raised when an implementation has no endpoint usable in the current mode."""


class RelayTarget(Protocol):
    """A relay endpoint a client can be pointed at."""

    identifier: str

    def relay_url(self) -> str:
        """URL handed to the client as ``RELAY_URL``."""
        ...

    def tls_disable_verify(self) -> bool:
        """Whether the client should skip certificate verification."""
        ...


class ClientLauncher(Protocol):
    """Something that can start a client process."""

    identifier: str

    def command(self, env_names: Sequence[str]) -> list[str]:
        """Return the argv that runs the client with the contract environment."""
        ...

    def cleanup_command(self) -> list[str] | None:
        """Return an argv that removes what killing the process group leaves behind."""
        ...


@dataclass(frozen=True)
class DockerRelayTarget:
    """Relay running as a container on the run's docker network.

    The container is started by the caller; its certificate is self-signed,
    so clients are told not to verify it.
    """

    identifier: str
    endpoint: DockerEndpoint
    host: str
    port: int

    def relay_url(self) -> str:
        return f"https://{self.host}:{self.port}"

    def tls_disable_verify(self) -> bool:
        return True


@dataclass(frozen=True)
class RemoteRelayTarget:
    """Relay reachable at a published URL."""

    identifier: str
    endpoint: RemoteEndpoint

    def relay_url(self) -> str:
        return self.endpoint.url

    def tls_disable_verify(self) -> bool:
        return self.endpoint.tls_disable_verify


@dataclass(frozen=True)
class DockerClientLauncher:
    """Client packaged as a container image.

    The container is named so it can be removed when the trial times out or
    is cancelled; killing the docker CLI does not stop the container itself.
    ``--init`` gives the client a PID 1 that forwards SIGTERM.
    """

    identifier: str
    endpoint: DockerEndpoint
    network: str
    container_name: str | None = None

    def command(self, env_names: Sequence[str]) -> list[str]:
        argv = ["docker", "run", "--rm", "--init", "--network", self.network]
        if self.container_name is not None:
            argv.extend(["--name", self.container_name])
        for name in env_names:
            # "-e NAME" forwards the value from the docker CLI's environment.
            argv.extend(["-e", name])
        argv.append(self.endpoint.image)
        return argv

    def cleanup_command(self) -> list[str] | None:
        if self.container_name is None:
            return None
        return ["docker", "rm", "--force", self.container_name]


@dataclass(frozen=True)
class CommandClientLauncher:
    """Client run directly from a local executable."""

    identifier: str
    endpoint: CommandEndpoint

    def command(self, env_names: Sequence[str]) -> list[str]:
        return list(self.endpoint.argv)

    def cleanup_command(self) -> list[str] | None:
        return None


def resolve_relay(impl: Implementation, config: RunConfig) -> RelayTarget:
    """Pick the relay endpoint to use for *impl* under ``config.mode``."""
    spec = impl.relay
    if spec is None:
        raise TargetResolutionError(f"{impl.identifier} does not declare a relay role")

    if config.mode in ("auto", "docker") and spec.docker is not None:
        host = config.relay_host.format(identifier=impl.identifier)
        return DockerRelayTarget(impl.identifier, spec.docker, host, config.relay_port)

    if config.mode in ("auto", "remote") and spec.remote:
        remotes = list(spec.remote)
        if config.transport is not None:
            remotes = [r for r in remotes if r.transport == config.transport]
            if not remotes:
                raise TargetResolutionError(
                    f"{impl.identifier} has no remote relay using transport {config.transport!r}"
                )
        return RemoteRelayTarget(impl.identifier, remotes[0])

    raise TargetResolutionError(f"{impl.identifier} has no relay endpoint usable in {config.mode!r} mode")


def resolve_client(
    impl: Implementation, config: RunConfig, container_name: str | None = None
) -> ClientLauncher:
    """Pick how to launch *impl* as a client.

    *container_name* names the container when a docker endpoint is chosen.
    """
    spec = impl.client
    if spec is None:
        raise TargetResolutionError(f"{impl.identifier} does not declare a client role")

    # Local commands need no container runtime, so they win outside docker mode.
    if spec.command is not None and config.mode != "docker":
        return CommandClientLauncher(impl.identifier, spec.command)
    if spec.docker is not None:
        return DockerClientLauncher(
            impl.identifier, spec.docker, config.docker_network, container_name
        )
    if spec.command is not None:
        return CommandClientLauncher(impl.identifier, spec.command)
    raise TargetResolutionError(f"{impl.identifier} has no launchable client endpoint")

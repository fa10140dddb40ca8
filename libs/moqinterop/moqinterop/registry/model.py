"""Typed view of the implementation catalogue."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

# Lowercase alphanumeric words joined by single hyphens: ``moq-rs``, ``xquic``.
IDENTIFIER_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def is_valid_identifier(identifier: str) -> bool:
    """Return True if *identifier* follows the registry key format."""
    return bool(IDENTIFIER_PATTERN.match(identifier))


class Role(Enum):
    """Capabilities an implementation can declare."""

    RELAY = "relay"
    CLIENT = "client"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DockerEndpoint:
    """Local, container-backed endpoint."""

    image: str


@dataclass(frozen=True)
class RemoteEndpoint:
    """Publicly reachable relay endpoint."""

    url: str
    transport: str = "quic"
    tls_disable_verify: bool = False


@dataclass(frozen=True)
class CommandEndpoint:
    """Locally executed client binary (argv, no shell)."""

    argv: tuple[str, ...]


Endpoint = Union[DockerEndpoint, RemoteEndpoint, CommandEndpoint]


@dataclass(frozen=True)
class RoleEndpoints:
    """Endpoint descriptors declared for one role of an implementation."""

    role: Role
    docker: DockerEndpoint | None = None
    remote: tuple[RemoteEndpoint, ...] = ()
    command: CommandEndpoint | None = None

    def usable(self) -> tuple[Endpoint, ...]:
        """Return the descriptors the engine can drive for this role.

        Relays are reached through a container or a remote URL. Clients are
        launched, so they need a container image or a local command.
        """
        found: list[Endpoint] = []
        if self.docker is not None:
            found.append(self.docker)
        if self.role is Role.RELAY:
            found.extend(self.remote)
        elif self.command is not None:
            found.append(self.command)
        return tuple(found)


@dataclass(frozen=True)
class Implementation:
    """One catalogue entry: a relay, a client, or both."""

    identifier: str
    name: str
    versions: frozenset[str]
    relay: RoleEndpoints | None = None
    client: RoleEndpoints | None = None
    url: str | None = None
    notes: str | None = None

    @property
    def capabilities(self) -> frozenset[Role]:
        return frozenset(
            role.role for role in (self.relay, self.client) if role is not None
        )

    def endpoints(self, role: Role) -> RoleEndpoints | None:
        return self.relay if role is Role.RELAY else self.client

    def supports(self, version: str) -> bool:
        return version in self.versions

    def __str__(self) -> str:
        return self.identifier


@dataclass(frozen=True)
class TestCase:
    """A named scenario the external client knows how to run."""

    # Keep pytest from collecting this class when imported into test modules.
    __test__ = False

    identifier: str
    description: str = ""

    def __str__(self) -> str:
        return self.identifier


@dataclass(frozen=True)
class Registry:
    """Validated catalogue of implementations, keyed by identifier."""

    implementations: dict[str, Implementation] = field(default_factory=dict)
    current_target: str | None = None

    def relays(self) -> tuple[Implementation, ...]:
        """Return relay-capable implementations sorted by identifier."""
        return self._with_role(Role.RELAY)

    def clients(self) -> tuple[Implementation, ...]:
        """Return client-capable implementations sorted by identifier."""
        return self._with_role(Role.CLIENT)

    def get(self, identifier: str) -> Implementation:
        try:
            return self.implementations[identifier]
        except KeyError:
            raise KeyError(f"Unknown implementation {identifier!r}") from None

    def all_versions(self) -> frozenset[str]:
        """Return every version tag declared by any implementation."""
        tags: set[str] = set()
        for impl in self.implementations.values():
            tags.update(impl.versions)
        return frozenset(tags)

    def _with_role(self, role: Role) -> tuple[Implementation, ...]:
        return tuple(
            impl
            for _, impl in sorted(self.implementations.items())
            if role in impl.capabilities
        )

    def __len__(self) -> int:
        return len(self.implementations)

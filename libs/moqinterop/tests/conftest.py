"""Shared fixtures for moqinterop unit tests."""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

from moqinterop.config import RunConfig
from moqinterop.registry.model import (
    CommandEndpoint,
    DockerEndpoint,
    Implementation,
    Registry,
    RemoteEndpoint,
    Role,
    RoleEndpoints,
    TestCase,
)


def _impl(
    identifier: str,
    versions: tuple[str, ...] = ("draft-16",),
    relay: bool = False,
    client: bool = False,
    client_argv: list[str] | None = None,
    remote_url: str | None = None,
) -> Implementation:
    relay_spec = None
    if relay:
        relay_spec = RoleEndpoints(
            Role.RELAY,
            docker=None if remote_url else DockerEndpoint(f"{identifier}-relay:latest"),
            remote=(RemoteEndpoint(remote_url, "quic", False),) if remote_url else (),
        )
    client_spec = None
    if client or client_argv:
        client_spec = RoleEndpoints(
            Role.CLIENT,
            docker=None if client_argv else DockerEndpoint(f"{identifier}-client:latest"),
            command=CommandEndpoint(tuple(client_argv)) if client_argv else None,
        )
    return Implementation(
        identifier=identifier,
        name=identifier.title(),
        versions=frozenset(versions),
        relay=relay_spec,
        client=client_spec,
    )


@pytest.fixture
def make_impl():
    """Factory for ``Implementation`` objects."""
    return _impl


@pytest.fixture
def make_registry():
    """Factory: build a ``Registry`` from implementations."""

    def factory(*impls: Implementation, current_target: str | None = None) -> Registry:
        return Registry({i.identifier: i for i in impls}, current_target)

    return factory


@pytest.fixture
def setup_only() -> TestCase:
    return TestCase("setup-only", "Connect and exchange SETUP")


@pytest.fixture
def config() -> RunConfig:
    return RunConfig(current_target="draft-16", workers=2, timeout=10.0, poll_interval=0.01)


@pytest.fixture
def write_client(tmp_path: Path):
    """Factory: write a Python client script and return its argv.

    The body runs with ``os`` and ``sys`` imported; it reads the contract
    environment like a real client would.
    """
    counter = iter(range(1_000_000))

    def factory(body: str) -> list[str]:
        path = tmp_path / f"client_{next(counter)}.py"
        path.write_text("import os, sys, time\n" + textwrap.dedent(body))
        return [sys.executable, str(path)]

    return factory

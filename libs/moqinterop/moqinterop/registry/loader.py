"""Load the implementation registry from JSON.

Only the checks the engine depends on are made here: identifier format,
non-empty version sets, and at least one usable endpoint per declared role.
Full file-format validation lives in ``moqinterop.registry.validate``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

from moqinterop.registry.errors import SchemaError
from moqinterop.registry.model import (
    CommandEndpoint,
    DockerEndpoint,
    Implementation,
    Registry,
    RemoteEndpoint,
    Role,
    RoleEndpoints,
    is_valid_identifier,
)

logger = logging.getLogger(__name__)

RegistrySource = Union[str, Path, Mapping[str, Any]]


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    """``object_pairs_hook`` that refuses repeated keys instead of keeping the last."""
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise SchemaError(f"Duplicate key {key!r}")
        result[key] = value
    return result


def decode_document(text: str) -> dict[str, Any]:
    """Decode registry JSON text, rejecting duplicate keys."""
    try:
        data = json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SchemaError("Registry document must be a JSON object")
    return data


def read_document(source: RegistrySource) -> dict[str, Any]:
    """Return the decoded registry document for *source*.

    *source* may be a path, a JSON string, or an already-decoded mapping.
    """
    if isinstance(source, Mapping):
        return dict(source)
    if isinstance(source, Path):
        return decode_document(_read_file(source))
    text = source.lstrip()
    if text.startswith("{"):
        return decode_document(source)
    return decode_document(_read_file(Path(source)))


def _read_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SchemaError(f"Registry file not found: {path}") from e


def load(source: RegistrySource) -> Registry:
    """Load and check a registry.

    Raises:
        SchemaError: If an identifier is malformed, a version set is empty,
            or a declared role has no usable endpoint descriptor.
    """
    data = read_document(source)
    entries = data.get("implementations", data)
    if not isinstance(entries, Mapping):
        raise SchemaError("Expected a mapping of implementations", "implementations")

    current_target = data.get("current_target")
    if current_target is not None and not isinstance(current_target, str):
        raise SchemaError("Expected a string", "current_target")

    implementations: dict[str, Implementation] = {}
    for identifier, entry in entries.items():
        if identifier == "current_target" and entries is data:
            continue
        implementations[identifier] = _load_implementation(identifier, entry)

    registry = Registry(implementations=implementations, current_target=current_target)
    logger.debug(
        "Loaded registry with %d implementations (%d relays, %d clients)",
        len(registry),
        len(registry.relays()),
        len(registry.clients()),
    )
    return registry


def _load_implementation(identifier: str, entry: Any) -> Implementation:
    path = f"implementations.{identifier}"
    if not is_valid_identifier(identifier):
        raise SchemaError(
            f"Identifier {identifier!r} must be lowercase words joined by hyphens",
            path,
        )
    if not isinstance(entry, Mapping):
        raise SchemaError("Expected an object", path)

    versions = entry.get("draft_versions")
    if not isinstance(versions, list) or not all(isinstance(v, str) for v in versions):
        raise SchemaError("Expected a list of version strings", f"{path}.draft_versions")
    if not versions:
        raise SchemaError("At least one protocol version is required", f"{path}.draft_versions")

    roles = entry.get("roles")
    if not isinstance(roles, Mapping) or not roles:
        raise SchemaError("Expected at least one role", f"{path}.roles")

    relay = client = None
    for role_name, spec in roles.items():
        try:
            role = Role(role_name)
        except ValueError:
            raise SchemaError(f"Unknown role {role_name!r}", f"{path}.roles") from None
        endpoints = _load_role(role, spec, f"{path}.roles.{role_name}")
        if role is Role.RELAY:
            relay = endpoints
        else:
            client = endpoints

    name = entry.get("name", identifier)
    if not isinstance(name, str):
        raise SchemaError("Expected a string", f"{path}.name")

    return Implementation(
        identifier=identifier,
        name=name,
        versions=frozenset(versions),
        relay=relay,
        client=client,
        url=entry.get("url"),
        notes=entry.get("notes"),
    )


def _load_role(role: Role, spec: Any, path: str) -> RoleEndpoints:
    if not isinstance(spec, Mapping):
        raise SchemaError("Expected an object", path)

    docker = None
    if "docker" in spec:
        image = spec["docker"].get("image") if isinstance(spec["docker"], Mapping) else None
        if not isinstance(image, str) or not image:
            raise SchemaError("Expected a non-empty image reference", f"{path}.docker.image")
        docker = DockerEndpoint(image=image)

    remote_specs = spec.get("remote", [])
    if isinstance(remote_specs, Mapping):
        remote_specs = [remote_specs]
    if not isinstance(remote_specs, list):
        raise SchemaError("Expected a list of remote endpoints", f"{path}.remote")
    remote = tuple(
        _load_remote(item, f"{path}.remote[{i}]") for i, item in enumerate(remote_specs)
    )

    command = None
    if "command" in spec:
        argv = spec["command"]
        if not isinstance(argv, list) or not argv or not all(isinstance(a, str) for a in argv):
            raise SchemaError("Expected a non-empty argv list", f"{path}.command")
        command = CommandEndpoint(argv=tuple(argv))

    endpoints = RoleEndpoints(role=role, docker=docker, remote=remote, command=command)
    if not endpoints.usable():
        expected = "docker or remote" if role is Role.RELAY else "docker or command"
        raise SchemaError(f"Role {role} declares no usable endpoint (need {expected})", path)
    return endpoints


def _load_remote(item: Any, path: str) -> RemoteEndpoint:
    if not isinstance(item, Mapping):
        raise SchemaError("Expected an object", path)
    url = item.get("url")
    if not isinstance(url, str) or not url:
        raise SchemaError("Expected a non-empty URL", f"{path}.url")
    transport = item.get("transport", "quic")
    if not isinstance(transport, str):
        raise SchemaError("Expected a string", f"{path}.transport")
    tls_disable_verify = item.get("tls_disable_verify", False)
    if not isinstance(tls_disable_verify, bool):
        raise SchemaError("Expected a boolean", f"{path}.tls_disable_verify")
    return RemoteEndpoint(url=url, transport=transport, tls_disable_verify=tls_disable_verify)

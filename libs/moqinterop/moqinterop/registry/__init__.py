"""Implementation registry subpackage (Layer 1 -- no internal dependencies)."""

from moqinterop.registry.errors import SchemaError
from moqinterop.registry.loader import load
from moqinterop.registry.model import (
    CommandEndpoint,
    DockerEndpoint,
    Implementation,
    Registry,
    RemoteEndpoint,
    Role,
    RoleEndpoints,
    TestCase,
    is_valid_identifier,
)
from moqinterop.registry.testcases import load_test_cases, parse_test_cases, select_test_cases

__all__ = [
    "SchemaError",
    "load",
    "Role",
    "DockerEndpoint",
    "RemoteEndpoint",
    "CommandEndpoint",
    "RoleEndpoints",
    "Implementation",
    "TestCase",
    "Registry",
    "is_valid_identifier",
    "load_test_cases",
    "parse_test_cases",
    "select_test_cases",
]

"""Full-format registry validation.

The engine's loader only enforces what pairing and running depend on. This
module checks the whole document against ``schema.json`` and reports
cross-reference warnings, for use by ``moq-interop validate`` and CI.
"""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema

from moqinterop.registry.errors import SchemaError
from moqinterop.registry.loader import RegistrySource, load, read_document
from moqinterop.registry.model import Registry

SCHEMA_PATH = Path(__file__).with_name("schema.json")


def load_schema(path: Path = SCHEMA_PATH) -> dict:
    """Load the registry JSON schema."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def validate_schema(data: dict, schema: dict | None = None) -> list[str]:
    """Validate data against the registry schema. Returns list of errors."""
    schema = schema if schema is not None else load_schema()
    validator = jsonschema.Draft7Validator(schema)
    errors = []
    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        where = " -> ".join(str(p) for p in error.path)
        errors.append(f"{error.message} (at {where})" if where else error.message)
    return errors


def check_version_overlap(registry: Registry) -> list[str]:
    """Warn about relays or clients with no counterpart sharing a version."""
    warnings = []
    for relay in registry.relays():
        if not any(relay.versions & client.versions for client in registry.clients()):
            warnings.append(f"Relay '{relay.identifier}' shares no version with any client")
    for client in registry.clients():
        if not any(client.versions & relay.versions for relay in registry.relays()):
            warnings.append(f"Client '{client.identifier}' shares no version with any relay")
    return warnings


def check_current_target(registry: Registry) -> list[str]:
    """Warn when the declared current target is supported by nobody."""
    target = registry.current_target
    if target is None or target in registry.all_versions():
        return []
    return [f"current_target '{target}' is not supported by any implementation"]


def generate_summary(registry: Registry) -> dict:
    """Generate summary statistics."""
    summary: dict[str, Any] = {
        "total": len(registry),
        "relays": len(registry.relays()),
        "clients": len(registry.clients()),
        "by_version": defaultdict(int),
    }
    for impl in registry.implementations.values():
        for version in impl.versions:
            summary["by_version"][version] += 1
    return summary


@dataclass
class ValidationReport:
    """Outcome of validating one registry document."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    registry: Registry | None = None

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_registry(source: RegistrySource) -> ValidationReport:
    """Run the schema check, the engine's own checks, and cross-references."""
    report = ValidationReport()
    try:
        data = read_document(source)
    except SchemaError as e:
        report.errors.append(str(e))
        return report

    report.errors.extend(validate_schema(data))
    try:
        report.registry = load(data)
    except SchemaError as e:
        report.errors.append(str(e))
        return report

    report.warnings.extend(check_version_overlap(report.registry))
    report.warnings.extend(check_current_target(report.registry))
    return report


def print_report(report: ValidationReport) -> None:
    """Print validation results and summary."""
    if report.errors:
        print("ERRORS:")
        for error in report.errors:
            print(f"  ✗ {error}")
        print()
    else:
        print("✓ Registry is well-formed")

    if report.warnings:
        print("WARNINGS:")
        for warning in report.warnings:
            print(f"  ⚠ {warning}")
        print()

    if report.registry is None:
        return

    summary = generate_summary(report.registry)
    print("=" * 70)
    print("REGISTRY SUMMARY")
    print("=" * 70)
    print(f"\nTotal implementations: {summary['total']}")
    print(f"  {'relays':30s} {summary['relays']:3d}")
    print(f"  {'clients':30s} {summary['clients']:3d}")

    print("\nBy protocol version:")
    for version, count in sorted(summary["by_version"].items()):
        print(f"  {version:30s} {count:3d}")
    print()

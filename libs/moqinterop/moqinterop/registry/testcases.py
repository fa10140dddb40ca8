"""Test-case catalogue loading."""

from __future__ import annotations

from pathlib import Path

import yaml

from moqinterop.registry.errors import SchemaError
from moqinterop.registry.model import TestCase, is_valid_identifier

DEFAULT_CATALOGUE = Path(__file__).with_name("testcases.yaml")


def load_test_cases(path: Path | str | None = None) -> tuple[TestCase, ...]:
    """Load test cases from a YAML list of ``{id, description}`` entries.

    Declaration order is preserved; it is the order trials run in.
    """
    path = Path(path) if path is not None else DEFAULT_CATALOGUE
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise SchemaError(f"Test-case catalogue not found: {path}") from e
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML in {path}: {e}") from e
    return parse_test_cases(data)


def parse_test_cases(data: object) -> tuple[TestCase, ...]:
    """Build test cases from already-decoded catalogue data."""
    if not isinstance(data, list):
        raise SchemaError("Test-case catalogue must be a list")

    cases: list[TestCase] = []
    seen: set[str] = set()
    for i, entry in enumerate(data):
        path = f"testcases[{i}]"
        if isinstance(entry, str):
            entry = {"id": entry}
        if not isinstance(entry, dict):
            raise SchemaError("Expected an object or identifier", path)
        identifier = entry.get("id")
        if not isinstance(identifier, str) or not is_valid_identifier(identifier):
            raise SchemaError(f"Invalid test-case identifier {identifier!r}", f"{path}.id")
        if identifier in seen:
            raise SchemaError(f"Duplicate test case {identifier!r}", f"{path}.id")
        seen.add(identifier)
        cases.append(TestCase(identifier, str(entry.get("description", ""))))
    return tuple(cases)


def select_test_cases(
    cases: tuple[TestCase, ...], identifiers: list[str] | None
) -> tuple[TestCase, ...]:
    """Narrow *cases* to *identifiers*, keeping catalogue order.

    Raises:
        KeyError: If an identifier is not in the catalogue.
    """
    if not identifiers:
        return cases
    known = {case.identifier for case in cases}
    unknown = [name for name in identifiers if name not in known]
    if unknown:
        raise KeyError(f"Unknown test case(s): {', '.join(unknown)}")
    wanted = set(identifiers)
    return tuple(case for case in cases if case.identifier in wanted)

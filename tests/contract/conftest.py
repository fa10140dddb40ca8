"""Pytest configuration for client contract tests."""

import pytest
from tests.contract.harnesses.process_harness import ProcessHarness


def get_available_harnesses():
    """Return list of available contract harnesses."""
    harnesses = [ProcessHarness()]
    return harnesses


@pytest.fixture(params=get_available_harnesses(), ids=lambda h: h.name)
def harness(request):
    """Provide a contract harness for testing.

    This fixture is parametrized to run tests against all available harnesses.
    Currently includes:
    - process: launches the client script through the real trial runner
    """
    return request.param

"""MoQT interoperability test orchestration.

Layers (each depends only on those above it):

- ``diagnostics``  locations and coded diagnostics
- ``config`` / ``registry``  run settings, implementation catalogue and test cases
- ``pairing`` / ``tap``  trial generation and TAP parsing
- ``runner`` / ``results``  client execution and verdicts
- ``orchestrator`` / ``cli``
"""

from moqinterop.config import ConfigError, RunConfig, load_run_config
from moqinterop.orchestrator import InteropRun, RunAborted, RunCancelled, run_interop
from moqinterop.pairing import PairFilter, Trial, VersionClassification, build
from moqinterop.registry import Registry, SchemaError, TestCase, load, load_test_cases
from moqinterop.results import InteropMatrix, TrialOutcome, TrialStatus, classify
from moqinterop.runner import RawResult, RunStatus, TrialRunner
from moqinterop.tap import ParsedResult, ParseError, parse

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "RunConfig",
    "load_run_config",
    "Registry",
    "SchemaError",
    "TestCase",
    "load",
    "load_test_cases",
    "VersionClassification",
    "Trial",
    "PairFilter",
    "build",
    "RunStatus",
    "RawResult",
    "TrialRunner",
    "ParsedResult",
    "ParseError",
    "parse",
    "TrialStatus",
    "TrialOutcome",
    "classify",
    "InteropMatrix",
    "InteropRun",
    "RunAborted",
    "RunCancelled",
    "run_interop",
]

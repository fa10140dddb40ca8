"""``moq-interop`` command line.

Usage:
    moq-interop run --registry implementations.json --target draft-16
    moq-interop run --relay moq-rs --testcase setup-only --output results.json
    moq-interop list --registry implementations.json
    moq-interop validate --registry implementations.json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from moqinterop.config import MODES, ConfigError, RunConfig, load_run_config
from moqinterop.orchestrator import InteropRun, RunAborted, RunCancelled
from moqinterop.pairing.engine import PairFilter, Trial, build
from moqinterop.registry.errors import SchemaError
from moqinterop.registry.loader import load
from moqinterop.registry.model import Registry
from moqinterop.registry.testcases import load_test_cases, select_test_cases
from moqinterop.registry.validate import print_report, validate_registry
from moqinterop.results.matrix import InteropMatrix

logger = logging.getLogger("moqinterop")

DEFAULT_REGISTRY = Path("implementations.json")

EXIT_OK = 0
EXIT_TRIAL_FAILURES = 1
EXIT_USAGE = 2
EXIT_ABORTED = 3
EXIT_INTERRUPTED = 130


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moq-interop",
        description="Run MoQT relay/client interoperability tests.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_registry(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--registry",
            type=Path,
            default=DEFAULT_REGISTRY,
            help="implementation registry JSON (default: %(default)s)",
        )

    run = sub.add_parser("run", help="execute interop trials")
    add_registry(run)
    run.add_argument("--config", type=Path, help="YAML run configuration")
    run.add_argument("--testcases", type=Path, help="YAML test-case catalogue")
    run.add_argument("--target", dest="current_target", help="current protocol version, e.g. draft-16")
    run.add_argument("--relay", action="append", default=[], help="only run against this relay (repeatable)")
    run.add_argument("--client", action="append", default=[], help="only run this client (repeatable)")
    run.add_argument("--testcase", action="append", default=[], help="only run this test case (repeatable)")
    run.add_argument(
        "--exclude-mismatched",
        action="store_true",
        help="skip pairs that share no protocol version",
    )
    run.add_argument("--workers", type=int, help="concurrent trials")
    run.add_argument("--timeout", type=float, help="per-trial timeout in seconds")
    run.add_argument("--mode", choices=MODES, help="endpoint selection mode")
    run.add_argument("--transport", help="preferred remote transport (quic, webtransport)")
    run.add_argument("--output", type=Path, help="write the interop matrix as JSON")
    run.add_argument("--dry-run", action="store_true", help="list trials without running them")
    run.add_argument("-v", "--verbose", action="store_true", default=None, help="debug logging; sets VERBOSE=1 for clients")

    lst = sub.add_parser("list", help="list registered implementations")
    add_registry(lst)

    val = sub.add_parser("validate", help="validate the registry file")
    add_registry(val)
    return parser


def _load_registry(path: Path) -> Registry:
    registry = load(path)
    logger.debug("Loaded %d implementations from %s", len(registry), path)
    return registry


def _print_trials(trials: tuple[Trial, ...]) -> None:
    for trial in trials:
        print(
            f"{trial.relay.identifier:20s} {trial.client.identifier:20s} "
            f"{trial.test_case.identifier:28s} {trial.classification}"
        )
    print(f"\n{len(trials)} trial(s)")


def _print_matrix(matrix: InteropMatrix) -> None:
    for outcome in matrix.outcomes:
        trial = outcome.trial
        line = (
            f"{outcome.status.value.upper():12s} {trial.relay.identifier:20s} "
            f"{trial.client.identifier:20s} {trial.test_case.identifier:28s} "
            f"{trial.classification}"
        )
        if outcome.reason and not outcome.status.successful:
            line += f"  ({outcome.reason})"
        print(line)
    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    for status, count in matrix.summary().items():
        print(f"  {status:30s} {count:3d}")
    if not matrix.outcomes:
        print("\nNo trials were run.")


def cmd_run(args: argparse.Namespace) -> int:
    registry = _load_registry(args.registry)
    config: RunConfig = load_run_config(
        args.config,
        fallback_target=registry.current_target,
        current_target=args.current_target,
        workers=args.workers,
        timeout=args.timeout,
        mode=args.mode,
        transport=args.transport,
        verbose=args.verbose,
    )
    cases = select_test_cases(load_test_cases(args.testcases), args.testcase)
    for name in args.relay + args.client:
        registry.get(name)
    pair_filter = PairFilter.of(args.relay, args.client, args.exclude_mismatched)
    trials = build(registry, cases, config.current_target, pair_filter)

    if args.dry_run:
        _print_trials(trials)
        return EXIT_OK

    run = InteropRun(config)
    status = None
    try:
        matrix = run.execute(trials)
    except RunCancelled as e:
        matrix, status = e.matrix, EXIT_INTERRUPTED
        logger.error("Run interrupted: %s", e)
    except RunAborted as e:
        matrix, status = e.matrix, EXIT_ABORTED
        logger.error("Run aborted: %s", e)

    _print_matrix(matrix)
    if args.output is not None:
        matrix.write_json(args.output)
        logger.info("Wrote interop matrix to %s", args.output)
    return status if status is not None else matrix.exit_status()


def cmd_list(args: argparse.Namespace) -> int:
    registry = _load_registry(args.registry)
    for impl in sorted(registry.implementations.values(), key=lambda i: i.identifier):
        roles = ",".join(sorted(str(r) for r in impl.capabilities))
        versions = ", ".join(sorted(impl.versions))
        print(f"{impl.identifier:24s} {roles:14s} {versions}")
    if registry.current_target:
        print(f"\ncurrent target: {registry.current_target}")
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    print(f"Validating registry: {args.registry}")
    print("-" * 70)
    report = validate_registry(args.registry)
    print_report(report)
    if not report.ok:
        print("Validation FAILED with errors.")
        return EXIT_USAGE
    print("Validation PASSED.")
    return EXIT_OK


COMMANDS = {"run": cmd_run, "list": cmd_list, "validate": cmd_validate}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(bool(getattr(args, "verbose", False)))
    try:
        return COMMANDS[args.command](args)
    except (SchemaError, ConfigError) as e:
        logger.error("%s", e)
        return EXIT_USAGE
    except KeyError as e:
        logger.error("%s", e.args[0] if e.args else e)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())

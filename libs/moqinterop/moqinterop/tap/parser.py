"""State-machine parser for TAP version 14 client output.

States:

- ``HEADER``     nothing TAP-shaped seen yet (client logs may precede the version line)
- ``PLAN``       version and/or leading plan seen, no test points yet
- ``ASSERTION``  at least one test point seen
- ``DIAGNOSTIC`` inside a ``---`` / ``...`` YAML block following a test point

Structural problems are recorded as coded warning diagnostics (anomalies) on
the result instead of being raised. Only output with no version line and no
test points at all, from a client that did not exit cleanly, raises
``ParseError``.
"""

from __future__ import annotations

import textwrap
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

import yaml

from moqinterop.diagnostics.collector import DiagnosticCollector
from moqinterop.diagnostics.location import SourceLocation
from moqinterop.tap.errors import ParseError
from moqinterop.tap.lexer import TapLexer
from moqinterop.tap.results import Anomaly, Assertion, AssertionOutcome, ParsedResult, Plan
from moqinterop.tap.tokens import Directive, LineKind, TapLine

SUPPORTED_VERSIONS = (13, 14)

# Column-zero line kinds that end a YAML block the client forgot to close.
_BLOCK_BREAKERS = {LineKind.VERSION, LineKind.PLAN, LineKind.TEST_POINT, LineKind.BAIL_OUT}


class ParserState(Enum):
    HEADER = auto()
    PLAN = auto()
    ASSERTION = auto()
    DIAGNOSTIC = auto()


@dataclass
class _OpenAssertion:
    """Mutable assertion while its trailing log and YAML block are collected."""

    number: int
    description: str
    outcome: AssertionOutcome
    ok: bool
    line: int
    directive_reason: str | None
    diagnostics: dict[str, Any] | None = None
    log: list[str] = field(default_factory=list)

    def freeze(self) -> Assertion:
        return Assertion(
            number=self.number,
            description=self.description,
            outcome=self.outcome,
            ok=self.ok,
            line=self.line,
            directive_reason=self.directive_reason,
            diagnostics=self.diagnostics,
            log=tuple(self.log),
        )


def _outcome(tok: TapLine) -> AssertionOutcome:
    if tok.directive is Directive.SKIP:
        return AssertionOutcome.SKIP
    if tok.directive is Directive.TODO:
        return AssertionOutcome.TODO
    return AssertionOutcome.PASS if tok.ok else AssertionOutcome.FAIL


class TapParser:
    """Incremental TAP parser.

    Feed lines with :meth:`feed` (or raw chunks with :meth:`feed_text`) as
    output arrives, then call :meth:`finish` once the stream is closed.
    """

    def __init__(
        self,
        source: str = "<stdout>",
        diagnostics: DiagnosticCollector | None = None,
    ) -> None:
        self._lexer = TapLexer(source)
        self._diag = diagnostics or DiagnosticCollector()
        self._state = ParserState.HEADER
        self._version: int | None = None
        self._plan: Plan | None = None
        self._plan_after_tests = False
        self._assertions: list[_OpenAssertion] = []
        self._preamble: list[str] = []
        self._bailed_out: str | None = None
        self._yaml_lines: list[str] = []
        self._yaml_start: SourceLocation | None = None
        self._yaml_allowed = False
        self._partial = ""
        self._lines = 0

    @property
    def state(self) -> ParserState:
        return self._state

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def feed_text(self, chunk: str) -> None:
        """Feed an arbitrary chunk of output; incomplete lines are held back."""
        data = self._partial + chunk
        lines = data.split("\n")
        self._partial = lines.pop()
        for line in lines:
            self.feed(line)

    def feed(self, line: str) -> None:
        """Feed one complete line (without its newline)."""
        self._lines += 1
        tok = self._lexer.classify(line)

        if self._state is ParserState.DIAGNOSTIC:
            if tok.kind is LineKind.YAML_END:
                self._close_yaml()
                return
            if tok.kind not in _BLOCK_BREAKERS:
                self._yaml_lines.append(tok.text)
                return
            self._diag.warning(
                "YAML diagnostic block not closed with '...'",
                self._yaml_start,
                code=Anomaly.YAML_UNTERMINATED,
            )
            self._close_yaml()

        if tok.kind is LineKind.YAML_START and self._yaml_allowed:
            self._yaml_allowed = False
            self._yaml_start = tok.location
            self._yaml_lines = []
            self._state = ParserState.DIAGNOSTIC
            return
        self._yaml_allowed = False

        if tok.kind is LineKind.VERSION:
            self._on_version(tok)
        elif tok.kind is LineKind.PLAN:
            self._on_plan(tok)
        elif tok.kind is LineKind.TEST_POINT:
            self._on_test_point(tok)
        elif tok.kind is LineKind.BAIL_OUT:
            self._on_bail_out(tok)
        elif tok.kind is not LineKind.BLANK:
            self._attach_log(tok.text)

    def feed_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.feed(line.rstrip("\n"))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _on_version(self, tok: TapLine) -> None:
        if self._version is not None or self._assertions:
            self._diag.warning(
                "Unexpected TAP version line after output began",
                tok.location,
                code=Anomaly.DUPLICATE_VERSION,
            )
            self._attach_log(tok.text)
            return
        self._version = tok.number
        if tok.number not in SUPPORTED_VERSIONS:
            self._diag.warning(
                f"TAP version {tok.number} is not supported; parsing as version 14",
                tok.location,
                code=Anomaly.UNSUPPORTED_VERSION,
            )
        self._state = ParserState.PLAN

    def _on_plan(self, tok: TapLine) -> None:
        if self._plan is not None:
            self._diag.warning(
                f"Plan already declared on line {self._plan.line}",
                tok.location,
                code=Anomaly.DUPLICATE_PLAN,
            )
            self._attach_log(tok.text)
            return
        self._plan = Plan(count=tok.number or 0, line=tok.location.line, skip_reason=tok.reason)
        self._plan_after_tests = bool(self._assertions)
        if self._state is ParserState.HEADER:
            self._state = ParserState.PLAN

    def _on_test_point(self, tok: TapLine) -> None:
        expected = len(self._assertions) + 1
        if self._plan_after_tests:
            self._diag.warning(
                "Test point after trailing plan",
                tok.location,
                code=Anomaly.TEST_AFTER_PLAN,
            )
        if tok.number is not None and tok.number != expected:
            self._diag.warning(
                f"Test point numbered {tok.number}, expected {expected}",
                tok.location,
                code=Anomaly.OUT_OF_SEQUENCE,
            )
        self._assertions.append(
            _OpenAssertion(
                number=tok.number if tok.number is not None else expected,
                description=tok.description,
                outcome=_outcome(tok),
                ok=tok.ok,
                line=tok.location.line,
                directive_reason=tok.reason,
            )
        )
        self._state = ParserState.ASSERTION
        self._yaml_allowed = True

    def _on_bail_out(self, tok: TapLine) -> None:
        if self._bailed_out is None:
            self._bailed_out = tok.reason or "bailed out"
        self._diag.warning(
            f"Client bailed out: {self._bailed_out}",
            tok.location,
            code=Anomaly.BAIL_OUT,
        )
        self._attach_log(tok.text)

    def _attach_log(self, text: str) -> None:
        if self._assertions:
            self._assertions[-1].log.append(text)
        else:
            self._preamble.append(text)

    def _close_yaml(self) -> None:
        target = self._assertions[-1]
        block = textwrap.dedent("\n".join(self._yaml_lines))
        try:
            data = yaml.safe_load(block) if block.strip() else {}
        except yaml.YAMLError as e:
            self._diag.warning(
                f"Invalid YAML diagnostic block: {e}",
                self._yaml_start,
                code=Anomaly.YAML_INVALID,
            )
            target.log.extend(self._yaml_lines)
        else:
            target.diagnostics = data if isinstance(data, dict) else {"value": data}
        self._yaml_lines = []
        self._yaml_start = None
        self._state = ParserState.ASSERTION

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def finish(self, exit_code: int | None = None) -> ParsedResult:
        """Close the stream and build the result.

        Raises:
            ParseError: If no version line and no test points were seen and
                *exit_code* is nonzero or unknown.
        """
        if self._partial:
            partial, self._partial = self._partial, ""
            self.feed(partial)

        if self._state is ParserState.DIAGNOSTIC:
            self._diag.warning(
                "YAML diagnostic block not closed before end of output",
                self._yaml_start,
                code=Anomaly.YAML_UNTERMINATED,
            )
            self._close_yaml()

        if self._version is None and not self._assertions:
            if exit_code != 0:
                raise ParseError(
                    "No TAP version line or test points in output",
                    SourceLocation("<stdout>", max(self._lines, 1)),
                    lines=self._lines,
                )

        if self._version is None:
            self._diag.warning("Missing 'TAP version' line", code=Anomaly.MISSING_VERSION)

        seen = len(self._assertions)
        if self._plan is None:
            self._diag.warning(f"No plan declared ({seen} test points seen)", code=Anomaly.MISSING_PLAN)
        elif self._plan.count != seen:
            self._diag.warning(
                f"Planned {self._plan.count} test points but saw {seen}",
                SourceLocation("<stdout>", self._plan.line),
                code=Anomaly.PLAN_MISMATCH,
            )

        return ParsedResult(
            version=self._version,
            plan=self._plan,
            assertions=tuple(a.freeze() for a in self._assertions),
            preamble=tuple(self._preamble),
            bailed_out=self._bailed_out,
            anomalies=tuple(d for d in self._diag.get_all() if d.code is not None),
        )


def parse(text: str, exit_code: int | None = None, source: str = "<stdout>") -> ParsedResult:
    """Parse buffered TAP output.

    Returns:
        A best-effort ``ParsedResult`` with anomalies flagged.

    Raises:
        ParseError: If the output is not TAP at all and the client exited
            nonzero (or the exit code is unknown).
    """
    parser = TapParser(source)
    parser.feed_text(text)
    return parser.finish(exit_code)

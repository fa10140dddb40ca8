"""TAP parser subpackage (Layer 2 -- depends on diagnostics)."""

from moqinterop.tap.errors import ParseError
from moqinterop.tap.lexer import TapLexer
from moqinterop.tap.parser import ParserState, TapParser, parse
from moqinterop.tap.results import Anomaly, Assertion, AssertionOutcome, ParsedResult, Plan
from moqinterop.tap.tokens import Directive, LineKind, TapLine

__all__ = [
    "LineKind",
    "Directive",
    "TapLine",
    "TapLexer",
    "Anomaly",
    "AssertionOutcome",
    "Assertion",
    "Plan",
    "ParsedResult",
    "ParserState",
    "TapParser",
    "parse",
    "ParseError",
]

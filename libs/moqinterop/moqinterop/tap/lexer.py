"""Line classifier for TAP (Test Anything Protocol) version 14 output."""

from __future__ import annotations

import re

from moqinterop.diagnostics.location import SourceLocation
from moqinterop.tap.tokens import Directive, LineKind, TapLine

_VERSION = re.compile(r"^TAP version (\d+)\s*$", re.IGNORECASE)
_PLAN = re.compile(r"^(\d+)\.\.(\d+)\s*(?:#\s*(.*?))?\s*$")
# TAP 14: the ok token must be followed by whitespace or end of line.
_TEST_POINT = re.compile(r"^(not ok|ok)(?=\s|$)(?:\s+(\d+))?(?:\s+-)?\s*(.*)$")
_BAIL_OUT = re.compile(r"^Bail out!\s*(.*)$", re.IGNORECASE)
_PRAGMA = re.compile(r"^pragma\s+([+-])(\w+)\s*$")
_YAML_START = re.compile(r"^(\s+)---\s*$")
_YAML_END = re.compile(r"^(\s+)\.\.\.\s*$")
# Directive after an unescaped '#': "# SKIP reason", "# todo not yet", "# skipped".
_DIRECTIVE = re.compile(r"(?<!\\)#\s*(SKIP|TODO)\S*(?:\s+(.*?))?\s*$", re.IGNORECASE)


class TapLexer:
    """Classify TAP output line by line.

    The lexer is stateless apart from the running line number, so it can be
    fed one line at a time as output streams in. Context-sensitive decisions
    (is this ``---`` really a diagnostic block?) belong to the parser.
    """

    def __init__(self, source: str = "<stdout>") -> None:
        self._source = source
        self._line = 0

    def classify(self, text: str) -> TapLine:
        """Classify the next line. *text* must not contain a newline."""
        self._line += 1
        text = text.rstrip("\r\n")
        loc = SourceLocation(self._source, self._line)

        if not text.strip():
            return TapLine(LineKind.BLANK, text, loc)

        m = _YAML_START.match(text)
        if m:
            return TapLine(LineKind.YAML_START, text, loc, indent=len(m.group(1)))
        m = _YAML_END.match(text)
        if m:
            return TapLine(LineKind.YAML_END, text, loc, indent=len(m.group(1)))

        # Everything below is only meaningful at column zero; indented
        # test points belong to subtests, which are kept as log context.
        if text[0].isspace():
            if text.lstrip().startswith("#"):
                return TapLine(LineKind.COMMENT, text, loc, reason=text.lstrip()[1:].strip())
            return TapLine(LineKind.UNKNOWN, text, loc)

        m = _VERSION.match(text)
        if m:
            return TapLine(LineKind.VERSION, text, loc, number=int(m.group(1)))

        m = _PLAN.match(text)
        if m:
            return self._plan(text, loc, m)

        m = _TEST_POINT.match(text)
        if m:
            return self._test_point(text, loc, m)

        m = _BAIL_OUT.match(text)
        if m:
            return TapLine(LineKind.BAIL_OUT, text, loc, reason=m.group(1).strip() or None)

        m = _PRAGMA.match(text)
        if m:
            return TapLine(
                LineKind.PRAGMA, text, loc, extra={"sign": m.group(1), "name": m.group(2)}
            )

        if text.startswith("#"):
            return TapLine(LineKind.COMMENT, text, loc, reason=text[1:].strip())

        return TapLine(LineKind.UNKNOWN, text, loc)

    def _plan(self, text: str, loc: SourceLocation, m: re.Match[str]) -> TapLine:
        start, end = int(m.group(1)), int(m.group(2))
        if start != 1:
            # "0..3" or "2..5" are not plans; leave them to the client log.
            return TapLine(LineKind.UNKNOWN, text, loc)
        reason = None
        comment = m.group(3)
        if comment and comment.upper().startswith("SKIP"):
            reason = comment[4:].strip() or "skipped"
        return TapLine(LineKind.PLAN, text, loc, number=end, reason=reason)

    def _test_point(self, text: str, loc: SourceLocation, m: re.Match[str]) -> TapLine:
        ok = m.group(1) == "ok"
        number = int(m.group(2)) if m.group(2) else None
        rest = m.group(3)

        directive = None
        reason = None
        d = _DIRECTIVE.search(rest)
        if d:
            directive = Directive(d.group(1).upper())
            reason = d.group(2) or None
            rest = rest[: d.start()]
        description = rest.strip().replace("\\#", "#").replace("\\\\", "\\")
        return TapLine(
            LineKind.TEST_POINT,
            text,
            loc,
            ok=ok,
            number=number,
            description=description,
            directive=directive,
            reason=reason,
        )

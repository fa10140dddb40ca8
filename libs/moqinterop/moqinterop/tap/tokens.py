"""Line kinds recognised by the TAP lexer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from moqinterop.diagnostics.location import SourceLocation


class LineKind(Enum):
    """Classification of one line of TAP output."""

    VERSION = auto()  # TAP version 14
    PLAN = auto()  # 1..N [# SKIP reason]
    TEST_POINT = auto()  # ok / not ok
    BAIL_OUT = auto()  # Bail out! reason
    PRAGMA = auto()  # pragma +strict
    COMMENT = auto()  # # free text
    YAML_START = auto()  # indented ---
    YAML_END = auto()  # indented ...
    BLANK = auto()
    UNKNOWN = auto()  # anything else: client log output


class Directive(Enum):
    """Test point directives."""

    SKIP = "SKIP"
    TODO = "TODO"


@dataclass(frozen=True)
class TapLine:
    """A classified line.

    Only the fields relevant to ``kind`` are populated: ``ok``/``number``/
    ``description``/``directive`` for test points, ``number`` (the count) for
    plans and versions, ``reason`` for plan skips, directives and bail-outs.
    """

    kind: LineKind
    text: str
    location: SourceLocation
    ok: bool = False
    number: int | None = None
    description: str = ""
    directive: Directive | None = None
    reason: str | None = None
    indent: int = 0
    extra: dict[str, str] = field(default_factory=dict)

"""Tests for the TAP line classifier."""

from __future__ import annotations

import pytest

from moqinterop.tap import Directive, LineKind, TapLexer


def classify(text: str):
    return TapLexer().classify(text)


class TestHeaderLines:
    def test_version(self):
        line = classify("TAP version 14")
        assert line.kind == LineKind.VERSION
        assert line.number == 14

    def test_plan(self):
        line = classify("1..5")
        assert line.kind == LineKind.PLAN
        assert line.number == 5
        assert line.reason is None

    def test_skip_plan(self):
        line = classify("1..0 # SKIP relay unreachable")
        assert line.kind == LineKind.PLAN
        assert line.number == 0
        assert line.reason == "relay unreachable"

    @pytest.mark.parametrize("text", ["0..3", "2..5"])
    def test_not_a_plan(self, text):
        assert classify(text).kind == LineKind.UNKNOWN

    def test_bail_out(self):
        line = classify("Bail out! relay crashed")
        assert line.kind == LineKind.BAIL_OUT
        assert line.reason == "relay crashed"

    def test_pragma(self):
        line = classify("pragma +strict")
        assert line.kind == LineKind.PRAGMA
        assert line.extra == {"sign": "+", "name": "strict"}


class TestTestPoints:
    def test_ok_with_number_and_description(self):
        line = classify("ok 1 - connected to relay")
        assert line.kind == LineKind.TEST_POINT
        assert line.ok
        assert line.number == 1
        assert line.description == "connected to relay"
        assert line.directive is None

    def test_not_ok(self):
        line = classify("not ok 2 - SUBSCRIBE_OK not received")
        assert not line.ok
        assert line.number == 2

    def test_bare_ok(self):
        line = classify("ok")
        assert line.kind == LineKind.TEST_POINT
        assert line.number is None
        assert line.description == ""

    def test_description_without_dash(self):
        assert classify("ok 3 setup complete").description == "setup complete"

    def test_skip_directive(self):
        line = classify("ok 4 - fetch # SKIP relay has no FETCH")
        assert line.directive == Directive.SKIP
        assert line.reason == "relay has no FETCH"
        assert line.description == "fetch"

    def test_todo_directive_case_insensitive(self):
        line = classify("not ok 5 # todo not implemented")
        assert line.directive == Directive.TODO
        assert line.reason == "not implemented"

    def test_skipped_spelling(self):
        line = classify("ok 6 # skipped")
        assert line.directive == Directive.SKIP
        assert line.reason is None

    def test_escaped_hash_is_not_a_directive(self):
        line = classify(r"ok 7 - track \# SKIP not really")
        assert line.directive is None
        assert line.description == "track # SKIP not really"

    def test_okay_is_not_a_test_point(self):
        assert classify("okay then").kind == LineKind.UNKNOWN

    @pytest.mark.parametrize(
        "text",
        [
            "ok, connected to relay",
            "not ok: retrying connect",
            "ok:",
            "not ok-ish handshake",
            "not okay",
        ],
    )
    def test_punctuation_after_ok_is_log_output(self, text):
        assert classify(text).kind == LineKind.UNKNOWN

    def test_ok_followed_by_tab(self):
        line = classify("ok\t1 - tabbed")
        assert line.kind == LineKind.TEST_POINT
        assert line.number == 1


class TestOtherLines:
    def test_comment(self):
        line = classify("# relay url https://relay:4443")
        assert line.kind == LineKind.COMMENT
        assert line.reason == "relay url https://relay:4443"

    def test_blank(self):
        assert classify("   ").kind == LineKind.BLANK

    def test_yaml_markers(self):
        start = classify("  ---")
        end = classify("    ...")
        assert (start.kind, start.indent) == (LineKind.YAML_START, 2)
        assert (end.kind, end.indent) == (LineKind.YAML_END, 4)

    def test_unindented_yaml_marker_is_unknown(self):
        assert classify("---").kind == LineKind.UNKNOWN

    def test_indented_test_point_is_not_top_level(self):
        assert classify("    ok 1 - subtest").kind == LineKind.UNKNOWN

    def test_indented_comment(self):
        assert classify("    # Subtest: announce").kind == LineKind.COMMENT

    def test_log_line(self):
        assert classify("2024-01-01 INFO connecting").kind == LineKind.UNKNOWN

    def test_trailing_newline_stripped(self):
        assert classify("ok 1 - x\r\n").description == "x"


class TestLineNumbers:
    def test_locations_increment(self):
        lexer = TapLexer("client.log")
        lines = [lexer.classify(t) for t in ("TAP version 14", "1..1", "ok 1")]
        assert [str(l.location) for l in lines] == [
            "client.log:1",
            "client.log:2",
            "client.log:3",
        ]

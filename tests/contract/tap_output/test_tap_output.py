"""
Contract: TAP version 14 on stdout
Assertions decide the verdict when the client exits 0; structural problems
are reported as anomalies, never as errors.
"""
import pytest


# Each test case is a tuple: (description, client_script, expected_status, expected_anomalies)

CASES = [
    (
        "clean_stream",
        'print("TAP version 14\\n1..2\\nok 1 - setup\\nok 2 - announce")\n',
        "pass",
        [],
    ),
    (
        "logs_interleaved",
        'print("client starting")\n'
        'print("TAP version 14\\n1..1")\n'
        'sys.stderr.write("debug: quic handshake\\n")\n'
        'print("ok 1 - setup")\n',
        "pass",
        [],
    ),
    (
        "ok_prefixed_log_lines",
        'print("TAP version 14\\n1..1\\nnot ok: retrying connect\\nok, connected\\nok 1 - setup")\n',
        "pass",
        [],
    ),
    (
        "plan_mismatch",
        'print("TAP version 14\\n1..3\\nok 1\\nok 2")\n',
        "pass",
        ["plan-mismatch"],
    ),
    (
        "failing_assertion_exit_0",
        'print("TAP version 14\\n1..2\\nok 1\\nnot ok 2 - SUBSCRIBE_OK")\n',
        "fail",
        [],
    ),
    (
        "bail_out_exit_0",
        'print("TAP version 14\\n1..2\\nok 1\\nBail out! relay went away")\n',
        "fail",
        ["bail-out", "plan-mismatch"],
    ),
    (
        "skip_plan",
        'print("TAP version 14\\n1..0 # SKIP relay lacks PUBLISH")\n',
        "pass",
        [],
    ),
    (
        "todo_failure_exit_0",
        'print("TAP version 14\\n1..1\\nnot ok 1 - fetch # TODO later")\n',
        "pass",
        [],
    ),
    (
        "yaml_diagnostics",
        'print("TAP version 14\\n1..1\\nnot ok 1 - subscribe\\n  ---\\n  message: timed out\\n  ...")\n'
        "sys.exit(1)\n",
        "fail",
        [],
    ),
    (
        "no_tap_exit_0",
        'print("done")\n',
        "pass",
        ["missing-version", "missing-plan"],
    ),
    (
        "no_tap_exit_1",
        'print("panic: connection refused")\nsys.exit(1)\n',
        "error",
        [],
    ),
]


@pytest.mark.parametrize(
    "description,script,expected,anomalies", CASES, ids=[c[0] for c in CASES]
)
def test_tap_output(harness, description, script, expected, anomalies):
    """Client TAP output is folded into the verdict as documented."""
    result = harness.run(script)
    assert result.status == expected, f"Expected {expected} but got {result.status}: {result.reason}"
    assert sorted(result.anomalies) == sorted(anomalies), \
        f"Unexpected anomalies: {result.anomalies}"


def test_testcase_reaches_client(harness):
    """The selected test case is passed as TESTCASE."""
    script = (
        'tc = os.environ["TESTCASE"]\n'
        'print("TAP version 14\\n1..1\\nok 1 - " + tc)\n'
    )
    result = harness.run(script, testcase="announce-subscribe")
    assert result.status == "pass"
    assert "ok 1 - announce-subscribe" in result.output

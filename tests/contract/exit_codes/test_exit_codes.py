"""
Contract: client exit codes
0 = pass, 1 = fail, 127 = test case unsupported; anything else is an error.
"""
import pytest


# Each test case is a tuple: (description, client_script, expected_outcome)
# expected_outcome is "<status>" or "<status>: <reason fragment>"

TAP_PASS = 'print("TAP version 14\\n1..1\\nok 1 - setup")\n'
TAP_FAIL = 'print("TAP version 14\\n1..1\\nnot ok 1 - setup")\nsys.exit(1)\n'

CASES = [
    ("exit_0_pass", TAP_PASS, "pass"),
    ("exit_1_fail", TAP_FAIL, "fail: 1 failing assertion"),
    ("exit_1_no_assertions", 'print("TAP version 14")\nsys.exit(1)\n', "fail"),
    ("exit_127_silent", "sys.exit(127)\n", "unsupported"),
    ("exit_127_with_noise", 'print("unknown TESTCASE")\nsys.exit(127)\n', "unsupported"),
    ("exit_2", TAP_PASS + "sys.exit(2)\n", "error: unexpected code 2"),
    ("exit_255", "sys.exit(255)\n", "error: unexpected code 255"),
    ("killed_by_signal", "import signal\nos.kill(os.getpid(), signal.SIGKILL)\n", "error: unexpected code -9"),
    ("uncaught_exception", 'raise SystemExit("boom")\n', "error: unparseable"),
]


@pytest.mark.parametrize("description,script,expected", CASES, ids=[c[0] for c in CASES])
def test_exit_codes(harness, description, script, expected):
    """Client exit code maps to the documented verdict."""
    result = harness.run(script)
    status, _, fragment = expected.partition(": ")
    assert result.status == status, f"Expected {status} but got {result.status}: {result.reason}"
    if fragment:
        assert fragment.lower() in (result.reason or "").lower(), \
            f"Expected '{fragment}' in reason: {result.reason}"

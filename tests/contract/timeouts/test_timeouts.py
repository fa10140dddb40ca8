"""
Contract: per-trial timeout
A client still running at the deadline is terminated and reported as timeout,
whatever it has printed so far.
"""
import pytest


CASES = [
    ("silent_hang", "time.sleep(60)\n"),
    (
        "hang_after_passing_tap",
        'print("TAP version 14\\n1..1\\nok 1 - setup", flush=True)\ntime.sleep(60)\n',
    ),
    (
        "ignores_sigterm",
        "import signal\nsignal.signal(signal.SIGTERM, signal.SIG_IGN)\ntime.sleep(60)\n",
    ),
]


@pytest.mark.parametrize("description,script", CASES, ids=[c[0] for c in CASES])
def test_timeouts(harness, description, script):
    """Clients exceeding the timeout are stopped."""
    result = harness.run(script, timeout=1.5)
    assert result.status == "timeout", f"Expected timeout but got {result.status}: {result.reason}"
    assert "1.5s" in (result.reason or "")


def test_partial_output_kept(harness):
    """Output printed before the deadline is preserved."""
    result = harness.run(
        'print("TAP version 14\\n1..2\\nok 1 - setup", flush=True)\ntime.sleep(60)\n',
        timeout=1.5,
    )
    assert result.status == "timeout"
    assert "ok 1 - setup" in result.output

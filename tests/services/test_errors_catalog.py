import pytest

from remotetest.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("test_suite_failed", host="testdriver-1", exit_code="101", artifact="/target/a.log")

    assert "Test suite on testdriver-1 exited with 101." in message
    assert "Suggested action:" in message
    assert "/target/a.log" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError):
        actionable_error("does_not_exist")

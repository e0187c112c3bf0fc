import pytest

from remotetest.errors import RunnerError
from remotetest.services.command_runner import CommandRunner
from remotetest.services.dispatch import StackableDispatcher


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None


def build_dispatcher(path):
    logger = DummyLogger()
    return StackableDispatcher(
        dispatcher=str(path),
        command_runner=CommandRunner(logger=logger),
        logger=logger,
    )


def test_build_command_follows_dispatch_tool_contract():
    dispatcher = build_dispatcher("/stackable.sh")

    assert dispatcher.build_command("testdriver-1", "/.cluster/key", "cargo --version") == [
        "/stackable.sh",
        "testdriver-1",
        "-i",
        "/.cluster/key",
        "cargo --version",
    ]


def test_execute_returns_remote_exit_status(make_dispatcher, key_file):
    fake = make_dispatcher(exit_codes={"cargo test": 101})
    dispatcher = build_dispatcher(fake.path)

    assert dispatcher.execute("testdriver-1", str(key_file), "cd repo/ && cargo test") == 101
    assert fake.calls == [
        {"host": "testdriver-1", "flag": "-i", "key": str(key_file), "command": "cd repo/ && cargo test"}
    ]


def test_capture_creates_artifact_directory_and_writes_output(tmp_path, make_dispatcher, key_file):
    fake = make_dispatcher(log_output="journal entry")
    dispatcher = build_dispatcher(fake.path)
    artifact = tmp_path / "target" / "nested" / "agent.log"

    exit_code = dispatcher.capture("main-1", str(key_file), "journalctl -u stackable-agent", str(artifact))

    assert exit_code == 0
    assert artifact.read_text(encoding="utf-8") == "journal entry\n"


def test_missing_dispatcher_raises_error(tmp_path, key_file):
    dispatcher = build_dispatcher(tmp_path / "missing.sh")

    with pytest.raises(RunnerError, match="not found"):
        dispatcher.execute("testdriver-1", str(key_file), "cargo --version")


def test_signal_termination_is_reported_like_a_shell(make_dispatcher, key_file):
    fake = make_dispatcher(signals={"cargo test": "SIGTERM"})
    dispatcher = build_dispatcher(fake.path)

    assert dispatcher.execute("testdriver-1", str(key_file), "cd repo/ && cargo test") == 143

import json
import sys
from pathlib import Path

import pytest

FAKE_DISPATCHER_TEMPLATE = """#!{python}
import json
import os
import signal
import sys
import time

host, flag, key, command = sys.argv[1:5]
with open({calls!r}, "a", encoding="utf-8") as file_obj:
    file_obj.write(json.dumps({{"host": host, "flag": flag, "key": key, "command": command}}) + "\\n")

if command.startswith("journalctl"):
    print({log_output!r})
    sys.stdout.flush()

for marker, seconds in json.loads({sleeps!r}).items():
    if marker in command:
        time.sleep(seconds)

for marker, signal_name in json.loads({signals!r}).items():
    if marker in command:
        os.kill(os.getpid(), getattr(signal, signal_name))
        time.sleep(5)

for marker, code in json.loads({exit_codes!r}).items():
    if marker in command:
        sys.exit(code)
sys.exit(0)
"""


class FakeDispatcher:
    def __init__(self, path: Path, calls_file: Path):
        self.path = path
        self.calls_file = calls_file

    @property
    def calls(self):
        if not self.calls_file.exists():
            return []
        return [json.loads(line) for line in self.calls_file.read_text(encoding="utf-8").splitlines()]

    @property
    def commands(self):
        return [call["command"] for call in self.calls]


@pytest.fixture
def make_dispatcher(tmp_path):
    """Writes an executable stand-in for stackable.sh that records its calls.

    ``exit_codes`` maps a command substring to the exit status returned for it,
    ``signals`` to a signal name the script sends itself, ``sleeps`` to a delay
    in seconds before answering.
    """

    def factory(exit_codes=None, log_output="stackable-agent: started", signals=None, sleeps=None):
        calls_file = tmp_path / "dispatch-calls.jsonl"
        script = tmp_path / "stackable.sh"
        script.write_text(
            FAKE_DISPATCHER_TEMPLATE.format(
                python=sys.executable,
                calls=str(calls_file),
                log_output=log_output,
                exit_codes=json.dumps(exit_codes or {}),
                signals=json.dumps(signals or {}),
                sleeps=json.dumps(sleeps or {}),
            ),
            encoding="utf-8",
        )
        script.chmod(0o755)
        return FakeDispatcher(script, calls_file)

    return factory


@pytest.fixture
def key_file(tmp_path):
    key = tmp_path / "cluster" / "key"
    key.parent.mkdir()
    key.write_text("dummy key", encoding="utf-8")
    return key

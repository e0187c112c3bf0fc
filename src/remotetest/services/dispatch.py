"""Remote dispatch service wrapping the cluster's stackable.sh tool."""

import os
from typing import List, Optional

from remotetest.errors import RunnerError
from remotetest.services.command_runner import CommandRunner


class StackableDispatcher:
    """Runs a command on a named host through the external dispatch script.

    The dispatch tool is treated as a black box with the contract
    ``<dispatcher> <host> -i <credential> <command>``: it executes ``command``
    on ``host`` and exits with the remote command's status.
    """

    def __init__(
        self,
        dispatcher: str,
        command_runner: CommandRunner,
        logger,
        timeout: Optional[float] = None,
    ):
        self.dispatcher = dispatcher
        self.command_runner = command_runner
        self.logger = logger
        self.timeout = timeout

    def build_command(self, host: str, credential_path: str, command: str) -> List[str]:
        return [self.dispatcher, host, "-i", credential_path, command]

    def execute(self, host: str, credential_path: str, command: str) -> int:
        self.logger.debug("Dispatching to %s: %s", host, command)
        result = self.command_runner.run(
            self.build_command(host, credential_path, command),
            check=False,
            timeout=self.timeout,
        )
        return self._exit_status(result.returncode)

    def capture(self, host: str, credential_path: str, command: str, output_path: str) -> int:
        """Dispatch ``command`` and write its stdout to ``output_path``."""
        try:
            os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        except OSError as exc:
            raise RunnerError(f"Could not create artifact directory for '{output_path}': {exc}") from exc
        self.logger.debug("Dispatching to %s (stdout -> %s): %s", host, output_path, command)
        result = self.command_runner.run(
            self.build_command(host, credential_path, command),
            check=False,
            timeout=self.timeout,
            stdout_path=output_path,
        )
        return self._exit_status(result.returncode)

    @staticmethod
    def _exit_status(returncode: int) -> int:
        # subprocess reports death by signal N as -N, a shell reports 128 + N.
        if returncode < 0:
            return 128 - returncode
        return returncode

"""Subprocess execution service for remotetest."""

import subprocess
from typing import List, Optional

from remotetest.errors import RunnerError


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    def run(
        self,
        cmd: List[str],
        check: bool = False,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        stdout_path: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout
        pipe = subprocess.PIPE if capture_output else None

        # The output file is truncated before dispatch, like a shell redirect.
        stdout_target = None
        if stdout_path:
            try:
                stdout_target = open(stdout_path, "w", encoding="utf-8")
            except OSError as exc:
                raise RunnerError(f"Could not open output file '{stdout_path}': {exc}") from exc

        try:
            result = subprocess.run(
                cmd,
                text=True,
                stdout=stdout_target if stdout_target is not None else pipe,
                stderr=pipe,
                timeout=effective_timeout,
            )
        except FileNotFoundError as exc:
            raise RunnerError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise RunnerError(f"Command timed out after {effective_timeout}s: {cmd_str}") from exc
        except OSError as exc:
            raise RunnerError(f"Failed to execute command: {cmd_str}. {exc}") from exc
        finally:
            if stdout_target is not None:
                stdout_target.close()

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise RunnerError(message)

        self.logger.debug(message)
        return result

"""
Thin wrapper around external process execution (dump utilities and friends).
"""
import logging
import os
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

EXIT_COMMAND_NOT_FOUND = 127
EXIT_TIMEOUT = 124


@dataclass
class ProcessResult:
    exit_code: int
    output: str = ''

    @property
    def ok(self):
        return self.exit_code == 0


class ProcessRunner:
    """
    Runs a command and reports (exit code, captured output).

    Never raises for process-level problems: a missing executable is
    reported as exit code 127 and a timeout as 124.
    """

    def run(self, command, args=(), timeout=None, env=None):
        cmd = [command, *args]
        run_env = None
        if env:
            run_env = os.environ.copy()
            run_env.update(env)

        try:
            completed = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
                env=run_env,
            )
        except FileNotFoundError:
            logger.error(f"{command} command not found")
            return ProcessResult(EXIT_COMMAND_NOT_FOUND, f"{command}: command not found")
        except subprocess.TimeoutExpired:
            logger.error(f"{command} timed out after {timeout}s")
            return ProcessResult(EXIT_TIMEOUT, f"{command} timed out after {timeout} seconds")

        if completed.returncode != 0:
            logger.warning(f"{command} exited with code {completed.returncode}")
        return ProcessResult(completed.returncode, completed.stdout or '')

# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Execution of runtime commands, either to completion with captured output or
as a long-running log follower read line by line.
"""
import subprocess
import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from ..errors import CommandError, ContainerIOError
from ..UTILS.log_utils import get_logger

logger = get_logger(__name__)


@dataclass
class CommandOutput:
    """Exit code and captured output of a finished command."""

    argv: List[str]
    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


class LogStream:
    """
    Output of a follow-mode process (``logs -f``), read incrementally.

    The process only ends when the container stops or the stream is closed.
    """

    def __init__(self, process: subprocess.Popen, close_timeout: float = 5.0):
        """
        :param process: The running follower with stdout piped.
        :param close_timeout: Seconds to wait after SIGTERM before killing.
        """
        self.process = process
        self.close_timeout = close_timeout
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def lines(self) -> Iterator[str]:
        """
        Yields decoded lines without their line terminator until EOF.
        """
        if self.process.stdout is None:
            return
        try:
            for raw in self.process.stdout:
                yield raw.decode("utf-8", errors="replace").rstrip("\r\n")
        except ValueError:
            # stdout was closed from another thread
            return

    def __iter__(self) -> Iterator[str]:
        return self.lines()

    def close(self) -> None:
        """
        Stops the follower by sending SIGTERM, followed by SIGKILL if it doesn't stop.
        Safe to call more than once and from another thread.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if self.process.poll() is None:
            self.process.terminate()
            try:
                self.process.wait(timeout=self.close_timeout)
            except subprocess.TimeoutExpired:
                logger.debug("Log follower %s did not terminate, killing", self.process.pid)
                self.process.kill()
                self.process.wait()

        if self.process.stdout is not None:
            self.process.stdout.close()

    def __enter__(self) -> "LogStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ProcessRunner:
    """
    Spawns the runtime binary. Stateless; one instance can be shared by backends.
    """

    def __init__(self, close_timeout: float = 5.0):
        """
        :param close_timeout: Seconds a log follower gets to exit after SIGTERM.
        """
        self.close_timeout = close_timeout

    def run(self, argv: Sequence[str]) -> CommandOutput:
        """
        Runs a command to completion, capturing stdout and stderr.

        Raises:
            ContainerIOError: If the process could not be spawned.
        """
        argv = list(argv)
        logger.debug("Run and wait for command: %s", argv)
        try:
            result = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                # Avoid shell=True for security reasons (CWE-78)
                shell=False,
            )
        except OSError as e:
            raise ContainerIOError(argv, e) from e

        output = CommandOutput(
            argv=argv,
            exit_code=result.returncode,
            stdout=result.stdout or b"",
            stderr=result.stderr or b"",
        )
        logger.debug("Command result: exit=%s stdout=%r stderr=%r",
                     output.exit_code, output.stdout[:500], output.stderr[:500])
        return output

    def run_checked(self, argv: Sequence[str]) -> CommandOutput:
        """
        Like run, but a non-zero exit code is an error.

        Raises:
            CommandError: Carrying the captured output.
        """
        output = self.run(argv)
        if not output.ok:
            raise CommandError(output)
        return output

    def follow(self, argv: Sequence[str], close_timeout: Optional[float] = None) -> LogStream:
        """
        Starts a long-running command and returns its merged stdout/stderr as a LogStream.
        """
        argv = list(argv)
        logger.debug("Follow command output: %s", argv)
        try:
            process = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                shell=False,
            )
        except OSError as e:
            raise ContainerIOError(argv, e) from e
        return LogStream(process, close_timeout=close_timeout or self.close_timeout)

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
Shared implementation of the runtime backends.

Docker and podman accept the same command line for everything pycontain
does, so a backend only decides which binary to call and how a remote host
is addressed. Everything else lives here.
"""
from typing import List, Optional, Sequence

from ..BUILDERS.command_builder import (
    Target,
    build_log_command,
    build_rm_command,
    build_run_command,
    build_stop_command,
)
from ..MANAGERS.container_handle import ContainerHandle
from ..MANAGERS.inspector import inspect_container
from ..MANAGERS.wait_strategies import wait_for
from ..MODELS.container import Container
from ..MODELS.runtime_config import RuntimeConfig
from ..MODELS.runtime_state import RuntimeState
from ..RUNNERS.process_runner import LogStream, ProcessRunner
from ..UTILS.log_utils import get_logger

logger = get_logger(__name__)


class Backend:
    """
    Client for a docker-compatible command line.

    Subclasses set ``binary`` and ``host_flag``.
    """

    binary: str = "docker"
    host_flag: str = "-H"

    def __init__(
        self,
        binary: Optional[str] = None,
        host: Optional[str] = None,
        runner: Optional[ProcessRunner] = None,
        config: Optional[RuntimeConfig] = None,
    ):
        """
        :param binary: Path or name of the runtime binary; defaults to the class's.
        :param host: Optional remote daemon address.
        :param runner: Process executor; a fresh ProcessRunner by default.
        :param config: Wait bounds and polling settings.
        """
        if binary:
            self.binary = binary
        self.host = host
        self.config = config or RuntimeConfig(runtime=self.binary)
        self.runner = runner or ProcessRunner(close_timeout=self.config.log_close_timeout)

    def host_args(self) -> List[str]:
        """Global arguments selecting the remote host, if any."""
        if self.host:
            return [self.host_flag, self.host]
        return []

    def command(self, args: Sequence[str]) -> List[str]:
        """Prefixes runtime arguments with the binary and global flags."""
        return [self.binary, *self.host_args(), *args]

    def create(self, container: Container) -> ContainerHandle:
        """
        Returns a handle owning a private copy of ``container``.
        """
        return ContainerHandle(self, container.model_copy(deep=True))

    def run(self, container: Container) -> None:
        logger.info("Starting container %s from %s", container.name, container.image)
        self.runner.run_checked(self.command(build_run_command(container)))

    def stop(self, target: Target) -> None:
        self.runner.run_checked(self.command(build_stop_command(target)))

    def rm(self, target: Target) -> None:
        self.runner.run_checked(self.command(build_rm_command(target)))

    def follow_logs(self, target: Target) -> LogStream:
        """Starts ``logs -f`` regardless of the container's state."""
        return self.runner.follow(self.command(build_log_command(target)))

    def log(self, target: Target) -> Optional[LogStream]:
        """
        Follows the logs of a running container.

        :return: A LogStream, or None if the container is not running.
        """
        if self.runs(target):
            return self.follow_logs(target)
        return None

    def inspect(self, target: Target) -> Optional[RuntimeState]:
        return inspect_container(self, target)

    def exists(self, target: Target) -> bool:
        return self.inspect(target) is not None

    def runs(self, target: Target) -> bool:
        state = self.inspect(target)
        return state is not None and state.running

    def wait(self, container: Container) -> None:
        wait_for(self, container)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(binary={self.binary!r}, host={self.host!r})"

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
Exceptions raised while driving the container runtime.
"""
from typing import Any, Optional, TYPE_CHECKING

from .MODELS.runtime_state import ContainerStatus

if TYPE_CHECKING:
    from .RUNNERS.process_runner import CommandOutput


class ContainersError(Exception):
    """Base class for every error raised by pycontain."""


class ContainerIOError(ContainersError):
    """
    The runtime binary could not be spawned or its output could not be collected.
    """

    def __init__(self, argv, cause: Optional[BaseException] = None):
        self.argv = list(argv)
        self.cause = cause
        super().__init__(f"Could not execute {' '.join(self.argv)}: {cause}")


class CommandError(ContainersError):
    """
    A runtime command that was expected to succeed exited with a non-zero code.

    The captured output is kept verbatim on ``output`` for diagnosis.
    """

    def __init__(self, output: "CommandOutput"):
        self.output = output
        stderr = output.stderr.decode("utf-8", errors="replace").strip()
        super().__init__(
            f"Command exited with non zero exit-code {output.exit_code}: "
            f"{' '.join(output.argv)}" + (f"\n{stderr}" if stderr else "")
        )

    @property
    def exit_code(self) -> int:
        return self.output.exit_code

    @property
    def stdout(self) -> bytes:
        return self.output.stdout

    @property
    def stderr(self) -> bytes:
        return self.output.stderr


class JsonError(ContainersError):
    """The output of ``inspect`` could not be decoded."""

    def __init__(self, raw: str, cause: Optional[BaseException] = None):
        self.raw = raw
        self.cause = cause
        super().__init__(f"Error parsing inspect output: {cause}")


class ContainerNotExists(ContainersError):
    """The container vanished while it was being waited for."""

    def __init__(self, container_name: str):
        self.container_name = container_name
        super().__init__(f"Container does not exist: {container_name}")


class ContainerStatusError(ContainersError):
    """A health check settled on a status other than healthy."""

    def __init__(self, status: ContainerStatus, container_name: Optional[str] = None):
        self.status = status
        self.container_name = container_name
        message = f"Unexpected container status: {status.name}"
        if container_name:
            message += f" (container {container_name})"
        super().__init__(message)


class ContainerWaitFailed(ContainersError):
    """Waiting for the container to become ready failed."""

    def __init__(self, container_name: str, wait_strategy: Any, message: Optional[str] = None):
        self.container_name = container_name
        self.wait_strategy = wait_strategy
        super().__init__(
            message
            or "Waiting for container to be ready failed. "
            f"Container name: {container_name}, wait strategy: {wait_strategy!r}"
        )


class ContainerWaitTimeout(ContainerWaitFailed):
    """The configured readiness bound elapsed before the container became ready."""

    def __init__(self, container_name: str, wait_strategy: Any, timeout: float):
        self.timeout = timeout
        super().__init__(
            container_name,
            wait_strategy,
            f"Container {container_name} was not ready after {timeout}s "
            f"(wait strategy: {wait_strategy!r})",
        )


class InvalidImageName(ContainersError, ValueError):
    """An image reference did not match ``name[:tag]``."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid image name: {name!r}")

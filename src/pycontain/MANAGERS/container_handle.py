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
Lifecycle management for a single container bound to a backend.
"""
from typing import Optional, TYPE_CHECKING

from ..MODELS.container import Container
from ..MODELS.runtime_state import RuntimeState
from ..RUNNERS.process_runner import LogStream
from ..UTILS.log_utils import get_logger

if TYPE_CHECKING:
    from ..BACKENDS.backend import Backend

logger = get_logger(__name__)


class ContainerHandle:
    """
    Runs, waits for, stops and removes one container.

    The handle keeps no state of its own about the container: whether it
    exists or runs is asked from the runtime every time. When the handle is
    used as a context manager (or garbage collected) the container is removed;
    failures during that implicit teardown are logged, never raised.

    Example::

        with Docker().create(container) as handle:
            handle.run_and_wait()
            ...
    """

    def __init__(self, backend: "Backend", container: Container):
        """
        :param backend: The runtime to drive.
        :param container: The container to manage. Must not be mutated afterwards.
        """
        self.backend = backend
        self._container = container
        self._closed = False

    @property
    def container(self) -> Container:
        return self._container

    @property
    def name(self) -> str:
        return self._container.name

    def inspect(self) -> Optional[RuntimeState]:
        return self.backend.inspect(self._container)

    def exists(self) -> bool:
        return self.inspect() is not None

    def is_running(self) -> bool:
        state = self.inspect()
        return state is not None and state.running

    def run(self) -> None:
        """
        Starts the container unless it is already running.
        """
        if not self.is_running():
            self.backend.run(self._container)

    def wait(self) -> None:
        """
        Blocks until the container's wait strategy is satisfied.
        """
        self.backend.wait(self._container)

    def run_and_wait(self) -> None:
        """
        Starts the container and waits for it, unless it is already running.
        """
        if not self.is_running():
            self.run()
            self.wait()

    def stop(self) -> None:
        """
        Stops the container if it is running.
        """
        if self.is_running():
            self.backend.stop(self._container)

    def rm(self) -> None:
        """
        Stops the container, then removes it if it still exists.
        """
        self.stop()
        if self.exists():
            self.backend.rm(self._container)

    def log(self) -> Optional[LogStream]:
        """
        Follows the container's logs.

        :return: An open LogStream, or None if the container is not running.
        """
        if self.is_running():
            return self.backend.follow_logs(self._container)
        return None

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """
        Removes the container. Errors propagate; subsequent calls do nothing.
        """
        if self._closed:
            return
        self._closed = True
        self.rm()

    def _teardown(self) -> None:
        try:
            self.close()
        except Exception as e:
            logger.warning("Failed to remove container %s: %s", self.name, e)

    def __enter__(self) -> "ContainerHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._teardown()

    def __del__(self):
        # __init__ may not have completed
        if getattr(self, "_closed", True):
            return
        self._teardown()

    def __repr__(self) -> str:
        return f"ContainerHandle({self.backend.binary}, {self.name})"

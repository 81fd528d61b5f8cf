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
Readiness checks run after a container has been started: a log line matching
a pattern, a healthy health check, or simply a fixed amount of time.
"""
import logging
import re
import threading
import time
from typing import TYPE_CHECKING

from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_result,
    stop_after_delay,
    stop_never,
    wait_fixed,
)

from ..errors import (
    ContainerNotExists,
    ContainerStatusError,
    ContainerWaitFailed,
    ContainerWaitTimeout,
)
from ..MODELS.container import (
    Container,
    LogMessage,
    WaitForHealthCheck,
    WaitTime,
)
from ..MODELS.runtime_state import ContainerStatus
from ..UTILS.log_utils import get_logger
from .inspector import inspect_container

if TYPE_CHECKING:
    from ..BACKENDS.backend import Backend

logger = get_logger(__name__)


def wait_for(backend: "Backend", container: Container) -> None:
    """
    Blocks until the container's wait strategy is satisfied, then sleeps the
    container's additional wait period.

    Without a wait strategy only the additional wait period applies.

    Raises:
        ContainerWaitFailed: The log stream ended without a matching line.
        ContainerWaitTimeout: A configured bound elapsed.
        ContainerStatusError: The health check settled on a non-healthy status.
        ContainerNotExists: The container does not exist, or vanished while polling its health.
    """
    strategy = container.wait_strategy

    if isinstance(strategy, WaitTime):
        wait_for_time(strategy.duration)
    elif isinstance(strategy, LogMessage):
        wait_for_log(backend, container, strategy.pattern)
    elif isinstance(strategy, WaitForHealthCheck):
        wait_for_health_check(backend, container)

    if container.additional_wait_period > 0:
        logger.debug("Waiting additional %ss for %s", container.additional_wait_period, container.name)
    time.sleep(container.additional_wait_period)


def wait_for_time(duration: float) -> None:
    time.sleep(duration)


def wait_for_log(backend: "Backend", container: Container, pattern: re.Pattern) -> None:
    """
    Follows the container's logs until a line matches ``pattern``.

    The stream carries the follower's stderr too, so the runtime's own error
    text (``Error: no such object: NAME``) would be matched like a log line.
    The container must therefore exist before its logs are followed.

    Unbounded unless the backend config sets ``log_timeout``; then a timer
    closes the stream when the time is up.

    Raises:
        ContainerNotExists: The container does not exist.
    """
    if inspect_container(backend, container) is None:
        raise ContainerNotExists(container.name)

    timeout = backend.config.log_timeout
    timed_out = threading.Event()

    stream = backend.follow_logs(container)

    def expire():
        timed_out.set()
        stream.close()

    timer = None
    if timeout is not None:
        timer = threading.Timer(timeout, expire)
        timer.daemon = True
        timer.start()

    try:
        for line in stream.lines():
            logger.debug("Searching for LogMessage pattern: %s, in: %s", pattern.pattern, line)
            if pattern.search(line):
                logger.debug("Found pattern in line: %s", line)
                return
    finally:
        if timer is not None:
            timer.cancel()
        stream.close()

    if timed_out.is_set():
        raise ContainerWaitTimeout(container.name, container.wait_strategy, timeout)
    raise ContainerWaitFailed(container.name, container.wait_strategy)


def wait_for_health_check(backend: "Backend", container: Container) -> None:
    """
    Polls the runtime until the container is healthy.

    ``starting`` is retried every ``health_poll_interval`` seconds; any other
    non-healthy status fails at once. Unbounded unless the backend config sets
    ``health_timeout``.
    """
    config = backend.config

    def poll() -> ContainerStatus:
        logger.debug("Checking health for %s", container.name)
        state = inspect_container(backend, container)
        if state is None:
            raise ContainerNotExists(container.name)

        status = state.health_status
        if status not in (ContainerStatus.HEALTHY, ContainerStatus.STARTING):
            raise ContainerStatusError(status, container.name)
        return status

    retrying = Retrying(
        retry=retry_if_result(lambda status: status == ContainerStatus.STARTING),
        wait=wait_fixed(config.health_poll_interval),
        stop=stop_after_delay(config.health_timeout) if config.health_timeout is not None else stop_never,
        before_sleep=before_sleep_log(logger, logging.DEBUG),
    )

    try:
        retrying(poll)
    except RetryError as e:
        raise ContainerWaitTimeout(container.name, container.wait_strategy, config.health_timeout) from e

    logger.info("Container %s is healthy", container.name)

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
Models describing a container to run: image, environment, ports, volumes,
health check and the strategy used to decide when it is ready.
"""
import random
import re
import string
from typing import Annotated, Iterable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from ..errors import InvalidImageName

DEFAULT_NAME_PREFIX = "pycontain"

# name[:tag]; the name may start with a registry that carries a port
IMAGE_PATTERN = re.compile(
    r"^((?:[0-9a-zA-Z.-]+(?::[0-9]+)?/)?[0-9a-zA-Z._/-]+)(?::([0-9a-zA-Z._-]+))?$"
)


def generate_name(prefix: str = DEFAULT_NAME_PREFIX) -> str:
    """
    Generates a container name of the form ``prefix-<8 random alphanumerics>``.
    """
    suffix = "".join(random.choices(string.ascii_letters + string.digits, k=8))
    return f"{prefix}-{suffix}"


class Image(BaseModel):
    """
    A container image reference.

    Examples:
        - nginx -> nginx:latest
        - docker.io/library/nginx:1.25 -> docker.io/library/nginx:1.25
    """
    name: str
    tag: str = "latest"

    @classmethod
    def parse(cls, reference: str) -> "Image":
        """
        Parse an image reference string of the form ``name[:tag]``.

        Raises:
            InvalidImageName: If the reference does not match.
        """
        match = IMAGE_PATTERN.fullmatch(reference or "")
        if not match:
            raise InvalidImageName(reference)
        return cls(name=match.group(1), tag=match.group(2) or "latest")

    def __str__(self) -> str:
        return f"{self.name}:{self.tag}"


class EnvVar(BaseModel):
    """An environment variable passed to the container."""
    key: str
    value: str


class PortMapping(BaseModel):
    """
    Maps ``source`` on the host to ``target`` in the container.
    Ports are kept as strings so service names and ranges pass through.
    """
    source: str
    target: str

    @field_validator("source", "target", mode="before")
    @classmethod
    def _port_to_str(cls, value):
        if isinstance(value, int):
            return str(value)
        return value


class NamedVolume(BaseModel):
    """A runtime-managed volume mounted into the container."""
    kind: Literal["named"] = "named"
    name: str
    mount_point: str


class HostMount(BaseModel):
    """A host directory bind-mounted into the container."""
    kind: Literal["mount"] = "mount"
    host_path: str
    mount_point: str


Volume = Annotated[Union[NamedVolume, HostMount], Field(discriminator="kind")]


class HealthCheck(BaseModel):
    """
    A health check command the runtime runs inside the container.
    Durations are in seconds.
    """
    command: str
    retries: Optional[int] = None
    interval: Optional[float] = None
    start_period: Optional[float] = None
    timeout: Optional[float] = None


class LogMessage(BaseModel):
    """Ready once a log line matches ``pattern``."""
    kind: Literal["log_message"] = "log_message"
    pattern: re.Pattern

    def __repr__(self) -> str:
        return f"LogMessage(pattern={self.pattern.pattern!r})"


class WaitForHealthCheck(BaseModel):
    """Ready once the runtime reports the container as healthy."""
    kind: Literal["health_check"] = "health_check"

    def __repr__(self) -> str:
        return "WaitForHealthCheck()"


class WaitTime(BaseModel):
    """Ready after a fixed amount of seconds."""
    kind: Literal["wait_time"] = "wait_time"
    duration: float

    def __repr__(self) -> str:
        return f"WaitTime(duration={self.duration})"


WaitStrategy = Annotated[
    Union[LogMessage, WaitForHealthCheck, WaitTime], Field(discriminator="kind")
]


class Container(BaseModel):
    """
    The schedulable unit: an image plus everything needed to run it.

    Built once with the ``with_*`` methods, then handed to a backend which
    treats it as read-only.
    """
    name: str = Field(default_factory=generate_name)
    image: Image
    command: List[str] = []
    env_vars: List[EnvVar] = []
    port_mappings: List[PortMapping] = []
    volumes: List[Volume] = []
    health_check: Optional[HealthCheck] = None
    wait_strategy: Optional[WaitStrategy] = None
    additional_wait_period: float = 0.0

    @classmethod
    def from_image(cls, image: Union[Image, str], prefix: str = DEFAULT_NAME_PREFIX) -> "Container":
        """
        Creates a container for an image with a generated name.

        :param image: An Image or a ``name[:tag]`` string.
        :param prefix: Prefix of the generated container name.
        """
        if isinstance(image, str):
            image = Image.parse(image)
        return cls(name=generate_name(prefix), image=image)

    def with_name(self, name: str) -> "Container":
        """Use an explicit name instead of the generated one."""
        self.name = name
        return self

    def with_command(self, command: Iterable[str]) -> "Container":
        """Replace the arguments passed after the image."""
        self.command = list(command)
        return self

    def with_arg(self, arg: str) -> "Container":
        self.command.append(arg)
        return self

    def with_env_var(self, key: str, value: str) -> "Container":
        self.env_vars.append(EnvVar(key=key, value=value))
        return self

    def with_port(self, source: Union[int, str], target: Union[int, str]) -> "Container":
        """Map port ``source`` on the host to ``target`` in the container."""
        self.port_mappings.append(PortMapping(source=source, target=target))
        return self

    def with_ports(self, ports: Iterable[Tuple[Union[int, str], Union[int, str]]]) -> "Container":
        """Replace all port mappings."""
        self.port_mappings = [PortMapping(source=s, target=t) for s, t in ports]
        return self

    def with_volume(self, name: str, mount_point: str) -> "Container":
        self.volumes.append(NamedVolume(name=name, mount_point=mount_point))
        return self

    def with_mount(self, host_path: str, mount_point: str) -> "Container":
        self.volumes.append(HostMount(host_path=host_path, mount_point=mount_point))
        return self

    def with_health_check(self, health_check: Union[HealthCheck, str]) -> "Container":
        """
        Define a health check explicitly. Images may already ship one.
        """
        if isinstance(health_check, str):
            health_check = HealthCheck(command=health_check)
        self.health_check = health_check
        return self

    def wait_for(self, strategy: WaitStrategy) -> "Container":
        self.wait_strategy = strategy
        return self

    def with_additional_wait_period(self, seconds: float) -> "Container":
        """Extra time to wait after the wait strategy succeeded."""
        self.additional_wait_period = seconds
        return self

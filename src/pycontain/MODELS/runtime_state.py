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
Models for the container state reported by the runtime's ``inspect`` verb.
"""
from typing import Optional
from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ContainerStatus(str, Enum):
    """Health status of a container as reported by the runtime."""

    NONE = ""
    STARTING = "starting"
    EXITED = "exited"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class Health(BaseModel):
    """
    Health block of the inspect output.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: ContainerStatus = Field(
        default=ContainerStatus.NONE,
        validation_alias=AliasChoices("Status", "status"),
    )


class ContainerState(BaseModel):
    """
    State block of the inspect output.

    Docker reports health under ``Health``, some podman versions under
    ``Healthcheck``; both end up in ``health``.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    running: bool = Field(validation_alias=AliasChoices("Running", "running"))
    health: Optional[Health] = Field(
        default=None,
        validation_alias=AliasChoices("Health", "Healthcheck", "health"),
    )


class RuntimeState(BaseModel):
    """
    The part of a container's inspect document pycontain cares about.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("Id", "id"))
    state: ContainerState = Field(validation_alias=AliasChoices("State", "state"))

    @property
    def running(self) -> bool:
        return self.state.running

    @property
    def health_status(self) -> ContainerStatus:
        """Health status, ``NONE`` when the runtime reported no health block."""
        if self.state.health is None:
            return ContainerStatus.NONE
        return self.state.health.status

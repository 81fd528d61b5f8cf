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
Settings shared by the runtime backends.
"""
import os
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import dotenv_values

RUNTIME_ENV_VAR = "PYCONTAIN_RUNTIME"


class RuntimeConfig(BaseModel):
    """
    Settings for talking to the container runtime.

    ``health_timeout`` and ``log_timeout`` bound the readiness waits. ``None``
    leaves them unbounded, in which case the caller is expected to impose
    its own timeout.
    """
    runtime: str = "docker"
    health_poll_interval: float = Field(default=0.2, ge=0)
    health_timeout: Optional[float] = Field(default=None, gt=0)
    log_timeout: Optional[float] = Field(default=None, gt=0)
    log_close_timeout: float = Field(default=5.0, gt=0)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "RuntimeConfig":
        """
        Builds a config whose runtime binary comes from ``PYCONTAIN_RUNTIME``.

        The process environment wins over values from ``env_file``.

        :param env_file: Optional path to a .env file.
        :param overrides: Explicit field values.
        """
        values = {}
        if env_file and os.path.exists(env_file):
            values.update(dotenv_values(env_file))
        values.update(os.environ)

        runtime = values.get(RUNTIME_ENV_VAR)
        if runtime and "runtime" not in overrides:
            overrides["runtime"] = runtime
        return cls(**overrides)

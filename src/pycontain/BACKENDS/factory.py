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
Selection of a backend from configuration.
"""
import os
from typing import Optional

from ..MODELS.runtime_config import RuntimeConfig
from ..RUNNERS.process_runner import ProcessRunner
from .backend import Backend
from .docker import Docker
from .podman import Podman


def backend_from_config(
    config: Optional[RuntimeConfig] = None,
    host: Optional[str] = None,
    runner: Optional[ProcessRunner] = None,
) -> Backend:
    """
    Returns a Podman backend if the configured binary is podman, else Docker.

    :param config: Defaults to ``RuntimeConfig.from_env()``.
    """
    config = config or RuntimeConfig.from_env()
    binary_name = os.path.basename(config.runtime)
    backend_cls = Podman if "podman" in binary_name else Docker
    return backend_cls(binary=config.runtime, host=host, runner=runner, config=config)

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
Docker backend.
"""
from .backend import Backend


class Docker(Backend):
    """
    Uses the docker CLI to manage containers.

    Example::

        container = Container.from_image("docker.io/library/nginx")
        container.with_health_check("curl http://localhost || exit 1").wait_for(WaitForHealthCheck())

        with Docker().create(container) as handle:
            handle.run_and_wait()
    """

    binary = "docker"
    host_flag = "-H"

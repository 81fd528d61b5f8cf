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
Builders turning a Container into argument lists for the runtime binary.

The functions are pure and return the arguments without the binary itself;
the backend prepends it. Argument order is stable and part of the contract.
"""
from typing import List, Union
from ..MODELS.container import Container, HostMount, NamedVolume

Target = Union[Container, str]


def container_name(target: Target) -> str:
    """Returns the name of a Container, or the target itself if it is a name."""
    if isinstance(target, Container):
        return target.name
    return target


def build_run_command(container: Container) -> List[str]:
    """
    Builds ``run -d --name N [-e K=V]* [-v S:D]* [-p S:T]* [health flags] IMAGE [ARGS...]``.
    """
    args = ["run", "-d", "--name", container.name]

    for env_var in container.env_vars:
        args.extend(["-e", f"{env_var.key}={env_var.value}"])

    for volume in container.volumes:
        if isinstance(volume, HostMount):
            args.extend(["-v", f"{volume.host_path}:{volume.mount_point}"])
        elif isinstance(volume, NamedVolume):
            args.extend(["-v", f"{volume.name}:{volume.mount_point}"])

    for mapping in container.port_mappings:
        args.extend(["-p", f"{mapping.source}:{mapping.target}"])

    args.extend(_health_check_args(container))
    args.append(str(container.image))
    args.extend(container.command)
    return args


def _health_check_args(container: Container) -> List[str]:
    check = container.health_check
    if check is None:
        return []

    args = ["--health-cmd", check.command]
    # Durations are passed as whole seconds
    if check.start_period is not None:
        args.append(f"--health-start-period={int(check.start_period)}s")
    if check.interval is not None:
        args.append(f"--health-interval={int(check.interval)}s")
    if check.timeout is not None:
        args.append(f"--health-timeout={int(check.timeout)}s")
    if check.retries is not None:
        args.append(f"--health-retries={check.retries}")
    return args


def build_stop_command(target: Target) -> List[str]:
    return ["stop", container_name(target)]


def build_rm_command(target: Target) -> List[str]:
    return ["rm", "-f", container_name(target)]


def build_log_command(target: Target) -> List[str]:
    """Follow mode: the process only ends with the container or when killed."""
    return ["logs", "-f", container_name(target)]


def build_inspect_command(target: Target) -> List[str]:
    return ["inspect", container_name(target)]

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
Parser for YAML container spec files.

Example::

    image: docker.io/library/nginx:1.25
    ports: ["8080:80"]
    environment:
      DEBUG: "true"
    health_check:
      command: curl http://localhost || exit 1
      interval: 2
    wait_for:
      health_check: true
"""
import os
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from ..MODELS.container import (
    Container,
    HealthCheck,
    LogMessage,
    WaitForHealthCheck,
    WaitTime,
)


class ContainerSpecParser:
    """
    Builds a Container from a YAML document.
    """

    def parse(self, spec_path: str) -> Container:
        """
        Parses a spec file from a path.

        :param spec_path: Path to the YAML file.
        :return: The described container.
        """
        with open(spec_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> Container:
        """
        Parses a spec from a string.

        :raises ValueError: If the document does not describe a container.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ValueError("A container spec must be a mapping")
        if not data.get('image'):
            raise ValueError("A container spec needs an 'image'")

        try:
            return self._build(data)
        except (ValidationError, TypeError) as e:
            raise ValueError(f"Invalid container spec: {e}") from e

    def _build(self, data: Dict[str, Any]) -> Container:
        container = Container.from_image(str(data['image']))

        if data.get('name'):
            container.with_name(str(data['name']))

        container.with_command(self._to_list(data.get('command')))

        env_spec = data.get('environment') or []
        if not isinstance(env_spec, (dict, list)):
            raise ValueError("'environment' must be a mapping or a list of KEY=VALUE")
        if isinstance(env_spec, dict):
            for key, value in env_spec.items():
                container.with_env_var(str(key), "" if value is None else str(value))
        else:
            for entry in env_spec:
                key, _, value = str(entry).partition('=')
                container.with_env_var(key, value)

        for port in self._sequence(data, 'ports'):
            if isinstance(port, dict):
                container.with_port(port.get('source'), port.get('target'))
            else:
                source, sep, target = str(port).partition(':')
                if not sep:
                    raise ValueError(f"Port mapping must be SOURCE:TARGET, got {port!r}")
                container.with_port(source, target)

        for volume in self._sequence(data, 'volumes'):
            source, sep, mount_point = str(volume).partition(':')
            if not sep:
                raise ValueError(f"Volume must be SOURCE:MOUNT_POINT, got {volume!r}")
            if os.path.isabs(source) or source.startswith('.'):
                container.with_mount(source, mount_point)
            else:
                container.with_volume(source, mount_point)

        health = data.get('health_check')
        if isinstance(health, str):
            container.with_health_check(health)
        elif isinstance(health, dict):
            container.with_health_check(HealthCheck.model_validate(health))
        elif health is not None:
            raise ValueError("'health_check' must be a command or a mapping")

        wait = data.get('wait_for')
        if wait:
            container.wait_for(self._parse_wait_strategy(wait))

        if data.get('additional_wait_period') is not None:
            container.with_additional_wait_period(float(data['additional_wait_period']))

        return container

    def _parse_wait_strategy(self, wait: Any):
        """
        Parses ``{log: REGEX}``, ``{health_check: true}`` or ``{time: SECONDS}``.
        """
        if not isinstance(wait, dict) or len(wait) != 1:
            raise ValueError("'wait_for' needs exactly one of: log, health_check, time")

        kind, value = next(iter(wait.items()))
        if kind == 'log':
            return LogMessage(pattern=str(value))
        if kind == 'health_check' and value:
            return WaitForHealthCheck()
        if kind == 'time':
            return WaitTime(duration=float(value))
        raise ValueError(f"Unknown wait strategy: {kind!r}")

    def _sequence(self, data: Dict[str, Any], key: str) -> List[Any]:
        value = data.get(key) or []
        if not isinstance(value, list):
            raise ValueError(f"'{key}' must be a list")
        return value

    def _to_list(self, val: Any) -> List[str]:
        """
        Helper to ensure a value is a list of strings.
        """
        if val is None:
            return []
        if isinstance(val, str):
            return [val]
        return [str(v) for v in val]

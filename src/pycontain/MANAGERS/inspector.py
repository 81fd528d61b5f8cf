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
Runtime inspection: existence, running flag and health of a container, as
reported by the runtime's ``inspect`` verb.
"""
import json
from typing import Optional, TYPE_CHECKING

from pydantic import ValidationError

from ..BUILDERS.command_builder import Target, build_inspect_command, container_name
from ..errors import CommandError, JsonError
from ..MODELS.runtime_state import RuntimeState
from ..RUNNERS.process_runner import CommandOutput
from ..UTILS.log_utils import get_logger

if TYPE_CHECKING:
    from ..BACKENDS.backend import Backend

logger = get_logger(__name__)

NO_SUCH_OBJECT_MARKER = "no such object"


def parse_inspect_output(output: CommandOutput) -> Optional[RuntimeState]:
    """
    Classifies the result of an ``inspect`` command.

    :param output: Captured result of ``inspect NAME``.
    :return: The decoded state, or None if the container does not exist.
    :raises CommandError: On any other non-zero exit.
    :raises JsonError: If a successful result cannot be decoded.
    """
    if not output.ok:
        if NO_SUCH_OBJECT_MARKER in output.stderr_text.lower():
            return None
        raise CommandError(output)

    raw = output.stdout_text
    try:
        documents = json.loads(raw)
        if not isinstance(documents, list):
            raise ValueError(f"expected a JSON array, got {type(documents).__name__}")
        if not documents:
            return None
        state = RuntimeState.model_validate(documents[0])
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError and pydantic's ValidationError are both ValueErrors
        raise JsonError(raw, e) from e

    logger.debug("Inspect state: %s", state.model_dump_json())
    return state


def inspect_container(backend: "Backend", target: Target) -> Optional[RuntimeState]:
    """
    Runs ``inspect`` for a container.

    :return: The container's state, or None if it does not exist.
    """
    output = backend.runner.run(backend.command(build_inspect_command(target)))
    state = parse_inspect_output(output)
    if state is None:
        logger.debug("Container %s does not exist", container_name(target))
    return state


def container_exists(backend: "Backend", target: Target) -> bool:
    return inspect_container(backend, target) is not None


def container_running(backend: "Backend", target: Target) -> bool:
    state = inspect_container(backend, target)
    return state is not None and state.running

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
Shared test doubles: in-memory process runners standing in for the runtime binary.
"""
import json
import threading
from typing import Dict, List, Optional

import pytest

from pycontain.BACKENDS.docker import Docker
from pycontain.MODELS.runtime_config import RuntimeConfig
from pycontain.RUNNERS.process_runner import CommandOutput, ProcessRunner


class FakeLogStream:
    """
    Yields canned lines, then either ends (EOF) or blocks until closed.
    """

    def __init__(self, lines: List[str], block: bool = False):
        self._lines = list(lines)
        self._block = block
        self._closed_event = threading.Event()
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self._closed_event.is_set()

    def lines(self):
        for line in self._lines:
            if self.closed:
                return
            yield line
        if self._block:
            self._closed_event.wait()

    def __iter__(self):
        return self.lines()

    def close(self):
        self.close_calls += 1
        self._closed_event.set()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class ScriptedRunner(ProcessRunner):
    """
    Returns queued outputs in order and records every argv.

    Once the queue is empty, ``inspect`` reports a running container.
    """

    def __init__(self, outputs=(), log_lines=(), block_logs: bool = False):
        super().__init__()
        self.outputs = list(outputs)
        self.log_lines = list(log_lines)
        self.block_logs = block_logs
        self.calls: List[List[str]] = []
        self.streams: List[FakeLogStream] = []

    def run(self, argv):
        self.calls.append(list(argv))
        if not self.outputs and argv[1] == "inspect":
            state = {"Id": f"id-{argv[-1]}", "State": {"Running": True}}
            return CommandOutput(list(argv), 0, json.dumps([state]).encode())
        out = self.outputs.pop(0)
        return CommandOutput(argv=list(argv), exit_code=out.exit_code, stdout=out.stdout, stderr=out.stderr)

    def follow(self, argv, close_timeout=None):
        self.calls.append(list(argv))
        stream = FakeLogStream(self.log_lines, block=self.block_logs)
        self.streams.append(stream)
        return stream


class FakeRuntimeRunner(ProcessRunner):
    """
    A tiny in-memory container runtime understanding run/stop/rm/inspect/logs.

    ``health`` is the sequence of health statuses returned by consecutive
    inspects; the last one sticks. ``None`` omits the health block.
    """

    def __init__(self, health: Optional[List[str]] = None, log_lines=(), fail_verbs=()):
        super().__init__()
        self.containers: Dict[str, Dict] = {}
        self.health = list(health) if health is not None else None
        self.log_lines = list(log_lines)
        self.fail_verbs = set(fail_verbs)
        self.calls: List[List[str]] = []
        self.streams: List[FakeLogStream] = []

    def verbs(self) -> List[str]:
        return [call[1] for call in self.calls]

    def count(self, verb: str) -> int:
        return self.verbs().count(verb)

    def add_container(self, name: str, running: bool = True):
        self.containers[name] = {"running": running}

    def run(self, argv):
        argv = list(argv)
        self.calls.append(argv)
        verb, args = argv[1], argv[2:]

        if verb in self.fail_verbs:
            return CommandOutput(argv, 125, b"", f"Error: {verb} failed".encode())

        if verb == "run":
            name = args[args.index("--name") + 1]
            self.add_container(name)
            return CommandOutput(argv, 0, f"id-{name}\n".encode())

        name = args[-1]
        if name not in self.containers:
            return CommandOutput(argv, 1, b"", f"Error: no such object: {name}".encode())

        if verb == "stop":
            self.containers[name]["running"] = False
            return CommandOutput(argv, 0, f"{name}\n".encode())
        if verb == "rm":
            del self.containers[name]
            return CommandOutput(argv, 0, f"{name}\n".encode())
        if verb == "inspect":
            state = {"Running": self.containers[name]["running"]}
            if self.health is not None:
                status = self.health.pop(0) if len(self.health) > 1 else self.health[0]
                state["Health"] = {"Status": status}
            return CommandOutput(argv, 0, json.dumps([{"Id": f"id-{name}", "State": state}]).encode())
        raise AssertionError(f"unexpected verb {verb}")

    def follow(self, argv, close_timeout=None):
        self.calls.append(list(argv))
        stream = FakeLogStream(self.log_lines)
        self.streams.append(stream)
        return stream


def make_backend(runner, **config):
    config.setdefault("health_poll_interval", 0)
    return Docker(runner=runner, config=RuntimeConfig(**config))


@pytest.fixture
def fake_runtime():
    return FakeRuntimeRunner()


@pytest.fixture
def backend(fake_runtime):
    return make_backend(fake_runtime)


@pytest.fixture
def backend_factory():
    return make_backend


@pytest.fixture
def runtime_factory():
    return FakeRuntimeRunner


@pytest.fixture
def scripted_factory():
    return ScriptedRunner

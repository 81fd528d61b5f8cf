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

import pytest
from pydantic import ValidationError
from pycontain.MODELS.runtime_config import RuntimeConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("PYCONTAIN_RUNTIME", raising=False)


def test_defaults():
    config = RuntimeConfig()
    assert config.runtime == "docker"
    assert config.health_poll_interval == 0.2
    assert config.health_timeout is None
    assert config.log_timeout is None
    assert config.log_close_timeout == 5.0


def test_from_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("PYCONTAIN_RUNTIME=podman\nOTHER=1\n")
    assert RuntimeConfig.from_env(env_file=str(env_file)).runtime == "podman"


def test_process_env_wins_over_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("PYCONTAIN_RUNTIME=podman\n")
    monkeypatch.setenv("PYCONTAIN_RUNTIME", "/usr/local/bin/docker")
    assert RuntimeConfig.from_env(env_file=str(env_file)).runtime == "/usr/local/bin/docker"


def test_missing_env_file_is_ignored(tmp_path):
    assert RuntimeConfig.from_env(env_file=str(tmp_path / "missing.env")).runtime == "docker"


def test_overrides_win(monkeypatch):
    monkeypatch.setenv("PYCONTAIN_RUNTIME", "podman")
    config = RuntimeConfig.from_env(runtime="docker", health_timeout=60)
    assert config.runtime == "docker"
    assert config.health_timeout == 60


@pytest.mark.parametrize("field,value", [
    ("health_poll_interval", -1),
    ("health_timeout", 0),
    ("log_timeout", -5),
    ("log_close_timeout", 0),
])
def test_invalid_bounds(field, value):
    with pytest.raises(ValidationError):
        RuntimeConfig(**{field: value})

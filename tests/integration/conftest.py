import json
import os
import stat
import sys

import pytest

FAKE_RUNTIME = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fake_runtime.py")


@pytest.fixture
def fake_docker(tmp_path, monkeypatch):
    """
    Path to an executable named ``docker`` that runs the fake runtime.
    """
    if sys.platform == "win32":
        pytest.skip("the fake runtime wrapper is a shell script")

    monkeypatch.setenv("FAKE_RUNTIME_STATE", str(tmp_path / "state.json"))
    monkeypatch.delenv("PYCONTAIN_RUNTIME", raising=False)

    wrapper = tmp_path / "docker"
    wrapper.write_text(f"#!/bin/sh\nexec '{sys.executable}' '{FAKE_RUNTIME}' \"$@\"\n")
    wrapper.chmod(wrapper.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(wrapper)


@pytest.fixture
def runtime_state(tmp_path):
    """Reads the fake runtime's containers."""
    def read():
        path = tmp_path / "state.json"
        if not path.exists():
            return {}
        return json.loads(path.read_text())
    return read

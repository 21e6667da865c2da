"""Pytest configuration and fixtures for buildmedic tests"""

import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

# Ensure src directory is in Python path before any imports
src_path = Path(__file__).resolve().parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from buildmedic.ci.command_runner import CommandRunner
from buildmedic.config import Settings


class FakeExecutor:
    """Scripted stand-in for the shell: command -> (output, exit code).

    Unscripted commands succeed with empty output. Every call is recorded.
    """

    def __init__(self, responses: Dict[str, Tuple[str, int]] = None):
        self.responses: Dict[str, Tuple[str, int]] = dict(responses or {})
        self.calls: List[str] = []

    def __call__(self, command: str) -> Tuple[str, int]:
        self.calls.append(command)
        return self.responses.get(command, ("", 0))


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Settings rooted in a temp checkout, isolated from BUILDMEDIC_* env vars."""
    for key in list(os.environ):
        if key.startswith("BUILDMEDIC_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return Settings(project_root=tmp_path)


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def runner(executor, tmp_path):
    return CommandRunner(cwd=tmp_path, executor=executor)


@pytest.fixture(autouse=True)
def _reset_buildmedic_logger():
    """Drop handlers configured by CLI tests so file handles do not leak."""
    yield
    logger = logging.getLogger("buildmedic")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

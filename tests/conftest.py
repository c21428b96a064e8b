"""Shared pytest fixtures and configuration."""

import shutil
import uuid

import pytest
import pytest_asyncio

from shellkeep.config import SessionConfig
from shellkeep.controller import BashController
from shellkeep.session import ShellSession

BASH = shutil.which("bash")


@pytest.fixture
def fast_config():
    """Session settings tuned for quick tests."""
    return SessionConfig(shell=BASH or "/bin/sh", output_delay=0.05, timeout=10)


@pytest_asyncio.fixture
async def session(fast_config):
    """A started shell session, stopped after the test."""
    s = ShellSession(fast_config)
    await s.start()
    yield s
    if s.started:
        await s.stop()


@pytest_asyncio.fixture
async def controller(fast_config):
    """A controller whose sessions are all stopped after the test."""
    c = BashController(fast_config)
    yield c
    await c.shutdown()


@pytest.fixture
def unique_id():
    """Generate a unique test ID."""
    return f"test-{uuid.uuid4().hex[:12]}"

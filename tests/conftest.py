"""
Shared fixtures for the Linear bridge tests
"""

import logging
import os
from types import SimpleNamespace
from unittest.mock import AsyncMock

# Settings are validated on import of linear_bridge.core.config
os.environ.setdefault("LINEAR_API_KEY", "lin_api_test_key")

import pytest
import respx

from linear_bridge.linear_mcp.tool import ToolContext
from linear_bridge.services.entities import RemoteEntity
from linear_bridge.services.linear_client import LinearClient

TEST_API_KEY = "lin_api_test_key"


def entity(kind, slots=None, **data):
    """Build a remote entity from keyword data and optional slot values."""
    return RemoteEntity(kind, data, slots or {})


def deferred(value):
    """Slot that resolves to ``value``."""
    async def fetch():
        return value
    return fetch


def failing(error):
    """Slot that raises ``error`` when resolved."""
    async def fetch():
        raise error
    return fetch


def member(member_id, name, **data):
    return entity("member", id=member_id, name=name, **data)


def project(project_id, name, updated_at="2024-05-01T12:00:00Z", slots=None, **data):
    return entity("project", slots=slots, id=project_id, name=name, updatedAt=updated_at, **data)


def issue(issue_id, title, slots=None, **data):
    data.setdefault("identifier", f"ENG-{issue_id}")
    data.setdefault("createdAt", "2024-05-01T09:00:00Z")
    data.setdefault("updatedAt", "2024-05-02T09:00:00Z")
    return entity("issue", slots=slots, id=issue_id, title=title, **data)


@pytest.fixture
def respx_mock():
    """Route httpx traffic through a respx router for the duration of a test."""
    with respx.mock() as router:
        yield router


@pytest.fixture
def linear():
    """Linear client double; every query method is an AsyncMock."""
    return AsyncMock(spec=LinearClient)


@pytest.fixture
def tool_context(linear):
    """Context with a configured API key and the client double."""
    return ToolContext(
        settings=SimpleNamespace(LINEAR_API_KEY=TEST_API_KEY, DEBUG=False),
        linear=linear,
        logger=logging.getLogger("tests.tools"),
    )

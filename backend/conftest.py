"""Pytest collection helpers for backend test runs.

Kept at the backend/ root so pytest loads it before collecting tests and the
settings below are in place before app modules read them.
"""
import pytest

from app.core.config import settings


@pytest.fixture(scope="session", autouse=True)
def disable_push_delivery():
    """Keep pushes off the network."""
    settings.PUSHY_API_KEY = None


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"

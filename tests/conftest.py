"""Shared fixtures for chainschema tests."""

from __future__ import annotations

import asyncio
import logging

import pytest
import structlog

from chainschema import schema
from chainschema.config import get_settings
from chainschema.logging import LoggerRegistry


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read settings from the environment for every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any structlog/stdlib configuration a test installs."""
    yield
    structlog.reset_defaults()
    LoggerRegistry._loggers.clear()
    package_logger = logging.getLogger("chainschema")
    package_logger.handlers = []
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def login_schema():
    """Record schema with an either/or contact requirement."""
    return schema.object({
        "email": schema.string().trim().lowercase().email(),
        "phone": schema.string(),
        "password": schema.string().required().min(8),
    }).or_("email", "phone")


@pytest.fixture
def is_available():
    """Async predicate rejecting names already taken."""
    taken = {"admin", "root"}

    async def check(value):
        await asyncio.sleep(0)
        return value not in taken

    return check

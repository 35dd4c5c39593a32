"""Pytest configuration and fixtures."""

import os
import tempfile

import pytest_asyncio
from factories import OTHER_USER, USER

from findash.api.dependencies import CommonDependencies
from findash.auth import TokenManager
from findash.database import Database
from findash.settings import Settings


@pytest_asyncio.fixture
async def temp_db():
    """Create a temporary database with default settings."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = Database(path)
    await db.connect()

    settings = Settings()
    settings._db = db
    await settings.init_defaults()

    yield db

    await db.close()
    db.remove_from_cache()
    for ext in ["", "-wal", "-shm"]:
        p = path + ext
        if os.path.exists(p):
            os.unlink(p)


@pytest_asyncio.fixture
async def deps(temp_db):
    return CommonDependencies(db=temp_db, settings=Settings())


@pytest_asyncio.fixture
async def token(temp_db):
    """Bearer token for USER."""
    value, _ = await TokenManager(temp_db).create_token(USER, "tests")
    return value


@pytest_asyncio.fixture
async def other_token(temp_db):
    """Bearer token for OTHER_USER."""
    value, _ = await TokenManager(temp_db).create_token(OTHER_USER, "tests")
    return value

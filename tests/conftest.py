"""Shared pytest fixtures for treestore tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from treestore.avatars.storage import AvatarStorage
from treestore.db.connection import Database
from treestore.main import app
from treestore.nestedset import NestedSetStore, TreeAssembler
from treestore.trees.router import get_tree_service
from treestore.trees.service import TreeService


@pytest.fixture
async def db():
    """In-memory database for tests."""
    database = await Database.connect(":memory:")
    yield database
    await database.close()


@pytest.fixture
async def store(db):
    """NestedSetStore with a fresh ROOT node (id 1, lft 1, rgt 2)."""
    nested = NestedSetStore(db)
    await nested.initialize()
    return nested


@pytest.fixture
async def assembler(db, store):
    """TreeAssembler sharing the store's guard."""
    return TreeAssembler(db, store.guard)


@pytest.fixture
def avatars(tmp_path):
    """AvatarStorage in a per-test temporary directory."""
    return AvatarStorage(tmp_path / "avatars")


@pytest.fixture
async def service(store, assembler, avatars):
    return TreeService(store, assembler, avatars)


@pytest.fixture
async def client(service):
    """Async test client with in-memory DB wired into the app."""
    app.dependency_overrides[get_tree_service] = lambda: service
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    app.dependency_overrides.clear()

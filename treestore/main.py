"""Treestore FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from treestore.avatars.storage import AvatarStorage
from treestore.config import Settings
from treestore.db.connection import Database
from treestore.nestedset import (
    IdentityResolver,
    MutationGuard,
    NestedSetStore,
    TreeAssembler,
)
from treestore.trees.router import get_tree_service
from treestore.trees.router import router as trees_router
from treestore.trees.service import TreeService

VERSION = "0.1.0"

# Load .env from the project directory before settings are read
load_dotenv(Path(__file__).resolve().parent.parent / ".env")
settings = Settings.from_env()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage database lifecycle and service wiring."""
    db = await Database.connect(settings.db_path)

    guard = MutationGuard(lock_timeout=settings.lock_timeout)
    store = NestedSetStore(db, guard, IdentityResolver(settings.duplicate_titles))
    await store.initialize(settings.root_title, reset=settings.reset_on_startup)

    service = TreeService(store, TreeAssembler(db, guard), AvatarStorage(settings.avatar_dir))
    app.dependency_overrides[get_tree_service] = lambda: service

    app.state.db = db
    app.state.settings = settings
    yield

    await db.close()


app = FastAPI(
    title="Treestore",
    description="Hierarchical tree of named nodes stored as a nested set",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(trees_router)


@app.get("/api/health")
async def health() -> dict:
    return {"status": "ok", "version": VERSION}

"""Shared pytest fixtures for userlayout tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from userlayout.domain.descriptions import ChannelDescription, FolderDescription
from userlayout.domain.layout import UserLayout
from userlayout.infrastructure.database.engine import init_database
from userlayout.infrastructure.store import LayoutStore
from userlayout.services.manager import LayoutManager


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "layouts.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(db_engine: Engine) -> LayoutStore:
    return LayoutStore(db_engine)


@pytest.fixture
def sample_layout() -> UserLayout:
    """Small layout used across the suite.

    ::

        root
        ├── s1 "Main"
        │   ├── n1 weather  (param zip=02139)
        │   └── n2 news
        ├── s2 "Locked" (immutable)
        │   └── n3 bookmarks
        └── n4 clock (unremovable)
    """
    pairs = [
        (None, FolderDescription(id="root", name="Root folder")),
        ("root", FolderDescription(id="s1", name="Main")),
        (
            "s1",
            ChannelDescription(
                id="n1",
                name="Weather",
                fname="weather",
                parameters={"zip": "02139"},
            ),
        ),
        ("s1", ChannelDescription(id="n2", name="News", fname="news")),
        ("root", FolderDescription(id="s2", name="Locked", immutable=True)),
        ("s2", ChannelDescription(id="n3", name="Bookmarks", fname="bookmarks")),
        ("root", ChannelDescription(id="n4", name="Clock", fname="clock", unremovable=True)),
    ]
    return UserLayout.from_nodes(pairs, layout_id=7)


@pytest.fixture
def manager(sample_layout: UserLayout) -> LayoutManager:
    """In-memory manager (no store) over the sample layout."""
    return LayoutManager(sample_layout)


@pytest.fixture
def stored_manager(store: LayoutStore, sample_layout: UserLayout) -> LayoutManager:
    """Manager for owner ``alice`` whose store holds the sample layout."""
    layout_id = store.create_layout("alice")
    store.save(layout_id, sample_layout)
    return LayoutManager.for_owner(store, "alice")


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run the CLI inside an empty temp directory with no inherited config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("USERLAYOUT_CONFIG", raising=False)
    for name in ("USERLAYOUT_OWNER", "USERLAYOUT_STORE__PATH", "USERLAYOUT_LAYOUT__DEFAULT_OWNER"):
        monkeypatch.delenv(name, raising=False)

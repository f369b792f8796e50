from pathlib import Path
import sqlite3
from typing import AsyncIterator

from databases import Database
import pytest
import pytest_asyncio

from domain.repository import RecipesRepository


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'recipes.db'}"


@pytest_asyncio.fixture
async def repository(db_url: str) -> AsyncIterator[RecipesRepository]:
    db = Database(db_url)
    await db.connect()
    repo = RecipesRepository(db)
    await repo.create_db()
    yield repo
    await db.disconnect()


class BrokenDatabase:
    """Stands in for a `databases.Database` whose backend is unreachable."""

    def __init__(self) -> None:
        self.calls = 0

    async def execute(self, *args: object, **kwargs: object) -> None:
        self.calls += 1
        raise sqlite3.OperationalError("unable to open database file")

    async def fetch_one(self, *args: object, **kwargs: object) -> None:
        self.calls += 1
        raise sqlite3.OperationalError("unable to open database file")

    async def fetch_all(self, *args: object, **kwargs: object) -> None:
        self.calls += 1
        raise sqlite3.OperationalError("unable to open database file")


@pytest.fixture
def broken_repository() -> RecipesRepository:
    return RecipesRepository(BrokenDatabase())  # pyright: ignore[reportArgumentType]

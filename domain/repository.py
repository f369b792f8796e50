import contextlib
from typing import Iterator

from databases import Database
from databases.interfaces import Record

from domain.errors import RecipeNotFound, StorageUnavailable
from domain.models import Recipe


CREATE_RECIPES_TABLE = """
CREATE TABLE IF NOT EXISTS Recipes (
    id VARCHAR(64) PRIMARY KEY,
    name VARCHAR(256) NOT NULL,
    content TEXT NOT NULL,
    created_at VARCHAR(32) NOT NULL,
    updated_at VARCHAR(32)
)
"""


PUT_RECIPE = """
INSERT INTO Recipes(id, name, content, created_at, updated_at)
VALUES (:id, :name, :content, :created_at, :updated_at)
ON CONFLICT(id) DO UPDATE SET
    name = excluded.name,
    content = excluded.content,
    created_at = excluded.created_at,
    updated_at = excluded.updated_at
"""


GET_RECIPE = "SELECT * FROM Recipes WHERE id = :id"


DELETE_RECIPE = "DELETE FROM Recipes WHERE id = :id"


SCAN_RECIPES = "SELECT * FROM Recipes"


# instr() is a case-sensitive substring match, LIKE is not in sqlite.
SEARCH_RECIPES = """
SELECT * FROM Recipes
WHERE instr(name, :search) > 0 OR instr(content, :search) > 0
"""


def recipe_from_record(record: Record) -> Recipe:
    return Recipe(
        id=record["id"],
        name=record["name"],
        content=record["content"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


@contextlib.contextmanager
def storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except Exception as e:
        raise StorageUnavailable(f"Failed to {action}") from e


class RecipesRepository:
    """Key-value table of recipes keyed by id."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_db(self) -> None:
        with storage_errors("create table"):
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                query=CREATE_RECIPES_TABLE
            )

    async def get(self, id: str) -> Recipe:
        with storage_errors("fetch recipe"):
            result = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
                GET_RECIPE, values={"id": id}
            )

        if result is None:
            raise RecipeNotFound(f"Recipe {id} not found")

        return recipe_from_record(result)

    async def put(self, recipe: Recipe) -> None:
        """Full overwrite of the record stored under `recipe.id`."""
        with storage_errors("save recipe"):
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                PUT_RECIPE,
                values={
                    "id": recipe.id,
                    "name": recipe.name,
                    "content": recipe.content,
                    "created_at": recipe.created_at,
                    "updated_at": recipe.updated_at,
                },
            )

    async def delete(self, id: str) -> None:
        with storage_errors("delete recipe"):
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                DELETE_RECIPE, values={"id": id}
            )

    async def scan(self, search: str | None = None) -> list[Recipe]:
        with storage_errors("fetch recipes"):
            if search:
                result = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
                    SEARCH_RECIPES, values={"search": search}
                )
            else:
                result = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
                    SCAN_RECIPES
                )
        return [recipe_from_record(r) for r in result]

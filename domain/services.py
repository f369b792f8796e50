import logging
from typing import Any, Mapping
import uuid

from domain.errors import ValidationError
from domain.models import Recipe, utc_now
from domain.repository import RecipesRepository


logger = logging.getLogger(__name__)


def _required_text(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if not isinstance(value, str):
        return None
    return value.strip() or None


async def upsert_recipe(
    payload: Mapping[str, Any],
    *,
    repository: RecipesRepository,
) -> tuple[Recipe, bool]:
    """Create a recipe, or update it when `payload` carries an id.

    Returns the stored recipe and whether it was newly created. Updates keep the
    original `createdAt` and stamp `updatedAt`. Concurrent updates to the same id
    are last-write-wins.
    """
    name = _required_text(payload, "name")
    content = _required_text(payload, "content")
    if name is None or content is None:
        raise ValidationError("Name and content are required")

    id = payload.get("id")
    if id is not None and not isinstance(id, str):
        raise ValidationError("Recipe ID must be a string")

    if not id:
        recipe = Recipe(
            id=uuid.uuid4().hex,
            name=name,
            content=content,
            created_at=utc_now(),
        )
        await repository.put(recipe)
        logger.info("Created recipe %s", recipe.id)
        return recipe, True

    existing = await repository.get(id)
    recipe = Recipe(
        id=existing.id,
        name=name,
        content=content,
        created_at=existing.created_at,
        updated_at=utc_now(),
    )
    await repository.put(recipe)
    logger.info("Updated recipe %s", recipe.id)
    return recipe, False


async def get_recipe(id: str, *, repository: RecipesRepository) -> Recipe:
    return await repository.get(id)


async def list_recipes(
    search: str | None = None,
    *,
    repository: RecipesRepository,
) -> list[Recipe]:
    """All recipes, or those whose name or content contains `search`, newest first."""
    recipes = await repository.scan(search or None)
    return sorted(recipes, key=lambda r: r.created, reverse=True)


async def delete_recipe(id: str | None, *, repository: RecipesRepository) -> None:
    if not id:
        raise ValidationError("Recipe ID is required")
    await repository.delete(id)
    logger.info("Deleted recipe %s", id)

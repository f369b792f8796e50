import contextlib
import functools
import json
import logging
from typing import Any, Awaitable, Callable

from databases import Database
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

import config
from domain.errors import MethodNotAllowed, RecipeError, ValidationError
from domain.repository import RecipesRepository
from domain.services import delete_recipe, get_recipe, list_recipes, upsert_recipe


logger = logging.getLogger(__name__)


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
}


type Payload = dict[str, Any] | list[dict[str, Any]] | None


def aJSONResponse(route: Callable[[Request], Awaitable[Payload | tuple[Payload, int]]]):
    """Wrap a route so it answers preflights, carries CORS headers and reports
    errors as `{"error": ...}`."""

    @functools.wraps(route)
    async def wrapper(request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        try:
            resp = await route(request)
        except RecipeError as e:
            if e.status_code >= 500:
                logger.exception("%s %s failed", request.method, request.url.path)
            return JSONResponse(
                {"error": str(e)}, status_code=e.status_code, headers=CORS_HEADERS
            )
        except Exception:
            logger.exception("%s %s failed", request.method, request.url.path)
            return JSONResponse(
                {"error": "Internal server error"},
                status_code=500,
                headers=CORS_HEADERS,
            )

        if not isinstance(resp, tuple):
            body, code = resp, 200
        else:
            body, code = resp
        if body is None:
            return Response(status_code=code, headers=CORS_HEADERS)
        return JSONResponse(body, status_code=code, headers=CORS_HEADERS)

    return wrapper


async def read_payload(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Request body must be valid JSON") from e
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@aJSONResponse
async def recipes(request: Request) -> Payload | tuple[Payload, int]:
    repo: RecipesRepository = request.app.state.repo
    match request.method:
        case "GET" | "HEAD":
            search = request.query_params.get("search")
            found = await list_recipes(search, repository=repo)
            return [r.to_dict() for r in found]
        case "POST":
            payload = await read_payload(request)
            recipe, created = await upsert_recipe(payload, repository=repo)
            return recipe.to_dict(), 201 if created else 200
        case "DELETE":
            await delete_recipe(None, repository=repo)
            return None, 204
        case _:
            raise MethodNotAllowed(f"Method {request.method} not allowed")


@aJSONResponse
async def recipe_detail(request: Request) -> Payload | tuple[Payload, int]:
    repo: RecipesRepository = request.app.state.repo
    id = request.path_params.get("id")
    match request.method:
        case "GET" | "HEAD":
            recipe = await get_recipe(id, repository=repo)
            return recipe.to_dict()
        case "DELETE":
            await delete_recipe(id, repository=repo)
            return None, 204
        case _:
            raise MethodNotAllowed(f"Method {request.method} not allowed")


def create_app(cfg: config.Config) -> Starlette:
    db = Database(cfg.db_url)
    repo = RecipesRepository(db)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette):
        await db.connect()
        await repo.create_db()
        logger.info("Connected to %s", cfg.db_url)
        yield
        await db.disconnect()

    app = Starlette(
        debug=True if cfg.env == config.Env.local else False,
        routes=[
            Route("/recipes", recipes),
            Route("/recipes/", recipes),
            Route("/recipes/{id}", recipe_detail),
        ],
        lifespan=lifespan,
    )
    app.state.config = cfg
    app.state.db = db
    app.state.repo = repo
    return app


CONFIG = config.Config()


app = create_app(CONFIG)

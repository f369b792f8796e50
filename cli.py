"""Terminal front end for the recipe API.

    recipes list [--search TEXT]
    recipes show ID
    recipes create NAME CONTENT
    recipes edit ID [--name NAME] [--content CONTENT]
    recipes delete ID
    recipes serve [--host HOST] [--port PORT]
"""

import argparse
import asyncio
import logging
import sys
from typing import Sequence

import httpx
import pydantic
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.prompt import Prompt
from rich.table import Table
import uvicorn

from client import ApiError, PasswordGate, RecipeClient
import config
from domain.models import Recipe


console = Console()


class Aborted(Exception):
    pass


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def confirm(gate: PasswordGate, action: str) -> None:
    if not gate.enabled:
        return
    attempt = Prompt.ask(f"Password to {action}", password=True, console=console)
    if not gate.check(attempt):
        raise Aborted(f"Incorrect password. Recipe {action} denied.")


def require_text(name: str, content: str) -> tuple[str, str]:
    name, content = name.strip(), content.strip()
    if not name or not content:
        raise Aborted("Please fill in both recipe name and content.")
    return name, content


def recipe_table(recipes: Sequence[Recipe]) -> Table:
    table = Table("ID", "Name", "Created", "Updated")
    for r in recipes:
        table.add_row(r.id, r.name, r.created_at, r.updated_at or "")
    return table


def print_recipe(recipe: Recipe) -> None:
    console.rule(recipe.name)
    console.print(Markdown(recipe.content))
    console.print(f"[dim]id {recipe.id} · created {recipe.created_at}[/dim]")
    if recipe.updated_at:
        console.print(f"[dim]updated {recipe.updated_at}[/dim]")


async def run(args: argparse.Namespace, cfg: config.Config) -> None:
    gate = PasswordGate(cfg.recipe_password)
    async with RecipeClient.from_config(cfg) as api:
        match args.command:
            case "list":
                console.print(recipe_table(await api.list(args.search)))
            case "show":
                print_recipe(await api.get(args.id))
            case "create":
                name, content = require_text(args.name, args.content)
                confirm(gate, "creation")
                recipe = await api.save(name=name, content=content)
                console.print(f"Created {recipe.id}")
            case "edit":
                existing = await api.get(args.id)
                name, content = require_text(
                    existing.name if args.name is None else args.name,
                    existing.content if args.content is None else args.content,
                )
                confirm(gate, "update")
                recipe = await api.save(name=name, content=content, id=existing.id)
                console.print(f"Updated {recipe.id}")
            case "delete":
                confirm(gate, "deletion")
                await api.delete(args.id)
                console.print(f"Deleted {args.id}")
            case _:
                raise ValueError(f"Unknown command: {args.command}")


def serve(cfg: config.Config, host: str, port: int) -> None:
    from main import create_app

    uvicorn.run(create_app(cfg), host=host, port=port, log_config=None)


def parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="recipes", description="Recipe catalog.")
    sub = p.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="List recipes, newest first.")
    ls.add_argument("--search", "-s", default=None)

    show = sub.add_parser("show", help="Show one recipe.")
    show.add_argument("id")

    create = sub.add_parser("create", help="Create a recipe.")
    create.add_argument("name")
    create.add_argument("content")

    edit = sub.add_parser("edit", help="Edit a recipe.")
    edit.add_argument("id")
    edit.add_argument("--name", default=None)
    edit.add_argument("--content", default=None)

    delete = sub.add_parser("delete", help="Delete a recipe.")
    delete.add_argument("id")

    srv = sub.add_parser("serve", help="Run the API.")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    return p


def main(argv: Sequence[str] | None = None) -> int:
    args = parser().parse_args(argv)
    try:
        cfg = config.Config()
    except pydantic.ValidationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        return 2
    configure_logging(cfg.log_level)

    if args.command == "serve":
        serve(cfg, args.host, args.port)
        return 0

    try:
        asyncio.run(run(args, cfg))
    except Aborted as e:
        console.print(f"[yellow]{e}[/yellow]")
        return 1
    except ApiError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        return 1
    except httpx.HTTPError as e:
        console.print(f"[red]Could not reach {cfg.api_url}: {e}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

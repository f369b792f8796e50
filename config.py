from enum import Enum

from pydantic_settings import BaseSettings


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    env: Env = Env.local
    db_url: str = "sqlite+aiosqlite:///recipes.db"
    api_url: str = "http://localhost:8000"
    recipe_password: str | None = None
    log_level: str = "INFO"

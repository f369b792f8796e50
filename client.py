"""HTTP client for the recipe API, plus the shared-secret confirmation step."""

from typing import Any

import httpx

import config
from domain.models import Recipe


class ApiError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class PasswordGate:
    """Confirmation step before create, edit and delete.

    Not access control: the secret lives on the client. Disabled when unset.
    """

    def __init__(self, password: str | None) -> None:
        self.password = password or None

    @property
    def enabled(self) -> bool:
        return self.password is not None

    def check(self, attempt: str) -> bool:
        return not self.enabled or attempt == self.password


def raise_for_error(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    try:
        data = resp.json()
    except ValueError:
        message = resp.text or "Unknown error"
    else:
        if isinstance(data, dict):
            message = data.get("error") or "Unknown error"
        else:
            message = resp.text or "Unknown error"
    raise ApiError(resp.status_code, message)


class RecipeClient:
    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = (
            httpx.AsyncClient(base_url=self.base_url, timeout=20)
            if http_client is None
            else http_client
        )

    @classmethod
    def from_config(cls, cfg: config.Config) -> "RecipeClient":
        return cls(cfg.api_url)

    async def __aenter__(self) -> "RecipeClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.http.aclose()

    async def list(self, search: str | None = None) -> list[Recipe]:
        params = {"search": search} if search else None
        resp = await self.http.get(f"{self.base_url}/recipes", params=params)
        raise_for_error(resp)
        return [Recipe.from_dict(r) for r in resp.json()]

    async def get(self, id: str) -> Recipe:
        resp = await self.http.get(f"{self.base_url}/recipes/{id}")
        raise_for_error(resp)
        return Recipe.from_dict(resp.json())

    async def save(self, *, name: str, content: str, id: str | None = None) -> Recipe:
        """Create a recipe, or update the one with `id`."""
        body: dict[str, str] = {"name": name, "content": content}
        if id is not None:
            body["id"] = id
        resp = await self.http.post(f"{self.base_url}/recipes", json=body)
        raise_for_error(resp)
        return Recipe.from_dict(resp.json())

    async def delete(self, id: str) -> None:
        resp = await self.http.delete(f"{self.base_url}/recipes/{id}")
        raise_for_error(resp)

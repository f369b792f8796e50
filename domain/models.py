from datetime import datetime, timezone
from typing import Any, Mapping


def utc_now() -> str:
    """ISO-8601 UTC timestamp, millisecond precision, `Z` suffix."""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


class Recipe:
    def __init__(
        self,
        *,
        id: str,
        name: str,
        content: str,
        created_at: str,
        updated_at: str | None = None,
    ) -> None:
        self.id = id
        self.name = name
        self.content = content
        self.created_at = created_at
        self.updated_at = updated_at

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, name={self.name})>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Recipe):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    @property
    def created(self) -> datetime:
        return datetime.fromisoformat(self.created_at)

    def to_dict(self) -> dict[str, str]:
        d = {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "createdAt": self.created_at,
        }
        if self.updated_at is not None:
            d["updatedAt"] = self.updated_at
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Recipe":
        return cls(
            id=data["id"],
            name=data["name"],
            content=data["content"],
            created_at=data["createdAt"],
            updated_at=data.get("updatedAt"),
        )

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class ApiBaseModel(BaseModel):
    """Base class for REST payload helpers."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Self:
        """Hydrate a model from a raw API response."""
        return cls.model_validate(payload)

    def to_api(self) -> dict[str, Any]:
        """Serialize to an API-friendly payload."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
        )

"""Catalog response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CatalogErrorResponse(BaseModel):
    """Error body of a non-2xx catalog response.

    Field validation failures map field names to messages; other failures
    carry a plain list of messages::

        {"errors": {"name": ["has already been taken"]}}
        {"errors": ["Resource not found!"], "success": false}
    """

    model_config = ConfigDict(extra="allow")

    errors: dict[str, list[str] | str] | list[str] | str
    success: bool | None = None

    def field_errors(self) -> dict[str, list[str]]:
        """Normalize to ``{field: [messages]}``; general messages use the key ``""``."""

        if isinstance(self.errors, str):
            return {"": [self.errors]}
        if isinstance(self.errors, list):
            return {"": list(self.errors)} if self.errors else {}
        return {
            name: [messages] if isinstance(messages, str) else list(messages)
            for name, messages in self.errors.items()
        }

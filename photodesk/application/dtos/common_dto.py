"""Common DTOs for remote store payloads."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for payloads exchanged with the remote store (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ApiResponse(WireModel):
    """Envelope every remote endpoint answers with."""
    success: bool = Field(True, description="Whether the remote operation succeeded")
    message: Optional[str] = Field(None, description="Human readable outcome or error")

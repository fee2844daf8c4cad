"""
Pydantic base models for request/response validation.

Firestore documents use snake_case field names; the HTTP surface speaks
camelCase. ApiModel bridges the two with an alias generator, and every
response goes out wrapped in the {data, message, status, options} envelope.
"""

import math
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.core.errors import ResponseStatus


class ApiModel(BaseModel):
    """Base for models exposed over HTTP (camelCase on the wire)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class PaginationMeta(ApiModel):
    """Pagination metadata for listing endpoints."""
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


def envelope(
    data: Any,
    message: str,
    pagination: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Wrap a successful payload in the standard response envelope."""
    body = {
        "data": data,
        "message": message,
        "status": ResponseStatus.SUCCESS.value,
        "options": None,
    }
    if pagination is not None:
        body["pagination"] = pagination
    return body

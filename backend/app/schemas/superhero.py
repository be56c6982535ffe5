"""
Superhero Registry Backend — Pydantic Request/Response Schemas
===============================================================

What:  Pydantic models defining the API contract between frontend and backend.
How:   FastAPI validates request bodies against these models, serializes
       responses through them, and generates OpenAPI docs from them.

Wire format:
    JSON uses camelCase (realName, catchPhrase, createdAt, hasNext, ...),
    which is what the React client reads. Python code uses snake_case;
    the alias generator bridges the two and requests accept either spelling.

Image entries:
    Images are persisted comma-joined, so an entry containing a comma would be
    split apart on the next read. Request models reject such entries here,
    before they reach the service.
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

IMAGE_DELIMITER = ","


class CamelModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _check_image_entries(images: Optional[List[str]]) -> Optional[List[str]]:
    if images is None:
        return images
    for image in images:
        if IMAGE_DELIMITER in image:
            raise ValueError(f"Image URL must not contain '{IMAGE_DELIMITER}': {image!r}")
    return images


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SuperheroCreate(CamelModel):
    """
    Full superhero payload.

    Used by POST /api/superheroes and PUT /api/superheroes/{id}.
    A PUT without `images` therefore clears the image list.
    """
    nickname: str = Field(min_length=1, description="Unique hero name")
    real_name: str = Field(description="Civilian name")
    origin_description: str = Field(description="Origin story")
    superpowers: List[str] = Field(description="Ordered list of powers")
    catch_phrase: str = Field(description="Signature line")
    images: List[str] = Field(default_factory=list, description="Ordered image URLs")

    @field_validator("images")
    @classmethod
    def validate_images(cls, v: List[str]) -> List[str]:
        return _check_image_entries(v)


class SuperheroUpdate(CamelModel):
    """
    Partial superhero payload for PATCH.

    Only the fields the client actually sends are applied; the service reads
    them with model_dump(exclude_unset=True). Explicit nulls are rejected
    because every column is NOT NULL.
    """
    nickname: Optional[str] = Field(default=None, min_length=1)
    real_name: Optional[str] = None
    origin_description: Optional[str] = None
    superpowers: Optional[List[str]] = None
    catch_phrase: Optional[str] = None
    images: Optional[List[str]] = None

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Field may be omitted but not set to null")
        return v

    @field_validator("images")
    @classmethod
    def validate_images(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _check_image_entries(v)


class ImageRequest(CamelModel):
    """Body of POST/DELETE /api/superheroes/{id}/images."""
    image_url: Optional[str] = Field(default=None, description="Absolute image URL")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class SuperheroResponse(CamelModel):
    """A superhero as the API returns it, with `images` decoded to a list."""
    id: uuid.UUID
    nickname: str
    real_name: str
    origin_description: str
    superpowers: List[str]
    catch_phrase: str
    images: List[str]
    created_at: datetime
    updated_at: datetime


class PaginationMeta(CamelModel):
    """
    Offset pagination metadata.

    total counts every matching record, ignoring the page window.
    total_pages = ceil(total / limit); has_next = page < total_pages.
    """
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class SuperheroListResponse(CamelModel):
    data: List[SuperheroResponse]
    pagination: PaginationMeta


class DeleteResponse(CamelModel):
    message: str
    id: uuid.UUID


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "conflict",
            "message": "A superhero with the nickname 'Superman' already exists",
            "details": {"field": "nickname", "value": "Superman"},
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")

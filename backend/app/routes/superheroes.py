"""
Superhero Registry Backend — Superhero Route Handlers
======================================================

What:  REST endpoints for the superhero resource and its image list.
How:   Handlers extract path/query/body data, delegate to SuperheroService,
       and return its response models. Errors raised by the service are
       formatted by the global exception handlers in main.py.

Route Inventory:
    POST   /api/superheroes                 create            201
    GET    /api/superheroes                 list + search     200
    GET    /api/superheroes/{id}            detail            200
    PUT    /api/superheroes/{id}            full update       200
    PATCH  /api/superheroes/{id}            partial update    200
    DELETE /api/superheroes/{id}            delete            200
    POST   /api/superheroes/{id}/images     add image URL     201
    DELETE /api/superheroes/{id}/images     remove image URL  200
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response
from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.config import settings
from app.exceptions import ValidationError
from app.schemas.superhero import (
    IMAGE_DELIMITER,
    DeleteResponse,
    ErrorResponse,
    ImageRequest,
    SuperheroCreate,
    SuperheroListResponse,
    SuperheroResponse,
    SuperheroUpdate,
)
from app.services.superhero_service import SuperheroService, get_superhero_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Superheroes"])

_url_adapter = TypeAdapter(AnyUrl)

NOT_FOUND = {404: {"description": "Superhero not found", "model": ErrorResponse}}
CONFLICT = {409: {"description": "Nickname already in use", "model": ErrorResponse}}


def validate_image_url(image_url: Optional[str]) -> str:
    """
    Check an image URL before it reaches the service.

    Raises:
        ValidationError (400): missing, not an absolute URL, or contains the
        image list delimiter
    """
    if not image_url or not image_url.strip():
        raise ValidationError(message="Image URL is required", field="imageUrl")
    try:
        _url_adapter.validate_python(image_url)
    except PydanticValidationError:
        raise ValidationError(
            message="Invalid URL format",
            field="imageUrl",
            context={"value": image_url},
        )
    if IMAGE_DELIMITER in image_url:
        raise ValidationError(
            message=f"Image URL must not contain '{IMAGE_DELIMITER}'",
            field="imageUrl",
        )
    return image_url


@router.post(
    "/superheroes",
    status_code=201,
    response_model=SuperheroResponse,
    responses={**CONFLICT},
    summary="Create a superhero",
)
async def create_superhero(
    hero: SuperheroCreate,
    service: SuperheroService = Depends(get_superhero_service),
) -> SuperheroResponse:
    return await service.create(hero)


@router.get(
    "/superheroes",
    response_model=SuperheroListResponse,
    summary="List superheroes (newest first) with pagination and search",
    description=(
        "Offset pagination: page N of size `limit`. `search` filters by a "
        "case-insensitive substring of nickname or real name."
    ),
)
async def list_superheroes(
    response: Response,
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Items per page",
    ),
    search: Optional[str] = Query(
        default=None,
        description="Substring to match against nickname or real name",
    ),
    service: SuperheroService = Depends(get_superhero_service),
) -> SuperheroListResponse:
    result = await service.find_all(page=page, limit=limit, search=search)

    # Same total as the body, for clients that only read headers
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


@router.get(
    "/superheroes/{superhero_id}",
    response_model=SuperheroResponse,
    responses={**NOT_FOUND},
    summary="Get a superhero by ID",
)
async def get_superhero(
    superhero_id: UUID,
    service: SuperheroService = Depends(get_superhero_service),
) -> SuperheroResponse:
    return await service.find_one(superhero_id)


@router.put(
    "/superheroes/{superhero_id}",
    response_model=SuperheroResponse,
    responses={**NOT_FOUND, **CONFLICT},
    summary="Replace a superhero",
    description="Every field is required except `images`, which defaults to an empty list.",
)
async def replace_superhero(
    superhero_id: UUID,
    hero: SuperheroCreate,
    service: SuperheroService = Depends(get_superhero_service),
) -> SuperheroResponse:
    return await service.update(superhero_id, hero)


@router.patch(
    "/superheroes/{superhero_id}",
    response_model=SuperheroResponse,
    responses={**NOT_FOUND, **CONFLICT},
    summary="Partially update a superhero",
    description="Only the fields present in the body are changed.",
)
async def patch_superhero(
    superhero_id: UUID,
    changes: SuperheroUpdate,
    service: SuperheroService = Depends(get_superhero_service),
) -> SuperheroResponse:
    return await service.update(superhero_id, changes)


@router.delete(
    "/superheroes/{superhero_id}",
    response_model=DeleteResponse,
    responses={**NOT_FOUND},
    summary="Delete a superhero",
)
async def delete_superhero(
    superhero_id: UUID,
    service: SuperheroService = Depends(get_superhero_service),
) -> DeleteResponse:
    return await service.remove(superhero_id)


@router.post(
    "/superheroes/{superhero_id}/images",
    status_code=201,
    response_model=SuperheroResponse,
    responses={
        400: {"description": "Missing or invalid image URL", "model": ErrorResponse},
        **NOT_FOUND,
    },
    summary="Add an image URL to a superhero",
)
async def add_image(
    superhero_id: UUID,
    body: Optional[ImageRequest] = Body(default=None),
    service: SuperheroService = Depends(get_superhero_service),
) -> SuperheroResponse:
    image_url = validate_image_url(body.image_url if body else None)
    return await service.add_image(superhero_id, image_url)


@router.delete(
    "/superheroes/{superhero_id}/images",
    response_model=SuperheroResponse,
    responses={
        400: {"description": "Missing image URL", "model": ErrorResponse},
        **NOT_FOUND,
    },
    summary="Remove an image URL from a superhero",
)
async def remove_image(
    superhero_id: UUID,
    body: Optional[ImageRequest] = Body(default=None),
    service: SuperheroService = Depends(get_superhero_service),
) -> SuperheroResponse:
    image_url = body.image_url if body else None
    if not image_url:
        raise ValidationError(message="Image URL is required", field="imageUrl")
    return await service.remove_image(superhero_id, image_url)

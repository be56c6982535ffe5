"""
Superhero Registry Backend — Superhero Service (Business Logic)
================================================================

What:  All persistence-backed operations on superhero records, plus the
       encode/decode contract for the `images` column.
Who:   Constructed per request by get_superhero_service(); called by the
       route handlers in app/routes/superheroes.py.

Operations:
    create        POST   /api/superheroes               → ConflictError on nickname clash
    find_all      GET    /api/superheroes               → offset pagination + search
    find_one      GET    /api/superheroes/{id}          → NotFoundError
    update        PUT/PATCH /api/superheroes/{id}       → NotFoundError, ConflictError
    remove        DELETE /api/superheroes/{id}          → NotFoundError
    add_image     POST   /api/superheroes/{id}/images   → no-op if already present
    remove_image  DELETE /api/superheroes/{id}/images   → no-op if absent

Transactions:
    The service only flushes. get_db_session() commits once the route returns
    and rolls back if anything raised, so every operation is all-or-nothing.

Nickname uniqueness:
    Checked with a SELECT before writing (gives a clean 409 in the common
    case) and enforced by the uq_superheroes_nickname constraint (covers two
    concurrent requests that both pass the SELECT). An IntegrityError from the
    flush is reported as the same ConflictError.

Error handling:
    Only create wraps unexpected failures (DatabaseError, cause chained).
    Other operations let SQLAlchemy errors propagate to the global handler.
"""

import logging
import math
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Union
from uuid import UUID, uuid4

from fastapi import Depends
from sqlalchemy import delete, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from app.models.superhero import Superhero, utcnow
from app.schemas.superhero import (
    IMAGE_DELIMITER,
    DeleteResponse,
    PaginationMeta,
    SuperheroCreate,
    SuperheroListResponse,
    SuperheroResponse,
    SuperheroUpdate,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Image list codec
# ══════════════════════════════════════════════════════════════════════════

def encode_images(images: Iterable[str]) -> str:
    """
    Join image URLs into the stored column value.

    Empty and whitespace-only entries are dropped. Entries are not otherwise
    altered, so an entry containing a comma will come back as two entries
    from decode_images(); request schemas reject such entries up front.
    """
    return IMAGE_DELIMITER.join(image for image in images if image.strip())


def decode_images(raw: Optional[str]) -> List[str]:
    """
    Split the stored column value back into image URLs.

    None, "" and whitespace-only input all decode to [].
    """
    if not raw or not raw.strip():
        return []
    return [image for image in raw.split(IMAGE_DELIMITER) if image.strip()]


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════

class SuperheroService:
    """
    Business logic layer for superhero records.

    Args:
        db:    Async session for the current request
        clock: Returns the current time for created_at/updated_at (UTC by default)
    """

    resource = "Superhero"

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self._clock = clock

    # ── Create ────────────────────────────────────────────────────────────

    async def create(self, data: SuperheroCreate) -> SuperheroResponse:
        """
        Create a superhero.

        Raises:
            ConflictError: nickname already used by another record
            DatabaseError: any other failure while checking or inserting
        """
        try:
            if await self._nickname_taken(data.nickname):
                raise self._nickname_conflict(data.nickname)

            now = self._clock()
            hero = Superhero(
                id=uuid4(),
                nickname=data.nickname,
                real_name=data.real_name,
                origin_description=data.origin_description,
                superpowers=list(data.superpowers),
                catch_phrase=data.catch_phrase,
                images=encode_images(data.images),
                created_at=now,
                updated_at=now,
            )
            self.db.add(hero)
            await self.db.flush()

        except ConflictError:
            raise
        except IntegrityError as e:
            # A concurrent request inserted the same nickname after our check
            raise self._nickname_conflict(data.nickname) from e
        except Exception as e:
            logger.error("Failed to create superhero '%s': %s", data.nickname, e, exc_info=True)
            raise DatabaseError(
                message="Failed to create superhero",
                context={"original_error": type(e).__name__},
            ) from e

        logger.info("Superhero created: %s (%s)", hero.id, hero.nickname)
        return self.to_response(hero)

    # ── Read ──────────────────────────────────────────────────────────────

    async def find_all(
        self,
        page: int = 1,
        limit: int = 5,
        search: Optional[str] = None,
    ) -> SuperheroListResponse:
        """
        List superheroes newest-first with offset pagination.

        A non-empty `search` keeps records whose nickname or real name contains
        it, case-insensitively. LIKE wildcards in `search` match literally.

        Query plan:
            SELECT ... [WHERE nickname ILIKE :s OR real_name ILIKE :s]
            ORDER BY created_at DESC OFFSET (page-1)*limit LIMIT limit
            followed by a COUNT(*) with the same WHERE clause.
        """
        if page < 1:
            raise ValidationError(message="page must be >= 1", field="page")
        if limit < 1:
            raise ValidationError(message="limit must be >= 1", field="limit")

        query = select(Superhero)
        count_query = select(func.count()).select_from(Superhero)

        if search:
            matches = or_(
                Superhero.nickname.icontains(search, autoescape=True),
                Superhero.real_name.icontains(search, autoescape=True),
            )
            query = query.where(matches)
            count_query = count_query.where(matches)

        query = (
            query.order_by(desc(Superhero.created_at))
            .offset((page - 1) * limit)
            .limit(limit)
        )

        result = await self.db.execute(query)
        heroes = list(result.scalars().all())

        count_result = await self.db.execute(count_query)
        total = count_result.scalar() or 0

        total_pages = math.ceil(total / limit)
        return SuperheroListResponse(
            data=[self.to_response(hero) for hero in heroes],
            pagination=PaginationMeta(
                page=page,
                limit=limit,
                total=total,
                total_pages=total_pages,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
        )

    async def find_one(self, superhero_id: UUID) -> SuperheroResponse:
        """Raises NotFoundError if no record has this id."""
        hero = await self._get_or_404(superhero_id)
        return self.to_response(hero)

    # ── Update ────────────────────────────────────────────────────────────

    async def update(
        self,
        superhero_id: UUID,
        data: Union[SuperheroCreate, SuperheroUpdate],
    ) -> SuperheroResponse:
        """
        Update a superhero.

        A SuperheroCreate (PUT) overwrites every field, including images.
        A SuperheroUpdate (PATCH) touches only the fields the client sent.
        When present, `images` replaces the whole list.

        The nickname check is skipped when the nickname is unchanged, so
        resubmitting a record's own nickname never conflicts with itself.
        """
        hero = await self._get_or_404(superhero_id)

        changes = data.model_dump(exclude_unset=isinstance(data, SuperheroUpdate))

        new_nickname = changes.get("nickname")
        if new_nickname is not None and new_nickname != hero.nickname:
            if await self._nickname_taken(new_nickname):
                raise self._nickname_conflict(new_nickname)

        if "images" in changes:
            changes["images"] = encode_images(changes["images"])

        for field, value in changes.items():
            setattr(hero, field, value)
        hero.updated_at = self._clock()

        try:
            await self.db.flush()
        except IntegrityError as e:
            raise self._nickname_conflict(hero.nickname) from e

        logger.info("Superhero %s updated: %s", hero.id, sorted(changes))
        return self.to_response(hero)

    # ── Delete ────────────────────────────────────────────────────────────

    async def remove(self, superhero_id: UUID) -> DeleteResponse:
        """Delete permanently. Raises NotFoundError if nothing was deleted."""
        result = await self.db.execute(
            delete(Superhero).where(Superhero.id == superhero_id)
        )
        if result.rowcount == 0:
            raise NotFoundError(resource=self.resource, resource_id=str(superhero_id))

        logger.info("Superhero %s deleted", superhero_id)
        return DeleteResponse(
            message=f"Superhero with ID {superhero_id} successfully deleted",
            id=superhero_id,
        )

    # ── Images ────────────────────────────────────────────────────────────

    async def add_image(self, superhero_id: UUID, image_url: str) -> SuperheroResponse:
        """
        Append an image URL.

        Already-present (exact match) and blank URLs leave the record
        untouched, including updated_at. URL syntax is checked by the route.
        """
        hero = await self._get_or_404(superhero_id)
        current = decode_images(hero.images)

        # Blank URLs would be dropped by encode_images anyway
        if not image_url.strip() or image_url in current:
            return self.to_response(hero)

        hero.images = encode_images([*current, image_url])
        hero.updated_at = self._clock()
        await self.db.flush()

        logger.info("Image added to superhero %s (%d total)", hero.id, len(current) + 1)
        return self.to_response(hero)

    async def remove_image(self, superhero_id: UUID, image_url: str) -> SuperheroResponse:
        """
        Remove every occurrence of an image URL.

        If the URL is not present nothing is written and updated_at is kept.
        """
        hero = await self._get_or_404(superhero_id)
        current = decode_images(hero.images)
        remaining = [image for image in current if image != image_url]

        if len(remaining) == len(current):
            return self.to_response(hero)

        hero.images = encode_images(remaining)
        hero.updated_at = self._clock()
        await self.db.flush()

        logger.info("Image removed from superhero %s (%d left)", hero.id, len(remaining))
        return self.to_response(hero)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _get_or_404(self, superhero_id: UUID) -> Superhero:
        result = await self.db.execute(
            select(Superhero).where(Superhero.id == superhero_id)
        )
        hero = result.scalar_one_or_none()
        if hero is None:
            raise NotFoundError(resource=self.resource, resource_id=str(superhero_id))
        return hero

    async def _nickname_taken(self, nickname: str) -> bool:
        result = await self.db.execute(
            select(Superhero.id).where(Superhero.nickname == nickname)
        )
        return result.scalar_one_or_none() is not None

    @staticmethod
    def _nickname_conflict(nickname: str) -> ConflictError:
        logger.warning("Nickname conflict: '%s'", nickname)
        return ConflictError(
            message=f"A superhero with the nickname '{nickname}' already exists",
            field="nickname",
            value=nickname,
        )

    @staticmethod
    def to_response(hero: Superhero) -> SuperheroResponse:
        """Rebuild the API shape from a row, decoding the images column."""
        return SuperheroResponse(
            id=hero.id,
            nickname=hero.nickname,
            real_name=hero.real_name,
            origin_description=hero.origin_description,
            superpowers=list(hero.superpowers or []),
            catch_phrase=hero.catch_phrase,
            images=decode_images(hero.images),
            created_at=hero.created_at,
            updated_at=hero.updated_at,
        )


# ── Dependency Factory ────────────────────────────────────────────────────
async def get_superhero_service(
    db: AsyncSession = Depends(get_db_session),
) -> SuperheroService:
    """FastAPI dependency: one service per request, bound to the request's session."""
    return SuperheroService(db)

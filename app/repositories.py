"""Query helpers over the list, item, media and actor tables."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .db_models import Actor, Media, Medialist, MedialistItem
from .permissions import ActorRef, ListTarget

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ListQuery:
    """Filters applied when paging through lists."""

    name_filter: str | None = None
    created_by: int | None = None
    sort: str = "created"
    take: int = 10
    skip: int = 0


async def get_actor(session: AsyncSession, actor_id: int) -> Actor | None:
    return await session.get(Actor, actor_id)


async def get_actor_ref(session: AsyncSession, actor_id: int) -> ActorRef | None:
    actor = await get_actor(session, actor_id)
    if actor is None:
        return None
    return ActorRef(id=actor.id, permissions=actor.permissions)


async def find_media_by_tmdb(
    session: AsyncSession, tmdb_id: int, media_type: str | None
) -> Media | None:
    stmt = select(Media).where(Media.tmdb_id == tmdb_id)
    # An absent media type matches a record of either kind.
    if media_type is not None:
        stmt = stmt.where(Media.media_type == media_type)
    result = await session.execute(stmt.order_by(Media.id).limit(1))
    return result.scalar_one_or_none()


async def find_media_by_tvdb(session: AsyncSession, tvdb_id: int) -> Media | None:
    stmt = select(Media).where(Media.tvdb_id == tvdb_id).order_by(Media.id).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def find_media_by_imdb(session: AsyncSession, imdb_id: str) -> Media | None:
    stmt = select(Media).where(Media.imdb_id == imdb_id).order_by(Media.id).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_media(session: AsyncSession, media: Media) -> Media:
    """Insert ``media`` and commit, yielding to a concurrently created twin.

    The ``(tmdb_id, media_type)`` uniqueness constraint decides races: the
    losing insert is rolled back and the winning row is returned instead.
    """

    session.add(media)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        existing = await find_media_by_tmdb(session, media.tmdb_id, media.media_type)
        if existing is None:
            raise
        logger.info(
            "Media tmdb:%s (%s) was created concurrently; reusing row %s",
            media.tmdb_id,
            media.media_type,
            existing.id,
        )
        return existing
    return media


async def add_list_item(session: AsyncSession, item: MedialistItem) -> MedialistItem:
    session.add(item)
    await session.commit()
    return item


async def get_list(
    session: AsyncSession, list_id: int, *, with_items: bool = False
) -> Medialist | None:
    stmt = select(Medialist).where(Medialist.id == list_id)
    if with_items:
        stmt = stmt.options(
            selectinload(Medialist.items).joinedload(MedialistItem.media)
        )
    result = await session.execute(stmt.execution_options(populate_existing=True))
    return result.unique().scalar_one_or_none()


async def get_list_target(session: AsyncSession, list_id: int) -> ListTarget | None:
    stmt = select(
        Medialist.id, Medialist.created_by_id, Medialist.auto_update
    ).where(Medialist.id == list_id)
    row = (await session.execute(stmt)).first()
    if row is None:
        return None
    return ListTarget(id=row[0], owner_id=row[1], auto_update=bool(row[2]))


async def find_list_by_name(session: AsyncSession, name: str) -> Medialist | None:
    result = await session.execute(select(Medialist).where(Medialist.name == name))
    return result.unique().scalar_one_or_none()


async def page_lists(
    session: AsyncSession, query: ListQuery
) -> tuple[list[Medialist], int]:
    """Return one page of lists, newest first, and the total match count."""

    conditions = []
    if query.name_filter:
        conditions.append(Medialist.name.like(f"%{query.name_filter}%"))
    if query.created_by is not None:
        conditions.append(Medialist.created_by_id == query.created_by)

    sort_column = (
        Medialist.updated_at if query.sort == "modified" else Medialist.created_at
    )
    stmt = (
        select(Medialist)
        .where(*conditions)
        .order_by(sort_column.desc(), Medialist.id.desc())
        .limit(query.take)
        .offset(query.skip)
    )
    count_stmt = select(func.count(Medialist.id)).where(*conditions)

    rows = (await session.execute(stmt)).unique().scalars().all()
    total = (await session.execute(count_stmt)).scalar_one()
    return list(rows), int(total)


async def count_lists(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(Medialist.id)))
    return int(result.scalar_one())

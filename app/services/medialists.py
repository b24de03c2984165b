"""List management and the item reconciliation flow."""

from __future__ import annotations

import logging
import math

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .. import repositories
from ..config import Settings
from ..db_models import Actor, Medialist, MedialistItem
from ..errors import ListValidationError, NotFound, PermissionDenied
from ..models import (
    ListCreateRequest,
    ListItemDescriptor,
    ListPayload,
    ListResultsPayload,
    PageInfo,
)
from ..permissions import (
    ActorRef,
    ListTarget,
    Permission,
    authorize,
    can_delete_list,
    can_view_list,
    require_permissions,
)
from ..source_urls import classify
from .resolver import IdentifierResolver
from .tmdb import MetadataProvider

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


async def add_item(
    session: AsyncSession,
    target: ListTarget,
    descriptor: ListItemDescriptor,
    caller: ActorRef,
    *,
    provider: MetadataProvider | None = None,
    timeout: float | None = None,
) -> ListTarget:
    """Authorize, resolve and persist one item on ``target``.

    The media insert (if any) and the item insert are committed separately;
    a failure between them leaves the media row in place for the next call.
    """

    async def _load_actor(actor_id: int) -> ActorRef | None:
        return await repositories.get_actor_ref(session, actor_id)

    actor = await authorize(target, descriptor.user_id, caller, _load_actor)

    resolver = IdentifierResolver(session, provider, timeout=timeout)
    result = await resolver.resolve(descriptor)
    media = result.media

    if result.resolved:
        media_type = media.media_type
        tmdb_id, tvdb_id, imdb_id = media.tmdb_id, media.tvdb_id, media.imdb_id
    else:
        media_type = descriptor.media_type.value if descriptor.media_type else None
        tmdb_id, tvdb_id, imdb_id = (
            descriptor.tmdb_id,
            descriptor.tvdb_id,
            descriptor.imdb_id,
        )

    item = MedialistItem(
        medialist_id=target.id,
        added_by_id=actor.id,
        media_id=media.id if media is not None else None,
        name=descriptor.name,
        year=descriptor.year,
        media_type=media_type,
        tmdb_id=tmdb_id,
        tvdb_id=tvdb_id,
        imdb_id=imdb_id,
        season_number=descriptor.season,
        episode_number=descriptor.episode,
    )
    await repositories.add_list_item(session, item)
    logger.info(
        "Added item %s to list %s for actor %s (%s)",
        item.id,
        target.id,
        actor.id,
        result.tier or "unresolved",
    )
    return target


class MedialistService:
    """Coordinates list persistence with item reconciliation."""

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        provider: MetadataProvider | None = None,
    ):
        self._settings = settings
        self._session_factory = session_factory
        self._provider = provider

    async def start(self) -> None:
        """Ensure an administrator exists so the service can be used."""

        async with self._session_factory() as session:
            existing = await session.execute(select(Actor.id).limit(1))
            if existing.first() is not None:
                return
            actor = Actor(
                display_name=self._settings.bootstrap_actor_name,
                permissions=int(Permission.ADMIN),
            )
            session.add(actor)
            await session.commit()
            logger.info(
                "Created bootstrap actor %s (%s)", actor.id, actor.display_name
            )

    async def get_caller(self, actor_id: int) -> ActorRef | None:
        async with self._session_factory() as session:
            return await repositories.get_actor_ref(session, actor_id)

    async def list_lists(
        self,
        caller: ActorRef,
        *,
        name_filter: str | None = None,
        created_by: int | None = None,
        sort: str | None = None,
        take: int | None = None,
        skip: int | None = None,
    ) -> ListResultsPayload:
        """Return a page of lists visible to ``caller``."""

        page_size = take if take is not None else self._settings.default_page_size
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        offset = max(0, skip or 0)

        if not caller.can(
            Permission.MANAGE_LISTS, Permission.VIEW_LISTS, require_any=True
        ):
            if created_by is not None and created_by != caller.id:
                raise PermissionDenied(
                    "You do not have permission to view lists created by other actors"
                )
            created_by = caller.id

        query = repositories.ListQuery(
            name_filter=(name_filter or "").strip() or None,
            created_by=created_by,
            sort="modified" if sort == "modified" else "created",
            take=page_size,
            skip=offset,
        )
        async with self._session_factory() as session:
            rows, total = await repositories.page_lists(session, query)
            results = [ListPayload.from_record(row) for row in rows]

        return ListResultsPayload(
            page_info=PageInfo(
                pages=math.ceil(total / page_size),
                page_size=page_size,
                results=total,
                page=math.ceil(offset / page_size) + 1,
            ),
            results=results,
        )

    async def count_lists(self) -> int:
        async with self._session_factory() as session:
            return await repositories.count_lists(session)

    async def create_list(
        self, caller: ActorRef, request: ListCreateRequest
    ) -> ListPayload:
        """Create a list owned by ``caller``."""

        require_permissions(caller, Permission.MANAGE_LISTS, Permission.CREATE_LISTS)
        if not request.name:
            raise ListValidationError("Name is required for list")

        source_info = None
        if request.source_url:
            source_info = classify(request.source_url)
            if source_info is None:
                raise ListValidationError("Source url invalid")

        source_limit = request.source_limit
        if source_limit is not None and not (
            1 < source_limit <= self._settings.max_source_items
        ):
            source_limit = None

        async with self._session_factory() as session:
            if await repositories.find_list_by_name(session, request.name):
                raise ListValidationError("List already exists")

            medialist = Medialist(
                name=request.name,
                created_by_id=caller.id,
                overview=request.overview,
                backdrop_url=request.backdrop_url,
                poster_url=request.poster_url,
                source=source_info.origin.value if source_info else None,
                source_type=source_info.origin_type.value if source_info else None,
                source_url=source_info.source_url if source_info else None,
                source_limit=source_limit,
                auto_update=request.auto_update,
            )
            session.add(medialist)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ListValidationError("List already exists") from exc

            created = await repositories.get_list(
                session, medialist.id, with_items=True
            )
            if created is None:  # pragma: no cover - row committed above
                raise NotFound("List not found")
            logger.info(
                "Actor %s created list %s (%r, source=%s)",
                caller.id,
                created.id,
                created.name,
                created.source_type,
            )
            return ListPayload.from_record(created, include_items=True)

    async def get_list(self, caller: ActorRef, list_id: int) -> ListPayload:
        require_permissions(
            caller,
            Permission.MANAGE_LISTS,
            Permission.VIEW_LISTS,
            Permission.CREATE_LISTS,
        )
        async with self._session_factory() as session:
            medialist = await repositories.get_list(session, list_id, with_items=True)
            if medialist is None:
                raise NotFound("List not found")
            target = ListTarget(
                id=medialist.id,
                owner_id=medialist.created_by_id,
                auto_update=medialist.auto_update,
            )
            if not can_view_list(target, caller):
                raise PermissionDenied("You do not have permission to view this list.")
            return ListPayload.from_record(medialist, include_items=True)

    async def delete_list(self, caller: ActorRef, list_id: int) -> int:
        """Delete a list and, through the foreign key cascade, its items."""

        require_permissions(caller, Permission.MANAGE_LISTS, Permission.CREATE_LISTS)
        async with self._session_factory() as session:
            medialist = await repositories.get_list(session, list_id)
            if medialist is None:
                raise NotFound("List not found")
            target = ListTarget(
                id=medialist.id,
                owner_id=medialist.created_by_id,
                auto_update=medialist.auto_update,
            )
            if not can_delete_list(target, caller):
                raise PermissionDenied(
                    "You do not have permission to delete this list."
                )
            await session.delete(medialist)
            await session.commit()
        logger.info("Actor %s deleted list %s", caller.id, list_id)
        return list_id

    async def add_item(
        self, caller: ActorRef, list_id: int, descriptor: ListItemDescriptor
    ) -> ListPayload:
        """Add an item to a list and return the list with its items."""

        require_permissions(caller, Permission.MANAGE_LISTS, Permission.CREATE_LISTS)
        async with self._session_factory() as session:
            target = await repositories.get_list_target(session, list_id)
            if target is None:
                raise NotFound("List not found")
            await add_item(
                session,
                target,
                descriptor,
                caller,
                provider=self._provider,
                timeout=self._settings.provider_timeout_seconds,
            )
            medialist = await repositories.get_list(session, target.id, with_items=True)
            if medialist is None:
                raise NotFound("List not found")
            return ListPayload.from_record(medialist, include_items=True)

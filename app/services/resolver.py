"""Resolve loosely specified item descriptors to canonical media records."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from .. import repositories
from ..constants import MediaStatus
from ..db_models import Media
from ..errors import InsufficientDetail, UpstreamFailure
from ..models import ListItemDescriptor
from .tmdb import MetadataProvider, ProviderError, ProviderMedia

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResolutionResult:
    """Outcome of a resolution and the tier that produced it."""

    media: Media | None
    tier: str | None = None

    @property
    def resolved(self) -> bool:
        return self.media is not None


TierStep = Callable[["IdentifierResolver", ListItemDescriptor], Awaitable[Media | None]]


@dataclass(frozen=True, slots=True)
class ResolutionTier:
    """One fallback step; tiers are tried in order and never combined."""

    name: str
    applies: Callable[[ListItemDescriptor], bool]
    run: TierStep
    uses_provider: bool = False


class IdentifierResolver:
    """Looks up or creates the canonical media record for a descriptor."""

    def __init__(
        self,
        session: AsyncSession,
        provider: MetadataProvider | None = None,
        *,
        timeout: float | None = None,
    ):
        self._session = session
        self._provider = provider
        self._timeout = timeout

    async def resolve(self, descriptor: ListItemDescriptor) -> ResolutionResult:
        """Return the first tier's match, or an unresolved result for named items.

        Raises :class:`InsufficientDetail` when nothing resolved and the
        descriptor has no name to fall back on.
        """

        for tier in RESOLUTION_TIERS:
            if tier.uses_provider and self._provider is None:
                continue
            if not tier.applies(descriptor):
                continue
            media = await tier.run(self, descriptor)
            if media is not None:
                logger.debug("Descriptor resolved to media %s via %s", media.id, tier.name)
                return ResolutionResult(media=media, tier=tier.name)

        if not descriptor.name:
            raise InsufficientDetail()
        return ResolutionResult(media=None)

    async def _exact_tmdb(self, descriptor: ListItemDescriptor) -> Media | None:
        media_type = descriptor.media_type.value if descriptor.media_type else None
        return await repositories.find_media_by_tmdb(
            self._session, int(descriptor.tmdb_id or 0), media_type
        )

    async def _exact_tvdb(self, descriptor: ListItemDescriptor) -> Media | None:
        return await repositories.find_media_by_tvdb(
            self._session, int(descriptor.tvdb_id or 0)
        )

    async def _exact_imdb(self, descriptor: ListItemDescriptor) -> Media | None:
        return await repositories.find_media_by_imdb(
            self._session, str(descriptor.imdb_id)
        )

    async def _provider_tmdb(self, descriptor: ListItemDescriptor) -> Media | None:
        if self._provider is None or descriptor.media_type is None:
            return None
        provided = await self._fetch(
            self._provider.fetch_by_primary_id(
                int(descriptor.tmdb_id or 0), descriptor.media_type
            ),
            descriptor,
            f"tmdb:{descriptor.tmdb_id}",
        )
        if provided is None:
            return None
        return await self._create(provided, descriptor)

    async def _provider_imdb(self, descriptor: ListItemDescriptor) -> Media | None:
        if self._provider is None:
            return None
        provided = await self._fetch(
            self._provider.fetch_by_public_id(str(descriptor.imdb_id)),
            descriptor,
            f"imdb:{descriptor.imdb_id}",
        )
        if provided is None:
            return None
        return await self._create(provided, descriptor)

    async def _fetch(
        self,
        request: Awaitable[ProviderMedia | None],
        descriptor: ListItemDescriptor,
        label: str,
    ) -> ProviderMedia | None:
        try:
            if self._timeout is None:
                return await request
            return await asyncio.wait_for(request, timeout=self._timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            if descriptor.name:
                logger.warning(
                    "Metadata provider timed out for %s; keeping name %r only",
                    label,
                    descriptor.name,
                )
                return None
            raise UpstreamFailure(f"Metadata provider timed out for {label}") from exc
        except (ProviderError, httpx.HTTPError) as exc:
            logger.exception("Metadata provider failed for %s", label)
            raise UpstreamFailure(f"Metadata provider failed for {label}") from exc

    async def _create(
        self, provided: ProviderMedia, descriptor: ListItemDescriptor
    ) -> Media:
        media = Media(
            tmdb_id=provided.tmdb_id,
            tvdb_id=descriptor.tvdb_id or provided.tvdb_id,
            imdb_id=provided.imdb_id,
            media_type=provided.media_type.value,
            status=int(MediaStatus.UNKNOWN),
            status_4k=int(MediaStatus.UNKNOWN),
        )
        created = await repositories.create_media(self._session, media)
        logger.info(
            "Created media %s for tmdb:%s (%s)",
            created.id,
            created.tmdb_id,
            created.media_type,
        )
        return created


RESOLUTION_TIERS: tuple[ResolutionTier, ...] = (
    ResolutionTier(
        name="exact-tmdb",
        applies=lambda descriptor: descriptor.tmdb_id is not None,
        run=IdentifierResolver._exact_tmdb,
    ),
    ResolutionTier(
        name="exact-tvdb",
        applies=lambda descriptor: descriptor.tvdb_id is not None,
        run=IdentifierResolver._exact_tvdb,
    ),
    ResolutionTier(
        name="exact-imdb",
        applies=lambda descriptor: descriptor.imdb_id is not None,
        run=IdentifierResolver._exact_imdb,
    ),
    ResolutionTier(
        name="provider-tmdb",
        applies=lambda descriptor: descriptor.tmdb_id is not None
        and descriptor.media_type is not None,
        run=IdentifierResolver._provider_tmdb,
        uses_provider=True,
    ),
    ResolutionTier(
        name="provider-imdb",
        applies=lambda descriptor: descriptor.imdb_id is not None,
        run=IdentifierResolver._provider_imdb,
        uses_provider=True,
    ),
)

"""Pydantic models describing list requests and payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .constants import MediaType
from .db_models import Actor, Media, Medialist, MedialistItem


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ListItemDescriptor(BaseModel):
    """Loosely specified item to add: any mix of identifiers or a name."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    year: str | None = None
    media_type: MediaType | None = Field(default=None, alias="mediaType")
    tmdb_id: int | None = Field(default=None, alias="tmdbId", gt=0)
    tvdb_id: int | None = Field(default=None, alias="tvdbId", gt=0)
    imdb_id: str | None = Field(default=None, alias="imdbId", max_length=32)
    season: int | None = Field(default=None, ge=0)
    episode: int | None = Field(default=None, ge=0)
    user_id: int | None = Field(default=None, alias="userId")

    @field_validator("name", "imdb_id", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        return _blank_to_none(value)

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return _blank_to_none(value)

    @field_validator("media_type", mode="before")
    @classmethod
    def _parse_media_type(cls, value: object) -> object:
        value = _blank_to_none(value)
        if isinstance(value, str):
            lowered = value.lower()
            # Series is the vocabulary used by most catalog clients.
            return "tv" if lowered in {"series", "show"} else lowered
        return value


class ListCreateRequest(BaseModel):
    """Body accepted when creating a list."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    overview: str | None = None
    backdrop_url: str | None = Field(default=None, alias="backdropUrl")
    poster_url: str | None = Field(default=None, alias="posterUrl")
    source_url: str | None = Field(default=None, alias="sourceUrl")
    source_limit: int | None = Field(default=None, alias="sourceLimit")
    auto_update: bool = Field(default=False, alias="autoUpdate")

    @field_validator(
        "name", "overview", "backdrop_url", "poster_url", "source_url", mode="before"
    )
    @classmethod
    def _strip_text(cls, value: object) -> object:
        return _blank_to_none(value)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActorPayload(_CamelModel):
    id: int
    display_name: str

    @classmethod
    def from_record(cls, actor: Actor) -> "ActorPayload":
        return cls(id=actor.id, display_name=actor.display_name)


class MediaPayload(_CamelModel):
    id: int
    tmdb_id: int
    tvdb_id: int | None = None
    imdb_id: str | None = None
    media_type: str
    status: int
    status_4k: int

    @classmethod
    def from_record(cls, media: Media) -> "MediaPayload":
        return cls(
            id=media.id,
            tmdb_id=media.tmdb_id,
            tvdb_id=media.tvdb_id,
            imdb_id=media.imdb_id,
            media_type=media.media_type,
            status=media.status,
            status_4k=media.status_4k,
        )


class ListItemPayload(_CamelModel):
    id: int
    added_by_id: int | None = None
    media: MediaPayload | None = None
    name: str | None = None
    year: str | None = None
    media_type: str | None = None
    tmdb_id: int | None = None
    tvdb_id: int | None = None
    imdb_id: str | None = None
    season_number: int | None = None
    episode_number: int | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, item: MedialistItem) -> "ListItemPayload":
        return cls(
            id=item.id,
            added_by_id=item.added_by_id,
            media=MediaPayload.from_record(item.media) if item.media else None,
            name=item.name,
            year=item.year,
            media_type=item.media_type,
            tmdb_id=item.tmdb_id,
            tvdb_id=item.tvdb_id,
            imdb_id=item.imdb_id,
            season_number=item.season_number,
            episode_number=item.episode_number,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class ListPayload(_CamelModel):
    """Serialised view of a list, optionally including its items."""

    id: int
    name: str
    created_by: ActorPayload
    overview: str | None = None
    backdrop_url: str | None = None
    poster_url: str | None = None
    source: str | None = None
    source_type: str | None = None
    source_url: str | None = None
    source_limit: int | None = None
    auto_update: bool = False
    created_at: datetime
    updated_at: datetime
    items: list[ListItemPayload] | None = Field(
        default=None, serialization_alias="medialistItems"
    )

    @classmethod
    def from_record(
        cls, medialist: Medialist, *, include_items: bool = False
    ) -> "ListPayload":
        items = None
        if include_items:
            items = [ListItemPayload.from_record(item) for item in medialist.items]
        return cls(
            id=medialist.id,
            name=medialist.name,
            created_by=ActorPayload.from_record(medialist.created_by),
            overview=medialist.overview,
            backdrop_url=medialist.backdrop_url,
            poster_url=medialist.poster_url,
            source=medialist.source,
            source_type=medialist.source_type,
            source_url=medialist.source_url,
            source_limit=medialist.source_limit,
            auto_update=medialist.auto_update,
            created_at=medialist.created_at,
            updated_at=medialist.updated_at,
            items=items,
        )

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=False)


class PageInfo(_CamelModel):
    pages: int
    page_size: int
    results: int
    page: int


class ListResultsPayload(_CamelModel):
    page_info: PageInfo
    results: list[ListPayload]

    def to_payload(self) -> dict[str, object]:
        payload = self.model_dump(mode="json", by_alias=True)
        for entry in payload["results"]:
            entry.pop("medialistItems", None)
        return payload

"""Enumerations shared by list, item and media records."""

from __future__ import annotations

from enum import Enum, IntEnum


class MediaType(str, Enum):
    """Kind of media a canonical record or list item refers to."""

    MOVIE = "movie"
    TV = "tv"


class MediaStatus(IntEnum):
    """Availability states tracked for canonical media records."""

    UNKNOWN = 1
    PENDING = 2
    PROCESSING = 3
    PARTIALLY_AVAILABLE = 4
    AVAILABLE = 5


class ListSource(str, Enum):
    """External catalogs a list may be sourced from."""

    TMDB = "tmdb"
    TVDB = "tvdb"
    IMDB = "imdb"
    TRAKT = "trakt"


class ListSourceType(str, Enum):
    """Kind of catalog object a source URL points at."""

    IMDB_LIST = "imdb_list"
    IMDB_CHART = "imdb_chart"
    IMDB_SEARCH = "imdb_search"
    TRAKT_USERLIST = "trakt_userlist"
    TRAKT_CHARTMOVIE = "trakt_chartmovie"
    TRAKT_CHARTTV = "trakt_charttv"
    TMDB_CHARTMOVIE = "tmdb_chartmovie"
    TMDB_CHARTTV = "tmdb_charttv"
    TMDB_USERLIST = "tmdb_userlist"

    @property
    def media_type(self) -> MediaType | None:
        """Return the media type implied by chart sources, if any."""

        if self.value.endswith("_chartmovie"):
            return MediaType.MOVIE
        if self.value.endswith("_charttv"):
            return MediaType.TV
        return None


MAX_SOURCE_ITEMS = 300

"""Recognise external catalog URLs that a list may be sourced from.

Classification is purely syntactic: a URL is matched against an ordered table
of catalog URL shapes and the first entry that recognises it wins. Entries are
not mutually exclusive, so their order is part of the contract.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Mapping
from urllib.parse import urlparse

from .constants import ListSource, ListSourceType, MediaType

GROUP_NAMES: tuple[str, ...] = ("listId", "username", "params", "timeframe")

Extractor = Callable[[str], Mapping[str, str | None] | None]

HOST_SOURCES: Mapping[str, ListSource] = {
    "themoviedb.org": ListSource.TMDB,
    "www.themoviedb.org": ListSource.TMDB,
    "tmdb.org": ListSource.TMDB,
    "www.tmdb.org": ListSource.TMDB,
    "trakt.tv": ListSource.TRAKT,
    "www.trakt.tv": ListSource.TRAKT,
    "api.trakt.tv": ListSource.TRAKT,
    "www.imdb.com": ListSource.IMDB,
    "imdb.com": ListSource.IMDB,
}


@dataclass(frozen=True, slots=True)
class SourcePattern:
    """One recognisable catalog URL shape."""

    origin: ListSource
    origin_type: ListSourceType
    extract: Extractor
    description: str = ""

    def match(self, url: str) -> dict[str, str | None] | None:
        """Return the captured groups for ``url`` or ``None`` when it does not match."""

        groups = self.extract(url)
        if groups is None:
            return None
        # Empty captures are reported the same way as groups the shape lacks.
        return {name: groups.get(name) or None for name in GROUP_NAMES}


@dataclass(frozen=True, slots=True)
class SourceUrlInfo:
    """Structured description of a recognised source URL."""

    source_url: str
    origin: ListSource
    origin_type: ListSourceType
    list_id: str | None = None
    username: str | None = None
    params: str | None = None
    timeframe: str | None = None

    @property
    def media_type(self) -> MediaType | None:
        return self.origin_type.media_type


def regex_extractor(expression: str) -> Extractor:
    """Build an extractor reporting the named groups of ``expression``."""

    compiled = re.compile(expression)

    def _extract(url: str) -> Mapping[str, str | None] | None:
        match = compiled.search(url)
        if match is None:
            return None
        return match.groupdict()

    return _extract


def regex_pattern(
    expression: str, origin: ListSource, origin_type: ListSourceType
) -> SourcePattern:
    return SourcePattern(
        origin=origin,
        origin_type=origin_type,
        extract=regex_extractor(expression),
        description=expression,
    )


SOURCE_PATTERNS: tuple[SourcePattern, ...] = (
    regex_pattern(
        r"^https?://www\.imdb\.com/search/title[?]?(?P<params>.*)",
        ListSource.IMDB,
        ListSourceType.IMDB_SEARCH,
    ),
    regex_pattern(
        r"https?://www\.imdb\.com/list/(?P<listId>\w*)/?\??(?P<params>.*)",
        ListSource.IMDB,
        ListSourceType.IMDB_LIST,
    ),
    regex_pattern(
        r"^https?://www\.imdb\.com/chart/(?P<listId>.*)",
        ListSource.IMDB,
        ListSourceType.IMDB_CHART,
    ),
    regex_pattern(
        r"^https?://trakt\.tv/users/(?P<username>.*)/lists/(?P<listId>.*)\?(?P<params>.*)",
        ListSource.TRAKT,
        ListSourceType.TRAKT_USERLIST,
    ),
    regex_pattern(
        r"^https?://trakt\.tv/shows/(?P<listId>\w*)/?(?P<timeframe>\w*)",
        ListSource.TRAKT,
        ListSourceType.TRAKT_CHARTTV,
    ),
    regex_pattern(
        r"^https?://trakt\.tv/movies/(?P<listId>\w*)/?(?P<timeframe>\w*)",
        ListSource.TRAKT,
        ListSourceType.TRAKT_CHARTMOVIE,
    ),
    regex_pattern(
        r"^https?://(?:www\.)?themoviedb\.org/tv/(?P<listId>\w*)/?(?P<timeframe>\w*)",
        ListSource.TMDB,
        ListSourceType.TMDB_CHARTTV,
    ),
    regex_pattern(
        r"^https?://(?:www\.)?themoviedb\.org/movie/(?P<listId>\w*)/?(?P<timeframe>\w*)",
        ListSource.TMDB,
        ListSourceType.TMDB_CHARTMOVIE,
    ),
)


def _parse_host(url: str) -> str | None:
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not (parsed.scheme and parsed.netloc):
        return None
    return parsed.netloc.lower()


def source_for_host(url: str) -> ListSource | None:
    """Return the catalog family for ``url`` judged by its host alone."""

    host = _parse_host(url)
    if host is None:
        return None
    return HOST_SOURCES.get(host)


def classify(
    url: str, patterns: tuple[SourcePattern, ...] = SOURCE_PATTERNS
) -> SourceUrlInfo | None:
    """Return the first pattern description recognising ``url``.

    ``None`` means the URL is not a recognised source; it is not an error.
    """

    if not url:
        return None
    candidate = url.strip()
    # A well-formed URL on a foreign host never reaches the pattern table.
    if source_for_host(candidate) is None and _parse_host(candidate) is not None:
        return None

    for pattern in patterns:
        groups = pattern.match(candidate)
        if groups is None:
            continue
        return SourceUrlInfo(
            source_url=candidate,
            origin=pattern.origin,
            origin_type=pattern.origin_type,
            list_id=groups["listId"],
            username=groups["username"],
            params=groups["params"],
            timeframe=groups["timeframe"],
        )
    return None

import pytest
from pydantic import ValidationError

from app.constants import MediaType
from app.models import ListCreateRequest, ListItemDescriptor


def test_descriptor_accepts_camel_case_payload():
    descriptor = ListItemDescriptor.model_validate(
        {
            "name": "  Breaking Bad ",
            "year": 2008,
            "mediaType": "series",
            "tmdbId": 1396,
            "tvdbId": 81189,
            "imdbId": "tt0903747",
            "season": 1,
            "episode": 3,
            "userId": 7,
        }
    )

    assert descriptor.name == "Breaking Bad"
    assert descriptor.year == "2008"
    assert descriptor.media_type is MediaType.TV
    assert descriptor.tmdb_id == 1396
    assert descriptor.user_id == 7
    assert descriptor.tvdb_id == 81189


def test_descriptor_blank_strings_are_absent():
    descriptor = ListItemDescriptor.model_validate(
        {"name": "", "imdbId": "  ", "mediaType": ""}
    )

    assert descriptor.name is None
    assert descriptor.imdb_id is None
    assert descriptor.media_type is None
    assert descriptor.tmdb_id is None


@pytest.mark.parametrize(
    "payload",
    [
        {"tmdbId": 0},
        {"tvdbId": -1},
        {"mediaType": "podcast"},
        {"season": -2},
    ],
)
def test_descriptor_rejects_invalid_values(payload):
    with pytest.raises(ValidationError):
        ListItemDescriptor.model_validate(payload)


def test_list_create_request_aliases():
    request = ListCreateRequest.model_validate(
        {
            "name": "Weekend",
            "sourceUrl": " https://trakt.tv/shows/trending ",
            "sourceLimit": 40,
            "autoUpdate": True,
            "posterUrl": "",
        }
    )

    assert request.source_url == "https://trakt.tv/shows/trending"
    assert request.source_limit == 40
    assert request.auto_update is True
    assert request.poster_url is None

"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest

from app.config import Settings
from app.constants import MAX_SOURCE_ITEMS


def test_defaults_without_environment_file() -> None:
    """Settings should fall back to the documented defaults."""

    settings = Settings(_env_file=None)

    assert settings.server_port == 5056
    assert settings.provider_timeout_seconds == 10.0
    assert settings.max_source_items == MAX_SOURCE_ITEMS
    assert settings.default_page_size == 10
    assert str(settings.tmdb_api_url).startswith("https://api.themoviedb.org/3")


def test_log_level_is_normalised() -> None:
    """Log levels should be parsed case-insensitively."""

    assert Settings(_env_file=None, LOG_LEVEL=" debug ").log_level == "DEBUG"
    assert Settings(_env_file=None, LOG_LEVEL="").log_level == "INFO"


def test_unknown_log_level_raises() -> None:
    with pytest.raises(ValueError, match="Unknown log level configured"):
        Settings(_env_file=None, LOG_LEVEL="chatty")


def test_blank_api_key_disables_provider() -> None:
    """A blank TMDB key should be treated as not configured."""

    assert Settings(_env_file=None, TMDB_API_KEY="   ").tmdb_api_key is None
    assert Settings(_env_file=None, TMDB_API_KEY="abc").tmdb_api_key == "abc"


@pytest.mark.parametrize("timeout", [0.1, 600])
def test_provider_timeout_bounds(timeout: float) -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, PROVIDER_TIMEOUT=timeout)

"""Settings validation tests."""

import pytest
from pydantic import ValidationError

from linkhop.core.config import Settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.short_code_length == 6
    assert settings.max_generation_attempts == 10
    assert settings.cache_ttl_seconds == 3600


@pytest.mark.parametrize("length", [0, 21])
def test_short_code_length_bounds(length: int) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, short_code_length=length)


def test_short_code_length_upper_bound_allowed() -> None:
    assert Settings(_env_file=None, short_code_length=20).short_code_length == 20

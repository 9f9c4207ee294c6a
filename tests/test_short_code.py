"""Unit tests for short-code generation, normalization and URL validation."""

import pytest

from shortener.config import get_settings
from shortener.exceptions import NotFoundError, ValidationError
from shortener.registry import (
    SHORT_CODE_ALPHABET,
    generate_short_code,
    normalize_short_code,
    validate_full_url,
)

settings = get_settings()


def test_generate_short_code_default_length() -> None:
    code = generate_short_code()
    assert len(code) == settings.SHORT_CODE_LENGTH


def test_generate_short_code_custom_length() -> None:
    code = generate_short_code(length=10)
    assert len(code) == 10


def test_generate_short_code_only_lowercase_url_safe() -> None:
    for _ in range(100):
        code = generate_short_code()
        assert all(c in SHORT_CODE_ALPHABET for c in code)
        assert code == code.lower()


def test_generate_short_code_uniqueness() -> None:
    codes = {generate_short_code() for _ in range(1000)}
    # With 36^7 possibilities, 1000 codes should all be unique
    assert len(codes) == 1000


def test_normalize_short_code_trims_and_lowercases() -> None:
    assert normalize_short_code("  AbC123x \n") == "abc123x"


@pytest.mark.parametrize("value", ["", "   ", None, 42])
def test_normalize_short_code_rejects_unusable_values(value) -> None:
    with pytest.raises(NotFoundError):
        normalize_short_code(value)


def test_validate_full_url_accepts_and_trims() -> None:
    assert validate_full_url("  https://example.com/a?b=1  ") == "https://example.com/a?b=1"


@pytest.mark.parametrize(
    "value",
    [
        "",
        "   ",
        None,
        123,
        ["https://example.com"],
        "not-a-url",
        "example.com/no-scheme",
        "https://",
        "ftp://example.com/file.txt",
    ],
)
def test_validate_full_url_rejects(value) -> None:
    with pytest.raises(ValidationError):
        validate_full_url(value)


@pytest.mark.parametrize(
    "value",
    [
        "http://localhost:5000/x",
        "http://intranet/page",
        "http://127.0.0.1:8000/",
        "https://example.com/a",
    ],
)
def test_validate_full_url_accepts_single_label_and_ip_hosts(value) -> None:
    assert validate_full_url(value) == value

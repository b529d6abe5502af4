import pytest

from mastery_tutor.core.errors import (
    USER_MESSAGES,
    ErrorCategory,
    ProviderError,
    UserFacingError,
    classify_error,
    status_code_of,
)


class FakeResponse:
    status_code = 503


class HttpError(Exception):
    response = FakeResponse()


@pytest.mark.parametrize(
    "exc, expected",
    [
        (ProviderError("x", status_code=429), ErrorCategory.RATE_LIMITED),
        (ProviderError("x", status_code=401), ErrorCategory.AUTHORIZATION),
        (ProviderError("x", status_code=403), ErrorCategory.AUTHORIZATION),
        (ProviderError("x", status_code=500), ErrorCategory.CONNECTIVITY),
        (HttpError("x"), ErrorCategory.CONNECTIVITY),
        (RuntimeError("Rate limit exceeded"), ErrorCategory.RATE_LIMITED),
        (RuntimeError("Response blocked by SAFETY"), ErrorCategory.CONTENT_FILTERED),
        (RuntimeError("API key not valid"), ErrorCategory.AUTHORIZATION),
        (ConnectionError("reset"), ErrorCategory.CONNECTIVITY),
        (TimeoutError(), ErrorCategory.CONNECTIVITY),
        (RuntimeError("?"), ErrorCategory.UNKNOWN),
    ],
)
def test_classify_error(exc, expected):
    assert classify_error(exc) is expected


def test_explicit_category_wins_over_status():
    exc = ProviderError("x", status_code=500, category=ErrorCategory.CONTENT_FILTERED)
    assert classify_error(exc) is ErrorCategory.CONTENT_FILTERED


def test_status_code_of_ignores_garbage():
    class Odd(Exception):
        status_code = "n/a"

    assert status_code_of(Odd()) is None
    assert status_code_of(HttpError()) == 503
    assert status_code_of(ValueError()) is None


def test_user_facing_error_hides_details():
    err = UserFacingError.from_exception(ProviderError("secret detail", status_code=429))
    assert err.category is ErrorCategory.RATE_LIMITED
    assert err.message == USER_MESSAGES[ErrorCategory.RATE_LIMITED]
    assert "secret" not in err.message


def test_every_category_has_a_message():
    assert set(USER_MESSAGES) == set(ErrorCategory)

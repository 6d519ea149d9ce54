import pytest
from pydantic import ValidationError

from brandscope.settings import DEFAULT_API_URL, Settings, load_settings


def test_load_settings_from_environment():
    settings = load_settings()
    assert settings.api_url == "http://testserver/api/admin"
    assert settings.api_token == "test-token"
    assert settings.poll_interval_seconds == 10
    assert settings.max_poll_attempts == 30


def test_load_settings_overrides_win(monkeypatch):
    monkeypatch.setenv("BRANDSCOPE_MAX_POLL_ATTEMPTS", "5")
    settings = load_settings(api_url="http://other/api/admin/", max_poll_attempts=None)
    assert settings.api_url == "http://other/api/admin"
    assert settings.max_poll_attempts == 5


def test_default_api_url(monkeypatch):
    monkeypatch.delenv("BRANDSCOPE_API_URL")
    assert load_settings().api_url == DEFAULT_API_URL


def test_headers_include_bearer_token():
    assert Settings(api_token="secret").headers == {
        "Content-Type": "application/json",
        "Authorization": "Bearer secret",
    }
    assert "Authorization" not in Settings().headers


def test_token_is_hidden_from_repr():
    assert "secret" not in repr(Settings(api_token="secret"))


@pytest.mark.parametrize(
    "field, value",
    [("api_url", " / "), ("max_poll_attempts", 0), ("poll_interval_seconds", -1)],
)
def test_invalid_settings(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})

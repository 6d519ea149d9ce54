import pytest


@pytest.fixture(autouse=True)
def test_set_env(monkeypatch):
    monkeypatch.setenv("BRANDSCOPE_API_URL", "http://testserver/api/admin")
    monkeypatch.setenv("BRANDSCOPE_API_TOKEN", "test-token")
    monkeypatch.delenv("BRANDSCOPE_TIMEOUT_SECONDS", raising=False)
    monkeypatch.delenv("BRANDSCOPE_POLL_INTERVAL_SECONDS", raising=False)
    monkeypatch.delenv("BRANDSCOPE_MAX_POLL_ATTEMPTS", raising=False)

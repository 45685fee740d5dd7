import pytest
from shared.client_settings import (
    DEFAULT_API_BASE_URL,
    ClientSettingsError,
    RetryPolicy,
    load_client_settings,
)


def test_defaults_match_backend_retry_policies() -> None:
    settings = load_client_settings({})

    assert settings.api_base_url == DEFAULT_API_BASE_URL
    assert settings.timeout_seconds == 30.0
    assert settings.default_retry == RetryPolicy(max_attempts=3, delay_seconds=5.0)
    assert settings.city_retry == RetryPolicy(max_attempts=5, delay_seconds=10.0)
    assert settings.retry_transient_only is False


def test_environment_overrides_are_applied() -> None:
    settings = load_client_settings(
        {
            "WEALTHSYNC_API_BASE_URL": "http://localhost:5000/",
            "WEALTHSYNC_TIMEOUT_SECONDS": "12.5",
            "WEALTHSYNC_MAX_ATTEMPTS": "1",
            "WEALTHSYNC_RETRY_DELAY_SECONDS": "0",
            "WEALTHSYNC_CITY_MAX_ATTEMPTS": "2",
            "WEALTHSYNC_CITY_RETRY_DELAY_SECONDS": "1",
            "WEALTHSYNC_RETRY_TRANSIENT_ONLY": "yes",
        }
    )

    assert settings.api_base_url == "http://localhost:5000"
    assert settings.timeout_seconds == 12.5
    assert settings.default_retry == RetryPolicy(max_attempts=1, delay_seconds=0.0)
    assert settings.city_retry == RetryPolicy(max_attempts=2, delay_seconds=1.0)
    assert settings.retry_transient_only is True


@pytest.mark.parametrize(
    "environ",
    [
        {"WEALTHSYNC_TIMEOUT_SECONDS": "soon"},
        {"WEALTHSYNC_TIMEOUT_SECONDS": "0"},
        {"WEALTHSYNC_MAX_ATTEMPTS": "0"},
        {"WEALTHSYNC_MAX_ATTEMPTS": "2.5"},
        {"WEALTHSYNC_RETRY_DELAY_SECONDS": "-1"},
        {"WEALTHSYNC_API_BASE_URL": "ftp://budget.example.org"},
    ],
)
def test_invalid_values_raise(environ) -> None:
    with pytest.raises(ClientSettingsError):
        load_client_settings(environ)


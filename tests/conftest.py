from __future__ import annotations

import pytest
import responses

USER_CONFIG = {
    "consumer_key": "test_consumer_key",
    "consumer_secret": "test_consumer_secret",
    "access_token": "test_access_token",
    "access_token_secret": "test_access_token_secret",
}

APP_CONFIG = {
    "consumer_key": "test_consumer_key",
    "consumer_secret": "test_consumer_secret",
    "app_only_auth": True,
}


@pytest.fixture
def user_config() -> dict:
    return dict(USER_CONFIG)


@pytest.fixture
def app_config() -> dict:
    return dict(APP_CONFIG)


@pytest.fixture
def mocked_responses():
    """Patch ``requests`` for the duration of one test."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps

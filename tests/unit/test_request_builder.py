from __future__ import annotations

import pytest

from twit_client.config import ClientConfig
from twit_client.exceptions import AuthResolutionError, PathTemplateError
from twit_client.models import BodyEncoding, OAuthMaterial
from twit_client.request_builder import RequestOptionsBuilder


class FakeTokenManager:
    def __init__(self, token: str = "app-token", error: Exception | None = None) -> None:
        self.token = token
        self.error = error
        self.calls = 0

    async def resolve_token(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.token


def _builder(config: dict, tokens: FakeTokenManager | None = None) -> tuple[RequestOptionsBuilder, FakeTokenManager]:
    client_config = ClientConfig.from_mapping(config)
    tokens = tokens or FakeTokenManager()
    return RequestOptionsBuilder(lambda: client_config, tokens), tokens  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_build_substitutes_path_params_and_drops_consumed_keys(user_config) -> None:
    builder, _ = _builder(user_config)
    params = {"id": 12345}

    descriptor = await builder.build("GET", "statuses/show/:id", params)

    assert descriptor.url == "https://api.twitter.com/1.1/statuses/show/12345.json"
    assert descriptor.query_string == ""
    assert params == {"id": 12345}


@pytest.mark.asyncio
async def test_build_appends_leftover_params_as_query_string(user_config) -> None:
    builder, _ = _builder(user_config)

    descriptor = await builder.build(
        "GET",
        "search/tweets",
        {"q": "banana since:2011-07-11", "count": 100, "twit_options": {"retry": True}},
    )

    assert descriptor.url == (
        "https://api.twitter.com/1.1/search/tweets.json"
        "?q=banana%20since%3A2011-07-11&count=100"
    )
    assert descriptor.encoding is BodyEncoding.JSON
    assert descriptor.headers["Content-Type"] == "application/json"
    assert descriptor.form is None


@pytest.mark.asyncio
async def test_build_joins_list_params(user_config) -> None:
    builder, _ = _builder(user_config)
    params = {"screen_name": ["tolga", "dan"]}

    descriptor = await builder.build("GET", "users/lookup", params)

    assert descriptor.query_string == "screen_name=tolga%2Cdan"
    assert params == {"screen_name": ["tolga", "dan"]}


@pytest.mark.asyncio
async def test_build_uses_multipart_for_media_upload(user_config) -> None:
    builder, _ = _builder(user_config)
    params = {"media_data": "aGVsbG8=", "media_category": "tweet_image"}

    descriptor = await builder.build("POST", "media/upload", params)

    assert descriptor.url == "https://upload.twitter.com/1.1/media/upload.json"
    assert descriptor.encoding is BodyEncoding.MULTIPART
    assert dict(descriptor.form) == params
    assert descriptor.query_string == ""
    assert "Content-Type" not in descriptor.headers


@pytest.mark.asyncio
async def test_build_uses_multipart_for_profile_image(user_config) -> None:
    builder, _ = _builder(user_config)

    descriptor = await builder.build("POST", "account/update_profile_image", {"image": "Zm9v"})

    assert descriptor.url == "https://api.twitter.com/1.1/account/update_profile_image.json"
    assert descriptor.encoding is BodyEncoding.MULTIPART
    assert dict(descriptor.form) == {"image": "Zm9v"}


@pytest.mark.asyncio
async def test_build_uses_absolute_url_verbatim(user_config) -> None:
    builder, _ = _builder(user_config)

    descriptor = await builder.build("GET", "https://api.twitter.com/2/tweets/search/recent", {"query": "cat"})

    assert descriptor.url == "https://api.twitter.com/2/tweets/search/recent?query=cat"
    assert "Content-Type" not in descriptor.headers


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("user", "https://userstream.twitter.com/1.1/user.json"),
        ("site", "https://sitestream.twitter.com/1.1/site.json"),
        ("statuses/filter", "https://stream.twitter.com/1.1/statuses/filter.json"),
        ("statuses/sample", "https://stream.twitter.com/1.1/statuses/sample.json"),
    ],
)
async def test_build_routes_streaming_paths(user_config, path, expected) -> None:
    builder, _ = _builder(user_config)

    descriptor = await builder.build("POST", path, None, streaming=True)

    assert descriptor.url == expected
    assert descriptor.method == "POST"


@pytest.mark.asyncio
async def test_build_raises_path_template_error(user_config) -> None:
    builder, _ = _builder(user_config)

    with pytest.raises(PathTemplateError):
        await builder.build("POST", "statuses/destroy/:id", {"trim_user": True})


@pytest.mark.asyncio
async def test_build_attaches_oauth_material_for_user_auth(user_config) -> None:
    builder, tokens = _builder(user_config)

    descriptor = await builder.build("GET", "account/verify_credentials")

    assert descriptor.oauth == OAuthMaterial(
        consumer_key="test_consumer_key",
        consumer_secret="test_consumer_secret",
        token="test_access_token",
        token_secret="test_access_token_secret",
    )
    assert "Authorization" not in descriptor.headers
    assert tokens.calls == 0


@pytest.mark.asyncio
async def test_build_attaches_bearer_header_for_app_only_auth(app_config) -> None:
    builder, tokens = _builder(app_config, FakeTokenManager(token="AAAA"))

    descriptor = await builder.build("GET", "search/tweets", {"q": "x"})

    assert descriptor.headers["Authorization"] == "Bearer AAAA"
    assert descriptor.oauth is None
    assert tokens.calls == 1


@pytest.mark.asyncio
async def test_build_propagates_token_failure(app_config) -> None:
    error = AuthResolutionError("Bearer token request was rejected", status_code=403)
    builder, _ = _builder(app_config, FakeTokenManager(error=error))

    with pytest.raises(AuthResolutionError):
        await builder.build("GET", "search/tweets", {"q": "x"})


@pytest.mark.asyncio
async def test_build_converts_timeout_to_seconds(user_config) -> None:
    user_config["timeout_ms"] = 2500
    builder, _ = _builder(user_config)

    descriptor = await builder.build("GET", "statuses/home_timeline")

    assert descriptor.timeout == 2.5


@pytest.mark.asyncio
async def test_descriptor_is_read_only(user_config) -> None:
    builder, _ = _builder(user_config)
    descriptor = await builder.build("POST", "media/upload", {"media_data": "x"})

    with pytest.raises(TypeError):
        descriptor.headers["X-Extra"] = "1"  # type: ignore[index]
    with pytest.raises(TypeError):
        descriptor.form["media_data"] = "y"  # type: ignore[index]

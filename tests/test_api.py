import pytest
import requests

from api import LinkedInClient, Profile, profile_from_legacy, profile_from_userinfo
from conftest import API, FakeResponse
from errors import (
    ExternalApiError,
    MissingActorError,
    PermissionDeniedError,
    TokenExpiredError,
    UnauthenticatedError,
)
from token_holder import Token, TokenHolder

COMMENTS_URL = f"{API}/socialActions/urn%3Ali%3Aactivity%3A42/comments"


@pytest.fixture
def authed(settings, store, http):
    store.set("LINKEDIN_TOKEN", "tok_abc")
    holder = TokenHolder(Token("tok_abc"), "urn:li:person:u1")
    return LinkedInClient(settings, holder, store, http)


def test_profile_shapes():
    assert profile_from_userinfo({"sub": "u1", "given_name": "Ada", "family_name": "Lovelace"}) == \
        Profile("userinfo", "u1", "Ada Lovelace", None)
    assert profile_from_userinfo({"sub": "u1", "name": "Ada L.", "email": "a@x"}).email == "a@x"
    legacy = profile_from_legacy({"id": "abc", "localizedFirstName": "Ada", "localizedLastName": "Lovelace"})
    assert legacy == Profile("legacy", "abc", "Ada Lovelace", None)
    assert legacy.urn == "urn:li:person:abc"
    assert profile_from_userinfo({}).urn is None


def test_fetch_profile_requires_token(client, http):
    with pytest.raises(UnauthenticatedError):
        client.fetch_profile()
    assert http.calls == []


def test_fetch_profile_userinfo(client, holder, http, env_path):
    holder.set_token(Token("tok_abc"))
    http.add("GET", f"{API}/userinfo", FakeResponse(200, {"sub": "u1", "name": "Ada", "email": "a@x"}))

    profile = client.fetch_profile()

    assert profile == Profile("userinfo", "u1", "Ada", "a@x")
    assert holder.current_actor() == "urn:li:person:u1"
    assert "LINKEDIN_PROFILE_URN=urn:li:person:u1" in env_path.read_text()
    assert http.calls[0][2]["headers"]["Authorization"] == "Bearer tok_abc"
    assert http.calls[0][2]["timeout"] == 10


def test_fetch_profile_does_not_overwrite_actor(authed, http):
    http.add("GET", f"{API}/userinfo", FakeResponse(200, {"sub": "other"}))
    assert authed.fetch_profile().urn == "urn:li:person:other"
    assert authed.holder.current_actor() == "urn:li:person:u1"


def test_fetch_profile_falls_back_to_legacy(authed, http):
    http.add("GET", f"{API}/userinfo", FakeResponse(403, {"message": "forbidden"}))
    http.add("GET", f"{API}/people/~", FakeResponse(200, {"id": "abc", "localizedFirstName": "Ada"}))

    profile = authed.fetch_profile()

    assert profile.source == "legacy"
    assert profile.id == "abc"
    assert http.urls() == [f"{API}/userinfo", f"{API}/people/~"]
    assert http.calls[1][2]["headers"]["X-Restli-Protocol-Version"] == "2.0.0"


def test_fetch_profile_falls_back_on_transport_error(authed, http):
    http.add("GET", f"{API}/userinfo", requests.ConnectionError("down"))
    http.add("GET", f"{API}/people/~", FakeResponse(200, {"id": "abc"}))
    assert authed.fetch_profile().id == "abc"


def test_fetch_profile_falls_back_on_malformed_body(authed, http):
    http.add("GET", f"{API}/userinfo", FakeResponse(200, text="<html>"))
    http.add("GET", f"{API}/people/~", FakeResponse(200, {"id": "abc"}))
    assert authed.fetch_profile().source == "legacy"


def test_fetch_profile_401_clears_token(authed, http, env_path):
    http.add("GET", f"{API}/userinfo", FakeResponse(401, {"message": "expired"}))

    with pytest.raises(TokenExpiredError):
        authed.fetch_profile()

    assert authed.holder.current_token() is None
    assert http.urls() == [f"{API}/userinfo"]
    assert "LINKEDIN_TOKEN=" in env_path.read_text().split("\n")


def test_fetch_profile_401_on_legacy_clears_token(authed, http):
    http.add("GET", f"{API}/userinfo", FakeResponse(500, {"message": "oops"}))
    http.add("GET", f"{API}/people/~", FakeResponse(401, {"message": "expired"}))
    with pytest.raises(TokenExpiredError):
        authed.fetch_profile()
    assert authed.holder.current_token() is None


def test_fetch_profile_both_fail(authed, http):
    http.add("GET", f"{API}/userinfo", FakeResponse(500, {"message": "oops"}))
    http.add("GET", f"{API}/people/~", FakeResponse(502, text="bad gateway"))
    with pytest.raises(ExternalApiError) as exc:
        authed.fetch_profile()
    assert exc.value.status == 502
    assert exc.value.body == "bad gateway"
    assert authed.holder.current_token() is not None


def test_post_comment(authed, http):
    http.add("POST", COMMENTS_URL, FakeResponse(201, {}, headers={"x-restli-id": "c99"}))

    result = authed.post_comment("urn:li:activity:42", "nice post")

    assert result.comment_id == "c99"
    assert result.text == "nice post"
    assert result.target_urn == "urn:li:activity:42"
    assert result.actor_urn == "urn:li:person:u1"
    _, _, kwargs = http.calls[0]
    assert kwargs["json"] == {
        "actor": "urn:li:person:u1",
        "object": "urn:li:activity:42",
        "message": {"text": "nice post"},
    }
    assert kwargs["headers"]["Authorization"] == "Bearer tok_abc"
    assert kwargs["headers"]["X-Restli-Protocol-Version"] == "2.0.0"


def test_post_comment_without_id_header(authed, http):
    http.add("POST", COMMENTS_URL, FakeResponse(201, {}))
    assert authed.post_comment("urn:li:activity:42", "hi").comment_id is None


def test_post_comment_actor_override(authed, http):
    http.add("POST", COMMENTS_URL, FakeResponse(201, {}))
    result = authed.post_comment("urn:li:activity:42", "hi", "urn:li:organization:7")
    assert result.actor_urn == "urn:li:organization:7"
    assert http.calls[0][2]["json"]["actor"] == "urn:li:organization:7"


def test_post_comment_requires_token(client, http):
    with pytest.raises(UnauthenticatedError):
        client.post_comment("urn:li:activity:42", "hi", "urn:li:person:u1")
    assert http.calls == []


def test_post_comment_missing_actor(client, holder, http):
    holder.set_token(Token("tok_abc"))
    with pytest.raises(MissingActorError):
        client.post_comment("urn:li:activity:42", "hi")
    assert http.calls == []


def test_post_comment_401_clears_token(authed, http, env_path):
    http.add("POST", COMMENTS_URL, FakeResponse(401, {"message": "expired"}))
    with pytest.raises(TokenExpiredError):
        authed.post_comment("urn:li:activity:42", "hi")
    assert authed.holder.current_token() is None
    assert authed.holder.current_actor() == "urn:li:person:u1"
    assert "LINKEDIN_TOKEN=" in env_path.read_text().split("\n")


def test_post_comment_403(authed, http):
    http.add("POST", COMMENTS_URL, FakeResponse(403, {"message": "nope"}))
    with pytest.raises(PermissionDeniedError):
        authed.post_comment("urn:li:activity:42", "hi")
    assert authed.holder.current_token() is not None


def test_post_comment_other_failure(authed, http):
    http.add("POST", COMMENTS_URL, FakeResponse(422, {"message": "invalid"}))
    with pytest.raises(ExternalApiError) as exc:
        authed.post_comment("urn:li:activity:42", "hi")
    assert exc.value.status == 422
    assert exc.value.body == {"message": "invalid"}


def test_post_comment_transport_failure(authed, http):
    http.add("POST", COMMENTS_URL, requests.ConnectionError("refused"))
    with pytest.raises(ExternalApiError) as exc:
        authed.post_comment("urn:li:activity:42", "hi")
    assert exc.value.status is None

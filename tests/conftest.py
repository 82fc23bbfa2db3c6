import json

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from api import LinkedInClient
from auth import OAuthHandshake
from env_store import EnvStore
from settings import Settings
from token_holder import Token, TokenHolder

API = "https://api.linkedin.com/v2"
TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, headers=None, text=None):
        self.status_code = status_code
        self._json = json_data
        self.headers = CaseInsensitiveDict(headers or {})
        self.text = text if text is not None else (json.dumps(json_data) if json_data is not None else "")

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._json is None:
            raise requests.JSONDecodeError("Expecting value", self.text, 0)
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Stands in for requests.Session: canned responses per (method, url), records every call."""

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.headers = {}

    def add(self, method, url, response):
        self.routes[(method.upper(), url)] = response

    def request(self, method, url, **kwargs):
        self.calls.append((method.upper(), url, kwargs))
        try:
            response = self.routes[(method.upper(), url)]
        except KeyError:
            raise AssertionError(f"unexpected request {method} {url}")
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def urls(self):
        return [url for _, url, _ in self.calls]


@pytest.fixture
def env_path(tmp_path):
    return tmp_path / ".env"


@pytest.fixture
def settings(env_path):
    return Settings(client_id="cid", client_secret="s3cret", env_path=str(env_path))


@pytest.fixture
def store(env_path):
    return EnvStore(env_path).load()


@pytest.fixture
def http():
    return FakeSession()


@pytest.fixture
def holder():
    return TokenHolder()


@pytest.fixture
def authed_holder():
    return TokenHolder(Token("tok_abc"), "urn:li:person:u1")


@pytest.fixture
def client(settings, holder, store, http):
    return LinkedInClient(settings, holder, store, http)


@pytest.fixture
def oauth(settings, holder, store, http, client):
    return OAuthHandshake(settings, holder, store, client, http)

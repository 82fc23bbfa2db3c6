#!/usr/bin/env python3
# src/api.py
# Authenticated calls to the LinkedIn REST API.

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import requests

from errors import (
    ExternalApiError,
    MissingActorError,
    PermissionDeniedError,
    TokenExpiredError,
    UnauthenticatedError,
)
from settings import ACTOR_KEY, PERSON_URN_PREFIX, RESTLI_HEADERS, TOKEN_KEY, Settings
from token_holder import Token, TokenHolder

LOG = logging.getLogger("api")


def make_session(settings: Settings) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": settings.user_agent})
    return session


def person_urn(subject: Optional[str]) -> Optional[str]:
    return f"{PERSON_URN_PREFIX}{subject}" if subject else None


# -------------------- profile shapes --------------------
@dataclass(frozen=True)
class Profile:
    source: str  # "userinfo" or "legacy"
    id: Optional[str]
    name: str
    email: Optional[str] = None

    @property
    def urn(self) -> Optional[str]:
        return person_urn(self.id)


def profile_from_userinfo(payload: Dict[str, Any]) -> Profile:
    """OpenID userinfo: sub, name / given_name + family_name, email."""
    sub = payload.get("sub")
    name = payload.get("name") or f"{payload.get('given_name') or ''} {payload.get('family_name') or ''}".strip()
    return Profile("userinfo", str(sub) if sub else None, name, payload.get("email"))


def profile_from_legacy(payload: Dict[str, Any]) -> Profile:
    """v2 /people/~: id, localizedFirstName + localizedLastName, emailAddress."""
    pid = payload.get("id")
    name = f"{payload.get('localizedFirstName') or ''} {payload.get('localizedLastName') or ''}".strip()
    return Profile("legacy", str(pid) if pid else None, name, payload.get("emailAddress"))


@dataclass(frozen=True)
class ActorLookup:
    """Outcome of the best-effort userinfo call made right after the token exchange."""

    subject: Optional[str] = None
    warning: Optional[str] = None

    @property
    def urn(self) -> Optional[str]:
        return person_urn(self.subject)


@dataclass(frozen=True)
class CommentResult:
    comment_id: Optional[str]
    text: str
    target_urn: str
    actor_urn: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comment_id": self.comment_id,
            "posted_comment": self.text,
            "target_urn": self.target_urn,
            "actor_urn": self.actor_urn,
        }


def _body(r: requests.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return r.text


class LinkedInClient:
    def __init__(self, settings: Settings, holder: TokenHolder, store, session: Optional[requests.Session] = None):
        self.settings = settings
        self.holder = holder
        self.store = store
        self._session = session or make_session(settings)

    def _request(self, method: str, path: str, access_token: str, headers: Optional[Dict[str, str]] = None,
                 **kwargs) -> requests.Response:
        h = {"Authorization": f"Bearer {access_token}"}
        h.update(headers or {})
        url = f"{self.settings.api_url}{path}"
        try:
            return self._session.request(method, url, headers=h, timeout=self.settings.request_timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            LOG.error(f"Request failed: {e}")
            raise ExternalApiError(f"Request to {path} failed", None, str(e)) from e

    def _require_token(self) -> Token:
        token = self.holder.current_token()
        if token is None:
            raise UnauthenticatedError()
        return token

    def _invalidate(self) -> None:
        LOG.warning("LinkedIn answered 401, clearing stored token")
        self.holder.clear_token()
        self.store.set(TOKEN_KEY, "")

    def _check(self, r: requests.Response, message: str) -> None:
        if r.status_code == 401:
            self._invalidate()
            raise TokenExpiredError()
        try:
            r.raise_for_status()
        except requests.HTTPError as e:
            raise ExternalApiError(message, r.status_code, _body(r)) from e

    @staticmethod
    def _json(r: requests.Response) -> Dict[str, Any]:
        try:
            data = r.json()
        except ValueError as e:
            raise ExternalApiError("Malformed response from LinkedIn", r.status_code, r.text) from e
        if not isinstance(data, dict):
            raise ExternalApiError("Unexpected response shape from LinkedIn", r.status_code, data)
        return data

    def _get_profile(self, path: str, token: Token, shape: Callable[[Dict[str, Any]], Profile],
                     headers: Optional[Dict[str, str]] = None) -> Profile:
        r = self._request("GET", path, token.access_token, headers=headers)
        self._check(r, "Failed to fetch profile")
        return shape(self._json(r))

    def fetch_profile(self) -> Profile:
        """
        Fetch the authenticated member's profile.
        Tries /userinfo (openid scope) first and falls back to the legacy /people/~ endpoint.
        A profile URN is remembered as the actor if none is stored yet.
        """
        token = self._require_token()
        LOG.info("Fetching LinkedIn profile...")
        try:
            profile = self._get_profile("/userinfo", token, profile_from_userinfo)
        except TokenExpiredError:
            raise
        except ExternalApiError as e:
            LOG.info("Userinfo endpoint not accessible (%s), trying legacy profile", e.status or e.body)
            profile = self._get_profile("/people/~", token, profile_from_legacy, headers=RESTLI_HEADERS)

        urn = profile.urn
        if urn and self.holder.set_actor(urn):
            self.store.set(ACTOR_KEY, urn)
        LOG.info("Profile URN: %s", urn or self.holder.current_actor() or "Not available")
        return profile

    def lookup_subject(self, access_token: str) -> ActorLookup:
        """Best-effort userinfo call with an explicit token. Never raises."""
        try:
            r = self._request("GET", "/userinfo", access_token)
        except ExternalApiError as e:
            return ActorLookup(warning=f"profile lookup failed: {e.body}")
        if not r.ok:
            return ActorLookup(warning=f"profile lookup returned {r.status_code}")
        try:
            profile = profile_from_userinfo(self._json(r))
        except ExternalApiError as e:
            return ActorLookup(warning=e.message)
        if not profile.id:
            return ActorLookup(warning="profile lookup returned no subject")
        return ActorLookup(subject=profile.id)

    def post_comment(self, target_urn: str, text: str, actor_urn: Optional[str] = None) -> CommentResult:
        token = self._require_token()
        actor = actor_urn or self.holder.current_actor()
        if not actor:
            raise MissingActorError()

        LOG.info("Posting comment on %s as %s", target_urn, actor)
        payload = {"actor": actor, "object": target_urn, "message": {"text": text}}
        r = self._request(
            "POST",
            f"/socialActions/{quote(target_urn, safe='')}/comments",
            token.access_token,
            headers=RESTLI_HEADERS,
            json=payload,
        )
        if r.status_code == 403:
            raise PermissionDeniedError()
        self._check(r, "Failed to post comment")

        LOG.info("Comment posted, status %s", r.status_code)
        return CommentResult(r.headers.get("x-restli-id"), text, target_urn, actor)

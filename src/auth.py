#!/usr/bin/env python3
# src/auth.py
# Three-legged OAuth (authorization code grant) against LinkedIn.

import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import requests

from api import LinkedInClient, make_session
from errors import ConfigurationError, MissingCodeError, OAuthDeniedError, StateMismatchError, TokenExchangeError
from settings import ACTOR_KEY, TOKEN_KEY, Settings
from token_holder import Token, TokenHolder

LOG = logging.getLogger("auth")


@dataclass(frozen=True)
class AuthorizationRequest:
    url: str
    state: str


@dataclass(frozen=True)
class CallbackResult:
    token_preview: str
    actor: Optional[str]
    expires_in: Optional[int]
    warning: Optional[str] = None  # set when the actor lookup was skipped

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "access_token": self.token_preview,
            "profile_urn": self.actor,
            "expires_in": self.expires_in,
        }
        if self.warning:
            d["warning"] = self.warning
        return d


def new_state() -> str:
    return secrets.token_urlsafe(16)


def _expires_in(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class OAuthHandshake:
    def __init__(self, settings: Settings, holder: TokenHolder, store, profiles: LinkedInClient,
                 session: Optional[requests.Session] = None):
        self.settings = settings
        self.holder = holder
        self.store = store
        self.profiles = profiles
        self._session = session or make_session(settings)

    def build_authorization_url(self, state: Optional[str] = None) -> AuthorizationRequest:
        s = self.settings
        if not s.has_credentials:
            raise ConfigurationError(
                "LinkedIn OAuth not configured. Please set LINKEDIN_CLIENT_ID and LINKEDIN_CLIENT_SECRET in .env")
        state = state or new_state()
        q = {
            "response_type": "code",
            "client_id": s.client_id,
            "redirect_uri": s.redirect_uri,
            "state": state,
            "scope": s.scope,
        }
        url = s.auth_url + "?" + urlencode(q, quote_via=quote)
        LOG.info("Starting LinkedIn OAuth flow, redirecting to %s", s.auth_url)
        return AuthorizationRequest(url, state)

    def handle_callback(self, code: Optional[str], state: Optional[str], error: Optional[str] = None,
                        error_description: Optional[str] = None,
                        expected_state: Optional[str] = None) -> CallbackResult:
        """
        Finish the handshake: exchange `code` for a bearer token, keep it in the
        holder and the .env file, then try to resolve the member URN.

        Nothing is mutated unless the exchange succeeds. A failed URN lookup
        does not fail the callback; it is reported in `CallbackResult.warning`.
        """
        if error:
            LOG.error("LinkedIn OAuth error: %s %s", error, error_description)
            raise OAuthDeniedError(error, error_description)
        if not code:
            LOG.error("No authorization code received")
            raise MissingCodeError()
        if not state or not expected_state or not hmac.compare_digest(state.encode(), expected_state.encode()):
            LOG.error("OAuth state mismatch")
            raise StateMismatchError()

        tokens = self.exchange_code_for_token(code)
        token = Token(tokens["access_token"], _expires_in(tokens.get("expires_in")))
        self.holder.set_token(token)
        self.store.set(TOKEN_KEY, token.access_token)
        LOG.info("Obtained LinkedIn access token, expires in %s seconds", token.expires_in)

        lookup = self.profiles.lookup_subject(token.access_token)
        if lookup.urn:
            if self.holder.set_actor(lookup.urn):
                self.store.set(ACTOR_KEY, lookup.urn)
            LOG.info("Profile URN obtained: %s", lookup.urn)
        else:
            LOG.info("Profile fetch skipped (%s) - will be set when needed", lookup.warning)

        return CallbackResult(token.preview(), self.holder.current_actor(), token.expires_in, lookup.warning)

    def exchange_code_for_token(self, code: str) -> Dict[str, Any]:
        """Exchange authorization code for tokens (authorization_code grant)."""
        s = self.settings
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": s.redirect_uri,
            "client_id": s.client_id,
            "client_secret": s.client_secret,
        }
        LOG.info("Exchanging authorization code for access token...")
        try:
            r = self._session.post(s.token_url, data=data, timeout=s.request_timeout)
            r.raise_for_status()
            tokens = r.json()
        except requests.HTTPError as e:
            resp = e.response
            details: Any = None
            if resp is not None:
                try:
                    details = resp.json()
                except ValueError:
                    details = {"status": resp.status_code, "body": resp.text}
            LOG.error("Error exchanging code for token: %s", details or e)
            raise TokenExchangeError(details=details or str(e)) from e
        except requests.JSONDecodeError as e:
            # also a RequestException, so it has to come first
            LOG.error("Token endpoint returned invalid JSON: %s", e)
            raise TokenExchangeError(details="Token endpoint returned invalid JSON") from e
        except requests.exceptions.RequestException as e:
            LOG.error("Error exchanging code for token: %s", e)
            raise TokenExchangeError(details=str(e)) from e
        except ValueError as e:
            LOG.error("Token endpoint returned invalid JSON: %s", e)
            raise TokenExchangeError(details="Token endpoint returned invalid JSON") from e

        access = tokens.get("access_token") if isinstance(tokens, dict) else None
        if not access or not isinstance(access, str):
            raise TokenExchangeError(details="No access token received from LinkedIn")
        return tokens

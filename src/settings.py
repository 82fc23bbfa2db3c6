#!/usr/bin/env python3
# src/settings.py

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# keys persisted to the .env file
TOKEN_KEY = "LINKEDIN_TOKEN"
ACTOR_KEY = "LINKEDIN_PROFILE_URN"

PERSON_URN_PREFIX = "urn:li:person:"
RESTLI_HEADERS = {"X-Restli-Protocol-Version": "2.0.0"}

DEFAULT_REDIRECT_URI = "http://localhost:3000/auth/linkedin/callback"
DEFAULT_SCOPE = "profile openid w_member_social"
DEFAULT_TIMEOUT = 10


@dataclass
class Settings:
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_uri: str = DEFAULT_REDIRECT_URI
    scope: str = DEFAULT_SCOPE
    auth_url: str = "https://www.linkedin.com/oauth/v2/authorization"
    token_url: str = "https://www.linkedin.com/oauth/v2/accessToken"
    api_url: str = "https://api.linkedin.com/v2"
    env_path: str = ".env"
    request_timeout: int = DEFAULT_TIMEOUT
    user_agent: str = "linkedin-commenter/1.0"

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)


# -------------------- _env helpers --------------------
def _env(k: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(k, default)


def _env_int(k: str, default: int) -> int:
    """
    Read integer environment var (or return default).
    Malformed values fall back to the default.
    """
    val = os.getenv(k)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def load_settings(env_path: Optional[str] = None) -> Settings:
    """Load the .env file into the process environment and build Settings from it."""
    env_path = env_path or _env("LINKEDIN_ENV_PATH", ".env")
    # existing process variables win over the file
    load_dotenv(env_path)
    return Settings(
        client_id=_env("LINKEDIN_CLIENT_ID"),
        client_secret=_env("LINKEDIN_CLIENT_SECRET"),
        redirect_uri=_env("LINKEDIN_REDIRECT_URI") or DEFAULT_REDIRECT_URI,
        env_path=env_path,
        request_timeout=_env_int("LINKEDIN_TIMEOUT", DEFAULT_TIMEOUT),
        user_agent=_env("LINKEDIN_USER_AGENT", "linkedin-commenter/1.0"),
    )

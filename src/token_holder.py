#!/usr/bin/env python3
# src/token_holder.py

from dataclasses import dataclass
from typing import Optional

from settings import ACTOR_KEY, TOKEN_KEY


@dataclass(frozen=True)
class Token:
    access_token: str
    expires_in: Optional[int] = None  # informational, never tracked

    def preview(self) -> str:
        return self.access_token[:10] + "..."


class TokenHolder:
    """Process-wide bearer token and actor URN. Pure memory, no persistence."""

    def __init__(self, token: Optional[Token] = None, actor: Optional[str] = None):
        self._token = token
        self._actor = actor

    @classmethod
    def from_store(cls, store) -> "TokenHolder":
        # empty values mark a token invalidated on a previous run
        access = store.get(TOKEN_KEY) or None
        actor = store.get(ACTOR_KEY) or None
        return cls(Token(access) if access else None, actor)

    def current_token(self) -> Optional[Token]:
        return self._token

    def current_actor(self) -> Optional[str]:
        return self._actor

    def is_authenticated(self) -> bool:
        return self._token is not None

    def set_token(self, token: Token) -> None:
        self._token = token

    def set_actor(self, actor: str) -> bool:
        """First write wins. Returns True if `actor` was stored."""
        if self._actor:
            return False
        self._actor = actor
        return True

    def clear_token(self) -> None:
        self._token = None

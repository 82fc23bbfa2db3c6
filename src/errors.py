#!/usr/bin/env python3
# src/errors.py
# Error kinds raised by the OAuth handshake and the LinkedIn API client.

from typing import Any, Dict, Optional


class LinkedInError(Exception):
    """Base error. `http_status` is what the web layer answers with."""

    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def extra(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message}
        body.update(self.extra())
        return body


class ConfigurationError(LinkedInError):
    http_status = 500


class OAuthDeniedError(LinkedInError):
    http_status = 400

    def __init__(self, error: str, description: Optional[str] = None):
        super().__init__("LinkedIn OAuth failed")
        self.error = error
        self.description = description

    def extra(self) -> Dict[str, Any]:
        return {"details": self.description or self.error}


class MissingCodeError(LinkedInError):
    http_status = 400

    def __init__(self, message: str = "No authorization code received"):
        super().__init__(message)


class StateMismatchError(LinkedInError):
    http_status = 400

    def __init__(self, message: str = "Missing or invalid OAuth state"):
        super().__init__(message)


class TokenExchangeError(LinkedInError):
    http_status = 500

    def __init__(self, message: str = "Failed to exchange code for access token", details: Any = None):
        super().__init__(message)
        self.details = details

    def extra(self) -> Dict[str, Any]:
        return {"details": self.details} if self.details is not None else {}


class UnauthenticatedError(LinkedInError):
    http_status = 401

    def __init__(self, message: str = "Not authenticated. Please visit /auth/linkedin first."):
        super().__init__(message)


class TokenExpiredError(LinkedInError):
    http_status = 401

    def __init__(self, message: str = "Access token expired or invalid. Please re-authenticate at /auth/linkedin"):
        super().__init__(message)


class PermissionDeniedError(LinkedInError):
    http_status = 403

    def __init__(self, message: str = (
            "Permission denied. Make sure you have permission to comment on this post "
            "and your LinkedIn app has the correct permissions.")):
        super().__init__(message)


class MissingActorError(LinkedInError):
    http_status = 400

    def __init__(self, message: str = (
            'No actor URN available. Please provide "actorUrn" in request body '
            "or visit /me to set profile URN.")):
        super().__init__(message)

    def extra(self) -> Dict[str, Any]:
        return {"hint": "You can extract your URN from your LinkedIn profile URL or provide it manually"}


class InvalidRequestError(LinkedInError):
    http_status = 400


class ExternalApiError(LinkedInError):
    """Any other upstream failure. `status` is None when no response arrived."""

    http_status = 500

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body

    def extra(self) -> Dict[str, Any]:
        return {"details": self.body, "status": self.status}

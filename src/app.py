#!/usr/bin/env python3
# src/app.py

import logging
import os
import secrets
from dataclasses import dataclass
from typing import Optional

import requests
from flask import Flask, current_app, jsonify, redirect, request, session
from werkzeug.exceptions import HTTPException

from api import LinkedInClient, make_session
from auth import OAuthHandshake
from env_store import EnvStore
from errors import InvalidRequestError, LinkedInError, UnauthenticatedError
from settings import Settings, load_settings
from token_holder import TokenHolder

LOG = logging.getLogger("app")

ENDPOINTS = {
    "GET /auth/linkedin": "Start LinkedIn OAuth flow",
    "GET /auth/linkedin/callback": "OAuth callback handler",
    "GET /me": "Get LinkedIn profile info",
    "POST /comment": "Post a comment (requires JSON: {urn, comment})",
    "GET /status": "Service status",
}


@dataclass
class Services:
    settings: Settings
    store: EnvStore
    holder: TokenHolder
    client: LinkedInClient
    oauth: OAuthHandshake


def _services() -> Services:
    return current_app.extensions["linkedin"]


def create_app(settings: Optional[Settings] = None, store: Optional[EnvStore] = None,
               holder: Optional[TokenHolder] = None, http: Optional[requests.Session] = None) -> Flask:
    settings = settings or load_settings()
    store = store or EnvStore(settings.env_path).load()
    holder = holder or TokenHolder.from_store(store)
    http = http or make_session(settings)
    client = LinkedInClient(settings, holder, store, http)
    oauth = OAuthHandshake(settings, holder, store, client, http)

    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET", secrets.token_hex(24))
    app.extensions["linkedin"] = Services(settings, store, holder, client, oauth)
    _register(app)
    return app


def _register(app: Flask) -> None:
    @app.errorhandler(LinkedInError)
    def linkedin_error(e: LinkedInError):
        return jsonify(e.to_dict()), e.http_status

    @app.errorhandler(404)
    def not_found(_):
        return jsonify({"error": "Endpoint not found", "available_endpoints": ["GET /", *ENDPOINTS]}), 404

    @app.errorhandler(Exception)
    def unhandled(e: Exception):
        if isinstance(e, HTTPException):
            return e
        LOG.exception("Unhandled error")
        return jsonify({"error": "Internal server error", "message": str(e)}), 500

    @app.route("/")
    def index():
        svc = _services()
        return jsonify({
            "message": "LinkedIn Comment Automation Service",
            "endpoints": ENDPOINTS,
            "authenticated": svc.holder.is_authenticated(),
            "profile_urn": svc.holder.current_actor() or "Not set",
        })

    @app.route("/auth/linkedin")
    def login():
        auth = _services().oauth.build_authorization_url()
        session["oauth_state"] = auth.state
        return redirect(auth.url)

    @app.route("/auth/linkedin/callback")
    def callback():
        result = _services().oauth.handle_callback(
            request.args.get("code"),
            request.args.get("state"),
            error=request.args.get("error"),
            error_description=request.args.get("error_description"),
            expected_state=session.pop("oauth_state", None),
        )
        return jsonify({
            "success": True,
            "message": "LinkedIn authentication successful!",
            **result.to_dict(),
            "next_steps": ["Visit /me to see your full profile", "Use POST /comment to post comments"],
        })

    @app.route("/me")
    def me():
        svc = _services()
        profile = svc.client.fetch_profile()
        return jsonify({
            "success": True,
            "profile": {
                "id": profile.id or "unknown",
                "name": profile.name,
                "email": profile.email or "Not available",
                "urn": profile.urn or svc.holder.current_actor() or "Not available",
            },
        })

    @app.route("/comment", methods=["POST"])
    def comment():
        svc = _services()
        body = request.get_json(silent=True)
        if body is None:
            body = request.form
        if not svc.holder.is_authenticated():
            raise UnauthenticatedError()
        if not isinstance(body, dict):
            raise InvalidRequestError("Request body must be a JSON object.")
        urn = body.get("urn")
        text = body.get("comment")
        actor = body.get("actorUrn")
        if not urn or not text:
            raise InvalidRequestError(
                'Missing required fields. Please provide both "urn" and "comment" in the request body.')
        if not all(isinstance(v, str) for v in (urn, text, actor or "")):
            raise InvalidRequestError('"urn", "comment" and "actorUrn" must be strings.')
        result = svc.client.post_comment(urn, text, actor)
        return jsonify({"success": True, "message": "Comment posted successfully!", **result.to_dict()})

    @app.route("/status")
    def status():
        svc = _services()
        return jsonify({
            "service": "LinkedIn Comment Automation",
            "status": "running",
            "authenticated": svc.holder.is_authenticated(),
            "profile_urn": svc.holder.current_actor(),
            "config": {
                "client_id_set": bool(svc.settings.client_id),
                "client_secret_set": bool(svc.settings.client_secret),
                "redirect_uri": svc.settings.redirect_uri,
            },
        })

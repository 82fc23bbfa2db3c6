#!/usr/bin/env python3
# src/main.py
"""LinkedIn comment automation service.
Authenticates via OAuth2 (GET /auth/linkedin), keeps the token in .env and posts comments on request.
"""

import argparse
import logging
import os
from typing import Optional

from app import create_app
from settings import load_settings

DEFAULT_PORT = 3000
LOG = logging.getLogger(__name__)


class BooleanAction(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        if values.lower() in ("yes", "true", "t", "1"):
            setattr(namespace, self.dest, True)
        elif values.lower() in ("no", "false", "f", "0"):
            setattr(namespace, self.dest, False)
        else:
            raise argparse.ArgumentTypeError(f"Unsupported boolean value: {values}")


# -------------------- _env helpers --------------------
def _env(k: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(k, default)


def _env_int(k: str, default: int) -> int:
    val = os.getenv(k)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        # if env is malformed, fallback to default
        return default


# -------------------- CLI --------------------
def parse_args(argv=None):
    p = argparse.ArgumentParser(description="LinkedIn comment automation service")
    p.add_argument("--host", type=str, default="0.0.0.0", help="Interface to bind.")
    p.add_argument("--port", type=int, default=None, help="Port to listen on (default: $PORT or 3000).")
    p.add_argument("--env-file", type=str, default=None,
                   help="Path to the .env file holding credentials and the stored token.")
    p.add_argument("--log-level", type=str, default=None, help="Logging level (default: $LOG_LEVEL or INFO).")
    p.add_argument("--debug", dest="debug", action=BooleanAction, default=False,
                   type=str,
                   choices=["yes", "no", "true", "false", "t", "f", "1", "0"],
                   help="Toggle Flask debug mode.")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    level = (args.log_level or _env("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = load_settings(args.env_file)
    if not settings.has_credentials:
        LOG.warning("LINKEDIN_CLIENT_ID / LINKEDIN_CLIENT_SECRET not set; /auth/linkedin will fail")

    app = create_app(settings)
    holder = app.extensions["linkedin"].holder
    port = args.port if args.port is not None else _env_int("PORT", DEFAULT_PORT)

    LOG.info("LinkedIn Comment Automation Service on http://%s:%s", args.host, port)
    LOG.info("Authenticated: %s, profile URN: %s", holder.is_authenticated(), holder.current_actor() or "Not set")
    app.run(args.host, port, debug=args.debug)


if __name__ == "__main__":
    main()

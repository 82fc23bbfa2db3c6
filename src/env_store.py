#!/usr/bin/env python3
# src/env_store.py
# Flat KEY=VALUE file (the developer's .env) used as token storage.

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from dotenv import dotenv_values

LOG = logging.getLogger("env_store")


class EnvStore:
    """
    Read-once snapshot of a .env file with write-through upserts.

    `get` only looks at the snapshot taken by `load`. `set` rewrites the whole
    file, replacing the `key=` line in place or appending a new one. I/O
    errors are logged, never raised: the in-memory path keeps working even if
    the file can't be written.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._values: Dict[str, Optional[str]] = {}

    def load(self) -> "EnvStore":
        if not self.path.exists():
            self._values = {}
            return self
        try:
            self._values = dict(dotenv_values(self.path))
        except (OSError, UnicodeDecodeError) as e:
            LOG.error("Error reading %s: %s", self.path, e)
            self._values = {}
        return self

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._values.get(key)
        return default if value is None else value

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        lines = self._read_lines()
        if lines is None:
            LOG.error("Not updating %s with %s: existing contents could not be read", self.path, key)
            return
        prefix = f"{key}="
        for i, line in enumerate(lines):
            if line.startswith(prefix):
                lines[i] = f"{key}={value}"
                break
        else:
            lines.append(f"{key}={value}")

        try:
            self.path.write_text("\n".join(lines), encoding="utf-8", errors="surrogateescape")
        except OSError as e:
            LOG.error("Error updating %s: %s", self.path, e)
            return
        LOG.info("Updated %s with %s", self.path, key)

    def _read_lines(self) -> Optional[List[str]]:
        """Current file lines, [] if there is no file, None if it can't be read."""
        if not self.path.exists():
            return []
        try:
            # undecodable bytes survive the rewrite unchanged
            text = self.path.read_text(encoding="utf-8", errors="surrogateescape")
        except OSError as e:
            LOG.error("Error reading %s: %s", self.path, e)
            return None
        return text.split("\n") if text else []

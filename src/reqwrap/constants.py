"""Shared constants for reqwrap."""

from __future__ import annotations

import re

HTTP_OK_STATUS = 200

DEFAULT_TIMEOUT_MS = 2000

DEVELOPMENT_ENVIRONMENT = "development"

# Environment variables consulted by reqwrap.config
ENV_ENVIRONMENT = "REQWRAP_ENV"
ENV_REQUEST_LOG = "REQWRAP_REQUEST_LOG"

# Used in request log lines when a call did not name its method
UNSPECIFIED_METHOD = "NOT SPECIFIED"

ABSOLUTE_URL_RE = re.compile(r"^(http|https)://")

# Ordered: the first pattern matching a Content-Type header picks the decoder.
FETCH_CONTENT_TYPES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("json", re.compile(r"^application/json")),
    ("text", re.compile(r"^text/")),
    ("blob", re.compile(r"^application/octet-stream")),
    ("array_buffer", re.compile(r"^application/.*buffer")),
    ("form_data", re.compile(r"^multipart/form-data")),
)

# memcached rejects keys longer than this
MEMCACHED_MAX_KEY_LENGTH = 250

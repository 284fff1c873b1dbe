"""PII stripping for Sentry events and crash dumps."""

import json
import os
import re

_HOME = os.path.expanduser("~")
_USERNAME = os.path.basename(_HOME)
_PATH_PATTERN = re.compile(r"/Users/[^/\s\"]+|/home/[^/\s\"]+|C:\\\\Users\\\\[^\\\s\"]+")
_SENSITIVE_KEYS = {"token", "auth", "key", "secret", "password", "dsn"}


def _scrub_dict(d: dict):
    """Redact values for keys that look sensitive."""
    for key in list(d.keys()):
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            d[key] = "<REDACTED>"


def redact_paths(text: str) -> str:
    """Replace the home directory, username and user-directory paths."""
    if _HOME and _HOME != "/":
        text = text.replace(_HOME, "<HOME>")
    if _USERNAME:
        # Only whole path components, so words containing the name survive
        text = re.sub(
            rf"(?<=[/\\]){re.escape(_USERNAME)}(?=[/\\\s\"']|$)",
            "<USER>",
            text,
        )
    return _PATH_PATTERN.sub("<REDACTED_PATH>", text)


def strip_pii(event: dict, hint: dict) -> dict:
    """Sentry before_send hook. Strips input/output paths and secrets.

    Also used on crash dumps, which carry the file paths wavedown was run on.
    """
    event = json.loads(redact_paths(json.dumps(event)))

    _scrub_dict(event.get("extra", {}))
    for ctx in event.get("contexts", {}).values():
        if isinstance(ctx, dict):
            _scrub_dict(ctx)
    return event

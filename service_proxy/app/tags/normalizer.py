"""
Player and clan tag normalization.

The upstream addresses players and clans by tag, e.g. ``#2PP``. Tags are
case-sensitive upstream (always uppercase), carry a leading ``#`` and must be
percent-encoded inside a path segment. Clients send them in any of these
forms, so everything is funnelled through ``normalize_tag``.
"""

from typing import Any
from urllib.parse import quote, unquote

from shared.errors import InvalidIdentifierError


TAG_MARKER = "#"

# Characters the upstream uses in tags
TAG_ALPHABET = frozenset("0289PYLQGRJCUV")

# Matches JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def normalize_tag(raw: str) -> str:
    """Return the canonical, path-encoded form of a tag.

    ``"abc123"``, ``"#ABC123"`` and ``"%23ABC123"`` all become ``"%23ABC123"``.
    Re-normalizing an already normalized tag is a no-op. An empty input gives
    an empty string; rejecting it is left to ``validate_tag`` or the caller.
    """
    if not raw:
        return ""

    tag = unquote(raw).strip().upper()
    if not tag.startswith(TAG_MARKER):
        tag = f"{TAG_MARKER}{tag}"

    return quote(tag, safe=_URI_COMPONENT_SAFE)


def validate_tag(raw: Any, strict: bool = False) -> None:
    """Raise InvalidIdentifierError when ``raw`` cannot name a tag.

    Non-strict validation only rejects missing and blank values. With
    ``strict`` the tag body must also use the upstream alphabet.
    """
    if not raw or not isinstance(raw, str):
        raise InvalidIdentifierError("tag_missing", "Tag is required")

    trimmed = raw.strip()
    if not trimmed:
        raise InvalidIdentifierError("tag_empty", "Tag must not be blank")

    if strict:
        body = unquote(trimmed).strip().upper()
        if body.startswith(TAG_MARKER):
            body = body[len(TAG_MARKER):]
        if not body or any(ch not in TAG_ALPHABET for ch in body):
            raise InvalidIdentifierError(
                "tag_invalid_characters",
                "Tag contains characters outside the allowed alphabet",
                details={"allowed": "".join(sorted(TAG_ALPHABET))},
            )

"""Content-addressed identifiers for composite-keyed entities.

The identifier of e.g. a player season is ``identity_of([player_id, season_id])``.
Part order is part of the key: always ``player|season``, never ``season|player``.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Iterable

from ..domain.errors import InvalidKey

SEPARATOR = "|"


def identity_of(parts: Iterable[str]) -> str:
    """Join *parts* with ``|``, hash with SHA-256 and return the Base64 digest (44 chars)."""
    items = list(parts)
    if not items:
        raise InvalidKey("identity requires at least one key part")
    for i, part in enumerate(items):
        if part is None or not str(part).strip():
            raise InvalidKey(f"identity key part {i} is empty: {items!r}")
    raw = SEPARATOR.join(str(p) for p in items).encode("utf-8")
    return base64.b64encode(hashlib.sha256(raw).digest()).decode("ascii")


__all__ = ["identity_of", "SEPARATOR"]

"""Deterministic cache keys for provider queries."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping


def canonical_fields(fields: Mapping[str, str | None]) -> dict[str, str]:
    """Normalize missing optional fields to empty strings, keeping field order."""
    return {name: (value or "") for name, value in fields.items()}


def generate_cache_key(fields: Mapping[str, str | None]) -> str:
    """SHA-256 over the canonical JSON encoding of the query fields.

    Field order is part of the key: callers always build their field maps in
    the same order (see NewsQuery / CompetitorQuery).
    """
    payload = json.dumps(canonical_fields(fields), ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()

"""Canonical hashing so identical inputs give identical digests.

Standings sections are hashed over canonical JSON (sorted keys, compact
separators) so a recompute of the same snapshot can be checked byte for
byte against an archived manifest.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(data: Any) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def compute_hash(data: Any) -> str:
    """SHA256 hex digest of ``data`` in canonical JSON form."""
    return hashlib.sha256(canonical_json(data).encode()).hexdigest()


def compute_section_hash(data: Any) -> str:
    """Hash a manifest section.

    Works with Pydantic models, dicts, and lists.
    """
    if hasattr(data, "model_dump"):
        as_dict = data.model_dump(mode="json")
    elif isinstance(data, list):
        as_dict = {"items": [
            item.model_dump(mode="json") if hasattr(item, "model_dump") else item
            for item in data
        ]}
    elif isinstance(data, dict):
        as_dict = data
    else:
        as_dict = {"value": data}

    return compute_hash(as_dict)


__all__ = ["canonical_json", "compute_hash", "compute_section_hash"]

"""Rater trust resolution.

The trust lookup is owned by a collaborator and handed in per call, either
as a mapping ``rater_id -> bool`` or as a callable. Unknown raters are
standard; a lookup that fails never fails the aggregation.
"""

from __future__ import annotations

from typing import Callable, Mapping, Union

import bittensor as bt

TrustLookup = Union[Mapping[str, bool], Callable[[str], bool], None]


def resolve_trust(lookup: TrustLookup, rater_id: str) -> bool:
    """True if ``rater_id`` is a trusted rater, False otherwise."""
    if lookup is None:
        return False

    try:
        if isinstance(lookup, Mapping):
            value = lookup.get(rater_id, False)
        else:
            value = lookup(rater_id)
    except Exception as e:
        bt.logging.warning({
            "trust_lookup": {"rater_id": rater_id, "error": str(e), "fallback": "standard"}
        })
        return False

    if value is None:
        return False
    if not isinstance(value, bool):
        bt.logging.warning({
            "trust_lookup": {
                "rater_id": rater_id,
                "unexpected_type": type(value).__name__,
                "fallback": "standard",
            }
        })
        return False
    return value


__all__ = ["TrustLookup", "resolve_trust"]

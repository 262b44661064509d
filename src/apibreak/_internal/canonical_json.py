"""Canonical JSON serialization for reports.

One function used for every JSON document apibreak writes, so the same
diagnosis always renders to the same bytes.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Canonical JSON serialization.

    Rules:
    - Sorted keys
    - Stable separators (",", ":")
    - Non-ASCII kept as-is (the `≠` and `⚠` markers survive)
    - List ordering is the caller's: sort before calling
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )

"""Error code constants for malformed API trees.

These constants prevent stringly-typed error codes and ensure
client code uses the correct codes when inspecting failures.
"""

from enum import Enum


class TreeErrorCode(str, Enum):
    """Reasons an API tree is rejected by the translator."""

    INVALID_STRUCTURE = "INVALID_STRUCTURE"  # Schema violation in the raw JSON
    INVALID_ROOT = "INVALID_ROOT"  # Root id missing, not 0, or not a module
    UNKNOWN_ITEM_KIND = "UNKNOWN_ITEM_KIND"
    DANGLING_REFERENCE = "DANGLING_REFERENCE"  # Reachable id absent from the index
    UNEXPECTED_ITEM = "UNEXPECTED_ITEM"  # Known kind in a position it cannot occupy
    DUPLICATE_ITEM_ID = "DUPLICATE_ITEM_ID"  # Two reachable items flatten to one identity

    # Loader errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    INVALID_JSON = "INVALID_JSON"

"""Reference renderers for a diagnosis: plain text and canonical JSON."""

from typing import List

from apibreak.api import DiffResult
from apibreak._internal.canonical_json import canonical_dumps
from apibreak.kernel.diagnosis import Diagnosis
from apibreak.kernel.version import Version

CHANGE_PREFIX = {
    "removed": "-",
    "modified": "≠",
    "deprecated": "⚠",
    "added": "+",
}


def render_lines(diagnosis: Diagnosis) -> List[str]:
    """One `<prefix> <item>` line per change, in diagnosis order."""
    return [f"{CHANGE_PREFIX[change.change]} {change.item_id}" for change in diagnosis.changes]


def render_text(diagnosis: Diagnosis, next_version: Version) -> str:
    """
    Human-readable report.

    Example:
        - User::from_str (method)
        ≠ User (struct)
        + User: impl Debug
        + User::from_path (method)

        Next version is: 3.0.0
    """
    lines = render_lines(diagnosis)
    if lines:
        lines.append("")
    lines.append(f"Next version is: {next_version}")
    return "\n".join(lines) + "\n"


def render_json(result: DiffResult) -> str:
    """Canonical JSON of a DiffResult (byte-stable for equal diagnoses)."""
    return canonical_dumps(result.model_dump(mode="json")) + "\n"

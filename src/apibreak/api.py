"""Public API for the apibreak package.

High-level functions that accept API tree paths or dicts and return
complete, structured results. Callers should use these instead of
wiring the kernel modules together themselves.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from apibreak._internal.io.tree_loader import TreeLoadError, load_tree_data
from apibreak.kernel.compare import compare
from apibreak.kernel.diagnosis import Change, Diagnosis, Modified
from apibreak.kernel.items import PublicApi
from apibreak.kernel.translate import translate
from apibreak.kernel.tree import ApiTree, MalformedTreeError, parse_api_tree
from apibreak.kernel.version import Version, bump_for, next_version

logger = logging.getLogger(__name__)

TreeInput = Union[str, os.PathLike, Path, Dict]


def _normalize_path(path: Union[str, os.PathLike, Path]) -> Path:
    """Normalize path input to Path object."""
    return Path(path) if not isinstance(path, Path) else path


def _load_tree(tree: TreeInput) -> ApiTree:
    if isinstance(tree, dict):
        return parse_api_tree(tree)
    return parse_api_tree(load_tree_data(_normalize_path(tree)))


class ChangeRecord(BaseModel):
    """JSON-friendly view of one classified change."""
    change: str  # "removed", "modified", "deprecated" or "added"
    item: str  # Display form, e.g. "User::from_str (method)"
    path: List[str]
    kind: str
    breaking: bool
    signature: Optional[str] = None  # New signature (old one for removals)
    old_signature: Optional[str] = None  # Modified only
    changed_fields: List[str] = Field(default_factory=list)  # Modified only


class DiffResult(BaseModel):
    """Stable result model for API diff analysis."""
    crate: str
    current_version: str
    next_version: str
    bump: str  # "major", "minor" or "patch"
    breaking: bool
    change_summary: Dict[str, int]  # Counts by change kind, plus "breaking"
    changes: List[ChangeRecord]  # In diagnosis order


class CheckIssue(BaseModel):
    """A single reason an API tree was rejected."""
    code: str  # TreeErrorCode value
    message: str
    item_id: Optional[int] = None  # Raw tree id, when the error points at one


class CheckResult(BaseModel):
    """Result of checking that an API tree translates."""
    ok: bool
    crate: Optional[str] = None
    crate_version: Optional[str] = None
    item_count: int = 0  # Public items in the translated snapshot
    errors: List[CheckIssue] = Field(default_factory=list)


def change_record(change: Change) -> ChangeRecord:
    """Convert a kernel Change into its serialisable record."""
    if isinstance(change, Modified):
        return ChangeRecord(
            change=change.change,
            item=str(change.item_id),
            path=list(change.item_id.path),
            kind=change.item_id.kind.value,
            breaking=change.breaking,
            signature=change.new.signature(),
            old_signature=change.old.signature(),
            changed_fields=list(change.changed_fields),
        )
    return ChangeRecord(
        change=change.change,
        item=str(change.item_id),
        path=list(change.item_id.path),
        kind=change.item_id.kind.value,
        breaking=change.breaking,
        signature=change.item.signature(),
    )


def _resolve_current_version(
    current_version: Optional[Union[str, Version]], old: ApiTree
) -> Version:
    if isinstance(current_version, Version):
        return current_version
    if current_version is None:
        if old.crate_version is None:
            raise ValueError(
                "No current version given and the old API tree does not record crate_version"
            )
        current_version = old.crate_version
    return Version.parse(current_version)


def _diff_internal(
    old_tree: TreeInput,
    new_tree: TreeInput,
    current_version: Optional[Union[str, Version]] = None,
) -> Tuple[PublicApi, PublicApi, Diagnosis, Version, DiffResult]:
    """Full pipeline; returns the intermediate artifacts for report rendering."""
    old = _load_tree(old_tree)
    new = _load_tree(new_tree)
    current = _resolve_current_version(current_version, old)

    # Independent translations; the comparator is the join point
    old_api = translate(old)
    new_api = translate(new)
    diagnosis = compare(old_api, new_api)
    proposed = next_version(diagnosis, current)
    logger.info(
        "%s: %d changes, %s -> %s",
        new.crate_name or old.crate_name, len(diagnosis), current, proposed,
    )

    result = DiffResult(
        crate=new.crate_name or old.crate_name,
        current_version=str(current),
        next_version=str(proposed),
        bump=bump_for(diagnosis),
        breaking=diagnosis.is_breaking(),
        change_summary=diagnosis.summary(),
        changes=[change_record(change) for change in diagnosis.changes],
    )
    return old_api, new_api, diagnosis, proposed, result


def diagnose(old_tree: TreeInput, new_tree: TreeInput) -> Diagnosis:
    """
    Compare two API trees and return the kernel Diagnosis.

    Raises:
        TreeLoadError: if a path cannot be read or is not JSON
        MalformedTreeError: if a tree is structurally inconsistent
    """
    return compare(translate(_load_tree(old_tree)), translate(_load_tree(new_tree)))


def diff(
    old_tree: TreeInput,
    new_tree: TreeInput,
    current_version: Optional[Union[str, Version]] = None,
) -> DiffResult:
    """
    High-level API diff between two trees, with the proposed next version.

    Args:
        old_tree: Previous API tree (Path to JSON or dict)
        new_tree: Current API tree (Path to JSON or dict)
        current_version: Version of the old release. Defaults to the old
            tree's crate_version.

    Raises:
        TreeLoadError: if a path cannot be read or is not JSON
        MalformedTreeError: if a tree is structurally inconsistent
        ValueError: if the current version is missing or not semver
    """
    *_, result = _diff_internal(old_tree, new_tree, current_version)
    return result


def check(tree: TreeInput) -> CheckResult:
    """
    Check that a single API tree loads and translates.

    Never raises for bad input: load and structure errors are reported in
    the result instead.
    """
    try:
        parsed = _load_tree(tree)
        api = translate(parsed)
    except TreeLoadError as e:
        return CheckResult(ok=False, errors=[CheckIssue(code=e.code.value, message=str(e))])
    except MalformedTreeError as e:
        return CheckResult(
            ok=False,
            errors=[CheckIssue(code=e.code.value, message=e.message, item_id=e.item_id)],
        )

    return CheckResult(
        ok=True,
        crate=parsed.crate_name,
        crate_version=parsed.crate_version,
        item_count=len(api),
    )


__all__ = [
    "ChangeRecord",
    "CheckIssue",
    "CheckResult",
    "DiffResult",
    "TreeInput",
    "change_record",
    "check",
    "diagnose",
    "diff",
]

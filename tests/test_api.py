"""Tests for the high-level diff/check API."""

import json
from pathlib import Path

import pytest

from apibreak.api import CheckResult, DiffResult, check, diagnose, diff
from apibreak.codes import TreeErrorCode
from apibreak._internal.io.tree_loader import TreeLoadError
from apibreak.kernel.tree import MalformedTreeError

HERE = Path(__file__).resolve().parent
SCENARIO = HERE.parent / "fixtures" / "reference_scenario"
MALFORMED = HERE.parent / "fixtures" / "malformed"


def test_diff_reference_scenario_from_paths():
    result = diff(SCENARIO / "old.json", SCENARIO / "new.json", current_version="2.4.3")

    assert isinstance(result, DiffResult)
    assert result.crate == "users"
    assert result.current_version == "2.4.3"
    assert result.next_version == "3.0.0"
    assert result.bump == "major"
    assert result.breaking is True
    assert [(c.change, c.item) for c in result.changes] == [
        ("removed", "User::from_str (method)"),
        ("modified", "User (struct)"),
        ("added", "User: impl Debug"),
        ("added", "User::from_path (method)"),
    ]
    assert result.change_summary == {
        "removed": 1,
        "modified": 1,
        "deprecated": 0,
        "added": 2,
        "breaking": 2,
    }


def test_diff_accepts_string_paths_and_dicts():
    old = json.loads((SCENARIO / "old.json").read_text(encoding="utf-8"))
    from_dict = diff(old, str(SCENARIO / "new.json"), current_version="2.4.3")
    from_paths = diff(SCENARIO / "old.json", SCENARIO / "new.json", current_version="2.4.3")
    assert from_dict == from_paths


def test_current_version_defaults_to_old_crate_version():
    result = diff(SCENARIO / "old.json", SCENARIO / "new.json")
    assert result.current_version == "2.4.3"
    assert result.next_version == "3.0.0"


def test_missing_current_version_is_an_error(tree):
    tree.crate_version = None
    tree.function("f")
    data = tree.build()
    with pytest.raises(ValueError, match="current version"):
        diff(data, data)


def test_invalid_current_version(tree):
    tree.function("f")
    data = tree.build()
    with pytest.raises(ValueError, match="Invalid semantic version"):
        diff(data, data, current_version="one")


def test_change_records_carry_signatures():
    result = diff(SCENARIO / "old.json", SCENARIO / "new.json")
    removed = result.changes[0]
    assert removed.signature == "fn from_str(s: &str) -> User"
    assert removed.path == ["User", "from_str"]
    assert removed.kind == "method"
    assert removed.breaking

    modified = result.changes[1]
    assert modified.old_signature == "struct User"
    assert modified.changed_fields == ["fields"]


def test_unchanged_tree_is_a_patch(tree):
    tree.function("f")
    data = tree.build()
    result = diff(data, data)
    assert result.changes == []
    assert result.next_version == "1.0.1"
    assert result.bump == "patch"
    assert not result.breaking


def test_diff_missing_file(tmp_path):
    with pytest.raises(TreeLoadError) as exc_info:
        diff(tmp_path / "absent.json", SCENARIO / "new.json", current_version="1.0.0")
    assert exc_info.value.code is TreeErrorCode.FILE_NOT_FOUND


def test_diff_malformed_tree():
    with pytest.raises(MalformedTreeError) as exc_info:
        diff(MALFORMED / "dangling_reference.json", SCENARIO / "new.json", current_version="1.0.0")
    assert exc_info.value.code is TreeErrorCode.DANGLING_REFERENCE


def test_diagnose_returns_kernel_diagnosis():
    diagnosis = diagnose(SCENARIO / "old.json", SCENARIO / "new.json")
    assert diagnosis.is_breaking()
    assert len(diagnosis) == 4


def test_check_valid_tree():
    result = check(SCENARIO / "new.json")
    assert isinstance(result, CheckResult)
    assert result.ok
    assert result.crate == "users"
    assert result.crate_version == "2.5.0-dev"
    # User, X, from_path, impl Debug, fmt
    assert result.item_count == 5
    assert result.errors == []


@pytest.mark.parametrize(
    "name,code",
    [
        ("dangling_reference.json", TreeErrorCode.DANGLING_REFERENCE),
        ("unknown_kind.json", TreeErrorCode.UNKNOWN_ITEM_KIND),
        ("not_json.json", TreeErrorCode.INVALID_JSON),
        ("absent.json", TreeErrorCode.FILE_NOT_FOUND),
    ],
)
def test_check_reports_errors_instead_of_raising(name, code):
    result = check(MALFORMED / name)
    assert not result.ok
    assert [issue.code for issue in result.errors] == [code.value]


def test_check_reports_offending_item_id():
    result = check(MALFORMED / "dangling_reference.json")
    assert result.errors[0].item_id == 9

"""Pytest configuration for tests.

No sys.path hacks - tests import from the installed apibreak package.
Raw API trees are built with the `tree` fixture instead of hand-writing
index dicts in every test.
"""

import copy
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


class TreeBuilder:
    """Incrementally builds a raw API tree dict rooted at module id 0."""

    def __init__(self, crate: str = "demo", crate_version: Optional[str] = "1.0.0"):
        self.crate_version = crate_version
        self.index: Dict[int, Dict[str, Any]] = {0: {"kind": "module", "name": crate, "items": []}}
        self._next_id = 1

    def add(self, raw: Dict[str, Any], parent: Optional[int] = 0) -> int:
        """Add a raw item; attach it to module `parent` unless parent is None."""
        item_id = self._next_id
        self._next_id += 1
        self.index[item_id] = raw
        if parent is not None:
            self.index[parent]["items"].append(item_id)
        return item_id

    def module(self, name: str, parent: Optional[int] = 0) -> int:
        return self.add({"kind": "module", "name": name, "items": []}, parent)

    def function(
        self,
        name: str,
        params: Iterable[Tuple[str, str]] = (),
        output: Optional[str] = None,
        parent: Optional[int] = 0,
        **extra: Any,
    ) -> int:
        raw = {
            "kind": "function",
            "name": name,
            "params": [{"name": n, "type": t} for n, t in params],
            "output": output,
        }
        raw.update(extra)
        return self.add(raw, parent)

    def method(
        self,
        name: str,
        params: Iterable[Tuple[str, str]] = (),
        output: Optional[str] = None,
        **extra: Any,
    ) -> int:
        raw = {
            "kind": "method",
            "name": name,
            "params": [{"name": n, "type": t} for n, t in params],
            "output": output,
        }
        raw.update(extra)
        return self.add(raw, parent=None)

    def struct(
        self,
        name: str,
        fields: Iterable[Tuple[str, str]] = (),
        parent: Optional[int] = 0,
        **extra: Any,
    ) -> int:
        field_ids = [
            self.add({"kind": "struct_field", "name": n, "type": t}, parent=None)
            for n, t in fields
        ]
        raw = {"kind": "struct", "name": name, "fields": field_ids, "impls": []}
        raw.update(extra)
        return self.add(raw, parent)

    def field(self, type_id: int, name: str, type_: str, **extra: Any) -> int:
        raw = {"kind": "struct_field", "name": name, "type": type_}
        raw.update(extra)
        field_id = self.add(raw, parent=None)
        self.index[type_id]["fields"].append(field_id)
        return field_id

    def enum(self, name: str, variants: Iterable[str] = (), parent: Optional[int] = 0, **extra: Any) -> int:
        variant_ids = [self.add({"kind": "variant", "name": v}, parent=None) for v in variants]
        raw = {"kind": "enum", "name": name, "variants": variant_ids, "impls": []}
        raw.update(extra)
        return self.add(raw, parent)

    def impl(
        self,
        type_id: int,
        members: Iterable[int] = (),
        trait: Optional[str] = None,
        for_: Optional[str] = None,
        **extra: Any,
    ) -> int:
        raw = {
            "kind": "impl",
            "for": for_ or self.index[type_id]["name"],
            "trait": trait,
            "items": list(members),
        }
        raw.update(extra)
        impl_id = self.add(raw, parent=None)
        self.index[type_id]["impls"].append(impl_id)
        return impl_id

    def trait(self, name: str, members: Iterable[int] = (), parent: Optional[int] = 0, **extra: Any) -> int:
        raw = {"kind": "trait", "name": name, "items": list(members)}
        raw.update(extra)
        return self.add(raw, parent)

    def detach(self, item_id: int, parent: int = 0) -> None:
        """Remove `item_id` from the child list of module `parent`."""
        items: List[int] = self.index[parent]["items"]
        items.remove(item_id)

    def build(self) -> Dict[str, Any]:
        """Snapshot as a JSON-shaped dict; later edits do not leak into it."""
        return {
            "format_version": 1,
            "crate_version": self.crate_version,
            "root": 0,
            "index": {str(k): copy.deepcopy(v) for k, v in self.index.items()},
        }


@pytest.fixture
def tree():
    """Fresh TreeBuilder for crate `demo` at version 1.0.0."""
    return TreeBuilder()


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES

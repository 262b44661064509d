"""Classified changes between two snapshots and the ordered Diagnosis holding them."""

from __future__ import annotations

from typing import Annotated, Dict, Iterable, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from apibreak.kernel.items import Item, ItemId


class Added(BaseModel):
    """Item present only in the new snapshot. Never breaking."""
    change: Literal["added"] = "added"
    item_id: ItemId
    item: Item

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def breaking(self) -> bool:
        return False


class Removed(BaseModel):
    """Item present only in the old snapshot. Always breaking."""
    change: Literal["removed"] = "removed"
    item_id: ItemId
    item: Item

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def breaking(self) -> bool:
        return True


class Modified(BaseModel):
    """Item present in both snapshots with a different structure."""
    change: Literal["modified"] = "modified"
    item_id: ItemId
    old: Item
    new: Item
    breaking: bool
    changed_fields: Tuple[str, ...] = ()  # Sorted attribute names that differ

    model_config = ConfigDict(extra="forbid", frozen=True)


class Deprecated(BaseModel):
    """Item that became deprecated. Notable, never breaking."""
    change: Literal["deprecated"] = "deprecated"
    item_id: ItemId
    item: Item

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def breaking(self) -> bool:
        return False


Change = Annotated[
    Union[Added, Removed, Modified, Deprecated],
    Field(discriminator="change"),
]

# Removals first, additions last; within a class, by ItemId
CHANGE_RANK: Dict[str, int] = {
    "removed": 0,
    "modified": 1,
    "deprecated": 2,
    "added": 3,
}


def change_sort_key(change: Change) -> tuple:
    return (CHANGE_RANK[change.change], change.item_id.sort_key())


class Diagnosis(BaseModel):
    """Ordered, immutable list of classified changes."""
    changes: Tuple[Change, ...] = ()

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_changes(cls, changes: Iterable[Change]) -> "Diagnosis":
        """Build a Diagnosis in canonical order, whatever order changes were found in."""
        return cls(changes=tuple(sorted(changes, key=change_sort_key)))

    def is_breaking(self) -> bool:
        return any(change.breaking for change in self.changes)

    def is_empty(self) -> bool:
        return not self.changes

    def contains_additions(self) -> bool:
        return any(change.change == "added" for change in self.changes)

    def summary(self) -> Dict[str, int]:
        """Counts by change kind, plus the number of breaking entries."""
        counts = {kind: 0 for kind in CHANGE_RANK}
        for change in self.changes:
            counts[change.change] += 1
        counts["breaking"] = sum(1 for change in self.changes if change.breaking)
        return counts

    def __len__(self) -> int:
        return len(self.changes)

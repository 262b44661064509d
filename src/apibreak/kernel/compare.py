"""Structural comparison between two PublicApi snapshots."""

from __future__ import annotations

import logging
from typing import Callable, Dict, FrozenSet, List, Tuple

from apibreak.kernel.diagnosis import Added, Change, Deprecated, Diagnosis, Modified, Removed
from apibreak.kernel.items import (
    ITEM_TYPES,
    AssocConstItem,
    AssocTypeItem,
    ConstantItem,
    FieldItem,
    FunctionItem,
    Item,
    ItemId,
    MethodItem,
    PublicApi,
    TraitDefItem,
    TraitImplItem,
    TypeItem,
)

logger = logging.getLogger(__name__)

BreakingRule = Callable[[Item, Item, FrozenSet[str]], bool]


def _always_breaking(old: Item, new: Item, changed: FrozenSet[str]) -> bool:
    return True


def _method_breaking(old: MethodItem, new: MethodItem, changed: FrozenSet[str]) -> bool:
    # A required trait method gaining a default body only allows new usages.
    # Parameter renames are breaking on purpose.
    if changed == {"has_body"}:
        return not new.has_body
    return True


def _type_breaking(old: TypeItem, new: TypeItem, changed: FrozenSet[str]) -> bool:
    # Hiding a field in an all-public type breaks struct literals;
    # exposing the last hidden field only allows new usages.
    if changed == {"fields_stripped"}:
        return new.fields_stripped
    return True


def _constant_breaking(old: ConstantItem, new: ConstantItem, changed: FrozenSet[str]) -> bool:
    return bool(changed - {"value"})


def _trait_impl_breaking(old: TraitImplItem, new: TraitImplItem, changed: FrozenSet[str]) -> bool:
    # Overriding a provided method, or dropping the override, is invisible to callers
    return bool(changed - {"methods"})


BREAKING_RULES: Dict[type, BreakingRule] = {
    FunctionItem: _always_breaking,
    MethodItem: _method_breaking,
    TypeItem: _type_breaking,
    FieldItem: _always_breaking,
    TraitDefItem: _always_breaking,
    TraitImplItem: _trait_impl_breaking,
    AssocTypeItem: _always_breaking,
    AssocConstItem: _always_breaking,
    ConstantItem: _constant_breaking,
}

_missing_rules = [t.__name__ for t in ITEM_TYPES if t not in BREAKING_RULES]
if _missing_rules:
    raise TypeError(f"Item kinds without a breaking rule: {', '.join(_missing_rules)}")


def changed_fields(old: Item, new: Item) -> Tuple[str, ...]:
    """Sorted names of the structural attributes that differ between two items."""
    a = old.structure()
    b = new.structure()
    return tuple(sorted(key for key in a.keys() | b.keys() if a.get(key) != b.get(key)))


def is_breaking_modification(old: Item, new: Item) -> bool:
    """Apply the kind-specific breaking rule to two versions of one item."""
    if type(old) is not type(new):
        return True
    changed = frozenset(changed_fields(old, new))
    if not changed:
        return False
    return BREAKING_RULES[type(old)](old, new, changed)


def compare(old: PublicApi, new: PublicApi) -> Diagnosis:
    """
    Compute the classified delta between two snapshots.

    Member items (fields, trait items, trait impl items) never produce a
    standalone Added or Removed entry: their owner's member list changes, so
    the owner carries the change. This holds for additions and removals alike,
    and for methods implemented inside a trait impl, which fold into the
    impl's `methods` list. A member present on both sides reports its own
    Modified entry.

    Returns a Diagnosis in canonical order, independent of input iteration order.
    """
    changes: List[Change] = []
    old_ids = old.ids()
    new_ids = new.ids()

    for item_id in old_ids - new_ids:
        item = old.items[item_id]
        if item.is_member:
            continue
        changes.append(Removed(item_id=item_id, item=item))

    for item_id in new_ids - old_ids:
        item = new.items[item_id]
        if item.is_member:
            continue
        changes.append(Added(item_id=item_id, item=item))

    for item_id in old_ids & new_ids:
        changes.extend(_compare_item(item_id, old.items[item_id], new.items[item_id]))

    diagnosis = Diagnosis.from_changes(changes)
    logger.debug(
        "compared %d old and %d new items: %s",
        len(old), len(new), diagnosis.summary(),
    )
    return diagnosis


def _compare_item(item_id: ItemId, old_item: Item, new_item: Item) -> List[Change]:
    if old_item == new_item:
        return []

    changes: List[Change] = []
    if new_item.deprecated and not old_item.deprecated:
        changes.append(Deprecated(item_id=item_id, item=new_item))

    if type(old_item) is not type(new_item):
        # Same identity, different kind of item
        changes.append(Modified(
            item_id=item_id,
            old=old_item,
            new=new_item,
            breaking=True,
            changed_fields=("kind",),
        ))
        return changes

    changed = changed_fields(old_item, new_item)
    if changed:
        changes.append(Modified(
            item_id=item_id,
            old=old_item,
            new=new_item,
            breaking=BREAKING_RULES[type(old_item)](old_item, new_item, frozenset(changed)),
            changed_fields=changed,
        ))
    return changes

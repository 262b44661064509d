"""Flatten a raw API tree into a PublicApi.

The raw tree references items by id rather than by containment. The
translator performs a single reachability walk from the root module and
writes every public item it meets into one flat ItemId -> Item mapping.

Rules:
- Only items reachable from the root module are translated.
- Each raw id is translated at most once; the first path that reaches it wins.
- Modules are traversal scaffolding and are never emitted.
- Impl blocks are reached through the type they belong to, never through a module.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from apibreak.codes import TreeErrorCode
from apibreak.kernel.items import (
    AssocConstItem,
    AssocTypeItem,
    ConstantItem,
    FieldItem,
    FnHeader,
    FunctionItem,
    IdKind,
    Item,
    ItemId,
    MethodItem,
    Param,
    PublicApi,
    TraitDefItem,
    TraitImplItem,
    TypeItem,
)
from apibreak.kernel.tree import (
    ApiTree,
    MalformedTreeError,
    RawAssocConst,
    RawAssocType,
    RawConstant,
    RawEnum,
    RawFunction,
    RawImpl,
    RawImport,
    RawItem,
    RawMethod,
    RawModule,
    RawOpaque,
    RawStatic,
    RawStruct,
    RawStructField,
    RawTrait,
    RawTypedef,
    RawUnion,
    RawVariant,
    parse_api_tree,
    validate_api_tree,
)

logger = logging.getLogger(__name__)

Path = Tuple[str, ...]

_TYPE_ID_KINDS = {
    "struct": IdKind.STRUCT,
    "union": IdKind.UNION,
    "enum": IdKind.ENUM,
}


def translate(tree: ApiTree) -> PublicApi:
    """Translate a validated API tree into its flat public surface."""
    validate_api_tree(tree)
    return _Translator(tree).run()


def build_public_api(data: Dict[str, Any]) -> PublicApi:
    """Parse a raw tree dict and translate it (raises MalformedTreeError)."""
    return translate(parse_api_tree(data))


def _params(raw: Union[RawFunction, RawMethod]) -> Tuple[Param, ...]:
    return tuple(Param(name=p.name, type=p.type) for p in raw.params)


def _header(raw: Union[RawFunction, RawMethod]) -> FnHeader:
    return FnHeader(**raw.header.model_dump())


class _Translator:
    def __init__(self, tree: ApiTree):
        self.tree = tree
        self.items: Dict[ItemId, Item] = {}
        self.visited: Set[int] = set()

    def run(self) -> PublicApi:
        root = self.tree.index[self.tree.root]
        self.visited.add(self.tree.root)
        self._visit_children(root.items, (), referrer=self.tree.root)
        logger.debug(
            "translated %d public items from crate %r (%d of %d raw items reached)",
            len(self.items), root.name, len(self.visited), len(self.tree.index),
        )
        return PublicApi(self.items)

    # -- helpers -----------------------------------------------------------

    def _lookup(self, raw_id: int, referrer: int) -> RawItem:
        raw = self.tree.index.get(raw_id)
        if raw is None:
            raise MalformedTreeError(
                TreeErrorCode.DANGLING_REFERENCE,
                f"item {raw_id} referenced by item {referrer} is missing from the index",
                item_id=raw_id,
            )
        return raw

    def _unexpected(self, raw_id: int, raw: RawItem, where: str) -> MalformedTreeError:
        return MalformedTreeError(
            TreeErrorCode.UNEXPECTED_ITEM,
            f"item {raw_id} of kind {raw.kind!r} cannot appear {where}",
            item_id=raw_id,
        )

    def _emit(self, item_id: ItemId, item: Item) -> None:
        if item_id in self.items:
            raise MalformedTreeError(
                TreeErrorCode.DUPLICATE_ITEM_ID,
                f"two reachable items flatten to the same identity {item_id}",
            )
        self.items[item_id] = item

    # -- modules -----------------------------------------------------------

    def _visit_children(self, child_ids: List[int], path: Path, referrer: int) -> None:
        for child_id in child_ids:
            if child_id in self.visited:
                continue
            raw = self._lookup(child_id, referrer)
            if isinstance(raw, RawImpl):
                # Impls are translated through their type's impl list
                continue
            self.visited.add(child_id)
            self._visit_module_child(child_id, raw, path)

    def _visit_module_child(
        self, raw_id: int, raw: RawItem, path: Path, name: Optional[str] = None
    ) -> None:
        if isinstance(raw, RawModule):
            self._visit_children(raw.items, path + (name or raw.name,), referrer=raw_id)
        elif isinstance(raw, RawFunction):
            item_name = name or raw.name
            self._emit(
                ItemId(path=path + (item_name,), kind=IdKind.FUNCTION),
                FunctionItem(
                    name=item_name,
                    params=_params(raw),
                    output=raw.output,
                    generics=tuple(raw.generics),
                    header=_header(raw),
                    deprecated=raw.deprecated,
                ),
            )
        elif isinstance(raw, RawMethod):
            item_name = name or raw.name
            self._emit(
                ItemId(path=path + (item_name,), kind=IdKind.METHOD),
                self._method(raw, item_name, parent="::".join(path), owner=None),
            )
        elif isinstance(raw, (RawStruct, RawUnion, RawEnum)):
            self._translate_type(raw_id, raw, path, name or raw.name)
        elif isinstance(raw, RawTypedef):
            item_name = name or raw.name
            type_id = ItemId(path=path + (item_name,), kind=IdKind.TYPEDEF)
            self._emit(
                type_id,
                TypeItem(
                    name=item_name,
                    type_kind="typedef",
                    generics=tuple(raw.generics),
                    aliased=raw.type,
                    deprecated=raw.deprecated,
                ),
            )
        elif isinstance(raw, RawTrait):
            self._translate_trait(raw_id, raw, path, name or raw.name)
        elif isinstance(raw, (RawConstant, RawStatic)):
            item_name = name or raw.name
            is_static = isinstance(raw, RawStatic)
            self._emit(
                ItemId(
                    path=path + (item_name,),
                    kind=IdKind.STATIC if is_static else IdKind.CONSTANT,
                ),
                ConstantItem(
                    name=item_name,
                    type=raw.type,
                    value=raw.value,
                    is_static=is_static,
                    mutable=raw.mutable if isinstance(raw, RawStatic) else False,
                    deprecated=raw.deprecated,
                ),
            )
        elif isinstance(raw, RawImport):
            self._translate_import(raw_id, raw, path)
        elif isinstance(raw, RawOpaque):
            logger.debug("skipping %s item %d (%s)", raw.kind, raw_id, raw.name)
        else:
            raise self._unexpected(raw_id, raw, "directly inside a module")

    def _translate_import(self, raw_id: int, raw: RawImport, path: Path) -> None:
        if raw.target is None or raw.target not in self.tree.index:
            logger.debug("skipping re-export of %s: target is outside the crate", raw.source)
            return
        if raw.target in self.visited:
            return
        target = self.tree.index[raw.target]
        if raw.glob:
            if isinstance(target, RawModule):
                self.visited.add(raw.target)
                self._visit_children(target.items, path, referrer=raw.target)
            else:
                logger.debug("skipping glob re-export of non-module %s", raw.source)
            return
        if isinstance(target, RawImpl):
            raise self._unexpected(raw.target, target, f"as the target of re-export {raw_id}")
        self.visited.add(raw.target)
        self._visit_module_child(raw.target, target, path, name=raw.name)

    # -- types -------------------------------------------------------------

    def _field(self, field_id: int, referrer: int) -> RawStructField:
        raw = self._lookup(field_id, referrer)
        if not isinstance(raw, RawStructField):
            raise self._unexpected(field_id, raw, f"in the field list of item {referrer}")
        self.visited.add(field_id)
        return raw

    def _translate_type(
        self, raw_id: int, raw: Union[RawStruct, RawUnion, RawEnum], path: Path, name: str
    ) -> None:
        type_id = ItemId(path=path + (name,), kind=_TYPE_ID_KINDS[raw.kind])
        field_names: List[str] = []
        variant_names: List[str] = []

        if isinstance(raw, RawEnum):
            stripped = raw.variants_stripped
            for variant_id in raw.variants:
                variant = self._lookup(variant_id, raw_id)
                if not isinstance(variant, RawVariant):
                    raise self._unexpected(variant_id, variant, f"in the variant list of enum {raw_id}")
                self.visited.add(variant_id)
                variant_names.append(variant.name)
                stripped = stripped or variant.fields_stripped
                for field_id in variant.fields:
                    field = self._field(field_id, variant_id)
                    field_names.append(f"{variant.name}::{field.name}")
                    self._emit(
                        ItemId(path=type_id.path + (variant.name, field.name), kind=IdKind.STRUCT_FIELD),
                        FieldItem(name=field.name, type=field.type, owner=type_id, deprecated=field.deprecated),
                    )
        else:
            stripped = raw.fields_stripped
            for field_id in raw.fields:
                field = self._field(field_id, raw_id)
                field_names.append(field.name)
                self._emit(
                    type_id.child(field.name, IdKind.STRUCT_FIELD),
                    FieldItem(name=field.name, type=field.type, owner=type_id, deprecated=field.deprecated),
                )

        self._emit(
            type_id,
            TypeItem(
                name=name,
                type_kind=raw.kind,
                struct_kind=raw.struct_kind if isinstance(raw, RawStruct) else None,
                generics=tuple(raw.generics),
                fields=tuple(sorted(field_names)),
                variants=tuple(sorted(variant_names)),
                fields_stripped=stripped,
                deprecated=raw.deprecated,
            ),
        )
        self._translate_impls(raw_id, type_id, raw.impls)

    # -- impls and traits --------------------------------------------------

    def _translate_impls(self, type_raw_id: int, type_id: ItemId, impl_ids: List[int]) -> None:
        for impl_id in impl_ids:
            if impl_id in self.visited:
                continue
            raw = self._lookup(impl_id, type_raw_id)
            if not isinstance(raw, RawImpl):
                raise self._unexpected(impl_id, raw, f"in the impl list of item {type_raw_id}")
            self.visited.add(impl_id)
            if raw.synthetic or raw.blanket:
                logger.debug("skipping %s impl %d for %s", "auto" if raw.synthetic else "blanket", impl_id, type_id)
                continue
            if raw.trait is None:
                self._translate_inherent_impl(impl_id, raw, type_id)
            else:
                self._translate_trait_impl(impl_id, raw, type_id)

    def _impl_path(self, raw: RawImpl, type_id: ItemId) -> Path:
        if not raw.generics and "<" in raw.for_:
            # `impl Foo<u8>` and `impl Foo<u16>` may both define `new` or both implement `Debug`
            return type_id.path + (raw.for_[raw.for_.index("<"):],)
        return type_id.path

    def _translate_inherent_impl(self, impl_id: int, raw: RawImpl, type_id: ItemId) -> None:
        parent_path = self._impl_path(raw, type_id)
        parent = "::".join(type_id.path)
        for member_id in raw.items:
            self._translate_assoc_member(member_id, impl_id, parent_path, parent, owner=None)

    def _translate_trait_impl(self, impl_id: int, raw: RawImpl, type_id: ItemId) -> None:
        bang = "!" if raw.negative else ""
        impl_path = self._impl_path(raw, type_id)
        impl_item_id = ItemId(path=impl_path + (f"[impl {bang}{raw.trait}]",), kind=IdKind.IMPL)
        members: List[str] = []
        methods: List[str] = []
        for member_id in raw.items:
            name, kind = self._translate_assoc_member(
                member_id, impl_id, impl_item_id.path, str(impl_item_id), owner=impl_item_id
            )
            if kind is IdKind.METHOD:
                methods.append(name)
            else:
                members.append(name)
        self._emit(
            impl_item_id,
            TraitImplItem(
                name=raw.trait,
                trait=raw.trait,
                for_type=raw.for_,
                generics=tuple(raw.generics),
                is_unsafe=raw.is_unsafe,
                negative=raw.negative,
                members=tuple(sorted(members)),
                methods=tuple(sorted(methods)),
                deprecated=raw.deprecated,
            ),
        )

    def _translate_trait(self, raw_id: int, raw: RawTrait, path: Path, name: str) -> None:
        trait_id = ItemId(path=path + (name,), kind=IdKind.TRAIT)
        members: List[str] = []
        for member_id in raw.items:
            member_name, _ = self._translate_assoc_member(
                member_id, raw_id, trait_id.path, "::".join(trait_id.path), owner=trait_id
            )
            members.append(member_name)
        self._emit(
            trait_id,
            TraitDefItem(
                name=name,
                generics=tuple(raw.generics),
                bounds=tuple(raw.bounds),
                is_unsafe=raw.is_unsafe,
                is_auto=raw.is_auto,
                members=tuple(sorted(members)),
                deprecated=raw.deprecated,
            ),
        )

    def _translate_assoc_member(
        self,
        member_id: int,
        referrer: int,
        parent_path: Path,
        parent: str,
        owner: Optional[ItemId],
    ) -> Tuple[str, IdKind]:
        """Translate one item of an impl block or trait; returns its name and id kind."""
        raw = self._lookup(member_id, referrer)
        self.visited.add(member_id)
        if isinstance(raw, (RawFunction, RawMethod)):
            kind = IdKind.METHOD
            item: Item = self._method(raw, raw.name, parent=parent, owner=owner)
        elif isinstance(raw, RawAssocType):
            kind = IdKind.ASSOC_TYPE
            item = AssocTypeItem(
                name=raw.name,
                generics=tuple(raw.generics),
                bounds=tuple(raw.bounds),
                default=raw.default,
                owner=owner,
                deprecated=raw.deprecated,
            )
        elif isinstance(raw, RawAssocConst):
            kind = IdKind.ASSOC_CONST
            item = AssocConstItem(
                name=raw.name,
                type=raw.type,
                default=raw.default,
                owner=owner,
                deprecated=raw.deprecated,
            )
        else:
            raise self._unexpected(member_id, raw, f"inside impl or trait {referrer}")
        self._emit(ItemId(path=parent_path + (raw.name,), kind=kind), item)
        return raw.name, kind

    def _method(
        self,
        raw: Union[RawFunction, RawMethod],
        name: str,
        parent: str,
        owner: Optional[ItemId],
    ) -> MethodItem:
        return MethodItem(
            name=name,
            parent=parent,
            params=_params(raw),
            output=raw.output,
            generics=tuple(raw.generics),
            header=_header(raw),
            has_body=raw.has_body,
            owner=owner,
            deprecated=raw.deprecated,
        )

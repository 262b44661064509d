"""Item model: identities and kind-tagged descriptions of public API items."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Dict, Iterator, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class IdKind(str, Enum):
    """Discriminator separating same-named items of different kinds."""

    STRUCT = "struct"
    UNION = "union"
    ENUM = "enum"
    TYPEDEF = "typedef"
    STRUCT_FIELD = "struct field"
    FUNCTION = "function"
    METHOD = "method"
    TRAIT = "trait"
    IMPL = "impl"
    ASSOC_TYPE = "associated type"
    ASSOC_CONST = "associated constant"
    CONSTANT = "constant"
    STATIC = "static"


class ItemId(BaseModel):
    """Stable identity of a public item: path segments (crate name excluded) plus kind."""
    path: Tuple[str, ...]
    kind: IdKind

    model_config = ConfigDict(extra="forbid", frozen=True)

    def child(self, segment: str, kind: IdKind) -> "ItemId":
        return ItemId(path=self.path + (segment,), kind=kind)

    def sort_key(self) -> Tuple[Tuple[str, ...], str]:
        return (self.path, self.kind.value)

    @property
    def name(self) -> str:
        return self.path[-1]

    def __str__(self) -> str:
        if self.kind is IdKind.IMPL and self.path[-1].startswith("[impl "):
            # `User::[impl Debug]` reads as `User: impl Debug`
            owner = "::".join(self.path[:-1])
            return f"{owner}: {self.path[-1][1:-1]}"
        return f"{'::'.join(self.path)} ({self.kind.value})"


class Param(BaseModel):
    name: str
    type: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class FnHeader(BaseModel):
    is_const: bool = False
    is_async: bool = False
    is_unsafe: bool = False
    abi: str = "Rust"

    model_config = ConfigDict(extra="forbid", frozen=True)


class _ItemBase(BaseModel):
    name: str
    deprecated: bool = False
    owner: Optional[ItemId] = None  # Set for fields, trait items and trait impl items

    model_config = ConfigDict(extra="forbid", frozen=True)

    def structure(self) -> Dict[str, Any]:
        """Everything that takes part in structural comparison (deprecation is tracked apart)."""
        return self.model_dump(exclude={"deprecated"})

    @property
    def is_member(self) -> bool:
        return self.owner is not None


def _fn_signature(item: Union["FunctionItem", "MethodItem"]) -> str:
    generics = f"<{', '.join(item.generics)}>" if item.generics else ""
    params = ", ".join(f"{p.name}: {p.type}" for p in item.params)
    output = f" -> {item.output}" if item.output else ""
    prefix = ""
    if item.header.is_const:
        prefix += "const "
    if item.header.is_async:
        prefix += "async "
    if item.header.is_unsafe:
        prefix += "unsafe "
    if item.header.abi != "Rust":
        prefix += f'extern "{item.header.abi}" '
    return f"{prefix}fn {item.name}{generics}({params}){output}"


class FunctionItem(_ItemBase):
    kind: Literal["function"] = "function"
    params: Tuple[Param, ...] = ()
    output: Optional[str] = None
    generics: Tuple[str, ...] = ()
    header: FnHeader = Field(default_factory=FnHeader)

    def signature(self) -> str:
        return _fn_signature(self)


class MethodItem(_ItemBase):
    kind: Literal["method"] = "method"
    parent: str  # Display path of the owning type or trait
    params: Tuple[Param, ...] = ()
    output: Optional[str] = None
    generics: Tuple[str, ...] = ()
    header: FnHeader = Field(default_factory=FnHeader)
    has_body: bool = True  # False for required trait methods

    def signature(self) -> str:
        return _fn_signature(self)


class TypeItem(_ItemBase):
    kind: Literal["type"] = "type"
    type_kind: Literal["struct", "union", "enum", "typedef"]
    struct_kind: Optional[Literal["plain", "tuple", "unit"]] = None
    generics: Tuple[str, ...] = ()
    fields: Tuple[str, ...] = ()  # Sorted; enum variant fields as "Variant::field"
    variants: Tuple[str, ...] = ()  # Sorted
    fields_stripped: bool = False  # Type has fields (or variants) hidden from the public API
    aliased: Optional[str] = None  # Typedef target

    def signature(self) -> str:
        generics = f"<{', '.join(self.generics)}>" if self.generics else ""
        if self.type_kind == "typedef":
            return f"type {self.name}{generics} = {self.aliased}"
        return f"{self.type_kind} {self.name}{generics}"


class FieldItem(_ItemBase):
    kind: Literal["field"] = "field"
    type: str

    def signature(self) -> str:
        return f"{self.name}: {self.type}"


class TraitDefItem(_ItemBase):
    kind: Literal["trait_def"] = "trait_def"
    generics: Tuple[str, ...] = ()
    bounds: Tuple[str, ...] = ()
    is_unsafe: bool = False
    is_auto: bool = False
    members: Tuple[str, ...] = ()  # Sorted names of associated items

    def signature(self) -> str:
        generics = f"<{', '.join(self.generics)}>" if self.generics else ""
        bounds = f": {' + '.join(self.bounds)}" if self.bounds else ""
        return f"trait {self.name}{generics}{bounds}"


class TraitImplItem(_ItemBase):
    kind: Literal["trait_impl"] = "trait_impl"
    trait: str
    for_type: str
    generics: Tuple[str, ...] = ()
    is_unsafe: bool = False
    negative: bool = False
    members: Tuple[str, ...] = ()  # Sorted names of non-method associated items
    methods: Tuple[str, ...] = ()  # Sorted names of implemented methods

    def signature(self) -> str:
        generics = f"<{', '.join(self.generics)}>" if self.generics else ""
        bang = "!" if self.negative else ""
        return f"impl{generics} {bang}{self.trait} for {self.for_type}"


class AssocTypeItem(_ItemBase):
    kind: Literal["assoc_type"] = "assoc_type"
    generics: Tuple[str, ...] = ()
    bounds: Tuple[str, ...] = ()
    default: Optional[str] = None

    def signature(self) -> str:
        bounds = f": {' + '.join(self.bounds)}" if self.bounds else ""
        default = f" = {self.default}" if self.default else ""
        return f"type {self.name}{bounds}{default}"


class AssocConstItem(_ItemBase):
    kind: Literal["assoc_const"] = "assoc_const"
    type: str
    default: Optional[str] = None

    def signature(self) -> str:
        default = f" = {self.default}" if self.default else ""
        return f"const {self.name}: {self.type}{default}"


class ConstantItem(_ItemBase):
    kind: Literal["constant"] = "constant"
    type: str
    value: Optional[str] = None
    is_static: bool = False
    mutable: bool = False

    def signature(self) -> str:
        keyword = "static mut" if self.mutable else ("static" if self.is_static else "const")
        value = f" = {self.value}" if self.value else ""
        return f"{keyword} {self.name}: {self.type}{value}"


Item = Annotated[
    FunctionItem
    | MethodItem
    | TypeItem
    | FieldItem
    | TraitDefItem
    | TraitImplItem
    | AssocTypeItem
    | AssocConstItem
    | ConstantItem,
    Field(discriminator="kind"),
]

ITEM_TYPES: Tuple[type, ...] = (
    FunctionItem,
    MethodItem,
    TypeItem,
    FieldItem,
    TraitDefItem,
    TraitImplItem,
    AssocTypeItem,
    AssocConstItem,
    ConstantItem,
)


class PublicApi:
    """Flat, read-only snapshot of a library's public surface.

    Built once by the translator; the comparator only ever reads it.
    """

    def __init__(self, items: Mapping[ItemId, Item]):
        self._items: Mapping[ItemId, Item] = MappingProxyType(dict(items))

    @property
    def items(self) -> Mapping[ItemId, Item]:
        return self._items

    def get(self, item_id: ItemId) -> Optional[Item]:
        return self._items.get(item_id)

    def ids(self) -> set[ItemId]:
        return set(self._items.keys())

    def sorted_ids(self) -> List[ItemId]:
        return sorted(self._items.keys(), key=lambda i: i.sort_key())

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __iter__(self) -> Iterator[ItemId]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicApi):
            return NotImplemented
        return dict(self._items) == dict(other._items)

    def __repr__(self) -> str:
        return f"PublicApi({len(self._items)} items)"

"""Raw API tree schema (doc extractor output) and validation."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from apibreak.codes import TreeErrorCode

ROOT_ID = 0


class MalformedTreeError(ValueError):
    """Raised when an API tree is structurally inconsistent."""

    def __init__(self, code: TreeErrorCode, message: str, item_id: Optional[int] = None):
        self.code = code
        self.message = message
        self.item_id = item_id
        super().__init__(f"{code.value}: {message}")


class RawParam(BaseModel):
    name: str
    type: str

    model_config = ConfigDict(extra="forbid")


class RawHeader(BaseModel):
    is_const: bool = False
    is_async: bool = False
    is_unsafe: bool = False
    abi: str = "Rust"

    model_config = ConfigDict(extra="forbid")


class _RawBase(BaseModel):
    deprecated: bool = False

    # Extractors attach docs, spans and links; only the shape below is read.
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RawModule(_RawBase):
    kind: Literal["module"]
    name: str
    items: List[int] = Field(default_factory=list)


class RawFunction(_RawBase):
    kind: Literal["function"]
    name: str
    params: List[RawParam] = Field(default_factory=list)
    output: Optional[str] = None
    generics: List[str] = Field(default_factory=list)
    header: RawHeader = Field(default_factory=RawHeader)
    has_body: bool = True


class RawMethod(_RawBase):
    kind: Literal["method"]
    name: str
    params: List[RawParam] = Field(default_factory=list)
    output: Optional[str] = None
    generics: List[str] = Field(default_factory=list)
    header: RawHeader = Field(default_factory=RawHeader)
    has_body: bool = True


class RawStruct(_RawBase):
    kind: Literal["struct"]
    name: str
    struct_kind: Literal["plain", "tuple", "unit"] = "plain"
    generics: List[str] = Field(default_factory=list)
    fields: List[int] = Field(default_factory=list)
    fields_stripped: bool = False
    impls: List[int] = Field(default_factory=list)


class RawUnion(_RawBase):
    kind: Literal["union"]
    name: str
    generics: List[str] = Field(default_factory=list)
    fields: List[int] = Field(default_factory=list)
    fields_stripped: bool = False
    impls: List[int] = Field(default_factory=list)


class RawEnum(_RawBase):
    kind: Literal["enum"]
    name: str
    generics: List[str] = Field(default_factory=list)
    variants: List[int] = Field(default_factory=list)
    variants_stripped: bool = False
    impls: List[int] = Field(default_factory=list)


class RawVariant(_RawBase):
    kind: Literal["variant"]
    name: str
    variant_kind: Literal["plain", "tuple", "struct"] = "plain"
    fields: List[int] = Field(default_factory=list)
    fields_stripped: bool = False


class RawStructField(_RawBase):
    kind: Literal["struct_field"]
    name: str
    type: str


class RawTypedef(_RawBase):
    kind: Literal["typedef"]
    name: str
    type: str
    generics: List[str] = Field(default_factory=list)


class RawTrait(_RawBase):
    kind: Literal["trait"]
    name: str
    generics: List[str] = Field(default_factory=list)
    bounds: List[str] = Field(default_factory=list)
    items: List[int] = Field(default_factory=list)
    is_unsafe: bool = False
    is_auto: bool = False


class RawImpl(_RawBase):
    kind: Literal["impl"]
    for_: str = Field(alias="for")
    trait: Optional[str] = None
    generics: List[str] = Field(default_factory=list)
    items: List[int] = Field(default_factory=list)
    is_unsafe: bool = False
    negative: bool = False
    synthetic: bool = False  # Auto trait impls (Send, Sync, ...)
    blanket: bool = False  # `impl<T: Bound> Trait for T`


class RawAssocType(_RawBase):
    kind: Literal["assoc_type"]
    name: str
    generics: List[str] = Field(default_factory=list)
    bounds: List[str] = Field(default_factory=list)
    default: Optional[str] = None


class RawAssocConst(_RawBase):
    kind: Literal["assoc_const"]
    name: str
    type: str
    default: Optional[str] = None


class RawConstant(_RawBase):
    kind: Literal["constant"]
    name: str
    type: str
    value: Optional[str] = None


class RawStatic(_RawBase):
    kind: Literal["static"]
    name: str
    type: str
    mutable: bool = False
    value: Optional[str] = None


class RawImport(_RawBase):
    kind: Literal["import"]
    name: str  # Name the item is re-exported under
    source: str  # Path as written in the `use` declaration
    target: Optional[int] = None  # None when the target cannot be resolved
    glob: bool = False


class RawOpaque(_RawBase):
    """Kinds the extractor reports but that never take part in a diff."""
    kind: Literal["macro", "proc_macro", "extern_crate", "primitive", "keyword"]
    name: Optional[str] = None


RawItem = Annotated[
    Union[
        RawModule,
        RawFunction,
        RawMethod,
        RawStruct,
        RawUnion,
        RawEnum,
        RawVariant,
        RawStructField,
        RawTypedef,
        RawTrait,
        RawImpl,
        RawAssocType,
        RawAssocConst,
        RawConstant,
        RawStatic,
        RawImport,
        RawOpaque,
    ],
    Field(discriminator="kind"),
]

RAW_KINDS = frozenset({
    "module", "function", "method", "struct", "union", "enum", "variant",
    "struct_field", "typedef", "trait", "impl", "assoc_type", "assoc_const",
    "constant", "static", "import",
    "macro", "proc_macro", "extern_crate", "primitive", "keyword",
})


class ApiTree(BaseModel):
    """A root module id plus an index of every item the extractor emitted."""
    format_version: int = 1
    crate_version: Optional[str] = None
    root: int = ROOT_ID
    index: Dict[int, RawItem]

    model_config = ConfigDict(extra="ignore")

    @property
    def crate_name(self) -> str:
        root = self.index.get(self.root)
        return root.name if isinstance(root, RawModule) else ""


def parse_api_tree(data: Any) -> ApiTree:
    """Parse and validate a raw tree dict into ApiTree (raises MalformedTreeError)."""
    if not isinstance(data, dict):
        raise MalformedTreeError(TreeErrorCode.INVALID_STRUCTURE, "API tree must be a JSON object")

    # Unknown kinds get their own code instead of a generic union-tag error
    index = data.get("index")
    if isinstance(index, dict):
        for key, raw in index.items():
            if not isinstance(raw, dict):
                continue
            kind = raw.get("kind")
            item_id = int(key) if str(key).isdigit() else None
            if not isinstance(kind, str):
                raise MalformedTreeError(
                    TreeErrorCode.INVALID_STRUCTURE,
                    f"item {key} has no string kind",
                    item_id=item_id,
                )
            if kind not in RAW_KINDS:
                raise MalformedTreeError(
                    TreeErrorCode.UNKNOWN_ITEM_KIND,
                    f"item {key} declares unsupported kind {kind!r}",
                    item_id=item_id,
                )

    try:
        tree = ApiTree.model_validate(data)
    except ValidationError as e:
        raise MalformedTreeError(TreeErrorCode.INVALID_STRUCTURE, f"invalid API tree: {e}") from e

    validate_api_tree(tree)
    return tree


def validate_api_tree(tree: ApiTree) -> None:
    """Check root consistency rules (raises MalformedTreeError)."""
    if tree.root != ROOT_ID:
        raise MalformedTreeError(
            TreeErrorCode.INVALID_ROOT,
            f"root id must be {ROOT_ID}, got {tree.root}",
        )
    root = tree.index.get(tree.root)
    if root is None:
        raise MalformedTreeError(
            TreeErrorCode.INVALID_ROOT,
            "root module is missing from the index",
            item_id=tree.root,
        )
    if not isinstance(root, RawModule):
        raise MalformedTreeError(
            TreeErrorCode.INVALID_ROOT,
            f"root item must be a module, got {root.kind!r}",
            item_id=tree.root,
        )

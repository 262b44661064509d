"""Tests for item identities, item signatures and the PublicApi mapping."""

import pytest
from pydantic import TypeAdapter, ValidationError

from apibreak.kernel.items import (
    FieldItem,
    FnHeader,
    FunctionItem,
    IdKind,
    Item,
    ItemId,
    MethodItem,
    Param,
    PublicApi,
    TraitImplItem,
    TypeItem,
)


def test_item_id_display():
    """Plain ids show path and kind; trait impls read as `Type: impl Trait`."""
    assert str(ItemId(path=("User", "from_str"), kind=IdKind.METHOD)) == "User::from_str (method)"
    assert str(ItemId(path=("User", "[impl Debug]"), kind=IdKind.IMPL)) == "User: impl Debug"
    assert str(ItemId(path=("model", "User", "[impl !Send]"), kind=IdKind.IMPL)) == "model::User: impl !Send"
    assert str(ItemId(path=("User", "id"), kind=IdKind.STRUCT_FIELD)) == "User::id (struct field)"


def test_item_id_is_hashable_and_kind_separates_same_path():
    """A type and a function sharing a path are distinct identities."""
    as_struct = ItemId(path=("Foo",), kind=IdKind.STRUCT)
    as_function = ItemId(path=("Foo",), kind=IdKind.FUNCTION)
    assert as_struct != as_function
    assert len({as_struct, as_function, ItemId(path=("Foo",), kind=IdKind.STRUCT)}) == 2


def test_item_id_order_is_path_then_kind():
    ids = [
        ItemId(path=("b",), kind=IdKind.FUNCTION),
        ItemId(path=("a", "z"), kind=IdKind.METHOD),
        ItemId(path=("a",), kind=IdKind.STRUCT),
        ItemId(path=("a",), kind=IdKind.FUNCTION),
    ]
    ordered = sorted(ids, key=lambda i: i.sort_key())
    assert [str(i) for i in ordered] == [
        "a (function)",
        "a (struct)",
        "a::z (method)",
        "b (function)",
    ]


def test_item_id_child_and_name():
    parent = ItemId(path=("geo", "Point"), kind=IdKind.STRUCT)
    child = parent.child("x", IdKind.STRUCT_FIELD)
    assert child.path == ("geo", "Point", "x")
    assert child.name == "x"


def test_function_signature_rendering():
    item = FunctionItem(
        name="read",
        params=(Param(name="path", type="&Path"),),
        output="io::Result<Vec<u8>>",
        generics=("P",),
        header=FnHeader(is_async=True, is_unsafe=True),
    )
    assert item.signature() == "async unsafe fn read<P>(path: &Path) -> io::Result<Vec<u8>>"


def test_extern_abi_is_rendered():
    item = FunctionItem(name="cb", header=FnHeader(abi="C"))
    assert item.signature() == 'extern "C" fn cb()'


def test_type_and_impl_signatures():
    alias = TypeItem(name="Result", type_kind="typedef", generics=("T",), aliased="std::result::Result<T, Error>")
    assert alias.signature() == "type Result<T> = std::result::Result<T, Error>"
    impl = TraitImplItem(name="Send", trait="Send", for_type="Handle", negative=True)
    assert impl.signature() == "impl !Send for Handle"


def test_items_are_frozen():
    item = FieldItem(name="id", type="u64")
    with pytest.raises(ValidationError):
        item.type = "u32"


def test_structure_excludes_deprecation():
    """Deprecation is tracked apart from structural comparison."""
    plain = FunctionItem(name="f")
    deprecated = FunctionItem(name="f", deprecated=True)
    assert plain.structure() == deprecated.structure()
    assert plain != deprecated


def test_member_flag_follows_owner():
    owner = ItemId(path=("User",), kind=IdKind.STRUCT)
    assert FieldItem(name="id", type="u64", owner=owner).is_member
    assert not MethodItem(name="new", parent="User").is_member


def test_item_union_dispatches_on_kind():
    adapter = TypeAdapter(Item)
    item = adapter.validate_python({"kind": "field", "name": "id", "type": "u64"})
    assert isinstance(item, FieldItem)
    with pytest.raises(ValidationError):
        adapter.validate_python({"kind": "macro", "name": "m"})


def test_public_api_is_read_only():
    item_id = ItemId(path=("f",), kind=IdKind.FUNCTION)
    source = {item_id: FunctionItem(name="f")}
    api = PublicApi(source)

    # Later edits to the source mapping do not leak in
    source[ItemId(path=("g",), kind=IdKind.FUNCTION)] = FunctionItem(name="g")
    assert len(api) == 1
    assert item_id in api
    assert api.get(item_id) == FunctionItem(name="f")

    with pytest.raises(TypeError):
        api.items[item_id] = FunctionItem(name="h")


def test_public_api_equality_and_sorted_ids():
    a = ItemId(path=("a",), kind=IdKind.FUNCTION)
    b = ItemId(path=("b",), kind=IdKind.FUNCTION)
    first = PublicApi({b: FunctionItem(name="b"), a: FunctionItem(name="a")})
    second = PublicApi({a: FunctionItem(name="a"), b: FunctionItem(name="b")})
    assert first == second
    assert first.sorted_ids() == [a, b]

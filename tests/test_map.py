import pickle

from pytest import raises

from simple_elastic.errors import DecodeError, InvalidArgumentError, KeyNotFoundError
from simple_elastic.map import Map, Table, is_given


def test_add_condition():
    m = Map()
    m.add("size", 10, True)
    m.add("from", 0, False)
    assert m.to_dict() == {"size": 10}
    m.add("sort", [], bool)
    m.add("query", {"match_all": {}}, lambda q: q is not None)
    assert m.keys() == ["size", "query"]
    # a true condition overwrites
    m.add("size", 20, True)
    assert m.get("size") == 20


def test_canonical_interface():
    m = Map.of("a", 1)
    assert m.set("b", 2) is m
    assert m.get("a") == 1
    assert m.try_get("c") is None
    assert m.try_get("c", 3) == 3
    assert m.contains("b")
    m.delete("b")
    assert not m.contains("b")
    assert list(m.items()) == [("a", 1)]
    assert m.values() == [1]


def test_missing_key():
    m = Map(a=1)
    with raises(KeyNotFoundError) as e:
        m.get("b")
    assert e.value.key == "b"
    assert str(e.value) == "Key 'b' not found"
    with raises(KeyError):
        m["b"]
    with raises(KeyNotFoundError):
        m.delete("b")


def test_order():
    m = Map(c=1)
    m.set("a", 2)
    m.set("b", 3)
    m.set("c", 4)
    assert m.keys() == ["c", "a", "b"]
    assert list(m) == [("c", 4), ("a", 2), ("b", 3)]


def test_merge():
    m = Map(a=1, b=2)
    assert m.merge({"b": 3, "c": 4}) is m
    assert m == {"a": 1, "b": 3, "c": 4}
    assert m.merge(Map(d=5)).get("d") == 5
    assert Map([("x", 1), ("y", 2)]) == Map(x=1, y=2)


def test_item_access():
    m = Map()
    m["size"] = 10
    assert m["size"] == 10
    assert "size" in m
    del m["size"]
    assert len(m) == 0
    with raises(InvalidArgumentError):
        m["a", "b"]
    with raises(InvalidArgumentError):
        m[1]  # type: ignore
    with raises(InvalidArgumentError):
        m[("a",)] = 1
    with raises(InvalidArgumentError):
        m[()]
    with raises(InvalidArgumentError):
        m[()] = 1
    with raises(InvalidArgumentError):
        del m[()]


def test_attribute_access():
    m = Map(size=10)
    assert m.size == 10
    m.query = Map(match_all=Map())
    assert m.get("query") == {"match_all": {}}
    del m.size
    assert not m.contains("size")
    with raises(AttributeError):
        m.missing
    with raises(AttributeError):
        del m.missing
    # method names win, these keys are only reachable by index
    m["items"] = 3
    assert callable(m.items)
    assert m["items"] == 3


def test_equality():
    assert Map(a=1) == Map(a=1)
    assert Map(a=1) == {"a": 1}
    assert Map(a=1) != Map(a=2)
    assert Map(a=1) != [("a", 1)]


def test_load():
    m = Map.from_json('{"b": {"c": 1}, "a": [1]}')
    assert m.keys() == ["b", "a"]
    assert m.b == {"c": 1}
    with raises(InvalidArgumentError):
        Map.load([1, 2])  # type: ignore
    with raises(InvalidArgumentError):
        Map.from_json("[1, 2]")


def test_pickle():
    m = Map(a=1, b=Map(c=2))
    assert pickle.loads(pickle.dumps(m)) == m


def test_table_from_json():
    table = Table.from_json('{"one": 1, "one": 2, "two": "test"}')
    assert len(table) == 3
    assert table[0] == ("one", 1)
    assert table[1] == ("one", 2)
    assert table[2] == ("two", "test")
    assert Table.from_json("null") is None
    with raises(DecodeError):
        Table.from_json("[1]")
    with raises(DecodeError):
        Table.from_json('{"one": 1')


def test_table_add():
    table = Table.of("one", 1).add("one", 2).add("two", 3, False)
    assert list(table) == [("one", 1), ("one", 2)]
    assert table == Table([("one", 1), ("one", 2)])


def test_is_given():
    m = Map()
    m.add("size", 0, is_given)
    m.add("from", None, is_given)
    m.add("sort", [], is_given)
    assert m == {"size": 0, "sort": []}

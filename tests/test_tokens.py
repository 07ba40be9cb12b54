from datetime import UTC, datetime

from pytest import raises

from simple_elastic.errors import DecodeError
from simple_elastic.tokens import JsonTokenReader, Token, TokenType, parse_timestamp

T = TokenType


def read_all(reader: JsonTokenReader) -> list[tuple[TokenType, object, int]]:
    result = []
    while reader.read():
        result.append((reader.token, reader.value, reader.depth))
    return result


def test_depth():
    assert read_all(JsonTokenReader.from_json('{"a": {"b": 1}, "c": [true]}')) == [
        (T.START_OBJECT, None, 0),
        (T.PROPERTY_NAME, "a", 1),
        (T.START_OBJECT, None, 1),
        (T.PROPERTY_NAME, "b", 2),
        (T.INTEGER, 1, 2),
        (T.END_OBJECT, None, 1),
        (T.PROPERTY_NAME, "c", 1),
        (T.START_ARRAY, None, 1),
        (T.BOOLEAN, True, 2),
        (T.END_ARRAY, None, 1),
        (T.END_OBJECT, None, 0),
    ]


def test_numbers():
    tokens = [(t, v) for (t, v, _) in read_all(JsonTokenReader.from_json('{"i": 1, "f": 1.5, "e": 1e3, "n": -2}'))]
    assert (T.INTEGER, 1) in tokens
    assert (T.FLOAT, 1.5) in tokens
    assert (T.FLOAT, 1000.0) in tokens
    assert (T.INTEGER, -2) in tokens
    assert all(isinstance(v, float) for (t, v) in tokens if t == T.FLOAT)


def test_same_tokens_from_value():
    text = '{"a": [1, 2.5, null, "x", {"b": false}], "c": {}}'
    value = {"a": [1, 2.5, None, "x", {"b": False}], "c": {}}
    assert read_all(JsonTokenReader.from_json(text)) == read_all(JsonTokenReader.from_value(value))


def test_bytes_input():
    assert read_all(JsonTokenReader.from_json(b'{"a": "\xc3\xa9"}'))[2] == (T.STRING, "é", 1)


def test_dates():
    reader = JsonTokenReader.from_json('{"d": "2018-01-01T10:00:00Z", "s": "2018-01-01", "t": "not a date"}',
                                       parse_dates=True)
    tokens = read_all(reader)
    assert tokens[2] == (T.DATE, datetime(2018, 1, 1, 10, tzinfo=UTC), 1)
    assert tokens[4] == (T.STRING, "2018-01-01", 1)
    assert tokens[6] == (T.STRING, "not a date", 1)
    # without parse_dates, timestamps are just strings
    assert read_all(JsonTokenReader.from_json('{"d": "2018-01-01T10:00:00Z"}'))[2][0] == T.STRING


def test_parse_timestamp():
    assert parse_timestamp("2020-02-03T04:05:06.5+02:00").hour == 4
    assert parse_timestamp("2020-02-03T04:05") == datetime(2020, 2, 3, 4, 5)
    assert parse_timestamp("2020-13-03T04:05") is None
    assert parse_timestamp("yesterday") is None


def test_value_scalars():
    when = datetime(2020, 1, 1)
    tokens = read_all(JsonTokenReader.from_value({"b": b"\x00\x01", "d": when}))
    assert tokens[2] == (T.BYTES, b"\x00\x01", 1)
    assert tokens[4] == (T.DATE, when, 1)
    with raises(DecodeError):
        read_all(JsonTokenReader.from_value({"x": object()}))


def test_read_value():
    reader = JsonTokenReader.from_json('{"a": [1, {"b": 2}], "c": 3}')
    reader.read()
    reader.read()
    assert reader.value == "a"
    reader.read()
    assert reader.read_value() == [1, {"b": 2}]
    assert reader.token == T.END_ARRAY
    reader.read()
    assert (reader.token, reader.value) == (T.PROPERTY_NAME, "c")
    reader.read()
    assert reader.read_value() == 3
    assert reader.token == T.INTEGER


def test_skip_value():
    reader = JsonTokenReader.from_json('{"a": {"x": [1, 2, {"y": 3}]}, "c": 3}')
    reader.read()
    reader.read()
    reader.read()
    reader.skip_value()
    assert (reader.token, reader.depth) == (T.END_OBJECT, 1)
    reader.read()
    assert reader.value == "c"


def test_members_and_elements():
    reader = JsonTokenReader.from_json('{"a": 1, "b": [10, 20, [30]], "c": {"d": 4}}')
    reader.read()
    result = {}
    for name in reader.members():
        if name == "b":
            result[name] = [reader.read_value() for _ in reader.elements()]
        else:
            result[name] = reader.read_value()
    assert result == {"a": 1, "b": [10, 20, [30]], "c": {"d": 4}}
    assert reader.token == T.END_OBJECT
    assert not reader.read()


def test_members_requires_object():
    reader = JsonTokenReader.from_json("[1]")
    reader.read()
    with raises(DecodeError):
        list(reader.members())


def test_malformed():
    for text in ['{"a": }', '{"a": 1', '{"a": [1, 2', "{'a': 1}"]:
        with raises(DecodeError):
            read_all(JsonTokenReader.from_json(text))


def test_truncated_tokens():
    reader = JsonTokenReader([Token(T.START_OBJECT), Token(T.PROPERTY_NAME, "a"), Token(T.START_ARRAY)])
    reader.read()
    with raises(DecodeError):
        reader.read_value()

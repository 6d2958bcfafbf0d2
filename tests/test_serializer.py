import dataclasses

import msgpack
import pytest

from records import Book, Tagged, ids
from ixtable.config import EXT_CODE_RECORD, FORMAT_VERSION
from ixtable.errors import KeyCollision, SerializationError
from ixtable.serializer import Serializer
from ixtable.table import Table


@pytest.fixture
def serializer():
    return Serializer(encode=dataclasses.asdict, decode=lambda state: Book(**state))


def test_round_trip_rebuilds_index(serializer, table, books):
    restored = serializer.unpackb(serializer.packb(table))

    assert list(restored.values()) == books
    assert ids(restored.find(("science", 2))) == [1, 2, 3]
    assert ids(restored.find_many([("author", 10), ("author", 13)])) == [1, 4, 7]


def test_empty_table(serializer):
    restored = serializer.unpackb(serializer.packb(Table()))
    assert len(restored) == 0


def test_records_are_ext_types(serializer, table):
    payload = msgpack.unpackb(serializer.packb(table), raw=False)
    assert payload["version"] == FORMAT_VERSION
    assert len(payload["records"]) == 7
    assert all(r.code == EXT_CODE_RECORD for r in payload["records"])


def test_unpack_into_existing_table(serializer, books):
    target = Table([Book(100, "other", science=2, author=50)])
    serializer.unpackb(serializer.packb(Table(books[:2])), table=target)
    assert ids(target.find(("science", 2))) == [1, 2, 100]


def test_duplicate_keys_in_payload_raise_collision(serializer, books):
    record = msgpack.ExtType(EXT_CODE_RECORD, msgpack.packb(dataclasses.asdict(books[0])))
    data = msgpack.packb({"version": FORMAT_VERSION, "records": [record, record]})
    with pytest.raises(KeyCollision):
        serializer.unpackb(data)


def test_collision_with_target_leaves_it_unchanged(serializer, books):
    target = Table([books[1]])
    with pytest.raises(KeyCollision):
        serializer.unpackb(serializer.packb(Table(books[:3])), table=target)
    assert list(target.values()) == [books[1]]


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"\xc1",
        msgpack.packb([1, 2, 3]),
        msgpack.packb({"version": FORMAT_VERSION + 1, "records": []}),
        msgpack.packb({"version": FORMAT_VERSION, "records": {}}),
        msgpack.packb({"version": FORMAT_VERSION, "records": [1]}),
        msgpack.packb({"version": FORMAT_VERSION, "records": [msgpack.ExtType(99, b"")]}),
    ],
)
def test_malformed_payload(serializer, data):
    with pytest.raises(SerializationError):
        serializer.unpackb(data)


def test_unencodable_record():
    serializer = Serializer(encode=lambda record: record, decode=lambda state: state)
    with pytest.raises(SerializationError):
        serializer.packb(Table([Tagged(1, ("a",))]))


def test_decoder_failure_on_missing_field():
    serializer = Serializer(
        encode=dataclasses.asdict,
        decode=lambda state: Book(state["id"], state["title"], state["science"], state["author"]),
    )
    record = msgpack.ExtType(EXT_CODE_RECORD, msgpack.packb({"id": 1}))
    data = msgpack.packb({"version": FORMAT_VERSION, "records": [record]})
    target = Table([Tagged(5)])

    with pytest.raises(SerializationError) as excinfo:
        serializer.unpackb(data, table=target)
    assert isinstance(excinfo.value.__cause__, KeyError)
    assert list(target) == [5]


def test_record_with_oversized_int():
    serializer = Serializer(encode=lambda record: {"id": 2 ** 70}, decode=lambda state: state)
    with pytest.raises(SerializationError):
        serializer.packb(Table([Tagged(1)]))

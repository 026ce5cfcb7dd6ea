import pytest

from dbfstruct.core import Chunk
from dbfstruct.enum import Compliant
from dbfstruct.exceptions import UnpackException, MagicException
from dbfstruct.fields import StructField, StringField, ArrayField
from dbfstruct.properties import Dependency
from dbfstruct.streams import Backend, Stream


def test_chunk():
    """Check that building a Chunk from fields behaves correctly."""
    class Dummy(Chunk):
        a = StructField('I', default=0xbad)
        b = StringField(0x10)
        c = StructField('I', default=0xdeadbeef)

    dummy = Dummy()

    assert dummy.a.size == 4
    assert dummy.a.raw == b'\xad\x0b\x00\x00'
    assert dummy.a.value == 0xbad
    assert dummy.a.offset == 0x00
    assert dummy.a.father == dummy

    assert dummy.b.size == 0x10
    assert dummy.b.raw == b'\x00' * 0x10
    assert dummy.b.offset == 0x04

    assert dummy.c.size == 0x4
    assert dummy.c.raw == b'\xef\xbe\xad\xde'
    assert dummy.c.offset == 0x14

    assert dummy.size == 0x18
    assert len(dummy.raw) == dummy.size
    assert dummy.raw == (
        b'\xad\x0b\x00\x00' +
        b'\x00' * 0x10 +
        b'\xef\xbe\xad\xde'
    )


def test_inheritance():
    '''subclasses inherit fields'''
    class Father(Chunk):
        field_a = StringField(0x10)
        field_b = StructField("I")

    class Son(Father):
        field_c = StringField(0x08)

    field_b_value = b'\x01\x02\x03\x04'
    field_c_value = b'ABCDEFGH'
    son = Son(b'A' * 16 + field_b_value + field_c_value)

    assert [_ for _, __ in son.get_fields()] == [
        'field_a', 'field_b', 'field_c',
    ]

    assert son.field_b.value == 0x04030201
    assert son.field_c.value == field_c_value


def test_nested_chunk_layout():
    class Proxy(Chunk):
        off = StructField('I')
        sz = StructField('I')

    class Experiment(Chunk):
        proxy_a = Proxy()
        proxy_b = Proxy()

        contents = StringField(0x100)

    experiment = Experiment()

    assert [(_.offset, _.size) for __, _ in experiment.get_fields()] == [
        (0, 8),
        (8, 8),
        (16, 256),
    ]
    assert experiment.proxy_b.sz.offset == 12

    experiment.proxy_b.sz.value = 0x41
    assert experiment.raw[12:16] == b'\x41\x00\x00\x00'
    assert experiment.proxy_b.sz.root is experiment
    assert experiment.proxy_b.root is experiment
    assert experiment.root is experiment


def test_dependency():
    class Item(Chunk):
        amount = StructField('H')

    class TLV(Chunk):
        count = StructField('B')
        items = ArrayField(Item, n=Dependency('.count'))
        extra = StructField('B')

    tlv = TLV(b'\x02\x01\x00\x02\x00\xff')

    assert len(tlv.items) == 2
    assert [_.amount.value for _ in tlv.items] == [1, 2]
    assert tlv.extra.offset == 5
    assert tlv.extra.value == 0xff


def test_unpack_chain():
    class Inner(Chunk):
        a = StructField('I')

    class Outer(Chunk):
        first = StructField('B')
        inner = Inner()

    with pytest.raises(UnpackException) as e:
        Outer(b'\x01\x02')

    assert e.value.chain == ['inner', 'a']


def test_magic():
    class Magic(Chunk):
        marker = StructField('B', default=0x0d, is_magic=True)

    # lenient by default
    assert Magic(b'\x0e').marker.value == 0x0e

    with pytest.raises(MagicException):
        Magic(b'\x0e', compliant=Compliant.MAGIC)


def test_chunk_bound_to_backend():
    class Dummy(Chunk):
        a = StructField('B', default=0x2a)

    backend = Backend(b'\x00\x01\x02')
    dummy = Dummy(backend=backend)
    dummy.relayout(offset=1)

    # binding doesn't touch the data
    assert backend.getvalue() == b'\x00\x01\x02'
    assert dummy.a.value == 1

    dummy.init()
    assert backend.getvalue() == b'\x00\x2a\x02'


def test_backend():
    backend = Backend(b'\x01\x02')

    backend.seek(4).write(b'\x05')
    assert backend.getvalue() == b'\x01\x02\x00\x00\x05'

    backend.insert(1, b'\xaa\xbb')
    assert backend.getvalue() == b'\x01\xaa\xbb\x02\x00\x00\x05'
    assert backend.seek(1).read(2) == b'\xaa\xbb'
    assert len(backend) == 7

    with pytest.raises(ValueError):
        backend.insert(8, b'\x00')


def test_stream_read_all(tmp_path):
    data = b'\x01\x02\x03\x04\x05'

    stream = Stream(data)
    assert stream.read(1) == b'\x01'
    assert stream.read_all() == b'\x02\x03\x04\x05'

    path = tmp_path / 'auaua'
    path.write_bytes(data)

    with Stream(str(path)) as stream:
        assert stream.read_all() == data

    with pytest.raises(ValueError):
        Stream(42)

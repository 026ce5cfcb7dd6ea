import datetime
import os
import stat

import pytest

from dbfstruct.dbase.enum import FieldType
from dbfstruct.dbase.table import DBFTable
from dbfstruct.enum import Compliant
from dbfstruct.exceptions import (
    EndOfFieldMarkerException,
    MagicException,
    SchemaLockedException,
    SizeMismatchException,
    UnpackException,
)


# offset of the type of the third descriptor
DATE_TYPE_OFFSET = 32 + 2 * 32 + 11


def test_unpack(valid_table_bytes):
    table = DBFTable(valid_table_bytes)

    assert table.field_names == ['TESTBOOL', 'TESTTEXT', 'TESTDATE', 'TESTNUM', 'TESTFLOAT']
    assert [_.type for _ in table.fields] == [
        FieldType.LOGICAL,
        FieldType.CHARACTER,
        FieldType.DATE,
        FieldType.NUMERIC,
        FieldType.FLOAT,
    ]
    assert table.decimal_places('TESTFLOAT') == 2

    assert table.record_count == 3
    assert table.code_page == 0x57
    assert table.last_updated == datetime.datetime(2018, 10, 17)

    assert table.row(0) == ['T', 'test0', '20180101', '42', '42.01000']
    assert table.row(1) == ['F', 'test1', '20180102', '43', '43.02000']
    assert table.row(2) == ['T', 'test2', '20180103', '44', '44.03000']

    assert table.int_field_value(1, 'TESTNUM') == 43
    assert table.float_field_value(2, 'TESTFLOAT') == 44.03
    assert table.date_field_value(0, 'TESTDATE') == datetime.date(2018, 1, 1)

    # the data is left untouched
    assert table.pack() == valid_table_bytes


def test_unpack_schema_locked(valid_table_bytes):
    table = DBFTable(valid_table_bytes)

    assert table.schema_locked

    with pytest.raises(SchemaLockedException):
        table.add_text_field('OTHER', 10)


def test_unpack_then_modify(valid_table_bytes):
    table = DBFTable(valid_table_bytes)

    table.set_field_value(1, 'TESTTEXT', 'kebab')
    index = table.add_record()

    assert index == 3
    assert table.record_count == 4

    other = DBFTable(table.pack())

    assert other.row(1) == ['F', 'kebab', '20180102', '43', '43.02000']
    assert other.row(3) == ['', '', '', '', '']


def test_end_of_field_marker(valid_table_bytes):
    data = bytearray(valid_table_bytes)
    data[32:43] = b'A' * 11

    with pytest.raises(EndOfFieldMarkerException, match=r'end-of-field marker missing') as e:
        DBFTable(bytes(data))

    assert e.value.chain == ['descriptors', 0, 'field_name']
    assert r'offset [32,43]' in str(e.value)


def test_size_mismatch(valid_table_bytes):
    with pytest.raises(SizeMismatchException, match='encoded content is 312 bytes, but header expected 313'):
        DBFTable(valid_table_bytes[:-1])

    with pytest.raises(SizeMismatchException):
        DBFTable(valid_table_bytes + b'\x00')


def test_size_less_than_actual_records(less_than_actual_records_bytes):
    with pytest.raises(SizeMismatchException, match='encoded content is 313 bytes, but header expected 273'):
        DBFTable(less_than_actual_records_bytes)


def test_end_of_file_marker(valid_table_bytes):
    table = DBFTable(valid_table_bytes + b'\x1a')

    assert table.record_count == 3
    assert table.row(2) == ['T', 'test2', '20180103', '44', '44.03000']


def test_truncated_header(valid_table_bytes):
    with pytest.raises(UnpackException):
        DBFTable(valid_table_bytes[:20])


def test_end_of_header(valid_table_bytes):
    data = bytearray(valid_table_bytes)
    data[192] = 0x00

    # lenient by default
    DBFTable(bytes(data))

    with pytest.raises(MagicException):
        DBFTable(bytes(data), compliant=Compliant.MAGIC)


def test_unknown_field_type(valid_table_bytes):
    data = bytearray(valid_table_bytes)
    data[DATE_TYPE_OFFSET] = ord('X')

    table = DBFTable(bytes(data))

    assert table.field_names == ['TESTBOOL', 'TESTTEXT', 'TESTNUM', 'TESTFLOAT']
    # the columns after the unknown one are where they were
    assert table.row(0) == ['T', 'test0', '42', '42.01000']
    assert table.pack() == bytes(data)


def test_unknown_field_type_strict(valid_table_bytes):
    data = bytearray(valid_table_bytes)
    data[DATE_TYPE_OFFSET] = ord('X')

    with pytest.raises(UnpackException) as e:
        DBFTable(bytes(data), compliant=Compliant.ENUM)

    assert e.value.chain == ['descriptors', 2, 'type']


def test_save_and_load(tmp_path):
    path = str(tmp_path / 'people.dbf')

    table = DBFTable(encoding='cp1252')
    table.add_text_field('NAME', 20)
    table.add_number_field('AGE', 3)
    table.add_date_field('BIRTH')

    index = table.add_record()
    table.set_field_value(index, 'NAME', 'Niccolò')
    table.set_field_value(index, 'AGE', 42)
    table.set_field_value(index, 'BIRTH', datetime.date(1976, 5, 3))

    table.save(path, mode=0o600)

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    with open(path, 'rb') as f:
        assert f.read() == table.pack()

    other = DBFTable(path, encoding='cp1252')

    assert other.field_names == ['NAME', 'AGE', 'BIRTH']
    assert other.row(0) == ['Niccolò', '42', '19760503']
    assert other.code_page == 0x59
    assert other.last_updated == DBFTable.low_def_time(datetime.datetime.now())


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        DBFTable(str(tmp_path / 'missing.dbf'))


def test_save_missing_directory(tmp_path):
    table = DBFTable()
    table.add_text_field('NAME', 10)

    with pytest.raises(FileNotFoundError):
        table.save(str(tmp_path / 'missing' / 'table.dbf'))


def test_unpack_strict(valid_table_bytes):
    table = DBFTable(valid_table_bytes, compliant=Compliant.STRICT)

    assert table.field_count == 5

    data = bytearray(valid_table_bytes)
    data[DATE_TYPE_OFFSET] = ord('X')

    with pytest.raises(UnpackException):
        DBFTable(bytes(data), compliant=Compliant.STRICT)


def test_refresh_last_updated_after_unpack(valid_table_bytes):
    table = DBFTable(valid_table_bytes)

    table.refresh_last_updated()

    today = DBFTable.low_def_time(datetime.datetime.now())

    assert table.last_updated == today
    assert DBFTable(table.pack()).last_updated == today


def test_save_and_load_path(tmp_path):
    path = tmp_path / 'table.dbf'

    table = DBFTable()
    table.add_text_field('NAME', 10)
    table.add_record()
    table.set_field_value(0, 'NAME', 'kebab')

    table.save(path)

    assert DBFTable(path).row(0) == ['kebab']

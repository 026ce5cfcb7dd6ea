import logging
import os
import struct

import pytest


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)


VALID_FIELDS = [
    (b'TESTBOOL',  b'L', 1, 0),
    (b'TESTTEXT',  b'C', 10, 0),
    (b'TESTDATE',  b'D', 8, 0),
    (b'TESTNUM',   b'N', 10, 0),
    (b'TESTFLOAT', b'F', 10, 2),
]

VALID_RECORDS = [
    (b'T', b'test0', b'20180101', b'42', b'42.01000'),
    (b'F', b'test1', b'20180102', b'43', b'43.02000'),
    (b'T', b'test2', b'20180103', b'44', b'44.03000'),
]


def build_descriptor(name, tag, length, decimal_places):
    return name.ljust(11, b'\x00') + tag + b'\x00' * 4 + bytes([length, decimal_places]) + b'\x00' * 14


def build_record(values):
    record = b' '
    for (_, tag, length, _), value in zip(VALID_FIELDS, values):
        record += value.rjust(length) if tag in (b'N', b'F') else value.ljust(length)

    return record


def build_table(records=VALID_RECORDS, record_count=None):
    '''Assemble by hand a table in the same shape as the one written by dBase.'''
    header_length = 32 + 32 * len(VALID_FIELDS) + 1
    record_length = 1 + sum(_[2] for _ in VALID_FIELDS)

    data = struct.pack(
        '<B3BIHH',
        0x03,
        118, 10, 17,  # 2018-10-17
        len(records) if record_count is None else record_count,
        header_length,
        record_length,
    )
    data += b'\x00' * 16 + b'\x00' + b'\x57' + b'\x00' * 2

    for field in VALID_FIELDS:
        data += build_descriptor(*field)

    data += b'\x0d'

    for values in records:
        data += build_record(values)

    return data


@pytest.fixture
def valid_table_bytes():
    return build_table()


@pytest.fixture
def less_than_actual_records_bytes():
    return build_table(record_count=2)


@pytest.fixture
def descriptor_bytes():
    return build_descriptor

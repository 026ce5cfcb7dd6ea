'''
# dBase III table format

A flat file made of a 32-byte header, a 32-byte descriptor for each column, an
end-of-header marker and then the records, all with the same length, one
after the other; the file created from scratch ends with an EOF marker.

    .------------------------------.
    | header (32 bytes)            |
    | field descriptor 1           |
    | ...                          |
    | field descriptor N           |
    | 0x0d                         |
    | record 1                     |
    | ...                          |
    | record M                     |
    | 0x1a                         |
    '------------------------------'

All the multi-byte integers are little endian.

Reference to <https://en.wikipedia.org/wiki/.dbf#File_format_of_Level_5_DOS_dBASE>.
'''
from bitstring import BitArray

from .. import fields as base_fields
from ..core import Chunk
from ..properties import Dependency
from .encoding import DEFAULT_CODE_PAGE
from .enum import (
    FieldType,
    DeletionFlag,
    HEADER_SIZE,
    DESCRIPTOR_SIZE,
    NO_MEMO_SIGNATURE,
    END_OF_HEADER,
)
from . import fields as dbf_fields


class DBFHeader(Chunk):
    '''The first 32 bytes of the file.

    The signature is a bit field: bits 0-2 are the version number, bit 7
    indicates the presence of a memo file.'''
    signature       = base_fields.StructField('B', default=NO_MEMO_SIGNATURE)
    last_update     = dbf_fields.LastUpdateField()
    record_count    = base_fields.StructField('I')
    header_length   = base_fields.StructField('H')
    record_length   = base_fields.StructField('H')
    reserved        = base_fields.StringField(16)
    mdx_flag        = base_fields.StructField('B')  # zero means no index file
    language_driver = base_fields.StructField('B', default=DEFAULT_CODE_PAGE)
    reserved2       = base_fields.StringField(2)

    def _signature_bits(self):
        return BitArray(uint=self.signature.value, length=8)

    @property
    def version(self):
        return self._signature_bits()[-3:].uint

    @property
    def has_memo(self):
        return self._signature_bits()[0]


class DBFFieldDescriptor(Chunk):
    field_name     = dbf_fields.FieldNameField()
    type           = base_fields.StructField('c', enum=FieldType, default=FieldType.CHARACTER)
    reserved       = base_fields.StringField(4)
    length         = base_fields.StructField('B')
    decimal_places = base_fields.StructField('B')  # meaningful only for N and F
    reserved2      = base_fields.StringField(14)

    def to_column(self):
        '''Build the column this descriptor describes, None if the type is unknown.'''
        field_type = self.type.value
        if field_type is None:
            return None

        column_cls = dbf_fields.COLUMN_FIELDS[field_type]
        kwargs = {'name': self.field_name.value}

        if issubclass(column_cls, dbf_fields.NumericField):
            kwargs['decimal_places'] = self.decimal_places.value

        return column_cls(self.length.value, **kwargs)

    def from_column(self, column):
        self.field_name.value = column.name
        self.type.value = column.type
        self.length.value = column.length
        self.decimal_places.value = getattr(column, 'decimal_places', 0)


class FieldsCountDependency(Dependency):
    '''The number of descriptors is derived from the length of the header.'''

    def resolve(self, instance):
        header_length = super().resolve(instance)

        return max(0, (header_length - HEADER_SIZE - 1) // DESCRIPTOR_SIZE)


class DBFHeaderBlock(Chunk):
    '''Everything that comes before the records.'''
    header      = DBFHeader()
    descriptors = base_fields.ArrayField(DBFFieldDescriptor, n=FieldsCountDependency('header.header_length'))
    terminator  = base_fields.StructField('B', default=END_OF_HEADER, is_magic=True)


class DBFRecord(Chunk):
    '''A record is a deleted flag followed by the values of the columns: the
    layout is not known until the table is, so the fields come from the
    columns passed at construction.

    A column without name is a region the table doesn't know how to interpret.'''
    deleted = base_fields.StructField('c', enum=DeletionFlag, default=DeletionFlag.VALID)

    def __init__(self, layout, **kwargs):
        self._layout = layout
        self._columns = None
        super().__init__(**kwargs)

    def _get_columns(self):
        if self._columns is None:
            self._columns = [(column.name, column.create(father=self)) for column in self._layout]

        return self._columns

    def get_fields(self):
        return super().get_fields() + self._get_columns()

    def __getitem__(self, name):
        for column_name, column in self._get_columns():
            if column_name is not None and column_name == name:
                return column

        raise KeyError(name)

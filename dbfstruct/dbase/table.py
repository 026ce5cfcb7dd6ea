'''
# dBase table

The table owns a single buffer with the whole file: the header block, the
records and the EOF marker. The chunks of this package are views over it,
so that reading a value means decoding some bytes of the buffer and writing
a value means encoding it in place.

A table is either created empty, and then the columns can be added until the
first record is, or unpacked from existing data, and then the columns are the
ones found in the header. In both cases, once the schema is locked it cannot
change anymore, so that every record is always consistent with the header.
'''
import datetime
import logging
import os

from .. import fields as base_fields
from ..enum import Compliant
from ..exceptions import (
    ConversionException,
    DuplicateFieldException,
    FieldNotFoundException,
    FieldValueException,
    NoFieldsException,
    NotNumericFieldException,
    RecordIndexException,
    SchemaLockedException,
    SizeMismatchException,
    TooManyFieldsException,
    UnpackException,
)
from ..streams import Backend, Stream
from . import (
    DBFHeaderBlock,
    DBFFieldDescriptor,
    DBFRecord,
)
from .encoding import Encoding
from .enum import (
    DeletionFlag,
    DESCRIPTOR_SIZE,
    END_OF_FILE,
    FIELD_NAME_MAX,
    MAX_HEADER_LENGTH,
    MAX_RECORD_LENGTH,
)
from . import fields as dbf_fields


class DBFTable(object):
    '''In-memory representation of a dBase table.

        table = DBFTable(encoding='cp1252')
        table.add_text_field('NAME', 20)
        table.add_number_field('AGE', 3)

        index = table.add_record()
        table.set_field_value(index, 'NAME', 'kebab')
        table.set_field_value(index, 'AGE', 42)

        table.save('people.dbf')

    The data can be the raw bytes of a table or the path of a file; the
    encoding is anything codecs.lookup() understands. With a compliant
    including Compliant.ENUM an unknown type of field makes the unpacking fail
    instead of being skipped, with Compliant.MAGIC a wrong end-of-header marker does.
    '''

    def __init__(self, data=None, encoding=None, compliant=Compliant.NONE):
        self.logger = logging.getLogger(__name__)
        self.encoding = Encoding(encoding)
        self.compliant = compliant

        self._columns = []     # the fields the table knows about, in order
        self._layout = []      # what a record is made of, unknown columns included
        self._name_index = {}
        self._schema_locked = False

        if data is not None:
            with Stream(data) as stream:
                self._unpack(Backend(stream.read_all()))
        else:
            self._create()

    def __repr__(self):
        return '<%s(fields=%d, records=%d)>' % (self.__class__.__name__, self.field_count, self.record_count)

    def _bind(self, backend):
        self._backend = backend
        self._block = DBFHeaderBlock(backend=backend, encoding=self.encoding, compliant=self.compliant)
        self._block.relayout()

    def _create(self):
        self.logger.debug('creating new table with encoding %s', self.encoding.name)
        self._bind(Backend())
        self._block.init()

        self.header.language_driver.value = self.encoding.code_page
        self.refresh_last_updated()

        self._backend.seek(len(self._backend)).write(bytes([END_OF_FILE]))
        self._update_header()

    def _unpack(self, backend):
        self._bind(backend)
        self._block.unpack(backend)

        for index, descriptor in enumerate(self._block.descriptors):
            try:
                column = descriptor.to_column()
            except FieldValueException as e:
                raise UnpackException(str(e), chain=['descriptors', index])

            if column is None:
                # the bytes are still there, the other columns must not shift
                self.logger.warning('skipping field of unknown type %r', descriptor.type.raw)
                self._layout.append(base_fields.StringField(descriptor.length.value))
                continue

            self._register(column)

        layout_length = 1 + sum(column.size for column in self._layout)
        if layout_length > self.header.record_length.value:
            raise SizeMismatchException(
                f'fields need {layout_length} bytes but records are {self.header.record_length.value}')

        expected_size = self.header.header_length.value + self.record_count * self.header.record_length.value
        actual_size = len(backend)

        # the trailing EOF marker is optional
        if actual_size != expected_size and not (
                actual_size == expected_size + 1 and backend.seek(expected_size).read(1) == bytes([END_OF_FILE])):
            raise SizeMismatchException(f'encoded content is {actual_size} bytes, but header expected {expected_size}')

        self.logger.debug('unpacked table with %d fields and %d records', self.field_count, self.record_count)

        self._schema_locked = True

    @property
    def header(self):
        return self._block.header

    @property
    def raw(self):
        return self._backend.getvalue()

    def pack(self):
        '''Returns the bytes of the table as it has to be written on disk.'''
        return self.raw

    def save(self, path, mode=None):
        with open(path, 'wb') as f:
            f.write(self.pack())

        if mode is not None:
            os.chmod(path, mode)

    # schema

    def _register(self, column):
        if column.name in self._name_index:
            raise DuplicateFieldException(f'field \'{column.name}\' already exists')

        self._name_index[column.name] = len(self._columns)
        self._columns.append(column)
        self._layout.append(column)

    def _update_header(self):
        '''Header and record lengths are derived from the columns.'''
        terminator = self._block.terminator
        self.header.header_length.value = terminator.offset + terminator.size
        self.header.record_length.value = 1 + sum(column.size for column in self._layout)

    def _add_field(self, column):
        if self._schema_locked:
            raise SchemaLockedException(
                f'cannot add field \'{column.name}\', the schema is locked once records exist')

        if column.name in self._name_index:
            raise DuplicateFieldException(f'field \'{column.name}\' already exists')

        if self.header.record_length.value + column.size > MAX_RECORD_LENGTH:
            raise FieldValueException(f'field \'{column.name}\' makes records too long')

        if self.header.header_length.value + DESCRIPTOR_SIZE > MAX_HEADER_LENGTH:
            raise TooManyFieldsException(f'no room in the header for field \'{column.name}\'')

        self.logger.debug('adding field %r', column)

        # there are no records, the descriptor goes right before the end-of-header marker
        offset = self._block.terminator.offset
        self._backend.insert(offset, b'\x00' * DESCRIPTOR_SIZE)

        descriptor = DBFFieldDescriptor(father=self._block.descriptors)
        self._block.descriptors.append(descriptor)
        descriptor.relayout(offset=offset)
        self._block.terminator.relayout(offset=offset + DESCRIPTOR_SIZE)

        descriptor.init()
        descriptor.from_column(column)

        self._register(column)
        self._update_header()

    def _field_name(self, name):
        return self.encoding.truncate(name, FIELD_NAME_MAX)

    def add_text_field(self, name, length):
        self._add_field(dbf_fields.CharacterField(length, name=self._field_name(name)))

    def add_number_field(self, name, length, decimal_places=0):
        self._add_field(dbf_fields.NumericField(length, decimal_places, name=self._field_name(name)))

    def add_float_field(self, name, length, decimal_places=0):
        self._add_field(dbf_fields.FloatField(length, decimal_places, name=self._field_name(name)))

    def add_boolean_field(self, name):
        self._add_field(dbf_fields.LogicalField(name=self._field_name(name)))

    def add_date_field(self, name):
        self._add_field(dbf_fields.DateField(name=self._field_name(name)))

    @property
    def fields(self):
        return list(self._columns)

    @property
    def field_names(self):
        return [column.name for column in self._columns]

    @property
    def field_count(self):
        return len(self._columns)

    @property
    def schema_locked(self):
        return self._schema_locked

    def _column(self, name):
        try:
            return self._columns[self._name_index[name]]
        except KeyError:
            raise FieldNotFoundException(f'field \'{name}\' doesn\'t exist')

    def decimal_places(self, name):
        column = self._column(name)

        if not isinstance(column, dbf_fields.NumericField):
            raise NotNumericFieldException(f'field \'{name}\' is {column.type.name}, it has no decimal places')

        return column.decimal_places

    # header

    @property
    def record_count(self):
        return self.header.record_count.value

    @property
    def code_page(self):
        return self.header.language_driver.value

    @property
    def last_updated(self):
        return self.header.last_update.value

    def set_last_updated(self, moment):
        self.header.last_update.value = moment

    def refresh_last_updated(self):
        self.set_last_updated(datetime.datetime.now())

    low_def_time = staticmethod(dbf_fields.low_def_time)

    # records

    def _record_offset(self, index):
        return self.header.header_length.value + index * self.header.record_length.value

    def _record(self, index):
        if not 0 <= index < self.record_count:
            raise RecordIndexException(f'record {index} doesn\'t exist, the table has {self.record_count}')

        record = DBFRecord(self._layout, backend=self._backend, encoding=self.encoding)
        record.relayout(offset=self._record_offset(index))

        return record

    def add_record(self):
        '''Append an empty record, returning its index. From now on the schema is locked.'''
        if not self._layout:
            raise NoFieldsException('cannot add a record to a table without fields')

        self._schema_locked = True

        index = self.record_count
        # records go before the EOF marker, if any
        self._backend.insert(self._record_offset(index), b' ' * self.header.record_length.value)
        self.header.record_count.value = index + 1

        self.logger.debug('added record %d', index)

        return index

    def set_field_value(self, index, name, value):
        self._column(name)
        self._record(index)[name].value = value

    def field_value(self, index, name):
        '''The value as text, without padding.'''
        self._column(name)

        return self._record(index)[name].value

    def int_field_value(self, index, name):
        value = self.field_value(index, name)
        try:
            return int(value)
        except ValueError:
            raise ConversionException(f'{value!r} of field \'{name}\' is not an integer')

    def float_field_value(self, index, name):
        value = self.field_value(index, name)
        try:
            return float(value)
        except ValueError:
            raise ConversionException(f'{value!r} of field \'{name}\' is not a number')

    def date_field_value(self, index, name):
        value = self.field_value(index, name)
        if not value:
            return None

        try:
            return dbf_fields.DateField.to_date(value)
        except FieldValueException as e:
            raise ConversionException(str(e))

    def row(self, index):
        '''All the values of a record, in the order of the fields.'''
        record = self._record(index)

        return [record[column.name].value for column in self._columns]

    def is_deleted(self, index):
        return self._record(index).deleted.value == DeletionFlag.DELETED

    def set_deleted(self, index, deleted=True):
        self._record(index).deleted.value = DeletionFlag.DELETED if deleted else DeletionFlag.VALID

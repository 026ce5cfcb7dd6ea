'''
# dBase fields

Apart from the deleted flag, all the values stored into a record are
characters: each column type has its own fixed-width textual representation,
padded with spaces.

 | type      | representation                                    |
 |-----------|---------------------------------------------------|
 | Character | left-justified text, encoded with the table's encoding |
 | Numeric   | right-justified digits, optional sign and decimal point |
 | Float     | same as Numeric                                   |
 | Logical   | one of 'T', 'F' or '?'                            |
 | Date      | YYYYMMDD                                          |

The header instead contains the date of last update in a 3-byte binary
form (see LastUpdateField).
'''
import datetime
import math
import re
from decimal import Decimal

from .. import fields
from ..exceptions import (
    ConversionException,
    EndOfFieldMarkerException,
    FieldValueException,
)
from .encoding import Encoding
from .enum import (
    FieldType,
    FIELD_NAME_SIZE,
    FIELD_NAME_MAX,
    END_OF_FIELD_NAME,
    MAX_FIELD_LENGTH,
    YEAR_OFFSET,
)


BLANK = b' '

NUMBER_RE = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)$', re.ASCII)


def low_def_time(moment):
    '''Lower the precision of a date/datetime to the one of the format, i.e. the day.

    The result is naive and at midnight: an aware datetime is converted to the local
    timezone before dropping the time.'''
    if isinstance(moment, datetime.datetime) and moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)

    return datetime.datetime(moment.year, moment.month, moment.day)


class LastUpdateField(fields.Field):
    '''Date of last update in YYMMDD format where each is stored in a single byte.

    The first byte is the number of years since 1900 (so the years go from 1900 to 2155),
    the other two are the month (1-12) and the day (1-31). Since there is nothing
    below the day, the value is a naive datetime at midnight.'''

    def _get_size(self):
        return 3

    def init(self):
        self.raw = b'\x00' * self.size

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, self.raw.hex())

    def _get_value(self):
        year, month, day = self.raw
        try:
            return datetime.datetime(year + YEAR_OFFSET, month, day)
        except ValueError as e:
            raise ConversionException(f'{self.raw.hex()} is not a valid date of last update: {e}')

    def _set_value(self, value):
        value = low_def_time(value)

        if not YEAR_OFFSET <= value.year <= YEAR_OFFSET + 0xff:
            raise FieldValueException(f'year {value.year} cannot be represented')

        self.raw = bytes([value.year - YEAR_OFFSET, value.month, value.day])


class FieldNameField(fields.StringField):
    '''Name of a column: at most ten bytes followed by a NUL.'''

    def __init__(self, **kw):
        super().__init__(n=FIELD_NAME_SIZE, **kw)

    def value_from_default(self):
        return ''

    def _get_encoding(self):
        return self.get_encoding() or Encoding()

    def _find_end(self, raw):
        end = raw.find(bytes([END_OF_FIELD_NAME]))

        if end == -1:
            offset = self.offset or 0
            raise EndOfFieldMarkerException(
                f'end-of-field marker missing from field bytes, offset [{offset},{offset + FIELD_NAME_SIZE}]',
                chain=[])

        return end

    def _unpack(self, raw):
        self._find_end(raw)

        return raw

    def _get_value(self):
        raw = self.raw

        return self._get_encoding().decode(raw[:self._find_end(raw)])

    def _set_value(self, value):
        raw = self._get_encoding().encode(value)[:FIELD_NAME_MAX]

        self.raw = raw.ljust(FIELD_NAME_SIZE, bytes([END_OF_FIELD_NAME]))


class ColumnField(fields.Field):
    '''Base class for the values stored into a record: a fixed number of
    bytes, padded with spaces.

    The instances created by the table act as the description of the column,
    each record gets its own copy.'''
    TYPE = None

    def __init__(self, length, **kw):
        if not 1 <= length <= MAX_FIELD_LENGTH:
            raise FieldValueException(f'length of a field must be between 1 and {MAX_FIELD_LENGTH}, not {length}')

        self._length = length

        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.name!r}, {self._length})>'

    @property
    def type(self):
        return self.TYPE

    @property
    def length(self):
        return self._length

    def _get_size(self):
        return self._length

    def init(self):
        self.raw = BLANK * self._length

    def _decode(self, raw: bytes) -> str:
        return raw.decode('latin1')

    def _encode(self, value) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._encode() not implemented")

    def _justify(self, raw: bytes) -> bytes:
        return raw.ljust(self._length, BLANK)

    def _get_value(self):
        return self._decode(self.raw).strip()

    def _set_value(self, value):
        raw = self._encode(value)

        if len(raw) > self._length:
            raise FieldValueException(
                f'value {value!r} needs {len(raw)} bytes but field \'{self.name}\' is {self._length} bytes wide')

        self.raw = self._justify(raw)


class CharacterField(ColumnField):
    TYPE = FieldType.CHARACTER

    def _get_encoding(self):
        return self.get_encoding() or Encoding()

    def _decode(self, raw):
        return self._get_encoding().decode(raw)

    def _encode(self, value):
        if value is None:
            return b''

        if not isinstance(value, str):
            raise FieldValueException(f'field \'{self.name}\' accepts only text, not {value!r}')

        return self._get_encoding().encode(value)


class NumericField(ColumnField):
    '''Number written as text, right-justified.

    A textual value is kept as it is (once checked to be a number), other
    numbers are formatted with the decimal places of the field.'''
    TYPE = FieldType.NUMERIC

    def __init__(self, length, decimal_places=0, **kw):
        if not 0 <= decimal_places <= MAX_FIELD_LENGTH or (decimal_places and decimal_places >= length):
            raise FieldValueException(f'{decimal_places} decimal places don\'t fit a field {length} bytes wide')

        self._decimal_places = decimal_places

        super().__init__(length, **kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.name!r}, {self._length}, {self._decimal_places})>'

    @property
    def decimal_places(self):
        return self._decimal_places

    def _justify(self, raw):
        return raw.rjust(self._length, BLANK)

    def _encode(self, value):
        if value is None:
            return b''

        if isinstance(value, str):
            text = value.strip()
            if text and not NUMBER_RE.match(text):
                raise FieldValueException(f'{value!r} is not a number')

            return text.encode('ascii')

        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise FieldValueException(f'field \'{self.name}\' accepts only numbers, not {value!r}')

        if not math.isfinite(value):
            raise FieldValueException(f'{value!r} cannot be represented')

        return format(value, '.%df' % self._decimal_places).encode('ascii')


class FloatField(NumericField):
    TYPE = FieldType.FLOAT


class LogicalField(ColumnField):
    TYPE = FieldType.LOGICAL

    TRUE  = b'T'
    FALSE = b'F'
    UNSET = b'?'

    TEXT = {
        'T': TRUE, 'Y': TRUE,
        'F': FALSE, 'N': FALSE,
        '?': UNSET,
        '': b'',
    }

    def __init__(self, length=1, **kw):
        super().__init__(length, **kw)

    def _encode(self, value):
        if value is None:
            return self.UNSET

        if isinstance(value, bool):
            return self.TRUE if value else self.FALSE

        if isinstance(value, str) and value.strip().upper() in self.TEXT:
            return self.TEXT[value.strip().upper()]

        raise FieldValueException(f'{value!r} is not a logical value')


class DateField(ColumnField):
    TYPE = FieldType.DATE

    FORMAT = '%Y%m%d'

    def __init__(self, length=8, **kw):
        super().__init__(length, **kw)

    def _encode(self, value):
        if value is None:
            return b''

        if isinstance(value, datetime.date):
            return ('%04d%02d%02d' % (value.year, value.month, value.day)).encode('ascii')

        if isinstance(value, str):
            text = value.strip()
            if text:
                self.to_date(text)

            return text.encode('ascii')

        raise FieldValueException(f'{value!r} is not a date')

    @classmethod
    def to_date(cls, text):
        if len(text) != 8 or not (text.isascii() and text.isdigit()):
            raise FieldValueException(f'{text!r} is not a date in YYYYMMDD format')

        try:
            return datetime.datetime.strptime(text, cls.FORMAT).date()
        except ValueError as e:
            raise FieldValueException(f'{text!r} is not a valid date: {e}')


COLUMN_FIELDS = {
    FieldType.CHARACTER: CharacterField,
    FieldType.NUMERIC:   NumericField,
    FieldType.FLOAT:     FloatField,
    FieldType.LOGICAL:   LogicalField,
    FieldType.DATE:      DateField,
}

"""
A Field is "fundamental" datatype from the format point of view: a view over a
fixed range of bytes of a backend, directly convertible from its binary
representation to a python value and vice versa.
"""
import logging
import struct
from enum import Enum

from .enum import Compliant
from .meta import FieldBase
from .properties import Dependency, get_root_from_chunk
from .streams import Backend
from .exceptions import UnpackException, MagicException


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, name=None, father=None, default=None, offset=None, backend=None, encoding=None,
                 compliant=Compliant.INHERIT, is_magic=False):
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.father = father
        self.default = default
        self.offset = offset
        self.encoding = encoding
        self.compliant = compliant
        self.is_magic = is_magic
        self._backend = backend if backend is not None else Backend()

        # a field without father nor backend owns its data
        if father is None and backend is None:
            self.relayout(offset=offset or 0)
            self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def get_backend(self):
        """This is the backend used by the field for storage operations."""
        if self.father is not None:
            return self.father.get_backend()

        return self._backend

    def get_encoding(self):
        """The text encoding is a property of the whole format, like the backend."""
        if self.father is not None:
            return self.father.get_encoding()

        return self.encoding

    @property
    def root(self):
        '''The outermost chunk this field belongs to.'''
        return get_root_from_chunk(self)

    def is_compliant(self, level):
        '''Returns True if this field, or the father it inherits from, asks for the given level'''
        instance = self
        while instance is not None:
            if instance.compliant & level:
                return True
            if not instance.compliant & Compliant.INHERIT:
                break

            instance = instance.father

        return False

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_value(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_value() not implemented")

    def _set_value(self, value):
        raise NotImplementedError(f"method {self.__class__.__name__}._set_value() not implemented")

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self) -> bytes:
        return self.get_backend().seek(self.offset or 0).read(self.size)

    def _set_raw(self, raw: bytes) -> None:
        if len(raw) != self.size:
            raise ValueError(f'{self.__class__.__name__} needs exactly {self.size} bytes, {len(raw)} given')

        self.get_backend().seek(self.offset or 0).write(raw)

    raw = property(
        fget=lambda self: self._get_raw(),
        fset=lambda self, value: self._set_raw(value),
    )

    def relayout(self, offset=0):
        self.offset = offset

        return self.size

    def _unpack(self, raw):
        '''Validate the raw data, subclasses raise UnpackException if something is wrong.'''
        return raw

    def unpack(self, stream):
        offset = self.offset or 0
        raw = stream.seek(offset).read(self.size)

        if len(raw) != self.size:
            raise UnpackException(
                f'expected {self.size} bytes at offset {offset}, found {len(raw)}', chain=[])

        self._unpack(raw)
        self.raw = raw


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module packing/unpacking
    integers to/from bytes.

    The main advantage is the possibility to indicate via the "enum" argument some subclass
    of enum.Enum so to have directly a representation of the value of the field itself.
    """

    def __init__(self, format, default=0, enum=None, **kw):
        self.format = format
        self.enum = enum
        super().__init__(default=default, **kw)

    def _get_encoder(self):
        return repr if isinstance(self.value, bytes) else hex

    def __repr__(self):
        if not self.enum:
            return '<%s(%s)>' % (self.__class__.__name__, self._get_encoder()(self.value))

        return f'<{self.__class__.__name__}({self.value!r})>'

    def value_from_default(self):
        if not self.enum:
            return super().value_from_default()

        return self.enum(self.default)

    def get_format(self):
        # all the integers of a dBase file are little endian
        return '<' + self.format

    def _get_value(self):
        return self._unpack(self.raw)

    def _set_value(self, value) -> None:
        if isinstance(value, Enum):
            value = value.value

        self.raw = struct.pack(self.get_format(), value)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _unpack_struct(self, value: bytes):
        try:
            unpacked_value = struct.unpack(self.get_format(), value)[0]
        except struct.error as e:
            self.logger.error(e)
            exc = MagicException if self.is_compliant(Compliant.MAGIC) else UnpackException
            raise exc(str(e), chain=[])

        return unpacked_value

    def _unpack_enum(self, value):
        try:
            return self.enum(value)
        except ValueError:
            if self.is_compliant(Compliant.ENUM):
                raise UnpackException(f'{value!r} is not a valid {self.enum.__name__}', chain=[])

            self.logger.warning(f'enum {self.enum.__name__} doesn\'t have element with value {value!r} in it')

    def _unpack(self, raw):
        value = self._unpack_struct(raw)
        if self.enum:
            value = self._unpack_enum(value)

        if self.is_magic and value != self.value_from_default():
            self.logger.warning(f'the magic doesn\'t correspond: {value!r}')
            if self.is_compliant(Compliant.MAGIC):
                raise MagicException(f'expected magic {self.default!r}, found {value!r}', chain=[])

        return value


class StringField(Field):
    """Represent a contiguous chunk of bytes."""

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError(f"StringField must have 'n' or 'default' indicated!")

        self.length = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, repr(self.value))

    def __len__(self):
        return self.length

    def value_from_default(self):
        return b'\x00' * self.length if not self.default else self.default

    def _get_size(self):
        return self.length

    def _get_value(self):
        return self.raw

    def _set_value(self, value) -> None:
        if len(value) != self.length:
            raise ValueError(f'you are trying to set a value with the wrong size (that is {self.length} bytes)')

        self.raw = value


class ArrayField(Field):
    '''Un/Pack an array of Chunks.

    You can indicate an explicit number of elements via the parameter named "n",
    it can be a Dependency so that the number is read from another field while
    unpacking.

    This class must behave like a list in python, obviously cannot implement all the methods
    since, for example, slicing what should mean?
    '''

    def __init__(self, field_cls, n=0, **kw):
        if not isinstance(n, (int, Dependency)):
            raise ValueError('n is \'%s\' must be of the right type' % n.__class__.__name__)

        self.field_cls = field_cls
        self._n = n
        self._elements = [self.instance_element() for _ in range(n if isinstance(n, int) else 0)]

        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self._elements!r})>'

    def __getitem__(self, item):
        return self._elements[item]

    def __len__(self):
        return len(self._elements)

    def __iter__(self):
        return iter(self._elements)

    def init(self):
        for element in self._elements:
            element.init()

    def _get_value(self):
        return self._elements

    def _set_value(self, value):
        for element in value:
            element.father = self

        self._elements = list(value)

    def _get_raw(self):
        return b''.join(element.raw for element in self._elements)

    def _get_size(self):
        size = 0
        for element in self._elements:
            size += element.size

        return size

    def relayout(self, offset=0):
        self.offset = offset

        size = 0
        for element in self._elements:
            size += element.relayout(offset=offset + size)

        return size

    def instance_element(self):
        # pass the father so that we don't lose the hierarchy
        if isinstance(self.field_cls, type):
            return self.field_cls(father=self)

        return self.field_cls.create(father=self)

    def append(self, element):
        element.father = self
        self._elements.append(element)

    def unpack(self, stream):
        n = self._n.resolve(self) if isinstance(self._n, Dependency) else self._n

        self.logger.debug('unpacking %d elements of %s', n, self.field_cls)

        elements = []
        offset = self.offset or 0
        for index in range(n):
            element = self.instance_element()
            element.relayout(offset=offset)
            try:
                element.unpack(stream)
            except UnpackException as e:
                e.chain.insert(0, index)
                raise

            offset += element.size
            elements.append(element)

        self._elements = elements

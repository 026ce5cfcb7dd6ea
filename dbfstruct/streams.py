import io
import logging
import os


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/file object to
    uniform its properties: whatever we receive we want to read
    it as a normal file object.'''
    def __init__(self, obj, flags='rb'):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        if isinstance(obj, os.PathLike):
            obj = os.fspath(obj)

        self._type = type(obj)
        self.flags = flags
        self.obj = obj

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            raise ValueError('\'%s\' is not something we can read from' % self._type.__name__)

        init_method()

    def __getattr__(self, name):
        return getattr(self.obj, name)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        self.obj = open(self.obj, self.flags)

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        self.obj = io.BytesIO(bytes(self.obj))

    def read_all(self):
        '''Returns all the data from the actual position up to the end.'''
        return self.obj.read()

    def close(self):
        self.obj.close()


class Backend(object):
    '''In-memory storage shared by all the fields of a format: each field
    is a view over a range of bytes of it.

    seek() returns the backend itself so that it's possible to chain

        backend.seek(0x20).read(0x0b)
    '''
    def __init__(self, data=b''):
        self._data = bytearray(data)
        self._position = 0

    def __len__(self):
        return len(self._data)

    def __repr__(self):
        return '<%s(%d bytes)>' % (self.__class__.__name__, len(self._data))

    def seek(self, offset):
        if not isinstance(offset, int) or offset < 0:
            raise ValueError('\'%s\' is the wrong kind of offset to use' % (offset,))

        self._position = offset

        return self

    def tell(self):
        return self._position

    def read(self, size=-1):
        end = len(self._data) if size < 0 else self._position + size
        data = bytes(self._data[self._position:end])
        self._position += len(data)

        return data

    def write(self, raw):
        # writing past the end fills the hole with zeros
        if self._position > len(self._data):
            self._data.extend(b'\x00' * (self._position - len(self._data)))

        end = self._position + len(raw)
        self._data[self._position:end] = raw
        self._position = end

        return self

    def insert(self, offset, raw):
        '''Make room for raw at the given offset, moving forward what follows.'''
        if offset > len(self._data):
            raise ValueError('cannot insert at offset %d, backend is %d bytes' % (offset, len(self._data)))

        self._data[offset:offset] = raw
        self._position = offset + len(raw)

        return self

    def getvalue(self):
        return bytes(self._data)

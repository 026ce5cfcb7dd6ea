"""
Core module for the abstraction of a file format

"""
from typing import Tuple, List

from .fields import Field
from .meta import MetaChunk
from .streams import Stream, Backend
from .exceptions import UnpackException


class Chunk(Field, metaclass=MetaChunk):
    """
    Together with Field is the main class that defines a format: its main attributes
    are offset and size that identify a Chunk.

    A Chunk can contain sub-chunks.

    Passing some data (raw bytes or the path of a file) to the constructor means
    unpacking it; passing a backend means binding to it without touching its
    content: it's the caller's duty to init() or unpack() after relayouting.
    """

    def __init__(self, data=None, **kwargs):
        if isinstance(data, Backend):
            kwargs['backend'] = data
        elif data is not None:
            with Stream(data) as stream:
                kwargs['backend'] = Backend(stream.read_all())

        super().__init__(**kwargs)

        if data is not None:
            self.logger.debug('unpacking \'%s\' from %r', self.__class__.__name__, self.get_backend())
            self.relayout(offset=self.offset or 0)
            self.unpack(self.get_backend())

    def get_ordered_fields_name(self) -> List[str]:
        return self._meta.fields

    def get_fields(self) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, instance) for each field.'''
        return [(_, getattr(self, _)) for _ in self.get_ordered_fields_name()]

    def __repr__(self):
        msg = []
        for field_name, field in self.get_fields():
            msg.append('%s=%s' % (field_name, repr(field)))
        return '<%s(%s)>' % (self.__class__.__name__, ','.join(msg))

    def __str__(self):
        msg = ''
        for field_name, field in self.get_fields():
            msg += '%s: %s\n' % (field_name, repr(field))
        return msg

    def init(self):
        for _, field in self.get_fields():
            field.init()

    def _get_size(self):
        '''the size parameter MUST not be set but MUST be derived from the subchunks'''
        size = 0
        for _, field in self.get_fields():
            size += field.size

        return size

    def _get_raw(self):
        value = b''
        for field_name, field_instance in self.get_fields():
            value += field_instance.raw

        return value

    def relayout(self, offset=0):
        '''This method triggers the chunk's children to reset the offsets.'''
        self.offset = offset

        size = 0
        for field_name, field_instance in self.get_fields():
            self.logger.debug('relayouting %s.%s', self.__class__.__name__, field_name)
            size += field_instance.relayout(offset=offset + size)

        return size

    def unpack(self, stream):
        '''This is one of the main APIs to take care of: its aim is to take a binary
        data and check it respects the representation given by the class this method
        is implemented.

        The offsets are recalculated along the way since the size of a sub-chunk
        (think of an ArrayField) is known only after having unpacked it.
        '''
        offset = self.offset or 0
        for field_name, field in self.get_fields():
            self.logger.debug('unpacking %s.%s at offset %d', self.__class__.__name__, field_name, offset)

            field.relayout(offset=offset)
            try:
                field.unpack(stream)
            except UnpackException as e:
                e.chain.insert(0, field_name)
                raise

            offset += field.size

'''
# Character encoding of a dBase table

The text of the Character fields and of the field names is stored with the
encoding chosen by whoever created the file; the header only carries a legacy
"language driver" byte that identifies a code page.

We don't try to guess the encoding from that byte: the caller indicates it and
we derive the byte from a closed table of well-known encodings, falling back
to ANSI when there is no match.
'''
import codecs
import logging


logger = logging.getLogger(__name__)

DEFAULT_CODE_PAGE = 0x57  # ANSI
DEFAULT_TEXT_ENCODING = 'utf-8'

# keys are the names normalized by codecs.lookup()
CODE_PAGES = {
    'big5':      0x78,
    'iso8859-2': 0x1b,
    'cp865':     0x66,
    'cp863':     0x6c,
    'cp852':     0x87,
    'cp860':     0x24,
    'cp866':     0x65,
    'cp850':     0x37,
    'cp874':     0x7c,
    'iso8859-9': 0x88,
    'cp1250':    0xc8,
    'cp1251':    0xc9,
    'cp1252':    0x59,
    'cp1253':    0xcb,
    'cp1254':    0xca,
    'cp1257':    0xcc,
    'shift_jis': 0x7b,
}


class Encoding(object):
    '''Adapter between an encoding (a name known to the codecs module or a
    codecs.CodecInfo) and the table.

    Without an encoding the text is encoded as UTF-8 and the header advertises ANSI.'''

    def __init__(self, encoding=None):
        self.codec = codecs.lookup(encoding) if isinstance(encoding, str) else encoding

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.name})>'

    @property
    def name(self):
        return self.codec.name if self.codec is not None else None

    @property
    def code_page(self):
        code_page = CODE_PAGES.get(self.name, DEFAULT_CODE_PAGE)
        logger.debug('encoding %s maps to code page 0x%02x', self.name, code_page)

        return code_page

    def _get_codec(self):
        return self.codec if self.codec is not None else codecs.lookup(DEFAULT_TEXT_ENCODING)

    def decode(self, raw: bytes) -> str:
        return self._get_codec().decode(raw)[0]

    def encode(self, text: str) -> bytes:
        return self._get_codec().encode(text)[0]

    def truncate(self, text: str, size: int) -> str:
        '''Cut the text so that its encoded form is at most size bytes,
        without leaving half of a multibyte character.'''
        raw = self.encode(text)
        if len(raw) <= size:
            return text

        return self._get_codec().decode(raw[:size], 'ignore')[0]

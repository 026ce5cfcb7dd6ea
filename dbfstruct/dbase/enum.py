from enum import Enum


HEADER_SIZE      = 0x20
DESCRIPTOR_SIZE  = 0x20
FIELD_NAME_SIZE  = 0x0b  # ten usable bytes plus the NUL terminator
FIELD_NAME_MAX   = FIELD_NAME_SIZE - 1
MAX_FIELD_LENGTH = 0xff
MAX_RECORD_LENGTH = 0xffff
MAX_HEADER_LENGTH = 0xffff

NO_MEMO_SIGNATURE = 0x03
MEMO_SIGNATURE    = 0x83

END_OF_FIELD_NAME = 0x00
END_OF_HEADER     = 0x0d
END_OF_FILE       = 0x1a

YEAR_OFFSET = 1900


class FieldType(Enum):
    '''The one-character tag at offset 11 of a field descriptor.'''
    CHARACTER = b'C'
    NUMERIC   = b'N'
    FLOAT     = b'F'
    LOGICAL   = b'L'
    DATE      = b'D'


class DeletionFlag(Enum):
    '''First byte of each record'''
    VALID   = b' '
    DELETED = b'*'

class DBFException(Exception):
    '''Base class to extend in order to throw exception in dbfstruct.

    It takes an optional argument that represents the chain of the layer that
    caused the exception (i.e. the names of the fields traversed while unpacking).
    '''

    def __init__(self, message='', chain=None):
        self.message = message
        self.chain = chain if chain is not None else []
        super().__init__(message)

    def __str__(self):
        if not self.chain:
            return self.message

        return '%s (at %s)' % (self.message, '.'.join(str(_) for _ in self.chain))


class UnpackException(DBFException):
    '''The data doesn't respect the format.'''
    pass


class MagicException(UnpackException):
    pass


class SizeMismatchException(UnpackException):
    pass


class EndOfFieldMarkerException(UnpackException):
    pass


class SchemaException(DBFException):
    '''The columns of a table cannot be changed this way.'''
    pass


class SchemaLockedException(SchemaException):
    pass


class DuplicateFieldException(SchemaException):
    pass


class TooManyFieldsException(SchemaException):
    '''The header length doesn't fit its 16 bits anymore.'''
    pass


class UsageException(DBFException):
    pass


class NoFieldsException(UsageException):
    pass


class FieldNotFoundException(UsageException):
    pass


class RecordIndexException(UsageException):
    pass


class NotNumericFieldException(UsageException):
    pass


class FieldValueException(UsageException):
    '''The value doesn't fit the field it's written into.'''
    pass


class ConversionException(DBFException):
    pass

from enum import Flag


class Compliant(Flag):
    '''How strictly the data must follow the format while unpacking.

    With NONE whatever is not understood is logged and skipped; INHERIT
    means that the level is taken from the father too.'''
    NONE    = 0
    ENUM    = 1 << 0  # an unknown value of an enumerated field is an error
    MAGIC   = 1 << 1  # a wrong marker is an error
    INHERIT = 1 << 2
    STRICT  = ENUM | MAGIC

"""
# dbfstruct: dBase tables as python objects.

A file format is described declaratively: a Chunk is a class whose attributes
are fields, each field being a view over a range of bytes of a buffer shared
by the whole format (the "backend").

The main operations on a format and its components are

 1. unpack(): check that the binary data respects the format, raising an
    exception that indicates the chain of fields that failed otherwise.

 2. relayout(): a recursive layout "negotiation" between a component and its
    subcomponents so that each one knows its offset and its size.

 3. init(): write the default values into the backend.

Since the fields read and write directly the backend, there is no explicit
packing: the bytes of the backend are the packed format.

The dBase specific part lives in dbfstruct.dbase, the entry point being
dbfstruct.dbase.table.DBFTable.
"""

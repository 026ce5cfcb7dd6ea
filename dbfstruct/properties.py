import logging


def get_root_from_chunk(instance):
    return get_instance_from_chunk(instance, condition=lambda x: x.father is None)


def get_instance_from_chunk(instance, condition):
    while not condition(instance):
        instance = instance.father

    return instance


class Dependency:
    '''This makes the relation between fields possible.

    In practice this class allows to write something like

        class Simple(Chunk):
            count = fields.StructField('I')
            items = fields.ArrayField(Item, n=Dependency('.count'))

    and have the number of elements of the field named 'items' read from the
    field named 'count' at unpacking time.

    The syntax for the expression is inspired from module resolution:

     - '.' as first char indicates we refer to a field at the same level
     - otherwise the resolution starts from the root chunk
    '''
    def __init__(self, expression):
        self.expression = expression
        self.logger = logging.getLogger(__name__)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        self.logger.debug('trying to resolve \'%s\' for \'%s\'', self.expression, instance.__class__.__name__)

        fields_path = self.expression.split('.')
        # '.count'.split(".") -> ['', 'count']
        # 'header.count'.split(".") -> ['header', 'count']

        if fields_path[0] == '':
            field = instance.father
            fields_path = fields_path[1:]
        else:
            field = get_root_from_chunk(instance)

        for component_name in fields_path:
            field = getattr(field, component_name)

        self.logger.debug(' resolved as field %s', field.__class__.__name__)

        return field

    def resolve(self, instance):
        '''With this method we resolve the attribute with respect to the instance
        passed as argument.'''
        return self.resolve_field(instance).value

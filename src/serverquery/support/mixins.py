import threading

# pairs of objects being compared on this thread, to detect reference cycles
_comparing = threading.local()


def quote(val):
    """ single quotes str(val), leaving None bare """
    return 'None' if val is None else "'%s'" % (val,)


class StringerMixin:
    """ str() shows the class name and the instance attributes in key order """

    def __str__(self):
        fields = ', '.join("'%s': %s" % (key, quote(value)) for key, value in sorted(vars(self).items()))
        return '%s:{%s}' % (type(self).__name__, fields)


class CommonEqualityMixin:
    """
    Equality by class and instance attributes, for value objects such as records and command arguments.
    Such objects are mutable and so are not hashable.
    """

    def __eq__(self, other):
        if not isinstance(other, self.__class__) or not hasattr(other, '__dict__'):
            return False
        pairs = getattr(_comparing, 'pairs', None)
        if pairs is None:
            pairs = _comparing.pairs = set()
        pair = (id(self), id(other))
        if pair in pairs:
            raise ValueError("recursive comparison of %s" % type(self).__name__)
        pairs.add(pair)
        try:
            return vars(self) == vars(other)
        finally:
            pairs.discard(pair)

    def __ne__(self, other):
        return not self == other

    __hash__ = None

"""
Decodes ServerQuery response lines into typed records.

A response line holds one or more records separated by '|'. Each record is a list of space separated fields,
each field either ``key=value`` or a bare ``key`` flag. Keys and values are escape encoded.

Typed targets are subclasses of Record that declare their fields explicitly::

    class Version(Record):
        fields = (
            Field('version'),
            Field('build', kind=int),
            Field('platform'),
        )

A Record instance is a singular target, a RecordList a collection target.
"""
import re
from datetime import datetime, timezone

from serverquery.codecs import decode
from serverquery.support.mixins import CommonEqualityMixin, StringerMixin

RECORD_SEPARATOR = '|'
FIELD_SEPARATOR = ' '
KEY_VALUE_SEPARATOR = '='

# keys whose value is a comma separated list of integers
INT_LIST_KEYS = frozenset(['client_servergroups'])

_integer = re.compile(r'^[+-]?\d+$')


class InvalidResponseError(ValueError):
    """ The response does not have the shape expected by the decode target. """

    def __init__(self, msg, lines=None):
        super().__init__("%s: %r" % (msg, lines) if lines is not None else msg)
        self.lines = lines


class DecodeError(ValueError):
    """ A value could not be converted to the type of the field receiving it. """


def parse_value(key, value):
    """
    Converts a decoded value to an int when the whole value is an integer.
    >>> parse_value('build', '1455547898')
    1455547898
    >>> parse_value('version', '3.0.12.2')
    '3.0.12.2'
    >>> parse_value('client_servergroups', '6,8')
    [6, 8]
    """
    if _integer.match(value):
        return int(value)
    if key in INT_LIST_KEYS:
        try:
            return [int(group) for group in value.split(',')]
        except ValueError as e:
            raise DecodeError("decode server group %r: %s" % (value, e)) from e
    return value


def parse_fields(text):
    """
    Parses one record into a dict. Flags (fields without '=') map to the empty string.
    """
    result = {}
    for field in text.split(FIELD_SEPARATOR):
        if not field:
            continue
        key, sep, value = field.partition(KEY_VALUE_SEPARATOR)
        key = decode(key)
        result[key] = parse_value(key, decode(value)) if sep else ''
    return result


def parse_records(line):
    """
    Splits a response line into records.
    >>> parse_records('id=1 name=a|id=2 flag')
    [{'id': 1, 'name': 'a'}, {'id': 2, 'flag': ''}]
    """
    return [parse_fields(part) for part in line.split(RECORD_SEPARATOR)]


def _coerce_str(value):
    if isinstance(value, list):
        return ','.join(str(v) for v in value)
    return str(value)


def _coerce_int(value):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if value == '':
        return 0
    return int(value)


def _coerce_float(value):
    if value == '':
        return 0.0
    return float(value)


_true_values = frozenset(['1', 't', 'true'])
_false_values = frozenset(['', '0', 'f', 'false'])


def _coerce_bool(value):
    if isinstance(value, int):
        return value != 0
    lowered = str(value).lower()
    if lowered in _true_values:
        return True
    if lowered in _false_values:
        return False
    raise ValueError("not a boolean")


def _coerce_timestamp(value):
    """ epoch seconds to an aware datetime. Zero means unset. """
    seconds = _coerce_int(value)
    if seconds <= 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def _coerce_int_list(value):
    if isinstance(value, list):
        return value
    if isinstance(value, int):
        return [value]
    if value == '':
        return []
    return [int(v) for v in value.split(',')]


class Timestamp:
    """ Field kind for epoch-seconds values. Decodes to a datetime in UTC, or None when unset. """


class IntList:
    """ Field kind for comma separated integer lists. """


coercions = {
    str: _coerce_str,
    int: _coerce_int,
    float: _coerce_float,
    bool: _coerce_bool,
    Timestamp: _coerce_timestamp,
    IntList: _coerce_int_list,
}

# factories for the value of a field whose key is absent
defaults = {
    str: str,
    int: int,
    float: float,
    bool: bool,
    IntList: list,
}


class Field:
    """
    Describes how a key in a record maps to an attribute.
    :param attr:    the attribute name on the record
    :param key:     the protocol key. Defaults to the attribute name.
    :param kind:    one of the types in coercions, or a Record subclass for a nested group of properties
                    that share the flat record.
    :param default: the value when the key is absent
    """

    def __init__(self, attr, key=None, kind=str, default=None):
        self.attr = attr
        self.key = (key or attr).lower()
        self.kind = kind
        self.default = default

    def make_default(self):
        if self.default is not None:
            return self.default
        factory = defaults.get(self.kind)
        return factory() if factory else None

    @property
    def nested(self):
        return isinstance(self.kind, type) and issubclass(self.kind, Record)

    def __repr__(self):
        return "Field(%r, key=%r, kind=%s)" % (self.attr, self.key, getattr(self.kind, '__name__', self.kind))


class Record(CommonEqualityMixin, StringerMixin):
    """
    Base class for typed decode targets. Subclasses list their Field descriptors in `fields`.
    Keys are matched case insensitively. Unknown keys are ignored.
    """
    fields = ()

    def __init__(self, **values):
        for field in self.fields:
            setattr(self, field.attr, values.pop(field.attr) if field.attr in values else field.make_default())
        if values:
            raise TypeError("unknown fields for %s: %s" % (type(self).__name__, ', '.join(sorted(values))))

    @classmethod
    def keys(cls):
        """ all protocol keys used by this record, including those of nested groups """
        result = set()
        for field in cls.fields:
            if field.nested:
                result.update(field.kind.keys())
            else:
                result.add(field.key)
        return result

    def populate(self, data: dict):
        """
        Assigns the values in data to the declared fields.
        :param data: mapping from key to parsed value, as returned by parse_fields()
        :return: self
        """
        data = {k.lower(): v for k, v in data.items()}
        for field in self.fields:
            if field.nested:
                setattr(self, field.attr, field.kind.from_flat(data))
            elif field.key in data:
                setattr(self, field.attr, self._coerce(field, data[field.key]))
        return self

    @classmethod
    def from_flat(cls, data):
        """ decodes a nested group, which is None when none of its keys are present """
        if not cls.keys().intersection(data):
            return None
        return cls().populate(data)

    def _coerce(self, field, value):
        try:
            return coercions[field.kind](value)
        except (TypeError, ValueError) as e:
            raise DecodeError("cannot decode %r into %s.%s (%s)" %
                              (value, type(self).__name__, field.attr, field.kind.__name__)) from e


class RecordList(list):
    """
    A collection decode target. Each record in the response becomes one element of record_type.
    """

    def __init__(self, record_type, iterable=()):
        super().__init__(iterable)
        self.record_type = record_type


def decode_response(lines, target):
    """
    Decodes the data lines of a response into target.
    :param lines: the data lines. Exactly one line is expected.
    :param target: a Record instance (exactly one record expected) or RecordList (one element per record).
    :return: the target
    """
    if len(lines) > 1:
        raise InvalidResponseError("too many lines", lines)
    if not lines:
        raise InvalidResponseError("no lines", lines)

    records = parse_records(lines[0])
    if isinstance(target, RecordList):
        for data in records:
            target.append(target.record_type().populate(data))
        return target
    if isinstance(target, Record):
        if len(records) > 1:
            raise InvalidResponseError("expected one record, got %d" % len(records), lines)
        return target.populate(records[0])
    raise TypeError("unsupported decode target %r" % (target,))

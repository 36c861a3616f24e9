from serverquery.codecs import COMMAND_TERMINATOR, encode
from serverquery.support.mixins import CommonEqualityMixin


class Arg(CommonEqualityMixin):
    """
    A command argument. A list or tuple value is sent as the same key repeated for each item, separated by '|'.
    """

    def __init__(self, key, value):
        self.key = _checked_token(key, "argument key")
        self.value = value

    def __str__(self):
        values = self.value if isinstance(self.value, (list, tuple)) else (self.value,)
        return '|'.join('%s=%s' % (self.key, encode(_format_value(v))) for v in values)

    def __repr__(self):
        return "Arg(%r, %r)" % (self.key, self.value)


def _checked_token(token, kind):
    """ a name, key or option must stay a single word on a single line """
    if not token or any(c.isspace() or not c.isprintable() or c in '=|' for c in token):
        raise ValueError("invalid %s %r" % (kind, token))
    return token


def _format_value(value):
    if isinstance(value, bool):
        return '1' if value else '0'
    return str(value)


class Command:
    """
    A ServerQuery command: a name, arguments, options and an optional decode target for the response.
    The builder methods return the command so they can be chained::

        Command('use').with_args(Arg('sid', 1))
        Command('version').with_response(Version())
    """

    def __init__(self, name: str):
        self.name = _checked_token(name, "command name")
        self.args = []
        self.options = []
        self.response = None

    def with_args(self, *args):
        """
        :param args: Arg instances, or (key, value) tuples
        """
        self.args.extend(a if isinstance(a, Arg) else Arg(*a) for a in args)
        return self

    def with_options(self, *options):
        """ adds options, such as '-uid'. The leading dash is added if missing. """
        for option in options:
            _checked_token(option, "option")
            self.options.append(option if option.startswith('-') else '-' + option)
        return self

    def with_response(self, target):
        """
        :param target: a Record or RecordList that receives the decoded response
        """
        self.response = target
        return self

    def __str__(self):
        return ' '.join([self.name] + [str(a) for a in self.args] + self.options)

    def __repr__(self):
        return "Command(%r)" % str(self)

    def to_wire(self) -> bytes:
        return (str(self) + COMMAND_TERMINATOR).encode('utf-8')

"""
Escape encoding for the ServerQuery text protocol.

Field values may not contain protocol delimiters (space, pipe) or control characters on the wire. Each such
character is replaced by a two character escape sequence.
"""

# the order matters when encoding: backslash first so that the escapes inserted later are not escaped again
ESCAPES = (
    ('\\', '\\\\'),
    ('/', '\\/'),
    (' ', '\\s'),
    ('|', '\\p'),
    ('\a', '\\a'),
    ('\b', '\\b'),
    ('\f', '\\f'),
    ('\n', '\\n'),
    ('\r', '\\r'),
    ('\t', '\\t'),
    ('\v', '\\v'),
)

_unescapes = {escaped[1]: raw for raw, escaped in ESCAPES}

# terminator used for lines sent to the server
COMMAND_TERMINATOR = '\n'

# the server terminates its lines with "\n\r"
RESPONSE_TERMINATOR = '\n\r'


def encode(raw: str) -> str:
    """
    Escapes the special characters in a value so it can be sent as a field value.
    >>> encode('hello world|1')
    'hello\\\\sworld\\\\p1'
    >>> encode('plain')
    'plain'
    """
    for char, escaped in ESCAPES:
        raw = raw.replace(char, escaped)
    return raw


def decode(wire: str) -> str:
    """
    Reverses encode(). Unknown escape sequences are left as they are.
    >>> decode('lorem\\\\sipsum')
    'lorem ipsum'
    """
    if '\\' not in wire:
        return wire
    result = []
    i = 0
    length = len(wire)
    while i < length:
        c = wire[i]
        if c == '\\' and i + 1 < length:
            raw = _unescapes.get(wire[i + 1])
            if raw is not None:
                result.append(raw)
                i += 2
                continue
        result.append(c)
        i += 1
    return ''.join(result)

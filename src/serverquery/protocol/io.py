"""
Line framing for the ServerQuery stream.
"""
import logging

logger = logging.getLogger(__name__)


class UnknownProtocolError(IOError):
    """
    Error raised when the stream doesn't start with the expected connect header.
    """


class LineTooLongError(IOError):
    """
    Raised when a line from the server exceeds the maximum parse buffer size.
    """


class LineReader:
    """
    Reads decoded text lines from a binary stream.

    The server terminates lines with "\\n\\r", so the carriage return shows up at the start of the
    following line. Carriage returns are stripped from both ends and blank lines are skipped.
    """

    def __init__(self, stream, max_line_size=None, encoding='utf-8'):
        """
        :param stream: a file-like binary stream providing readline()
        :param max_line_size: the largest line accepted, or None for no limit.
        """
        self.stream = stream
        self.max_line_size = max_line_size
        self.encoding = encoding

    def read_line(self) -> str:
        """
        Blocks until the next non-blank line is available.
        :raises EOFError: when the stream ends
        :raises LineTooLongError: when the line is larger than max_line_size
        """
        while True:
            line = self._read_raw()
            text = line.decode(self.encoding, errors='replace').strip('\r\n')
            if text:
                return text

    def _read_raw(self):
        limit = self.max_line_size
        # room for the carriage return left over from the previous line and the newline
        data = self.stream.readline(limit + 2) if limit else self.stream.readline()
        if not data:
            raise EOFError("unexpected end of stream")
        if limit and len(data.strip(b'\r\n')) > limit:
            raise LineTooLongError("line exceeds %d bytes" % limit)
        return data


def read_connect_header(reader: LineReader, expected: str):
    """
    Performs the connect handshake: the first line must be the connect header and the second line is a
    welcome banner that is discarded.
    :return: the banner
    """
    header = reader.read_line()
    if header != expected:
        raise UnknownProtocolError("invalid connection header %r" % header)
    banner = reader.read_line()
    logger.debug("connected to %s: %s" % (header, banner))
    return banner

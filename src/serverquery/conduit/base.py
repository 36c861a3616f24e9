from abc import abstractmethod
from io import IOBase


class Conduit:
    """
    The byte stream to a ServerQuery endpoint, whatever transport carries it.

    The dispatcher reads lines from `input` on its read loop and writes commands to `output` on its write loop;
    nothing else touches the streams.
    """

    @property
    @abstractmethod
    def target(self):
        """ the transport object underneath, for diagnostics """
        raise NotImplementedError

    @property
    @abstractmethod
    def input(self) -> IOBase:
        """ the binary stream of server output. Supports readline(limit). """
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self) -> IOBase:
        """ the binary stream commands are written and flushed to """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def set_timeout(self, timeout):
        """
        Applies a deadline to blocking reads and writes on the transport.
        :param timeout: seconds, or None to block indefinitely.
        """
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Closes the transport and both streams. A read blocked on the read loop must return or raise.
        """
        raise NotImplementedError


class DefaultConduit(Conduit):
    """
    A conduit over existing file objects, such as an in-memory buffer or a pipe.
    Timeouts are not supported and set_timeout() does nothing.
    :param read: the input stream
    :param write: the output stream. Defaults to the input stream for a single read/write file.
    """

    def __init__(self, read, write=None):
        self._input = read
        self._output = read if write is None else write
        self._closed = False

    @property
    def target(self):
        return self._input

    @property
    def input(self):
        return self._input

    @property
    def output(self):
        return self._output

    @property
    def open(self):
        return not self._closed

    def set_timeout(self, timeout):
        pass

    def close(self):
        self._closed = True
        self._output.close()
        if self._input is not self._output:
            self._input.close()

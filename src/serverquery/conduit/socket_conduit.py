import socket

from serverquery.conduit import base


class SocketConduit(base.Conduit):
    """
    A conduit over a connected TCP socket, the plain ServerQuery transport.
    :param sock: the connected socket. The conduit owns it and closes it.
    :param buffering: the read buffer size, -1 for the default
    """

    def __init__(self, sock: socket.socket, buffering=-1):
        self.sock = sock
        self.reader = sock.makefile('rb', buffering=buffering)
        self.writer = sock.makefile('wb')

    @property
    def target(self):
        return self.sock

    @property
    def input(self):
        return self.reader

    @property
    def output(self):
        return self.writer

    @property
    def open(self) -> bool:
        return self.sock.fileno() != -1

    def set_timeout(self, timeout):
        self.sock.settimeout(timeout)

    def close(self):
        # a reader blocked in recv() only returns once the socket is shut down
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            self.writer.close()
        except OSError:
            pass    # buffered bytes cannot be flushed to a dead peer
        finally:
            self.reader.close()
            self.sock.close()

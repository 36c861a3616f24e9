import logging
import socket

from serverquery.conduit.base import Conduit
from serverquery.conduit.socket_conduit import SocketConduit
from serverquery.connector.base import Connector, ConnectorError, verify_address

logger = logging.getLogger(__name__)

# the default ServerQuery port
DEFAULT_PORT = 10011


class SocketConnector(Connector):
    """
    A connector that communicates with the server over a plain TCP socket.
    """
    default_port = DEFAULT_PORT

    def __init__(self, buffering=-1, report_errors=True):
        """
        :param buffering the read buffer size passed to the conduit
        :param report_errors log connection failures as warnings rather than debug
        """
        self._buffering = buffering
        self._report_errors = report_errors

    def connect(self, address, timeout) -> Conduit:
        endpoint = verify_address(address, self.default_port)
        try:
            sock = socket.create_connection(endpoint, timeout=timeout)
        except OSError as e:
            method = logger.warning if self._report_errors else logger.debug
            method("error opening socket to %s:%s: %s" % (endpoint + (e,)))
            raise ConnectorError("legacy connection: dial %s:%s" % endpoint) from e
        sock.settimeout(None)
        logger.info("opened socket to %s:%s" % endpoint)
        return SocketConduit(sock, self._buffering)

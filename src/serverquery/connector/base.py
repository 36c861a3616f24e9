import ipaddress
import logging
from abc import abstractmethod

from serverquery.conduit.base import Conduit
from serverquery.config.config import ConfigurationError

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """ Indicates an error condition with a connection. """


class ConnectionNotConnectedError(ConnectorError):
    """ Indicates a connection is in the disconnected state when a connection is required. """


class Connector:
    """ A connector describes how to open a conduit to a ServerQuery endpoint. """

    default_port = None

    @abstractmethod
    def connect(self, address: str, timeout: float) -> Conduit:
        """
        Opens a conduit to address.
        :param address: "host", "host:port" or "[ipv6]:port". The default port is used when none is given.
        :param timeout: the dial timeout in seconds. The returned conduit has no timeout set.
        :raises ConnectorError: if the connection cannot be established
        :raises ConfigurationError: if the address is malformed
        """
        raise NotImplementedError


def verify_address(address, default_port):
    """
    Splits an address into host and port, using default_port when the address has none.
    A literal IPv6 address must be enclosed in square brackets when a port is given.

    >>> verify_address('127.0.0.1', 10011)
    ('127.0.0.1', 10011)
    >>> verify_address('localhost:1234', 10011)
    ('localhost', 1234)
    >>> verify_address('[::1]:1234', 10011)
    ('::1', 1234)
    >>> verify_address('[::1]', 10011)
    ('::1', 10011)
    """
    if address is None:
        raise ConfigurationError("address is required")
    address = address.strip()
    if address.startswith('['):
        end = address.find(']')
        if end < 0:
            raise ConfigurationError("verify address %r: missing ']'" % address)
        host, rest = address[1:end], address[end + 1:]
        if rest and not rest.startswith(':'):
            raise ConfigurationError("verify address %r: unexpected %r after host" % (address, rest))
        port = rest[1:] if rest else None
    elif address.count(':') > 1:
        try:
            ipaddress.IPv6Address(address)
        except ValueError:
            raise ConfigurationError("verify address %r: too many colons" % address) from None
        host, port = address, None
    else:
        host, _, port = address.partition(':')
    if not host:
        raise ConfigurationError("verify address %r: missing host" % address)
    if port is None or port == '':
        return host, default_port
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigurationError("verify address %r: invalid port %r" % (address, port))
    return host, int(port)

import logging
import socket

import paramiko

from serverquery.conduit.base import Conduit
from serverquery.conduit.ssh_conduit import SSHConduit
from serverquery.connector.base import Connector, ConnectorError, verify_address

logger = logging.getLogger(__name__)

# the default ServerQuery port for SSH
DEFAULT_SSH_PORT = 10022


class SSHConnector(Connector):
    """
    A connector that opens a session channel with an attached shell over SSH.
    The server's host key is accepted without verification unless a host key policy is given.
    """
    default_port = DEFAULT_SSH_PORT

    def __init__(self, username=None, password=None, key_filename=None, host_key_policy=None, buffering=-1):
        self.username = username
        self.password = password
        self.key_filename = key_filename
        self.host_key_policy = host_key_policy or paramiko.AutoAddPolicy()
        self._buffering = buffering

    def connect(self, address, timeout) -> Conduit:
        host, port = verify_address(address, self.default_port)
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(self.host_key_policy)
        try:
            client.connect(
                hostname=host,
                port=port,
                username=self.username,
                password=self.password,
                key_filename=self.key_filename,
                timeout=timeout,
                banner_timeout=timeout,
                auth_timeout=timeout,
                allow_agent=False,
                look_for_keys=False,
            )
            channel = client.get_transport().open_session(timeout=timeout)
            channel.invoke_shell()
        except (paramiko.SSHException, socket.error, EOFError) as e:
            logger.warning("error opening ssh connection to %s:%s: %s" % (host, port, e))
            client.close()
            raise ConnectorError("ssh connection: %s:%s" % (host, port)) from e
        logger.info("opened ssh shell to %s:%s" % (host, port))
        return SSHConduit(client, channel, self._buffering)

import logging

import paramiko

from serverquery.conduit import base

logger = logging.getLogger(__name__)


class SSHConduit(base.Conduit):
    """
    A conduit over the shell of an SSH session channel.
    :param client the connected SSH client
    :param channel the session channel with an attached shell
    :param buffering the size of the read buffer
    """

    def __init__(self, client: paramiko.SSHClient, channel: paramiko.Channel, buffering=-1):
        self.client = client
        self.channel = channel
        self.reader = channel.makefile('rb', buffering)
        self.writer = channel.makefile('wb')

    @property
    def open(self) -> bool:
        transport = self.client.get_transport()
        return not self.channel.closed and transport is not None and transport.is_active()

    @property
    def target(self):
        return self.channel

    @property
    def input(self):
        return self.reader

    @property
    def output(self):
        return self.writer

    def set_timeout(self, timeout):
        self.channel.settimeout(timeout)

    def close(self):
        try:
            self.channel.close()
        except (EOFError, OSError, paramiko.SSHException) as e:
            logger.debug("closing ssh channel: %s" % e)
        finally:
            self.client.close()

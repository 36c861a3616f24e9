import copy
import logging

from serverquery.commands import ServerMethods, Version, WhoAmI
from serverquery.config.config import ClientConfig, ConfigurationError
from serverquery.connector.base import ConnectionNotConnectedError, verify_address
from serverquery.connector.socketconn import SocketConnector
from serverquery.connector.sshconn import SSHConnector
from serverquery.protocol.command import Arg, Command
from serverquery.protocol.dispatcher import CommandDispatcher
from serverquery.protocol.notification import CHANNEL_EVENTS

logger = logging.getLogger(__name__)


def connector_for(config: ClientConfig):
    """ creates the connector for the configured transport """
    if config.transport == 'ssh':
        return SSHConnector(config.ssh_username, config.ssh_password, config.ssh_key_filename,
                            buffering=config.initial_buffer_size)
    return SocketConnector(buffering=config.initial_buffer_size)


class Client:
    """
    A ServerQuery client.

    The client is not connected until connect() is called, or the client is entered as a context manager::

        with Client('localhost', ClientConfig(timeout=5)) as client:
            client.login('serveradmin', 'secret')
            print(client.version().version)

    :param address: "host", "host:port" or "[ipv6]:port"
    :param config: the client options, ClientConfig() when not given
    :param connector: overrides the connector chosen from config.transport
    """

    def __init__(self, address, config: ClientConfig = None, connector=None):
        if config is None:
            config = ClientConfig()
        if not isinstance(config, ClientConfig):
            raise ConfigurationError("config must be a ClientConfig, not %r" % (config,))
        self.config = config.validate()
        self.connector = connector or connector_for(config)
        self.address = address
        verify_address(address, self.connector.default_port)
        self.dispatcher = None
        self.server = ServerMethods(self)

    def connect(self):
        """
        Opens the connection and performs the connect handshake.
        :raises ConnectorError: when the server cannot be reached or the handshake fails
        :raises UnknownProtocolError: when the server sends an unexpected connect header
        """
        if self.dispatcher is not None and self.dispatcher.open:
            return self
        conduit = self.connector.connect(self.address, self.config.timeout)
        dispatcher = CommandDispatcher(conduit, self.config)
        dispatcher.events.add(self._state_changed)
        dispatcher.start()
        self.dispatcher = dispatcher
        return self

    def _state_changed(self, event):
        logger.info("%s: %s -> %s" % (self.address, event.old.value, event.new.value))

    @property
    def connected(self) -> bool:
        return self.dispatcher is not None and self.dispatcher.open

    @property
    def notifications(self):
        """ the NotificationQueue of the current connection """
        self._check_connected()
        return self.dispatcher.notifications

    @property
    def events(self):
        """ the ConnectionStateEvent source of the current connection """
        self._check_connected()
        return self.dispatcher.events

    def _check_connected(self):
        if self.dispatcher is None:
            raise ConnectionNotConnectedError("not connected")

    def execute(self, command: Command, timeout=None):
        """
        Executes a command and returns the data lines of the response. When the command has a response
        target the response is decoded into it.
        """
        self._check_connected()
        return self.dispatcher.execute(command, timeout)

    def exec(self, name, timeout=None):
        """ executes a command without arguments """
        return self.execute(Command(name), timeout)

    def login(self, user, password):
        self.execute(Command('login').with_args(
            Arg('client_login_name', user),
            Arg('client_login_password', password)))

    def logout(self):
        """ deselects the virtual server and logs out """
        self.exec('logout')

    def version(self) -> Version:
        return self._decoded(Command('version'), Version())

    def whoami(self) -> WhoAmI:
        return self._decoded(Command('whoami'), WhoAmI())

    def use(self, server_id):
        """ selects a virtual server by id """
        self.execute(Command('use').with_args(Arg('sid', server_id)))

    def use_port(self, port):
        """ selects a virtual server by port """
        self.execute(Command('use').with_args(Arg('port', port)))

    def notify_register(self, event, channel_id=None):
        """
        Registers for notifications of an event type.
        :param event: one of the *_EVENTS constants in serverquery.protocol.notification
        :param channel_id: only for CHANNEL_EVENTS. 0, the default, means all channels.
        """
        command = Command('servernotifyregister').with_args(Arg('event', event))
        if channel_id is None and event == CHANNEL_EVENTS:
            channel_id = 0
        if channel_id is not None:
            command.with_args(Arg('id', channel_id))
        self.execute(command)

    def notify_unregister(self):
        """ unregisters all notifications """
        self.exec('servernotifyunregister')

    def _decoded(self, command, target):
        self.execute(command.with_response(target))
        return target

    def close(self):
        """ sends quit and closes the connection. Closing a closed client has no effect. """
        if self.dispatcher is not None:
            self.dispatcher.close()

    def __enter__(self):
        return self.connect()

    def __exit__(self, *exc):
        self.close()


def connect(address, config: ClientConfig = None, **options) -> Client:
    """
    Creates and connects a client.
    :param options: ClientConfig attributes overriding those in config
    :raises ConfigurationError: for an unknown option or an option given as None
    """
    config = copy.copy(config) if config is not None else ClientConfig()
    for name, value in options.items():
        if name not in vars(config):
            raise ConfigurationError("unknown option %r" % name)
        if value is None:
            raise ConfigurationError("option %r is None" % name)
        setattr(config, name, value)
    return Client(address, config).connect()

import logging
import os

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

logger = logging.getLogger(__name__)

# The default extension for configuration files
config_extension = '.cfg'

TRANSPORTS = ('tcp', 'ssh')

# schema used to validate configuration files
configspec = """
[serverquery]
timeout = float(min=0, default=10.0)
keepalive_interval = float(min=0, default=200.0)
notification_buffer = integer(min=1, default=5)
initial_buffer_size = integer(min=1, default=4096)
max_buffer_size = integer(min=1, default=10485760)
connect_header = string(min=1, default='TS3')
transport = option('tcp', 'ssh', default='tcp')
ssh_username = string(default=None)
ssh_password = string(default=None)
ssh_key_filename = string(default=None)
""".splitlines()


class ConfigurationError(ValueError):
    """ A configuration option or address is invalid. """


class ClientConfig:
    """
    The options for a ServerQuery client.

    :param timeout:             dial and handshake timeout, and the default per-command timeout, in seconds.
    :param keepalive_interval:  seconds of write inactivity before a keep-alive is sent. Must be shorter than the
                                server's idle timeout.
    :param notification_buffer: the capacity of the notification queue.
    :param initial_buffer_size: the read buffer size for the connection.
    :param max_buffer_size:     the longest line accepted from the server. The larger of this and
                                initial_buffer_size is used.
    :param connect_header:      the first line the server must send.
    :param transport:           'tcp' or 'ssh'.
    """

    def __init__(self, timeout=10.0, keepalive_interval=200.0, notification_buffer=5,
                 initial_buffer_size=4096, max_buffer_size=10 << 20, connect_header='TS3',
                 transport='tcp', ssh_username=None, ssh_password=None, ssh_key_filename=None):
        self.timeout = timeout
        self.keepalive_interval = keepalive_interval
        self.notification_buffer = notification_buffer
        self.initial_buffer_size = initial_buffer_size
        self.max_buffer_size = max_buffer_size
        self.connect_header = connect_header
        self.transport = transport
        self.ssh_username = ssh_username
        self.ssh_password = ssh_password
        self.ssh_key_filename = ssh_key_filename

    @property
    def max_line_size(self):
        return max(self.initial_buffer_size, self.max_buffer_size)

    def validate(self):
        """
        Checks all options.
        :raises ConfigurationError: for the first invalid option
        :return: self
        """
        for name in ('timeout', 'keepalive_interval'):
            _check_positive(name, getattr(self, name), (int, float))
        for name in ('notification_buffer', 'initial_buffer_size', 'max_buffer_size'):
            _check_positive(name, getattr(self, name), (int,))
        if not isinstance(self.connect_header, str) or not self.connect_header:
            raise ConfigurationError("connect_header must be a non-empty string")
        if self.transport not in TRANSPORTS:
            raise ConfigurationError("transport must be one of %s, not %r" % (', '.join(TRANSPORTS), self.transport))
        return self

    def __repr__(self):
        shown = {k: v for k, v in self.__dict__.items() if k != 'ssh_password'}
        return "ClientConfig(%s)" % ', '.join('%s=%r' % kv for kv in sorted(shown.items()))


def _check_positive(name, value, types):
    if value is None:
        raise ConfigurationError("%s must be set" % name)
    if isinstance(value, bool) or not isinstance(value, types) or value <= 0:
        raise ConfigurationError("%s must be a positive %s, not %r" % (name, types[-1].__name__, value))


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, configspec=configspec, file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj(configspec=configspec)
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def load_config(file, must_exist=True) -> ConfigObj:
    """
    Loads and validates a configuration file against the configspec. Missing values are filled with defaults.
    """
    config = load_config_file_base(file, must_exist)
    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        problems = []
        for sections, key, error in flatten_errors(config, result):
            problems.append('%s: %s' % ('.'.join(sections + [key or '']), error or 'missing'))
        raise ConfigurationError("the config file %s failed validation: %s" % (file, '; '.join(problems)))
    return config


def apply_conf(conf: Section, target):
    """
    Applies the attributes contained in a configuration section to a target object.
    It does this by iterating over the items in the configuration and setting any attributes with the same name.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)


def load_client_config(file, must_exist=True, section='serverquery') -> ClientConfig:
    """
    Reads a ClientConfig from the named section of a configuration file.
    """
    conf = load_config(file, must_exist)
    config = ClientConfig()
    if section in conf:
        apply_conf(conf[section], config)
    logger.debug("loaded %r from %s" % (config, file))
    return config.validate()

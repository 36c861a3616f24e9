"""
Multiplexes command/response transactions and asynchronous notifications over a single ServerQuery connection.

Two background threads own the conduit: the read loop is its only reader and the write loop its only writer.
Callers of execute() are served one at a time, in the order they arrived. Each command handed to the write loop is
numbered, and the read loop numbers each trailer it sees, so a response that arrives after its caller gave up is
recognised and discarded instead of being delivered to the next caller.
"""
import enum
import logging
import re
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from queue import Empty, Queue

from serverquery.codecs import decode
from serverquery.config.config import ClientConfig
from serverquery.connector.base import ConnectionNotConnectedError, ConnectorError
from serverquery.protocol.command import Command
from serverquery.protocol.io import LineReader, UnknownProtocolError, read_connect_header
from serverquery.protocol.notification import NotificationQueue, decode_notification, is_notification
from serverquery.protocol.response import decode_response, parse_fields
from serverquery.support.events import EventSource
from serverquery.support.locks import TicketLock

logger = logging.getLogger(__name__)

TRAILER_OK = 'error id=0 msg=ok'

_trailer = re.compile(r'^error id=(\d+) msg=([^ ]+)(.*)')

# the server ignores a blank line, but it resets the idle timer
KEEPALIVE = b' \n'

QUIT = Command('quit')


class ConnectionState(enum.Enum):
    connecting = 'connecting'
    open = 'open'
    closing = 'closing'
    closed_clean = 'closed-clean'
    closed_fatal = 'closed-fatal'


class ConnectionStateEvent:
    """ Fired by the dispatcher on each state transition. """

    def __init__(self, dispatcher, old, new, cause=None):
        self.dispatcher = dispatcher
        self.old = old
        self.new = new
        self.cause = cause

    def __repr__(self):
        return "ConnectionStateEvent(%s -> %s)" % (self.old.value, self.new.value)


class QueryError(Exception):
    """
    The server answered a command with a non-zero error id.
    :param error_id: the numeric error code
    :param message: the decoded error message
    :param details: any further key/value pairs of the trailer, such as extra_msg or failed_permid
    """

    def __init__(self, error_id, message, details=None):
        super().__init__("%s (%d)" % (message, error_id))
        self.error_id = error_id
        self.message = message
        self.details = details or {}

    @classmethod
    def from_trailer(cls, match):
        return cls(int(match.group(1)), decode(match.group(2)), parse_fields(match.group(3)))


class CommandTimeoutError(TimeoutError):
    """ No response arrived for a command within its timeout. The connection remains usable. """


class FutureValue(Future):
    """ describes a value that may have not yet been computed. Callers can check if the value has arrived, or chose to
        wait until the value has arrived.
        If an exception is encountered computing the value, it is set."""

    def _value_extractor(self, value):
        """
        The value extractor allows processing of the result to arrive at the
        value returned in `value`.
        """
        return value

    def set_result_or_exception(self, value):
        """sets the result, or the exception when value is an exception"""
        if isinstance(value, BaseException):
            self.set_exception(value)
        else:
            self.set_result(value)

    def value(self, timeout=None):
        """ waits for the result and returns the derived value. """
        return self._value_extractor(self.result(timeout))


class PendingCommand(FutureValue):
    """ The single command awaiting its response, with the sequence number it was sent under. """

    def __init__(self, command: Command, sequence: int):
        super().__init__()
        self.command = command
        self.sequence = sequence

    def __repr__(self):
        return "PendingCommand(%d, %r)" % (self.sequence, self.command.name)


class AsyncLoop:
    """ Continually runs a given function on a background thread.
        Exceptions are logged and posted to a given handler
        The background thread is registered as a daemon.
    """

    def __init__(self, fn=None, args=(), name=None, log=logger):
        """
        :param fn the function to run
        :param args arguments to pass to fn
        """
        self.fn = fn
        self.args = args
        self.name = name
        self.stop_event = threading.Event()
        self.background_thread = None
        self.logger = log

    def start(self):
        if self.background_thread is None:
            t = threading.Thread(target=self._run, name=self.name, daemon=True)
            self.background_thread = t
            t.start()

    def exception_handler(self, e):
        self.logger.exception(e)

    def _run(self):
        """ The processing loop for the background thread.
             Invokes the callable for as long as the stop signal is not received.
        """
        while self.running():
            self._do(self.loop)
        self.logger.debug("%s thread exiting" % (self.name or 'background'))

    def _do(self, callme):
        """ runs a function and captures any exceptions """
        try:
            time.sleep(0)
            callme()
        except Exception as e:
            time.sleep(0)
            self.exception_handler(e)

    def loop(self):
        self.fn(*self.args)

    def running(self):
        return not self.stop_event.is_set()

    def alive(self):
        thread = self.background_thread
        return thread is not None and thread.is_alive()

    def signal_stop(self):
        """ asks the loop to exit after the current iteration, without waiting """
        self.stop_event.set()

    def join(self, timeout=None):
        thread = self.background_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def stop(self, timeout=None):
        self.signal_stop()
        self.join(timeout)


class CommandDispatcher:
    """
    Owns an open conduit to a ServerQuery server.

    start() performs the connect handshake and starts the read and write loops. execute() sends a command and
    waits for its response. Notifications are placed on `notifications` as they arrive, and dropped when it is full.
    State transitions are announced through `events`.

    :param conduit: the open conduit. The dispatcher closes it.
    :param config: a validated ClientConfig
    """

    def __init__(self, conduit, config: ClientConfig = None):
        self.config = config or ClientConfig()
        self.notifications = NotificationQueue(self.config.notification_buffer)
        self.events = EventSource()
        self._conduit = conduit
        self._reader = LineReader(conduit.input, self.config.max_line_size)
        self._state = ConnectionState.connecting
        self._error = None
        self._lock = threading.Lock()       # guards state, the pending slot and the sequence counters
        self._close_lock = threading.Lock()
        self._callers = TicketLock()
        self._pending = None
        self._sent = 0
        self._completed = 0
        self._outgoing = Queue()
        self._lines = []                    # partial response, only touched by the read loop
        self._last_write = time.monotonic()
        self._read_loop = AsyncLoop(self._read_next, name='serverquery-read')
        self._read_loop.exception_handler = self._read_failed
        self._write_loop = AsyncLoop(self._write_next, name='serverquery-write')
        self._write_loop.exception_handler = self._write_failed

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def open(self) -> bool:
        return self._state is ConnectionState.open

    def start(self):
        """
        Reads the connect header and banner, then starts the read and write loops.
        :raises UnknownProtocolError: if the connect header is not the expected one
        :raises ConnectorError: if the stream fails or ends during the handshake
        """
        try:
            self._conduit.set_timeout(self.config.timeout)
            read_connect_header(self._reader, self.config.connect_header)
            self._conduit.set_timeout(None)
        except UnknownProtocolError as e:
            self._abort_start(e)
            raise
        except (EOFError, OSError) as e:
            self._abort_start(e)
            raise ConnectorError("connect handshake: %s" % (e or type(e).__name__)) from e

        self._last_write = time.monotonic()
        self._transition(ConnectionState.open)
        self._read_loop.start()
        self._write_loop.start()

    def _abort_start(self, cause):
        self._conduit.close()
        self.notifications.close()
        self._transition(ConnectionState.closed_fatal, cause)

    def execute(self, command: Command, timeout=None):
        """
        Sends a command and waits for its response. Concurrent callers are served in the order they called.
        :param timeout: seconds to wait for the response. Defaults to the configured timeout.
        :return: the data lines of the response. When the command has a response target it is decoded into it.
        :raises ConnectionNotConnectedError: when the connection is not open or fails while waiting
        :raises QueryError: when the server returns an error
        :raises CommandTimeoutError: when the response did not arrive in time
        :raises InvalidResponseError, DecodeError: when the response does not fit the response target
        """
        payload = command.to_wire()
        timeout = self.config.timeout if timeout is None else timeout
        if not self.open:
            raise self._not_connected()

        with self._callers:
            pending = self._submit(command, payload)
            try:
                lines = pending.value(timeout)
            except FutureTimeoutError:
                if self._abandon(pending):
                    raise CommandTimeoutError("timeout waiting for response to %r after %ss" %
                                              (command.name, timeout)) from None
                lines = pending.value()     # completed while timing out

        if command.response is not None:
            decode_response(lines, command.response)
        return lines

    def _submit(self, command, payload) -> PendingCommand:
        with self._lock:
            if self._state is not ConnectionState.open:
                raise self._not_connected()
            self._sent += 1
            pending = PendingCommand(command, self._sent)
            self._pending = pending
            self._outgoing.put(payload)
        logger.debug("-> [%d] %s" % (pending.sequence, command.name))
        return pending

    def _abandon(self, pending):
        """ removes a timed out command from the pending slot. False if the read loop already claimed it. """
        with self._lock:
            if self._pending is pending:
                self._pending = None
                return True
            return False

    def _not_connected(self):
        error = ConnectionNotConnectedError("not connected (%s)" % self._state.value)
        error.__cause__ = self._error
        return error

    def _read_next(self):
        line = self._reader.read_line()
        logger.debug("<- %s" % line)
        self._route(line)

    def _route(self, line):
        """ called on the read loop for each line received """
        if line == TRAILER_OK:
            self._complete(self._take_lines())
            return
        match = _trailer.match(line)
        if match:
            lines = self._take_lines()
            self._complete(lines if match.group(1) == '0' else QueryError.from_trailer(match))
            return
        if is_notification(line):
            notification = decode_notification(line)
            if not self.notifications.offer(notification):
                logger.debug("notification queue full, dropped %s" % notification.type)
            return
        self._lines.append(line)

    def _take_lines(self):
        lines = self._lines
        self._lines = []
        return lines

    def _complete(self, result):
        """ hands a response to the waiting caller if the response belongs to it """
        with self._lock:
            self._completed += 1
            sequence = self._completed
            pending = self._pending
            if pending is not None and pending.sequence == sequence:
                self._pending = None
            else:
                pending = None
        if pending is None:
            logger.debug("discarding response %d, no caller is waiting for it" % sequence)
            return
        pending.set_result_or_exception(result)

    def _write_next(self):
        wait = self.config.keepalive_interval - (time.monotonic() - self._last_write)
        try:
            payload = self._outgoing.get(timeout=max(wait, 0))
        except Empty:
            logger.debug("sending keep-alive")
            payload = KEEPALIVE
        if payload is None:
            self._write_loop.signal_stop()
            return
        output = self._conduit.output
        output.write(payload)
        output.flush()
        self._last_write = time.monotonic()

    def _read_failed(self, e):
        self._read_loop.signal_stop()
        self._loop_failed('read', e)

    def _write_failed(self, e):
        self._write_loop.signal_stop()
        self._loop_failed('write', e)

    def _loop_failed(self, loop, e):
        if self._state in (ConnectionState.closing, ConnectionState.closed_clean):
            logger.debug("%s loop finished on close: %r" % (loop, e))
            return
        logger.error("connection %s failed: %r" % (loop, e))
        self._fail(e)

    def _fail(self, cause):
        """ moves to closed-fatal. The waiting caller and all later callers get ConnectionNotConnectedError. """
        with self._lock:
            old = self._state
            if old in (ConnectionState.closed_fatal, ConnectionState.closed_clean):
                return
            self._state = ConnectionState.closed_fatal
            self._error = cause
            pending, self._pending = self._pending, None
        self._fire(old, ConnectionState.closed_fatal, cause)
        if pending is not None:
            pending.set_exception(self._not_connected())
        self._outgoing.put(None)
        self._conduit.close()
        self.notifications.close()

    def close(self, timeout=None):
        """
        Sends quit, closes the conduit and waits for the read and write loops to exit.
        Closing again, or after the connection failed, has no further effect.
        :param timeout: seconds to wait for each loop to exit. Defaults to the configured timeout.
        """
        timeout = self.config.timeout if timeout is None else timeout
        with self._close_lock:
            with self._lock:
                state = self._state
                if state is ConnectionState.open:
                    self._state = ConnectionState.closing
                    self._sent += 1     # quit gets a trailer that nobody claims
                    self._outgoing.put(QUIT.to_wire())
                    self._outgoing.put(None)
            if state is ConnectionState.closed_clean:
                return
            if state is ConnectionState.open:
                self._fire(state, ConnectionState.closing)
                self._write_loop.join(timeout)
                # the server hangs up after quit
                self._read_loop.join(timeout)

            self._conduit.close()
            self._read_loop.stop(timeout)
            self._write_loop.stop(timeout)

            with self._lock:
                pending, self._pending = self._pending, None
                previous = self._state
                if previous is not ConnectionState.closed_fatal:
                    self._state = ConnectionState.closed_clean
            if pending is not None:
                pending.set_exception(self._not_connected())
            self.notifications.close()
            if previous is not ConnectionState.closed_fatal:
                self._fire(previous, ConnectionState.closed_clean)
            logger.info("connection closed (%s)" % self._state.value)

    def _transition(self, new, cause=None):
        with self._lock:
            old = self._state
            self._state = new
        self._fire(old, new, cause)

    def _fire(self, old, new, cause=None):
        if old is not new:
            self.events.fire(ConnectionStateEvent(self, old, new, cause))


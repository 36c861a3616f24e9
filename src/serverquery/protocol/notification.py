"""
Notifications are unsolicited event lines pushed by the server. They are delivered through a bounded queue;
when the queue is full new notifications are dropped so that a slow consumer never stalls command traffic.
"""
import logging
import threading
import time
from collections import deque
from queue import Empty

from serverquery.codecs import decode
from serverquery.support.mixins import CommonEqualityMixin, StringerMixin

logger = logging.getLogger(__name__)

NOTIFY_PREFIX = 'notify'

# events that can be registered with servernotifyregister

# cliententerview, clientleftview, serveredited
SERVER_EVENTS = 'server'

# cliententerview, clientleftview, channeldescriptionchanged, channelpasswordchanged, channelmoved,
# channeledited, channelcreated, channeldeleted, clientmoved
CHANNEL_EVENTS = 'channel'

# textmessage with targetmode=3
TEXT_SERVER_EVENTS = 'textserver'

# textmessage with targetmode=2, only for the channel the query client is in
TEXT_CHANNEL_EVENTS = 'textchannel'

# textmessage with targetmode=1
TEXT_PRIVATE_EVENTS = 'textprivate'

TOKEN_USED_EVENTS = 'tokenused'


class Notification(CommonEqualityMixin, StringerMixin):
    """
    :param type: the event name without the 'notify' prefix
    :param data: the decoded key/value pairs. Flags map to the empty string.
    """

    def __init__(self, type, data):
        self.type = type
        self.data = data

    def __repr__(self):
        return "Notification(%r, %r)" % (self.type, self.data)


def is_notification(line):
    return line.startswith(NOTIFY_PREFIX)


def decode_notification(line) -> Notification:
    """
    >>> decode_notification('notifytextmessage targetmode=3 msg=lorem\\\\sipsum flag')
    Notification('textmessage', {'targetmode': '3', 'msg': 'lorem ipsum', 'flag': ''})
    """
    params = line.split(' ')
    data = {}
    for param in params[1:]:
        if not param:
            continue
        key, sep, value = param.partition('=')
        data[decode(key)] = decode(value) if sep else ''
    return Notification(params[0][len(NOTIFY_PREFIX):], data)


class QueueClosedError(Exception):
    """ Raised when getting from a closed notification queue that has no more notifications. """


class NotificationQueue:
    """
    A bounded FIFO of notifications. offer() never blocks, get() blocks until a notification is
    available, the timeout elapses or the queue is closed.
    """

    def __init__(self, capacity=5):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.dropped = 0
        self._items = deque()
        self._closed = False
        self._condition = threading.Condition()

    def offer(self, notification) -> bool:
        """
        Adds the notification unless the queue is full or closed.
        :return: True if the notification was queued
        """
        with self._condition:
            if self._closed or len(self._items) >= self.capacity:
                self.dropped += 1
                return False
            self._items.append(notification)
            self._condition.notify()
            return True

    def get(self, block=True, timeout=None) -> Notification:
        """
        Removes and returns the oldest notification.
        :raises queue.Empty: when no notification arrived in time, or block is False and the queue is empty
        :raises QueueClosedError: when the queue is closed and drained
        """
        with self._condition:
            deadline = None if timeout is None else time.monotonic() + timeout
            while not self._items:
                if self._closed:
                    raise QueueClosedError()
                if not block:
                    raise Empty()
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise Empty()
                self._condition.wait(remaining)
            return self._items.popleft()

    def close(self):
        """ closes the queue. Waiting consumers are woken. Closing again has no effect. """
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    @property
    def closed(self):
        return self._closed

    def __len__(self):
        with self._condition:
            return len(self._items)

    def __iter__(self):
        """ yields notifications until the queue is closed """
        while True:
            try:
                yield self.get()
            except QueueClosedError:
                return

import logging
import threading

logger = logging.getLogger(__name__)


class EventSource(object):
    """
    Calls each registered handler with the fired event. Handlers may be added and removed from any thread;
    an exception from one handler is logged and does not prevent the others from being called.
    """

    def __init__(self):
        self._handlers = []
        self._lock = threading.Lock()

    def __iadd__(self, handler):
        return self.add(handler)

    def __isub__(self, handler):
        return self.remove(handler)

    def add(self, handler):
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)
        return self

    def remove(self, handler):
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)
        return self

    def handlers(self):
        with self._lock:
            return tuple(self._handlers)

    def fire(self, *args, **kwargs):
        for handler in self.handlers():
            try:
                handler(*args, **kwargs)
            except Exception as e:
                logger.exception("event handler %r failed: %s" % (handler, e))

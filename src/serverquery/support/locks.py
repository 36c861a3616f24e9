import threading


class TicketLock:
    """
    A mutual exclusion lock that is granted in the order it was requested.
    threading.Lock makes no ordering guarantee between waiting threads.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._next_ticket = 0
        self._serving = 0

    def acquire(self):
        with self._condition:
            ticket = self._next_ticket
            self._next_ticket += 1
            while ticket != self._serving:
                self._condition.wait()

    def release(self):
        with self._condition:
            self._serving += 1
            self._condition.notify_all()

    @property
    def waiting(self):
        """ the number of threads holding or waiting for the lock """
        with self._condition:
            return self._next_ticket - self._serving

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, *exc):
        self.release()

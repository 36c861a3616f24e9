"""
A client for the ServerQuery administration protocol of a voice communication server.

- Conduit: abstraction of a bi-directional byte stream, over plain TCP or an SSH shell channel.
- Connector: knows how to open a conduit to an address (default ports 10011 and 10022).
- Codecs: escape encoding of field values.
- Command: a command name with arguments, options and an optional response target.
- Response decoding: response lines are split into records ('|') and fields (' ', '='), and
  applied to Record subclasses that declare their fields explicitly.
- CommandDispatcher: owns the conduit once the connect handshake is done.


## Threading

The dispatcher runs two daemon threads. The read loop is the only reader of the conduit: it routes each line to
the partial response of the command in flight, completes that command on a trailer line, or pushes a notification
onto the notification queue (dropping it if the queue is full). The write loop is the only writer: it sends queued
commands, and a keep-alive when nothing has been written for the keep-alive interval.

Callers of execute() are serialized first-come-first-served, so at most one command is in flight. Commands and
trailers are numbered in order; a trailer is delivered only to the caller waiting under the same number, so the
late response of a command whose caller timed out is discarded.

A read or write failure that the client did not cause by closing is fatal: the waiting caller and all later
callers get ConnectionNotConnectedError.
"""

"""
The ServerQuery protocol: commands sent to the server, response decoding, notifications and the dispatcher
that multiplexes them over a single connection.
"""

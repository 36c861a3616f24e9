"""
The conduit package provides an abstraction of a bi-directional byte stream to a ServerQuery endpoint.
Concrete implementations are a plain TCP socket and a shell channel over SSH.
"""

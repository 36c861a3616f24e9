"""
A connector knows how to reach a ServerQuery endpoint and opens a conduit to it.
The dispatcher only depends on the conduit it is handed, never on how it was opened.
"""

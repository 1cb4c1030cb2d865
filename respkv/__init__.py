"""
RESP-KV: In-Memory Key-Value Store

A small in-memory key-value server speaking a subset of the RESP
wire protocol (arrays of bulk strings) over raw TCP sockets.
"""

__version__ = "1.0.0"

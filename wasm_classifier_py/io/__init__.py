"""
IO module for binary stream handling.
"""

from .binary_stream import BinaryStream, StreamError, EndOfStreamError

__all__ = ['BinaryStream', 'StreamError', 'EndOfStreamError']

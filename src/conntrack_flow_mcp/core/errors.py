from __future__ import annotations


class ConntrackError(Exception):
    """
    Base class for errors raised while building host flow statistics.
    """


class ReadError(ConntrackError):
    """
    The connection tracking source failed before end of file.
    Fatal for the parse pass.
    """


class MalformedLineError(ConntrackError):
    """
    A line looks like a TCP record but cannot be decoded.
    The parse pass logs it and moves on to the next line.
    """

    def __init__(self, line: str, reason: str):
        super().__init__(f"{reason}: {line!r}")
        self.line = line
        self.reason = reason


class LocalAddressLookupError(ConntrackError):
    """
    The local interface addresses or listening ports could not be read.
    Surfaces before any parsing begins.
    """

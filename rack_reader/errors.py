"""Scan failure taxonomy.

A scan either fails with one of these errors or succeeds with a (possibly
empty) record list. There is no partial success.
"""


class ScanError(Exception):
    """Base class for errors that abort a scan."""


class InvalidImage(ScanError):
    """The source could not be normalized into a pixel buffer."""


class DecodeError(ScanError):
    """The symbol decoder failed on a region. Never retried."""

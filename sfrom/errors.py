from __future__ import annotations


class SfromError(Exception):
    """Base class for sfrom-specific errors."""


class DecodeError(SfromError):
    """A structural decode failure at a known byte offset."""

    def __init__(self, message: str, offset: int):
        super().__init__(f"{message} (at offset 0x{offset:X})")
        self.offset = offset


class ShortBuffer(DecodeError):
    def __init__(self, offset: int, needed: int, available: int):
        super().__init__(f"need {needed} byte(s), {max(available, 0)} available", offset)
        self.needed = needed
        self.available = max(available, 0)


# Fixed-size decode sites
class TruncatedHeader(DecodeError):
    pass


class TruncatedFooter(DecodeError):
    pass


# Header semantics
class BadMagic(DecodeError):
    pass


class OutOfBounds(DecodeError):
    pass


# Tag table
class InvalidTagPayload(DecodeError):
    pass


class UnsupportedTagWarning(UserWarning):
    """A documented tag code with no confirmed payload encoding was met."""

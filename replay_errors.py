"""
Exceptions raised while decoding HQM replay files.
"""

from typing import Optional


class ReplayDecodeError(ValueError):
    """Base class for every replay decoding failure."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.detail = message
        if offset is not None:
            message = f"{message} (byte {offset})"
        super().__init__(message)
        self.offset = offset


class MalformedReplayError(ReplayDecodeError):
    """The bit stream does not follow the record layout. There is no way to resync."""


class UnknownObjectTypeError(MalformedReplayError):
    def __init__(self, slot: int, tag: int, offset: Optional[int] = None):
        super().__init__(f"Unknown object type {tag} in slot {slot}", offset)
        self.slot = slot
        self.tag = tag


class UnknownMessageTypeError(MalformedReplayError):
    def __init__(self, tag: int, offset: Optional[int] = None):
        super().__init__(f"Unknown message type {tag}", offset)
        self.tag = tag


class MissingReferenceError(MalformedReplayError):
    """A delta-encoded field arrived without a matching field in the previous packet."""


class InvalidHeaderError(MalformedReplayError):
    """A record marker byte had an unexpected value (strict mode only)."""


class MessageTextError(ReplayDecodeError):
    """Player name or chat text is not valid UTF-8."""


class TruncatedReplayError(ReplayDecodeError):
    """A strict reader ran past the end of the buffer."""

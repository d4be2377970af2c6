"""
Exceptions raised when decoding archives and images.

Every decoding failure is reported through one of the five base classes below, so that callers can decide what to
show the user without knowing about the specific error subclasses of each decoder.
"""


class DecodeError(Exception):
    """
    Base class for all exceptions signalling that some input data could not be decoded.
    """


class FormatMismatchError(DecodeError):
    """
    The data is not in the expected format at all (e.g. wrong magic or signature).
    """


class UnsupportedVariantError(DecodeError):
    """
    The data is in the expected format, but uses a variant we do not handle (e.g. a non-8-bit PCX).
    """


class TruncatedInputError(DecodeError):
    """
    The data ends before a structurally required region does.
    """


class MalformedStructureError(DecodeError):
    """
    The data is long enough but its structure is inconsistent (e.g. unbalanced directories, missing palette).
    """


class OutOfBoundsError(DecodeError):
    """
    A read or seek was attempted outside the validated region of a buffer. The decoders check their bounds ahead of
    time, so seeing this one means the caller passed in bad offsets.
    """

"""Exceptions raised across the KvCast package."""

from typing import Optional

from kvcast.core.models import ErrorKind, LineError


class KvCastError(Exception):
    """Base error for this package."""


class TokenizeError(KvCastError):
    """
    Raised by the lexer on the first malformed token of a line.
    The assembler catches it at the line boundary.
    """

    def __init__(self, kind: ErrorKind, position: int, detail: Optional[str] = None):
        self.kind = kind
        self.position = position
        self.detail = detail
        super().__init__(self.as_line_error().reason)

    def as_line_error(self) -> LineError:
        return LineError(kind=self.kind, position=self.position, detail=self.detail)


class CodecError(KvCastError):
    """Raised when a datagram payload is not a JSON object."""


class PayloadTooLarge(CodecError):
    """Raised when an encoded record does not fit in one datagram."""


class ArgumentError(KvCastError):
    """Raised when an address or port argument is invalid."""


class ConfigError(KvCastError):
    """Raised when the configuration file cannot be loaded."""


class TransportError(KvCastError):
    """Raised when a socket cannot be created or configured."""

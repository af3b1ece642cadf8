"""Exceptions raised by the tail core."""

from typing import Optional


class TailError(Exception):
    """Base class for all kinesis-tail errors."""


class ParseError(TailError, ValueError):
    """Malformed timestamp or duration input."""


class ConfigurationError(TailError):
    """The AWS client or settings could not be set up."""


class ServiceError(TailError):
    """A call to the Kinesis service failed."""

    def __init__(self, operation: str, message: str, code: Optional[str] = None):
        self.operation = operation
        self.code = code
        self.message = message
        detail = f"{code}: {message}" if code else message
        super().__init__(f"{operation} failed: {detail}")

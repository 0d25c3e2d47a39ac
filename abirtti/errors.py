"""The standard exception hierarchy used by the run-time support."""

from __future__ import annotations

from typing import Optional


class StdException(Exception):
    """Base of all standard exceptions; ``what()`` returns its message."""

    _default_message = "std::exception"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = self._default_message if message is None else message
        super().__init__(self.message)

    def what(self) -> str:
        """Return the explanatory message."""
        return self.message


class LogicError(StdException):
    """An error in the program's logic that could have been detected earlier."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class DomainError(LogicError):
    """An argument outside the domain of an operation."""


class InvalidArgument(LogicError):
    """An argument value that is not accepted."""


class LengthError(LogicError):
    """An attempt to exceed a maximum allowed size."""


class OutOfRange(LogicError):
    """An argument outside the expected range."""


class RuntimeFailure(StdException):
    """An error that can only be detected while the program runs."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class RangeError(RuntimeFailure):
    """A result that cannot be represented."""


class ArithmeticOverflow(RuntimeFailure):
    """An arithmetic overflow."""


class ArithmeticUnderflow(RuntimeFailure):
    """An arithmetic underflow."""


class BadCast(StdException):
    """A failed checked cast to a reference type."""

    _default_message = "std::bad_cast"

    def __init__(self) -> None:
        super().__init__()


class BadTypeid(StdException):
    """A type query made through a null pointer."""

    _default_message = "std::bad_typeid"

    def __init__(self) -> None:
        super().__init__()
from __future__ import annotations


class TransportError(Exception):
    """The remote call failed or returned an error payload."""
    pass


class RateLimitError(TransportError):
    """Raised when GitHub explicitly returns a RATE_LIMITED error."""
    pass


class UnsupportedOperation(Exception):
    """The remote API offers no way to perform this operation."""
    pass


class InvalidStateTransition(RuntimeError):
    """Raised when the initializer is asked to move along an edge it does not have."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot {requested} while initializer is {current}")

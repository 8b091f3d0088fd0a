# Rev 0.3.0
"""Error taxonomy shared by repositories, services and viewmodels."""
from __future__ import annotations


class TickTaskError(Exception):
    """Base for every error the core raises on purpose."""


class ValidationError(TickTaskError, ValueError):
    """Caller supplied input the store refuses (empty name, negative seconds...)."""


class NotFoundError(TickTaskError, LookupError):
    def __init__(self, kind: str, ident: int) -> None:
        super().__init__(f"{kind} {ident} not found")
        self.kind = kind
        self.ident = ident


class ConcurrencyInvariantViolation(TickTaskError):
    """A mutation would leave more than one task (or session) running."""


class TransactionFailure(TickTaskError):
    """The database rejected a multi-statement operation; it was rolled back."""

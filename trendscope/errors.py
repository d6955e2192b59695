"""
Error taxonomy for the scoring-and-ranking core.

Three failure families, each with a distinct recovery contract:

``InvalidInputError``
    A raw signal is malformed (negative cost, empty or duplicate name, zero
    break-even floor, unknown platform). The record is skipped and reported;
    it is never coerced into something scoreable.

``ComputationGuardError``
    An internal invariant would be violated, e.g. computing a margin against
    a zero price. This is a programming-contract violation: fatal to the
    record being scored, not to the batch.

``PersistenceError``
    The storage round trip failed. Nothing is retried here; callers must
    treat the store as being in an unknown state and re-read it.
"""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Raised when a raw signal fails validation before scoring.

    Attributes:
        name:   Trend name of the offending record (may be empty).
        reason: Human-readable description of the first failing check.
    """

    def __init__(self, name: str, reason: str) -> None:
        self.name   = name
        self.reason = reason
        super().__init__(f"Invalid signal '{name}': {reason}")


class ComputationGuardError(RuntimeError):
    """Raised when a scoring computation would break one of its invariants."""


class PersistenceError(RuntimeError):
    """Raised when the trend store fails to load or apply a batch.

    Attributes:
        operation: Store operation that failed (``"load_all"``, ``"upsert_batch"``).
    """

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        super().__init__(
            f"Trend store operation '{operation}' failed: {detail}.  "
            "Store state is unknown; re-read before trusting any cached ranking."
        )

"""Exception hierarchy for chorale composition."""

from __future__ import annotations

__all__ = ["ChoraleError", "CompositionError", "AttemptsExhaustedError"]


class ChoraleError(Exception):
    """Base class for errors raised by :mod:`chorale_generator`."""


class CompositionError(ChoraleError):
    """The composer cannot produce a piece from the supplied database."""


class AttemptsExhaustedError(CompositionError):
    """No attempt passed validation before the attempt ceiling was reached."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"no acceptable chorale after {attempts} attempts")
        self.attempts = attempts

from __future__ import annotations

from typing import Optional

__all__ = [
    "DimensionMismatchError",
    "SingularJacobianError",
]


class DimensionMismatchError(ValueError):
    """Evaluator output or initial iterate does not match the problem dimension."""


class SingularJacobianError(RuntimeError):
    """The Newton linear system J * delta = -F could not be solved to a finite step."""

    def __init__(self, message: str, iteration: Optional[int] = None):
        super().__init__(message)
        self.iteration = iteration

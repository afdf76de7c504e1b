"""
Example: scalar Newton solve of x^2 - 2 = 0 with the trace printed.

Quadratic convergence is visible in the f(x) column: the exponent roughly
doubles every iteration once the iterate is close to sqrt(2).

Run:
  python -m nlsolve_lite.examples.example_sqrt2
"""
from __future__ import annotations

import numpy as np

from nlsolve_lite.core.functions import DifferentiableFunction
from nlsolve_lite.core.nlsolve import nlsolve


def residual(x: np.ndarray, fx: np.ndarray) -> None:
    fx[0] = x[0] ** 2 - 2.0


def jacobian(x: np.ndarray, gx: np.ndarray) -> None:
    gx[0, 0] = 2.0 * x[0]


def main() -> None:
    df = DifferentiableFunction(residual, jacobian)
    res = nlsolve(df, np.array([1.0]), ftol=1e-10, show_trace=True)

    print()
    print(res)
    print("error vs sqrt(2):", float(res.zero[0] - np.sqrt(2.0)))


if __name__ == "__main__":
    main()

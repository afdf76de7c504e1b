"""
Example: two-good market equilibrium (unknowns: prices p1, p2).

Excess demand for each good, with cross-price effects:
    z1(p) = a1 / p1 + c12 * p2 - s1 * p1
    z2(p) = a2 / p2 + c21 * p1 - s2 * p2
Equilibrium is z(p) = 0.

The analytic Jacobian and residual share 1/p terms, so a fused fg is
supplied. The same system is then solved with a finite-difference Jacobian
for comparison.

Run:
  python -m nlsolve_lite.examples.example_equilibrium_2d
"""
from __future__ import annotations

from dataclasses import dataclass
import numpy as np

from nlsolve_lite.core.functions import DifferentiableFunction
from nlsolve_lite.core.nlsolve import SolverOptions, nlsolve


@dataclass
class Market:
    a1: float = 4.0
    a2: float = 3.0
    c12: float = 0.2
    c21: float = 0.1
    s1: float = 1.0
    s2: float = 1.5

    def excess_demand(self, p: np.ndarray) -> np.ndarray:
        p1, p2 = float(p[0]), float(p[1])
        return np.array(
            [
                self.a1 / p1 + self.c12 * p2 - self.s1 * p1,
                self.a2 / p2 + self.c21 * p1 - self.s2 * p2,
            ],
            dtype=float,
        )

    def make_function(self) -> DifferentiableFunction:
        def f(p: np.ndarray, fx: np.ndarray) -> None:
            fx[:] = self.excess_demand(p)

        def g(p: np.ndarray, gx: np.ndarray) -> None:
            gx[0, 0] = -self.a1 / p[0] ** 2 - self.s1
            gx[0, 1] = self.c12
            gx[1, 0] = self.c21
            gx[1, 1] = -self.a2 / p[1] ** 2 - self.s2

        def fg(p: np.ndarray, fx: np.ndarray, gx: np.ndarray) -> None:
            inv1, inv2 = 1.0 / p[0], 1.0 / p[1]
            fx[0] = self.a1 * inv1 + self.c12 * p[1] - self.s1 * p[0]
            fx[1] = self.a2 * inv2 + self.c21 * p[0] - self.s2 * p[1]
            gx[0, 0] = -self.a1 * inv1 * inv1 - self.s1
            gx[0, 1] = self.c12
            gx[1, 0] = self.c21
            gx[1, 1] = -self.a2 * inv2 * inv2 - self.s2

        return DifferentiableFunction(f, g, fg)


def main() -> None:
    market = Market()
    p0 = np.array([1.0, 1.0], dtype=float)
    opts = SolverOptions(ftol=1e-12, store_trace=True)

    res = nlsolve(market.make_function(), p0, opts)
    print(res)
    print()
    print(res.trace)

    df_fd = DifferentiableFunction.from_functions(market.excess_demand)
    res_fd = nlsolve(df_fd, p0, opts)
    print()
    print("finite-difference Jacobian:", res_fd.zero, "iterations =", res_fd.iterations)
    print("max |p_analytic - p_fd| =", float(np.max(np.abs(res.zero - res_fd.zero))))


if __name__ == "__main__":
    main()

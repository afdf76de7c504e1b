from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import numpy as np

# Use a non-interactive backend (safe on headless machines)
import matplotlib
matplotlib.use("Agg")  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402

from ..core.functions import DifferentiableFunction
from ..core.nlsolve import SolverOptions, nlsolve
from ..core.results import SolverResults


Problem = Tuple[Callable[[np.ndarray], np.ndarray], Callable[[np.ndarray], np.ndarray], np.ndarray]


def _sqrt2() -> Problem:
    F = lambda x: np.array([x[0] ** 2 - 2.0])
    J = lambda x: np.array([[2.0 * x[0]]])
    return F, J, np.array([1.0])


def _linear() -> Problem:
    # x1 + x2 = 3, x1 - x2 = 1 -> (2, 1)
    F = lambda x: np.array([x[0] + x[1] - 3.0, x[0] - x[1] - 1.0])
    J = lambda x: np.array([[1.0, 1.0], [1.0, -1.0]])
    return F, J, np.array([0.0, 0.0])


def _rosenbrock() -> Problem:
    # root (1, 1)
    F = lambda x: np.array([10.0 * (x[1] - x[0] ** 2), 1.0 - x[0]])
    J = lambda x: np.array([[-20.0 * x[0], 10.0], [-1.0, 0.0]])
    return F, J, np.array([-1.2, 1.0])


def _circle_line() -> Problem:
    # x1^2 + x2^2 = 4, x1 = x2 -> (sqrt(2), sqrt(2))
    F = lambda x: np.array([x[0] ** 2 + x[1] ** 2 - 4.0, x[0] - x[1]])
    J = lambda x: np.array([[2.0 * x[0], 2.0 * x[1]], [1.0, -1.0]])
    return F, J, np.array([1.0, 0.5])


PROBLEMS: Dict[str, Callable[[], Problem]] = {
    "sqrt2": _sqrt2,
    "linear": _linear,
    "rosenbrock": _rosenbrock,
    "circle": _circle_line,
}


def run_problem(
    name: str,
    options: SolverOptions,
    *,
    finite_difference: bool = False,
    x0: Optional[np.ndarray] = None,
) -> SolverResults:
    if name not in PROBLEMS:
        raise ValueError(f"unknown problem '{name}'. Choose from {sorted(PROBLEMS)}.")
    F, J, x_default = PROBLEMS[name]()
    df = DifferentiableFunction.from_functions(F, None if finite_difference else J)
    start = x_default if x0 is None else np.asarray(x0, dtype=float)
    return nlsolve(df, start, options)


def plot_history(res: SolverResults, figpath: Path, title: str) -> None:
    it = np.array([s.iteration for s in res.trace], dtype=int)

    plt.figure()
    plt.semilogy(it, res.trace.fnorms(), "o-", label=r"$\|F(x)\|_\infty$")
    plt.semilogy(it, res.trace.stepnorms(), "s--", label=r"$\|\delta\|_2$")
    plt.xlabel("iteration")
    plt.ylabel("norm")
    plt.title(title)
    plt.grid(True)
    plt.legend()
    plt.savefig(figpath, dpi=200, bbox_inches="tight")
    plt.close()


def main(argv: Optional[list] = None) -> None:
    ap = argparse.ArgumentParser(description="Newton convergence runner for benchmark systems.")
    ap.add_argument("problem", choices=sorted(PROBLEMS), help="Benchmark system to solve.")
    ap.add_argument("--outdir", type=str, default="nlsolve_lite_out", help="Output directory.")
    ap.add_argument("--xtol", type=float, default=0.0)
    ap.add_argument("--ftol", type=float, default=1e-8)
    ap.add_argument("--iterations", type=int, default=1_000)
    ap.add_argument("--x0", type=float, nargs="+", default=None, help="Override the starting point.")
    ap.add_argument("--fd", action="store_true", help="Use a finite-difference Jacobian.")
    ap.add_argument("--show-trace", action="store_true", help="Print the trace while solving.")
    ap.add_argument("--extended-trace", action="store_true", help="Also print x, f(x), g(x) and the step.")
    ap.add_argument("--no-plot", action="store_true", help="Skip the convergence plot.")

    args = ap.parse_args(argv)
    outdir = Path(args.outdir)

    opts = SolverOptions(
        xtol=args.xtol,
        ftol=args.ftol,
        iterations=args.iterations,
        store_trace=True,
        show_trace=args.show_trace,
        extended_trace=args.extended_trace,
    )

    print(f"\n[{args.problem}] Newton solve ({'FD' if args.fd else 'analytic'} Jacobian)")
    res = run_problem(args.problem, opts, finite_difference=args.fd, x0=args.x0)
    print(res)

    if not args.no_plot:
        outdir.mkdir(parents=True, exist_ok=True)
        figpath = outdir / f"convergence_{args.problem}.png"
        plot_history(res, figpath, title=f"Newton convergence ({args.problem})")
        print(f"\n  saved: {figpath}")

    print("\nDone.")


if __name__ == "__main__":
    main()

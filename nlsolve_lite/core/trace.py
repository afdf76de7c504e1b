from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, TextIO

import numpy as np

__all__ = [
    "TRACE_HEADER",
    "SolverState",
    "SolverTrace",
    "update_trace",
]


TRACE_HEADER = (
    "Iter     f(x) inf-norm    Step 2-norm \n"
    "------   --------------   --------------"
)


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return object.__repr__(value)


@dataclass(frozen=True)
class SolverState:
    """Snapshot of one iteration.

    stepnorm is NaN for the initial state (no step taken yet).
    metadata holds optional per-iteration diagnostics, e.g. copies of
    x, f(x), g(x) and the step when the extended trace is on.
    """

    iteration: int
    fnorm: float
    stepnorm: float = float("nan")
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if int(self.iteration) < 0:
            raise ValueError(f"iteration must be non-negative, got {self.iteration!r}.")
        # NaN passes: a non-finite residual is recorded, not rejected here
        if float(self.fnorm) < 0.0:
            raise ValueError(f"fnorm must be non-negative, got {self.fnorm!r}.")
        object.__setattr__(self, "iteration", int(self.iteration))
        object.__setattr__(self, "fnorm", float(self.fnorm))
        object.__setattr__(self, "stepnorm", float(self.stepnorm))
        object.__setattr__(self, "metadata", dict(self.metadata))

    def __str__(self) -> str:
        lines = [f"{self.iteration:6d}   {self.fnorm:14e}   {self.stepnorm:14e}"]
        for key, value in self.metadata.items():
            lines.append(f" * {_safe_str(key)}: {_safe_str(value)}")
        return "\n".join(lines)


class SolverTrace:
    """Append-only, index-addressable log of SolverState (0-based)."""

    def __init__(self, states: Optional[List[SolverState]] = None):
        self.states: List[SolverState] = list(states) if states is not None else []

    def append(self, state: SolverState) -> None:
        self.states.append(state)

    push = append

    def __getitem__(self, i: int) -> SolverState:
        return self.states[i]

    def __setitem__(self, i: int, state: SolverState) -> None:
        if isinstance(i, slice):
            raise TypeError("SolverTrace supports single-index assignment only.")
        self.states[i] = state

    def __delitem__(self, i: int) -> None:
        raise TypeError("SolverTrace is append-only.")

    def __len__(self) -> int:
        return len(self.states)

    def __iter__(self) -> Iterator[SolverState]:
        return iter(self.states)

    def __repr__(self) -> str:
        return f"SolverTrace(n_states={len(self.states)})"

    def __str__(self) -> str:
        return "\n".join([TRACE_HEADER] + [str(s) for s in self.states])

    def fnorms(self) -> np.ndarray:
        return np.array([s.fnorm for s in self.states], dtype=float)

    def stepnorms(self) -> np.ndarray:
        return np.array([s.stepnorm for s in self.states], dtype=float)


def update_trace(
    trace: SolverTrace,
    iteration: int,
    fnorm: float,
    stepnorm: float,
    metadata: Dict[str, Any],
    store_trace: bool,
    show_trace: bool,
    stream: Optional[TextIO] = None,
) -> SolverState:
    """Build one SolverState; append it if store_trace, print it if show_trace."""
    state = SolverState(iteration, fnorm, stepnorm, metadata)
    if store_trace:
        trace.append(state)
    if show_trace:
        print(state, file=sys.stdout if stream is None else stream)
    return state

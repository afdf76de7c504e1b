import numpy as np
import pytest

from nlsolve_lite.core.errors import DimensionMismatchError
from nlsolve_lite.core.functions import DifferentiableFunction, fd_jacobian


def F_system(x: np.ndarray) -> np.ndarray:
    # root at (6, 1):
    #   x^2 + y - 37 = 0
    #   x - y^2 - 5 = 0
    return np.array([x[0] ** 2 + x[1] - 37.0, x[0] - x[1] ** 2 - 5.0], dtype=float)


def J_system(x: np.ndarray) -> np.ndarray:
    return np.array([[2.0 * x[0], 1.0], [1.0, -2.0 * x[1]]], dtype=float)


def test_synthesized_fg_calls_f_then_g() -> None:
    calls = []

    def f(x, fx):
        calls.append("f")
        fx[:] = F_system(x)

    def g(x, gx):
        calls.append("g")
        gx[:, :] = J_system(x)

    df = DifferentiableFunction(f, g)
    x = np.array([5.0, 2.0])
    fx = np.empty(2)
    gx = np.empty((2, 2))
    df.evaluate_both(x, fx, gx)

    assert calls == ["f", "g"]
    assert np.allclose(fx, F_system(x))
    assert np.allclose(gx, J_system(x))


def test_explicit_fg_is_used() -> None:
    used = {"f": 0, "g": 0, "fg": 0}

    def f(x, fx):
        used["f"] += 1

    def g(x, gx):
        used["g"] += 1

    def fg(x, fx, gx):
        used["fg"] += 1
        fx[:] = F_system(x)
        gx[:, :] = J_system(x)

    df = DifferentiableFunction(f, g, fg)
    fx = np.empty(2)
    gx = np.empty((2, 2))
    df.evaluate_both(np.array([1.0, 1.0]), fx, gx)

    assert used == {"f": 0, "g": 0, "fg": 1}
    assert np.allclose(fx, F_system(np.array([1.0, 1.0])))


def test_separate_evaluators_write_into_buffers() -> None:
    df = DifferentiableFunction.from_functions(F_system, J_system)
    x = np.array([6.0, 1.0])
    fx = np.full(2, np.nan)
    gx = np.full((2, 2), np.nan)

    df.evaluate_residual(x, fx)
    df.evaluate_jacobian(x, gx)

    assert np.allclose(fx, 0.0)
    assert np.allclose(gx, J_system(x))


def test_returned_values_are_shape_checked() -> None:
    df = DifferentiableFunction(lambda x, fx: np.zeros(3), lambda x, gx: np.eye(2))
    with pytest.raises(DimensionMismatchError):
        df.evaluate_both(np.zeros(2), np.empty(2), np.empty((2, 2)))

    df = DifferentiableFunction(lambda x, fx: np.zeros(2), lambda x, gx: np.eye(3))
    with pytest.raises(DimensionMismatchError):
        df.evaluate_both(np.zeros(2), np.empty(2), np.empty((2, 2)))


def test_fused_fg_may_return_pair() -> None:
    df = DifferentiableFunction(
        lambda x, fx: None,
        lambda x, gx: None,
        lambda x, fx, gx: (F_system(x), J_system(x)),
    )
    fx = np.empty(2)
    gx = np.empty((2, 2))
    df.evaluate_both(np.array([5.0, 2.0]), fx, gx)
    assert np.allclose(gx, J_system(np.array([5.0, 2.0])))

    bad = DifferentiableFunction(lambda x, fx: None, lambda x, gx: None, lambda x, fx, gx: 1.0)
    with pytest.raises(DimensionMismatchError):
        bad.evaluate_both(np.zeros(2), np.empty(2), np.empty((2, 2)))


def test_non_callable_rejected() -> None:
    with pytest.raises(TypeError):
        DifferentiableFunction(None, lambda x, gx: None)  # type: ignore[arg-type]


def test_fd_jacobian_matches_analytic() -> None:
    x = np.array([5.0, 2.0])
    J_fd = fd_jacobian(F_system, x)
    assert np.allclose(J_fd, J_system(x), rtol=0.0, atol=1e-6)

    # x is not modified and an out buffer is filled in place
    out = np.empty((2, 2))
    J_out = fd_jacobian(F_system, x, out, dx_rel=1e-5)
    assert J_out is out
    assert np.array_equal(x, np.array([5.0, 2.0]))
    assert np.allclose(out, J_system(x), rtol=0.0, atol=1e-6)


def test_fd_jacobian_rejects_wrong_shape() -> None:
    with pytest.raises(DimensionMismatchError):
        fd_jacobian(lambda x: np.zeros(3), np.zeros(2))


def test_fd_jacobian_rejects_non_finite_evaluations() -> None:
    def F_pole(x: np.ndarray) -> np.ndarray:
        return np.array([1.0 / x[0] if x[0] > 0.0 else np.nan])

    with pytest.raises(FloatingPointError):
        fd_jacobian(F_pole, np.array([0.0]))


def test_fd_jacobian_step_is_relative_with_floor() -> None:
    # F linear, so the central difference is exact up to rounding for any step
    A = np.array([[3.0, -1.0], [0.5, 2.0]])
    for x in (np.zeros(2), np.array([1e6, -1e-6])):
        assert np.allclose(fd_jacobian(lambda v: A @ v, x), A, rtol=0.0, atol=1e-4)

    with pytest.raises(ValueError):
        fd_jacobian(lambda v: A @ v, np.zeros(2), dx_rel=0.0)

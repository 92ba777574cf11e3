from __future__ import annotations

import math

from luxmon.analysis.newton import newton_raphson


def test_converges_on_square_root_of_four() -> None:
    result = newton_raphson(lambda x: x * x - 4.0, lambda x: 2.0 * x, 3.0, 1e-9, 50)

    assert math.isclose(result.estimate, 2.0, abs_tol=1e-9)
    assert result.converged
    assert result.stop_reason == "converged"
    assert result.iterations < 10
    assert result.trace[0].index == 0 and result.trace[0].estimate == 3.0
    assert [step.index for step in result.trace] == list(range(len(result.trace)))


def test_zero_derivative_returns_initial_guess() -> None:
    result = newton_raphson(lambda x: 5.0, lambda x: 0.0, 7.5, 1e-6, 20)

    assert result.estimate == 7.5
    assert len(result.trace) == 1
    assert result.stop_reason == "degenerate"
    assert not result.converged


def test_degenerate_midway_keeps_pre_update_estimate() -> None:
    # f'(1) == 0, reached after one step from x0=2
    result = newton_raphson(
        lambda x: (x - 1.0) ** 2 + 1.0,
        lambda x: 2.0 * (x - 1.0),
        2.0,
        1e-9,
        10,
    )
    assert result.estimate == 1.0
    assert result.estimates() == (2.0, 1.0)
    assert result.stop_reason == "degenerate"


def test_exhaustion_returns_last_iterate() -> None:
    # x^2 + 1 has no real root, so the tolerance is never met
    result = newton_raphson(lambda x: x * x + 1.0, lambda x: 2.0 * x, 0.5, 1e-9, 3)

    assert len(result.trace) == 4
    assert result.estimate == result.trace[3].estimate
    assert result.stop_reason == "exhausted"


def test_zero_iterations_returns_guess() -> None:
    result = newton_raphson(lambda x: x - 1.0, lambda x: 1.0, 4.0, 1e-6, 0)
    assert result.estimate == 4.0
    assert result.estimates() == (4.0,)


def test_non_finite_iterates_do_not_raise() -> None:
    result = newton_raphson(lambda x: math.inf, lambda x: 1.0, 1.0, 1e-6, 5)
    assert math.isinf(result.estimate) or math.isnan(result.estimate)

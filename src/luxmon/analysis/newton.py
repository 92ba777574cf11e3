from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal

logger = logging.getLogger(__name__)

DERIVATIVE_EPSILON = 1e-12

StopReason = Literal["converged", "degenerate", "exhausted"]


@dataclass(frozen=True, slots=True)
class IterationStep:
    index: int
    estimate: float


@dataclass(frozen=True, slots=True)
class SolveResult:
    """
    Outcome of a Newton-Raphson run.

    ``trace[0]`` is always the initial guess, so ``len(trace)`` ranges from 1
    to ``max_iterations + 1``.
    """

    estimate: float
    trace: tuple[IterationStep, ...]
    stop_reason: StopReason

    @property
    def converged(self) -> bool:
        return self.stop_reason == "converged"

    @property
    def iterations(self) -> int:
        return len(self.trace) - 1

    def estimates(self) -> tuple[float, ...]:
        """Trace values only (index == iteration)."""
        return tuple(step.estimate for step in self.trace)


def newton_raphson(
    f: Callable[[float], float],
    f_prime: Callable[[float], float],
    x0: float,
    tolerance: float,
    max_iterations: int,
) -> SolveResult:
    """
    Locate a root of ``f`` with the Newton update ``x - f(x) / f'(x)``.

    Each iteration checks, in order:

    1. ``|f'(x)| < 1e-12``: stop and return the current ``x`` without
       applying the update.
    2. ``|x_new - x| < tolerance``: record ``x_new`` and stop.
    3. iterations exhausted: return the last ``x_new``.

    Never raises for numerical reasons; a diverging run still returns its
    last estimate and the caller validates it.
    """
    x = float(x0)
    trace = [IterationStep(0, x)]
    stop_reason: StopReason = "exhausted"

    for i in range(max(0, int(max_iterations))):
        fx = f(x)
        fpx = f_prime(x)

        if abs(fpx) < DERIVATIVE_EPSILON:
            logger.debug("Newton-Raphson: derivative ~0 at iteration %d, stopping", i)
            stop_reason = "degenerate"
            break

        x_new = x - fx / fpx
        trace.append(IterationStep(i + 1, x_new))

        if abs(x_new - x) < tolerance:
            logger.debug("Newton-Raphson: converged at iteration %d, x=%.8f", i + 1, x_new)
            x = x_new
            stop_reason = "converged"
            break
        x = x_new
    else:
        if max_iterations > 0:
            logger.debug("Newton-Raphson: max iterations reached, x=%.8f", x)

    return SolveResult(estimate=x, trace=tuple(trace), stop_reason=stop_reason)

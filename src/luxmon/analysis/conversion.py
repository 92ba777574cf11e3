"""Photodiode reading → illuminance via a power-law model inverted numerically.

The sensor is modelled as ``V_out = A * E ** B`` with ``E`` in lux. Each raw
reading is rescaled to volts, then ``E`` is found with Newton-Raphson.
"""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass
from typing import Callable

from ..config.calibration import CalibrationParameters
from .newton import newton_raphson

logger = logging.getLogger(__name__)

# Returned by f / f' for non-physical estimates (E <= 0) instead of
# evaluating a fractional power of a non-positive base.
DOMAIN_SENTINEL = sys.float_info.max

FALLBACK_INITIAL_GUESS = 1.0


@dataclass(frozen=True, slots=True)
class DeviceScale:
    """Full-scale constants of the device firmware (counts → volts)."""

    max_voltage: float = 3.3
    full_scale: float = 1000.0

    @property
    def volts_per_count(self) -> float:
        return self.max_voltage / self.full_scale

    def to_measured(self, raw: float) -> float:
        return raw * self.volts_per_count


@dataclass(frozen=True, slots=True)
class ConversionResult:
    value: float
    trace: tuple[float, ...]
    measured: float
    converged: bool
    substituted: bool = False


def _safe_pow(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        return math.inf


def power_law_residual(a: float, b: float, measured: float) -> Callable[[float], float]:
    """Build ``f(e) = a * e**b - measured`` with the non-positive guard."""

    def f(estimate: float) -> float:
        if estimate <= 0.0:
            return DOMAIN_SENTINEL
        return a * _safe_pow(estimate, b) - measured

    return f


def power_law_derivative(a: float, b: float) -> Callable[[float], float]:
    """Build ``f'(e) = a * b * e**(b - 1)`` with the non-positive guard."""

    def f_prime(estimate: float) -> float:
        if estimate <= 0.0:
            return DOMAIN_SENTINEL
        return a * b * _safe_pow(estimate, b - 1.0)

    return f_prime


def convert_reading(
    raw: float,
    calibration: CalibrationParameters,
    scale: DeviceScale | None = None,
) -> ConversionResult:
    """
    Convert one raw device reading into lux.

    Non-finite or negative solver output is replaced by ``0.0`` and flagged
    with ``substituted=True``; this function never raises for numerical
    reasons.
    """
    scale = scale or DeviceScale()
    measured = scale.to_measured(raw)

    f = power_law_residual(calibration.model_a, calibration.model_b, measured)
    f_prime = power_law_derivative(calibration.model_a, calibration.model_b)

    x0 = calibration.initial_guess
    if x0 <= 0.0:
        logger.warning("Initial guess %r is not positive; using %.1f", x0, FALLBACK_INITIAL_GUESS)
        x0 = FALLBACK_INITIAL_GUESS

    solved = newton_raphson(f, f_prime, x0, calibration.tolerance, calibration.max_iterations)

    value = solved.estimate
    substituted = False
    if not (math.isfinite(value) and value >= 0.0):
        logger.warning("Invalid conversion result %r for raw=%r; using 0.0", value, raw)
        value = 0.0
        substituted = True

    logger.debug(
        "raw=%.2f measured=%.4f V lux=%.2f (%s after %d iterations)",
        raw,
        measured,
        value,
        solved.stop_reason,
        solved.iterations,
    )
    return ConversionResult(
        value=value,
        trace=solved.estimates(),
        measured=measured,
        converged=solved.converged,
        substituted=substituted,
    )

"""Numerical helpers: Newton-Raphson solver and the power-law lux conversion."""

from .conversion import ConversionResult, DeviceScale, convert_reading
from .newton import IterationStep, SolveResult, newton_raphson

__all__ = [
    "ConversionResult",
    "DeviceScale",
    "IterationStep",
    "SolveResult",
    "convert_reading",
    "newton_raphson",
]

"""Power-law calibration constants and their thread-safe holder."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class CalibrationParameters:
    """
    Constants of the model ``V_out = model_a * E ** model_b`` plus solver knobs.

    ``initial_guess <= 0`` is accepted here; the conversion stage replaces it
    with ``1.0`` before solving.
    """

    model_a: float = 0.0001
    model_b: float = 1.05
    initial_guess: float = 1.0
    tolerance: float = 1e-6
    max_iterations: int = 20

    def __post_init__(self) -> None:
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be >= 0")


class CalibrationStore:
    """Lock-guarded calibration shared by a settings surface and the pipeline.

    Writers swap in a new frozen :class:`CalibrationParameters`; readers take a
    :meth:`snapshot` once per tick.
    """

    def __init__(self, params: CalibrationParameters | None = None) -> None:
        self._params = params or CalibrationParameters()
        self._lock = threading.Lock()

    def snapshot(self) -> CalibrationParameters:
        with self._lock:
            return self._params

    def replace(self, params: CalibrationParameters) -> None:
        with self._lock:
            self._params = params

    def update(self, **changes: Any) -> CalibrationParameters:
        """Apply field changes (e.g. ``model_a=2e-4``) and return the new value."""
        if "max_iterations" in changes:
            changes["max_iterations"] = int(changes["max_iterations"])
        with self._lock:
            self._params = replace(self._params, **changes)
            return self._params

"""Runtime configuration for the device link, conversion, and storage."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from .calibration import CalibrationParameters

CONFIG_ENV_VAR = "LUXMON_CONFIG"
STORAGE_BACKENDS = ("mongo", "csv", "none")

# Nested YAML sections that are flattened into the top-level mapping.
_SECTIONS = ("device", "calibration", "pipeline", "storage")


@dataclass(slots=True)
class LuxmonConfig:
    """
    Tuning knobs for the photodiode pipeline.

    Defaults match an Arduino streaming 0-1000 counts over a 3.3 V range at
    9600 bps, refreshed by a ~30 Hz UI tick.
    """

    serial_port: str = "/dev/ttyACM0"
    baud_rate: int = 9600
    read_timeout_ms: float = 30.0
    poll_interval_ms: float = 10.0

    device_max_voltage: float = 3.3
    device_full_scale: float = 1000.0

    model_a: float = 0.0001
    model_b: float = 1.05
    initial_guess: float = 1.0
    tolerance: float = 1e-6
    max_iterations: int = 20

    buffer_capacity: int = 300
    tick_hz: float = 30.0
    event_queue_size: int = 64

    storage_backend: str = "mongo"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "luxmon"
    mongo_timeout_ms: int = 2000
    csv_dir: str = "data"

    def sanitized(self) -> LuxmonConfig:
        """Return a copy with limits applied.

        ``initial_guess`` is deliberately left alone; the conversion stage
        repairs non-positive guesses itself.
        """
        backend = str(self.storage_backend or "").strip().lower()
        if backend not in STORAGE_BACKENDS:
            backend = "none"
        full_scale = float(self.device_full_scale)
        if full_scale == 0.0:
            full_scale = 1000.0
        return LuxmonConfig(
            serial_port=str(self.serial_port),
            baud_rate=max(300, int(self.baud_rate)),
            read_timeout_ms=max(1.0, float(self.read_timeout_ms)),
            poll_interval_ms=max(0.0, float(self.poll_interval_ms)),
            device_max_voltage=float(self.device_max_voltage),
            device_full_scale=full_scale,
            model_a=float(self.model_a),
            model_b=float(self.model_b),
            initial_guess=float(self.initial_guess),
            tolerance=abs(float(self.tolerance)),
            max_iterations=max(0, int(self.max_iterations)),
            buffer_capacity=max(0, int(self.buffer_capacity)),
            tick_hz=max(1.0, float(self.tick_hz)),
            event_queue_size=max(0, int(self.event_queue_size)),
            storage_backend=backend,
            mongo_uri=str(self.mongo_uri),
            mongo_database=str(self.mongo_database),
            mongo_timeout_ms=max(1, int(self.mongo_timeout_ms)),
            csv_dir=str(self.csv_dir),
        )

    def calibration(self) -> CalibrationParameters:
        return CalibrationParameters(
            model_a=self.model_a,
            model_b=self.model_b,
            initial_guess=self.initial_guess,
            tolerance=self.tolerance,
            max_iterations=max(0, int(self.max_iterations)),
        )

    def tick_interval_ms(self) -> int:
        return max(1, int(round(1000.0 / max(1.0, float(self.tick_hz)))))


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`LuxmonConfig`."""
    return {f.name for f in fields(LuxmonConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten the known ``device``/``calibration``/``pipeline``/``storage`` sections."""
    merged: MutableMapping[str, Any] = {}
    for key, value in data.items():
        if key in _SECTIONS and isinstance(value, Mapping):
            merged.update(value)
        else:
            merged[key] = value
    return merged


def config_from_mapping(data: Mapping[str, Any] | None) -> LuxmonConfig:
    """Build :class:`LuxmonConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return LuxmonConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    return LuxmonConfig(**payload).sanitized()


def default_config_path() -> Path | None:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return None


def load_config(path: str | Path | None) -> LuxmonConfig:
    """
    Load configuration from ``path``.

    Missing files fall back to default :class:`LuxmonConfig`.
    """
    if path is None:
        return LuxmonConfig()
    cfg_path = Path(path).expanduser()
    if not cfg_path.exists():
        return LuxmonConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


def save_config(path: str | Path, cfg: LuxmonConfig) -> None:
    """Write ``cfg`` as a flat YAML mapping."""
    cfg_path = Path(path).expanduser()
    if cfg_path.parent and not cfg_path.parent.exists():
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = {f.name: getattr(cfg, f.name) for f in fields(LuxmonConfig)}
    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False)


__all__ = [
    "CONFIG_ENV_VAR",
    "LuxmonConfig",
    "config_from_mapping",
    "default_config_path",
    "load_config",
    "save_config",
]

"""luxmon: photodiode illuminance monitor.

Serial readings are converted to lux with a Newton-Raphson inversion of a
power-law calibration, kept in bounded live buffers, and persisted.
"""

__version__ = "0.1.0"

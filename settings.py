"""Configuration for the equation visualizer service."""

import os
from dataclasses import dataclass, field
from functools import lru_cache


def _env_float(name, default):
    return float(os.getenv(name, default))


def _env_int(name, default):
    return int(os.getenv(name, default))


@dataclass
class VisualizerSettings:
    """Central configuration. Environment variables override the defaults."""

    # Numeric tunables
    complex_tolerance: float = field(default_factory=lambda: _env_float("VISUALIZER_COMPLEX_TOLERANCE", 1e-10))
    root_jump_guard: float = field(default_factory=lambda: _env_float("VISUALIZER_ROOT_JUMP_GUARD", 10))
    derivative_step: float = field(default_factory=lambda: _env_float("VISUALIZER_DERIVATIVE_STEP", 0.001))

    # Default sample counts
    curve_points: int = field(default_factory=lambda: _env_int("VISUALIZER_CURVE_POINTS", 1000))
    conic_points: int = field(default_factory=lambda: _env_int("VISUALIZER_CONIC_POINTS", 500))
    surface_resolution: int = field(default_factory=lambda: _env_int("VISUALIZER_SURFACE_RESOLUTION", 75))

    # Input limits
    max_input_length: int = field(default_factory=lambda: _env_int("VISUALIZER_MAX_INPUT_LENGTH", 200))

    # Background sampling
    request_timeout: float = field(default_factory=lambda: _env_float("VISUALIZER_REQUEST_TIMEOUT", 5.0))
    max_workers: int = field(default_factory=lambda: _env_int("VISUALIZER_MAX_WORKERS", 4))

    log_level: str = field(default_factory=lambda: os.getenv("VISUALIZER_LOG_LEVEL", "INFO"))


@lru_cache(maxsize=1)
def load_settings() -> VisualizerSettings:
    return VisualizerSettings()

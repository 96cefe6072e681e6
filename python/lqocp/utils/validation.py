"""Input validation utilities."""

from typing import Any, Optional, Tuple

import numpy as np

from ..exceptions import DimensionError, InvalidInputError


def as_matrix(value: Any, name: str, shape: Optional[Tuple[int, int]] = None) -> np.ndarray:
    """
    Convert to a float64 2-D array and optionally check its shape.

    Raises:
        DimensionError: If the array is not 2-D or has the wrong shape
    """
    arr = np.array(value, dtype=np.float64)
    if arr.ndim != 2:
        raise DimensionError(f"{name} must be 2D, got shape {arr.shape}")
    if shape is not None and arr.shape != tuple(shape):
        raise DimensionError(f"{name} must be {tuple(shape)}, got {arr.shape}")
    return arr


def as_vector(value: Any, name: str, size: Optional[int] = None) -> np.ndarray:
    """Convert to a float64 1-D array and optionally check its length."""
    arr = np.array(value, dtype=np.float64).ravel()
    if size is not None and arr.shape != (size,):
        raise DimensionError(f"{name} must have length {size}, got {arr.shape[0]}")
    return arr


def as_trajectory(value: Any, name: str, length: int, size: int) -> np.ndarray:
    """
    Broadcast a single vector or check a stacked trajectory.

    A 1-D input of length ``size`` is repeated ``length`` times; a 2-D input
    must already be ``(length, size)``.
    """
    arr = np.array(value, dtype=np.float64)
    if arr.ndim == 1:
        arr = as_vector(arr, name, size)
        return np.tile(arr, (length, 1))
    if arr.shape != (length, size):
        raise DimensionError(f"{name} must be ({length}, {size}), got {arr.shape}")
    return arr


def check_finite(arr: np.ndarray, name: str) -> None:
    """Raise InvalidInputError if the array contains NaN or inf."""
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError(f"{name} contains NaN or inf values")


def check_horizon(horizon: Any) -> int:
    """Validate a horizon length (number of stages N >= 1)."""
    if isinstance(horizon, bool) or not isinstance(horizon, (int, np.integer)) or horizon < 1:
        raise InvalidInputError(f"horizon must be a positive integer, got {horizon}")
    return int(horizon)

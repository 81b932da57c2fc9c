"""
Analysis/synthesis window table (sqrt-Hann).

The same coefficients are used before the forward transform and after the
inverse transform, so each frame is weighted by w^2 overall.
"""
import numpy as np

from .errors import ConfigurationError


def build_window(size, periodic=False):
    """
    Build a sqrt-Hann window.

    Args:
        size: window length N (>= 2)
        periodic: use denominator N instead of N-1 (torch.hann_window convention)

    Returns:
        read-only float64 array of N coefficients in [0, 1]
    """
    if int(size) != size or size < 2:
        raise ConfigurationError(f"window size must be an integer >= 2, got {size}")
    size = int(size)
    denom = size if periodic else size - 1
    n = np.arange(size, dtype=np.float64)
    hann = 0.5 * (1.0 - np.cos(2.0 * np.pi * n / denom))
    # cos rounding can leave tiny negatives at the edges
    window = np.sqrt(np.clip(hann, 0.0, 1.0))
    window.setflags(write=False)
    return window


def overlap_norm(window, hop_size):
    """
    Steady-state sum of the squared window over all frames overlapping one hop.

    norm[i] = sum_k window[i + k*hop]^2, i in [0, hop)
    """
    size = len(window)
    if hop_size <= 0 or size % hop_size != 0:
        raise ConfigurationError(f"hop size {hop_size} does not divide window size {size}")
    squared = np.asarray(window, dtype=np.float64) ** 2
    norm = squared.reshape(size // hop_size, hop_size).sum(axis=0)
    norm.setflags(write=False)
    return norm

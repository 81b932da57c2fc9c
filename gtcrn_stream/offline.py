"""
Whole-signal reference STFT/ISTFT (center=False), for checking the stream path.

enhance_offline() runs an adapter over a complete signal frame by frame and
resynthesizes with per-sample squared-window normalization. It left-pads the
signal with frame_size - hop_size zeros so frame t covers the same samples
as the streaming engine's t-th frame.
"""
import numpy as np

from .transform import get_transform
from .window import build_window


def stft(signal, window, hop_size, transform="numpy"):
    """
    Args:
        signal: 1-D real signal
        window: analysis window (its length is the frame size)
        hop_size: hop between frames

    Returns:
        complex array (num_frames, frame_size // 2 + 1)
    """
    signal = np.asarray(signal, dtype=np.float64)
    n = len(window)
    kernel = get_transform(transform, n)
    if len(signal) < n:
        return np.zeros((0, kernel.num_bins), dtype=np.complex128)
    num_frames = (len(signal) - n) // hop_size + 1
    spec = np.empty((num_frames, kernel.num_bins), dtype=np.complex128)
    for t in range(num_frames):
        start = t * hop_size
        spec[t] = kernel.forward(signal[start:start + n] * window)
    return spec


def istft(spec, window, hop_size, transform="numpy"):
    """Inverse of stft(): overlap-add divided by the summed squared window."""
    n = len(window)
    kernel = get_transform(transform, n)
    num_frames = spec.shape[0]
    if num_frames == 0:
        return np.zeros(0, dtype=np.float64)
    length = (num_frames - 1) * hop_size + n
    output = np.zeros(length, dtype=np.float64)
    window_sum = np.zeros(length, dtype=np.float64)
    for t in range(num_frames):
        start = t * hop_size
        frame = kernel.inverse(spec[t]) / n
        output[start:start + n] += frame * window
        window_sum[start:start + n] += window ** 2
    return output / np.maximum(window_sum, 1e-8)


def enhance_offline(signal, adapter, frame_size=512, hop_size=256, transform="numpy",
                    periodic_window=False):
    """
    Enhance a whole signal on the streaming timeline.

    Returns:
        float64 array of num_frames * hop_size samples; sample i equals the
        i-th streaming output sample once the steady state is reached
    """
    window = build_window(frame_size, periodic=periodic_window)
    latency = frame_size - hop_size
    padded = np.concatenate((np.zeros(latency), np.asarray(signal, dtype=np.float64)))
    spec = stft(padded, window, hop_size, transform)

    state = adapter.reset()
    enhanced = np.empty_like(spec)
    for t in range(spec.shape[0]):
        enhanced[t], state = adapter.apply(spec[t], state)

    y = istft(enhanced, window, hop_size, transform)
    return y[:spec.shape[0] * hop_size]

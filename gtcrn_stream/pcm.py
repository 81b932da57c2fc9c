"""16-bit PCM <-> float conversion for device callbacks."""
import numpy as np


def pcm16_to_float(data: bytes) -> np.ndarray:
    """Little-endian int16 bytes -> float32 samples in [-1, 1)."""
    if len(data) % 2:
        raise ValueError(f"16-bit PCM needs an even byte count, got {len(data)}")
    return np.frombuffer(data, dtype='<i2').astype(np.float32) / 32768.0


def float_to_pcm16(samples, gain: float = 1.0) -> bytes:
    """Float samples -> little-endian int16 bytes, clamped to [-1, 1] and scaled by 32767."""
    x = np.clip(np.asarray(samples, dtype=np.float32) * gain, -1.0, 1.0)
    return (x * 32767.0).astype('<i2').tobytes()

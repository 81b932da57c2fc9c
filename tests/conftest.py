import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def speech_like(rng):
    """A few seconds of noisy multi-tone signal at 16 kHz."""
    t = np.arange(16000) / 16000
    x = 0.3 * np.sin(2 * np.pi * 220 * t) + 0.2 * np.sin(2 * np.pi * 1375 * t)
    x += 0.05 * rng.standard_normal(t.size)
    return x.astype(np.float32)


def random_chunks(rng, total, max_chunk):
    """Split range(total) into random chunk boundaries, including empty chunks."""
    bounds = [0]
    while bounds[-1] < total:
        bounds.append(min(total, bounds[-1] + int(rng.integers(0, max_chunk + 1))))
    return list(zip(bounds[:-1], bounds[1:]))

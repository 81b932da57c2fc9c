"""
Streaming overlap-add.

Each accumulate() call takes one windowed inverse-transform frame and emits
the H samples that have now received every frame's contribution. The
remaining N-H samples are carried as the tail for the next call.
"""
import numpy as np

from .errors import ConfigurationError, InvariantViolation


class OverlapAddSynthesizer:
    """
    Args:
        frame_size: N
        hop_size: H, must divide N
        norm: optional H-length steady-state squared-window sum; emitted
              samples are divided by it. None emits the raw overlap-add.
    """

    def __init__(self, frame_size, hop_size, norm=None):
        if hop_size <= 0 or frame_size % hop_size != 0:
            raise ConfigurationError(f"hop size {hop_size} does not divide frame size {frame_size}")
        self.frame_size = frame_size
        self.hop_size = hop_size
        self._tail = np.zeros(frame_size - hop_size, dtype=np.float64)
        self._saved_tail = np.zeros_like(self._tail)
        self._hop = np.zeros(hop_size, dtype=np.float64)
        if norm is not None:
            norm = np.asarray(norm, dtype=np.float64)
            if norm.shape != (hop_size,):
                raise ConfigurationError(f"normalization table must have {hop_size} values, got {norm.shape}")
            if np.min(norm) <= 1e-8:
                raise ConfigurationError("window overlap sum has zeros, cannot normalize")
        self._norm = norm

    @property
    def normalized(self):
        return self._norm is not None

    def reset(self):
        self._tail.fill(0.0)

    def checkpoint(self):
        """Save the tail; rollback() returns to this point."""
        np.copyto(self._saved_tail, self._tail)

    def rollback(self):
        np.copyto(self._tail, self._saved_tail)

    def accumulate(self, frame, out=None):
        """
        Add one frame and return the finalized hop.

        Args:
            frame: N windowed samples
            out: optional H-sample array to write the result into

        Returns:
            `out`, or a new H-sample float64 array when out is None
        """
        frame = np.asarray(frame, dtype=np.float64)
        if frame.shape != (self.frame_size,):
            raise InvariantViolation(f"overlap-add expects {self.frame_size} samples, got shape {frame.shape}")
        hop = self.hop_size
        if out is None:
            out = np.empty(hop, dtype=np.float64)
        elif out.shape != (hop,):
            raise InvariantViolation(f"output slot must hold {hop} samples, got shape {out.shape}")

        emitted = self._hop
        if self._tail.size:
            np.add(frame[:hop], self._tail[:hop], out=emitted)
            # shift out the finalized hop, then add this frame's suffix
            self._tail[:-hop] = self._tail[hop:]
            self._tail[-hop:] = 0.0
            self._tail += frame[hop:]
        else:
            np.copyto(emitted, frame[:hop])

        if self._norm is not None:
            emitted /= self._norm
        out[:] = emitted
        return out

"""
Frame assembler: arbitrary-length sample chunks -> fixed-size overlapping frames.

The accumulator is one N-sample frame buffer split into two regions:

    overlap  : frame[:N-H], last N-H samples of the previous frame (zeros before the first frame)
    incoming : frame[N-H:], up to H new samples, with a fill count

Every time `incoming` is full the buffer holds one complete frame. All
buffers are allocated once; steady-state pushes only copy into them.
"""
import numpy as np

from .errors import ConfigurationError


class FrameAssembler:
    def __init__(self, frame_size, hop_size):
        if hop_size <= 0 or hop_size > frame_size:
            raise ConfigurationError(f"hop size must be in [1, {frame_size}], got {hop_size}")
        self.frame_size = frame_size
        self.hop_size = hop_size
        self._frame = np.zeros(frame_size, dtype=np.float64)
        self._filled = 0
        self._saved_frame = np.zeros(frame_size, dtype=np.float64)
        self._saved_filled = 0

    @property
    def pending(self):
        """Number of buffered samples that have not completed a hop yet."""
        return self._filled

    def reset(self):
        self._frame.fill(0.0)
        self._filled = 0

    def checkpoint(self):
        """Save the buffer contents; rollback() returns to this point."""
        np.copyto(self._saved_frame, self._frame)
        self._saved_filled = self._filled

    def rollback(self):
        np.copyto(self._frame, self._saved_frame)
        self._filled = self._saved_filled

    def frames_after(self, count):
        """Number of frames a push of `count` samples would complete."""
        return (self._filled + count) // self.hop_size

    def push(self, samples):
        """
        Feed samples, yielding every frame they complete in time order.

        The returned iterator must be exhausted: the leftover that does not
        complete a hop is buffered once the last frame has been consumed.
        Each yielded frame is the assembler's own buffer and is only valid
        until the iterator is advanced; copy it to keep it.

        Args:
            samples: 1-D array-like of real samples (any length, may be empty)

        Yields:
            float64 array of frame_size samples
        """
        samples = np.asarray(samples).ravel()
        total = samples.size
        hop = self.hop_size
        start = self.frame_size - hop
        pos = 0
        while pos < total:
            take = min(hop - self._filled, total - pos)
            offset = start + self._filled
            self._frame[offset:offset + take] = samples[pos:pos + take]
            self._filled += take
            pos += take
            if self._filled < hop:
                break
            yield self._frame
            # slide by one hop: the newest N-H samples become the overlap
            self._frame[:start] = self._frame[hop:]
            self._filled = 0

"""
Streaming STFT -> enhancement -> ISTFT engine.

    samples -> FrameAssembler -> window -> forward FFT -> adapter
            -> inverse FFT -> window/N -> OverlapAddSynthesizer -> samples

Output of one process() call is a multiple of hop_size samples and lags the
input by frame_size - hop_size samples. Samples that never complete a hop
are only emitted by flush().
"""
import logging
import time
from dataclasses import dataclass

import numpy as np

from .adapters import IdentityAdapter
from .errors import AdapterError, ConfigurationError, InvariantViolation
from .framing import FrameAssembler
from .overlap_add import OverlapAddSynthesizer
from .pcm import float_to_pcm16, pcm16_to_float
from .transform import get_transform, is_power_of_two
from .window import build_window, overlap_norm

logger = logging.getLogger(__name__)

_NO_OUTPUT = np.zeros(0, dtype=np.float32)
_NO_OUTPUT.setflags(write=False)


@dataclass
class EngineStats:
    frames: int = 0
    samples_in: int = 0
    samples_out: int = 0
    adapter_seconds: float = 0.0

    @property
    def mean_frame_ms(self) -> float:
        if self.frames == 0:
            return 0.0
        return self.adapter_seconds / self.frames * 1000.0

    def copy(self):
        return EngineStats(self.frames, self.samples_in, self.samples_out, self.adapter_seconds)

    def assign(self, other):
        self.frames = other.frames
        self.samples_in = other.samples_in
        self.samples_out = other.samples_out
        self.adapter_seconds = other.adapter_seconds


class StreamEngine:
    """
    One engine per audio stream. Not thread safe: at most one process(),
    flush() or reset() call may run at a time.

    Args:
        frame_size: N, power of two
        hop_size: H, must divide N with N/H >= 2
        adapter: enhancement adapter (default: identity)
        transform: kernel name ('numpy', 'torch', 'radix2') or a TransformKernel
        normalize: divide the overlap-add by the steady-state squared-window sum
        periodic_window: use the periodic sqrt-Hann instead of the symmetric one
    """

    def __init__(self, frame_size=512, hop_size=256, adapter=None, transform="numpy",
                 normalize=True, periodic_window=False):
        if not is_power_of_two(frame_size):
            raise ConfigurationError(f"frame_size must be a power of two >= 2, got {frame_size}")
        if not isinstance(hop_size, (int, np.integer)) or hop_size <= 0 \
                or frame_size % hop_size != 0 or frame_size // hop_size < 2:
            raise ConfigurationError(
                f"hop_size must divide frame_size with at least 50% overlap, got {hop_size} for {frame_size}")

        self.frame_size = int(frame_size)
        self.hop_size = int(hop_size)
        self.num_bins = self.frame_size // 2 + 1

        self.adapter = adapter if adapter is not None else IdentityAdapter()
        expected = getattr(self.adapter, 'num_bins', None)
        if expected is not None and expected != self.num_bins:
            raise ConfigurationError(
                f"adapter expects {expected} bins but frame_size {frame_size} gives {self.num_bins}")

        self.kernel = get_transform(transform, self.frame_size)
        self.window = build_window(self.frame_size, periodic=periodic_window)
        # inverse FFT is unscaled, apply 1/N once here
        self.synthesis_window = self.window / self.frame_size
        self.synthesis_window.setflags(write=False)

        norm = overlap_norm(self.window, self.hop_size)
        if np.min(norm) <= 1e-8:
            raise ConfigurationError(
                f"{'periodic' if periodic_window else 'symmetric'} sqrt-Hann of {frame_size} samples "
                f"has a zero overlap sum at hop {hop_size}, every output sample would be silent")
        self.assembler = FrameAssembler(self.frame_size, self.hop_size)
        self.synthesizer = OverlapAddSynthesizer(self.frame_size, self.hop_size, norm if normalize else None)
        # per-frame scratch
        self._analysis = np.zeros(self.frame_size, dtype=np.float64)
        self._synthesis = np.zeros(self.frame_size, dtype=np.float64)

        self.stats = EngineStats()
        self._saved_stats = EngineStats()
        self._state = self.adapter.reset()
        logger.info("stream engine ready: frame=%d hop=%d transform=%s adapter=%s normalize=%s",
                    self.frame_size, self.hop_size, self.kernel.name,
                    type(self.adapter).__name__, normalize)

    @classmethod
    def from_config(cls, config, adapter=None):
        return cls(config.frame_size, config.hop_size, adapter,
                   transform=config.transform, normalize=config.normalize,
                   periodic_window=config.periodic_window)

    @property
    def latency(self):
        """Delay between input and output in samples."""
        return self.frame_size - self.hop_size

    @property
    def state(self):
        """Current adapter state handle (opaque)."""
        return self._state

    @property
    def pending(self):
        return self.assembler.pending

    def reset(self):
        """Zero the input/output buffers and request a fresh adapter state."""
        self.assembler.reset()
        self.synthesizer.reset()
        self._state = self.adapter.reset()
        self.stats = EngineStats()
        logger.debug("stream engine reset")

    def process(self, samples):
        """
        Feed a chunk of samples and return the enhanced samples it completes.

        Args:
            samples: 1-D array-like of float samples, any length

        Returns:
            float32 array, length a multiple of hop_size (possibly 0)

        Raises:
            AdapterError: the adapter failed; buffers and state are unchanged
        """
        samples = np.asarray(samples).ravel()
        hop = self.hop_size
        count = self.assembler.frames_after(samples.size)
        out = np.empty(count * hop, dtype=np.float32) if count else _NO_OUTPUT

        self.assembler.checkpoint()
        self.synthesizer.checkpoint()
        self._saved_stats.assign(self.stats)
        state = self._state
        try:
            for i, frame in enumerate(self.assembler.push(samples)):
                self._process_frame(frame, out[i * hop:(i + 1) * hop])
        except BaseException:
            self.assembler.rollback()
            self.synthesizer.rollback()
            self.stats.assign(self._saved_stats)
            self._state = state
            raise

        self.stats.samples_in += samples.size
        self.stats.samples_out += out.size
        return out

    def flush(self):
        """
        Zero-pad the stream end so every buffered input sample is emitted.

        Returns pending + (frame_size - hop_size) samples, then resets the engine.
        """
        remaining = self.assembler.pending + self.latency
        pad = (self.hop_size - self.assembler.pending) % self.hop_size + self.latency
        out = self.process(np.zeros(pad, dtype=np.float64))
        if out.size < remaining:
            raise InvariantViolation(f"flush produced {out.size} samples, expected at least {remaining}")
        logger.debug("flushed %d samples", remaining)
        self.reset()
        return out[:remaining]

    def process_pcm16(self, data: bytes) -> bytes:
        """process() for little-endian 16-bit PCM bytes (device callback format)."""
        return float_to_pcm16(self.process(pcm16_to_float(data)))

    def _process_frame(self, frame, out):
        if frame.shape != (self.frame_size,):
            raise InvariantViolation(f"frame has shape {frame.shape}, expected ({self.frame_size},)")

        np.multiply(frame, self.window, out=self._analysis)
        spectrum = self.kernel.forward(self._analysis)
        enhanced = self._apply_adapter(spectrum)
        time_frame = self.kernel.inverse(enhanced)
        if time_frame.shape != (self.frame_size,):
            raise InvariantViolation(f"inverse transform returned shape {time_frame.shape}")

        np.multiply(time_frame, self.synthesis_window, out=self._synthesis)
        self.synthesizer.accumulate(self._synthesis, out=out)
        self.stats.frames += 1

    def _apply_adapter(self, spectrum):
        tic = time.perf_counter()
        try:
            result = self.adapter.apply(spectrum, self._state)
        except Exception as exc:
            raise AdapterError(f"adapter {type(self.adapter).__name__} failed: {exc}") from exc
        self.stats.adapter_seconds += time.perf_counter() - tic

        if not isinstance(result, tuple) or len(result) != 2:
            raise AdapterError("adapter must return a (spectrum, state) pair")
        enhanced, new_state = result
        try:
            enhanced = np.asarray(enhanced, dtype=np.complex128).reshape(-1)
        except (TypeError, ValueError) as exc:
            raise AdapterError(f"adapter returned a non-numeric spectrum: {exc}") from exc
        if enhanced.size != self.num_bins:
            raise AdapterError(f"adapter returned {enhanced.size} bins, expected {self.num_bins}")

        self._state = new_state
        return enhanced

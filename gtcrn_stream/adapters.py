"""
Enhancement adapters: per-frame spectral models with opaque recurrent state.

Contract (duck-typed, see EnhancementAdapter):
    reset() -> state
    apply(spectrum, state) -> (enhanced_spectrum, new_state)

The engine passes the returned state into the next call and never calls
apply() concurrently.
"""
import logging
import os
from typing import NamedTuple

import numpy as np

logger = logging.getLogger(__name__)


class EnhancementAdapter:
    """Base class for adapters. Subclasses override reset() and apply()."""

    # bin count the model expects; None accepts any frame size
    num_bins = None

    def reset(self):
        raise NotImplementedError

    def apply(self, spectrum, state):
        raise NotImplementedError


class IdentityAdapter(EnhancementAdapter):
    """Pass-through: returns the spectrum and state unchanged."""

    def reset(self):
        return None

    def apply(self, spectrum, state):
        return spectrum, state


class FunctionAdapter(EnhancementAdapter):
    """
    Wrap a plain function `fn(spectrum, state) -> (spectrum, state)`.

    Args:
        fn: per-frame function
        initial_state: zero-argument factory for the reset state
        num_bins: optional expected bin count
    """

    def __init__(self, fn, initial_state=None, num_bins=None):
        self.fn = fn
        self.initial_state = initial_state
        self.num_bins = num_bins

    def reset(self):
        return self.initial_state() if self.initial_state is not None else None

    def apply(self, spectrum, state):
        return self.fn(spectrum, state)


class GtcrnCaches(NamedTuple):
    """Recurrent caches of the streaming GTCRN model."""
    conv_cache: np.ndarray
    tra_cache: np.ndarray
    inter_cache: np.ndarray


class OnnxGtcrnAdapter(EnhancementAdapter):
    """
    Streaming GTCRN exported to ONNX (16 kHz, n_fft=512, hop=256).

    Inputs:  mix (1, 257, 1, 2), conv_cache, tra_cache, inter_cache
    Outputs: enh (1, 257, 1, 2), conv_cache_out, tra_cache_out, inter_cache_out
    """

    NUM_BINS = 257
    CACHE_SHAPES = {
        'conv_cache': (2, 1, 16, 16, 33),
        'tra_cache': (2, 3, 1, 1, 16),
        'inter_cache': (2, 1, 33, 16),
    }

    num_bins = NUM_BINS

    def __init__(self, model_path: str = None, session=None, intra_op_threads: int = None):
        """
        Args:
            model_path: path to the streaming .onnx model
            session: an already created InferenceSession (model_path is then ignored)
            intra_op_threads: onnxruntime intra-op threads (default: CPU count)
        """
        if session is None:
            if model_path is None:
                raise ValueError("either model_path or session is required")
            if not os.path.exists(model_path):
                raise FileNotFoundError(f"model file not found: {model_path}")
            session = self._create_session(model_path, intra_op_threads)
        self.session = session
        self.model_path = model_path
        self._output_names = ['enh', 'conv_cache_out', 'tra_cache_out', 'inter_cache_out']

    @staticmethod
    def _create_session(model_path, intra_op_threads=None):
        import onnxruntime as ort

        options = ort.SessionOptions()
        options.inter_op_num_threads = 1
        options.intra_op_num_threads = intra_op_threads or max(1, os.cpu_count() or 1)
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        options.execution_mode = ort.ExecutionMode.ORT_SEQUENTIAL
        session = ort.InferenceSession(model_path, sess_options=options,
                                       providers=['CPUExecutionProvider'])
        logger.info("loaded ONNX model %s", model_path)
        return session

    def reset(self):
        return GtcrnCaches(**{name: np.zeros(shape, dtype=np.float32)
                              for name, shape in self.CACHE_SHAPES.items()})

    def apply(self, spectrum, state):
        spectrum = np.asarray(spectrum)
        mix = np.empty((1, self.NUM_BINS, 1, 2), dtype=np.float32)
        mix[0, :, 0, 0] = spectrum.real
        mix[0, :, 0, 1] = spectrum.imag

        feeds = {
            'mix': mix,
            'conv_cache': state.conv_cache,
            'tra_cache': state.tra_cache,
            'inter_cache': state.inter_cache,
        }
        enh, conv_cache, tra_cache, inter_cache = self.session.run(self._output_names, feeds)

        enh = np.asarray(enh, dtype=np.float32)
        enhanced = enh[0, :, 0, 0].astype(np.float64) + 1j * enh[0, :, 0, 1].astype(np.float64)
        return enhanced, GtcrnCaches(np.asarray(conv_cache, dtype=np.float32),
                                     np.asarray(tra_cache, dtype=np.float32),
                                     np.asarray(inter_cache, dtype=np.float32))

"""
Streaming STFT analysis/synthesis engine for real-time GTCRN speech enhancement.

    from gtcrn_stream import StreamEngine, OnnxGtcrnAdapter

    engine = StreamEngine(512, 256, OnnxGtcrnAdapter("gtcrn_stream.onnx"))
    out = engine.process(block)   # any block size, returns k * 256 samples
    tail = engine.flush()         # end of stream
"""
from .adapters import EnhancementAdapter, FunctionAdapter, GtcrnCaches, IdentityAdapter, OnnxGtcrnAdapter
from .config import EngineConfig
from .engine import EngineStats, StreamEngine
from .errors import AdapterError, ConfigurationError, InvariantViolation, StreamError
from .framing import FrameAssembler
from .overlap_add import OverlapAddSynthesizer
from .transform import NumpyTransform, Radix2Transform, TorchTransform, TransformKernel, get_transform
from .window import build_window, overlap_norm

__version__ = "0.1.0"

__all__ = [
    'StreamEngine',
    'EngineStats',
    'EngineConfig',
    'EnhancementAdapter',
    'IdentityAdapter',
    'FunctionAdapter',
    'OnnxGtcrnAdapter',
    'GtcrnCaches',
    'FrameAssembler',
    'OverlapAddSynthesizer',
    'TransformKernel',
    'NumpyTransform',
    'TorchTransform',
    'Radix2Transform',
    'get_transform',
    'build_window',
    'overlap_norm',
    'StreamError',
    'ConfigurationError',
    'AdapterError',
    'InvariantViolation',
]

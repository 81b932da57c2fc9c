"""
File-batch driver for the streaming engine.

Audio is fed to the engine in callback-sized blocks (as a live input would
deliver it), then flushed, and the engine latency is trimmed so the written
output is sample-aligned with the input.
"""
import logging
import os
import time
from glob import glob

import numpy as np
import soundfile as sf
from tqdm import tqdm

from .adapters import IdentityAdapter, OnnxGtcrnAdapter
from .config import EngineConfig
from .engine import StreamEngine
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class StreamInference:
    """Streaming GTCRN inference over audio files."""

    SUPPORTED_FORMATS = ['.wav', '.flac', '.ogg']

    def __init__(self, model_path: str = None, config: EngineConfig = None, adapter=None):
        """
        Args:
            model_path: streaming GTCRN .onnx model; None runs the identity adapter
            config: engine configuration (default: EngineConfig.from_env())
            adapter: explicit adapter, overrides model_path
        """
        self.config = config if config is not None else EngineConfig.from_env()
        if adapter is None:
            adapter = OnnxGtcrnAdapter(model_path) if model_path else IdentityAdapter()
        self.adapter = adapter
        self.engine = StreamEngine.from_config(self.config, adapter)
        self.sample_rate = self.config.sample_rate
        self.last_rtf = None
        self.last_stats = None

    def load_audio(self, audio_path: str) -> tuple:
        """
        Load an audio file as mono float32 at the model sample rate.

        Returns:
            audio: float32 array
            sr: sample rate
        """
        audio, sr = sf.read(audio_path, dtype='float32')
        if audio.ndim > 1:
            audio = np.mean(audio, axis=1)

        if sr != self.sample_rate:
            from scipy import signal
            logger.warning("input sample rate %dHz, resampling to %dHz", sr, self.sample_rate)
            gcd = np.gcd(sr, self.sample_rate)
            audio = signal.resample_poly(audio, self.sample_rate // gcd, sr // gcd)

        return audio.astype(np.float32), self.sample_rate

    def save_audio(self, audio: np.ndarray, output_path: str, sr: int = None):
        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        sf.write(output_path, audio, sr or self.sample_rate)

    def enhance(self, audio: np.ndarray, block_size: int = None) -> np.ndarray:
        """
        Stream a whole signal through the engine.

        Args:
            audio: mono float samples
            block_size: samples per process() call (default: config.block_size)

        Returns:
            enhanced audio, same length as the input
        """
        if block_size is None:
            block_size = self.config.block_size
        if block_size <= 0:
            raise ConfigurationError(f"block_size must be positive, got {block_size}")
        self.engine.reset()

        tic = time.perf_counter()
        chunks = [self.engine.process(audio[start:start + block_size])
                  for start in range(0, len(audio), block_size)]
        self.last_stats = self.engine.stats.copy()
        chunks.append(self.engine.flush())
        elapsed = time.perf_counter() - tic

        enhanced = np.concatenate(chunks)
        latency = self.config.latency
        enhanced = enhanced[latency:latency + len(audio)]

        duration = len(audio) / self.sample_rate
        self.last_rtf = elapsed / duration if duration > 0 else None
        return enhanced

    def process_file(self, input_path: str, output_path: str, block_size: int = None):
        audio, sr = self.load_audio(input_path)
        enhanced = self.enhance(audio, block_size)
        self.save_audio(enhanced, output_path, sr)
        return enhanced

    def process_directory(self, input_dir: str, output_dir: str, block_size: int = None,
                          suffix: str = "", keep_structure: bool = True):
        """Enhance every supported audio file under input_dir. Returns (success, failed)."""
        if not os.path.isdir(input_dir):
            raise ValueError(f"input path is not a directory: {input_dir}")
        os.makedirs(output_dir, exist_ok=True)

        audio_files = []
        for ext in self.SUPPORTED_FORMATS:
            if keep_structure:
                audio_files.extend(glob(os.path.join(input_dir, '**', f'*{ext}'), recursive=True))
                audio_files.extend(glob(os.path.join(input_dir, '**', f'*{ext.upper()}'), recursive=True))
            else:
                audio_files.extend(glob(os.path.join(input_dir, f'*{ext}')))
                audio_files.extend(glob(os.path.join(input_dir, f'*{ext.upper()}')))
        audio_files = sorted(set(audio_files))

        if not audio_files:
            print(f"no audio files found in {input_dir}")
            return 0, []

        print(f"found {len(audio_files)} audio files")
        print("-" * 50)

        success_count = 0
        failed = []
        for input_path in tqdm(audio_files, desc="enhancing"):
            rel_path = os.path.relpath(input_path, input_dir) if keep_structure \
                else os.path.basename(input_path)
            name, ext = os.path.splitext(rel_path)
            output_path = os.path.join(output_dir, f"{name}{suffix}{ext}")
            try:
                self.process_file(input_path, output_path, block_size)
                success_count += 1
            except Exception as e:
                print(f"\nfailed: {input_path}")
                print(f"  error: {e}")
                failed.append(input_path)

        print("-" * 50)
        print(f"done. success: {success_count}, failed: {len(failed)}")
        return success_count, failed

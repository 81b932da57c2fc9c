"""
Engine configuration.

Defaults match the 16 kHz streaming GTCRN model (n_fft=512, hop=256).
Every field can be overridden from the environment (GTCRN_*), and the
command line overrides both.
"""
import os
from dataclasses import dataclass, fields, replace

from .errors import ConfigurationError


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class EngineConfig:
    frame_size: int = 512
    hop_size: int = 256
    sample_rate: int = 16000
    transform: str = "numpy"
    normalize: bool = True
    periodic_window: bool = False
    # callback block size used by the file driver
    block_size: int = 256

    @classmethod
    def from_env(cls, environ=None, prefix="GTCRN_"):
        """Build a config from GTCRN_FRAME_SIZE, GTCRN_HOP_SIZE, ... variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(prefix + f.name.upper())
            if raw is None or raw == "":
                continue
            try:
                if f.type in (bool, "bool"):
                    values[f.name] = _env_bool(raw)
                elif f.type in (int, "int"):
                    values[f.name] = int(raw)
                else:
                    values[f.name] = raw
            except ValueError:
                raise ConfigurationError(f"invalid value for {prefix}{f.name.upper()}: {raw!r}") from None
        return cls(**values).validate()

    def override(self, **kwargs):
        """Return a copy with the non-None keyword values applied."""
        changes = {k: v for k, v in kwargs.items() if v is not None}
        return replace(self, **changes).validate()

    def validate(self):
        n, h = self.frame_size, self.hop_size
        if n < 2 or n & (n - 1):
            raise ConfigurationError(f"frame_size must be a power of two >= 2, got {n}")
        if h <= 0 or n % h != 0 or n // h < 2:
            raise ConfigurationError(
                f"hop_size must divide frame_size with at least 50% overlap, got {h} for {n}")
        if self.sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.block_size <= 0:
            raise ConfigurationError(f"block_size must be positive, got {self.block_size}")
        return self

    @property
    def latency(self) -> int:
        """Algorithmic delay in samples."""
        return self.frame_size - self.hop_size

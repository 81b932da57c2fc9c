"""
Fixed-size forward/inverse spectral transforms.

Every kernel maps an N-point real frame to the N/2+1 non-negative frequency
bins and back. The inverse rebuilds the conjugate-symmetric full spectrum
and applies NO 1/N scaling; the caller folds that into the synthesis window.

Kernels:
    numpy  - numpy.fft
    torch  - torch.fft (same backend as torch.stft/istft)
    radix2 - iterative Cooley-Tukey with precomputed bit reversal and twiddles
"""
import numpy as np
import torch

from .errors import ConfigurationError, InvariantViolation


def is_power_of_two(n):
    return isinstance(n, (int, np.integer)) and n >= 2 and (n & (n - 1)) == 0


class TransformKernel:
    """Base class: size checks and half-spectrum mirroring."""

    name = "base"

    def __init__(self, size):
        if not is_power_of_two(size):
            raise ConfigurationError(f"transform size must be a power of two >= 2, got {size}")
        self.size = int(size)
        self.num_bins = self.size // 2 + 1
        self._full = np.zeros(self.size, dtype=np.complex128)

    def forward(self, frame):
        frame = np.asarray(frame, dtype=np.float64)
        if frame.shape != (self.size,):
            raise InvariantViolation(f"forward() expects {self.size} samples, got shape {frame.shape}")
        return self._forward(frame)

    def inverse(self, spectrum):
        spectrum = np.asarray(spectrum, dtype=np.complex128)
        if spectrum.shape != (self.num_bins,):
            raise InvariantViolation(f"inverse() expects {self.num_bins} bins, got shape {spectrum.shape}")
        return self._inverse(self.full_spectrum(spectrum))

    def full_spectrum(self, half):
        """
        Mirror bins 1..N/2-1 as conjugates into N-1..N/2+1 and force DC/Nyquist real.

        The result lives in a scratch buffer owned by the kernel and is
        overwritten by the next call.
        """
        n = self.size
        full = self._full
        full[:self.num_bins] = half
        np.conj(half[1:-1][::-1], out=full[self.num_bins:])
        full[0] = full[0].real
        full[n // 2] = full[n // 2].real
        return full

    def _forward(self, frame):
        raise NotImplementedError

    def _inverse(self, full):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}(size={self.size})"


class NumpyTransform(TransformKernel):
    name = "numpy"

    def _forward(self, frame):
        return np.fft.rfft(frame)

    def _inverse(self, full):
        # norm="forward" leaves the inverse unscaled
        return np.fft.ifft(full, norm="forward").real.copy()


class TorchTransform(TransformKernel):
    name = "torch"

    def _forward(self, frame):
        spec = torch.fft.rfft(torch.from_numpy(frame))
        return spec.numpy().astype(np.complex128)

    def _inverse(self, full):
        y = torch.fft.ifft(torch.from_numpy(full), norm="forward")
        return y.real.numpy().astype(np.float64)


class Radix2Transform(TransformKernel):
    """In-place style iterative radix-2 decimation-in-time FFT."""

    name = "radix2"

    def __init__(self, size):
        super().__init__(size)
        n = self.size
        bits = n.bit_length() - 1
        idx = np.arange(n)
        rev = np.zeros(n, dtype=np.int64)
        for b in range(bits):
            rev |= ((idx >> b) & 1) << (bits - 1 - b)
        self._bitrev = rev
        twiddles = np.exp(-2j * np.pi * np.arange(n // 2) / n)
        # one twiddle row per butterfly stage, block sizes 2, 4, ..., n
        self._stage_twiddles = [twiddles[(n // (2 * half)) * np.arange(half)]
                                for half in (2 ** s for s in range(bits))]

    def _fft(self, x):
        x = x[self._bitrev]
        for tw in self._stage_twiddles:
            half = tw.size
            block = 2 * half
            x = x.reshape(-1, block)
            even = x[:, :half]
            odd = x[:, half:] * tw
            x = np.concatenate((even + odd, even - odd), axis=1).ravel()
        return x

    def _forward(self, frame):
        return self._fft(frame.astype(np.complex128))[:self.num_bins]

    def _inverse(self, full):
        # unscaled inverse: conj(FFT(conj(X)))
        return np.conj(self._fft(np.conj(full))).real.copy()


TRANSFORMS = {
    NumpyTransform.name: NumpyTransform,
    TorchTransform.name: TorchTransform,
    Radix2Transform.name: Radix2Transform,
}


def get_transform(name, size):
    """Instantiate a transform kernel by name ('numpy', 'torch', 'radix2')."""
    if isinstance(name, TransformKernel):
        if name.size != size:
            raise ConfigurationError(f"transform size {name.size} does not match frame size {size}")
        return name
    try:
        cls = TRANSFORMS[name]
    except KeyError:
        raise ConfigurationError(
            f"unknown transform '{name}', expected one of {sorted(TRANSFORMS)}") from None
    return cls(size)

"""
Spectrogram sources.

A spectrogram source gives read-only access to a magnitude matrix
(rows = time frames, columns = frequency bins) and the complex frames it
was computed from. `Spectrogram` builds both from audio with a
short-time FFT.
"""

import math
from abc import ABC, abstractmethod
from typing import NamedTuple

import numpy as np
from scipy import signal

from specchain.transforms.wave import WaveData


class ComplexBin(NamedTuple):
    """A single frequency bin as a real/imaginary pair."""

    real: float
    imag: float

    @classmethod
    def from_polar(cls, magnitude: float, phase: float) -> 'ComplexBin':
        return cls(magnitude * math.cos(phase), magnitude * math.sin(phase))

    @property
    def magnitude(self) -> float:
        return math.hypot(self.real, self.imag)

    @property
    def phase(self) -> float:
        return math.atan2(self.imag, self.real)


class SpectrogramSource(ABC):
    """
    Abstract source of spectrogram data for a transform engine.

    Subclasses must implement:
        - absolute_spectrogram: magnitude matrix [frames, bins]
        - complex_spectrogram: complex frames [frames, complex_bins]
        - sample_rate: sample rate of the audio the data came from
    """

    @abstractmethod
    def absolute_spectrogram(self) -> np.ndarray:
        """Return the magnitude matrix as float64 [frames, bins]."""
        pass

    @abstractmethod
    def complex_spectrogram(self) -> np.ndarray:
        """Return the complex frames as complex128 [frames, complex_bins]."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> float:
        """Sample rate in Hz."""
        pass

    def complex_bin(self, frame: int, index: int) -> ComplexBin:
        """Return one bin of the complex spectrogram."""
        value = self.complex_spectrogram()[frame, index]
        return ComplexBin(float(value.real), float(value.imag))


class Spectrogram(SpectrogramSource):
    """
    Short-time FFT spectrogram of a mono signal.

    Frames are `fft_length` samples long and start every `hop_length`
    samples, without centre padding. Each frame is weighted by a periodic
    Hann window and keeps the first `fft_length // 2` one-sided bins, so bin
    k sits at k * sample_rate / fft_length Hz and the row spans 0 to the
    Nyquist frequency.

    Args:
        wave: Input audio
        fft_length: FFT window length in samples
        hop_length: Step between frames in samples
    """

    def __init__(self, wave: WaveData, fft_length: int, hop_length: int):
        if fft_length < 2:
            raise ValueError(f"fft_length must be at least 2, got {fft_length}")
        if hop_length < 1:
            raise ValueError(f"hop_length must be positive, got {hop_length}")

        n_samples = len(wave.samples)
        if n_samples < fft_length:
            raise ValueError(
                f"Audio has {n_samples} samples, fewer than one FFT frame "
                f"({fft_length})"
            )

        self.fft_length = fft_length
        self.hop_length = hop_length
        self._sample_rate = wave.sample_rate

        n_frames = 1 + (n_samples - fft_length) // hop_length
        starts = np.arange(n_frames) * hop_length
        frames = wave.samples[starts[:, None] + np.arange(fft_length)[None, :]]

        window = signal.get_window("hann", fft_length, fftbins=True)
        spectrum = np.fft.rfft(frames * window, n=fft_length, axis=1)

        self._complex = spectrum[:, :fft_length // 2].astype(np.complex128)
        self._absolute = np.abs(self._complex)

    def absolute_spectrogram(self) -> np.ndarray:
        return self._absolute.copy()

    def complex_spectrogram(self) -> np.ndarray:
        return self._complex.copy()

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    @property
    def n_frames(self) -> int:
        return self._absolute.shape[0]

    @property
    def n_bins(self) -> int:
        return self._absolute.shape[1]

    def frequencies(self) -> np.ndarray:
        """Centre frequency of each bin in Hz."""
        return np.arange(self.n_bins) * self._sample_rate / self.fft_length

    def __repr__(self) -> str:
        return (
            f"Spectrogram(frames={self.n_frames}, bins={self.n_bins}, "
            f"sample_rate={self._sample_rate})"
        )


class ArraySpectrogram(SpectrogramSource):
    """
    Spectrogram source backed by precomputed arrays.

    Useful when the magnitude matrix comes from elsewhere. When no complex
    frames are given they default to the magnitude with zero phase.

    Args:
        absolute: Magnitude matrix [frames, bins]
        sample_rate: Sample rate in Hz
        complex_frames: Optional complex frames [frames, complex_bins]
    """

    def __init__(self, absolute, sample_rate: float, complex_frames=None):
        absolute = np.array(absolute, dtype=np.float64)
        if absolute.ndim != 2 or absolute.size == 0:
            raise ValueError(
                f"Spectrogram must be a non-empty 2-D matrix, got shape {absolute.shape}"
            )

        if complex_frames is None:
            complex_frames = absolute.astype(np.complex128)
        else:
            complex_frames = np.array(complex_frames, dtype=np.complex128)
            if complex_frames.shape[0] != absolute.shape[0]:
                raise ValueError(
                    f"Complex frames ({complex_frames.shape[0]}) do not match "
                    f"magnitude frames ({absolute.shape[0]})"
                )

        self._absolute = absolute
        self._complex = complex_frames
        self._sample_rate = float(sample_rate)

    def absolute_spectrogram(self) -> np.ndarray:
        return self._absolute.copy()

    def complex_spectrogram(self) -> np.ndarray:
        return self._complex.copy()

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

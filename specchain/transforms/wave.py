"""
Wave-domain transforms.

Operate on raw audio before it is turned into a spectrogram:
- decimate: resample to the sample rate a model was trained on
- preemphasis: first-order high-pass that attenuates low frequencies
"""

from dataclasses import dataclass
from typing import Union

import numpy as np
import torch
from scipy import signal


@dataclass(frozen=True)
class WaveData:
    """
    Mono audio samples with their sample rate.

    Attributes:
        samples: 1-D float64 array of audio samples
        sample_rate: Sampling rate in Hz
    """

    samples: np.ndarray
    sample_rate: float

    @classmethod
    def from_signal(
        cls,
        waveform: Union[np.ndarray, torch.Tensor],
        sample_rate: float
    ) -> 'WaveData':
        """
        Build WaveData from a numpy array or tensor.

        Multi-channel input [C, N] is averaged down to mono. The samples are
        copied so the caller's buffer is never modified.
        """
        if isinstance(waveform, torch.Tensor):
            waveform = waveform.detach().cpu().numpy()

        samples = np.array(waveform, dtype=np.float64)

        # Ensure 1D (mono)
        if samples.ndim > 1:
            samples = samples.mean(axis=0)

        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")

        return cls(samples=samples, sample_rate=float(sample_rate))

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self.samples) / self.sample_rate


def decimate(wave: WaveData, target_sample_rate: float) -> WaveData:
    """
    Resample audio to a target sample rate.

    Despite the name this also up-samples when the target rate is higher.
    Audio already at the target rate is returned unchanged.

    Args:
        wave: Input audio
        target_sample_rate: Desired sample rate in Hz

    Returns:
        Resampled audio
    """
    import librosa

    if wave.sample_rate == target_sample_rate:
        return wave

    resampled = librosa.resample(
        wave.samples,
        orig_sr=wave.sample_rate,
        target_sr=target_sample_rate
    )
    return WaveData(samples=np.asarray(resampled, dtype=np.float64),
                    sample_rate=float(target_sample_rate))


def preemphasis(wave: WaveData, coefficient: float) -> WaveData:
    """
    Apply a pre-emphasis filter, y[n] = x[n] - a * x[n-1].

    The first sample passes through unchanged.
    """
    filtered = signal.lfilter([1.0, -coefficient], [1.0], wave.samples)
    return WaveData(samples=filtered, sample_rate=wave.sample_rate)

"""
Concrete pipeline stages, one per stage kind.

Each class is registered in `stage_registry` under its kind's value; each
class's `domain` must agree with `StageKind.domain`. Constructors validate
parameter values and raise ConfigurationError on bad input.
"""

from specchain.descriptors import StageKind
from specchain.engine import SpecTransform
from specchain.errors import ConfigurationError
from specchain.registry import stage_registry
from specchain.spectrogram import Spectrogram
from specchain.transforms import wave as wave_ops
from specchain.transforms.base import (
    FreqStage,
    WaveStage,
    check_bool,
    check_number,
    check_positive,
    check_positive_int,
)
from specchain.transforms.wave import WaveData


def _register(kind: StageKind):
    return stage_registry.register(kind.value)


# ----------------------------------------------------------------------
# Wave-domain stages
# ----------------------------------------------------------------------

@_register(StageKind.DECIMATE)
class DecimateStage(WaveStage):
    """Resample audio to the sample rate the model expects."""

    kind = StageKind.DECIMATE

    def __init__(self, target_sample_rate):
        self.target_sample_rate = check_positive("target_sample_rate", target_sample_rate)

    @property
    def params(self):
        return (self.target_sample_rate,)

    def transform(self, wave: WaveData) -> WaveData:
        return wave_ops.decimate(wave, self.target_sample_rate)


@_register(StageKind.PREEMPHASIS)
class PreemphasisStage(WaveStage):
    """Attenuate low frequencies with a first-order pre-emphasis filter."""

    kind = StageKind.PREEMPHASIS

    def __init__(self, coefficient):
        self.coefficient = check_number("coefficient", coefficient)

    @property
    def params(self):
        return (self.coefficient,)

    def transform(self, wave: WaveData) -> WaveData:
        return wave_ops.preemphasis(wave, self.coefficient)


@_register(StageKind.SPECTROGRAM)
class SpectrogramStage(WaveStage):
    """
    Compute the spectrogram and hand it to a new SpecTransform engine.

    This is the transition from the wave domain to the frequency domain.

    Args:
        fft_length: FFT window length in samples
        hop_length: Step between frames in samples
        maintain_phase: Keep the complex frames in step with later transforms
    """

    kind = StageKind.SPECTROGRAM

    def __init__(self, fft_length, hop_length, maintain_phase: bool = False):
        self.fft_length = check_positive_int("fft_length", fft_length)
        self.hop_length = check_positive_int("hop_length", hop_length)
        if self.fft_length < 2:
            raise ConfigurationError(f"fft_length must be at least 2, got {self.fft_length}")
        self.maintain_phase = maintain_phase

    @property
    def params(self):
        return (self.fft_length, self.hop_length)

    def transform(self, wave: WaveData) -> SpecTransform:
        spectrogram = Spectrogram(wave, self.fft_length, self.hop_length)
        return SpecTransform(spectrogram, maintain_phase=self.maintain_phase)


# ----------------------------------------------------------------------
# Frequency-domain stages
# ----------------------------------------------------------------------

@_register(StageKind.SPEC2DB)
class Spec2dBStage(FreqStage):
    """Convert to decibels (power by default)."""

    kind = StageKind.SPEC2DB

    def __init__(self, power=True):
        self.power = check_bool("power", power)

    @property
    def params(self):
        return (self.power,)

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.db_spec(self.power)


@_register(StageKind.SPECNORMALISE)
class SpecNormaliseStage(FreqStage):
    """Normalise between a minimum and a reference dB level."""

    kind = StageKind.SPECNORMALISE

    def __init__(self, min_level_db, ref_level_db):
        self.min_level_db = check_number("min_level_db", min_level_db)
        self.ref_level_db = check_number("ref_level_db", ref_level_db)
        if self.min_level_db == 0:
            raise ConfigurationError("min_level_db must be non-zero")

    @property
    def params(self):
        return (self.min_level_db, self.ref_level_db)

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.normalise(self.min_level_db, self.ref_level_db)


@_register(StageKind.SPECNORMALISE_STD)
class SpecNormaliseStdStage(FreqStage):
    """Normalise to a target mean and standard deviation."""

    kind = StageKind.SPECNORMALISE_STD

    def __init__(self, mean, std):
        self.mean = check_number("mean", mean)
        self.std = check_number("std", std)

    @property
    def params(self):
        return (self.mean, self.std)

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.normalise_std(self.mean, self.std)


@_register(StageKind.REDUCE_TONAL_NOISE_MEAN)
class ReduceTonalNoiseMeanStage(FreqStage):
    """Subtract a running mean from each frame."""

    kind = StageKind.REDUCE_TONAL_NOISE_MEAN

    def __init__(self, time_const_len):
        self.time_const_len = check_positive("time_const_len", time_const_len)

    @property
    def params(self):
        return (self.time_const_len,)

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.reduce_tonal_noise_mean(self.time_const_len)


@_register(StageKind.REDUCE_TONAL_NOISE_MEDIAN)
class ReduceTonalNoiseMedianStage(FreqStage):
    """Subtract the median of each frequency bin."""

    kind = StageKind.REDUCE_TONAL_NOISE_MEDIAN

    @property
    def params(self):
        return ()

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.reduce_tonal_noise_median()


@_register(StageKind.SPECCLAMP)
class SpecClampStage(FreqStage):
    """Clamp values to [min_val, max_val]."""

    kind = StageKind.SPECCLAMP

    def __init__(self, min_val, max_val):
        self.min_val = check_number("min_val", min_val)
        self.max_val = check_number("max_val", max_val)
        if self.min_val > self.max_val:
            raise ConfigurationError(
                f"Clamp minimum ({self.min_val}) exceeds maximum ({self.max_val})"
            )

    @property
    def params(self):
        return (self.min_val, self.max_val)

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.clamp(self.min_val, self.max_val)


@_register(StageKind.SPECCROPINTERP)
class SpecCropInterpStage(FreqStage):
    """Crop to a frequency band and resize to a fixed number of bins."""

    kind = StageKind.SPECCROPINTERP

    def __init__(self, f_min, f_max, freq_bins):
        self.f_min = check_number("f_min", f_min)
        self.f_max = check_number("f_max", f_max)
        self.freq_bins = check_positive_int("freq_bins", freq_bins)
        if self.f_min < 0:
            raise ConfigurationError(f"f_min must not be negative, got {self.f_min}")
        if self.f_min >= self.f_max:
            raise ConfigurationError(
                f"f_min ({self.f_min}) must be lower than f_max ({self.f_max})"
            )

    @property
    def params(self):
        return (self.f_min, self.f_max, self.freq_bins)

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.interpolate(self.f_min, self.f_max, self.freq_bins)


@_register(StageKind.ENHANCE)
class EnhanceStage(FreqStage):
    """Enhance contrast; a non-positive factor is a no-op."""

    kind = StageKind.ENHANCE

    def __init__(self, enhancement):
        self.enhancement = check_number("enhancement", enhancement)

    @property
    def params(self):
        return (self.enhancement,)

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.enhance(self.enhancement)


@_register(StageKind.GAUSSIANBLUR)
class GaussianBlurStage(FreqStage):
    """Blur with a 5x5 Gaussian kernel."""

    kind = StageKind.GAUSSIANBLUR

    def __init__(self, sigma):
        self.sigma = check_positive("sigma", sigma)

    @property
    def params(self):
        return (self.sigma,)

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.gaussian_filter(self.sigma)


@_register(StageKind.MEDIANFILTER)
class MedianFilterStage(FreqStage):
    """Binarise against row and column median thresholds."""

    kind = StageKind.MEDIANFILTER

    def __init__(self, row_factor, col_factor):
        self.row_factor = check_number("row_factor", row_factor)
        self.col_factor = check_number("col_factor", col_factor)

    @property
    def params(self):
        return (self.row_factor, self.col_factor)

    def transform(self, spec: SpecTransform) -> SpecTransform:
        return spec.median_filter(self.row_factor, self.col_factor)

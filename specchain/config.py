"""
Configuration classes for spectrogram pipelines.

The PipelineConfig class centralizes the parameters a classifier expects
its input spectrograms to be made with:
- Audio processing (sample rate, pre-emphasis)
- Spectrogram construction (FFT length, hop)
- Image transforms (dB levels, clamp range, frequency band, extra stages)
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List, Tuple
import json

from specchain.descriptors import StageDescriptor, StageKind
from specchain.errors import ConfigurationError, UnsupportedCombinationError
from specchain.pipeline import Pipeline, build_pipeline


@dataclass
class PipelineConfig:
    """
    Configuration for a spectrogram pipeline.

    `to_descriptors` lays the fields out as an ordered descriptor list:

        DECIMATE -> [PREEMPHASIS] -> SPECTROGRAM -> [SPECCROPINTERP]
        -> SPEC2DB -> [SPECNORMALISE] -> [extra stages] -> [SPECCLAMP]
        -> [SPECCROPINTERP]

    Optional stages are left out when their fields are None. The frequency
    band is applied before dB conversion unless `interp_last` is set, in
    which case it is applied at the very end.

    Attributes:
        sample_rate: Sample rate to decimate audio to (Hz)
        preemphasis: Pre-emphasis coefficient, or None to skip
        n_fft: FFT length in samples
        hop_length: Hop between frames in samples
        power: Power (10*log10) rather than amplitude (20*log10) dB
        min_level_db: Minimum dB level for normalisation, or None to skip
        ref_level_db: Reference dB level for normalisation
        clamp_min: Lower clamp value (clamp skipped if either bound is None)
        clamp_max: Upper clamp value
        fmin: Lower frequency of the band (Hz)
        fmax: Upper frequency of the band (Hz), or None to keep the full band
        n_freq_bins: Number of frequency bins after interpolation
        interp_last: Apply the frequency band after every other stage
        extra_stages: Further frequency stages as [kind, params] pairs
        maintain_phase: Keep complex frames in step with the magnitudes
    """

    # Audio processing
    sample_rate: float = 256000
    preemphasis: Optional[float] = 0.98

    # Spectrogram
    n_fft: int = 256
    hop_length: int = 8
    power: bool = True

    # Normalisation
    min_level_db: Optional[float] = -100.0
    ref_level_db: float = 0.0
    clamp_min: Optional[float] = 0.0
    clamp_max: Optional[float] = 1.0

    # Frequency band
    fmin: float = 40000.0
    fmax: Optional[float] = 100000.0
    n_freq_bins: int = 256
    interp_last: bool = False

    # Model-specific frequency stages, in order
    extra_stages: List[Tuple[str, Tuple[Any, ...]]] = field(default_factory=list)

    maintain_phase: bool = False

    def to_descriptors(self) -> List[StageDescriptor]:
        """Return the ordered stage descriptor list."""
        band = None
        if self.fmax is not None:
            band = StageDescriptor(
                StageKind.SPECCROPINTERP, (self.fmin, self.fmax, self.n_freq_bins)
            )

        descriptors = [StageDescriptor(StageKind.DECIMATE, (self.sample_rate,))]
        if self.preemphasis is not None:
            descriptors.append(StageDescriptor(StageKind.PREEMPHASIS, (self.preemphasis,)))
        descriptors.append(
            StageDescriptor(StageKind.SPECTROGRAM, (self.n_fft, self.hop_length))
        )
        if band is not None and not self.interp_last:
            descriptors.append(band)
        descriptors.append(StageDescriptor(StageKind.SPEC2DB, (self.power,)))
        if self.min_level_db is not None:
            descriptors.append(StageDescriptor(
                StageKind.SPECNORMALISE, (self.min_level_db, self.ref_level_db)
            ))
        for kind, params in self.extra_stages:
            descriptors.append(StageDescriptor(kind, tuple(params)))
        if self.clamp_min is not None and self.clamp_max is not None:
            descriptors.append(StageDescriptor(
                StageKind.SPECCLAMP, (self.clamp_min, self.clamp_max)
            ))
        if band is not None and self.interp_last:
            descriptors.append(band)
        return descriptors

    def build(self) -> Pipeline:
        """Build the pipeline described by this config."""
        return build_pipeline(self.to_descriptors(), maintain_phase=self.maintain_phase)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        d = asdict(self)
        d["extra_stages"] = [[StageKind.parse(k).value, list(p)] for k, p in self.extra_stages]
        return d

    def to_json(self) -> str:
        """Convert config to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'PipelineConfig':
        """Create config from dictionary."""
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})

    @classmethod
    def from_json(cls, s: str) -> 'PipelineConfig':
        """Create config from JSON string."""
        return cls.from_dict(json.loads(s))

    def validate(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            ConfigurationError: If any parameter is invalid
        """
        if self.sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got {self.sample_rate}")

        if self.n_fft < 2:
            raise ConfigurationError(f"n_fft must be at least 2, got {self.n_fft}")

        if self.hop_length < 1:
            raise ConfigurationError(f"hop_length must be positive, got {self.hop_length}")

        if self.min_level_db == 0:
            raise ConfigurationError("min_level_db must be non-zero")

        if (self.clamp_min is not None and self.clamp_max is not None
                and self.clamp_min > self.clamp_max):
            raise ConfigurationError(
                f"clamp_min ({self.clamp_min}) must not exceed clamp_max ({self.clamp_max})"
            )

        if self.fmax is not None:
            if not 0 <= self.fmin < self.fmax:
                raise ConfigurationError(
                    f"Frequency band must satisfy 0 <= fmin < fmax, "
                    f"got fmin={self.fmin}, fmax={self.fmax}"
                )
            if self.fmax > self.sample_rate / 2:
                raise ConfigurationError(
                    f"fmax ({self.fmax}) is above the Nyquist frequency "
                    f"({self.sample_rate / 2})"
                )
            if self.n_freq_bins < 1:
                raise ConfigurationError(
                    f"n_freq_bins must be positive, got {self.n_freq_bins}"
                )

        if self.maintain_phase and self.fmax is not None:
            raise UnsupportedCombinationError(
                "maintain_phase cannot be used with a frequency band (set fmax=None)"
            )

        # normalise kinds so unknown names fail here rather than at build time
        self.extra_stages = [
            (StageKind.parse(kind), tuple(params)) for kind, params in self.extra_stages
        ]

    def __post_init__(self):
        """Validate config after initialization."""
        self.validate()


def create_bat_config() -> PipelineConfig:
    """
    Create the default bat click classifier config.

    256 kHz audio, pre-emphasis 0.98, 256-point FFT with hop 8, cropped to
    40-100 kHz and interpolated to 256 bins, then dB, normalisation between
    -100 and 0 dB and a clamp to [0, 1].

    Returns:
        PipelineConfig with the bat defaults
    """
    return PipelineConfig()


def create_ketos_config(
    rate: float,
    window: float,
    step: float,
    freq_min: float,
    freq_max: float,
    n_freq_bins: int,
    transforms: Optional[List[Tuple[str, Tuple[Any, ...]]]] = None
) -> PipelineConfig:
    """
    Create a config for a Ketos magnitude-spectrogram model.

    Ketos models describe their spectrogram with a Nyquist `rate`, window
    and step durations in seconds, a frequency band and an ordered list of
    image transforms. The band is applied last so that the output has the
    bin count the model expects.

    Args:
        rate: Rate from the model description; the audio is decimated to twice this
        window: FFT window duration (s)
        step: Hop duration (s)
        freq_min: Lower band limit (Hz)
        freq_max: Upper band limit (Hz)
        n_freq_bins: Number of frequency bins the model expects
        transforms: Ordered extra stages as (kind, params) pairs

    Returns:
        PipelineConfig for the model

    Example:
        config = create_ketos_config(
            rate=1000, window=0.256, step=0.032,
            freq_min=0, freq_max=500, n_freq_bins=129,
            transforms=[("reduce_tonal_noise_median", ()),
                        ("enhance", (1.0,)),
                        ("specnormalise_std", (0.0, 1.0))],
        )
    """
    sample_rate = rate * 2
    return PipelineConfig(
        sample_rate=sample_rate,
        preemphasis=None,
        n_fft=int(window * sample_rate),
        hop_length=int(step * sample_rate),
        min_level_db=None,
        clamp_min=None,
        clamp_max=None,
        fmin=freq_min,
        fmax=freq_max,
        n_freq_bins=n_freq_bins,
        interp_last=True,
        extra_stages=list(transforms or []),
    )

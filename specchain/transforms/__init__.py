"""
Spectrogram transforms and pipeline stages.

Modules:
- spectral: pure image transforms on spectrogram matrices
- wave: wave-domain transforms (decimation, pre-emphasis)
- base: WaveStage / FreqStage base classes
- stages: one registered stage class per stage kind

Usage:
    from specchain import stage_registry

    stage = stage_registry.create("specclamp", 0, 1)
    spec = stage.transform(spec)
"""

from specchain.registry import stage_registry

from specchain.transforms import spectral, wave

# Import classes to trigger registration
from specchain.transforms.base import BaseStage, WaveStage, FreqStage
from specchain.transforms.stages import (
    DecimateStage,
    PreemphasisStage,
    SpectrogramStage,
    Spec2dBStage,
    SpecNormaliseStage,
    SpecNormaliseStdStage,
    ReduceTonalNoiseMeanStage,
    ReduceTonalNoiseMedianStage,
    SpecClampStage,
    SpecCropInterpStage,
    EnhanceStage,
    GaussianBlurStage,
    MedianFilterStage,
)

__all__ = [
    "stage_registry",
    "spectral",
    "wave",
    "BaseStage",
    "WaveStage",
    "FreqStage",
    "DecimateStage",
    "PreemphasisStage",
    "SpectrogramStage",
    "Spec2dBStage",
    "SpecNormaliseStage",
    "SpecNormaliseStdStage",
    "ReduceTonalNoiseMeanStage",
    "ReduceTonalNoiseMedianStage",
    "SpecClampStage",
    "SpecCropInterpStage",
    "EnhanceStage",
    "GaussianBlurStage",
    "MedianFilterStage",
]

"""
specchain - spectrogram preparation pipelines for acoustic classifiers.

This package provides:
- A library of spectrogram image transforms (dB, normalisation, tonal
  noise reduction, contrast enhancement, frequency interpolation, blur)
- SpecTransform, a chainable engine applying them to a spectrogram
- Declarative stage descriptors and a pipeline that runs them on raw audio

Usage:
    from specchain import build_pipeline, create_bat_config

    pipeline = build_pipeline(create_bat_config().to_descriptors())
    matrix = pipeline.run(samples, sample_rate)
"""

__version__ = "1.0.0"

from specchain.registry import PluginRegistry, stage_registry
from specchain.errors import (
    SpecChainError,
    ConfigurationError,
    UnsupportedCombinationError,
    NumericDegeneracyError,
    StageExecutionError,
)

# Import transforms first to trigger stage registration
from specchain import transforms  # noqa: F401

from specchain.spectrogram import (
    ComplexBin,
    SpectrogramSource,
    Spectrogram,
    ArraySpectrogram,
)
from specchain.transforms.wave import WaveData
from specchain.engine import SpecTransform
from specchain.descriptors import Domain, StageKind, StageDescriptor
from specchain.pipeline import Pipeline, build_pipeline
from specchain.config import PipelineConfig, create_bat_config, create_ketos_config
from specchain.batch import process_batch

__all__ = [
    "PluginRegistry",
    "stage_registry",
    "SpecChainError",
    "ConfigurationError",
    "UnsupportedCombinationError",
    "NumericDegeneracyError",
    "StageExecutionError",
    "ComplexBin",
    "SpectrogramSource",
    "Spectrogram",
    "ArraySpectrogram",
    "WaveData",
    "SpecTransform",
    "Domain",
    "StageKind",
    "StageDescriptor",
    "Pipeline",
    "build_pipeline",
    "PipelineConfig",
    "create_bat_config",
    "create_ketos_config",
    "process_batch",
    "__version__",
]

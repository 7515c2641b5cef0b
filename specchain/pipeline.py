"""
Pipeline builder and executor.

`build_pipeline` turns an ordered list of stage descriptors into a
`Pipeline` of stage objects. Running the pipeline feeds raw audio into the
first stage and threads each stage's output into the next:

    raw audio -> [wave stages] -> SPECTROGRAM -> [frequency stages] -> matrix

Usage:
    from specchain import build_pipeline, StageDescriptor, StageKind

    pipeline = build_pipeline([
        StageDescriptor(StageKind.DECIMATE, (256000,)),
        StageDescriptor(StageKind.SPECTROGRAM, (256, 8)),
        StageDescriptor(StageKind.SPEC2DB),
        StageDescriptor(StageKind.SPECNORMALISE, (-100, 0)),
        StageDescriptor(StageKind.SPECCLAMP, (0, 1)),
    ])
    matrix = pipeline.run(samples, sample_rate)
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from specchain.descriptors import Domain, StageDescriptor, StageKind
from specchain.engine import SpecTransform
from specchain.errors import (
    ConfigurationError,
    NumericDegeneracyError,
    StageExecutionError,
    UnsupportedCombinationError,
    describe,
)
from specchain.registry import stage_registry
from specchain.transforms.base import BaseStage
from specchain.transforms.wave import WaveData
from specchain.utils.progress import ProgressTracker

logger = logging.getLogger(__name__)


def _coerce(descriptor) -> StageDescriptor:
    if isinstance(descriptor, StageDescriptor):
        return descriptor
    if isinstance(descriptor, dict):
        return StageDescriptor.from_dict(descriptor)
    raise ConfigurationError(f"Not a stage descriptor: {descriptor!r}")


def validate_descriptors(descriptors: Sequence[StageDescriptor], maintain_phase: bool = False) -> None:
    """
    Check a descriptor list before any stage is built.

    Rules:
    - the list is non-empty and every descriptor has the right arity
    - wave-domain stages come first, the SPECTROGRAM stage moves the
      pipeline to the frequency domain exactly once, and only
      frequency-domain stages follow it
    - phase preservation is not combined with SPECCROPINTERP

    Raises:
        ConfigurationError: For malformed or mis-ordered descriptors
        UnsupportedCombinationError: For phase preservation with interpolation
    """
    if not descriptors:
        raise ConfigurationError("Pipeline needs at least one stage")

    domain = Domain.WAVE
    for index, descriptor in enumerate(descriptors):
        descriptor.validate_arity()
        kind = descriptor.kind

        if domain is Domain.WAVE and kind.domain is Domain.FREQUENCY:
            raise ConfigurationError(
                f"Stage {index} ({kind.value}) needs a spectrogram but no "
                f"{StageKind.SPECTROGRAM.value} stage precedes it"
            )
        if domain is Domain.FREQUENCY and kind.domain is Domain.WAVE:
            raise ConfigurationError(
                f"Stage {index} ({kind.value}) operates on audio but follows "
                f"the {StageKind.SPECTROGRAM.value} stage"
            )
        if kind is StageKind.SPECTROGRAM:
            domain = Domain.FREQUENCY

    if domain is Domain.WAVE:
        raise ConfigurationError(
            f"Pipeline has no {StageKind.SPECTROGRAM.value} stage and never "
            f"produces a spectrogram"
        )

    if maintain_phase and any(d.kind is StageKind.SPECCROPINTERP for d in descriptors):
        raise UnsupportedCombinationError(
            "Frequency interpolation cannot be combined with phase preservation"
        )


def build_stage(descriptor: StageDescriptor, maintain_phase: bool = False) -> BaseStage:
    """Instantiate the registered stage class for one descriptor."""
    cls = stage_registry.get(descriptor.kind.value)
    if descriptor.kind is StageKind.SPECTROGRAM:
        return cls(*descriptor.params, maintain_phase=maintain_phase)
    return cls(*descriptor.params)


def build_pipeline(
    descriptors: Iterable[Union[StageDescriptor, dict]],
    maintain_phase: bool = False,
    check_finite: bool = False
) -> 'Pipeline':
    """
    Build an executable pipeline from an ordered list of descriptors.

    All validation happens here, so a pipeline that builds can only fail at
    run time because of its input data.

    Args:
        descriptors: Stage descriptors (or their dict form) in execution order
        maintain_phase: Keep complex frames in step with the magnitudes
        check_finite: Fail a run when a stage produces non-finite values

    Returns:
        Pipeline ready to run

    Raises:
        ConfigurationError: For malformed or mis-ordered descriptors
        UnsupportedCombinationError: For phase preservation with interpolation
    """
    descriptors = [_coerce(d) for d in descriptors]
    validate_descriptors(descriptors, maintain_phase=maintain_phase)

    stages = [build_stage(d, maintain_phase=maintain_phase) for d in descriptors]
    logger.info(
        f"Built pipeline with {len(stages)} stages: "
        + " -> ".join(str(d) for d in descriptors)
    )
    return Pipeline(stages, maintain_phase=maintain_phase, check_finite=check_finite)


class Pipeline:
    """
    Ordered chain of wave-domain and frequency-domain stages.

    The pipeline holds no state between runs: every run builds its own
    WaveData and SpecTransform, so identical input gives bit-identical
    output and independent runs may execute concurrently.

    Args:
        stages: Built stages in execution order
        maintain_phase: Whether the spectrogram stage tracks phase
        check_finite: Fail a run when a stage produces non-finite values
    """

    def __init__(
        self,
        stages: Sequence[BaseStage],
        maintain_phase: bool = False,
        check_finite: bool = False
    ):
        self.stages: Tuple[BaseStage, ...] = tuple(stages)
        self.maintain_phase = maintain_phase
        self.check_finite = check_finite

    @property
    def descriptors(self) -> List[StageDescriptor]:
        return [stage.to_descriptor() for stage in self.stages]

    def process(
        self,
        signal: Union[np.ndarray, torch.Tensor, WaveData],
        sample_rate: Optional[float] = None,
        tracker: Optional[ProgressTracker] = None
    ) -> SpecTransform:
        """
        Run every stage on one audio segment.

        Args:
            signal: Audio samples, or WaveData carrying its own sample rate
            sample_rate: Sample rate in Hz (ignored for WaveData)
            tracker: Optional tracker recording per-stage timings

        Returns:
            The final SpecTransform, giving access to the transformed matrix
            and, if phase was maintained, the real and imaginary parts

        Raises:
            StageExecutionError: If any stage fails; no partial result is kept
        """
        if isinstance(signal, WaveData):
            data = signal
        else:
            if sample_rate is None:
                raise ValueError("sample_rate is required for raw samples")
            data = WaveData.from_signal(signal, sample_rate)

        domain = Domain.WAVE
        for index, stage in enumerate(self.stages):
            name = f"{index}:{stage.kind.value}"
            if tracker is not None:
                tracker.start(name)
            try:
                data = stage.transform(data)
                if stage.kind is StageKind.SPECTROGRAM:
                    domain = Domain.FREQUENCY
                if domain is Domain.FREQUENCY:
                    self._check_values(index, stage, data.get_transformed_data())
            except Exception as exc:
                if tracker is not None:
                    tracker.error(name, describe(exc))
                raise StageExecutionError(index, stage.kind.value, describe(exc)) from exc
            if tracker is not None:
                tracker.complete(name)
            logger.debug(f"Stage {name} done")

        return data

    def _check_values(self, index: int, stage: BaseStage, matrix: np.ndarray) -> None:
        if np.all(np.isfinite(matrix)):
            return
        n_bad = int(np.count_nonzero(~np.isfinite(matrix)))
        message = f"Stage {index} ({stage.kind.value}) produced {n_bad} non-finite values"
        if self.check_finite:
            raise NumericDegeneracyError(message)
        logger.warning(message)

    def run(
        self,
        signal: Union[np.ndarray, torch.Tensor, WaveData],
        sample_rate: Optional[float] = None
    ) -> np.ndarray:
        """Run the pipeline and return the final matrix [frames, bins]."""
        return np.array(self.process(signal, sample_rate).get_transformed_data(), dtype=np.float64)

    def __call__(
        self,
        signal: Union[np.ndarray, torch.Tensor],
        sample_rate: float
    ) -> torch.Tensor:
        """
        Run the pipeline and return a tensor for a classifier.

        Returns:
            Float32 tensor [1, frames, bins]
        """
        matrix = self.run(signal, sample_rate)
        return torch.tensor(matrix, dtype=torch.float32).unsqueeze(0)

    @property
    def output_channels(self) -> int:
        """Return 1 channel."""
        return 1

    @property
    def output_size(self) -> int:
        """Number of frequency bins in the output matrix."""
        bins = 0
        for stage in self.stages:
            if stage.kind is StageKind.SPECTROGRAM:
                bins = stage.fft_length // 2
            elif stage.kind is StageKind.SPECCROPINTERP:
                bins = stage.freq_bins
        return bins

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self):
        return iter(self.stages)

    def __repr__(self) -> str:
        chain = " -> ".join(str(d) for d in self.descriptors)
        return f"Pipeline({chain})"

"""
Abstract base classes for pipeline stages.

Every stage is either a WaveStage, consuming raw audio, or a FreqStage,
consuming a spectrogram held by a SpecTransform engine. Stages hold only
their immutable parameters, so one built pipeline can be run any number
of times.
"""

import numbers
from abc import ABC, abstractmethod
from typing import Any, Tuple, Union

from specchain.descriptors import Domain, StageDescriptor, StageKind
from specchain.engine import SpecTransform
from specchain.errors import ConfigurationError
from specchain.transforms.wave import WaveData


class BaseStage(ABC):
    """
    Abstract base class for pipeline stages.

    Subclasses must implement:
        - transform: apply the stage to the previous stage's output
        - params: the stage's parameters in descriptor order
    """

    domain: Domain
    kind: StageKind

    @abstractmethod
    def transform(self, data):
        """Apply the stage to the output of the previous stage."""
        pass

    @property
    @abstractmethod
    def params(self) -> Tuple[Any, ...]:
        """Parameters in descriptor order."""
        pass

    def to_descriptor(self) -> StageDescriptor:
        return StageDescriptor(self.kind, self.params)

    def __repr__(self) -> str:
        params = ", ".join(repr(p) for p in self.params)
        return f"{type(self).__name__}({params})"


class WaveStage(BaseStage):
    """
    Stage operating on raw audio.

    Returns WaveData, or a SpecTransform for the stage that moves the
    pipeline into the frequency domain.
    """

    domain = Domain.WAVE

    @abstractmethod
    def transform(self, wave: WaveData) -> Union[WaveData, SpecTransform]:
        pass


class FreqStage(BaseStage):
    """Stage operating on a spectrogram."""

    domain = Domain.FREQUENCY

    @abstractmethod
    def transform(self, spec: SpecTransform) -> SpecTransform:
        pass


def check_number(name: str, value: Any) -> float:
    """Validate a real-valued parameter."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    return float(value)


def check_positive(name: str, value: Any) -> float:
    """Validate a strictly positive parameter."""
    value = check_number(name, value)
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def check_positive_int(name: str, value: Any) -> int:
    """Validate a strictly positive integer parameter."""
    number = check_positive(name, value)
    if number != int(number):
        raise ConfigurationError(f"{name} must be an integer, got {value}")
    return int(number)


def check_bool(name: str, value: Any) -> bool:
    """Validate a boolean flag, accepting 0/1."""
    if isinstance(value, bool):
        return value
    if isinstance(value, numbers.Real) and value in (0, 1):
        return bool(value)
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")

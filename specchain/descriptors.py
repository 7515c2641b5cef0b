"""
Stage descriptors.

A StageDescriptor names a stage kind and its scalar parameters. A pipeline
is described by an ordered list of descriptors; the order is significant.

Example:
    descriptors = [
        StageDescriptor(StageKind.DECIMATE, (256000,)),
        StageDescriptor(StageKind.SPECTROGRAM, (256, 8)),
        StageDescriptor(StageKind.SPEC2DB),
    ]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple

from specchain.errors import ConfigurationError


class Domain(str, Enum):
    """Data domain a stage consumes."""

    WAVE = "wave"
    FREQUENCY = "freq"


class StageKind(str, Enum):
    """Closed set of recognised stage kinds."""

    DECIMATE = "decimate"
    PREEMPHASIS = "preemphasis"
    SPECTROGRAM = "spectrogram"
    SPEC2DB = "spec2db"
    SPECNORMALISE = "specnormalise"
    SPECNORMALISE_STD = "specnormalise_std"
    REDUCE_TONAL_NOISE_MEAN = "reduce_tonal_noise_mean"
    REDUCE_TONAL_NOISE_MEDIAN = "reduce_tonal_noise_median"
    SPECCLAMP = "specclamp"
    SPECCROPINTERP = "speccropinterp"
    ENHANCE = "enhance"
    GAUSSIANBLUR = "gaussianblur"
    MEDIANFILTER = "medianfilter"

    @property
    def domain(self) -> Domain:
        """Domain of the data the stage consumes."""
        if self in WAVE_KINDS:
            return Domain.WAVE
        return Domain.FREQUENCY

    @classmethod
    def parse(cls, value) -> 'StageKind':
        """Look up a kind by enum member, value or name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for kind in cls:
            if key in (kind.value, kind.name.lower()):
                return kind
        raise ConfigurationError(
            f"Unknown stage kind '{value}'. Available: {[k.value for k in cls]}"
        )


WAVE_KINDS = frozenset({
    StageKind.DECIMATE,
    StageKind.PREEMPHASIS,
    StageKind.SPECTROGRAM,
})

# (min, max) number of parameters per kind
ARITY: Dict[StageKind, Tuple[int, int]] = {
    StageKind.DECIMATE: (1, 1),
    StageKind.PREEMPHASIS: (1, 1),
    StageKind.SPECTROGRAM: (2, 2),
    StageKind.SPEC2DB: (0, 1),
    StageKind.SPECNORMALISE: (2, 2),
    StageKind.SPECNORMALISE_STD: (2, 2),
    StageKind.REDUCE_TONAL_NOISE_MEAN: (1, 1),
    StageKind.REDUCE_TONAL_NOISE_MEDIAN: (0, 0),
    StageKind.SPECCLAMP: (2, 2),
    StageKind.SPECCROPINTERP: (3, 3),
    StageKind.ENHANCE: (1, 1),
    StageKind.GAUSSIANBLUR: (1, 1),
    StageKind.MEDIANFILTER: (2, 2),
}


@dataclass(frozen=True)
class StageDescriptor:
    """
    Declarative description of one pipeline stage.

    Attributes:
        kind: Stage kind
        params: Kind-specific scalar parameters, in order
    """

    kind: StageKind
    params: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'kind', StageKind.parse(self.kind))
        object.__setattr__(self, 'params', tuple(self.params))

    def validate_arity(self) -> None:
        """
        Check the number of parameters against the kind's arity.

        Raises:
            ConfigurationError: If the parameter count is wrong
        """
        low, high = ARITY[self.kind]
        n = len(self.params)
        if not low <= n <= high:
            expected = str(low) if low == high else f"{low}-{high}"
            raise ConfigurationError(
                f"{self.kind.value} takes {expected} parameter(s), got {n}: {self.params}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert descriptor to dictionary."""
        return {"kind": self.kind.value, "params": list(self.params)}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'StageDescriptor':
        """Create descriptor from dictionary."""
        if "kind" not in d:
            raise ConfigurationError(f"Stage descriptor has no 'kind': {d}")
        return cls(kind=d["kind"], params=tuple(d.get("params", ())))

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.params)
        return f"{self.kind.value}({params})"


def descriptors_from_dicts(items: Iterable[Dict[str, Any]]) -> List[StageDescriptor]:
    """Convert a list of plain dicts to stage descriptors."""
    return [StageDescriptor.from_dict(item) for item in items]


def descriptors_to_dicts(descriptors: Iterable[StageDescriptor]) -> List[Dict[str, Any]]:
    """Convert stage descriptors to a list of plain dicts."""
    return [descriptor.to_dict() for descriptor in descriptors]

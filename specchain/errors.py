"""
Exception types raised while building and running spectrogram pipelines.
"""

from typing import Optional


class SpecChainError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(SpecChainError, ValueError):
    """
    Malformed descriptor list or configuration.

    Raised at build time for unknown stage kinds, wrong parameter arity,
    invalid parameter values and stages placed in the wrong domain.
    """


class UnsupportedCombinationError(SpecChainError):
    """Phase preservation requested together with frequency interpolation."""


class NumericDegeneracyError(SpecChainError, ArithmeticError):
    """A stage produced non-finite values and the pipeline checks for them."""


class StageExecutionError(SpecChainError):
    """
    A stage failed while a pipeline was running.

    Attributes:
        stage_index: Position of the failing stage in the pipeline
        kind: Stage kind name (e.g. 'spec2db')
        reason: Message of the underlying failure
    """

    def __init__(self, stage_index: int, kind: str, reason: str):
        self.stage_index = stage_index
        self.kind = kind
        self.reason = reason
        super().__init__(f"Stage {stage_index} ({kind}) failed: {reason}")


def describe(exc: BaseException, fallback: Optional[str] = None) -> str:
    """Short one-line description of an exception for error messages."""
    message = str(exc) or fallback or ""
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__

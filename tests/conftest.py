"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def positive_matrix(rng):
    """Strictly positive 12x16 matrix, like a linear magnitude spectrogram."""
    return rng.uniform(0.01, 10.0, size=(12, 16))


@pytest.fixture
def noise_signal(rng):
    """One second of white noise at 8 kHz."""
    return rng.standard_normal(8000), 8000


@pytest.fixture
def tone_signal():
    """One second of a 125 Hz tone at 1 kHz."""
    sample_rate = 1000
    t = np.arange(sample_rate) / sample_rate
    return np.sin(2 * np.pi * 125 * t), sample_rate


@pytest.fixture
def bat_signal(rng):
    """10 ms of noise with a 60 kHz tone at 256 kHz."""
    sample_rate = 256000
    t = np.arange(2560) / sample_rate
    samples = 0.1 * rng.standard_normal(len(t)) + np.sin(2 * np.pi * 60000 * t)
    return samples, sample_rate

"""
Spectrogram transform engine.

SpecTransform wraps a SpectrogramSource and applies the spectral
transforms to its current matrix in a chainable way:

    data = (SpecTransform(spectrogram)
            .db_spec()
            .normalise(-100, 0)
            .clamp(0, 1)
            .get_transformed_data())

When `maintain_phase` is set, the complex frames are rebuilt from the
transformed magnitudes after every step so that an inverse transform back
to audio remains possible.
"""

import logging
from typing import Optional

import numpy as np

from specchain.errors import UnsupportedCombinationError
from specchain.spectrogram import SpectrogramSource
from specchain.transforms import spectral

logger = logging.getLogger(__name__)


class SpecTransform:
    """
    Chainable accumulator of spectrogram transforms.

    Owns one current matrix, replaced wholesale by every transform, and
    optionally one set of complex frames kept in step with it. Each
    instance is meant for a single pipeline run and must not be shared
    between threads.

    Args:
        spectrogram: Source of the initial magnitude and complex data
        maintain_phase: Rebuild the complex frames after each transform
    """

    def __init__(self, spectrogram: SpectrogramSource, maintain_phase: bool = False):
        self.spectrogram = spectrogram
        self.maintain_phase = maintain_phase
        self._spec_data: Optional[np.ndarray] = None
        self._complex_data: Optional[np.ndarray] = None

    def _initialise_spec_data(self) -> None:
        self._spec_data = np.asarray(self.spectrogram.absolute_spectrogram(), dtype=np.float64)
        self._complex_data = np.asarray(self.spectrogram.complex_spectrogram(), dtype=np.complex128)
        logger.debug(f"Initialised spectrogram data with shape {self._spec_data.shape}")

    def _apply(self, func, *args) -> 'SpecTransform':
        if self._spec_data is None:
            self._initialise_spec_data()
        self._spec_data = func(self._spec_data, *args)
        if self.maintain_phase:
            self._abs_spec_to_complex()
        return self

    # ------------------------------------------------------------------
    # Chainable transforms
    # ------------------------------------------------------------------

    def db_spec(self, power: bool = True) -> 'SpecTransform':
        """Convert to dB, 10*log10(x) if `power` else 20*log10(x)."""
        return self._apply(spectral.db_convert, power)

    def normalise(self, min_level_db: float, ref_level_db: float) -> 'SpecTransform':
        """Normalise between a minimum and a reference dB level."""
        return self._apply(spectral.normalize, min_level_db, ref_level_db)

    def normalise_row_sum(self) -> 'SpecTransform':
        """Divide by the square root of the total squared sum."""
        return self._apply(spectral.normalize_row_sum)

    def normalise_std(self, mean: float = 0.0, std: float = 1.0) -> 'SpecTransform':
        """Normalise to a given mean and standard deviation."""
        return self._apply(spectral.normalize_std, mean, std)

    def reduce_tonal_noise_mean(self, time_const_len: float) -> 'SpecTransform':
        """Subtract a running mean from each frame."""
        return self._apply(spectral.reduce_tonal_noise_mean, time_const_len)

    def reduce_tonal_noise_median(self) -> 'SpecTransform':
        """Subtract from each frequency bin its median."""
        return self._apply(spectral.reduce_tonal_noise_median)

    def median_filter(self, row_factor: float, col_factor: float) -> 'SpecTransform':
        """Binarise against row and column median thresholds."""
        return self._apply(spectral.median_filter, row_factor, col_factor)

    def enhance(self, enhancement: float) -> 'SpecTransform':
        """Enhance contrast between high and low intensity regions."""
        return self._apply(spectral.enhance, enhancement)

    def interpolate(self, f_min: float, f_max: float, freq_bins: int) -> 'SpecTransform':
        """
        Crop to [f_min, f_max] and resize to `freq_bins` frequency bins.

        Raises:
            UnsupportedCombinationError: If phase is being maintained, since
                the complex frames cannot follow a change of bin layout
        """
        if self.maintain_phase:
            raise UnsupportedCombinationError(
                "Frequency interpolation cannot be combined with phase preservation"
            )
        return self._apply(
            spectral.interpolate_freq_axis,
            f_min, f_max, freq_bins, self.spectrogram.sample_rate
        )

    def clamp(self, min_val: float, max_val: float) -> 'SpecTransform':
        """Clamp values to [min_val, max_val]."""
        return self._apply(spectral.clamp, min_val, max_val)

    def gaussian_filter(self, sigma: float = 5.0) -> 'SpecTransform':
        """Blur with a 5x5 Gaussian kernel."""
        return self._apply(spectral.gaussian_blur, sigma)

    def median_blur(self, size: int = 3) -> 'SpecTransform':
        """Not supported; always raises NotImplementedError."""
        return self._apply(spectral.median_blur, size)

    def filter_isolated_spots(self, struct=None) -> 'SpecTransform':
        """Not supported; always raises NotImplementedError."""
        return self._apply(spectral.filter_isolated_spots, struct)

    # ------------------------------------------------------------------
    # Phase reconciliation
    # ------------------------------------------------------------------

    def _abs_spec_to_complex(self) -> None:
        """
        Write the current magnitudes back into the complex frames.

        The imaginary part of each bin is kept and the real part becomes
        sqrt(max(0, mag^2 - imag^2)). Complex bins beyond the one-sided
        magnitude row are mirrored about the Nyquist bin, n = 2*len - j - 1.
        """
        spec = self._spec_data
        complex_data = self._complex_data
        n_bins = spec.shape[1]
        n_complex = complex_data.shape[1]

        if n_complex > 2 * n_bins:
            raise ValueError(
                f"Complex frames ({n_complex} bins) cannot be folded onto "
                f"{n_bins} magnitude bins"
            )

        j = np.arange(n_complex)
        n = np.where(j > n_bins - 1, 2 * n_bins - j - 1, j)

        imag = complex_data.imag
        mag = spec[:, n]
        real = np.sqrt(np.maximum(0.0, mag ** 2 - imag ** 2))
        self._complex_data = real + 1j * imag

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_transformed_data(self) -> np.ndarray:
        """Return the current matrix, initialising it from the source if needed."""
        if self._spec_data is None:
            self._initialise_spec_data()
        return self._spec_data

    def set_transformed_data(self, absolute_spectrogram) -> None:
        """Replace the current matrix with externally supplied data."""
        self._spec_data = np.array(absolute_spectrogram, dtype=np.float64)
        if self._complex_data is None:
            self._complex_data = np.asarray(
                self.spectrogram.complex_spectrogram(), dtype=np.complex128
            )

    def get_complex(self) -> np.ndarray:
        """Return a copy of the complex frames."""
        if self._complex_data is None:
            self._initialise_spec_data()
        return self._complex_data.copy()

    def get_real(self) -> np.ndarray:
        """Real parts of the complex frames [frames, complex_bins]."""
        return self.get_complex().real

    def get_imag(self) -> np.ndarray:
        """Imaginary parts of the complex frames [frames, complex_bins]."""
        return self.get_complex().imag

    @property
    def shape(self):
        return self.get_transformed_data().shape

    def __repr__(self) -> str:
        state = "uninitialised" if self._spec_data is None else f"shape={self._spec_data.shape}"
        return f"SpecTransform({state}, maintain_phase={self.maintain_phase})"

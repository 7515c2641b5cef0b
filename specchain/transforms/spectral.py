"""
Spectrogram image transforms.

Pure functions mapping a 2-D float matrix (rows = time frames, columns =
frequency bins) to a new matrix. None of them modifies its input.

Several of these follow the image operations of the Ketos toolkit
(Meridian): tonal noise reduction, median filtering, contrast enhancement
and standard-deviation normalisation.
"""

import logging
import math

import numpy as np
from scipy import ndimage

logger = logging.getLogger(__name__)

# Offset compensating for the FFT scaling of the reference implementation
# models were trained against.
NORMALISE_OFFSET = 1.1407

GAUSSIAN_KERNEL_WIDTH = 5


def _as_matrix(matrix) -> np.ndarray:
    """Return a float64 copy of a non-empty 2-D matrix."""
    arr = np.array(matrix, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError(
            f"Expected a non-empty 2-D matrix, got shape {arr.shape}"
        )
    return arr


def db_convert(matrix, power: bool = True) -> np.ndarray:
    """
    Convert a linear spectrogram to decibels.

    Uses 10*log10(x) for power spectra and 20*log10(x) for amplitude
    spectra. Zero or negative input yields -inf/nan; clamp beforehand if
    those values are unacceptable.

    Args:
        matrix: Linear spectrogram
        power: True for power (10*log10), False for amplitude (20*log10)

    Returns:
        Spectrogram in dB
    """
    arr = _as_matrix(matrix)
    coeff = 10.0 if power else 20.0
    with np.errstate(divide='ignore', invalid='ignore'):
        return coeff * np.log10(arr)


def normalize(matrix, min_level_db: float, ref_level_db: float) -> np.ndarray:
    """
    Normalise a dB spectrogram between a minimum and a reference level.

    out = 2 * ((x - ref_level_db - min_level_db) / -min_level_db) - 1.1407
    """
    if min_level_db == 0:
        raise ValueError("min_level_db must be non-zero")
    arr = _as_matrix(matrix)
    return 2 * ((arr - ref_level_db - min_level_db) / -min_level_db) - NORMALISE_OFFSET


def normalize_row_sum(matrix) -> np.ndarray:
    """
    Divide a spectrogram by the square root of its total squared sum.

    A matrix whose squared sum is zero is returned unchanged.
    """
    arr = _as_matrix(matrix)
    total = math.sqrt(float(np.sum(np.sum(arr ** 2, axis=1))))
    if total == 0:
        logger.debug("normalize_row_sum: zero norm, leaving matrix unchanged")
        return arr
    return arr / total


def normalize_std(matrix, mean: float = 0.0, std: float = 1.0) -> np.ndarray:
    """
    Normalise a spectrogram to a given mean and standard deviation.

    The matrix must have non-zero standard deviation to be normalisable;
    otherwise it is returned unchanged.

    Args:
        matrix: Input spectrogram
        mean: Mean of the normalised matrix
        std: Standard deviation of the normalised matrix

    Returns:
        Normalised spectrogram
    """
    arr = _as_matrix(matrix)
    # np.std of a constant matrix can be a rounding residue rather than 0
    if np.ptp(arr) == 0:
        logger.debug("normalize_std: zero standard deviation, leaving matrix unchanged")
        return arr
    std_orig = float(np.std(arr))
    return (arr - np.mean(arr)) / std_orig * std + mean


def reduce_tonal_noise_mean(matrix, time_const_len: float) -> np.ndarray:
    """
    Reduce continuous tonal noise by subtracting a running mean from each row.

    Suppresses noise from e.g. ships and slowly varying backgrounds, following
    Baumgartner & Mussoline, JASA 129, 2889 (2011); doi:10.1121/1.3562166.

    The running mean starts as the column-wise mean of the whole matrix and
    is updated after every row with

        rmean = (1 - eps) * rmean + eps * row,  eps = 1 - exp(ln(0.15) / time_const_len)

    Rows are processed in chronological order; the recurrence is sequential.

    Args:
        matrix: Input spectrogram
        time_const_len: Time constant in number of frames

    Returns:
        Corrected spectrogram
    """
    if time_const_len <= 0:
        raise ValueError(f"time_const_len must be positive, got {time_const_len}")

    arr = _as_matrix(matrix)
    eps = 1 - math.exp(math.log(0.15) / time_const_len)

    running_mean = np.mean(arr, axis=0)
    out = np.empty_like(arr)
    for i in range(arr.shape[0]):
        out[i] = arr[i] - running_mean
        running_mean = (1 - eps) * running_mean + eps * arr[i]

    return out


def reduce_tonal_noise_median(matrix) -> np.ndarray:
    """Subtract from every frequency bin its median across all frames."""
    arr = _as_matrix(matrix)
    return arr - np.median(arr, axis=0)


def median_filter(matrix, row_factor: float, col_factor: float) -> np.ndarray:
    """
    Discard pixels that are lower than the median threshold.

    A pixel is kept (set to 1) only if it exceeds both its row median times
    `row_factor` and its column median times `col_factor`; all other pixels
    are set to 0. Adapted from Kahl et al. (2017),
    http://ceur-ws.org/Vol-1866/paper_143.pdf

    Note: the jpamutils Java SpecTransform indexes the medians the other
    way round, comparing pixel (i, j) against column median i and row
    median j. That variant gives [0, 0, 1] for the first row below. The
    rule here matches Ketos.

    Example:
        >>> median_filter([[1, 4, 5], [3, 5, 1], [1, 0, 9]], 1, 1)
        array([[0., 0., 0.],
               [0., 1., 0.],
               [0., 0., 1.]])
    """
    arr = _as_matrix(matrix)
    row_threshold = np.median(arr, axis=1, keepdims=True) * row_factor
    col_threshold = np.median(arr, axis=0, keepdims=True) * col_factor
    keep = (arr > row_threshold) & (arr > col_threshold)
    return keep.astype(np.float64)


def enhance(matrix, enhancement: float) -> np.ndarray:
    """
    Enhance the contrast between regions of high and low intensity.

    Multiplies each pixel by

        f(x) = 1 / (exp(-(x - m - s) / w) + 1)

    where m is the pixel median of the image, s its standard deviation and
    w = s / enhancement. f increases smoothly from 0 to 1; the smaller w,
    the sharper the transition.

    A non-positive enhancement leaves the matrix unchanged, as does a matrix
    with zero standard deviation.

    Args:
        matrix: Input spectrogram
        enhancement: Enhancement parameter

    Returns:
        Enhanced spectrogram
    """
    arr = _as_matrix(matrix)
    if enhancement <= 0:
        return arr

    if np.ptp(arr) == 0:
        logger.debug("enhance: zero standard deviation, leaving matrix unchanged")
        return arr

    med = float(np.median(arr))
    std = float(np.std(arr))

    width = std / enhancement
    with np.errstate(over='ignore'):
        scaling = 1.0 / (np.exp(-(arr - med - std) / width) + 1.0)
    return arr * scaling


def nearest_neighbour_interp(values, n_out: int) -> np.ndarray:
    """
    Resize a 1-D array of evenly spaced values by nearest neighbour.

    out[j] = values[floor(j * len(values) / n_out)]
    """
    values = np.asarray(values, dtype=np.float64)
    ratio = len(values) / float(n_out)
    idx = np.floor(np.arange(n_out) * ratio).astype(np.int64)
    return values[..., idx]


def interpolate_freq_axis(
    matrix,
    f_min: float,
    f_max: float,
    target_bins: int,
    sample_rate: float
) -> np.ndarray:
    """
    Crop a spectrogram to a frequency band and resize it to a fixed bin count.

    The matrix must cover the full band from 0 Hz to sample_rate / 2. Each
    row is cropped to bins [min_index, max_index) where

        min_index = floor(n_bins * f_min / (sample_rate / 2))
        max_index = floor(n_bins * f_max / (sample_rate / 2))

    clamped to [0, n_bins - 1], then resized to `target_bins` columns by
    nearest neighbour. This is a resize, not a band-limited resample.

    Args:
        matrix: Full-band spectrogram
        f_min: Lower frequency limit in Hz
        f_max: Upper frequency limit in Hz
        target_bins: Number of output frequency bins
        sample_rate: Sample rate of the audio in Hz

    Returns:
        Spectrogram of shape [frames, target_bins]
    """
    if target_bins < 1:
        raise ValueError(f"target_bins must be positive, got {target_bins}")
    if f_min >= f_max:
        raise ValueError(f"f_min ({f_min}) must be lower than f_max ({f_max})")

    arr = _as_matrix(matrix)
    n_bins = arr.shape[1]
    nyquist = sample_rate / 2

    min_index = int(max(0.0, n_bins * (f_min / nyquist)))
    max_index = int(min(n_bins - 1, n_bins * (f_max / nyquist)))

    # a band narrower than one bin still keeps the bin it falls in
    min_index = min(min_index, n_bins - 1)
    max_index = max(max_index, min_index + 1)

    cropped = arr[:, min_index:max_index]
    return nearest_neighbour_interp(cropped, target_bins)


def clamp(matrix, min_val: float, max_val: float) -> np.ndarray:
    """Clamp every value to [min_val, max_val]."""
    if min_val > max_val:
        raise ValueError(f"min_val ({min_val}) must not exceed max_val ({max_val})")
    return np.clip(_as_matrix(matrix), min_val, max_val)


def gaussian_kernel(sigma: float) -> np.ndarray:
    """
    Build a normalised 5x5 Gaussian kernel.

    Values are exp(-0.5 * ((dx/sigma)^2 + (dy/sigma)^2)) / (2*pi*sigma^2),
    rescaled so the kernel sums to 1.
    """
    if sigma <= 0:
        raise ValueError(f"sigma must be positive, got {sigma}")

    offsets = np.arange(GAUSSIAN_KERNEL_WIDTH) - GAUSSIAN_KERNEL_WIDTH // 2
    dx, dy = np.meshgrid(offsets, offsets, indexing='ij')
    kernel = np.exp(-0.5 * ((dx / sigma) ** 2 + (dy / sigma) ** 2)) / (2 * math.pi * sigma * sigma)
    return kernel / kernel.sum()


def gaussian_blur(matrix, sigma: float = 5.0) -> np.ndarray:
    """
    Smooth a spectrogram with a 5x5 Gaussian kernel.

    Pixels outside the image take the value of the nearest edge pixel.
    """
    kernel = gaussian_kernel(sigma)
    return ndimage.correlate(_as_matrix(matrix), kernel, mode='nearest')


def median_blur(matrix, size: int = 3) -> np.ndarray:
    """Median blur is not supported."""
    raise NotImplementedError("median_blur is not implemented")


def filter_isolated_spots(matrix, struct=None) -> np.ndarray:
    """Connected-component spot filtering is not supported."""
    raise NotImplementedError("filter_isolated_spots is not implemented")

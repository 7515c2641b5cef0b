"""
Tests for the spectrogram transform library.

Tests cover:
- dB conversion and normalisation variants
- Tonal noise reduction and median filtering
- Contrast enhancement
- Frequency-axis cropping and interpolation
- Clamping and Gaussian blur
- Unsupported transforms
"""

import math

import numpy as np
import pytest

from specchain.transforms import spectral
from specchain.transforms.wave import WaveData, preemphasis


class TestDbConvert:
    """Tests for dB conversion."""

    def test_ones_give_zeros(self):
        """Test log10(1) = 0 for a 10x16 matrix of ones."""
        out = spectral.db_convert(np.ones((10, 16)), power=True)
        assert out.shape == (10, 16)
        assert np.all(out == 0)

    def test_power_inverse(self, positive_matrix):
        """Test 10**(x/10) recovers the input for power dB."""
        out = spectral.db_convert(positive_matrix, power=True)
        np.testing.assert_allclose(10 ** (out / 10), positive_matrix, rtol=1e-12)

    def test_amplitude_inverse(self, positive_matrix):
        """Test 10**(x/20) recovers the input for amplitude dB."""
        out = spectral.db_convert(positive_matrix, power=False)
        np.testing.assert_allclose(10 ** (out / 20), positive_matrix, rtol=1e-12)

    def test_zero_propagates_infinity(self):
        """Test zero input gives -inf rather than an error."""
        out = spectral.db_convert(np.array([[0.0, 1.0]]))
        assert np.isneginf(out[0, 0])
        assert out[0, 1] == 0

    def test_input_not_modified(self, positive_matrix):
        """Test the input matrix is left untouched."""
        original = positive_matrix.copy()
        spectral.db_convert(positive_matrix)
        np.testing.assert_array_equal(positive_matrix, original)

    def test_rejects_non_matrix(self):
        """Test 1-D input is rejected."""
        with pytest.raises(ValueError, match="2-D"):
            spectral.db_convert(np.ones(5))


class TestNormalize:
    """Tests for the three normalisation variants."""

    def test_normalize_formula(self):
        """Test the min/ref level normalisation with its fixed offset."""
        out = spectral.normalize(np.array([[-100.0, 0.0, -50.0]]), -100, 0)
        np.testing.assert_allclose(out, [[-1.1407, 2 - 1.1407, 1 - 1.1407]])

    def test_normalize_reference_level(self):
        """Test the reference level shifts the input."""
        out = spectral.normalize(np.array([[20.0]]), -100, 20)
        np.testing.assert_allclose(out, [[2 - 1.1407]])

    def test_normalize_zero_min_level(self):
        """Test min_level_db of zero is rejected."""
        with pytest.raises(ValueError):
            spectral.normalize(np.ones((2, 2)), 0, 0)

    def test_row_sum_unit_norm(self, positive_matrix):
        """Test output has unit total squared sum."""
        out = spectral.normalize_row_sum(positive_matrix)
        assert math.isclose(float(np.sum(out ** 2)), 1.0, rel_tol=1e-12)

    def test_row_sum_zero_is_identity(self):
        """Test an all-zero matrix is returned unchanged."""
        zeros = np.zeros((3, 4))
        np.testing.assert_array_equal(spectral.normalize_row_sum(zeros), zeros)

    def test_std_target_statistics(self, positive_matrix):
        """Test output has the requested mean and standard deviation."""
        out = spectral.normalize_std(positive_matrix, mean=2.0, std=0.5)
        assert math.isclose(float(np.mean(out)), 2.0, abs_tol=1e-10)
        assert math.isclose(float(np.std(out)), 0.5, rel_tol=1e-10)

    def test_std_default_targets(self, positive_matrix):
        """Test default normalisation to zero mean and unit std."""
        out = spectral.normalize_std(positive_matrix)
        assert math.isclose(float(np.mean(out)), 0.0, abs_tol=1e-10)
        assert math.isclose(float(np.std(out)), 1.0, rel_tol=1e-10)

    def test_std_constant_is_identity(self):
        """Test a constant matrix is left unchanged."""
        const = np.full((4, 5), 3.0)
        np.testing.assert_array_equal(spectral.normalize_std(const, 0, 1), const)

    def test_std_inexact_constant_is_identity(self):
        """Test a constant whose mean rounds is still left unchanged."""
        const = np.full((10, 16), 0.1)
        np.testing.assert_array_equal(spectral.normalize_std(const, 0, 1), const)


class TestTonalNoise:
    """Tests for tonal noise reduction."""

    def test_running_mean_recurrence(self):
        """Test the running mean update row by row."""
        img = np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 9.0]])
        out = spectral.reduce_tonal_noise_mean(img, 3)

        eps = 1 - math.exp(math.log(0.15) / 3)
        rmean = img.mean(axis=0)
        expected = []
        for row in img:
            expected.append(row - rmean)
            rmean = (1 - eps) * rmean + eps * row
        np.testing.assert_allclose(out, np.array(expected))

    def test_running_mean_first_row(self):
        """Test the first row has the column means subtracted."""
        img = np.array([[1.0, 2.0], [3.0, 6.0]])
        out = spectral.reduce_tonal_noise_mean(img, 10)
        np.testing.assert_allclose(out[0], [-1.0, -2.0])

    def test_running_mean_identical_rows(self):
        """Test a stationary spectrogram is fully removed."""
        img = np.tile([1.0, 5.0, 2.0], (6, 1))
        np.testing.assert_allclose(spectral.reduce_tonal_noise_mean(img, 4), 0.0, atol=1e-12)

    def test_running_mean_invalid_time_constant(self):
        """Test a non-positive time constant is rejected."""
        with pytest.raises(ValueError):
            spectral.reduce_tonal_noise_mean(np.ones((2, 2)), 0)

    def test_median_subtracts_column_median(self):
        """Test each column has its median removed."""
        img = np.array([[1.0, 10.0], [2.0, 20.0], [9.0, 40.0]])
        out = spectral.reduce_tonal_noise_median(img)
        np.testing.assert_allclose(out, [[-1.0, -10.0], [0.0, 0.0], [7.0, 20.0]])


class TestMedianFilter:
    """Tests for the median threshold filter."""

    def test_reference_example(self):
        """Test the documented 3x3 example."""
        img = np.array([[1, 4, 5], [3, 5, 1], [1, 0, 9]])
        out = spectral.median_filter(img, 1, 1)
        np.testing.assert_array_equal(out, [[0, 0, 0], [0, 1, 0], [0, 0, 1]])

    def test_output_is_binary(self, positive_matrix):
        """Test output only contains zeros and ones."""
        out = spectral.median_filter(positive_matrix, 1.5, 1.5)
        assert set(np.unique(out)) <= {0.0, 1.0}

    def test_large_factor_discards_everything(self, positive_matrix):
        """Test a huge threshold factor leaves nothing."""
        out = spectral.median_filter(positive_matrix, 1e6, 1)
        assert not out.any()

    def test_non_square(self):
        """Test non-square input keeps its shape."""
        img = np.arange(12, dtype=float).reshape(3, 4)
        assert spectral.median_filter(img, 1, 1).shape == (3, 4)


class TestEnhance:
    """Tests for contrast enhancement."""

    def test_non_positive_factor_is_identity(self, positive_matrix):
        """Test factors <= 0 return the input unchanged."""
        np.testing.assert_array_equal(spectral.enhance(positive_matrix, 0), positive_matrix)
        np.testing.assert_array_equal(spectral.enhance(positive_matrix, -1), positive_matrix)

    def test_sigmoid_scaling(self, positive_matrix):
        """Test each pixel is scaled by the logistic factor."""
        out = spectral.enhance(positive_matrix, 2.0)
        med = np.median(positive_matrix)
        std = np.std(positive_matrix)
        scaling = 1 / (np.exp(-(positive_matrix - med - std) / (std / 2.0)) + 1)
        np.testing.assert_allclose(out, positive_matrix * scaling)

    def test_preserves_range(self, positive_matrix):
        """Test scaling never increases a positive pixel."""
        out = spectral.enhance(positive_matrix, 1.0)
        assert np.all(out <= positive_matrix)
        assert np.all(out >= 0)

    def test_constant_is_identity(self):
        """Test a constant matrix is left unchanged."""
        const = np.full((3, 3), 2.0)
        np.testing.assert_array_equal(spectral.enhance(const, 1.0), const)

    def test_inexact_constant_is_identity(self):
        """Test a constant of 0.1 is not rescaled by a rounding-level std."""
        const = np.full((10, 16), 0.1)
        np.testing.assert_array_equal(spectral.enhance(const, 1.0), const)


class TestInterpolate:
    """Tests for frequency-axis cropping and interpolation."""

    @pytest.fixture
    def ramp(self):
        """Two frames whose bins hold their own index."""
        return np.tile(np.arange(16, dtype=float), (2, 1))

    def test_crop_and_downsample(self, ramp):
        """Test cropping to a band then halving the bin count."""
        out = spectral.interpolate_freq_axis(ramp, 4, 12, 4, 32)
        np.testing.assert_array_equal(out, [[4, 6, 8, 10], [4, 6, 8, 10]])

    def test_crop_and_upsample(self, ramp):
        """Test nearest-neighbour upsampling repeats bins."""
        out = spectral.interpolate_freq_axis(ramp, 4, 12, 16, 32)
        np.testing.assert_array_equal(out[0], np.repeat(np.arange(4, 12), 2))

    def test_top_bin_excluded(self, ramp):
        """Test the band end is clamped below the last bin."""
        out = spectral.interpolate_freq_axis(ramp, 0, 16, 15, 32)
        np.testing.assert_array_equal(out[0], np.arange(15))

    def test_narrow_band_keeps_one_bin(self):
        """Test a band narrower than one bin still yields output."""
        img = np.tile(np.arange(128, dtype=float), (3, 1))
        out = spectral.interpolate_freq_axis(img, 1000, 1001, 8, 256000)
        assert out.shape == (3, 8)
        assert np.all(out == 1)

    def test_target_bins_property(self, rng):
        """Test output always has the requested number of bins."""
        img = rng.uniform(size=(5, 128))
        sample_rate = 256000
        for _ in range(50):
            f_min, f_max = sorted(rng.uniform(0, sample_rate / 2, size=2))
            if f_min == f_max:
                continue
            target = int(rng.integers(1, 300))
            out = spectral.interpolate_freq_axis(img, f_min, f_max, target, sample_rate)
            assert out.shape == (5, target)

    def test_invalid_band(self, ramp):
        """Test f_min >= f_max is rejected."""
        with pytest.raises(ValueError):
            spectral.interpolate_freq_axis(ramp, 10, 10, 4, 32)


class TestClamp:
    """Tests for clamping."""

    def test_within_bounds(self, rng):
        """Test every value lies in [min, max]."""
        img = rng.normal(0, 5, size=(8, 8))
        out = spectral.clamp(img, -1, 2)
        assert out.min() >= -1
        assert out.max() <= 2

    def test_idempotent(self, rng):
        """Test clamping twice equals clamping once."""
        img = rng.normal(0, 5, size=(8, 8))
        once = spectral.clamp(img, -1, 2)
        np.testing.assert_array_equal(spectral.clamp(once, -1, 2), once)

    def test_values_inside_untouched(self):
        """Test values already within range pass through."""
        img = np.array([[0.5, -3.0, 7.0]])
        np.testing.assert_array_equal(spectral.clamp(img, 0, 1), [[0.5, 0.0, 1.0]])


class TestGaussianBlur:
    """Tests for the Gaussian blur."""

    def test_kernel_sums_to_one(self):
        """Test the kernel is normalised for several sigmas."""
        for sigma in (0.1, 0.5, 1.0, 5.0, 100.0):
            kernel = spectral.gaussian_kernel(sigma)
            assert kernel.shape == (5, 5)
            assert math.isclose(float(kernel.sum()), 1.0, rel_tol=1e-12)

    def test_kernel_large_sigma_is_uniform(self):
        """Test a very wide kernel approaches a 5x5 box."""
        kernel = spectral.gaussian_kernel(1e6)
        np.testing.assert_allclose(kernel, np.full((5, 5), 1 / 25), rtol=1e-9)

    def test_constant_image_unchanged(self):
        """Test blurring a constant image is a no-op."""
        const = np.full((6, 7), 4.0)
        np.testing.assert_allclose(spectral.gaussian_blur(const, 1.0), const)

    def test_large_sigma_box_average(self, rng):
        """Test a wide blur gives the 5x5 mean at an interior pixel."""
        img = rng.uniform(size=(9, 9))
        out = spectral.gaussian_blur(img, 1e6)
        assert math.isclose(out[4, 4], float(img[2:7, 2:7].mean()), rel_tol=1e-9)

    def test_border_clamps_to_edge(self, rng):
        """Test out-of-range pixels take the nearest edge value."""
        img = rng.uniform(size=(6, 6))
        out = spectral.gaussian_blur(img, 1e6)
        padded = np.pad(img, 2, mode='edge')
        assert math.isclose(out[0, 0], float(padded[0:5, 0:5].mean()), rel_tol=1e-9)
        assert math.isclose(out[5, 3], float(padded[5:10, 3:8].mean()), rel_tol=1e-9)

    def test_invalid_sigma(self):
        """Test non-positive sigma is rejected."""
        with pytest.raises(ValueError):
            spectral.gaussian_kernel(0)


class TestUnsupported:
    """Tests for transforms that are not implemented."""

    def test_median_blur(self):
        """Test median blur raises rather than doing nothing."""
        with pytest.raises(NotImplementedError):
            spectral.median_blur(np.ones((3, 3)))

    def test_filter_isolated_spots(self):
        """Test spot filtering raises rather than doing nothing."""
        with pytest.raises(NotImplementedError):
            spectral.filter_isolated_spots(np.ones((3, 3)))


class TestWaveTransforms:
    """Tests for wave-domain transforms."""

    def test_preemphasis(self):
        """Test y[n] = x[n] - a*x[n-1] with the first sample kept."""
        wave = WaveData(np.array([1.0, 2.0, 4.0, 4.0]), 10.0)
        out = preemphasis(wave, 0.5)
        np.testing.assert_allclose(out.samples, [1.0, 1.5, 3.0, 2.0])
        assert out.sample_rate == 10.0

    def test_from_signal_mono(self):
        """Test multi-channel input is averaged to mono."""
        wave = WaveData.from_signal(np.array([[1.0, 3.0], [3.0, 5.0]]), 100)
        np.testing.assert_allclose(wave.samples, [2.0, 4.0])

    def test_from_signal_tensor(self):
        """Test torch tensors are accepted."""
        import torch
        wave = WaveData.from_signal(torch.ones(4), 8)
        assert wave.samples.dtype == np.float64
        assert wave.duration == 0.5

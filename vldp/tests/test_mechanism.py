"""Tests for the discretized randomized-response mechanism"""

import random

import pytest

from vldp import mechanism
from vldp.config import VLDPConfig


def randomness_for(config, gamma_window, bucket=0, tie_break=0):
    data = gamma_window.to_bytes(config.gamma_bytes, "little")
    data += bucket.to_bytes(config.input_bytes, "little")
    if config.is_real_input:
        data += tie_break.to_bytes(config.input_bytes, "little")
    return data


class TestWindows:
    """Test window layout and the ldp bit"""

    def test_windows_are_consecutive(self):
        """Windows tile the randomness string without overlap"""
        config = VLDPConfig(input_bytes=2, gamma_bytes=3)
        assert config.gamma_window == slice(0, 3)
        assert config.bucket_window == slice(3, 5)
        assert config.tie_break_window == slice(5, 7)
        assert config.randomness_bytes == 7

    def test_ldp_bit_threshold_is_inclusive(self, real_config):
        """Window equal to the threshold selects a random bucket"""
        assert mechanism.ldp_bit(randomness_for(real_config, 10), 10, real_config) == 1
        assert mechanism.ldp_bit(randomness_for(real_config, 11), 10, real_config) == 0

    def test_window_value_little_endian(self):
        assert mechanism.window_value(b"\x01\x02\x03", slice(0, 2)) == 0x0201


class TestRounding:
    """Test the pass-through branch"""

    def test_extremes(self, real_config):
        """0 maps to 0 and MAX maps to K"""
        assert mechanism.round_true_value(0, 0, real_config) == 0
        assert mechanism.round_true_value(real_config.max_input_value, 0, real_config) == real_config.k

    def test_never_exceeds_k(self, real_config):
        """No true value rounds past K, whatever the tie break"""
        for true_value in range(real_config.max_input_value + 1):
            for tie_break in (0, 1, real_config.max_input_value):
                value = mechanism.round_true_value(true_value, tie_break, real_config)
                assert 0 <= value <= real_config.k

    def test_rounds_up_below_remainder(self, real_config):
        """tie_break < remainder rounds up"""
        true_value = 100  # 100 * 4 = 1 * 255 + 145
        assert mechanism.round_true_value(true_value, 144, real_config) == 2
        assert mechanism.round_true_value(true_value, 145, real_config) == 1

    def test_categorical_is_identity(self, categorical_config):
        assert mechanism.round_true_value(3, 200, categorical_config) == 3


class TestBuckets:
    """Test the random-bucket branch"""

    def test_bucket_zero(self, real_config, categorical_config):
        assert mechanism.bucket_value(0, real_config) == 0
        assert mechanism.bucket_value(0, categorical_config) == 1

    def test_top_bucket_boundary(self, real_config, categorical_config):
        """The maximal bucket window maps to K"""
        for config in (real_config, categorical_config):
            assert mechanism.bucket_value(config.max_input_value, config) == config.k

    def test_bounds_cover_every_window(self, real_config, categorical_config):
        """bucket_bounds agrees with bucket_value on the whole domain"""
        for config in (real_config, categorical_config):
            for bucket in range(config.max_input_value + 1):
                value = mechanism.bucket_value(bucket, config)
                lower, upper, inclusive = mechanism.bucket_bounds(value, config)
                assert lower <= bucket
                assert bucket <= upper if inclusive else bucket < upper

    def test_only_top_bucket_is_inclusive(self, real_config):
        for value in range(real_config.k):
            assert mechanism.bucket_bounds(value, real_config)[2] is False
        lower, upper, inclusive = mechanism.bucket_bounds(real_config.k, real_config)
        assert inclusive is True
        assert upper == real_config.max_input_value


class TestApply:
    """Test the full mechanism"""

    def test_random_branch(self, real_config):
        """Gamma window 0 always selects a bucket"""
        randomness = randomness_for(real_config, 0, bucket=real_config.max_input_value)
        assert mechanism.apply(7, randomness, 0, real_config) == real_config.k

    def test_true_branch(self, real_config):
        """Gamma window above the threshold reports the rounded value"""
        randomness = randomness_for(real_config, 255, bucket=0, tie_break=0)
        assert mechanism.apply(255, randomness, 254, real_config) == real_config.k

    @pytest.mark.parametrize("fixture", ["real_config", "categorical_config"])
    def test_range_invariant(self, fixture, request):
        """Every report lies in [min_ldp_value, K]"""
        config = request.getfixturevalue(fixture)
        rng = random.Random(1234)
        low = 1 if not config.is_real_input else 0
        for _ in range(2000):
            true_value = rng.randint(low, config.k if not config.is_real_input else config.max_input_value)
            randomness = bytes(rng.getrandbits(8) for _ in range(config.randomness_bytes))
            value = mechanism.apply(true_value, randomness, rng.getrandbits(8), config)
            assert config.min_ldp_value <= value <= config.k

    def test_rejects_categorical_out_of_domain(self, categorical_config):
        randomness = bytes(categorical_config.randomness_bytes)
        with pytest.raises(ValueError):
            mechanism.apply(0, randomness, 0, categorical_config)
        with pytest.raises(ValueError):
            mechanism.apply(categorical_config.k + 1, randomness, 0, categorical_config)

    def test_rejects_short_randomness(self, real_config):
        with pytest.raises(ValueError):
            mechanism.apply(1, b"\x00", 0, real_config)

    def test_rejects_oversized_real_input(self, real_config):
        with pytest.raises(ValueError):
            mechanism.apply(256, bytes(real_config.randomness_bytes), 0, real_config)

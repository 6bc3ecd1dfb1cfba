"""Calibration of the mechanism against its exact distribution"""

from fractions import Fraction

import numpy as np
import pytest

from vldp import analysis


class TestExpectedDistribution:
    """Test the exact report distribution"""

    def test_sums_to_one(self, real_config, categorical_config):
        for config, true_value in ((real_config, 100), (categorical_config, 3)):
            dist = analysis.expected_distribution(true_value, 63, config)
            assert dist.sum() == pytest.approx(1.0)
            assert (dist >= 0).all()

    def test_categorical_never_reports_zero(self, categorical_config):
        dist = analysis.expected_distribution(2, 100, categorical_config)
        assert dist[0] == 0

    def test_bucket_branch_is_nearly_uniform(self, real_config):
        """Each bucket below K covers boundary_gap windows"""
        dist = analysis.bucket_distribution(real_config)
        gap = real_config.boundary_gap / (real_config.max_input_value + 1)
        assert dist[:real_config.k] == pytest.approx([gap] * real_config.k)
        assert dist.sum() == pytest.approx(1.0)

    def test_true_branch_randomized_rounding(self, real_config):
        """Rounding up happens with probability remainder / (MAX + 1)"""
        dist = analysis.true_value_distribution(100, real_config)
        assert dist[2] == pytest.approx(145 / 256)
        assert dist[1] == pytest.approx(1 - 145 / 256)

    def test_random_report_probability(self, real_config, real_params):
        """Matches SystemParameters.effective_gamma"""
        p = analysis.random_report_probability(real_params.gamma_as_int(), real_config)
        assert p == real_params.effective_gamma()
        assert p == Fraction(64, 256)


class TestCalibrate:
    """Test empirical calibration"""

    @pytest.mark.parametrize("fixture, true_value", [("real_config", 200), ("categorical_config", 4)])
    def test_empirical_matches_expected(self, fixture, true_value, request):
        config = request.getfixturevalue(fixture)
        result = analysis.calibrate(true_value, 100, config, samples=20000, seed=11)
        assert result.total_variation < 0.03
        assert result.observed.sum() == pytest.approx(1.0)

    def test_true_report_rate(self, categorical_config):
        """Rate is (1 - p) + p * P(bucket == true value)"""
        gamma_as_int = 127
        p = float(analysis.random_report_probability(gamma_as_int, categorical_config))
        bucket = analysis.bucket_distribution(categorical_config)[3]
        result = analysis.calibrate(3, gamma_as_int, categorical_config, samples=20000, seed=5)
        assert result.true_report_rate == pytest.approx((1 - p) + p * bucket, abs=0.02)

    def test_seed_is_reproducible(self, real_config):
        a = analysis.sample_reports(50, 63, real_config, 200, seed=9)
        b = analysis.sample_reports(50, 63, real_config, 200, seed=9)
        assert np.array_equal(a, b)

    def test_rejects_invalid_samples(self, real_config):
        with pytest.raises(ValueError):
            analysis.calibrate(1, 0, real_config, samples=0)

"""
Calibration of the randomized-response mechanism.

expected_distribution() computes the exact report distribution of one
true value; empirical_distribution() samples mechanism.apply() with
uniform randomness. calibrate() compares the two.

Sampling uses numpy's seeded generator: calibration needs reproducible
uniform bytes, not secret ones.
"""

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Optional

import numpy as np

from .config import VLDPConfig
from . import mechanism

logger = logging.getLogger(__name__)


def random_report_probability(gamma_as_int: int, config: VLDPConfig) -> Fraction:
    """Probability that the gamma window selects a random bucket."""
    span = 1 << (8 * config.gamma_bytes)
    return Fraction(min(gamma_as_int + 1, span), span)


def bucket_distribution(config: VLDPConfig) -> np.ndarray:
    """Probability of each report value on the random-bucket branch."""
    probabilities = np.zeros(config.k + 1)
    domain = config.max_input_value + 1
    for value in range(config.min_ldp_value, config.k + 1):
        lower, upper, inclusive = mechanism.bucket_bounds(value, config)
        probabilities[value] = (upper - lower + int(inclusive)) / domain
    return probabilities


def true_value_distribution(true_value: int, config: VLDPConfig) -> np.ndarray:
    """Probability of each report value on the true-value branch."""
    mechanism.validate_true_value(true_value, config)
    probabilities = np.zeros(config.k + 1)
    if not config.is_real_input:
        probabilities[true_value] = 1.0
        return probabilities

    multiplicand, remainder = divmod(true_value * config.k, config.max_input_value)
    # tie_break < remainder with tie_break uniform over [0, MAX]
    round_up = remainder / (config.max_input_value + 1)
    probabilities[multiplicand] += 1.0 - round_up
    if round_up:
        probabilities[multiplicand + 1] += round_up
    return probabilities


def expected_distribution(
    true_value: int, gamma_as_int: int, config: VLDPConfig
) -> np.ndarray:
    """
    Exact distribution of apply(true_value, r) over uniform r.

    Returns:
        Array of length K + 1 indexed by report value (index 0 is unused
        for categorical inputs)
    """
    p_random = float(random_report_probability(gamma_as_int, config))
    return p_random * bucket_distribution(config) + (1.0 - p_random) * true_value_distribution(
        true_value, config
    )


def sample_reports(
    true_value: int,
    gamma_as_int: int,
    config: VLDPConfig,
    samples: int,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Run the mechanism on samples uniform randomness strings."""
    if samples < 1:
        raise ValueError("samples must be positive")
    rng = np.random.default_rng(seed)
    draws = rng.integers(0, 256, size=(samples, config.randomness_bytes), dtype=np.uint8)
    return np.fromiter(
        (
            mechanism.apply(true_value, row.tobytes(), gamma_as_int, config)
            for row in draws
        ),
        dtype=np.int64,
        count=samples,
    )


def empirical_distribution(
    true_value: int,
    gamma_as_int: int,
    config: VLDPConfig,
    samples: int,
    seed: Optional[int] = None,
) -> np.ndarray:
    reports = sample_reports(true_value, gamma_as_int, config, samples, seed)
    return np.bincount(reports, minlength=config.k + 1) / samples


@dataclass(frozen=True)
class CalibrationResult:
    """
    Attributes:
        expected: Exact report distribution
        observed: Empirical report distribution
        true_report_rate: Observed share of reports equal to the rounded
            true value (categorical inputs: the true value itself)
        total_variation: Half the L1 distance between the distributions
    """

    expected: np.ndarray
    observed: np.ndarray
    true_report_rate: float
    total_variation: float
    samples: int


def calibrate(
    true_value: int,
    gamma_as_int: int,
    config: VLDPConfig,
    samples: int = 10000,
    seed: Optional[int] = None,
) -> CalibrationResult:
    """
    Compare the mechanism against its exact distribution.

    Example:
        >>> result = calibrate(3, 63, VLDPConfig(input_bytes=1, k=4,
        ...     gamma_bytes=1, is_real_input=False), samples=5000, seed=1)
        >>> result.total_variation < 0.05
        True
    """
    expected = expected_distribution(true_value, gamma_as_int, config)
    observed = empirical_distribution(true_value, gamma_as_int, config, samples, seed)
    support = true_value_distribution(true_value, config) > 0
    result = CalibrationResult(
        expected=expected,
        observed=observed,
        true_report_rate=float(observed[support].sum()),
        total_variation=float(np.abs(expected - observed).sum() / 2),
        samples=samples,
    )
    logger.debug(
        "calibrated %d samples: total variation %.4f", samples, result.total_variation
    )
    return result

"""
Discretized randomized response.

apply() maps a true value and a randomness string to a report in [0, K]
(real inputs) or [1, K] (categorical inputs). The randomness string is
cut into consecutive little-endian windows:

    [gamma_window | bucket_window | tie_break_window]
      gamma_bytes    input_bytes     input_bytes (real inputs only)

With probability ~gamma the report is a uniform bucket chosen by
bucket_window; otherwise it is the true value, scaled to [0, K] with
randomized rounding for real inputs. The circuit in vldp.circuits.common
recomputes exactly this function.
"""

from typing import Tuple

from .config import VLDPConfig


def window_value(randomness: bytes, window: slice) -> int:
    return int.from_bytes(randomness[window], "little")


def validate_true_value(true_value: int, config: VLDPConfig) -> None:
    """
    Raises:
        ValueError: If true_value is outside the input domain
    """
    if config.is_real_input:
        if not 0 <= true_value <= config.max_input_value:
            raise ValueError(
                f"true value {true_value} outside [0, {config.max_input_value}]"
            )
    elif not 1 <= true_value <= config.k:
        raise ValueError(f"categorical true value {true_value} outside [1, {config.k}]")


def ldp_bit(randomness: bytes, gamma_as_int: int, config: VLDPConfig) -> int:
    """1 when the report is a random bucket, 0 when it is the true value."""
    return int(window_value(randomness, config.gamma_window) <= gamma_as_int)


def round_true_value(true_value: int, tie_break: int, config: VLDPConfig) -> int:
    """
    Re-express the true value in the report domain.

    Real inputs: tv * K = m * MAX + rem, reported as m + (tie_break < rem).
    tie_break is uniform in [0, MAX], so the report is m + 1 with
    probability rem / (MAX + 1) and never exceeds K.
    """
    if not config.is_real_input:
        return true_value
    scaled = true_value * config.k
    multiplicand, remainder = divmod(scaled, config.max_input_value)
    return multiplicand + int(tie_break < remainder)


def bucket_value(bucket: int, config: VLDPConfig) -> int:
    """Map bucket_window to a bucket in [0, K] (real) or [1, K] (categorical)."""
    quotient = bucket // config.boundary_gap
    if config.is_real_input:
        return min(quotient, config.k)
    return min(quotient, config.k - 1) + 1


def bucket_bounds(ldp_value: int, config: VLDPConfig) -> Tuple[int, int, bool]:
    """
    Range of bucket_window values that map to ldp_value.

    analysis.bucket_distribution weights each random bucket by this
    width; mechanism_ok in the circuit rebuilds the same edges from its
    witnessed bucket index.

    Returns:
        (lower, upper, upper_inclusive): the top bucket is widened to the
        domain maximum and its upper bound is inclusive
    """
    index = ldp_value if config.is_real_input else ldp_value - 1
    lower = index * config.boundary_gap
    if ldp_value == config.k:
        return lower, config.max_input_value, True
    return lower, (index + 1) * config.boundary_gap, False


def apply(true_value: int, randomness: bytes, gamma_as_int: int, config: VLDPConfig) -> int:
    """
    Compute the randomized report.

    Args:
        true_value: Private input (real: [0, MAX], categorical: [1, K])
        randomness: At least config.required_randomness_bytes bytes
        gamma_as_int: Encoded gamma threshold
        config: Deployment shape

    Returns:
        ldp_value in [min_ldp_value, K]

    Raises:
        ValueError: If the true value or the randomness length is invalid
    """
    validate_true_value(true_value, config)
    if len(randomness) < config.required_randomness_bytes:
        raise ValueError(
            f"need {config.required_randomness_bytes} randomness bytes, got {len(randomness)}"
        )

    if ldp_bit(randomness, gamma_as_int, config):
        return bucket_value(window_value(randomness, config.bucket_window), config)
    tie_break = window_value(randomness, config.tie_break_window)
    return round_true_value(true_value, tie_break, config)

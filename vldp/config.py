"""
⚠️ DRAFT — requires crypto review before production use

Cryptographic configuration for the VLDP toolkit.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.

Two layers live here:
    - module constants for the curve, the constraint field and the
      domain separators (validated on import)
    - VLDPConfig, the shape of one deployment (byte widths, bucket count,
      input domain, Merkle depth), validated once at construction
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .exceptions import ConfigurationError

# ============================================================================
# CURVE SELECTION
# ============================================================================

# Signatures and commitments use secp256k1 via petlib (same curve and
# library for both so one group setup serves every primitive).
CURVE_NAME = "secp256k1"
CURVE_LIBRARY = "petlib"
CURVE_NID = 714  # OpenSSL NID for secp256k1

GROUP_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
POINT_SIZE_BYTES = 33  # Compressed point format
SCALAR_SIZE_BYTES = 32

# ============================================================================
# CONSTRAINT FIELD
# ============================================================================

# BN254 scalar field. Byte strings are packed into field elements
# FIELD_CAPACITY_BYTES at a time so every packed chunk is below the modulus.
FIELD_MODULUS = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)
FIELD_BITS = 254
FIELD_CAPACITY_BYTES = 31

# ============================================================================
# PRIMITIVE SIZES
# ============================================================================

PRF_SEED_BYTES = 32
PRF_INPUT_BYTES = 32
PRF_OUTPUT_BYTES = 32

COMMITMENT_RANDOMNESS_BYTES = SCALAR_SIZE_BYTES
SIGNATURE_SIZE_BYTES = POINT_SIZE_BYTES + SCALAR_SIZE_BYTES
MERKLE_HASH_BYTES = 32

GENERATOR_SEED_BYTES = 32
# Each leaf draws 64 bytes and reduces them mod GROUP_ORDER (negligible bias)
GENERATOR_SCALAR_DRAW_BYTES = 64

# ============================================================================
# DOMAIN SEPARATION
# ============================================================================

DOMAIN_SEPARATOR_PREFIX = b"VLDP_V1_"

DOMAIN_SEPARATORS = {
    "commitment_generator": DOMAIN_SEPARATOR_PREFIX + b"COMMIT_GEN",
    "commitment_blinding": DOMAIN_SEPARATOR_PREFIX + b"COMMIT_H",
    "schnorr_challenge": DOMAIN_SEPARATOR_PREFIX + b"SCHNORR",
    "merkle_leaf": DOMAIN_SEPARATOR_PREFIX + b"MERKLE_LEAF",
    "merkle_node": DOMAIN_SEPARATOR_PREFIX + b"MERKLE_NODE",
}

# Generators supported by the vector Pedersen commitment (31-byte chunks)
COMMITMENT_MAX_MESSAGE_BYTES = 31 * 16

# ============================================================================
# ENVIRONMENT
# ============================================================================

CONFIG_ENV_VAR = "VLDP_CONFIG"

# Comparisons run on (8 * width + 1)-bit quantities and products
# true_value * K must not wrap around the field.
MAX_INPUT_BYTES = 16
MAX_GAMMA_BYTES = 16
MAX_TIME_BYTES = FIELD_CAPACITY_BYTES
MAX_K = 2**32


# ============================================================================
# DEPLOYMENT SHAPE
# ============================================================================


@dataclass(frozen=True)
class VLDPConfig:
    """
    Shape parameters of one VLDP deployment.

    Attributes:
        input_bytes: Width of the true value (little-endian)
        time_bytes: Width of the time stamp and time bounds
        gamma_bytes: Width of the gamma window and of gamma_as_bytes()
        k: Number of buckets (reports live in [0, K] or [1, K])
        is_real_input: Real (scaled) input domain vs categorical domain
        merkle_depth: Height of the Expand Merkle tree
            (2 ** (merkle_depth - 1) leaves)
        randomness_bytes: Length of the randomness string; defaults to the
            minimum needed for the three windows

    Raises:
        ConfigurationError: If the widths are inconsistent

    Example:
        >>> config = VLDPConfig(input_bytes=4, k=10)
        >>> config.randomness_bytes
        12
    """

    input_bytes: int = 4
    time_bytes: int = 8
    gamma_bytes: int = 4
    k: int = 10
    is_real_input: bool = True
    merkle_depth: int = 4
    randomness_bytes: Optional[int] = None

    def __post_init__(self):
        for name in ("input_bytes", "time_bytes", "gamma_bytes", "k", "merkle_depth"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ConfigurationError(f"{name} must be positive, got {value}")

        if not isinstance(self.is_real_input, bool):
            raise ConfigurationError("is_real_input must be a bool")

        if self.input_bytes > MAX_INPUT_BYTES:
            raise ConfigurationError(
                f"input_bytes must be at most {MAX_INPUT_BYTES}, got {self.input_bytes}"
            )
        if self.gamma_bytes > MAX_GAMMA_BYTES:
            raise ConfigurationError(
                f"gamma_bytes must be at most {MAX_GAMMA_BYTES}, got {self.gamma_bytes}"
            )
        if self.time_bytes > MAX_TIME_BYTES:
            raise ConfigurationError(
                f"time_bytes must be at most {MAX_TIME_BYTES}, got {self.time_bytes}"
            )
        if self.k >= MAX_K:
            raise ConfigurationError(f"k must be below {MAX_K}, got {self.k}")
        if not self.is_real_input and self.k < 2:
            raise ConfigurationError("categorical inputs need k >= 2")
        if self.boundary_gap < 1:
            raise ConfigurationError(
                f"k={self.k} leaves no room for buckets in {self.input_bytes} bytes"
            )

        required = self.required_randomness_bytes
        if self.randomness_bytes is None:
            object.__setattr__(self, "randomness_bytes", required)
        elif not isinstance(self.randomness_bytes, int) or isinstance(
            self.randomness_bytes, bool
        ):
            raise ConfigurationError("randomness_bytes must be an integer")
        elif self.randomness_bytes < required:
            # Shorter strings would make the windows overlap
            raise ConfigurationError(
                f"randomness_bytes={self.randomness_bytes} is smaller than the "
                f"{required} bytes needed for disjoint windows"
            )

    # ------------------------------------------------------------------
    # derived values
    # ------------------------------------------------------------------

    @property
    def required_randomness_bytes(self) -> int:
        windows = 2 if self.is_real_input else 1
        return self.gamma_bytes + windows * self.input_bytes

    @property
    def max_input_value(self) -> int:
        return (1 << (8 * self.input_bytes)) - 1

    @property
    def boundary_gap(self) -> int:
        divisor = self.k + 1 if self.is_real_input else self.k
        return self.max_input_value // divisor

    @property
    def num_prf_evals(self) -> int:
        return (self.randomness_bytes - 1) // PRF_OUTPUT_BYTES + 1

    @property
    def num_leaves(self) -> int:
        return 2 ** (self.merkle_depth - 1)

    @property
    def min_ldp_value(self) -> int:
        return 0 if self.is_real_input else 1

    @property
    def gamma_window(self) -> slice:
        return slice(0, self.gamma_bytes)

    @property
    def bucket_window(self) -> slice:
        start = self.gamma_bytes
        return slice(start, start + self.input_bytes)

    @property
    def tie_break_window(self) -> slice:
        start = self.gamma_bytes + self.input_bytes
        return slice(start, start + self.input_bytes)

    def encode_time(self, value: int) -> bytes:
        """Encode a time stamp as time_bytes little-endian bytes."""
        if value < 0 or value >= 1 << (8 * self.time_bytes):
            raise ValueError(f"time {value} does not fit in {self.time_bytes} bytes")
        return value.to_bytes(self.time_bytes, "little")

    def encode_input(self, value: int) -> bytes:
        """Encode a true value as input_bytes little-endian bytes."""
        if value < 0 or value > self.max_input_value:
            raise ValueError(
                f"value {value} does not fit in {self.input_bytes} bytes"
            )
        return value.to_bytes(self.input_bytes, "little")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VLDPConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        if not isinstance(data, Mapping):
            raise ConfigurationError("config must be a mapping")
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"unknown config keys: {sorted(unknown)}")
        return cls(**dict(data))


def load_config(path: Optional[Union[str, Path]] = None) -> VLDPConfig:
    """
    Load a VLDPConfig from a YAML file.

    Resolution order: explicit path, then the VLDP_CONFIG environment
    variable, then the defaults.

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR) or None
    if path is None:
        return VLDPConfig()

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc

    if data is None:
        return VLDPConfig()
    return VLDPConfig.from_mapping(data)


# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate module constants.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert CURVE_NAME == "secp256k1", "Only secp256k1 is supported"
    assert CURVE_LIBRARY == "petlib", "secp256k1 requires petlib library"
    assert GROUP_ORDER.bit_length() == 256, "Unexpected group order size"
    assert FIELD_MODULUS.bit_length() == FIELD_BITS, "Field size mismatch"
    assert 8 * FIELD_CAPACITY_BYTES < FIELD_BITS, "Packed chunks must fit the field"
    assert 8 * (MAX_INPUT_BYTES + 4) + 2 < FIELD_BITS, "Comparators would wrap"
    assert len(set(DOMAIN_SEPARATORS.values())) == len(DOMAIN_SEPARATORS)
    return True


# Auto-validate on import
validate_config()

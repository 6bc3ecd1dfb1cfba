"""
⚠️ DRAFT — requires crypto review before production use

Vector Pedersen commitment implementation using petlib + secp256k1.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.

Vector Pedersen Commitments:
    Commits to a byte string by splitting it into 31-byte little-endian
    chunks m_0 .. m_{n-1}, one independent generator per chunk:

        C = m_0 * G_0 + ... + m_{n-1} * G_{n-1} + r * H

    - Hiding: r is uniform in [1, GROUP_ORDER)
    - Binding: chunks are below 2^248 < GROUP_ORDER, so every message
      maps to a distinct exponent vector

Security Requirements:
    1. G_i and H must have unknown discrete log relations
    2. Commitment randomness must be cryptographically random
       (the Expand client derives it from its ChaCha20 generator)

Implementation Details:
    - Curve: secp256k1 (NID 714)
    - G_i: hash_to_point(COMMIT_GEN || i) - Nothing-Up-My-Sleeve
    - H: hash_to_point(COMMIT_H) - Nothing-Up-My-Sleeve
    - Output: 33-byte compressed point
    - Randomness: 32-byte big-endian scalar
"""

import threading
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

try:
    from petlib.bn import Bn
    from petlib.ec import EcGroup
except ImportError:
    raise ImportError(
        "petlib is required for Pedersen commitments. "
        "Install with: pip install petlib"
    )

from ..config import (
    COMMITMENT_MAX_MESSAGE_BYTES,
    COMMITMENT_RANDOMNESS_BYTES,
    CURVE_LIBRARY,
    CURVE_NAME,
    CURVE_NID,
    DOMAIN_SEPARATORS,
    FIELD_CAPACITY_BYTES,
    GROUP_ORDER,
    POINT_SIZE_BYTES,
)
from ..exceptions import CryptographicError
from ..security import RandomnessSource, constant_time_compare
from ..snark.constraint_system import ConstraintSystem
from ..snark.gadgets import UInt8, native_bytes

CHUNK_BYTES = FIELD_CAPACITY_BYTES


# ============================================================================
# CURVE SETUP
# ============================================================================


@dataclass(frozen=True)
class CurveParameters:
    """
    secp256k1 group shared by commitments and signatures.

    Attributes:
        group: Elliptic curve group (EcGroup)
        G: Standard generator
        order: Group order
    """

    group: Any  # EcGroup
    G: Any  # EcPt
    order: int

    def __post_init__(self):
        if self.order != GROUP_ORDER:
            raise CryptographicError(
                f"Group order mismatch: expected {GROUP_ORDER}, got {self.order}"
            )


def setup_curve() -> CurveParameters:
    """
    Initialize secp256k1 through petlib.

    Raises:
        CryptographicError: If the curve cannot be initialized
    """
    if CURVE_NAME != "secp256k1" or CURVE_LIBRARY != "petlib":
        raise CryptographicError("Only secp256k1 via petlib is supported")

    try:
        group = EcGroup(CURVE_NID)
        return CurveParameters(
            group=group, G=group.generator(), order=int(group.order())
        )
    except CryptographicError:
        raise
    except Exception as e:
        raise CryptographicError(f"Failed to initialize curve {CURVE_NAME}: {e}") from e


_CURVE_PARAMS_CACHE: Optional[CurveParameters] = None
_CACHE_LOCK = threading.Lock()


def get_cached_curve_params() -> CurveParameters:
    """
    Get cached curve parameters (initialize if needed).

    Thread-safe using double-checked locking.
    """
    global _CURVE_PARAMS_CACHE

    if _CURVE_PARAMS_CACHE is not None:
        return _CURVE_PARAMS_CACHE

    with _CACHE_LOCK:
        if _CURVE_PARAMS_CACHE is None:
            _CURVE_PARAMS_CACHE = setup_curve()

    return _CURVE_PARAMS_CACHE


def int_to_bn(value: int) -> Any:
    """Convert a scalar in [0, GROUP_ORDER) to a petlib Bn."""
    return Bn.from_binary(value.to_bytes(32, byteorder="big"))


# ============================================================================
# COMMITMENT PARAMETERS
# ============================================================================


@dataclass(frozen=True)
class CommitmentParameters:
    """
    Generators of the vector commitment.

    Attributes:
        curve: Underlying curve parameters
        generators: One generator per 31-byte message chunk
        H: Blinding generator
    """

    curve: CurveParameters
    generators: Tuple[Any, ...]
    H: Any

    @property
    def max_message_bytes(self) -> int:
        return len(self.generators) * CHUNK_BYTES


def setup_commitment_parameters(
    max_message_bytes: int = COMMITMENT_MAX_MESSAGE_BYTES,
    curve: Optional[CurveParameters] = None,
) -> CommitmentParameters:
    """
    Derive the commitment generators.

    ⚠️ TRUST ASSUMPTION: no one knows the discrete log relations between
    the hash-to-point generators. Anyone can recompute them from the
    domain separators in config.py.

    Args:
        max_message_bytes: Longest message the parameters must support
        curve: Curve parameters (cached secp256k1 if None)
    """
    if max_message_bytes < 1:
        raise ValueError("max_message_bytes must be positive")
    if curve is None:
        curve = get_cached_curve_params()

    num_chunks = (max_message_bytes + CHUNK_BYTES - 1) // CHUNK_BYTES
    gen_seed = DOMAIN_SEPARATORS["commitment_generator"]
    generators = tuple(
        curve.group.hash_to_point(gen_seed + i.to_bytes(4, "big"))
        for i in range(num_chunks)
    )
    H = curve.group.hash_to_point(DOMAIN_SEPARATORS["commitment_blinding"])
    return CommitmentParameters(curve=curve, generators=generators, H=H)


# ============================================================================
# COMMITMENT SCHEME
# ============================================================================


class PedersenVectorCommitment:
    """
    Commitment scheme over byte strings.

    Example:
        >>> scheme = PedersenVectorCommitment()
        >>> params = scheme.setup(64)
        >>> r = scheme.random_randomness()
        >>> c = scheme.commit(params, b"client seed", r)
        >>> scheme.open(params, c, b"client seed", r)
        True
    """

    output_size = POINT_SIZE_BYTES
    randomness_size = COMMITMENT_RANDOMNESS_BYTES

    def setup(self, max_message_bytes: int = COMMITMENT_MAX_MESSAGE_BYTES) -> CommitmentParameters:
        return setup_commitment_parameters(max_message_bytes)

    def commit(
        self, params: CommitmentParameters, message: bytes, randomness: bytes
    ) -> bytes:
        """
        Compute C = sum(m_i * G_i) + r * H.

        Args:
            params: Commitment parameters
            message: Bytes to commit to
            randomness: 32-byte big-endian scalar in [1, GROUP_ORDER)

        Returns:
            33-byte compressed commitment

        Raises:
            CryptographicError: If the message is too long or the
                randomness is not a valid non-zero scalar
        """
        if len(message) > params.max_message_bytes:
            raise CryptographicError(
                f"message of {len(message)} bytes exceeds {params.max_message_bytes}"
            )
        r = self._randomness_to_int(randomness)

        point = int_to_bn(r) * params.H
        for i in range(0, len(message), CHUNK_BYTES):
            chunk = int.from_bytes(message[i:i + CHUNK_BYTES], "little")
            if chunk:
                point = point + int_to_bn(chunk) * params.generators[i // CHUNK_BYTES]

        commitment = point.export()
        if len(commitment) != POINT_SIZE_BYTES:
            raise CryptographicError(
                f"Commitment size mismatch: expected {POINT_SIZE_BYTES} bytes, "
                f"got {len(commitment)}"
            )
        return commitment

    def open(
        self,
        params: CommitmentParameters,
        commitment: bytes,
        message: bytes,
        randomness: bytes,
    ) -> bool:
        """Check an opening; malformed inputs yield False."""
        try:
            expected = self.commit(params, message, randomness)
        except CryptographicError:
            return False
        return constant_time_compare(expected, bytes(commitment))

    def random_randomness(self, rng: Optional[RandomnessSource] = None) -> bytes:
        if rng is None:
            rng = RandomnessSource()
        return rng.get_random_scalar_mod_order().to_bytes(COMMITMENT_RANDOMNESS_BYTES, "big")

    def randomness_from_bytes(self, draw: bytes) -> bytes:
        """
        Map a uniform byte draw (64 bytes recommended) to commitment randomness.

        The reduction lands in [1, GROUP_ORDER) with negligible bias.
        """
        value = int.from_bytes(draw, "big") % (GROUP_ORDER - 1) + 1
        return value.to_bytes(COMMITMENT_RANDOMNESS_BYTES, "big")

    def gadget(
        self,
        cs: ConstraintSystem,
        params: CommitmentParameters,
        message: Sequence[UInt8],
        randomness: Sequence[UInt8],
    ) -> List[UInt8]:
        """In-circuit commitment as 33 constrained bytes."""
        split = len(message)

        def relation(data: bytes) -> bytes:
            return self.commit(params, data[:split], data[split:])

        return native_bytes(
            cs, "commitment", relation, list(message) + list(randomness), POINT_SIZE_BYTES
        )

    @staticmethod
    def _randomness_to_int(randomness: bytes) -> int:
        if len(randomness) != COMMITMENT_RANDOMNESS_BYTES:
            raise CryptographicError(
                f"randomness must be {COMMITMENT_RANDOMNESS_BYTES} bytes"
            )
        r = int.from_bytes(randomness, "big")
        if not 0 < r < GROUP_ORDER:
            raise CryptographicError("randomness must be in [1, GROUP_ORDER)")
        return r

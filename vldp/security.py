"""
⚠️ DRAFT — requires crypto review before production use

Security utilities for cryptographic operations.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.
"""

import hashlib
import hmac
import os
import secrets
from typing import Iterable

from .config import GROUP_ORDER

# ============================================================================
# RANDOMNESS SOURCE (Fork-Safe)
# ============================================================================


class RandomnessSource:
    """
    Cryptographically secure randomness with fork detection.

    Prevents catastrophic randomness reuse if process forks.

    Example:
        >>> rng = RandomnessSource()
        >>> scalar = rng.get_random_scalar_mod_order()
        >>> seed = rng.get_random_bytes(32)
    """

    def __init__(self):
        """Initialize randomness source with fork detection."""
        self._pid = os.getpid()
        self._rng = secrets.SystemRandom()

    def _check_fork(self) -> None:
        if os.getpid() != self._pid:
            self.__init__()

    def get_random_scalar(self, max_value: int) -> int:
        """
        Get random scalar in [0, max_value).

        Args:
            max_value: Upper bound (exclusive)
        """
        self._check_fork()
        return self._rng.randrange(0, max_value)

    def get_random_bytes(self, n: int) -> bytes:
        """Get n cryptographically secure random bytes."""
        self._check_fork()
        return secrets.token_bytes(n)

    def get_random_scalar_mod_order(self) -> int:
        """
        Get a non-zero random scalar modulo the group order.

        Returns:
            Random scalar in [1, GROUP_ORDER)
        """
        return 1 + self.get_random_scalar(GROUP_ORDER - 1)


# ============================================================================
# HASH FUNCTIONS
# ============================================================================


def length_prefixed(parts: Iterable[bytes]) -> bytes:
    """
    Concatenate byte strings as len || data pairs.

    Raises:
        TypeError: If a part is not bytes
    """
    out = bytearray()
    for part in parts:
        if not isinstance(part, (bytes, bytearray)):
            raise TypeError(f"parts must be bytes, got {type(part)}")
        out.extend(len(part).to_bytes(4, "big"))
        out.extend(part)
    return bytes(out)


def hash_to_scalar(domain_sep: bytes, *parts: bytes) -> int:
    """
    Hash length-prefixed parts to a scalar in [0, GROUP_ORDER).

    Security Note:
        Modulo reduction of a 256-bit digest introduces a bias below
        2^-128 for secp256k1, acceptable for a prototype.
    """
    if not domain_sep:
        raise ValueError("Domain separator cannot be empty")
    digest = hashlib.sha256(length_prefixed((domain_sep,) + parts)).digest()
    return int.from_bytes(digest, "big") % GROUP_ORDER


# ============================================================================
# CONSTANT-TIME OPERATIONS
# ============================================================================


def constant_time_compare(a: bytes, b: bytes) -> bool:
    """
    Constant-time comparison to prevent timing attacks.

    Uses hmac.compare_digest which takes constant time regardless of
    where the inputs differ.
    """
    return hmac.compare_digest(a, b)

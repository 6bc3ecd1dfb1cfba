"""
⚠️ DRAFT — requires crypto review before production use

Keyed BLAKE2s pseudorandom function.

PRF(seed, point) = BLAKE2s(point, key=seed) with 32-byte seed, point and
output. The in-circuit evaluation is a native gate over the seed and
point bytes.
"""

import hashlib
from typing import List, Sequence

from ..config import PRF_INPUT_BYTES, PRF_OUTPUT_BYTES, PRF_SEED_BYTES
from ..exceptions import CryptographicError
from ..snark.constraint_system import ConstraintSystem
from ..snark.gadgets import UInt8, native_bytes


class Blake2sPRF:
    """
    PRF scheme backed by keyed BLAKE2s.

    Example:
        >>> prf = Blake2sPRF()
        >>> out = prf.evaluate(b"\\x01" * 32, bytes(32))
        >>> len(out)
        32
    """

    seed_size = PRF_SEED_BYTES
    input_size = PRF_INPUT_BYTES
    output_size = PRF_OUTPUT_BYTES

    def evaluate(self, seed: bytes, point: bytes) -> bytes:
        """
        Evaluate the PRF.

        Raises:
            CryptographicError: If seed or point has the wrong length
        """
        if len(seed) != PRF_SEED_BYTES:
            raise CryptographicError(f"PRF seed must be {PRF_SEED_BYTES} bytes")
        if len(point) != PRF_INPUT_BYTES:
            raise CryptographicError(f"PRF point must be {PRF_INPUT_BYTES} bytes")
        return hashlib.blake2s(
            bytes(point), digest_size=PRF_OUTPUT_BYTES, key=bytes(seed)
        ).digest()

    def gadget(
        self,
        cs: ConstraintSystem,
        seed: Sequence[UInt8],
        point: Sequence[UInt8],
    ) -> List[UInt8]:
        """In-circuit PRF(seed, point) as 32 constrained bytes."""

        def relation(data: bytes) -> bytes:
            return self.evaluate(data[:PRF_SEED_BYTES], data[PRF_SEED_BYTES:])

        return native_bytes(
            cs, "prf", relation, list(seed) + list(point), PRF_OUTPUT_BYTES
        )

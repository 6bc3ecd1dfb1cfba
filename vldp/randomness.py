"""
⚠️ DRAFT — requires crypto review before production use

Randomness derivation shared by clients, servers and circuits.

Evaluation points:
    Round i uses n = ceil(R / 32) points; point j is the 32-byte
    little-endian encoding of i * n + j. Points of different rounds never
    collide, so a seed is never evaluated twice at the same point.

Shuffle:
    randomness = PRF(client_seed XOR server_seed, point_0) || ... truncated
    to R bytes.

Expand:
    client part = PRF(client_seed, points(index)) per leaf,
    server part = PRF(server_seed, prf_eval_points),
    randomness  = client part XOR server part.

ChaChaGenerator is the reseedable generator the Expand client draws its
client seed and per-leaf commitment randomness from. Draws live at fixed
keystream offsets, so any leaf can be replayed from the 32-byte seed.
"""

from typing import List, Optional, Sequence

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from .config import (
    GENERATOR_SCALAR_DRAW_BYTES,
    GENERATOR_SEED_BYTES,
    PRF_INPUT_BYTES,
    PRF_OUTPUT_BYTES,
    PRF_SEED_BYTES,
)
from .primitives.interfaces import PRFScheme
from .security import RandomnessSource

CHACHA_BLOCK_BYTES = 64


# ============================================================================
# EVALUATION POINTS
# ============================================================================


def num_prf_evals(randomness_bytes: int) -> int:
    return (randomness_bytes - 1) // PRF_OUTPUT_BYTES + 1


def prf_eval_points(round_index: int, randomness_bytes: int) -> List[bytes]:
    """
    Evaluation points of one round.

    Raises:
        ValueError: If round_index is negative
    """
    if round_index < 0:
        raise ValueError("round index must be non-negative")
    count = num_prf_evals(randomness_bytes)
    return [
        (round_index * count + j).to_bytes(PRF_INPUT_BYTES, "little")
        for j in range(count)
    ]


def xor_bytes(a: bytes, b: bytes) -> bytes:
    if len(a) != len(b):
        raise ValueError("xor operands must have equal length")
    return bytes(x ^ y for x, y in zip(a, b))


def expand_prf(
    prf: PRFScheme, seed: bytes, points: Sequence[bytes], randomness_bytes: int
) -> bytes:
    """Concatenate PRF(seed, point) over points, truncated to randomness_bytes."""
    if len(points) * PRF_OUTPUT_BYTES < randomness_bytes:
        raise ValueError(
            f"{len(points)} evaluation points cannot fill {randomness_bytes} bytes"
        )
    out = b"".join(prf.evaluate(seed, point) for point in points)
    return out[:randomness_bytes]


def derive_shuffle_randomness(
    prf: PRFScheme,
    client_seed: bytes,
    server_seed: bytes,
    points: Sequence[bytes],
    randomness_bytes: int,
) -> bytes:
    return expand_prf(prf, xor_bytes(client_seed, server_seed), points, randomness_bytes)


def client_leaf_randomness(
    prf: PRFScheme, client_seed: bytes, leaf_index: int, randomness_bytes: int
) -> bytes:
    """Client contribution committed in Expand leaf leaf_index."""
    return expand_prf(
        prf,
        client_seed,
        prf_eval_points(leaf_index, randomness_bytes),
        randomness_bytes,
    )


def derive_expand_randomness(
    prf: PRFScheme,
    client_randomness: bytes,
    server_seed: bytes,
    points: Sequence[bytes],
    randomness_bytes: int,
) -> bytes:
    server_randomness = expand_prf(prf, server_seed, points, randomness_bytes)
    return xor_bytes(client_randomness, server_randomness)


# ============================================================================
# RESEEDABLE GENERATOR
# ============================================================================


class ChaChaGenerator:
    """
    ChaCha20 keystream with random access.

    Layout of the keystream for an Expand batch:
        [0, 32)                       client seed
        32 + 64 * i .. 32 + 64 * (i+1)  commitment randomness draw of leaf i

    Example:
        >>> gen = ChaChaGenerator.from_seed(b"\\x00" * 32)
        >>> a = gen.read(16)
        >>> gen.seek(0)
        >>> gen.read(16) == a
        True
    """

    def __init__(self, seed: bytes):
        if len(seed) != GENERATOR_SEED_BYTES:
            raise ValueError(f"generator seed must be {GENERATOR_SEED_BYTES} bytes")
        self._seed = bytes(seed)
        self._position = 0

    @classmethod
    def from_seed(cls, seed: bytes) -> "ChaChaGenerator":
        return cls(seed)

    @classmethod
    def from_entropy(cls, rng: Optional[RandomnessSource] = None) -> "ChaChaGenerator":
        if rng is None:
            rng = RandomnessSource()
        return cls(rng.get_random_bytes(GENERATOR_SEED_BYTES))

    @property
    def seed(self) -> bytes:
        return self._seed

    @property
    def position(self) -> int:
        return self._position

    def seek(self, offset: int) -> None:
        if offset < 0:
            raise ValueError("offset must be non-negative")
        self._position = offset

    def read(self, n: int) -> bytes:
        """Read n keystream bytes at the current position and advance."""
        if n < 0:
            raise ValueError("n must be non-negative")
        block, skip = divmod(self._position, CHACHA_BLOCK_BYTES)
        # 16-byte nonce: 4-byte little-endian block counter || 12 zero bytes
        nonce = block.to_bytes(4, "little") + bytes(12)
        encryptor = Cipher(algorithms.ChaCha20(self._seed, nonce), mode=None).encryptor()
        stream = encryptor.update(bytes(skip + n))
        self._position += n
        return stream[skip:]

    # ------------------------------------------------------------------
    # Expand draw layout
    # ------------------------------------------------------------------

    def client_seed(self) -> bytes:
        self.seek(0)
        return self.read(PRF_SEED_BYTES)

    def leaf_draw(self, leaf_index: int) -> bytes:
        """Raw bytes reserved for the commitment randomness of a leaf."""
        self.seek(PRF_SEED_BYTES + GENERATOR_SCALAR_DRAW_BYTES * leaf_index)
        return self.read(GENERATOR_SCALAR_DRAW_BYTES)

"""
⚠️ DRAFT — requires crypto review before production use

Schnorr signatures over secp256k1.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.

Protocol:
    Key pair: sk <- [1, q), PK = sk * G

    Sign(sk, msg):
        1. k <- [1, q)
        2. R = k * G
        3. e = Hash(R, PK, msg) mod q
        4. s = (k + e * sk) mod q
        5. signature = R || s

    Verify(PK, msg, R || s):
        1. e = Hash(R, PK, msg) mod q
        2. check s * G == R + e * PK

Security Requirements:
    1. Nonces MUST be random and unique per signature
    2. Challenge MUST use length-prefixed, domain-separated hashing
    3. Verification never raises on attacker-controlled input: any parse
       failure is a rejected signature

Implementation Details:
    - Curve: secp256k1 (NID 714)
    - Public key: 33-byte compressed point
    - Signature: 65 bytes (R: 33, s: 32 big-endian)
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

try:
    from petlib.ec import EcPt
except ImportError:
    raise ImportError(
        "petlib is required for Schnorr signatures. "
        "Install with: pip install petlib"
    )

from ..config import (
    DOMAIN_SEPARATORS,
    GROUP_ORDER,
    POINT_SIZE_BYTES,
    SCALAR_SIZE_BYTES,
    SIGNATURE_SIZE_BYTES,
)
from ..exceptions import CryptographicError
from ..security import RandomnessSource, hash_to_scalar
from ..snark.constraint_system import ConstraintSystem
from ..snark.gadgets import Boolean, UInt8, native_boolean
from .commitments import CurveParameters, get_cached_curve_params, int_to_bn


@dataclass(frozen=True)
class SignatureParameters:
    """Group used by one signature role (client or server)."""

    curve: CurveParameters


@dataclass(frozen=True)
class SigningKey:
    secret: int
    public_key: bytes

    def __repr__(self) -> str:
        return f"SigningKey(public_key={self.public_key.hex()})"


class SchnorrSignature:
    """
    Signature scheme with byte-string keys and signatures.

    Example:
        >>> scheme = SchnorrSignature()
        >>> params = scheme.setup()
        >>> sk, pk = scheme.keygen(params)
        >>> sig = scheme.sign(params, sk, b"message")
        >>> scheme.verify(params, pk, b"message", sig)
        True
    """

    public_key_size = POINT_SIZE_BYTES
    signature_size = SIGNATURE_SIZE_BYTES

    def setup(self) -> SignatureParameters:
        return SignatureParameters(curve=get_cached_curve_params())

    def keygen(
        self,
        params: SignatureParameters,
        rng: Optional[RandomnessSource] = None,
    ) -> Tuple[SigningKey, bytes]:
        """
        Generate a key pair.

        Returns:
            Tuple of (signing key, 33-byte public key)
        """
        if rng is None:
            rng = RandomnessSource()
        secret = rng.get_random_scalar_mod_order()
        public_key = (int_to_bn(secret) * params.curve.G).export()
        return SigningKey(secret=secret, public_key=public_key), public_key

    def sign(
        self,
        params: SignatureParameters,
        signing_key: SigningKey,
        message: bytes,
        rng: Optional[RandomnessSource] = None,
    ) -> bytes:
        """
        Sign a message.

        Raises:
            CryptographicError: If the signing key is invalid
        """
        if not 0 < signing_key.secret < GROUP_ORDER:
            raise CryptographicError("signing key out of range")
        if rng is None:
            rng = RandomnessSource()

        nonce = rng.get_random_scalar_mod_order()
        R = (int_to_bn(nonce) * params.curve.G).export()
        e = self._challenge(R, signing_key.public_key, message)
        s = (nonce + e * signing_key.secret) % GROUP_ORDER
        return R + s.to_bytes(SCALAR_SIZE_BYTES, "big")

    def verify(
        self,
        params: SignatureParameters,
        public_key: bytes,
        message: bytes,
        signature: bytes,
    ) -> bool:
        """Verify a signature; malformed keys or signatures yield False."""
        public_key = bytes(public_key)
        signature = bytes(signature)
        if len(public_key) != POINT_SIZE_BYTES or len(signature) != SIGNATURE_SIZE_BYTES:
            return False

        group = params.curve.group
        R_bytes = signature[:POINT_SIZE_BYTES]
        s = int.from_bytes(signature[POINT_SIZE_BYTES:], "big")
        if s >= GROUP_ORDER:
            return False

        try:
            pk_point = EcPt.from_binary(public_key, group)
            R_point = EcPt.from_binary(R_bytes, group)
        except Exception:
            return False
        if not group.check_point(pk_point) or not group.check_point(R_point):
            return False

        e = self._challenge(R_bytes, public_key, bytes(message))
        lhs = int_to_bn(s) * params.curve.G
        rhs = R_point + int_to_bn(e) * pk_point
        return lhs == rhs

    def gadget(
        self,
        cs: ConstraintSystem,
        params: SignatureParameters,
        public_key: Sequence[UInt8],
        message: Sequence[UInt8],
        signature: Sequence[UInt8],
    ) -> Boolean:
        """In-circuit signature check as a constrained boolean."""
        pk_end = len(public_key)
        msg_end = pk_end + len(message)

        def predicate(data: bytes) -> bool:
            return self.verify(params, data[:pk_end], data[pk_end:msg_end], data[msg_end:])

        return native_boolean(
            cs, "signature", predicate, list(public_key) + list(message) + list(signature)
        )

    @staticmethod
    def _challenge(R: bytes, public_key: bytes, message: bytes) -> int:
        return hash_to_scalar(DOMAIN_SEPARATORS["schnorr_challenge"], R, public_key, message)

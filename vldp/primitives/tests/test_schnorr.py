"""
⚠️ DRAFT — requires crypto review before production use

Unit tests for Schnorr signatures over secp256k1.
"""

import pytest

from vldp.config import GROUP_ORDER, POINT_SIZE_BYTES, SIGNATURE_SIZE_BYTES
from vldp.exceptions import CryptographicError
from vldp.primitives.interfaces import SignatureScheme
from vldp.primitives.schnorr import SchnorrSignature, SigningKey
from vldp.snark.constraint_system import ConstraintSystem
from vldp.snark.gadgets import alloc_witness_bytes


@pytest.fixture
def scheme():
    return SchnorrSignature()


@pytest.fixture
def params(scheme):
    return scheme.setup()


@pytest.fixture
def keypair(scheme, params):
    return scheme.keygen(params)


class TestSignVerify:
    """Basic functionality."""

    def test_round_trip(self, scheme, params, keypair):
        sk, pk = keypair
        sig = scheme.sign(params, sk, b"message")
        assert len(pk) == POINT_SIZE_BYTES
        assert len(sig) == SIGNATURE_SIZE_BYTES
        assert scheme.verify(params, pk, b"message", sig)

    def test_nonces_are_fresh(self, scheme, params, keypair):
        sk, _ = keypair
        assert scheme.sign(params, sk, b"m") != scheme.sign(params, sk, b"m")

    def test_wrong_message(self, scheme, params, keypair):
        sk, pk = keypair
        sig = scheme.sign(params, sk, b"message")
        assert not scheme.verify(params, pk, b"massage", sig)

    def test_wrong_key(self, scheme, params, keypair):
        sk, _ = keypair
        _, other_pk = scheme.keygen(params)
        sig = scheme.sign(params, sk, b"message")
        assert not scheme.verify(params, other_pk, b"message", sig)

    def test_repr_hides_secret(self, keypair):
        sk, _ = keypair
        assert str(sk.secret) not in repr(sk)

    def test_satisfies_interface(self, scheme):
        assert isinstance(scheme, SignatureScheme)


class TestMalformedInput:
    """Verification never raises on attacker-controlled input."""

    def test_truncated_signature(self, scheme, params, keypair):
        sk, pk = keypair
        sig = scheme.sign(params, sk, b"m")
        assert not scheme.verify(params, pk, b"m", sig[:-1])

    def test_s_out_of_range(self, scheme, params, keypair):
        sk, pk = keypair
        sig = scheme.sign(params, sk, b"m")
        bad = sig[:POINT_SIZE_BYTES] + GROUP_ORDER.to_bytes(32, "big")
        assert not scheme.verify(params, pk, b"m", bad)

    def test_garbage_point(self, scheme, params, keypair):
        sk, pk = keypair
        sig = scheme.sign(params, sk, b"m")
        assert not scheme.verify(params, b"\x05" + b"\x00" * 32, b"m", sig)
        assert not scheme.verify(params, pk, b"m", b"\x07" * SIGNATURE_SIZE_BYTES)

    def test_invalid_signing_key(self, scheme, params, keypair):
        _, pk = keypair
        with pytest.raises(CryptographicError):
            scheme.sign(params, SigningKey(secret=0, public_key=pk), b"m")


class TestSignatureGadget:
    """In-circuit verification."""

    def _check(self, scheme, params, pk, message, sig):
        cs = ConstraintSystem()
        ok = scheme.gadget(
            cs,
            params,
            alloc_witness_bytes(cs, lambda: pk, len(pk)),
            alloc_witness_bytes(cs, lambda: message, len(message)),
            alloc_witness_bytes(cs, lambda: sig, len(sig)),
        )
        assert cs.is_satisfied()
        return cs.value(ok)

    def test_valid(self, scheme, params, keypair):
        sk, pk = keypair
        sig = scheme.sign(params, sk, b"abc")
        assert self._check(scheme, params, pk, b"abc", sig) == 1

    def test_invalid(self, scheme, params, keypair):
        sk, pk = keypair
        sig = scheme.sign(params, sk, b"abc")
        assert self._check(scheme, params, pk, b"abd", sig) == 0

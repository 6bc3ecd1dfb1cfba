"""Tests for the keyed BLAKE2s PRF."""

import hashlib

import pytest

from vldp.exceptions import CryptographicError
from vldp.primitives.interfaces import PRFScheme
from vldp.primitives.prf import Blake2sPRF
from vldp.snark.constraint_system import ConstraintSystem
from vldp.snark.gadgets import alloc_witness_bytes, byte_values


@pytest.fixture
def prf():
    return Blake2sPRF()


def test_matches_keyed_blake2s(prf):
    seed, point = b"\x01" * 32, b"\x02" * 32
    expected = hashlib.blake2s(point, digest_size=32, key=seed).digest()
    assert prf.evaluate(seed, point) == expected


def test_seed_and_point_matter(prf):
    base = prf.evaluate(b"\x01" * 32, bytes(32))
    assert prf.evaluate(b"\x02" * 32, bytes(32)) != base
    assert prf.evaluate(b"\x01" * 32, b"\x01" + bytes(31)) != base


@pytest.mark.parametrize("seed, point", [(b"\x00" * 31, bytes(32)), (bytes(32), bytes(33))])
def test_rejects_wrong_lengths(prf, seed, point):
    with pytest.raises(CryptographicError):
        prf.evaluate(seed, point)


def test_satisfies_interface(prf):
    assert isinstance(prf, PRFScheme)


def test_gadget_matches_native(prf):
    seed, point = bytes(range(32)), bytes(range(32, 64))
    cs = ConstraintSystem()
    out = prf.gadget(
        cs,
        alloc_witness_bytes(cs, lambda: seed, 32),
        alloc_witness_bytes(cs, lambda: point, 32),
    )
    assert byte_values(cs, out) == prf.evaluate(seed, point)
    assert cs.is_satisfied()

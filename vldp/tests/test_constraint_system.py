"""Tests for the constraint system and its gadgets"""

import pytest

from vldp.config import FIELD_MODULUS
from vldp.exceptions import SynthesisError
from vldp.snark.constraint_system import (
    ONE,
    ConstraintSystem,
    LinearCombination,
    SynthesisMode,
    as_lc,
)
from vldp.snark.gadgets import (
    UInt8,
    alloc_boolean,
    alloc_input_bytes,
    alloc_witness_bytes,
    and_,
    byte_values,
    is_eq,
    is_less_or_equal,
    is_less_than,
    kary_and,
    native_bytes,
    not_,
    or_,
    select,
    to_bits_le,
    xor_bytes,
)


def witness(cs, value):
    return cs.new_witness(lambda: value)


class TestLinearCombination:
    """Test linear combination arithmetic"""

    def test_arithmetic(self):
        x = LinearCombination.variable(1)
        y = LinearCombination.variable(2)
        lc = 3 * x + y - 2 + x
        assert lc.terms == {1: 4, 2: 1, ONE: FIELD_MODULUS - 2}
        assert lc.evaluate([1, 5, 7]) == 4 * 5 + 7 - 2

    def test_cancellation_drops_terms(self):
        x = LinearCombination.variable(1)
        assert (x - x).terms == {}

    def test_as_lc(self):
        assert as_lc(5).terms == {ONE: 5}
        with pytest.raises(TypeError):
            as_lc("x")

    def test_rejects_non_int_scalar(self):
        with pytest.raises(TypeError):
            LinearCombination.variable(1) * 1.5


class TestConstraintSystem:
    """Test allocation, modes and satisfaction"""

    def test_square(self):
        cs = ConstraintSystem()
        x = witness(cs, 3)
        cs.enforce(x, x, 9, "square")
        assert cs.is_satisfied()
        cs.enforce(x, x, 10, "wrong square")
        assert cs.which_is_unsatisfied() == "wrong square"

    def test_setup_mode_never_evaluates(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)

        def fail():
            raise AssertionError("value closure called in setup mode")

        x = cs.new_input(fail)
        cs.enforce_equal(x, 1)
        assert cs.num_constraints == 1
        with pytest.raises(SynthesisError):
            cs.value(x)
        with pytest.raises(SynthesisError):
            cs.public_inputs()

    def test_missing_assignment(self):
        cs = ConstraintSystem()
        with pytest.raises(SynthesisError):
            cs.new_witness(lambda: None)

    def test_public_and_witness_order(self):
        cs = ConstraintSystem()
        cs.new_input(lambda: 7)
        cs.new_witness(lambda: 8)
        cs.new_input(lambda: -1)
        assert cs.public_inputs() == [7, FIELD_MODULUS - 1]
        assert cs.witness_values() == [8]
        shape = cs.shape()
        assert shape.public_indices == (1, 3)
        assert shape.witness_indices == (2,)


class TestBooleanGadgets:
    """Test boolean gadgets on every input combination"""

    @pytest.mark.parametrize("a", [0, 1])
    @pytest.mark.parametrize("b", [0, 1])
    def test_truth_tables(self, a, b):
        cs = ConstraintSystem()
        x, y = alloc_boolean(cs, lambda: a), alloc_boolean(cs, lambda: b)
        assert cs.value(and_(cs, x, y)) == (a & b)
        assert cs.value(or_(cs, x, y)) == (a | b)
        assert cs.value(not_(x)) == 1 - a
        assert cs.value(kary_and(cs, [x, y, 1])) == (a & b)
        assert cs.value(select(cs, x, 10, 20)) == (10 if a else 20)
        assert cs.is_satisfied()

    def test_boolean_constraint(self):
        cs = ConstraintSystem()
        bit = cs.new_witness(lambda: 2)
        cs.enforce(bit, 1 - bit, 0, "boolean")
        assert not cs.is_satisfied()

    def test_kary_and_needs_operands(self):
        with pytest.raises(ValueError):
            kary_and(ConstraintSystem(), [])


class TestComparisons:
    """Test equality and ordering gadgets"""

    def test_is_eq(self):
        cs = ConstraintSystem()
        assert cs.value(is_eq(cs, witness(cs, 5), 5)) == 1
        assert cs.value(is_eq(cs, witness(cs, 5), 6)) == 0
        assert cs.is_satisfied()

    def test_ordering_exhaustive(self):
        """All pairs of 3-bit values"""
        cs = ConstraintSystem()
        for a in range(8):
            for b in range(8):
                x, y = witness(cs, a), witness(cs, b)
                assert cs.value(is_less_than(cs, x, y, 3)) == int(a < b)
                assert cs.value(is_less_or_equal(cs, x, y, 3)) == int(a <= b)
        assert cs.is_satisfied()

    def test_bit_decomposition_is_a_range_check(self):
        cs = ConstraintSystem()
        bits = to_bits_le(cs, witness(cs, 13), 4)
        assert [cs.value(b) for b in bits] == [1, 0, 1, 1]
        assert cs.is_satisfied()

        cs = ConstraintSystem()
        to_bits_le(cs, witness(cs, 16), 4, "range")
        assert cs.which_is_unsatisfied() == "range"


class TestBytes:
    """Test byte gadgets"""

    def test_xor_bytes(self):
        cs = ConstraintSystem()
        a = alloc_witness_bytes(cs, lambda: b"\x0f\xf0", 2)
        b = alloc_witness_bytes(cs, lambda: b"\xff\xff", 2)
        assert byte_values(cs, xor_bytes(cs, a, b)) == b"\xf0\x0f"
        assert cs.is_satisfied()

    def test_constant(self):
        cs = ConstraintSystem()
        assert byte_values(cs, [UInt8.constant(0xA5)]) == b"\xa5"

    def test_input_bytes_pack_31_per_element(self):
        """A 33-byte input becomes two public field elements"""
        data = bytes(range(1, 34))
        cs = ConstraintSystem()
        alloc_input_bytes(cs, lambda: data, len(data))
        assert cs.public_inputs() == [
            int.from_bytes(data[:31], "little"),
            int.from_bytes(data[31:], "little"),
        ]
        assert cs.is_satisfied()

    def test_byte_values_in_setup_mode(self):
        cs = ConstraintSystem(SynthesisMode.SETUP)
        assert byte_values(cs, alloc_witness_bytes(cs, lambda: b"", 1)) is None


class TestNativeGates:
    """Test relations evaluated outside the rank-1 constraints"""

    def test_output_matches_relation(self):
        cs = ConstraintSystem()
        data = alloc_witness_bytes(cs, lambda: b"\x01\x02", 2)
        out = native_bytes(cs, "reverse", lambda b: b[::-1], data, 2)
        assert byte_values(cs, out) == b"\x02\x01"
        assert cs.is_satisfied()

    def test_relation_error_leaves_gate_unsatisfied(self):
        def strict(data):
            raise ValueError("outside domain")

        cs = ConstraintSystem()
        data = alloc_witness_bytes(cs, lambda: b"\x01", 1)
        native_bytes(cs, "strict", strict, data, 4)
        assert cs.which_is_unsatisfied() == "strict"

    def test_wrong_output_length(self):
        cs = ConstraintSystem()
        data = alloc_witness_bytes(cs, lambda: b"\x01", 1)
        with pytest.raises(SynthesisError):
            native_bytes(cs, "short", lambda b: b"", data, 1)

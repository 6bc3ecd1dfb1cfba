"""
⚠️ DRAFT — requires crypto review before production use

Gadgets over the rank-1 constraint system.

Every gadget allocates the same variables and constraints in setup and
prove mode, so the circuit shape never depends on the assignment.

Booleans are plain LinearCombinations constrained to {0, 1}. Comparisons
are "unchecked": they assume both operands already fit in the stated bit
width, which holds for every quantity the VLDP circuits compare (all are
far below the field modulus).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..config import FIELD_CAPACITY_BYTES, FIELD_MODULUS
from ..exceptions import SynthesisError, VLDPError
from .constraint_system import (
    ConstraintSystem,
    LCLike,
    LinearCombination,
    as_lc,
    linear_sum,
)

Boolean = LinearCombination


# ============================================================================
# BOOLEANS
# ============================================================================


def alloc_boolean(cs: ConstraintSystem, value_fn: Callable[[], int]) -> Boolean:
    """Allocate a witness constrained to 0 or 1."""
    bit = cs.new_witness(lambda: int(bool(value_fn())))
    cs.enforce(bit, 1 - bit, 0, "boolean")
    return bit


def not_(a: Boolean) -> Boolean:
    return 1 - a


def and_(cs: ConstraintSystem, a: Boolean, b: Boolean) -> Boolean:
    result = cs.new_witness(lambda: cs.value(a) * cs.value(b))
    cs.enforce(a, b, result, "and")
    return result


def or_(cs: ConstraintSystem, a: Boolean, b: Boolean) -> Boolean:
    return not_(and_(cs, not_(a), not_(b)))


def kary_and(cs: ConstraintSystem, bits: Sequence[Boolean]) -> Boolean:
    """Conjunction of one or more booleans."""
    if not bits:
        raise ValueError("kary_and needs at least one operand")
    return reduce(lambda acc, bit: and_(cs, acc, bit), bits[1:], bits[0])


def xor_bit(cs: ConstraintSystem, a: Boolean, b: Boolean) -> Boolean:
    # a + b - 2ab == r  <=>  2a * b == a + b - r
    result = cs.new_witness(lambda: cs.value(a) ^ cs.value(b))
    cs.enforce(2 * a, b, a + b - result, "xor")
    return result


def select(cs: ConstraintSystem, cond: Boolean, a: LCLike, b: LCLike) -> LinearCombination:
    """Return a if cond else b."""
    a, b = as_lc(a), as_lc(b)
    result = cs.new_witness(
        lambda: cs.value(a) if cs.value(cond) else cs.value(b)
    )
    # cond * (a - b) == result - b
    cs.enforce(cond, a - b, result - b, "select")
    return result


def is_eq(cs: ConstraintSystem, a: LCLike, b: LCLike) -> Boolean:
    """
    Boolean a == b using the inverse trick.

    With d = a - b, the prover supplies inv and eq such that
    d * inv == 1 - eq and d * eq == 0.
    """
    diff = as_lc(a) - as_lc(b)

    def inverse() -> int:
        value = cs.value(diff)
        return pow(value, -1, FIELD_MODULUS) if value else 0

    inv = cs.new_witness(inverse)
    eq = cs.new_witness(lambda: int(cs.value(diff) == 0))
    cs.enforce(diff, inv, 1 - eq, "is_eq inverse")
    cs.enforce(diff, eq, 0, "is_eq zero")
    return eq


def conditional_enforce_equal(
    cs: ConstraintSystem, cond: Boolean, a: LCLike, b: LCLike, label: str = ""
) -> None:
    """Enforce a == b whenever cond is 1."""
    cs.enforce(cond, as_lc(a) - as_lc(b), 0, label or "conditional equality")


# ============================================================================
# BIT DECOMPOSITION AND COMPARISON
# ============================================================================


def pack_bits(bits: Sequence[Boolean]) -> LinearCombination:
    """Little-endian sum(bit_i * 2^i)."""
    return linear_sum((bit, 1 << i) for i, bit in enumerate(bits))


def to_bits_le(
    cs: ConstraintSystem, value: LCLike, width: int, label: str = "bit decomposition"
) -> List[Boolean]:
    """
    Decompose value into width little-endian bits.

    The packing constraint is only satisfiable when value < 2^width, so
    this doubles as a range check.
    """
    value = as_lc(value)
    bits = [
        alloc_boolean(cs, lambda i=i: (cs.value(value) >> i) & 1)
        for i in range(width)
    ]
    cs.enforce_equal(pack_bits(bits), value, label)
    return bits


def is_less_than(cs: ConstraintSystem, a: LCLike, b: LCLike, width: int) -> Boolean:
    """
    Boolean a < b for operands known to fit in width bits.

    d = a - b + 2^width lies in (0, 2^(width+1)) and its top bit is set
    exactly when a >= b.
    """
    shifted = as_lc(a) - as_lc(b) + (1 << width)
    bits = to_bits_le(cs, shifted, width + 1, "comparison")
    return not_(bits[width])


def is_less_or_equal(cs: ConstraintSystem, a: LCLike, b: LCLike, width: int) -> Boolean:
    return not_(is_less_than(cs, b, a, width))


# ============================================================================
# BYTES
# ============================================================================


@dataclass(frozen=True)
class UInt8:
    """A byte held as eight constrained bits (little-endian)."""

    bits: Tuple[Boolean, ...]

    @property
    def lc(self) -> LinearCombination:
        return pack_bits(self.bits)

    @classmethod
    def new_witness(cls, cs: ConstraintSystem, value_fn: Callable[[], int]) -> "UInt8":
        return cls(
            tuple(
                alloc_boolean(cs, lambda i=i: (value_fn() >> i) & 1) for i in range(8)
            )
        )

    @classmethod
    def constant(cls, value: int) -> "UInt8":
        return cls(tuple(as_lc((value >> i) & 1) for i in range(8)))

    def xor(self, cs: ConstraintSystem, other: "UInt8") -> "UInt8":
        return UInt8(tuple(xor_bit(cs, a, b) for a, b in zip(self.bits, other.bits)))


ByteLike = Union[UInt8, LinearCombination]


def pack_bytes_le(byte_vars: Sequence[UInt8]) -> LinearCombination:
    """Little-endian integer value of a byte sequence."""
    return linear_sum(
        (bit, 1 << (8 * i + j))
        for i, byte in enumerate(byte_vars)
        for j, bit in enumerate(byte.bits)
    )


def bits_of_bytes(byte_vars: Sequence[UInt8]) -> List[Boolean]:
    return [bit for byte in byte_vars for bit in byte.bits]


def xor_bytes(cs: ConstraintSystem, a: Sequence[UInt8], b: Sequence[UInt8]) -> List[UInt8]:
    if len(a) != len(b):
        raise ValueError("xor_bytes needs equal lengths")
    return [x.xor(cs, y) for x, y in zip(a, b)]


def alloc_witness_bytes(
    cs: ConstraintSystem, value_fn: Callable[[], bytes], length: int
) -> List[UInt8]:
    """Allocate length private bytes; value_fn must return exactly length bytes."""
    return [UInt8.new_witness(cs, lambda i=i: value_fn()[i]) for i in range(length)]


def alloc_input_bytes(
    cs: ConstraintSystem, value_fn: Callable[[], bytes], length: int
) -> List[UInt8]:
    """
    Allocate length bytes exposed as public inputs.

    The bytes are private bit-decomposed witnesses; the public inputs are
    their little-endian packings, FIELD_CAPACITY_BYTES per field element.
    """
    byte_vars = alloc_witness_bytes(cs, value_fn, length)
    for start in range(0, length, FIELD_CAPACITY_BYTES):
        chunk = byte_vars[start:start + FIELD_CAPACITY_BYTES]
        packed = cs.new_input(
            lambda s=start: int.from_bytes(
                value_fn()[s:s + FIELD_CAPACITY_BYTES], "little"
            )
        )
        cs.enforce_equal(packed, pack_bytes_le(chunk), "public input packing")
    return byte_vars


def byte_values(cs: ConstraintSystem, byte_vars: Sequence[UInt8]) -> Optional[bytes]:
    """Assigned bytes in prove mode, None in setup mode."""
    if cs.is_setup_mode:
        return None
    return bytes(cs.value(b.lc) for b in byte_vars)


# ============================================================================
# NATIVE GATES
# ============================================================================


def _input_lcs(inputs: Sequence[ByteLike]) -> List[LinearCombination]:
    return [x.lc if isinstance(x, UInt8) else as_lc(x) for x in inputs]


def native_bytes(
    cs: ConstraintSystem,
    name: str,
    fn: Callable[[bytes], bytes],
    inputs: Sequence[ByteLike],
    output_len: int,
) -> List[UInt8]:
    """
    Outputs fn(inputs) as constrained bytes through a native gate.

    Args:
        cs: Constraint system
        name: Gate name
        fn: Byte-string function; must return output_len bytes
        inputs: Byte-valued inputs
        output_len: Number of output bytes

    Returns:
        Output bytes
    """
    in_lcs = _input_lcs(inputs)
    out: Optional[bytes] = None
    if not cs.is_setup_mode:
        try:
            out = fn(bytes(cs.value(lc) for lc in in_lcs))
        except (ValueError, VLDPError):
            # inputs outside the domain of fn: the gate stays unsatisfied
            out = bytes(output_len)
        if len(out) != output_len:
            raise SynthesisError(f"{name} returned {len(out)} bytes, expected {output_len}")

    outputs = [UInt8.new_witness(cs, lambda i=i: out[i]) for i in range(output_len)]

    def relation(values: List[int]) -> List[int]:
        result = fn(bytes(values))
        if len(result) != output_len:
            raise ValueError(f"{name} output length mismatch")
        return list(result)

    cs.add_native_gate(name, relation, in_lcs, [o.lc for o in outputs])
    return outputs


def native_boolean(
    cs: ConstraintSystem,
    name: str,
    fn: Callable[[bytes], bool],
    inputs: Sequence[ByteLike],
) -> Boolean:
    """Outputs the predicate fn(inputs) as a constrained boolean."""
    in_lcs = _input_lcs(inputs)
    result = alloc_boolean(cs, lambda: fn(bytes(cs.value(lc) for lc in in_lcs)))

    def relation(values: List[int]) -> List[int]:
        return [int(bool(fn(bytes(values))))]

    cs.add_native_gate(name, relation, in_lcs, [result])
    return result

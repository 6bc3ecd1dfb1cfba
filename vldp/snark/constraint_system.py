"""
⚠️ DRAFT — requires crypto review before production use

Rank-1 constraint system over the BN254 scalar field.

A constraint is a triple of linear combinations (A, B, C) over the
allocated variables, satisfied when <A,w> * <B,w> == <C,w>. Variable 0 is
the constant ONE; public inputs and witnesses are allocated after it in
synthesis order.

Besides rank-1 constraints the system records native gates: a named
relation evaluated directly over byte-valued variables (PRF, commitment,
signature, Merkle hash). A native gate is satisfied when recomputing its
relation on the input values yields exactly the output values.

Synthesis modes:
    SETUP: only the shape is recorded, no value closure is ever called
    PROVE: every allocation evaluates its value closure immediately
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..config import FIELD_MODULUS
from ..exceptions import SynthesisError, VLDPError

ONE = 0  # index of the constant-one variable


# ============================================================================
# LINEAR COMBINATIONS
# ============================================================================


class LinearCombination:
    """
    Sparse linear combination sum(coeff_i * var_i) with reduced coefficients.

    Supports +, - and multiplication by an int constant. Products of two
    combinations are not linear and must go through ConstraintSystem.enforce.
    """

    __slots__ = ("terms",)

    def __init__(self, terms: Optional[Dict[int, int]] = None):
        self.terms: Dict[int, int] = {}
        if terms:
            for index, coeff in terms.items():
                coeff %= FIELD_MODULUS
                if coeff:
                    self.terms[index] = coeff

    @classmethod
    def constant(cls, value: int) -> "LinearCombination":
        return cls({ONE: value})

    @classmethod
    def variable(cls, index: int) -> "LinearCombination":
        return cls({index: 1})

    def __add__(self, other) -> "LinearCombination":
        other = as_lc(other)
        terms = dict(self.terms)
        for index, coeff in other.terms.items():
            terms[index] = terms.get(index, 0) + coeff
        return LinearCombination(terms)

    __radd__ = __add__

    def __neg__(self) -> "LinearCombination":
        return LinearCombination({i: -c for i, c in self.terms.items()})

    def __sub__(self, other) -> "LinearCombination":
        return self + (-as_lc(other))

    def __rsub__(self, other) -> "LinearCombination":
        return as_lc(other) - self

    def __mul__(self, scalar) -> "LinearCombination":
        if isinstance(scalar, bool) or not isinstance(scalar, int):
            return NotImplemented
        return LinearCombination({i: c * scalar for i, c in self.terms.items()})

    __rmul__ = __mul__

    def evaluate(self, values: Sequence[int]) -> int:
        return sum(coeff * values[index] for index, coeff in self.terms.items()) % FIELD_MODULUS

    def is_constant(self) -> bool:
        return all(index == ONE for index in self.terms)

    def key(self) -> Tuple[Tuple[int, int], ...]:
        return tuple(sorted(self.terms.items()))

    def __repr__(self) -> str:
        return f"LinearCombination({self.terms!r})"


LCLike = Union[LinearCombination, int]


def as_lc(value: LCLike) -> LinearCombination:
    """Coerce an int constant or a LinearCombination to a LinearCombination."""
    if isinstance(value, LinearCombination):
        return value
    if isinstance(value, int):
        return LinearCombination.constant(int(value))
    raise TypeError(f"cannot use {type(value).__name__} as a linear combination")


def linear_sum(pairs: Iterable[Tuple[LinearCombination, int]]) -> LinearCombination:
    """Build sum(coeff * lc) in one pass."""
    terms: Dict[int, int] = {}
    for lc, coeff in pairs:
        for index, c in lc.terms.items():
            terms[index] = terms.get(index, 0) + c * coeff
    return LinearCombination(terms)


# ============================================================================
# CONSTRAINTS AND SHAPE
# ============================================================================


class SynthesisMode(Enum):
    SETUP = "setup"
    PROVE = "prove"


@dataclass(frozen=True)
class Constraint:
    a: LinearCombination
    b: LinearCombination
    c: LinearCombination
    label: str = ""


@dataclass(frozen=True)
class NativeGate:
    """
    Relation evaluated outside the rank-1 constraints.

    Attributes:
        name: Gate name (reported when the gate is unsatisfied)
        relation: Maps input values to output values; raises ValueError
            or a VLDPError when the inputs are outside its domain
        inputs: Input combinations
        outputs: Output combinations
    """

    name: str
    relation: Callable[[List[int]], List[int]]
    inputs: Tuple[LinearCombination, ...]
    outputs: Tuple[LinearCombination, ...]


def _update_with_lc(hasher, lc: LinearCombination) -> None:
    hasher.update(len(lc.terms).to_bytes(4, "big"))
    for index, coeff in lc.key():
        hasher.update(index.to_bytes(4, "big"))
        hasher.update(coeff.to_bytes(32, "big"))


@dataclass(frozen=True)
class CircuitShape:
    """
    Witness-independent description of a synthesized circuit.

    Two synthesis runs of the same circuit produce the same shape and hence
    the same digest, whatever the assignment.
    """

    num_variables: int
    public_indices: Tuple[int, ...]
    witness_indices: Tuple[int, ...]
    constraints: Tuple[Constraint, ...]
    native_gates: Tuple[NativeGate, ...]

    @cached_property
    def digest(self) -> bytes:
        hasher = hashlib.sha256(b"VLDP_V1_CIRCUIT_SHAPE")
        hasher.update(self.num_variables.to_bytes(4, "big"))
        for group in (self.public_indices, self.witness_indices):
            hasher.update(len(group).to_bytes(4, "big"))
            for index in group:
                hasher.update(index.to_bytes(4, "big"))
        hasher.update(len(self.constraints).to_bytes(4, "big"))
        for constraint in self.constraints:
            _update_with_lc(hasher, constraint.a)
            _update_with_lc(hasher, constraint.b)
            _update_with_lc(hasher, constraint.c)
        hasher.update(len(self.native_gates).to_bytes(4, "big"))
        for gate in self.native_gates:
            hasher.update(gate.name.encode())
            for lc in gate.inputs + gate.outputs:
                _update_with_lc(hasher, lc)
        return hasher.digest()

    def first_unsatisfied(self, values: Sequence[int]) -> Optional[str]:
        """
        Check a full assignment.

        Args:
            values: Value of every variable, values[0] == 1

        Returns:
            Label of the first violated constraint or gate, None if the
            assignment satisfies the circuit
        """
        for constraint in self.constraints:
            lhs = constraint.a.evaluate(values) * constraint.b.evaluate(values)
            if (lhs - constraint.c.evaluate(values)) % FIELD_MODULUS:
                return constraint.label or "constraint"

        for gate in self.native_gates:
            inputs = [lc.evaluate(values) for lc in gate.inputs]
            try:
                expected = list(gate.relation(inputs))
            except (ValueError, VLDPError):
                return gate.name
            if expected != [lc.evaluate(values) for lc in gate.outputs]:
                return gate.name
        return None


# ============================================================================
# CONSTRAINT SYSTEM
# ============================================================================


class ConstraintSystem:
    """
    Constraint collector used by circuits during synthesis.

    Example:
        >>> cs = ConstraintSystem(SynthesisMode.PROVE)
        >>> x = cs.new_witness(lambda: 3)
        >>> cs.enforce(x, x, 9, "square")
        >>> cs.is_satisfied()
        True
    """

    def __init__(self, mode: SynthesisMode = SynthesisMode.PROVE):
        self.mode = mode
        self._values: List[Optional[int]] = [1]
        self._public: List[int] = []
        self._witness: List[int] = []
        self.constraints: List[Constraint] = []
        self.native_gates: List[NativeGate] = []

    @property
    def is_setup_mode(self) -> bool:
        return self.mode is SynthesisMode.SETUP

    # ------------------------------------------------------------------
    # allocation
    # ------------------------------------------------------------------

    def _alloc(self, value_fn: Callable[[], int], public: bool) -> LinearCombination:
        index = len(self._values)
        value = None
        if not self.is_setup_mode:
            value = value_fn()
            if value is None:
                raise SynthesisError(f"assignment missing for variable {index}")
            value = int(value) % FIELD_MODULUS
        self._values.append(value)
        (self._public if public else self._witness).append(index)
        return LinearCombination.variable(index)

    def new_input(self, value_fn: Callable[[], int]) -> LinearCombination:
        """Allocate a public input; value_fn is only called in prove mode."""
        return self._alloc(value_fn, public=True)

    def new_witness(self, value_fn: Callable[[], int]) -> LinearCombination:
        """Allocate a private witness; value_fn is only called in prove mode."""
        return self._alloc(value_fn, public=False)

    # ------------------------------------------------------------------
    # constraints
    # ------------------------------------------------------------------

    def enforce(self, a: LCLike, b: LCLike, c: LCLike, label: str = "") -> None:
        self.constraints.append(Constraint(as_lc(a), as_lc(b), as_lc(c), label))

    def enforce_equal(self, a: LCLike, b: LCLike, label: str = "") -> None:
        self.enforce(as_lc(a) - as_lc(b), 1, 0, label)

    def add_native_gate(
        self,
        name: str,
        relation: Callable[[List[int]], List[int]],
        inputs: Sequence[LinearCombination],
        outputs: Sequence[LinearCombination],
    ) -> None:
        self.native_gates.append(NativeGate(name, relation, tuple(inputs), tuple(outputs)))

    # ------------------------------------------------------------------
    # assignment access
    # ------------------------------------------------------------------

    def value(self, lc: LCLike) -> int:
        """
        Evaluate a combination under the current assignment.

        Raises:
            SynthesisError: In setup mode, where no assignment exists
        """
        if self.is_setup_mode:
            raise SynthesisError("values are not available in setup mode")
        return as_lc(lc).evaluate(self._values)

    def public_inputs(self) -> List[int]:
        self._require_assignment()
        return [self._values[i] for i in self._public]

    def witness_values(self) -> List[int]:
        self._require_assignment()
        return [self._values[i] for i in self._witness]

    def _require_assignment(self) -> None:
        if self.is_setup_mode:
            raise SynthesisError("no assignment in setup mode")

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    def shape(self) -> CircuitShape:
        return CircuitShape(
            num_variables=len(self._values),
            public_indices=tuple(self._public),
            witness_indices=tuple(self._witness),
            constraints=tuple(self.constraints),
            native_gates=tuple(self.native_gates),
        )

    def which_is_unsatisfied(self) -> Optional[str]:
        self._require_assignment()
        return self.shape().first_unsatisfied(self._values)

    def is_satisfied(self) -> bool:
        return self.which_is_unsatisfied() is None

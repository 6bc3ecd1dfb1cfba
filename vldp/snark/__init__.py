"""Constraint system, gadgets and the reference proof system."""

from .backend import Proof, ProvingKey, ReferenceProofSystem, VerifyingKey
from .constraint_system import (
    CircuitShape,
    ConstraintSystem,
    LinearCombination,
    SynthesisMode,
)

__all__ = [
    "CircuitShape",
    "ConstraintSystem",
    "LinearCombination",
    "Proof",
    "ProvingKey",
    "ReferenceProofSystem",
    "SynthesisMode",
    "VerifyingKey",
]

"""
⚠️ DRAFT — requires crypto review before production use

Reference proof system for VLDP circuits.

ReferenceProofSystem keeps the keygen/prove/verify surface of a SNARK
backend but proves by revealing the witness: the proof is the full
private assignment and verification re-checks every constraint and
native gate. It is sound and complete, NOT zero-knowledge and NOT
succinct. It exists so the circuits, the sessions and the wire format
can be exercised end to end before a real backend is plugged in behind
the same ProofSystem interface.

Keys carry the circuit shape; its digest binds a proof to the circuit
that produced it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Sequence, Tuple

import cbor2

from ..config import FIELD_MODULUS
from ..exceptions import SerializationError, SynthesisError
from .constraint_system import CircuitShape, ConstraintSystem, SynthesisMode

logger = logging.getLogger(__name__)

FIELD_ELEMENT_BYTES = 32


class Circuit(Protocol):
    """Anything that can emit its constraints into a ConstraintSystem."""

    def generate_constraints(self, cs: ConstraintSystem) -> None:
        ...


# ============================================================================
# ARTIFACTS
# ============================================================================


@dataclass(frozen=True)
class ProvingKey:
    shape: CircuitShape


@dataclass(frozen=True)
class VerifyingKey:
    shape: CircuitShape

    @property
    def num_public_inputs(self) -> int:
        return len(self.shape.public_indices)

    @property
    def circuit_digest(self) -> bytes:
        return self.shape.digest


@dataclass(frozen=True)
class Proof:
    """
    Witness-revealing proof.

    An empty witness is the placeholder emitted when proving is skipped;
    it never verifies against a real circuit.
    """

    witness: Tuple[int, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.witness

    def to_bytes(self) -> bytes:
        return cbor2.dumps(
            [value.to_bytes(FIELD_ELEMENT_BYTES, "little") for value in self.witness]
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "Proof":
        """
        Decode a proof.

        Raises:
            SerializationError: If the encoding is malformed
        """
        try:
            items = cbor2.loads(data)
        except (cbor2.CBORDecodeError, ValueError, EOFError) as exc:
            raise SerializationError(f"malformed proof: {exc}") from exc
        if not isinstance(items, list):
            raise SerializationError("proof must be a CBOR array")

        witness = []
        for item in items:
            if not isinstance(item, bytes) or len(item) != FIELD_ELEMENT_BYTES:
                raise SerializationError("proof elements must be 32-byte strings")
            value = int.from_bytes(item, "little")
            if value >= FIELD_MODULUS:
                raise SerializationError("proof element is not a field element")
            witness.append(value)
        return cls(tuple(witness))


# ============================================================================
# PROOF SYSTEM
# ============================================================================


class ReferenceProofSystem:
    """
    Transparent R1CS proof system.

    Every instance logs a warning when built: proofs are the private
    assignment, so a server verifying them sees the true value and both
    seeds. Sessions and circuits fall back to it when no proof_system is
    given.

    Example:
        >>> system = ReferenceProofSystem()
        >>> pk, vk = system.keygen(circuit_in_setup_mode)
        >>> proof = system.prove(pk, circuit_with_assignment)
        >>> system.verify(vk, public_inputs, proof)
        True
    """

    name = "reference-r1cs"
    reveals_witness = True

    def __init__(self):
        logger.warning(
            "ReferenceProofSystem proofs carry the full witness; "
            "the verifier learns every private input"
        )

    def keygen(self, circuit: Circuit) -> Tuple[ProvingKey, VerifyingKey]:
        cs = ConstraintSystem(SynthesisMode.SETUP)
        circuit.generate_constraints(cs)
        shape = cs.shape()
        logger.debug(
            "keygen: %d constraints, %d native gates, %d public inputs",
            len(shape.constraints),
            len(shape.native_gates),
            len(shape.public_indices),
        )
        return ProvingKey(shape), VerifyingKey(shape)

    def prove(self, proving_key: ProvingKey, circuit: Circuit) -> Proof:
        """
        Synthesize the circuit with its assignment and emit a proof.

        A false statement still yields a proof (which will not verify);
        only a malformed circuit is an error.

        Raises:
            SynthesisError: If the circuit does not match the proving key
        """
        cs = ConstraintSystem(SynthesisMode.PROVE)
        circuit.generate_constraints(cs)
        shape = cs.shape()
        if shape.digest != proving_key.shape.digest:
            raise SynthesisError("circuit shape does not match the proving key")

        failure = cs.which_is_unsatisfied()
        if failure is not None:
            logger.debug("prove: statement does not hold (%s)", failure)
        return Proof(tuple(cs.witness_values()))

    def verify(
        self,
        verifying_key: VerifyingKey,
        public_inputs: Sequence[int],
        proof: Proof,
    ) -> bool:
        shape = verifying_key.shape
        if len(public_inputs) != len(shape.public_indices):
            logger.debug("verify: expected %d public inputs", len(shape.public_indices))
            return False
        if len(proof.witness) != len(shape.witness_indices):
            logger.debug("verify: proof does not match the circuit shape")
            return False

        values = [0] * shape.num_variables
        values[0] = 1
        for index, value in zip(shape.public_indices, public_inputs):
            if not 0 <= value < FIELD_MODULUS:
                return False
            values[index] = value
        for index, value in zip(shape.witness_indices, proof.witness):
            values[index] = value

        failure = shape.first_unsatisfied(values)
        if failure is not None:
            logger.debug("verify: unsatisfied %s", failure)
            return False
        return True

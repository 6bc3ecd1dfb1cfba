"""
⚠️ DRAFT — requires crypto review before production use

Shuffle circuit: one commitment/signature round per report.

Randomness is PRF(client_seed XOR server_seed, point) over the public
evaluation points; the server signature covers
commitment(client_seed) || client_sig_pk || server_seed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import (
    COMMITMENT_RANDOMNESS_BYTES,
    POINT_SIZE_BYTES,
    PRF_SEED_BYTES,
    SIGNATURE_SIZE_BYTES,
    VLDPConfig,
)
from ..parameters import SystemParameters
from ..primitives.interfaces import ProofSystem
from ..snark.backend import Proof, ProvingKey, ReferenceProofSystem, VerifyingKey
from ..snark.constraint_system import ConstraintSystem
from ..snark.gadgets import alloc_witness_bytes, xor_bytes
from .common import (
    PublicInputs,
    Schemes,
    alloc_public_inputs,
    check_encodable,
    check_witness_lengths,
    enforce_statement,
    mechanism_ok,
    prf_randomness,
    require_assignment,
    signed_message_ok,
    time_window_ok,
)


@dataclass(frozen=True)
class ShuffleWitness:
    """Private inputs of one Shuffle report."""

    true_value: int
    time: int
    true_value_signature: bytes
    client_sig_pk: bytes
    client_seed: bytes
    client_seed_commitment_randomness: bytes
    server_seed: bytes
    server_signature: bytes


def signature_input(commitment: bytes, client_sig_pk: bytes, server_seed: bytes) -> bytes:
    """Message the server signs: commitment || client_sig_pk || server_seed."""
    return bytes(commitment) + bytes(client_sig_pk) + bytes(server_seed)


class ShuffleCircuit:
    """
    Shuffle statement.

    Built without public inputs and witness for key generation (setup
    mode) and with both for proving.
    """

    with_index = False

    def __init__(
        self,
        config: VLDPConfig,
        params: SystemParameters,
        public: Optional[PublicInputs] = None,
        witness: Optional[ShuffleWitness] = None,
        schemes: Optional[Schemes] = None,
    ):
        self.config = config
        self.params = params
        self.public = public
        self.witness = witness
        self.schemes = schemes or Schemes()
        if witness is not None:
            check_encodable(config, witness.true_value, witness.time)
            check_witness_lengths(
                [
                    ("true_value_signature", witness.true_value_signature, SIGNATURE_SIZE_BYTES),
                    ("client_sig_pk", witness.client_sig_pk, POINT_SIZE_BYTES),
                    ("client_seed", witness.client_seed, PRF_SEED_BYTES),
                    (
                        "client_seed_commitment_randomness",
                        witness.client_seed_commitment_randomness,
                        COMMITMENT_RANDOMNESS_BYTES,
                    ),
                    ("server_seed", witness.server_seed, PRF_SEED_BYTES),
                    ("server_signature", witness.server_signature, SIGNATURE_SIZE_BYTES),
                ]
            )
        if public is not None:
            public.validate(config, self.with_index)

    @classmethod
    def setup(cls, config: VLDPConfig, params: SystemParameters, schemes=None) -> "ShuffleCircuit":
        return cls(config, params, schemes=schemes)

    def generate_constraints(self, cs: ConstraintSystem) -> None:
        require_assignment(cs, self.public, self.witness)
        config, params, schemes = self.config, self.params, self.schemes
        w = self.witness

        pub = alloc_public_inputs(cs, config, self.public, self.with_index)

        true_value = alloc_witness_bytes(
            cs, lambda: config.encode_input(w.true_value), config.input_bytes
        )
        time = alloc_witness_bytes(cs, lambda: config.encode_time(w.time), config.time_bytes)
        true_value_signature = alloc_witness_bytes(
            cs, lambda: w.true_value_signature, SIGNATURE_SIZE_BYTES
        )
        client_sig_pk = alloc_witness_bytes(cs, lambda: w.client_sig_pk, POINT_SIZE_BYTES)
        client_seed = alloc_witness_bytes(cs, lambda: w.client_seed, PRF_SEED_BYTES)
        commitment_randomness = alloc_witness_bytes(
            cs, lambda: w.client_seed_commitment_randomness, COMMITMENT_RANDOMNESS_BYTES
        )
        server_seed = alloc_witness_bytes(cs, lambda: w.server_seed, PRF_SEED_BYTES)
        server_signature = alloc_witness_bytes(
            cs, lambda: w.server_signature, SIGNATURE_SIZE_BYTES
        )

        # 1. randomness derivation
        seed = xor_bytes(cs, client_seed, server_seed)
        randomness = prf_randomness(
            cs, schemes.prf, seed, pub.prf_eval_points, config.randomness_bytes
        )

        # 2. mechanism
        checks = mechanism_ok(cs, config, params, true_value, randomness, pub.ldp_value)

        # 3. client signature over true_value || time
        checks.append(
            signed_message_ok(
                cs,
                schemes.signature,
                params.client_signature,
                client_sig_pk,
                true_value + time,
                true_value_signature,
            )
        )

        # 4. commitment to the client seed
        commitment = schemes.commitment.gadget(
            cs, params.commitment, client_seed, commitment_randomness
        )

        # 5. server signature over commitment || client_sig_pk || server_seed
        checks.append(
            signed_message_ok(
                cs,
                schemes.signature,
                params.server_signature,
                pub.server_sig_pk,
                commitment + client_sig_pk + server_seed,
                server_signature,
            )
        )

        # 6. time window
        checks.append(time_window_ok(cs, time, pub.lower, pub.upper))

        enforce_statement(cs, checks)


# ============================================================================
# KEYGEN / PROVE / VERIFY
# ============================================================================


def keygen(
    config: VLDPConfig,
    params: SystemParameters,
    proof_system: Optional[ProofSystem] = None,
    schemes: Optional[Schemes] = None,
) -> Tuple[ProvingKey, VerifyingKey]:
    proof_system = proof_system or ReferenceProofSystem()
    return proof_system.keygen(ShuffleCircuit.setup(config, params, schemes))


def prove(
    proving_key: ProvingKey,
    config: VLDPConfig,
    params: SystemParameters,
    public: PublicInputs,
    witness: ShuffleWitness,
    proof_system: Optional[ProofSystem] = None,
    schemes: Optional[Schemes] = None,
) -> Proof:
    """
    Prove a Shuffle report.

    Raises:
        ConversionError: If the public bundle has the wrong shape
        SynthesisError: If a witness is missing or malformed
    """
    proof_system = proof_system or ReferenceProofSystem()
    circuit = ShuffleCircuit(config, params, public, witness, schemes)
    return proof_system.prove(proving_key, circuit)


def verify(
    verifying_key: VerifyingKey,
    config: VLDPConfig,
    public: PublicInputs,
    proof: Proof,
    proof_system: Optional[ProofSystem] = None,
) -> bool:
    """
    Verify a Shuffle report.

    Raises:
        ConversionError: If the public bundle has the wrong shape
    """
    proof_system = proof_system or ReferenceProofSystem()
    return proof_system.verify(
        verifying_key, public.to_field_elements(config, with_index=False), proof
    )

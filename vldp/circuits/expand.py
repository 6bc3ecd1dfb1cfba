"""
⚠️ DRAFT — requires crypto review before production use

Expand circuit: one signed Merkle root per batch of reports.

The client contribution of round `index` is the randomness committed in
leaf `index` of the client's Merkle tree; the server contribution is
PRF(server_seed, prf_eval_points). The server signature covers
root || client_sig_pk || server_seed, and the public index selects the
Merkle path directions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import (
    COMMITMENT_RANDOMNESS_BYTES,
    MERKLE_HASH_BYTES,
    POINT_SIZE_BYTES,
    PRF_SEED_BYTES,
    SIGNATURE_SIZE_BYTES,
    VLDPConfig,
)
from ..exceptions import SynthesisError
from ..merkle import root_gadget
from ..parameters import SystemParameters
from ..primitives.interfaces import ProofSystem
from ..snark.backend import Proof, ProvingKey, ReferenceProofSystem, VerifyingKey
from ..snark.constraint_system import ConstraintSystem
from ..snark.gadgets import (
    alloc_witness_bytes,
    bits_of_bytes,
    is_less_than,
    pack_bytes_le,
    xor_bytes,
)
from .common import (
    INDEX_BYTES,
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
class ExpandWitness:
    """Private inputs of one Expand report."""

    true_value: int
    time: int
    true_value_signature: bytes
    client_sig_pk: bytes
    client_randomness: bytes
    client_randomness_commitment_randomness: bytes
    merkle_siblings: Tuple[bytes, ...]
    server_seed: bytes
    server_signature: bytes


def signature_input(root: bytes, client_sig_pk: bytes, server_seed: bytes) -> bytes:
    """Message the server signs: root || client_sig_pk || server_seed."""
    return bytes(root) + bytes(client_sig_pk) + bytes(server_seed)


class ExpandCircuit:
    """Expand statement; see ShuffleCircuit for the setup/prove split."""

    with_index = True

    def __init__(
        self,
        config: VLDPConfig,
        params: SystemParameters,
        public: Optional[PublicInputs] = None,
        witness: Optional[ExpandWitness] = None,
        schemes: Optional[Schemes] = None,
    ):
        self.config = config
        self.params = params
        self.public = public
        self.witness = witness
        self.schemes = schemes or Schemes()
        if witness is not None:
            check_encodable(config, witness.true_value, witness.time)
            if len(witness.merkle_siblings) != self.path_length:
                raise SynthesisError(
                    f"expected {self.path_length} Merkle siblings, "
                    f"got {len(witness.merkle_siblings)}"
                )
            checks = [
                ("true_value_signature", witness.true_value_signature, SIGNATURE_SIZE_BYTES),
                ("client_sig_pk", witness.client_sig_pk, POINT_SIZE_BYTES),
                ("client_randomness", witness.client_randomness, config.randomness_bytes),
                (
                    "client_randomness_commitment_randomness",
                    witness.client_randomness_commitment_randomness,
                    COMMITMENT_RANDOMNESS_BYTES,
                ),
                ("server_seed", witness.server_seed, PRF_SEED_BYTES),
                ("server_signature", witness.server_signature, SIGNATURE_SIZE_BYTES),
            ]
            checks += [
                ("merkle sibling", sibling, MERKLE_HASH_BYTES)
                for sibling in witness.merkle_siblings
            ]
            check_witness_lengths(checks)
        if public is not None:
            public.validate(config, self.with_index)

    @property
    def path_length(self) -> int:
        return self.config.merkle_depth - 1

    @classmethod
    def setup(cls, config: VLDPConfig, params: SystemParameters, schemes=None) -> "ExpandCircuit":
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
        client_randomness = alloc_witness_bytes(
            cs, lambda: w.client_randomness, config.randomness_bytes
        )
        commitment_randomness = alloc_witness_bytes(
            cs,
            lambda: w.client_randomness_commitment_randomness,
            COMMITMENT_RANDOMNESS_BYTES,
        )
        siblings = [
            alloc_witness_bytes(cs, lambda level=level: w.merkle_siblings[level], MERKLE_HASH_BYTES)
            for level in range(self.path_length)
        ]
        server_seed = alloc_witness_bytes(cs, lambda: w.server_seed, PRF_SEED_BYTES)
        server_signature = alloc_witness_bytes(
            cs, lambda: w.server_signature, SIGNATURE_SIZE_BYTES
        )

        # 1. randomness derivation
        server_randomness = prf_randomness(
            cs, schemes.prf, server_seed, pub.prf_eval_points, config.randomness_bytes
        )
        randomness = xor_bytes(cs, client_randomness, server_randomness)

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

        # 4. leaf commitment and its Merkle path
        leaf = schemes.commitment.gadget(
            cs, params.commitment, client_randomness, commitment_randomness
        )
        index_bits = bits_of_bytes(pub.index)
        checks.append(
            is_less_than(
                cs, pack_bytes_le(pub.index), config.num_leaves, 8 * INDEX_BYTES
            )
        )
        root = root_gadget(cs, leaf, siblings, index_bits[:self.path_length])

        # 5. server signature over root || client_sig_pk || server_seed
        checks.append(
            signed_message_ok(
                cs,
                schemes.signature,
                params.server_signature,
                pub.server_sig_pk,
                root + client_sig_pk + server_seed,
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
    return proof_system.keygen(ExpandCircuit.setup(config, params, schemes))


def prove(
    proving_key: ProvingKey,
    config: VLDPConfig,
    params: SystemParameters,
    public: PublicInputs,
    witness: ExpandWitness,
    proof_system: Optional[ProofSystem] = None,
    schemes: Optional[Schemes] = None,
) -> Proof:
    """
    Prove an Expand report.

    Raises:
        ConversionError: If the public bundle has the wrong shape
        SynthesisError: If a witness is missing or malformed
    """
    proof_system = proof_system or ReferenceProofSystem()
    circuit = ExpandCircuit(config, params, public, witness, schemes)
    return proof_system.prove(proving_key, circuit)


def verify(
    verifying_key: VerifyingKey,
    config: VLDPConfig,
    public: PublicInputs,
    proof: Proof,
    proof_system: Optional[ProofSystem] = None,
) -> bool:
    """
    Verify an Expand report.

    Raises:
        ConversionError: If the public bundle has the wrong shape
    """
    proof_system = proof_system or ReferenceProofSystem()
    return proof_system.verify(
        verifying_key, public.to_field_elements(config, with_index=True), proof
    )

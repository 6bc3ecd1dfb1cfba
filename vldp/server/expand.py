"""
⚠️ DRAFT — requires crypto review before production use

Expand server: signs one seed per client Merkle root and then accepts one
report per leaf, in leaf order.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from ..circuits import expand as expand_circuit
from ..circuits.common import PublicInputs, Schemes
from ..config import PRF_SEED_BYTES, VLDPConfig
from ..messages import ClientCommitMessage, ClientReportMessage, ServerResponseMessage
from ..parameters import SystemParameters
from ..primitives.interfaces import ProofSystem
from ..primitives.schnorr import SigningKey
from ..randomness import prf_eval_points as round_eval_points
from ..security import RandomnessSource, constant_time_compare
from ..snark.backend import ReferenceProofSystem, VerifyingKey
from .session import decode_proof, safe_verify

logger = logging.getLogger(__name__)


@dataclass
class ClientBatch:
    """Signed root of one client and the next leaf it may report on."""

    root: bytes
    server_seed: bytes
    server_signature: bytes
    next_index: int = 0


class ServerExpand:
    """
    Server side of the Expand variant.

    Example:
        >>> server = ServerExpand(config, params, server_sk, server_pk, vk)
        >>> response = server.generate_randomness(root_msg)
        >>> server.verifiable_randomization_verify(report, (lower, upper))
        True
    """

    def __init__(
        self,
        config: VLDPConfig,
        params: SystemParameters,
        signing_key: SigningKey,
        server_sig_pk: bytes,
        verifying_key: VerifyingKey,
        schemes: Optional[Schemes] = None,
        proof_system: Optional[ProofSystem] = None,
        rng: Optional[RandomnessSource] = None,
    ):
        self.config = config
        self.params = params
        self.signing_key = signing_key
        self.server_sig_pk = bytes(server_sig_pk)
        self.verifying_key = verifying_key
        self.schemes = schemes or Schemes()
        self.proof_system = proof_system or ReferenceProofSystem()
        self.rng = rng or RandomnessSource()
        self.batches: Dict[bytes, ClientBatch] = {}

    def generate_randomness(self, client_message: bytes) -> bytes:
        """
        Sign a fresh seed for the client's Merkle root.

        A new root from the same client replaces its previous batch.

        Raises:
            SerializationError: If the message is malformed
        """
        commit = ClientCommitMessage.from_bytes(client_message)
        server_seed = self.rng.get_random_bytes(PRF_SEED_BYTES)
        signature = self.schemes.signature.sign(
            self.params.server_signature,
            self.signing_key,
            expand_circuit.signature_input(
                commit.commitment_or_root, commit.client_sig_pk, server_seed
            ),
            self.rng,
        )
        self.batches[commit.client_sig_pk] = ClientBatch(
            root=commit.commitment_or_root,
            server_seed=server_seed,
            server_signature=signature,
        )
        logger.debug("issued expand seed to client %s", commit.client_sig_pk.hex()[:16])
        return ServerResponseMessage(server_seed, signature).to_bytes()

    def verifiable_randomization_verify(
        self,
        report: bytes,
        time_bounds: Tuple[int, int],
        prf_eval_points: Optional[Sequence[bytes]] = None,
    ) -> bool:
        """
        Verify the next Expand report of a batch.

        The leaf index is the batch's own counter; it advances on every
        report that names the batch, so each leaf is consumed once.

        Raises:
            SerializationError: If the report or its proof bytes are malformed
        """
        message = ClientReportMessage.from_bytes(report)
        client = message.client_sig_pk
        batch = self.batches.get(client)
        if batch is None:
            logger.warning("report from client %s without a batch", client.hex()[:16])
            return False
        if not (
            constant_time_compare(batch.root, message.commitment_or_root)
            and constant_time_compare(batch.server_seed, message.server_seed)
            and constant_time_compare(batch.server_signature, message.server_signature)
        ):
            logger.warning("report from client %s does not match its batch", client.hex()[:16])
            return False

        index = batch.next_index
        if index >= self.config.num_leaves:
            logger.warning("batch of client %s is exhausted", client.hex()[:16])
            return False
        batch.next_index = index + 1

        proof = decode_proof(message.proof)
        if proof is None:
            return False

        points = tuple(
            prf_eval_points
            if prf_eval_points is not None
            else round_eval_points(index, self.config.randomness_bytes)
        )
        public = PublicInputs(
            ldp_value=message.ldp_value,
            time_bounds=tuple(time_bounds),
            server_sig_pk=self.server_sig_pk,
            prf_eval_points=points,
            index=index,
        )
        accepted = safe_verify(
            expand_circuit.verify,
            self.verifying_key,
            self.config,
            public,
            proof,
            self.proof_system,
        )
        logger.debug(
            "expand report leaf %d from %s: %s",
            index,
            client.hex()[:16],
            "accepted" if accepted else "rejected",
        )
        return accepted

"""
⚠️ DRAFT — requires crypto review before production use

Shuffle server: signs one fresh seed per client commitment and verifies
the report that consumes it.

Each issued seed is accepted for at most one report. The per-client round
counter advances on every report that names the issued seed, whether or
not the proof verifies, so the client and server stay aligned on the
default evaluation points.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from ..circuits import shuffle as shuffle_circuit
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


@dataclass(frozen=True)
class IssuedSeed:
    commitment: bytes
    server_seed: bytes
    server_signature: bytes


class ServerShuffle:
    """
    Server side of the Shuffle variant.

    Example:
        >>> server = ServerShuffle(config, params, server_sk, server_pk, vk)
        >>> response = server.generate_randomness(commit_msg)
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
        self.issued: Dict[bytes, IssuedSeed] = {}
        self.rounds: Dict[bytes, int] = {}

    def generate_randomness(self, client_message: bytes) -> bytes:
        """
        Answer a client commitment with a signed fresh seed.

        A new commitment from the same client replaces the pending one.

        Raises:
            SerializationError: If the message is malformed
        """
        commit = ClientCommitMessage.from_bytes(client_message)
        server_seed = self.rng.get_random_bytes(PRF_SEED_BYTES)
        signature = self.schemes.signature.sign(
            self.params.server_signature,
            self.signing_key,
            shuffle_circuit.signature_input(
                commit.commitment_or_root, commit.client_sig_pk, server_seed
            ),
            self.rng,
        )
        self.issued[commit.client_sig_pk] = IssuedSeed(
            commitment=commit.commitment_or_root,
            server_seed=server_seed,
            server_signature=signature,
        )
        logger.debug("issued shuffle seed to client %s", commit.client_sig_pk.hex()[:16])
        return ServerResponseMessage(server_seed, signature).to_bytes()

    def verifiable_randomization_verify(
        self,
        report: bytes,
        time_bounds: Tuple[int, int],
        prf_eval_points: Optional[Sequence[bytes]] = None,
    ) -> bool:
        """
        Verify a Shuffle report.

        Args:
            report: Serialized ClientReportMessage
            time_bounds: (lower, upper) the report's time must fall in
            prf_eval_points: Evaluation points (defaults to the points of
                the client's current round)

        Returns:
            True if the report answers a seed this server issued and its
            proof verifies

        Raises:
            SerializationError: If the report or its proof bytes are malformed
        """
        message = ClientReportMessage.from_bytes(report)
        client = message.client_sig_pk
        issued = self.issued.get(client)
        if issued is None:
            logger.warning("report from client %s without an issued seed", client.hex()[:16])
            return False
        if not (
            constant_time_compare(issued.commitment, message.commitment_or_root)
            and constant_time_compare(issued.server_seed, message.server_seed)
            and constant_time_compare(issued.server_signature, message.server_signature)
        ):
            logger.warning("report from client %s does not match the issued seed", client.hex()[:16])
            return False

        del self.issued[client]
        round_index = self.rounds.get(client, 0)
        self.rounds[client] = round_index + 1

        proof = decode_proof(message.proof)
        if proof is None:
            return False

        points = tuple(
            prf_eval_points
            if prf_eval_points is not None
            else round_eval_points(round_index, self.config.randomness_bytes)
        )
        public = PublicInputs(
            ldp_value=message.ldp_value,
            time_bounds=tuple(time_bounds),
            server_sig_pk=self.server_sig_pk,
            prf_eval_points=points,
        )
        accepted = safe_verify(
            shuffle_circuit.verify,
            self.verifying_key,
            self.config,
            public,
            proof,
            self.proof_system,
        )
        logger.debug(
            "shuffle report round %d from %s: %s",
            round_index,
            client.hex()[:16],
            "accepted" if accepted else "rejected",
        )
        return accepted

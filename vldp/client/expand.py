"""
⚠️ DRAFT — requires crypto review before production use

Expand client: one signed Merkle root per batch of 2^(depth-1) reports.

The client draws its seed and one commitment randomness per leaf from a
ChaCha20 generator and keeps only the generator seed. Per-round values
are replayed from that seed when a report is created.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..circuits import expand as expand_circuit
from ..circuits.common import PublicInputs, Schemes
from ..config import VLDPConfig
from ..exceptions import ProtocolStateError
from ..merkle import ClientMerkleTree
from ..messages import ClientCommitMessage, ClientReportMessage, ServerResponseMessage
from ..parameters import SystemParameters
from ..primitives.interfaces import ProofSystem
from ..randomness import ChaChaGenerator, client_leaf_randomness, derive_expand_randomness
from ..randomness import prf_eval_points as round_eval_points
from ..security import RandomnessSource
from ..snark.backend import Proof, ProvingKey, ReferenceProofSystem
from .. import mechanism
from .session import SessionState

logger = logging.getLogger(__name__)


@dataclass
class ClientExpandStorage:
    generator_seed: Optional[bytes] = None
    index: int = 0
    merkle_tree: Optional[ClientMerkleTree] = None
    server_seed: Optional[bytes] = None
    server_signature: Optional[bytes] = None


@dataclass(frozen=True)
class LeafOpening:
    """Client randomness of one round and the opening of its commitment."""

    client_randomness: bytes
    commitment_randomness: bytes


def leaf_opening(
    generator: ChaChaGenerator,
    leaf_index: int,
    config: VLDPConfig,
    schemes: Schemes,
) -> LeafOpening:
    """Replay the values behind leaf leaf_index from the generator."""
    client_seed = generator.client_seed()
    return LeafOpening(
        client_randomness=client_leaf_randomness(
            schemes.prf, client_seed, leaf_index, config.randomness_bytes
        ),
        commitment_randomness=schemes.commitment.randomness_from_bytes(
            generator.leaf_draw(leaf_index)
        ),
    )


def build_client_tree(
    generator: ChaChaGenerator,
    config: VLDPConfig,
    params: SystemParameters,
    schemes: Schemes,
) -> ClientMerkleTree:
    """Commit to every round of the batch and build the tree."""
    leaves: List[bytes] = []
    for leaf_index in range(config.num_leaves):
        opening = leaf_opening(generator, leaf_index, config, schemes)
        leaves.append(
            schemes.commitment.commit(
                params.commitment, opening.client_randomness, opening.commitment_randomness
            )
        )
    return ClientMerkleTree(leaves)


class ClientExpand:
    """
    Client side of the Expand variant.

    One handshake covers config.num_leaves reports; a new handshake is only
    accepted once the batch is used up.
    """

    def __init__(
        self,
        config: VLDPConfig,
        params: SystemParameters,
        server_sig_pk: bytes,
        client_sig_pk: bytes,
        proving_key: ProvingKey,
        schemes: Optional[Schemes] = None,
        proof_system: Optional[ProofSystem] = None,
        rng: Optional[RandomnessSource] = None,
    ):
        self.config = config
        self.params = params
        self.server_sig_pk = bytes(server_sig_pk)
        self.client_sig_pk = bytes(client_sig_pk)
        self.proving_key = proving_key
        self.schemes = schemes or Schemes()
        self.proof_system = proof_system or ReferenceProofSystem()
        self.rng = rng or RandomnessSource()
        self.storage = ClientExpandStorage()

    @property
    def state(self) -> SessionState:
        if self.storage.server_signature is not None:
            return SessionState.READY
        if self.storage.merkle_tree is not None:
            return SessionState.AWAITING_SERVER_RESPONSE
        return SessionState.INIT

    @property
    def batch_exhausted(self) -> bool:
        return self.storage.index >= self.config.num_leaves

    def generate_randomness_create(self) -> bytes:
        """
        Start a batch: commit to every round and send the Merkle root.

        Raises:
            ProtocolStateError: If the current batch still has unused rounds
        """
        if self.state is SessionState.READY and not self.batch_exhausted:
            raise ProtocolStateError(
                f"batch still has {self.config.num_leaves - self.storage.index} rounds"
            )

        generator = ChaChaGenerator.from_entropy(self.rng)
        tree = build_client_tree(generator, self.config, self.params, self.schemes)
        self.storage = ClientExpandStorage(
            generator_seed=generator.seed, index=0, merkle_tree=tree
        )
        logger.debug("expand client committed to %d rounds", tree.num_leaves)
        return ClientCommitMessage(tree.root(), self.client_sig_pk).to_bytes()

    def generate_randomness_verify(self, server_message: bytes) -> bool:
        """
        Check the server's signature over the root and store its seed.

        Returns:
            True if the signature verifies; False leaves storage untouched

        Raises:
            ProtocolStateError: If no root is pending
            SerializationError: If the message is malformed
        """
        if self.state is not SessionState.AWAITING_SERVER_RESPONSE:
            raise ProtocolStateError("no pending Merkle root to verify against")

        response = ServerResponseMessage.from_bytes(server_message)
        message = expand_circuit.signature_input(
            self.storage.merkle_tree.root(), self.client_sig_pk, response.server_seed
        )
        if not self.schemes.signature.verify(
            self.params.server_signature,
            self.server_sig_pk,
            message,
            response.server_signature,
        ):
            logger.warning("expand client rejected server signature")
            return False

        self.storage.server_seed = response.server_seed
        self.storage.server_signature = response.server_signature
        logger.debug("expand client ready for batch")
        return True

    def verifiable_randomization_create(
        self,
        true_value: int,
        time: int,
        true_value_signature: bytes,
        time_bounds: Tuple[int, int],
        prf_eval_points: Optional[Sequence[bytes]] = None,
        skip_proof: bool = False,
    ) -> bytes:
        """
        Randomize a value with the next leaf of the batch and prove it.

        See ClientShuffle.verifiable_randomization_create for the
        arguments. The round index is the session's own counter.

        Raises:
            ProtocolStateError: If the handshake has not completed or the
                batch is exhausted
            ValueError: If the true value is outside the input domain
        """
        if self.state is not SessionState.READY:
            raise ProtocolStateError("handshake must complete before reporting")
        if self.batch_exhausted:
            raise ProtocolStateError("batch exhausted, start a new handshake")
        storage = self.storage
        config = self.config
        index = storage.index

        generator = ChaChaGenerator.from_seed(storage.generator_seed)
        opening = leaf_opening(generator, index, config, self.schemes)

        points = tuple(
            prf_eval_points
            if prf_eval_points is not None
            else round_eval_points(index, config.randomness_bytes)
        )
        randomness = derive_expand_randomness(
            self.schemes.prf,
            opening.client_randomness,
            storage.server_seed,
            points,
            config.randomness_bytes,
        )
        ldp_value = mechanism.apply(
            true_value, randomness, self.params.gamma_as_int(), config
        )

        if skip_proof:
            proof = Proof()
        else:
            public = PublicInputs(
                ldp_value=ldp_value,
                time_bounds=tuple(time_bounds),
                server_sig_pk=self.server_sig_pk,
                prf_eval_points=points,
                index=index,
            )
            witness = expand_circuit.ExpandWitness(
                true_value=true_value,
                time=time,
                true_value_signature=bytes(true_value_signature),
                client_sig_pk=self.client_sig_pk,
                client_randomness=opening.client_randomness,
                client_randomness_commitment_randomness=opening.commitment_randomness,
                merkle_siblings=tuple(storage.merkle_tree.siblings(index)),
                server_seed=storage.server_seed,
                server_signature=storage.server_signature,
            )
            proof = expand_circuit.prove(
                self.proving_key,
                config,
                self.params,
                public,
                witness,
                self.proof_system,
                self.schemes,
            )

        report = ClientReportMessage(
            client_sig_pk=self.client_sig_pk,
            commitment_or_root=storage.merkle_tree.root(),
            server_seed=storage.server_seed,
            server_signature=storage.server_signature,
            proof=proof.to_bytes(),
            ldp_value=ldp_value,
        )
        logger.debug(
            "expand client reported round %d (proof %s)",
            index,
            "skipped" if skip_proof else "generated",
        )
        storage.generator_seed = generator.seed
        storage.index = index + 1
        return report.to_bytes()

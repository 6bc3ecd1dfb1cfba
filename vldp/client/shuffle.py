"""
⚠️ DRAFT — requires crypto review before production use

Shuffle client: one commit/sign handshake per report.

Lifecycle:
    INIT --generate_randomness_create--> AWAITING_SERVER_RESPONSE
         --generate_randomness_verify (True)--> READY
         --verifiable_randomization_create--> INIT (next round)
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..circuits import shuffle as shuffle_circuit
from ..circuits.common import PublicInputs, Schemes
from ..config import PRF_SEED_BYTES, VLDPConfig
from ..exceptions import ProtocolStateError
from ..messages import ClientCommitMessage, ClientReportMessage, ServerResponseMessage
from ..parameters import SystemParameters
from ..primitives.interfaces import ProofSystem
from ..randomness import derive_shuffle_randomness
from ..randomness import prf_eval_points as round_eval_points
from ..security import RandomnessSource
from ..snark.backend import Proof, ProvingKey, ReferenceProofSystem
from .. import mechanism
from .session import SessionState

logger = logging.getLogger(__name__)


@dataclass
class ClientShuffleStorage:
    """Mutable per-session state; round fields are cleared after each report."""

    index: int = 0
    client_seed: Optional[bytes] = None
    commitment_randomness: Optional[bytes] = None
    commitment: Optional[bytes] = None
    server_seed: Optional[bytes] = None
    server_signature: Optional[bytes] = None

    def clear_round(self) -> None:
        self.client_seed = None
        self.commitment_randomness = None
        self.commitment = None
        self.server_seed = None
        self.server_signature = None


class ClientShuffle:
    """
    Client side of the Shuffle variant.

    Example:
        >>> client = ClientShuffle(config, params, server_pk, client_pk, pk)
        >>> commit_msg = client.generate_randomness_create()
        >>> client.generate_randomness_verify(server.generate_randomness(commit_msg))
        True
        >>> report = client.verifiable_randomization_create(
        ...     true_value, time, signature, (lower, upper))
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
        self.storage = ClientShuffleStorage()

    @property
    def state(self) -> SessionState:
        if self.storage.server_signature is not None:
            return SessionState.READY
        if self.storage.commitment is not None:
            return SessionState.AWAITING_SERVER_RESPONSE
        return SessionState.INIT

    def generate_randomness_create(self) -> bytes:
        """
        Commit to a fresh client seed.

        Calling this again before the server answered restarts the
        handshake with a new seed.

        Raises:
            ProtocolStateError: If a verified server contribution has not
                been used for a report yet
        """
        if self.state is SessionState.READY:
            raise ProtocolStateError("previous handshake has not been reported on")

        client_seed = self.rng.get_random_bytes(PRF_SEED_BYTES)
        commitment_randomness = self.schemes.commitment.random_randomness(self.rng)
        commitment = self.schemes.commitment.commit(
            self.params.commitment, client_seed, commitment_randomness
        )

        self.storage.client_seed = client_seed
        self.storage.commitment_randomness = commitment_randomness
        self.storage.commitment = commitment
        logger.debug("shuffle client committed to seed for round %d", self.storage.index)
        return ClientCommitMessage(commitment, self.client_sig_pk).to_bytes()

    def generate_randomness_verify(self, server_message: bytes) -> bool:
        """
        Check the server's seed signature and store its contribution.

        Returns:
            True if the signature verifies; False leaves storage untouched

        Raises:
            ProtocolStateError: If no commitment is pending
            SerializationError: If the message is malformed
        """
        if self.state is not SessionState.AWAITING_SERVER_RESPONSE:
            raise ProtocolStateError("no pending commitment to verify against")

        response = ServerResponseMessage.from_bytes(server_message)
        message = shuffle_circuit.signature_input(
            self.storage.commitment, self.client_sig_pk, response.server_seed
        )
        if not self.schemes.signature.verify(
            self.params.server_signature,
            self.server_sig_pk,
            message,
            response.server_signature,
        ):
            logger.warning("shuffle client rejected server signature")
            return False

        self.storage.server_seed = response.server_seed
        self.storage.server_signature = response.server_signature
        logger.debug("shuffle client ready for round %d", self.storage.index)
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
        Randomize a value and prove it.

        Args:
            true_value: Private input
            time: Time the input was produced
            true_value_signature: Signature by the client key over
                true_value || time
            time_bounds: (lower, upper) validity window
            prf_eval_points: Evaluation points (defaults to the points of
                the current round)
            skip_proof: Emit an empty proof (dry runs only)

        Returns:
            Serialized ClientReportMessage

        Raises:
            ProtocolStateError: If the handshake has not completed
            ValueError: If the true value is outside the input domain
        """
        if self.state is not SessionState.READY:
            raise ProtocolStateError("handshake must complete before reporting")
        storage = self.storage
        config = self.config

        points = tuple(
            prf_eval_points
            if prf_eval_points is not None
            else round_eval_points(storage.index, config.randomness_bytes)
        )
        randomness = derive_shuffle_randomness(
            self.schemes.prf,
            storage.client_seed,
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
            )
            witness = shuffle_circuit.ShuffleWitness(
                true_value=true_value,
                time=time,
                true_value_signature=bytes(true_value_signature),
                client_sig_pk=self.client_sig_pk,
                client_seed=storage.client_seed,
                client_seed_commitment_randomness=storage.commitment_randomness,
                server_seed=storage.server_seed,
                server_signature=storage.server_signature,
            )
            proof = shuffle_circuit.prove(
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
            commitment_or_root=storage.commitment,
            server_seed=storage.server_seed,
            server_signature=storage.server_signature,
            proof=proof.to_bytes(),
            ldp_value=ldp_value,
        )
        logger.debug(
            "shuffle client reported round %d (proof %s)",
            storage.index,
            "skipped" if skip_proof else "generated",
        )
        storage.index += 1
        storage.clear_round()
        return report.to_bytes()
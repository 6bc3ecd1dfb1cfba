"""End-to-end tests for the Shuffle variant"""

import logging

import pytest

from vldp import mechanism
from vldp.circuits import shuffle as shuffle_circuit
from vldp.circuits.common import PublicInputs
from vldp.client import SessionState
from vldp.exceptions import ProtocolStateError, SerializationError
from vldp.messages import ClientReportMessage, ServerResponseMessage
from vldp.randomness import derive_shuffle_randomness, prf_eval_points
from vldp.primitives.prf import Blake2sPRF

TIME = 100
BOUNDS = (50, 150)


def handshake(client, server):
    return client.generate_randomness_verify(
        server.generate_randomness(client.generate_randomness_create())
    )


def report(deployment, client, true_value=300, time=TIME, bounds=BOUNDS, **kwargs):
    signature = deployment.sign_input(true_value, time)
    return client.verifiable_randomization_create(true_value, time, signature, bounds, **kwargs)


def flip_bit(data: bytes, index: int = 0) -> bytes:
    return data[:index] + bytes([data[index] ^ 1]) + data[index + 1:]


class TestEndToEnd:
    """Honest clients are accepted"""

    def test_rounds(self, deployment):
        client, server = deployment.shuffle_pair()
        for round_index in range(3):
            assert handshake(client, server)
            assert client.state is SessionState.READY
            blob = report(deployment, client)
            assert client.state is SessionState.INIT
            assert client.storage.index == round_index + 1
            assert server.verifiable_randomization_verify(blob, BOUNDS)
            ldp_value = ClientReportMessage.from_bytes(blob).ldp_value
            assert 0 <= ldp_value <= deployment.config.k

    def test_report_matches_mechanism(self, deployment):
        """The published value is apply() on the jointly derived randomness"""
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        storage = client.storage
        randomness = derive_shuffle_randomness(
            Blake2sPRF(),
            storage.client_seed,
            storage.server_seed,
            prf_eval_points(0, deployment.config.randomness_bytes),
            deployment.config.randomness_bytes,
        )
        expected = mechanism.apply(
            300, randomness, deployment.params.gamma_as_int(), deployment.config
        )
        blob = report(deployment, client)
        assert ClientReportMessage.from_bytes(blob).ldp_value == expected

    def test_custom_eval_points(self, deployment):
        client, server = deployment.shuffle_pair()
        points = [b"\x09" * 32]
        assert handshake(client, server)
        blob = report(deployment, client, prf_eval_points=points)
        assert server.verifiable_randomization_verify(blob, BOUNDS, prf_eval_points=points)

    def test_mismatched_eval_points_rejected(self, deployment):
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        blob = report(deployment, client, prf_eval_points=[b"\x09" * 32])
        assert not server.verifiable_randomization_verify(blob, BOUNDS)


class TestTampering:
    """Modified reports are rejected"""

    def test_flipped_server_seed(self, deployment):
        """A report naming another seed does not consume the issued one"""
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        blob = report(deployment, client)
        message = ClientReportMessage.from_bytes(blob)
        tampered = ClientReportMessage(
            client_sig_pk=message.client_sig_pk,
            commitment_or_root=message.commitment_or_root,
            server_seed=flip_bit(message.server_seed),
            server_signature=message.server_signature,
            proof=message.proof,
            ldp_value=message.ldp_value,
        )
        assert not server.verifiable_randomization_verify(tampered.to_bytes(), BOUNDS)
        assert server.verifiable_randomization_verify(blob, BOUNDS)

    def test_flipped_server_seed_in_witness(self, deployment):
        """The circuit rejects randomness derived from a seed the server did not sign"""
        config, params = deployment.config, deployment.params
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        storage = client.storage
        points = tuple(prf_eval_points(0, config.randomness_bytes))
        pk, vk = deployment.shuffle_keys

        def prove_with(server_seed):
            randomness = derive_shuffle_randomness(
                Blake2sPRF(), storage.client_seed, server_seed, points, config.randomness_bytes
            )
            ldp_value = mechanism.apply(300, randomness, params.gamma_as_int(), config)
            public = PublicInputs(ldp_value, BOUNDS, deployment.server_pk, points)
            witness = shuffle_circuit.ShuffleWitness(
                true_value=300,
                time=TIME,
                true_value_signature=deployment.sign_input(300, TIME),
                client_sig_pk=deployment.client_pk,
                client_seed=storage.client_seed,
                client_seed_commitment_randomness=storage.commitment_randomness,
                server_seed=server_seed,
                server_signature=storage.server_signature,
            )
            proof = shuffle_circuit.prove(pk, config, params, public, witness)
            return shuffle_circuit.verify(vk, config, public, proof)

        assert prove_with(storage.server_seed)
        assert not prove_with(flip_bit(storage.server_seed, 5))

    def test_changed_ldp_value(self, deployment):
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        message = ClientReportMessage.from_bytes(report(deployment, client))
        forged = ClientReportMessage(
            client_sig_pk=message.client_sig_pk,
            commitment_or_root=message.commitment_or_root,
            server_seed=message.server_seed,
            server_signature=message.server_signature,
            proof=message.proof,
            ldp_value=(message.ldp_value + 1) % (deployment.config.k + 1),
        )
        assert not server.verifiable_randomization_verify(forged.to_bytes(), BOUNDS)

    def test_time_outside_window(self, deployment):
        """Server bounds that exclude the signed time reject the report"""
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        blob = report(deployment, client, bounds=(TIME, 150))
        assert not server.verifiable_randomization_verify(blob, (TIME, 150))

    @pytest.mark.parametrize(
        "time, accepted", [(BOUNDS[1], True), (BOUNDS[1] + 1, False), (BOUNDS[0] - 1, False)]
    )
    def test_time_window_edges(self, deployment, time, accepted):
        """lower < time <= upper: the upper bound is inclusive"""
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        blob = report(deployment, client, time=time)
        assert server.verifiable_randomization_verify(blob, BOUNDS) is accepted

    def test_forged_input_signature(self, deployment):
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        signature = deployment.sign_input(301, TIME)
        blob = client.verifiable_randomization_create(300, TIME, signature, BOUNDS)
        assert not server.verifiable_randomization_verify(blob, BOUNDS)

    def test_replay(self, deployment):
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        blob = report(deployment, client)
        assert server.verifiable_randomization_verify(blob, BOUNDS)
        assert not server.verifiable_randomization_verify(blob, BOUNDS)

    def test_failed_report_consumes_seed(self, deployment):
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        blob = report(deployment, client)
        assert not server.verifiable_randomization_verify(blob, (0, 1))
        assert not server.verifiable_randomization_verify(blob, BOUNDS)

    def test_unknown_client(self, deployment):
        client, other_server = deployment.shuffle_pair()
        _, server = deployment.shuffle_pair()
        assert handshake(client, other_server)
        assert not server.verifiable_randomization_verify(report(deployment, client), BOUNDS)

    def test_skipped_proof(self, deployment):
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        blob = report(deployment, client, skip_proof=True)
        assert not server.verifiable_randomization_verify(blob, BOUNDS)

    def test_malformed_proof_bytes(self, deployment):
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        message = ClientReportMessage.from_bytes(report(deployment, client))
        broken = ClientReportMessage(
            client_sig_pk=message.client_sig_pk,
            commitment_or_root=message.commitment_or_root,
            server_seed=message.server_seed,
            server_signature=message.server_signature,
            proof=b"\xff",
            ldp_value=message.ldp_value,
        )
        with pytest.raises(SerializationError):
            server.verifiable_randomization_verify(broken.to_bytes(), BOUNDS)


class TestHandshake:
    """Bad server responses leave the client untouched"""

    def test_bad_signature(self, deployment):
        client, server = deployment.shuffle_pair()
        response = ServerResponseMessage.from_bytes(
            server.generate_randomness(client.generate_randomness_create())
        )
        forged = ServerResponseMessage(
            response.server_seed, flip_bit(response.server_signature, 40)
        )
        assert not client.generate_randomness_verify(forged.to_bytes())
        assert client.state is SessionState.AWAITING_SERVER_RESPONSE
        assert client.storage.server_seed is None
        assert client.storage.server_signature is None

    def test_response_for_other_commitment(self, deployment):
        client, server = deployment.shuffle_pair()
        other, _ = deployment.shuffle_pair()
        client.generate_randomness_create()
        response = server.generate_randomness(other.generate_randomness_create())
        assert not client.generate_randomness_verify(response)

    def test_restarted_handshake(self, deployment):
        client, server = deployment.shuffle_pair()
        client.generate_randomness_create()
        assert handshake(client, server)


class TestProtocolState:
    """Out-of-order calls raise"""

    def test_report_before_handshake(self, deployment):
        client, _ = deployment.shuffle_pair()
        with pytest.raises(ProtocolStateError):
            report(deployment, client)

    def test_verify_without_commitment(self, deployment):
        client, server = deployment.shuffle_pair()
        other, _ = deployment.shuffle_pair()
        response = server.generate_randomness(other.generate_randomness_create())
        with pytest.raises(ProtocolStateError):
            client.generate_randomness_verify(response)

    def test_new_handshake_before_report(self, deployment):
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        with pytest.raises(ProtocolStateError):
            client.generate_randomness_create()

    def test_out_of_domain_value(self, deployment):
        client, server = deployment.shuffle_pair()
        assert handshake(client, server)
        with pytest.raises(ValueError):
            report(deployment, client, true_value=1 << 16)
        assert client.state is SessionState.READY


def test_default_backend_warns(deployment, caplog):
    """Sessions built without a proof system say their proofs expose the input"""
    with caplog.at_level(logging.WARNING, logger="vldp.snark.backend"):
        client, _ = deployment.shuffle_pair()
    assert client.proof_system.reveals_witness
    assert any("full witness" in record.getMessage() for record in caplog.records)
